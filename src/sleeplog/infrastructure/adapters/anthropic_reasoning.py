"""
Anthropic reasoning provider: asks a Claude model for a notification decision.

The model is forced to answer through a single tool whose input schema is the
NotificationDecision model, so the reply is always structured.
"""

import logging

import httpx
from pydantic import ValidationError

from sleeplog.domain.constants import AI_MAX_TOKENS, AI_REQUEST_TIMEOUT, ANTHROPIC_API_VERSION
from sleeplog.domain.errors import ReasoningError
from sleeplog.domain.notifications import NotificationDecision
from sleeplog.domain.ports import ReasoningProvider

TOOL_NAME = "notification_decision"


class AnthropicReasoningProvider(ReasoningProvider):
    """Adapter for the Anthropic Messages API (HTTP)."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://api.anthropic.com",
        max_tokens: int = AI_MAX_TOKENS,
        client: httpx.AsyncClient | None = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.api_key = api_key
        self.model = model
        self.url = base_url.rstrip("/") + "/v1/messages"
        self.max_tokens = max_tokens
        self._client = client

    def _payload(self, prompt: str) -> dict:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "tools": [
                {
                    "name": TOOL_NAME,
                    "description": "Report whether to send a notification right now.",
                    "input_schema": NotificationDecision.model_json_schema(),
                }
            ],
            "tool_choice": {"type": "tool", "name": TOOL_NAME},
            "messages": [{"role": "user", "content": prompt}],
        }

    async def decide(self, prompt: str) -> NotificationDecision:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=AI_REQUEST_TIMEOUT)

        try:
            resp = await self._client.post(
                self.url,
                json=self._payload(prompt),
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": ANTHROPIC_API_VERSION,
                },
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise ReasoningError(f"Anthropic request failed: {e}") from e
        except ValueError as e:
            raise ReasoningError(f"Anthropic returned invalid JSON: {e}") from e

        for block in data.get("content", []):
            if block.get("type") == "tool_use" and block.get("name") == TOOL_NAME:
                try:
                    return NotificationDecision.model_validate(block.get("input") or {})
                except ValidationError as e:
                    raise ReasoningError(f"Malformed decision: {e}") from e

        self.logger.debug(f"Anthropic response without decision: {data}")
        raise ReasoningError("No decision in Anthropic response")

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
