import json

import httpx
import pytest

from sleeplog.domain.errors import ReasoningError
from sleeplog.infrastructure.adapters.anthropic_reasoning import (
    TOOL_NAME,
    AnthropicReasoningProvider,
)


def _provider(handler) -> AnthropicReasoningProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AnthropicReasoningProvider(
        api_key="sk-test", model="claude-test", base_url="https://api.test/", client=client
    )


def _tool_reply(decision: dict) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "content": [
                {"type": "text", "text": "Thinking..."},
                {"type": "tool_use", "name": TOOL_NAME, "input": decision},
            ]
        },
    )


@pytest.mark.asyncio
async def test_decide_parses_tool_use():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return _tool_reply({"should_send": True, "title": "Wind down", "body": "Bed in 30 min."})

    decision = await _provider(handler).decide("prompt text")

    assert decision.should_send is True
    assert decision.title == "Wind down"
    assert seen["url"] == "https://api.test/v1/messages"
    assert seen["headers"]["x-api-key"] == "sk-test"
    assert seen["headers"]["anthropic-version"] == "2023-06-01"
    body = seen["body"]
    assert body["model"] == "claude-test"
    assert body["tool_choice"] == {"type": "tool", "name": TOOL_NAME}
    assert "should_send" in body["tools"][0]["input_schema"]["properties"]
    assert body["messages"] == [{"role": "user", "content": "prompt text"}]


@pytest.mark.asyncio
async def test_decline_without_text():
    decision = await _provider(lambda r: _tool_reply({"should_send": False})).decide("p")

    assert decision.should_send is False
    assert decision.title is None


@pytest.mark.asyncio
async def test_http_error_raises_reasoning_error():
    provider = _provider(lambda r: httpx.Response(529, json={"error": "overloaded"}))

    with pytest.raises(ReasoningError):
        await provider.decide("p")


@pytest.mark.asyncio
async def test_missing_tool_block_raises():
    provider = _provider(
        lambda r: httpx.Response(200, json={"content": [{"type": "text", "text": "no"}]})
    )

    with pytest.raises(ReasoningError, match="No decision"):
        await provider.decide("p")


@pytest.mark.asyncio
async def test_malformed_decision_raises():
    provider = _provider(lambda r: _tool_reply({"title": "missing should_send"}))

    with pytest.raises(ReasoningError, match="Malformed"):
        await provider.decide("p")


@pytest.mark.asyncio
async def test_invalid_json_raises():
    provider = _provider(lambda r: httpx.Response(200, content=b"<html>"))

    with pytest.raises(ReasoningError):
        await provider.decide("p")


@pytest.mark.asyncio
async def test_transport_failure_raises():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ReasoningError):
        await _provider(handler).decide("p")
