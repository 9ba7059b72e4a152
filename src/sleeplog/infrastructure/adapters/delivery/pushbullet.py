"""Pushbullet transport: sends a note push to every device on the account."""

import logging

import httpx

from sleeplog.domain.constants import PUSHBULLET_URL, REQUEST_TIMEOUT
from sleeplog.domain.errors import DeliveryError
from sleeplog.domain.models import Notification
from sleeplog.domain.ports import DeliveryTransport

logger = logging.getLogger(__name__)


class PushbulletTransport(DeliveryTransport):
    name = "pushbullet"

    def __init__(self, api_key: str, client: httpx.AsyncClient | None = None):
        self.api_key = api_key
        self._client = client

    async def send(self, notification: Notification, extra: dict | None = None) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=REQUEST_TIMEOUT)

        try:
            resp = await self._client.post(
                PUSHBULLET_URL,
                json={"type": "note", "title": notification.title, "body": notification.body},
                headers={"Access-Token": self.api_key},
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise DeliveryError(f"Failed to send notification: {e}") from e

        logger.debug(f"Pushbullet accepted '{notification.title}'")
