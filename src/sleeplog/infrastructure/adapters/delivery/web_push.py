"""
Web Push transport.

Sends the notification to every registered browser subscription, signed with
the VAPID key pair from the secret directory. Subscriptions the push service
reports as gone (404/410) are removed.
"""

import asyncio
import json
import logging
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from py_vapid import Vapid
from py_vapid.utils import b64urlencode
from pywebpush import WebPushException, webpush

from sleeplog.application.push_subscriptions import PushSubscriptionStore
from sleeplog.domain.constants import EXPIRED_SUBSCRIPTION_STATUSES
from sleeplog.domain.errors import DeliveryError
from sleeplog.domain.models import Notification
from sleeplog.domain.ports import DeliveryTransport

logger = logging.getLogger(__name__)


def generate_vapid_keys(path: Path) -> dict:
    """
    Create a VAPID key pair and save it as JSON (publicKey/privateKey, both
    base64url). Refuses to overwrite an existing file.
    """
    path = Path(path)
    if path.exists():
        raise FileExistsError(f"VAPID keys already exist at {path}")

    vapid = Vapid()
    vapid.generate_keys()
    private_value = vapid.private_key.private_numbers().private_value
    public_bytes = vapid.public_key.public_bytes(
        serialization.Encoding.X962, serialization.PublicFormat.UncompressedPoint
    )
    keys = {
        "publicKey": b64urlencode(public_bytes),
        "privateKey": b64urlencode(private_value.to_bytes(32, "big")),
    }

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(keys, indent=2), encoding="utf-8")
    return keys


class WebPushTransport(DeliveryTransport):
    name = "web-push"

    def __init__(
        self,
        subscriptions: PushSubscriptionStore,
        vapid_keys_path: Path,
        vapid_subject: str,
    ):
        self.subscriptions = subscriptions
        self.vapid_keys_path = Path(vapid_keys_path)
        self.vapid_subject = vapid_subject
        self._keys: dict | None = None
        self._initialized = False

    def _load_keys(self) -> dict | None:
        if self._initialized:
            return self._keys
        self._initialized = True

        if not self.vapid_keys_path.exists():
            logger.warning(
                f"VAPID keys not found at {self.vapid_keys_path}. Run: sleeplog push gen-keys"
            )
            return None
        try:
            self._keys = json.loads(self.vapid_keys_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load VAPID keys: {e}")
        return self._keys

    @property
    def public_key(self) -> str | None:
        keys = self._load_keys()
        return keys.get("publicKey") if keys else None

    async def send(self, notification: Notification, extra: dict | None = None) -> None:
        keys = self._load_keys()
        if not keys:
            raise DeliveryError("Web push not initialized")

        subscriptions = await self.subscriptions.list()
        if not subscriptions:
            raise DeliveryError("No push subscriptions registered")

        payload = json.dumps({"title": notification.title, "body": notification.body, **(extra or {})})

        delivered = 0
        expired: list[int] = []
        for index, sub in enumerate(subscriptions):
            try:
                await asyncio.to_thread(
                    webpush,
                    subscription_info=sub.to_subscription_info(),
                    data=payload,
                    vapid_private_key=keys["privateKey"],
                    vapid_claims={"sub": self.vapid_subject},
                )
                delivered += 1
            except WebPushException as e:
                status = e.response.status_code if e.response is not None else None
                if status in EXPIRED_SUBSCRIPTION_STATUSES:
                    expired.append(index)
                else:
                    logger.error(f"Failed to send push to subscription {index}: {e}")
            except Exception as e:
                logger.error(f"Failed to send push to subscription {index}: {e}")

        # Reverse order keeps the remaining indices valid
        for index in reversed(expired):
            await self.subscriptions.remove_by_index(index)
            logger.info(f"Removed expired subscription at index {index}")

        if delivered == 0:
            raise DeliveryError(f"Push failed for all {len(subscriptions)} subscriptions")
