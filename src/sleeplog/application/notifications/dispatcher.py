"""
Fan-out of one notification to every configured delivery transport.
"""

import logging

from sleeplog.domain.errors import DeliveryError
from sleeplog.domain.models import Notification
from sleeplog.domain.ports import DeliveryTransport

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Sends through all transports; delivery counts as done when at least one
    transport succeeds.
    """

    def __init__(self, transports: list[DeliveryTransport]):
        self.transports = transports

    async def send(self, notification: Notification, extra: dict | None = None) -> int:
        """
        Returns:
            Number of transports that accepted the notification.

        Raises:
            DeliveryError: If no transport is configured or all of them failed.
        """
        if not self.transports:
            raise DeliveryError("No delivery transport configured")

        delivered = 0
        for transport in self.transports:
            try:
                await transport.send(notification, extra)
                delivered += 1
            except Exception as e:
                logger.warning(f"Delivery via {transport.name} failed: {e}")

        if delivered == 0:
            raise DeliveryError(f"All {len(self.transports)} transports failed")

        logger.info(f"Delivered '{notification.title}' via {delivered} transport(s)")
        return delivered
