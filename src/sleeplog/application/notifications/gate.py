"""
Notification gate: hard rate-limiting rules over the persisted history.

The gate only enforces numeric and temporal rules. Whether a given insight is
worth sending, or repeats one already sent today, is left to the reasoning
provider.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sleeplog.domain.constants import (
    DAILY_NOTIFICATION_CAP,
    MIN_NOTIFICATION_SPACING_HOURS,
    NOTIFICATION_WINDOW_HOURS,
    QUIET_HOURS_END,
    QUIET_HOURS_START,
)
from sleeplog.domain.notifications import Feedback, NotificationRecord
from sleeplog.domain.ports import DocumentStore

logger = logging.getLogger(__name__)


class GateRejection(str, Enum):
    QUIET_HOURS = "quiet_hours"
    TOO_SOON = "too_soon"
    DAILY_CAP = "daily_cap"


@dataclass(frozen=True)
class GatePolicy:
    """
    Attributes:
        quiet_start: Local hour at which quiet hours begin (inclusive).
        quiet_end: Local hour at which quiet hours end (exclusive). A window
            with quiet_end < quiet_start wraps past midnight.
        min_spacing: Minimum time between two notifications.
        daily_cap: Maximum notifications within the trailing window.
        window: Trailing window the gate looks at.
    """

    quiet_start: int = QUIET_HOURS_START
    quiet_end: int = QUIET_HOURS_END
    min_spacing: timedelta = timedelta(hours=MIN_NOTIFICATION_SPACING_HOURS)
    daily_cap: int = DAILY_NOTIFICATION_CAP
    window: timedelta = timedelta(hours=NOTIFICATION_WINDOW_HOURS)

    def in_quiet_hours(self, local_hour: int) -> bool:
        if self.quiet_start == self.quiet_end:
            return False
        if self.quiet_start < self.quiet_end:
            return self.quiet_start <= local_hour < self.quiet_end
        return local_hour >= self.quiet_start or local_hour < self.quiet_end


def _local_time(now: datetime, timezone_name: str | None) -> datetime:
    if not timezone_name:
        return now.astimezone(timezone.utc)
    try:
        return now.astimezone(ZoneInfo(timezone_name))
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone '{timezone_name}', using UTC for quiet hours")
        return now.astimezone(timezone.utc)


class NotificationGate:
    """
    Decides whether a new notification may go out and records accepted ones.

    ``history`` is always the full persisted list; the gate's own view of it
    is the trailing window ending at ``now``.
    """

    def __init__(
        self,
        store: DocumentStore[NotificationRecord],
        policy: GatePolicy | None = None,
    ):
        self._store = store
        self.policy = policy or GatePolicy()
        self._lock = asyncio.Lock()

    def recent(
        self, now: datetime, history: list[NotificationRecord]
    ) -> list[NotificationRecord]:
        """
        Records sent within the trailing window, oldest first.
        """
        cutoff = now - self.policy.window
        window = [r for r in history if r.sent_at >= cutoff]
        return sorted(window, key=lambda r: r.sent_at)

    def rejection_reason(
        self,
        now: datetime,
        history: list[NotificationRecord],
        timezone_name: str | None = None,
    ) -> GateRejection | None:
        """
        Evaluate the hard rules in order and return the first one that fails.

        1. Observer-local time inside quiet hours.
        2. Latest notification in the window is more recent than the spacing.
        3. Window already holds the daily cap.
        """
        if self.policy.in_quiet_hours(_local_time(now, timezone_name).hour):
            return GateRejection.QUIET_HOURS

        window = self.recent(now, history)
        if window and now - window[-1].sent_at < self.policy.min_spacing:
            return GateRejection.TOO_SOON

        if len(window) >= self.policy.daily_cap:
            return GateRejection.DAILY_CAP

        return None

    def can_send(
        self,
        now: datetime,
        history: list[NotificationRecord],
        timezone_name: str | None = None,
    ) -> bool:
        return self.rejection_reason(now, history, timezone_name) is None

    async def load_history(self) -> list[NotificationRecord]:
        """
        Read the persisted history for gate decisions, failing open to an
        empty list.

        Records written before notifications had IDs get one generated on read;
        those IDs are saved right away so later feedback can refer to them.
        """
        try:
            history = await self._store.read()
        except Exception as e:
            logger.warning(f"Notification history unreadable, treating as empty: {e}")
            return []

        if any("id" not in r.model_fields_set for r in history):
            history = await self._save_generated_ids(history)
        return history

    async def _save_generated_ids(
        self, history: list[NotificationRecord]
    ) -> list[NotificationRecord]:
        try:
            async with self._lock:
                history = await self._store.read()
                await self._store.write(history)
        except Exception as e:
            logger.warning(f"Could not save generated notification IDs: {e}")
            return history
        logger.info("Saved generated IDs for notification records without one")
        return history

    async def record_sent(
        self,
        now: datetime,
        title: str,
        body: str,
        notification_id: str | None = None,
    ) -> NotificationRecord:
        """
        Append an accepted notification to the persisted history.

        No content deduplication happens here; a retried call appends again.

        Raises:
            DocumentStoreError: If the persisted history cannot be read or
                rewritten without losing records.
        """
        fields = {"title": title, "body": body, "sent_at": now}
        if notification_id:
            fields["id"] = notification_id
        record = NotificationRecord(**fields)

        async with self._lock:
            history = await self._store.read()
            history.append(record)
            await self._store.write(history)

        logger.info(f"Recorded notification {record.id}: {title}")
        return record

    async def record_feedback(
        self,
        notification_id: str,
        feedback: Feedback,
        now: datetime | None = None,
    ) -> NotificationRecord | None:
        """
        Attach user feedback to a sent notification. Feedback is given once;
        later submissions leave the first answer in place.

        Returns:
            The record as stored, or None if no record has that ID.

        Raises:
            DocumentStoreError: If the persisted history cannot be read or
                rewritten without losing records.
        """
        now = now or datetime.now(timezone.utc)

        async with self._lock:
            history = await self._store.read()
            for record in history:
                if record.id == notification_id:
                    if record.feedback is not None:
                        logger.info(f"Notification {notification_id} already has feedback")
                        return record
                    record.feedback = feedback
                    record.feedback_given_at = now
                    await self._store.write(history)
                    logger.info(f"Feedback '{feedback.value}' on notification {notification_id}")
                    return record

        logger.warning(f"Feedback for unknown notification {notification_id}")
        return None
