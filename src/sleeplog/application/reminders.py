"""
Edge-triggered reminder watchdog.

Fires once when too much time has passed since the last logged event, and
re-arms as soon as a new entry brings the elapsed time back under threshold.
"""

import logging
from datetime import datetime, timezone
from enum import Enum

from sleeplog.domain.constants import START_REMINDER_HOURS, STOP_REMINDER_HOURS
from sleeplog.domain.ports import EventLedger

from .notifications.dispatcher import NotificationDispatcher
from .notifications.texts import reminder_notification

logger = logging.getLogger(__name__)


class ReminderState(str, Enum):
    BELOW_THRESHOLD = "below_threshold"
    ABOVE_THRESHOLD_PENDING = "above_threshold_pending"
    ABOVE_THRESHOLD_FIRED = "above_threshold_fired"


class ReminderWatchdog:
    """
    At most one reminder per continuous above-threshold excursion.

    Thresholds depend on the direction of the last entry:
        - last entry is a stop (awake): ``start_threshold_hours`` before
          reminding to log sleep.
        - last entry is a start (asleep): ``stop_threshold_hours`` before
          reminding to log waking up.
    """

    def __init__(
        self,
        start_threshold_hours: float = START_REMINDER_HOURS,
        stop_threshold_hours: float = STOP_REMINDER_HOURS,
    ):
        self.start_threshold_hours = start_threshold_hours
        self.stop_threshold_hours = stop_threshold_hours
        self.state = ReminderState.BELOW_THRESHOLD

    @property
    def fired(self) -> bool:
        return self.state is ReminderState.ABOVE_THRESHOLD_FIRED

    def threshold_for(self, last_is_stop: bool) -> float:
        return self.start_threshold_hours if last_is_stop else self.stop_threshold_hours

    def check(self, elapsed_hours: float, last_is_stop: bool) -> bool:
        """
        Atomic test-and-fire.

        Returns:
            True exactly when a reminder must be emitted now.
        """
        if elapsed_hours <= self.threshold_for(last_is_stop):
            self.state = ReminderState.BELOW_THRESHOLD
            return False

        if self.state is ReminderState.ABOVE_THRESHOLD_FIRED:
            return False

        # PENDING is never observable: entering it and firing happen in one call
        self.state = ReminderState.ABOVE_THRESHOLD_FIRED
        return True


class ReminderService:
    """
    Runs the watchdog against the ledger and delivers the reminder text.

    One instance (and so one watchdog) is built at startup and reused by the
    polling loop for the lifetime of the process.
    """

    def __init__(
        self,
        ledger: EventLedger,
        dispatcher: NotificationDispatcher,
        watchdog: ReminderWatchdog | None = None,
    ):
        self._ledger = ledger
        self._dispatcher = dispatcher
        self.watchdog = watchdog or ReminderWatchdog()

    async def check_reminder(self, now: datetime | None = None) -> bool:
        """
        Returns:
            True if a reminder fired during this check.
        """
        now = now or datetime.now(timezone.utc)

        try:
            last_entry = await self._ledger.read_last()
        except Exception as e:
            logger.warning(f"Reminder check skipped, could not read last entry: {e}")
            return False

        if last_entry is None:
            return False

        elapsed = last_entry.elapsed_hours(now)
        if not self.watchdog.check(elapsed, last_entry.is_stop):
            return False

        kind = "start" if last_entry.is_stop else "stop"
        logger.info(f"Sending {kind} reminder notification ({elapsed:.1f}h since last entry)")
        try:
            await self._dispatcher.send(reminder_notification(elapsed))
        except Exception as e:
            logger.error(f"Failed to deliver reminder: {e}")
        return True
