"""Service for writing sleep/wake events to the ledger."""

import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sleeplog.domain.constants import LEDGER_TIME_FORMAT
from sleeplog.domain.models import GeoPosition, LogEntry
from sleeplog.domain.ports import EventLedger

from .notifications.dispatcher import NotificationDispatcher
from .notifications.texts import entry_notification

logger = logging.getLogger(__name__)


def entry_from_position(position: GeoPosition, default_timezone: str = "UTC") -> LogEntry:
    """
    Build a log entry from a client position fix.

    The zone sent by the client wins; an unknown or missing zone falls back to
    ``default_timezone``.
    """
    zone_name = position.timezone or default_timezone
    try:
        zone = ZoneInfo(zone_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone '{zone_name}', using {default_timezone}")
        zone_name = default_timezone
        zone = ZoneInfo(default_timezone)

    utc_time = datetime.fromtimestamp(position.timestamp / 1000, tz=timezone.utc).replace(
        microsecond=0
    )
    return LogEntry(
        local_time=utc_time.astimezone(zone).strftime(LEDGER_TIME_FORMAT),
        utc_time=utc_time,
        timezone_name=zone_name,
        latitude=str(position.latitude),
        longitude=str(position.longitude),
    )


class SleepLogService:
    def __init__(
        self,
        ledger: EventLedger,
        dispatcher: NotificationDispatcher,
        default_timezone: str = "UTC",
    ):
        self._ledger = ledger
        self._dispatcher = dispatcher
        self.default_timezone = default_timezone

    async def log_sleep(self, position: GeoPosition) -> LogEntry:
        entry = entry_from_position(position, self.default_timezone)
        stored = await self._ledger.append(entry)
        logger.info(f"Logged {'stop' if stored.is_stop else 'start'} at {stored.local_time}")
        await self._confirm(stored)
        return stored

    async def replace_last_sleep(self, position: GeoPosition) -> LogEntry:
        entry = entry_from_position(position, self.default_timezone)
        stored = await self._ledger.replace_last(entry)
        logger.info(f"Replaced last entry with {stored.local_time}")
        await self._confirm(stored)
        return stored

    async def _confirm(self, entry: LogEntry) -> None:
        # The entry is already durable; a failed confirmation must not undo it
        try:
            await self._dispatcher.send(entry_notification(entry))
        except Exception as e:
            logger.warning(f"Could not send entry confirmation: {e}")
