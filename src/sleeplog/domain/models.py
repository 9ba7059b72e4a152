"""
Domain models for the sleep event log.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .constants import LEDGER_TIME_FORMAT


@dataclass(frozen=True)
class LogEntry:
    """
    A single logged sleep/wake event.

    Attributes:
        local_time: Civil time in the observer's zone ("YYYY-MM-DD HH:MM:SS").
        utc_time: Absolute instant of the event (timezone-aware, UTC).
        timezone_name: IANA zone the observer was in when logging.
        latitude: Provenance only, kept as logged.
        longitude: Provenance only, kept as logged.
        duration: Present only on stop entries (time since the matching start).
    """

    local_time: str
    utc_time: datetime
    timezone_name: str
    latitude: str = ""
    longitude: str = ""
    duration: str | None = None

    @property
    def is_stop(self) -> bool:
        return bool(self.duration)

    def local_datetime(self) -> datetime:
        """
        Wall-clock time of the event in the observer's zone.

        Falls back to converting the UTC instant when the stored local time
        is unreadable, and to UTC wall time when the zone is unknown.
        """
        try:
            return datetime.strptime(self.local_time, LEDGER_TIME_FORMAT)
        except (TypeError, ValueError):
            pass
        try:
            zone = ZoneInfo(self.timezone_name)
        except (ZoneInfoNotFoundError, ValueError):
            zone = timezone.utc
        return self.utc_time.astimezone(zone).replace(tzinfo=None)

    def elapsed_hours(self, now: datetime) -> float:
        return (now - self.utc_time).total_seconds() / 3600.0


@dataclass(frozen=True)
class SleepSession:
    """
    One sleep interval reconstructed from a start/stop pair. Never persisted.

    Attributes:
        start_local_time: When sleep started, in the observer's civil time.
        duration_hours: Length of the interval, strictly between 0 and 24.
    """

    start_local_time: datetime
    duration_hours: float


@dataclass(frozen=True)
class GeoPosition:
    """A position fix sent by the client when logging an event."""

    latitude: float
    longitude: float
    timestamp: int  # epoch milliseconds
    accuracy: float | None = None
    timezone: str | None = None


@dataclass(frozen=True)
class Notification:
    """Title and body handed to the delivery transports."""

    title: str
    body: str
