from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

import pytest

from sleeplog.domain.models import LogEntry


def _make_entry(
    utc: datetime,
    tz: str = "UTC",
    duration: str | None = None,
) -> LogEntry:
    """Build a LogEntry at the given UTC instant, as if logged in ``tz``."""
    utc = utc.replace(tzinfo=timezone.utc) if utc.tzinfo is None else utc
    return LogEntry(
        local_time=utc.astimezone(ZoneInfo(tz)).strftime("%Y-%m-%d %H:%M:%S"),
        utc_time=utc,
        timezone_name=tz,
        latitude="52.52",
        longitude="13.40",
        duration=duration,
    )


@pytest.fixture
def make_entry():
    return _make_entry


@pytest.fixture
def make_nights():
    """
    Factory for an alternating log: one start/stop pair per night.

    Each item of ``nights`` is (bedtime as UTC datetime, hours slept).
    """

    def factory(nights: list[tuple[datetime, float]], tz: str = "UTC") -> list[LogEntry]:
        entries = []
        for bedtime, hours in nights:
            entries.append(_make_entry(bedtime, tz))
            wake = bedtime + timedelta(hours=hours)
            entries.append(_make_entry(wake, tz, duration=f"{hours:g}h"))
        return entries

    return factory


@pytest.fixture
def mock_dispatcher():
    dispatcher = AsyncMock()
    dispatcher.send.return_value = 1
    return dispatcher

