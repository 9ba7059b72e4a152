"""
Session reconstruction from the alternating event log.

This is a pure computation module with no I/O.
"""

import logging
from collections.abc import Sequence

from sleeplog.domain.constants import MAX_SESSION_HOURS
from sleeplog.domain.models import LogEntry, SleepSession

logger = logging.getLogger(__name__)


def sessions_from(entries: Sequence[LogEntry]) -> list[SleepSession]:
    """
    Pair each start entry with the stop entry right after it.

    Pairs that are not a start followed by a stop, or whose span is not
    strictly between 0 and 24 hours, are dropped. Edited or malformed history
    must never break analytics, so nothing here raises.

    Args:
        entries: Log entries ordered oldest first (the full log or a suffix).

    Returns:
        Closed sessions in log order. A trailing unmatched start yields nothing.
    """
    sessions: list[SleepSession] = []

    for start, stop in zip(entries, entries[1:]):
        if start.is_stop or not stop.is_stop:
            continue

        hours = (stop.utc_time - start.utc_time).total_seconds() / 3600.0
        if not 0 < hours < MAX_SESSION_HOURS:
            logger.debug(
                f"Dropping session starting {start.local_time}: {hours:.2f}h out of range"
            )
            continue

        sessions.append(
            SleepSession(start_local_time=start.local_datetime(), duration_hours=hours)
        )

    return sessions
