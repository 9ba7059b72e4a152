"""
Sleep Stats Service — Application layer orchestrator.

Coordinates reading the event ledger and turning entries into statistics.
"""

import logging

from sleeplog.domain.constants import RECENT_ENTRIES_COUNT
from sleeplog.domain.models import LogEntry
from sleeplog.domain.ports import EventLedger

from .aggregator import InsufficientData, SleepStats, SleepStatsAggregator
from .sessions import sessions_from

logger = logging.getLogger(__name__)


class SleepStatsService:
    """
    Application service for reading recent entries and summarising them.

    Depends on the EventLedger abstraction, not a concrete adapter.
    """

    def __init__(
        self,
        ledger: EventLedger,
        aggregator: SleepStatsAggregator | None = None,
    ):
        """
        Args:
            ledger: The ledger (port) holding the event log.
            aggregator: Optional custom aggregator; uses default if not provided.
        """
        self._ledger = ledger
        self._aggregator = aggregator or SleepStatsAggregator()

    async def get_recent_sleep_entries(
        self, count: int = RECENT_ENTRIES_COUNT
    ) -> list[LogEntry]:
        return await self._ledger.read_recent(count)

    async def get_last_entry(self) -> LogEntry | None:
        return await self._ledger.read_last()

    def get_sleep_stats(self, entries: list[LogEntry]) -> SleepStats | InsufficientData:
        """
        Reconstruct sessions from the given entries and aggregate them.
        """
        sessions = sessions_from(entries)
        logger.debug(f"Reconstructed {len(sessions)} sessions from {len(entries)} entries")
        return self._aggregator.aggregate(sessions)

    async def get_recent_stats(
        self, count: int = RECENT_ENTRIES_COUNT
    ) -> SleepStats | InsufficientData:
        entries = await self.get_recent_sleep_entries(count)
        return self.get_sleep_stats(entries)
