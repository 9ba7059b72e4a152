# Application Stats Package
from .aggregator import INSUFFICIENT_DATA, InsufficientData, SleepStats, SleepStatsAggregator
from .circular import circular_distance_hours, circular_mean_std, format_clock_hours
from .service import SleepStatsService
from .sessions import sessions_from

__all__ = [
    "INSUFFICIENT_DATA",
    "InsufficientData",
    "SleepStats",
    "SleepStatsAggregator",
    "SleepStatsService",
    "circular_distance_hours",
    "circular_mean_std",
    "format_clock_hours",
    "sessions_from",
]
