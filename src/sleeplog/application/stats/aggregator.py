"""
Aggregator deriving summary metrics from reconstructed sleep sessions.

This is a pure computation module with no I/O.
"""

from dataclasses import dataclass

from sleeplog.domain.constants import DEBT_WINDOW_SESSIONS, SLEEP_TARGET_HOURS
from sleeplog.domain.models import SleepSession

from .circular import circular_mean_std, format_clock_hours


@dataclass(frozen=True)
class InsufficientData:
    """Returned instead of statistics when there is no closed session."""

    reason: str = "Not enough data to compute stats."

    def describe(self) -> str:
        return self.reason


INSUFFICIENT_DATA = InsufficientData()


@dataclass(frozen=True)
class SleepStats:
    """
    Summary of recent sleep.

    Bedtime figures are circular statistics of the local clock time at which
    each session started.
    """

    session_count: int
    average_hours: float
    shortest_hours: float
    longest_hours: float
    recent_debt_hours: float  # Shortfall vs target over the last few nights
    bedtime_mean_hours: float
    bedtime_std_hours: float

    def describe(self) -> str:
        spread_minutes = self.bedtime_std_hours * 60
        return "\n".join(
            [
                f"Average sleep: {self.average_hours:.1f}h",
                f"Range: {self.shortest_hours:.1f}h – {self.longest_hours:.1f}h",
                (
                    f"Recent sleep debt (last {DEBT_WINDOW_SESSIONS} nights, "
                    f"vs {SLEEP_TARGET_HOURS:g}h target): {self.recent_debt_hours:.1f}h"
                ),
                (
                    f"Average bedtime (local): {format_clock_hours(self.bedtime_mean_hours)} "
                    f"(±{spread_minutes:.0f} min spread)"
                ),
            ]
        )


class SleepStatsAggregator:
    """
    Computes SleepStats from SleepSession objects.

    Stateless and side-effect free.
    """

    def __init__(
        self,
        target_hours: float = SLEEP_TARGET_HOURS,
        debt_window: int = DEBT_WINDOW_SESSIONS,
    ):
        self.target_hours = target_hours
        self.debt_window = debt_window

    def aggregate(self, sessions: list[SleepSession]) -> SleepStats | InsufficientData:
        if not sessions:
            return INSUFFICIENT_DATA

        durations = [s.duration_hours for s in sessions]
        bedtime_mean, bedtime_std = circular_mean_std(
            self._clock_hours(s) for s in sessions
        )

        return SleepStats(
            session_count=len(sessions),
            average_hours=sum(durations) / len(durations),
            shortest_hours=min(durations),
            longest_hours=max(durations),
            recent_debt_hours=self._compute_debt(durations),
            bedtime_mean_hours=bedtime_mean,
            bedtime_std_hours=bedtime_std,
        )

    def _compute_debt(self, durations: list[float]) -> float:
        """
        Sum of per-night shortfall below the target, each night floored at zero.
        A window of zero covers no nights.
        """
        recent = durations[-self.debt_window :] if self.debt_window > 0 else []
        return sum(max(0.0, self.target_hours - d) for d in recent)

    @staticmethod
    def _clock_hours(session: SleepSession) -> float:
        start = session.start_local_time
        return start.hour + start.minute / 60.0
