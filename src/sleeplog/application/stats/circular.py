"""
Circular statistics for clock times on a 24-hour period.

A bedtime of 23:50 and one of 00:10 are 20 minutes apart, so arithmetic
averaging across midnight is wrong. Values are treated as angles instead.
"""

import math
from collections.abc import Iterable

from sleeplog.domain.constants import CIRCULAR_R_FLOOR

HOURS_PER_DAY = 24.0
_RADIANS_PER_HOUR = 2 * math.pi / HOURS_PER_DAY


def circular_mean_std(hours: Iterable[float]) -> tuple[float, float]:
    """
    Compute the circular mean and circular standard deviation of clock times.

    Each hour h maps to the angle 2*pi*h/24. The mean vector of the angles has
    length R in [0, 1] (1 = identical times, 0 = uniformly spread).

        mean = atan2(mean_sin, mean_cos) in hours, normalised into [0, 24)
        std  = sqrt(-2 * ln(R)) * 24 / (2*pi)

    R is clamped into [CIRCULAR_R_FLOOR, 1] so a perfectly uniform set yields a
    large finite spread and an identical set yields exactly zero.

    Args:
        hours: Clock times as real hours in [0, 24).

    Returns:
        (mean_hours, std_hours)

    Raises:
        ValueError: If no values are given.
    """
    sin_sum = 0.0
    cos_sum = 0.0
    count = 0
    for h in hours:
        theta = h * _RADIANS_PER_HOUR
        sin_sum += math.sin(theta)
        cos_sum += math.cos(theta)
        count += 1

    if count == 0:
        raise ValueError("circular_mean_std() requires at least one value")

    mean_sin = sin_sum / count
    mean_cos = cos_sum / count

    r = math.sqrt(mean_sin**2 + mean_cos**2)
    r = min(1.0, max(CIRCULAR_R_FLOOR, r))

    mean_hours = (math.atan2(mean_sin, mean_cos) / _RADIANS_PER_HOUR) % HOURS_PER_DAY
    # A tiny negative angle rounds up to exactly 24.0 after the modulo
    if mean_hours >= HOURS_PER_DAY:
        mean_hours = 0.0

    std_hours = math.sqrt(-2.0 * math.log(r)) / _RADIANS_PER_HOUR
    return mean_hours, std_hours


def circular_distance_hours(a: float, b: float) -> float:
    """Shortest distance between two clock times, in hours (0 to 12)."""
    diff = abs(a - b) % HOURS_PER_DAY
    return min(diff, HOURS_PER_DAY - diff)


def format_clock_hours(h: float) -> str:
    """Render real hours as H:MM, wrapping at midnight."""
    total_minutes = round(h * 60) % (24 * 60)
    return f"{total_minutes // 60}:{total_minutes % 60:02d}"
