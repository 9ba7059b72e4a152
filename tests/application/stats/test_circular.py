import math

import pytest

from sleeplog.application.stats.circular import (
    circular_distance_hours,
    circular_mean_std,
    format_clock_hours,
)


def test_mean_across_midnight_is_midnight_not_noon():
    mean, std = circular_mean_std([23.9, 0.1])

    assert circular_distance_hours(mean, 0.0) < 1e-9
    assert 0.0 <= mean < 24.0
    # 0.1h either side of the mean
    assert std == pytest.approx(0.1, rel=1e-3)


@pytest.mark.parametrize("h", [0.0, 3.25, 12.0, 22.5, 23.99])
def test_repeated_value_has_zero_spread(h):
    mean, std = circular_mean_std([h] * 7)

    assert circular_distance_hours(mean, h) < 1e-9
    assert std == pytest.approx(0.0, abs=1e-6)


def test_mean_is_always_normalised_into_day():
    mean, _ = circular_mean_std([23.0, 23.5, 0.5])
    assert 0.0 <= mean < 24.0
    assert mean == pytest.approx(23 + 40 / 60, abs=0.01)


def test_uniform_spread_is_large_but_finite():
    # Four points evenly around the clock cancel out: R == 0
    mean, std = circular_mean_std([0.0, 6.0, 12.0, 18.0])

    assert 0.0 <= mean < 24.0
    assert math.isfinite(std)
    assert std > 10


def test_matches_formula():
    hours = [22.0, 23.0, 0.5]
    thetas = [2 * math.pi * h / 24 for h in hours]
    s = sum(map(math.sin, thetas)) / 3
    c = sum(map(math.cos, thetas)) / 3
    r = math.hypot(s, c)

    mean, std = circular_mean_std(hours)

    assert mean == pytest.approx((math.atan2(s, c) * 24 / (2 * math.pi)) % 24)
    assert std == pytest.approx(math.sqrt(-2 * math.log(r)) * 24 / (2 * math.pi))


def test_empty_input_raises():
    with pytest.raises(ValueError):
        circular_mean_std([])


def test_accepts_generators():
    mean, _ = circular_mean_std(h for h in [1.0, 2.0, 3.0])
    assert mean == pytest.approx(2.0)


def test_circular_distance():
    assert circular_distance_hours(23.5, 0.5) == pytest.approx(1.0)
    assert circular_distance_hours(6.0, 18.0) == pytest.approx(12.0)
    assert circular_distance_hours(1.0, 1.0) == 0.0


@pytest.mark.parametrize(
    "h, expected",
    [(0.0, "0:00"), (22.5, "22:30"), (23.999, "0:00"), (7.1, "7:06")],
)
def test_format_clock_hours(h, expected):
    assert format_clock_hours(h) == expected
