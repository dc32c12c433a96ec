from datetime import date

import pytest

from app.domain.watering.interval_policy import IntervalPolicy
from app.enums.watering import WateringAction, WaterNeed


@pytest.mark.parametrize(
    "need, watering, postpone",
    [
        (WaterNeed.HIGH, 4, 2),
        (WaterNeed.MEDIUM, 14, 5),
        (WaterNeed.LOW, 30, 10),
    ],
)
def test_interval_table(need, watering, postpone):
    assert IntervalPolicy.watering_interval(need) == watering
    assert IntervalPolicy.postpone_interval(need) == postpone
    assert IntervalPolicy.interval_for(WateringAction.WATERED, need) == watering
    assert IntervalPolicy.interval_for(WateringAction.POSTPONED, need) == postpone


def test_intervals_accept_raw_values():
    assert IntervalPolicy.watering_interval("LOW") == 30
    assert IntervalPolicy.postpone_interval("HIGH") == 2


def test_postpone_is_shorter_than_watering_for_every_need():
    for need in WaterNeed:
        assert 0 < IntervalPolicy.postpone_interval(need) < IntervalPolicy.watering_interval(need)


def test_dates_cross_month_boundaries():
    assert IntervalPolicy.next_watering_date(date(2026, 1, 20), WaterNeed.MEDIUM) == date(2026, 2, 3)
    assert IntervalPolicy.next_watering_date(date(2026, 2, 27), WaterNeed.HIGH) == date(2026, 3, 3)


def test_unknown_need_is_rejected():
    with pytest.raises(ValueError):
        IntervalPolicy.watering_interval("SOAKING")
