"""
Interval Policy
===============

Maps a species' water-need classification to the number of days until the
next watering, and to the number of days a postponed watering is pushed back.

    need    water   postpone
    HIGH      4        2
    MEDIUM   14        5
    LOW      30       10

These values are relied upon by the calendar views and the test-suite; they
must not change without a data migration of pending events.
"""

from __future__ import annotations

from datetime import date

from app.enums.watering import WateringAction, WaterNeed
from app.utils.time import add_days

WATERING_INTERVAL_DAYS: dict[WaterNeed, int] = {
    WaterNeed.HIGH: 4,
    WaterNeed.MEDIUM: 14,
    WaterNeed.LOW: 30,
}

POSTPONE_INTERVAL_DAYS: dict[WaterNeed, int] = {
    WaterNeed.HIGH: 2,
    WaterNeed.MEDIUM: 5,
    WaterNeed.LOW: 10,
}


class IntervalPolicy:
    """Pure lookup of watering and postpone intervals."""

    @staticmethod
    def watering_interval(need: WaterNeed | str) -> int:
        return WATERING_INTERVAL_DAYS[WaterNeed(need)]

    @staticmethod
    def postpone_interval(need: WaterNeed | str) -> int:
        return POSTPONE_INTERVAL_DAYS[WaterNeed(need)]

    @classmethod
    def interval_for(cls, action: WateringAction, need: WaterNeed | str) -> int:
        """Interval used for the successor of an event resolved with *action*."""
        if WateringAction(action) is WateringAction.POSTPONED:
            return cls.postpone_interval(need)
        return cls.watering_interval(need)

    @classmethod
    def next_watering_date(cls, base: date, need: WaterNeed | str) -> date:
        return add_days(base, cls.watering_interval(need))
