"""
Expansion of the trip configuration into its bookable (date, slot) pairs.

Pure functions only: the same configuration always yields the same ordered
sequence, so the result can be used both for rendering and for validation.
"""

from datetime import date
from typing import List

from .models import SlotKey, TimeSlot, TripConfiguration


def trip_dates(config: TripConfiguration) -> List[date]:
    """
    Return the ``total_days`` consecutive calendar dates starting at the trip start.

    ``total_days`` is always positive here; TripConfiguration rejects anything else.
    """
    first_day = config.start.start_of("day")
    dates: List[date] = []
    for offset in range(config.total_days):
        current = first_day.add(days=offset)
        dates.append(date(current.year, current.month, current.day))
    return dates


def expand_dates(config: TripConfiguration) -> List[SlotKey]:
    """
    Produce every bookable slot in trip order.

    Each date contributes a Morning and an Afternoon slot, except the first
    date when the trip starts at or after noon: that day only has an
    Afternoon slot.
    """
    keys: List[SlotKey] = []
    for index, day in enumerate(trip_dates(config)):
        if not (index == 0 and config.starts_in_afternoon):
            keys.append(SlotKey(day, TimeSlot.MORNING))
        keys.append(SlotKey(day, TimeSlot.AFTERNOON))
    return keys
