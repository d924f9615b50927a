"""Mapping of course half-day slots onto calendar dates.

A course is a continuous run of half-day slots, two per calendar day
(morning then afternoon), starting on the course's start date at its start
period. Each of the five weeks holds three slots. Nothing here touches the
database.
"""
import enum
from datetime import date, timedelta

WEEKS_PER_COURSE = 5
SLOTS_PER_WEEK = 3
HALF_DAYS_PER_COURSE = WEEKS_PER_COURSE * SLOTS_PER_WEEK


class Period(str, enum.Enum):
    MORNING = "matin"
    AFTERNOON = "apres_midi"


SLOT_TO_PERIOD = (Period.MORNING, Period.AFTERNOON)


def period_for_slot(start_slot_index):
    return SLOT_TO_PERIOD[start_slot_index]


def slot_for_period(period):
    return SLOT_TO_PERIOD.index(Period(period))


def map_slot(start_date, start_slot_index, week_number, slot_in_week):
    """Return ``(session_date, period)`` of a slot.

    ``start_slot_index`` is 0 for a course starting in the morning, 1 for the
    afternoon. ``week_number`` is 1-based, ``slot_in_week`` is 0..2. Callers
    validate the ranges.
    """
    week_first_day = start_date + timedelta(days=7 * (week_number - 1))
    slot_offset = start_slot_index + slot_in_week
    day_offset, half = divmod(slot_offset, 2)
    return week_first_day + timedelta(days=day_offset), period_for_slot(half)


def expected_schedule(start_date, start_period, first_week=1):
    """All ``(week, slot, session_date, period)`` from ``first_week`` to the last week.

    ``start_date`` is taken as the first day of ``first_week``.
    """
    start_slot_index = slot_for_period(start_period)
    rows = []
    for week in range(first_week, WEEKS_PER_COURSE + 1):
        for slot in range(SLOTS_PER_WEEK):
            session_date, period = map_slot(
                start_date, start_slot_index, week - first_week + 1, slot
            )
            rows.append((week, slot, session_date, period))
    return rows


def week_start_monday(day: date) -> date:
    return day - timedelta(days=day.weekday())
