"""Day/week/month boundaries and hour-slot partitioning for the calendar grid.

All helpers keep the tzinfo of the reference datetime, so day boundaries are
wall-clock boundaries in whatever zone the caller renders in.
"""

from __future__ import annotations

import calendar as _calendar
import datetime as dt
import enum
from dataclasses import dataclass, replace
from typing import Callable, Optional

MONDAY = 0
SUNDAY = 6

DEFAULT_SLOT_MINUTES = 60
DEFAULT_SUB_SLOT_MINUTES = 15
_MINUTES_PER_DAY = 24 * 60

_WEEKDAY_NAMES = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}


class Granularity(str, enum.Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive ``[start, end]`` window."""

    start: dt.datetime
    end: dt.datetime

    def contains(self, moment: dt.datetime) -> bool:
        return self.start <= moment <= self.end


@dataclass(frozen=True)
class TimeSlot:
    """Half-open ``[start, end)`` interval in the visible grid."""

    start: dt.datetime
    end: dt.datetime

    @property
    def minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def contains(self, moment: dt.datetime) -> bool:
        return self.start <= moment < self.end


def parse_week_start(value: Optional[str]) -> int:
    """Accept a weekday name or index (0=Monday); blank means Monday."""
    if value is None or not str(value).strip():
        return MONDAY
    raw = str(value).strip().lower()
    if raw in _WEEKDAY_NAMES:
        return _WEEKDAY_NAMES[raw]
    try:
        idx = int(raw)
    except ValueError:
        raise ValueError(f"unknown week start: {value!r}") from None
    if not 0 <= idx <= 6:
        raise ValueError(f"week start index out of range: {idx}")
    return idx


def start_of_day(d: dt.datetime) -> dt.datetime:
    return d.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(d: dt.datetime) -> dt.datetime:
    return d.replace(hour=23, minute=59, second=59, microsecond=999999)


def add_days(d: dt.datetime, n: int) -> dt.datetime:
    return d + dt.timedelta(days=n)


def add_months(d: dt.datetime, n: int) -> dt.datetime:
    month_index = d.month - 1 + n
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    last = _calendar.monthrange(year, month)[1]
    return d.replace(year=year, month=month, day=min(d.day, last))


def start_of_week(d: dt.datetime, week_start: int = MONDAY) -> dt.datetime:
    back = (d.weekday() - week_start) % 7
    return start_of_day(add_days(d, -back))


def end_of_week(d: dt.datetime, week_start: int = MONDAY) -> dt.datetime:
    return end_of_day(add_days(start_of_week(d, week_start), 6))


def start_of_month(d: dt.datetime) -> dt.datetime:
    return start_of_day(d.replace(day=1))


def end_of_month(d: dt.datetime) -> dt.datetime:
    last = _calendar.monthrange(d.year, d.month)[1]
    return end_of_day(d.replace(day=last))


def window(reference: dt.datetime, granularity: Granularity, week_start: int = MONDAY) -> TimeWindow:
    granularity = Granularity(granularity)
    if granularity is Granularity.DAY:
        return TimeWindow(start_of_day(reference), end_of_day(reference))
    if granularity is Granularity.WEEK:
        return TimeWindow(start_of_week(reference, week_start), end_of_week(reference, week_start))
    return TimeWindow(start_of_month(reference), end_of_month(reference))


def hour_slots(day: dt.datetime, step_minutes: int = DEFAULT_SLOT_MINUTES) -> list[TimeSlot]:
    """Partition the visible day (00:00 through 23:59) into ordered slots."""
    if step_minutes <= 0 or _MINUTES_PER_DAY % step_minutes:
        raise ValueError(f"slot step must divide a day evenly: {step_minutes}")
    base = start_of_day(day)
    step = dt.timedelta(minutes=step_minutes)
    return [
        TimeSlot(base + i * step, base + (i + 1) * step)
        for i in range(_MINUTES_PER_DAY // step_minutes)
    ]


def sub_slots(slot: TimeSlot, step_minutes: int = DEFAULT_SUB_SLOT_MINUTES) -> list[TimeSlot]:
    if step_minutes <= 0 or slot.minutes % step_minutes:
        raise ValueError(f"sub-slot step must divide the slot evenly: {step_minutes}")
    step = dt.timedelta(minutes=step_minutes)
    return [
        TimeSlot(slot.start + i * step, slot.start + (i + 1) * step)
        for i in range(slot.minutes // step_minutes)
    ]


def week_days(reference: dt.datetime, week_start: int = MONDAY) -> list[dt.datetime]:
    first = start_of_week(reference, week_start)
    return [add_days(first, i) for i in range(7)]


def navigate(reference: dt.datetime, granularity: Granularity, direction: str) -> dt.datetime:
    """Move the reference date one view step: ``next``, ``prev`` or ``today``."""
    granularity = Granularity(granularity)
    if direction == "today":
        return dt.datetime.now(reference.tzinfo)
    if direction not in ("next", "prev"):
        raise ValueError(f"unknown navigation direction: {direction!r}")
    sign = 1 if direction == "next" else -1
    if granularity is Granularity.DAY:
        return add_days(reference, sign)
    if granularity is Granularity.WEEK:
        return add_days(reference, 7 * sign)
    return add_months(reference, sign)


@dataclass(frozen=True)
class CalendarView:
    reference: dt.datetime
    granularity: Granularity = Granularity.DAY
    week_start: int = MONDAY

    @property
    def window(self) -> TimeWindow:
        return window(self.reference, self.granularity, self.week_start)

    def next(self) -> "CalendarView":
        return replace(self, reference=navigate(self.reference, self.granularity, "next"))

    def prev(self) -> "CalendarView":
        return replace(self, reference=navigate(self.reference, self.granularity, "prev"))

    def today(self, clock: Optional[Callable[[], dt.datetime]] = None) -> "CalendarView":
        if clock is not None:
            return replace(self, reference=clock())
        return replace(self, reference=navigate(self.reference, self.granularity, "today"))

    def with_granularity(self, granularity: Granularity) -> "CalendarView":
        return replace(self, granularity=Granularity(granularity))

    def days(self) -> list[dt.datetime]:
        if self.granularity is Granularity.DAY:
            return [start_of_day(self.reference)]
        if self.granularity is Granularity.WEEK:
            return week_days(self.reference, self.week_start)
        first = start_of_month(self.reference)
        last = end_of_month(self.reference)
        return [add_days(first, i) for i in range(last.day)]


__all__ = [
    "MONDAY",
    "SUNDAY",
    "Granularity",
    "TimeWindow",
    "TimeSlot",
    "CalendarView",
    "parse_week_start",
    "start_of_day",
    "end_of_day",
    "start_of_week",
    "end_of_week",
    "start_of_month",
    "end_of_month",
    "add_days",
    "add_months",
    "window",
    "hour_slots",
    "sub_slots",
    "week_days",
    "navigate",
]
