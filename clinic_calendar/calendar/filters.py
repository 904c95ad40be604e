"""Pure view filters over an event collection."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, Optional

from .catalog import ALL, Catalog, DEFAULT_CATALOG
from .events import AppointmentEvent
from .timegrid import TimeSlot, TimeWindow


class WindowPolicy(str, enum.Enum):
    """How an event is tested against the visible time window.

    START_WITHIN keeps any event that starts inside the window, even if it runs
    past the window end. CONTAINED also requires the event to end inside it.
    """

    START_WITHIN = "start_within"
    CONTAINED = "contained"


DEFAULT_POLICY = WindowPolicy.START_WITHIN


@dataclass(frozen=True)
class FilterState:
    practitioner: str = ALL
    appointment_type: str = ALL

    def validate(self, catalog: Catalog = DEFAULT_CATALOG) -> "FilterState":
        if self.practitioner != ALL and not catalog.has_practitioner(self.practitioner):
            raise ValueError(f"unknown practitioner facet: {self.practitioner!r}")
        if self.appointment_type != ALL and not catalog.has_type(self.appointment_type):
            raise ValueError(f"unknown appointment type facet: {self.appointment_type!r}")
        return self

    def matches(self, event: AppointmentEvent) -> bool:
        if self.practitioner != ALL and event.practitioner != self.practitioner:
            return False
        if self.appointment_type != ALL and event.appointment_type != self.appointment_type:
            return False
        return True


def in_window(event: AppointmentEvent, window: TimeWindow, policy: WindowPolicy = DEFAULT_POLICY) -> bool:
    if not window.contains(event.start):
        return False
    if WindowPolicy(policy) is WindowPolicy.CONTAINED:
        return event.end <= window.end
    return True


def filter_events(
    events: Iterable[AppointmentEvent],
    window: TimeWindow,
    facets: Optional[FilterState] = None,
    policy: WindowPolicy = DEFAULT_POLICY,
) -> tuple[AppointmentEvent, ...]:
    facets = facets or FilterState()
    return tuple(e for e in events if in_window(e, window, policy) and facets.matches(e))


def events_in_slot(events: Iterable[AppointmentEvent], slot: TimeSlot) -> tuple[AppointmentEvent, ...]:
    return tuple(e for e in events if slot.contains(e.start))


__all__ = [
    "WindowPolicy",
    "DEFAULT_POLICY",
    "FilterState",
    "in_window",
    "filter_events",
    "events_in_slot",
]
