"""Appointment events and the versioned collection that holds them."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field, replace
from typing import Iterable, Iterator, Optional

UNTITLED = "Untitled"


class EventNotFound(KeyError):
    """Raised when an event id is not present in an EventSet."""

    def __init__(self, event_id: int):
        super().__init__(event_id)
        self.event_id = event_id

    def __str__(self) -> str:
        return f"appointment {self.event_id} not found"


def make_title(patient_name: str, appointment_type: str) -> str:
    name = (patient_name or "").strip() or UNTITLED
    return f"{name} — {appointment_type}"


def check_span(start: dt.datetime, end: dt.datetime) -> None:
    if start.tzinfo is None or end.tzinfo is None:
        raise ValueError("appointment times must be timezone-aware")
    if end <= start:
        raise ValueError("appointment end must be after its start")


@dataclass(frozen=True)
class AppointmentEvent:
    id: int
    start: dt.datetime
    end: dt.datetime
    patient_name: str
    practitioner: str
    appointment_type: str
    patient_id: Optional[int] = None
    type_code: str = ""
    reception_notes: str = ""
    clinical_notes: str = ""

    def __post_init__(self) -> None:
        check_span(self.start, self.end)

    @property
    def title(self) -> str:
        return make_title(self.patient_name, self.appointment_type)

    @property
    def duration(self) -> dt.timedelta:
        return self.end - self.start

    def with_times(self, start: dt.datetime, end: dt.datetime) -> "AppointmentEvent":
        return replace(self, start=start, end=end)


@dataclass(frozen=True)
class EventSet:
    """Immutable, ordered collection of events keyed by id.

    Every mutator returns a new set with ``version`` bumped, so a reader holding
    the old value never sees a half-applied change.
    """

    events: tuple[AppointmentEvent, ...] = ()
    version: int = 0
    _index: dict = field(default=None, init=False, repr=False, compare=False)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        index: dict[int, int] = {}
        for pos, event in enumerate(self.events):
            if event.id in index:
                raise ValueError(f"duplicate appointment id {event.id}")
            index[event.id] = pos
        object.__setattr__(self, "_index", index)

    @classmethod
    def of(cls, events: Iterable[AppointmentEvent]) -> "EventSet":
        return cls(tuple(events))

    def __iter__(self) -> Iterator[AppointmentEvent]:
        return iter(self.events)

    def __len__(self) -> int:
        return len(self.events)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._index

    def ids(self) -> list[int]:
        return [e.id for e in self.events]

    def get(self, event_id: int) -> AppointmentEvent:
        try:
            return self.events[self._index[event_id]]
        except KeyError:
            raise EventNotFound(event_id) from None

    def next_id(self) -> int:
        return max(self._index, default=0) + 1

    def next_provisional_id(self) -> int:
        """A negative id for an event the store has not numbered yet."""
        return min(min(self._index, default=0), 0) - 1

    def _evolve(self, events: tuple[AppointmentEvent, ...]) -> "EventSet":
        return EventSet(events, self.version + 1)

    def add(self, event: AppointmentEvent) -> "EventSet":
        if event.id in self._index:
            raise ValueError(f"duplicate appointment id {event.id}")
        return self._evolve(self.events + (event,))

    def replace(self, event: AppointmentEvent) -> "EventSet":
        pos = self._position(event.id)
        return self._evolve(self.events[:pos] + (event,) + self.events[pos + 1 :])

    def remove(self, event_id: int) -> "EventSet":
        pos = self._position(event_id)
        return self._evolve(self.events[:pos] + self.events[pos + 1 :])

    def reschedule(self, event_id: int, start: dt.datetime, end: dt.datetime) -> "EventSet":
        return self.replace(self.get(event_id).with_times(start, end))

    def rekey(self, old_id: int, event: AppointmentEvent) -> "EventSet":
        """Swap the event at ``old_id`` for ``event``, which may carry a new id."""
        pos = self._position(old_id)
        if event.id != old_id and event.id in self._index:
            raise ValueError(f"duplicate appointment id {event.id}")
        return self._evolve(self.events[:pos] + (event,) + self.events[pos + 1 :])

    def _position(self, event_id: int) -> int:
        try:
            return self._index[event_id]
        except KeyError:
            raise EventNotFound(event_id) from None


__all__ = [
    "AppointmentEvent",
    "EventSet",
    "EventNotFound",
    "UNTITLED",
    "make_title",
    "check_span",
]
