"""Create/edit dialog lifecycle for appointment events.

The editor is a three-state machine (closed, creating, editing) holding a
mutable draft. The draft keeps one canonical ``start`` instant; the 12-hour
date/hour/minute/meridiem parts the dialog shows are derived from it on every
read, and a part write rebuilds ``start`` from the full part set in one step.
"""

from __future__ import annotations

import datetime as dt
import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from .catalog import Catalog, DEFAULT_CATALOG
from .events import AppointmentEvent, EventSet, make_title
from .patients import DEFAULT_SUGGESTION_LIMIT, PatientRef, resolve_patient, suggest_patients
from .timegrid import TimeSlot

logger = logging.getLogger(__name__)

MIN_DURATION_MINUTES = 5
MAX_DURATION_MINUTES = 480
MIN_SLOT_DURATION_MINUTES = 15
MINUTE_CHOICES: tuple[int, ...] = tuple(range(0, 60, 5))
HOUR_CHOICES: tuple[int, ...] = tuple(range(1, 13))
AM = "AM"
PM = "PM"


class EditorState(str, enum.Enum):
    CLOSED = "closed"
    CREATING = "creating"
    EDITING = "editing"


class EditorStateError(RuntimeError):
    """An operation was requested from a state that does not allow it."""


class EditorValidationError(ValueError):
    """The draft cannot be saved as it stands."""


class PatientNotResolved(EditorValidationError):
    def __init__(self, name: str):
        super().__init__(f"no patient matches {name!r}" if name else "a patient is required")
        self.name = name


def to_hour24(hour12: int, meridiem: str) -> int:
    if hour12 not in HOUR_CHOICES:
        raise ValueError(f"hour must be 1-12, got {hour12!r}")
    if meridiem not in (AM, PM):
        raise ValueError(f"meridiem must be AM or PM, got {meridiem!r}")
    return (hour12 % 12) + (12 if meridiem == PM else 0)


def clamp_duration(minutes: float, lower: int = MIN_DURATION_MINUTES) -> int:
    return int(max(lower, min(MAX_DURATION_MINUTES, round(minutes))))


def _minutes_between(start: dt.datetime, end: dt.datetime) -> float:
    return (end - start).total_seconds() / 60


@dataclass(frozen=True)
class TimeParts:
    day: dt.date
    hour12: int
    minute: int
    meridiem: str

    @classmethod
    def from_datetime(cls, moment: dt.datetime) -> "TimeParts":
        hour12 = moment.hour % 12 or 12
        return cls(moment.date(), hour12, moment.minute, PM if moment.hour >= 12 else AM)

    def to_datetime(self, tz: dt.tzinfo) -> dt.datetime:
        return dt.datetime.combine(
            self.day, dt.time(to_hour24(self.hour12, self.meridiem), self.minute), tzinfo=tz
        )


@dataclass
class Draft:
    start: dt.datetime
    end: dt.datetime
    duration_minutes: int
    practitioner: str
    appointment_type: str
    patient_name: str = ""
    patient_id: Optional[int] = None
    type_code: str = ""
    reception_notes: str = ""
    clinical_notes: str = ""
    tz: dt.tzinfo = field(default=dt.timezone.utc, repr=False)

    @property
    def time_parts(self) -> TimeParts:
        return TimeParts.from_datetime(self.start.astimezone(self.tz))

    @property
    def title(self) -> str:
        return make_title(self.patient_name, self.appointment_type)

    def to_event(self, event_id: int) -> AppointmentEvent:
        return AppointmentEvent(
            id=event_id,
            start=self.start,
            end=self.end,
            patient_name=self.patient_name.strip(),
            practitioner=self.practitioner,
            appointment_type=self.appointment_type,
            patient_id=self.patient_id,
            type_code=self.type_code,
            reception_notes=self.reception_notes,
            clinical_notes=self.clinical_notes,
        )


@dataclass(frozen=True)
class SaveResult:
    events: EventSet
    event: AppointmentEvent
    created: bool


class AppointmentEditor:
    def __init__(
        self,
        catalog: Catalog = DEFAULT_CATALOG,
        patients: Optional[Sequence[PatientRef]] = None,
        tz: dt.tzinfo = dt.timezone.utc,
        suggestion_limit: int = DEFAULT_SUGGESTION_LIMIT,
    ):
        self.catalog = catalog
        self.patients = patients
        self.tz = tz
        self.suggestion_limit = suggestion_limit
        self.state = EditorState.CLOSED
        self.slot: Optional[TimeSlot] = None
        self.event_id: Optional[int] = None
        self.draft: Optional[Draft] = None
        self.suggestions: list[PatientRef] = []

    # -- transitions -----------------------------------------------------

    def open_slot(self, slot: TimeSlot) -> Draft:
        self._require(EditorState.CLOSED, "open a slot")
        duration = clamp_duration(_minutes_between(slot.start, slot.end), MIN_SLOT_DURATION_MINUTES)
        self.draft = Draft(
            start=slot.start,
            end=slot.start + dt.timedelta(minutes=duration),
            duration_minutes=duration,
            practitioner=self.catalog.default_practitioner,
            appointment_type=self.catalog.default_type,
            tz=self.tz,
        )
        self.state = EditorState.CREATING
        self.slot = slot
        self.event_id = None
        self.suggestions = []
        return self.draft

    def open_event(self, event: AppointmentEvent) -> Draft:
        self._require(EditorState.CLOSED, "open an event")
        self.draft = Draft(
            start=event.start,
            end=event.end,
            duration_minutes=clamp_duration(_minutes_between(event.start, event.end)),
            practitioner=event.practitioner,
            appointment_type=event.appointment_type,
            patient_name=event.patient_name,
            patient_id=event.patient_id,
            type_code=event.type_code,
            reception_notes=event.reception_notes,
            clinical_notes=event.clinical_notes,
            tz=self.tz,
        )
        self.state = EditorState.EDITING
        self.slot = None
        self.event_id = event.id
        self.suggestions = []
        return self.draft

    def save(self, events: EventSet, id_factory: Optional[Callable[[], int]] = None) -> SaveResult:
        if self.state is EditorState.CLOSED or self.draft is None:
            raise EditorStateError("nothing to save: the editor is closed")
        draft = self.draft
        if self.patients is not None:
            patient = resolve_patient(self.patients, draft.patient_id, draft.patient_name)
            if patient is None:
                raise PatientNotResolved(draft.patient_name.strip())
            draft.patient_id = patient.id
            draft.patient_name = patient.name

        if self.state is EditorState.CREATING:
            new_id = id_factory() if id_factory else events.next_id()
            event = draft.to_event(new_id)
            updated = events.add(event)
            created = True
        else:
            assert self.event_id is not None
            event = draft.to_event(self.event_id)
            updated = events.replace(event)
            created = False
        logger.debug("editor saved appointment %s (created=%s)", event.id, created)
        self._close()
        return SaveResult(updated, event, created)

    def delete(self, events: EventSet) -> EventSet:
        self._require(EditorState.EDITING, "delete")
        assert self.event_id is not None
        updated = events.remove(self.event_id)
        self._close()
        return updated

    def cancel(self) -> None:
        self._close()

    # -- draft fields ----------------------------------------------------

    def set_duration(self, minutes: int) -> bool:
        draft = self._draft()
        if isinstance(minutes, bool) or not isinstance(minutes, int):
            return False
        if not MIN_DURATION_MINUTES <= minutes <= MAX_DURATION_MINUTES:
            return False
        draft.duration_minutes = minutes
        draft.end = draft.start + dt.timedelta(minutes=minutes)
        return True

    def set_duration_text(self, text: str) -> bool:
        try:
            minutes = int(str(text).strip())
        except (TypeError, ValueError):
            return False
        return self.set_duration(minutes)

    def set_day(self, day: dt.date) -> None:
        self._write_parts(day=day)

    def set_hour(self, hour12: int) -> None:
        if hour12 not in HOUR_CHOICES:
            raise ValueError(f"hour must be 1-12, got {hour12!r}")
        self._write_parts(hour12=hour12)

    def set_minute(self, minute: int) -> None:
        if minute not in MINUTE_CHOICES:
            raise ValueError(f"minute must be one of {MINUTE_CHOICES}, got {minute!r}")
        self._write_parts(minute=minute)

    def set_meridiem(self, meridiem: str) -> None:
        if meridiem not in (AM, PM):
            raise ValueError(f"meridiem must be AM or PM, got {meridiem!r}")
        self._write_parts(meridiem=meridiem)

    def set_practitioner(self, practitioner_id: str) -> None:
        if not self.catalog.has_practitioner(practitioner_id):
            raise ValueError(f"unknown practitioner: {practitioner_id!r}")
        self._draft().practitioner = practitioner_id

    def set_appointment_type(self, appointment_type: str) -> None:
        if not self.catalog.has_type(appointment_type):
            raise ValueError(f"unknown appointment type: {appointment_type!r}")
        self._draft().appointment_type = appointment_type

    def set_type_code(self, code: str) -> None:
        self._draft().type_code = (code or "").strip()

    def set_reception_notes(self, text: str) -> None:
        self._draft().reception_notes = text or ""

    def set_clinical_notes(self, text: str) -> None:
        self._draft().clinical_notes = text or ""

    def set_patient_query(self, text: str) -> list[PatientRef]:
        draft = self._draft()
        draft.patient_name = text or ""
        draft.patient_id = None
        self.suggestions = suggest_patients(text, self.patients or (), self.suggestion_limit)
        return self.suggestions

    def choose_patient(self, patient: PatientRef) -> None:
        draft = self._draft()
        draft.patient_name = patient.name
        draft.patient_id = patient.id
        self.suggestions = []

    def sync_times(self, start: dt.datetime, end: dt.datetime) -> None:
        draft = self._draft()
        draft.start = start
        draft.end = end
        draft.duration_minutes = clamp_duration(_minutes_between(start, end))

    # -- helpers ---------------------------------------------------------

    def _write_parts(self, **changes) -> None:
        draft = self._draft()
        current = draft.time_parts
        parts = TimeParts(
            day=changes.get("day", current.day),
            hour12=changes.get("hour12", current.hour12),
            minute=changes.get("minute", current.minute),
            meridiem=changes.get("meridiem", current.meridiem),
        )
        draft.start = parts.to_datetime(self.tz)
        draft.end = draft.start + dt.timedelta(minutes=draft.duration_minutes)

    def _draft(self) -> Draft:
        if self.draft is None:
            raise EditorStateError("the editor is closed")
        return self.draft

    def _require(self, state: EditorState, action: str) -> None:
        if self.state is not state:
            raise EditorStateError(f"cannot {action} while {self.state.value}")

    def _close(self) -> None:
        self.state = EditorState.CLOSED
        self.slot = None
        self.event_id = None
        self.draft = None
        self.suggestions = []


__all__ = [
    "AM",
    "PM",
    "MINUTE_CHOICES",
    "HOUR_CHOICES",
    "MIN_DURATION_MINUTES",
    "MAX_DURATION_MINUTES",
    "MIN_SLOT_DURATION_MINUTES",
    "EditorState",
    "EditorStateError",
    "EditorValidationError",
    "PatientNotResolved",
    "TimeParts",
    "Draft",
    "SaveResult",
    "AppointmentEditor",
    "to_hour24",
    "clamp_duration",
]
