"""Appointment calendar core: event model, time grid, filters, editor, drag."""

from .catalog import ALL, Catalog, DEFAULT_CATALOG, Practitioner
from .drag import ClickDebouncer, ClickOutcome, DragReconciler
from .editor import (
    AM,
    PM,
    AppointmentEditor,
    Draft,
    EditorState,
    EditorStateError,
    EditorValidationError,
    PatientNotResolved,
    SaveResult,
    TimeParts,
    to_hour24,
)
from .events import AppointmentEvent, EventNotFound, EventSet
from .filters import FilterState, WindowPolicy, events_in_slot, filter_events
from .patients import PatientRef, resolve_patient, suggest_patients
from .session import CalendarSession
from .settings import CalendarSettings
from .store import AppointmentStoreClient, StoreError, StoreNotFound
from .timegrid import CalendarView, Granularity, TimeSlot, TimeWindow, hour_slots, window

__all__ = [
    "ALL",
    "AM",
    "PM",
    "AppointmentEditor",
    "AppointmentEvent",
    "AppointmentStoreClient",
    "CalendarSession",
    "CalendarSettings",
    "CalendarView",
    "Catalog",
    "ClickDebouncer",
    "ClickOutcome",
    "DEFAULT_CATALOG",
    "DragReconciler",
    "Draft",
    "EditorState",
    "EditorStateError",
    "EditorValidationError",
    "EventNotFound",
    "EventSet",
    "FilterState",
    "Granularity",
    "PatientNotResolved",
    "PatientRef",
    "Practitioner",
    "SaveResult",
    "StoreError",
    "StoreNotFound",
    "TimeParts",
    "TimeSlot",
    "TimeWindow",
    "WindowPolicy",
    "events_in_slot",
    "filter_events",
    "hour_slots",
    "resolve_patient",
    "suggest_patients",
    "to_hour24",
    "window",
]
