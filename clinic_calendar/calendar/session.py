"""Calendar session: the event set, the open editor and the store behind them.

Local state is the record of truth for the UI. Store writes are submitted in
the background and a failed call is logged and dropped; the local change stays.
Creates are the exception: they wait for the store so that the event keeps the
id the store assigns from the moment it appears.

An event created while the store is unreachable gets a negative provisional id
and stays local-only until ``sync_pending`` (or ``load``) pushes it. Provisional
ids never reach the store as a path id.
"""

from __future__ import annotations

import datetime as dt
import logging
import threading
from concurrent.futures import Executor, Future
from typing import Any, Callable, Optional

import requests

from .catalog import ALL, Catalog, DEFAULT_CATALOG
from .drag import ClickDebouncer, ClickOutcome, DragReconciler
from .editor import AppointmentEditor, Draft, EditorState, EditorStateError, SaveResult
from .events import AppointmentEvent, EventNotFound, EventSet
from .executors import store_executor
from .filters import FilterState, filter_events
from .patients import PatientRef
from .settings import CalendarSettings
from .store import AppointmentStoreClient, StoreError
from .timegrid import CalendarView, Granularity, TimeSlot, hour_slots

logger = logging.getLogger(__name__)

_STORE_FAILURES = (StoreError, requests.RequestException)


class CalendarSession:
    def __init__(
        self,
        store: Optional[AppointmentStoreClient] = None,
        settings: Optional[CalendarSettings] = None,
        catalog: Catalog = DEFAULT_CATALOG,
        patients: Optional[list[PatientRef]] = None,
        reference: Optional[dt.datetime] = None,
        executor: Optional[Executor] = None,
    ):
        self.settings = settings or CalendarSettings()
        self.store = store
        self.catalog = catalog
        self.patients = patients
        tz = self.settings.tzinfo
        self.editor = AppointmentEditor(
            catalog=catalog,
            patients=patients,
            tz=tz,
            suggestion_limit=self.settings.suggestion_limit,
        )
        self.reconciler = DragReconciler(self.editor)
        self.view = CalendarView(
            reference=reference or dt.datetime.now(tz),
            granularity=Granularity.DAY,
            week_start=self.settings.week_start,
        )
        self.facets = FilterState()
        self.events = EventSet()
        self.notes_event_id: Optional[int] = None
        self._unsynced: set[int] = set()
        self._executor = executor or store_executor
        self._lock = threading.RLock()
        self.clicks = ClickDebouncer(self.handle_click, self.settings.click_delay)

    @classmethod
    def connect(cls, settings: Optional[CalendarSettings] = None, **kwargs: Any) -> "CalendarSession":
        """Build a session talking to the store named in ``settings``."""
        settings = settings or CalendarSettings.from_env()
        store = AppointmentStoreClient(settings.store_url, timeout=settings.store_timeout)
        return cls(store=store, settings=settings, **kwargs)

    # -- loading and viewing ---------------------------------------------

    def load(self) -> EventSet:
        """Refresh from the store, keeping events the store has not seen yet."""
        if self.store is None:
            return self.events
        self.sync_pending()
        try:
            remote = self.store.list()
        except _STORE_FAILURES as exc:
            logger.warning("Could not load appointments, keeping local state: %s", exc)
            return self.events
        with self._lock:
            local_only = tuple(e for e in self.events if e.id in self._unsynced)
            self.events = EventSet(tuple(remote) + local_only, self.events.version + 1)
            return self.events

    def load_patients(self) -> Optional[list[PatientRef]]:
        if self.store is None:
            return self.patients
        try:
            patients = self.store.list_patients()
        except _STORE_FAILURES as exc:
            logger.warning("Could not load patients, keeping local list: %s", exc)
            return self.patients
        self.patients = patients
        self.editor.patients = patients
        return patients

    def visible_events(self) -> tuple[AppointmentEvent, ...]:
        return filter_events(self.events, self.view.window, self.facets, self.settings.filter_policy)

    def slots(self, day: Optional[dt.datetime] = None) -> list[TimeSlot]:
        return hour_slots(day or self.view.reference, self.settings.slot_minutes)

    def set_facets(self, practitioner: str = ALL, appointment_type: str = ALL) -> FilterState:
        self.facets = FilterState(practitioner, appointment_type).validate(self.catalog)
        return self.facets

    def set_granularity(self, granularity: Granularity) -> CalendarView:
        self.view = self.view.with_granularity(granularity)
        return self.view

    def next(self) -> CalendarView:
        self.view = self.view.next()
        return self.view

    def prev(self) -> CalendarView:
        self.view = self.view.prev()
        return self.view

    def today(self) -> CalendarView:
        self.view = self.view.today()
        return self.view

    # -- editor ----------------------------------------------------------

    def open_slot(self, slot: TimeSlot) -> Draft:
        with self._lock:
            return self.editor.open_slot(slot)

    def open_event(self, event_id: int) -> Draft:
        with self._lock:
            return self.editor.open_event(self.events.get(event_id))

    def cancel(self) -> None:
        with self._lock:
            self.editor.cancel()

    def save(self) -> SaveResult:
        with self._lock:
            id_factory = self.events.next_provisional_id if self.store is not None else None
            result = self.editor.save(self.events, id_factory=id_factory)
            self.events = result.events
            event = result.event
            if result.created:
                event = self._push(event)
            elif event.id in self._unsynced:
                logger.debug("Appointment %s is local-only; edit kept until it syncs", event.id)
            else:
                self._submit_patch(event, _full_patch(event))
            return SaveResult(self.events, event, result.created)

    def delete(self) -> EventSet:
        with self._lock:
            event_id = self.editor.event_id
            self.events = self.editor.delete(self.events)
            if self.notes_event_id == event_id:
                self.notes_event_id = None
            local_only = event_id in self._unsynced
            self._unsynced.discard(event_id)
        if event_id is not None and not local_only:
            self._submit(lambda: self.store.delete(event_id), f"delete appointment {event_id}")
        return self.events

    def is_local_only(self, event_id: int) -> bool:
        return event_id in self._unsynced

    # -- gestures --------------------------------------------------------

    def drop(self, event_id: int, new_start: dt.datetime, new_end: dt.datetime) -> EventSet:
        with self._lock:
            self.events = self.reconciler.on_drop(self.events, event_id, new_start, new_end)
            event = self.events.get(event_id)
        self._submit_patch(event, {"start": new_start, "end": new_end})
        return self.events

    def resize(self, event_id: int, new_start: dt.datetime, new_end: dt.datetime) -> EventSet:
        with self._lock:
            self.events = self.reconciler.on_resize(self.events, event_id, new_start, new_end)
            event = self.events.get(event_id)
        self._submit_patch(event, {"start": new_start, "end": new_end})
        return self.events

    def handle_click(self, outcome: ClickOutcome, event_id: int) -> None:
        """Act on a debounced click; runs on the debouncer's timer thread."""
        with self._lock:
            if ClickOutcome(outcome) is ClickOutcome.DOUBLE:
                self.notes_event_id = event_id
                return
            if event_id not in self.events:
                logger.debug("Ignoring click on vanished appointment %s", event_id)
                return
            try:
                self.open_event(event_id)
            except EditorStateError:
                logger.debug("Ignoring click on %s while the editor is %s", event_id, self.editor.state.value)

    def close_notes(self) -> None:
        self.notes_event_id = None

    def close(self, timeout: Optional[float] = None) -> None:
        """Drop any pending click and wait for queued store writes to finish."""
        self.clicks.cancel()
        if self.store is not None:
            self._executor.submit(lambda: None).result(timeout=timeout)

    # -- store sync ------------------------------------------------------

    def sync_pending(self) -> int:
        """Push local-only events to the store, oldest first. Returns how many landed."""
        if self.store is None:
            return 0
        synced = 0
        with self._lock:
            for event_id in sorted(self._unsynced, reverse=True):
                if self._push(self.events.get(event_id)).id == event_id:
                    break
                synced += 1
        return synced

    def _push(self, event: AppointmentEvent) -> AppointmentEvent:
        if self.store is None:
            return event
        try:
            created = self.store.create(event)
        except _STORE_FAILURES as exc:
            logger.warning("Could not store appointment, keeping it local as %s: %s", event.id, exc)
            self._unsynced.add(event.id)
            return event
        self.events = self.events.rekey(event.id, created)
        self._unsynced.discard(event.id)
        if self.notes_event_id == event.id:
            self.notes_event_id = created.id
        if self.editor.state is EditorState.EDITING and self.editor.event_id == event.id:
            self.editor.event_id = created.id
        return created

    def _submit_patch(self, sent: AppointmentEvent, fields: dict) -> None:
        if sent.id in self._unsynced:
            return

        def call() -> AppointmentEvent:
            return self.store.patch(sent.id, **fields)

        self._submit(call, f"patch appointment {sent.id}", lambda remote: self._apply_reply(sent, remote))

    def _apply_reply(self, sent: AppointmentEvent, remote: AppointmentEvent) -> None:
        with self._lock:
            try:
                current = self.events.get(sent.id)
            except EventNotFound:
                return
            # A newer local edit wins over an older reply.
            if current != sent or remote.id != sent.id:
                return
            if remote != current:
                self.events = self.events.replace(remote)

    def _submit(
        self,
        call: Callable[[], Any],
        what: str,
        on_success: Optional[Callable[[Any], None]] = None,
    ) -> Optional[Future]:
        if self.store is None:
            return None

        def run() -> None:
            try:
                result = call()
            except _STORE_FAILURES as exc:
                logger.warning("Store call failed (%s); local state kept: %s", what, exc)
                return
            if on_success is not None:
                on_success(result)

        return self._executor.submit(run)


def _full_patch(event: AppointmentEvent) -> dict:
    return {
        "start": event.start,
        "end": event.end,
        "patient_name": event.patient_name,
        "patient_id": event.patient_id,
        "practitioner": event.practitioner,
        "appointment_type": event.appointment_type,
        "type_code": event.type_code,
        "reception_notes": event.reception_notes,
        "clinical_notes": event.clinical_notes,
    }


__all__ = ["CalendarSession"]
