"""Apply calendar-widget drag/resize gestures back onto the event set."""

from __future__ import annotations

import datetime as dt
import enum
import logging
import threading
from typing import Any, Callable, Hashable, Optional

from .editor import AppointmentEditor, EditorState
from .events import EventSet, check_span

logger = logging.getLogger(__name__)

DEFAULT_CLICK_DELAY = 0.25


class DragReconciler:
    def __init__(self, editor: AppointmentEditor):
        self.editor = editor

    def on_drop(self, events: EventSet, event_id: int, new_start: dt.datetime, new_end: dt.datetime) -> EventSet:
        return self._apply(events, event_id, new_start, new_end, "drop")

    def on_resize(self, events: EventSet, event_id: int, new_start: dt.datetime, new_end: dt.datetime) -> EventSet:
        return self._apply(events, event_id, new_start, new_end, "resize")

    def _apply(self, events, event_id, new_start, new_end, gesture) -> EventSet:
        check_span(new_start, new_end)
        updated = events.reschedule(event_id, new_start, new_end)
        if self.editor.state is EditorState.EDITING and self.editor.event_id == event_id:
            self.editor.sync_times(new_start, new_end)
        logger.debug("%s moved appointment %s to %s-%s", gesture, event_id, new_start, new_end)
        return updated


class ClickOutcome(str, enum.Enum):
    SINGLE = "single"
    DOUBLE = "double"


class ClickDebouncer:
    """Tell a single click from a double click on the same target.

    ``callback(outcome, target)`` runs once per gesture: with SINGLE when the
    delay elapses without a second click, or with DOUBLE as soon as a second
    click on the same target arrives.
    """

    def __init__(
        self,
        callback: Callable[[ClickOutcome, Any], None],
        delay: float = DEFAULT_CLICK_DELAY,
        timer_factory: Callable[..., Any] = threading.Timer,
    ):
        self.callback = callback
        self.delay = delay
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._pending_target: Optional[Hashable] = None
        self._timer: Any = None

    @property
    def pending(self) -> Optional[Hashable]:
        return self._pending_target

    def click(self, target: Hashable) -> None:
        flush = None
        timer = None
        with self._lock:
            if self._timer is not None and self._pending_target == target:
                self._timer.cancel()
                self._timer = None
                self._pending_target = None
                outcome = ClickOutcome.DOUBLE
            else:
                if self._timer is not None:
                    self._timer.cancel()
                    flush = self._pending_target
                self._pending_target = target
                timer = self._timer_factory(self.delay, self._fire, args=(target,))
                timer.daemon = True
                self._timer = timer
                outcome = None
        if flush is not None:
            self.callback(ClickOutcome.SINGLE, flush)
        if outcome is ClickOutcome.DOUBLE:
            self.callback(ClickOutcome.DOUBLE, target)
        elif timer is not None:
            timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending_target = None

    def _fire(self, target: Hashable) -> None:
        with self._lock:
            if self._pending_target != target or self._timer is None:
                return
            self._timer = None
            self._pending_target = None
        self.callback(ClickOutcome.SINGLE, target)


__all__ = ["DragReconciler", "ClickDebouncer", "ClickOutcome", "DEFAULT_CLICK_DELAY"]
