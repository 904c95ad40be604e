import datetime as dt

import pytest

from clinic_calendar.calendar.events import AppointmentEvent, EventNotFound, EventSet
from conftest import at, make_event


def test_event_requires_end_after_start():
    with pytest.raises(ValueError):
        make_event(1, at(10), minutes=0)
    with pytest.raises(ValueError):
        AppointmentEvent(1, at(10), at(9), "A", "dr_lee", "Follow-up")


def test_event_requires_aware_times():
    naive = dt.datetime(2024, 3, 13, 10, 0)
    with pytest.raises(ValueError):
        AppointmentEvent(1, naive, naive + dt.timedelta(minutes=30), "A", "dr_lee", "Follow-up")


def test_title_falls_back_to_untitled():
    assert make_event(1, at(10), patient_name="Jane Roe").title == "Jane Roe — Lesion Review"
    assert make_event(2, at(10), patient_name="  ").title == "Untitled — Lesion Review"


def test_mutators_return_new_versions():
    base = EventSet.of([make_event(1, at(9)), make_event(2, at(10))])
    added = base.add(make_event(3, at(11)))
    assert len(base) == 2 and len(added) == 3
    assert added.version == base.version + 1

    moved = added.reschedule(2, at(15), at(15, 30))
    assert moved.get(2).start == at(15)
    assert added.get(2).start == at(10)
    assert moved.ids() == [1, 2, 3]

    removed = moved.remove(1)
    assert removed.ids() == [2, 3]
    assert 1 in moved and 1 not in removed


def test_replace_keeps_position():
    events = EventSet.of([make_event(1, at(9)), make_event(2, at(10)), make_event(3, at(11))])
    updated = events.replace(make_event(2, at(10), patient_name="Renamed"))
    assert updated.ids() == [1, 2, 3]
    assert updated.get(2).patient_name == "Renamed"


def test_unknown_ids_raise_event_not_found():
    events = EventSet.of([make_event(1, at(9))])
    with pytest.raises(EventNotFound):
        events.get(9)
    with pytest.raises(EventNotFound):
        events.remove(9)
    with pytest.raises(EventNotFound):
        events.replace(make_event(9, at(9)))


def test_duplicate_ids_are_rejected():
    events = EventSet.of([make_event(1, at(9))])
    with pytest.raises(ValueError):
        events.add(make_event(1, at(12)))
    with pytest.raises(ValueError):
        EventSet.of([make_event(1, at(9)), make_event(1, at(10))])


def test_next_id():
    assert EventSet().next_id() == 1
    assert EventSet.of([make_event(4, at(9)), make_event(2, at(10))]).next_id() == 5


def test_rekey_swaps_id_in_place():
    events = EventSet.of([make_event(1, at(9)), make_event(2, at(10))])
    rekeyed = events.rekey(2, make_event(40, at(10)))
    assert rekeyed.ids() == [1, 40]
    with pytest.raises(ValueError):
        events.rekey(2, make_event(1, at(10)))


def test_provisional_ids_are_negative_and_fresh():
    assert EventSet().next_provisional_id() == -1
    events = EventSet.of([make_event(3, at(9)), make_event(-1, at(10))])
    assert events.next_provisional_id() == -2
