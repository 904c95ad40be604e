import datetime as dt

import pytest

from clinic_calendar.calendar.editor import (
    AM,
    PM,
    AppointmentEditor,
    EditorState,
    EditorStateError,
    PatientNotResolved,
    TimeParts,
    to_hour24,
)
from clinic_calendar.calendar.events import EventNotFound, EventSet
from clinic_calendar.calendar.patients import PatientRef
from clinic_calendar.calendar.timegrid import TimeSlot
from conftest import UTC, at, make_event

PATIENTS = [
    PatientRef(1, "Michael Brown"),
    PatientRef(2, "Lisa Anderson"),
    PatientRef(3, "David Kim"),
    PatientRef(4, "Anna Rodriguez"),
]


@pytest.fixture
def events():
    return EventSet.of([make_event(1, at(9)), make_event(2, at(10), minutes=45)])


@pytest.fixture
def editor():
    return AppointmentEditor(tz=UTC)


@pytest.mark.parametrize(
    "hour12, meridiem, expected",
    [(12, AM, 0), (12, PM, 12), (5, PM, 17), (1, AM, 1), (11, PM, 23)],
)
def test_to_hour24(hour12, meridiem, expected):
    assert to_hour24(hour12, meridiem) == expected


def test_to_hour24_matches_formula_for_every_hour():
    for hour12 in range(1, 13):
        assert to_hour24(hour12, AM) == hour12 % 12
        assert to_hour24(hour12, PM) == hour12 % 12 + 12


def test_to_hour24_rejects_out_of_range():
    with pytest.raises(ValueError):
        to_hour24(0, AM)
    with pytest.raises(ValueError):
        to_hour24(5, "XM")


def test_time_parts_from_datetime():
    assert TimeParts.from_datetime(at(0, 5)) == TimeParts(at(0).date(), 12, 5, AM)
    assert TimeParts.from_datetime(at(17, 30)) == TimeParts(at(0).date(), 5, 30, PM)


def test_open_slot_uses_catalog_defaults(editor):
    draft = editor.open_slot(TimeSlot(at(14), at(15)))
    assert editor.state is EditorState.CREATING
    assert draft.start == at(14) and draft.end == at(15)
    assert draft.duration_minutes == 60
    assert draft.practitioner == "dr_lee"
    assert draft.appointment_type == "Full Body Check"


def test_short_slot_is_stretched_to_fifteen_minutes(editor):
    draft = editor.open_slot(TimeSlot(at(14), at(14, 5)))
    assert draft.duration_minutes == 15
    assert draft.end == at(14, 15)


def test_create_save_appends_with_fresh_id(editor, events):
    editor.open_slot(TimeSlot(at(14), at(15)))
    editor.set_patient_query("Jane Roe")
    result = editor.save(events)
    assert result.created
    assert result.event.id not in events
    assert len(result.events) == len(events) + 1
    assert result.events.get(result.event.id).title == "Jane Roe — Full Body Check"
    assert editor.state is EditorState.CLOSED
    assert len(events) == 2


def test_create_save_uses_id_factory(editor, events):
    editor.open_slot(TimeSlot(at(14), at(15)))
    result = editor.save(events, id_factory=lambda: 99)
    assert result.event.id == 99
    assert result.event.title == "Untitled — Full Body Check"


def test_edit_save_replaces_in_place(editor, events):
    editor.open_event(events.get(2))
    assert editor.state is EditorState.EDITING and editor.event_id == 2
    editor.set_patient_query("Renamed")
    editor.set_practitioner("nurse_kim")
    editor.set_appointment_type("Follow-up")
    editor.set_clinical_notes("check left shoulder")
    result = editor.save(events)
    assert not result.created
    assert len(result.events) == len(events)
    saved = result.events.get(2)
    assert saved.id == 2
    assert (saved.patient_name, saved.practitioner, saved.appointment_type) == ("Renamed", "nurse_kim", "Follow-up")
    assert saved.clinical_notes == "check left shoulder"
    assert result.events.ids() == [1, 2]


def test_edit_save_of_vanished_event_raises(editor, events):
    editor.open_event(events.get(2))
    with pytest.raises(EventNotFound):
        editor.save(events.remove(2))


def test_open_event_decomposes_start(editor, events):
    editor.open_event(events.get(2))
    assert editor.draft.duration_minutes == 45
    assert editor.draft.time_parts == TimeParts(at(0).date(), 10, 0, AM)


@pytest.mark.parametrize("minutes", [5, 90, 480])
def test_valid_duration_moves_end(editor, events, minutes):
    editor.open_event(events.get(1))
    assert editor.set_duration(minutes)
    assert editor.draft.end - editor.draft.start == dt.timedelta(minutes=minutes)


@pytest.mark.parametrize("value", [4, 481, 0, -10])
def test_out_of_range_duration_is_ignored(editor, events, value):
    editor.open_event(events.get(1))
    before = editor.draft.end - editor.draft.start
    assert not editor.set_duration(value)
    assert editor.draft.end - editor.draft.start == before
    assert editor.draft.duration_minutes == 30


def test_duration_text_input(editor, events):
    editor.open_event(events.get(1))
    assert editor.set_duration_text(" 40 ")
    assert editor.draft.end == at(9, 40)
    assert not editor.set_duration_text("forty")
    assert not editor.set_duration_text("")
    assert editor.draft.end == at(9, 40)


def test_duration_write_leaves_start_alone(editor, events):
    editor.open_event(events.get(1))
    editor.set_duration(60)
    assert editor.draft.start == at(9)


def test_time_part_writes_recompute_start_then_end(editor, events):
    editor.open_event(events.get(1))  # 09:00-09:30
    editor.set_hour(5)
    editor.set_meridiem(PM)
    assert editor.draft.start == at(17)
    assert editor.draft.end == at(17, 30)
    editor.set_minute(45)
    assert editor.draft.start == at(17, 45)
    assert editor.draft.end == at(18, 15)
    editor.set_day(dt.date(2024, 3, 20))
    assert editor.draft.start == dt.datetime(2024, 3, 20, 17, 45, tzinfo=UTC)
    assert editor.draft.time_parts == TimeParts(dt.date(2024, 3, 20), 5, 45, PM)


def test_twelve_am_is_midnight(editor, events):
    editor.open_event(events.get(1))
    editor.set_hour(12)
    assert editor.draft.start == at(0)
    editor.set_meridiem(PM)
    assert editor.draft.start == at(12)


def test_time_part_domains_are_enforced(editor, events):
    editor.open_event(events.get(1))
    with pytest.raises(ValueError):
        editor.set_hour(13)
    with pytest.raises(ValueError):
        editor.set_minute(7)
    with pytest.raises(ValueError):
        editor.set_meridiem("pm")
    assert editor.draft.start == at(9)


def test_catalog_fields_are_enforced(editor, events):
    editor.open_event(events.get(1))
    with pytest.raises(ValueError):
        editor.set_practitioner("dr_who")
    with pytest.raises(ValueError):
        editor.set_appointment_type("Massage")


def test_delete_only_from_editing(editor, events):
    with pytest.raises(EditorStateError):
        editor.delete(events)
    editor.open_slot(TimeSlot(at(14), at(15)))
    with pytest.raises(EditorStateError):
        editor.delete(events)
    editor.cancel()
    editor.open_event(events.get(1))
    remaining = editor.delete(events)
    assert remaining.ids() == [2]
    assert editor.state is EditorState.CLOSED


def test_cancel_discards_draft(editor, events):
    editor.open_event(events.get(1))
    editor.set_duration(120)
    editor.cancel()
    assert editor.state is EditorState.CLOSED
    assert editor.draft is None
    assert events.get(1).end == at(9, 30)


def test_cannot_open_twice_or_save_when_closed(editor, events):
    with pytest.raises(EditorStateError):
        editor.save(events)
    editor.open_event(events.get(1))
    with pytest.raises(EditorStateError):
        editor.open_slot(TimeSlot(at(14), at(15)))
    with pytest.raises(EditorStateError):
        editor.open_event(events.get(2))


def test_field_writes_need_an_open_draft(editor):
    with pytest.raises(EditorStateError):
        editor.set_hour(3)


def test_patient_suggestions_are_case_insensitive_and_capped():
    editor = AppointmentEditor(patients=PATIENTS, tz=UTC, suggestion_limit=2)
    editor.open_slot(TimeSlot(at(14), at(15)))
    assert [p.id for p in editor.set_patient_query("AN")] == [2, 4]
    assert editor.set_patient_query("") == []


def test_choosing_a_suggestion_sets_name_and_reference(events):
    editor = AppointmentEditor(patients=PATIENTS, tz=UTC)
    editor.open_slot(TimeSlot(at(14), at(15)))
    editor.set_patient_query("kim")
    editor.choose_patient(editor.suggestions[0])
    result = editor.save(events)
    assert (result.event.patient_id, result.event.patient_name) == (3, "David Kim")


def test_typed_name_resolves_case_insensitively(events):
    editor = AppointmentEditor(patients=PATIENTS, tz=UTC)
    editor.open_slot(TimeSlot(at(14), at(15)))
    editor.set_patient_query("lisa anderson")
    result = editor.save(events)
    assert (result.event.patient_id, result.event.patient_name) == (2, "Lisa Anderson")


def test_unresolved_patient_is_a_validation_error(events):
    editor = AppointmentEditor(patients=PATIENTS, tz=UTC)
    editor.open_slot(TimeSlot(at(14), at(15)))
    editor.set_patient_query("Nobody Known")
    with pytest.raises(PatientNotResolved):
        editor.save(events)
    assert editor.state is EditorState.CREATING
    assert editor.draft is not None


def test_sync_times_rederives_duration(editor, events):
    editor.open_event(events.get(1))
    editor.sync_times(at(14), at(14, 50))
    assert editor.draft.duration_minutes == 50
    assert editor.draft.time_parts.hour12 == 2
