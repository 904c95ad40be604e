"""Appointment persistence for the store service."""

from __future__ import annotations

import datetime as dt
from typing import Any, Mapping, Optional

from flask import current_app
from sqlalchemy import select

from clinic_calendar.calendar.catalog import Catalog, DEFAULT_CATALOG
from clinic_calendar.calendar.events import make_title
from clinic_calendar.extensions import db
from clinic_calendar.models import Appointment, Patient

_STRIPPED_FIELDS = ("patient_name", "type_code")
_NOTE_FIELDS = ("reception_notes", "clinical_notes")


class AppointmentError(Exception):
    """Raised when an appointment payload is invalid."""


class AppointmentNotFound(AppointmentError):
    pass


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


def current_catalog() -> Catalog:
    return current_app.config.get("APPOINTMENT_CATALOG") or DEFAULT_CATALOG


def parse_instant(value: Any, field: str) -> dt.datetime:
    """Parse an ISO 8601 instant and return it as naive UTC for storage."""
    if not value or not isinstance(value, str):
        raise AppointmentError(f"{field} is required")
    try:
        moment = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise AppointmentError(f"{field} is not a valid ISO 8601 timestamp") from None
    if moment.tzinfo is None:
        raise AppointmentError(f"{field} must carry a UTC offset")
    return moment.astimezone(dt.timezone.utc).replace(tzinfo=None)


def format_instant(moment: dt.datetime) -> str:
    return moment.replace(tzinfo=dt.timezone.utc).isoformat()


def serialize(appt: Appointment) -> dict:
    return {
        "id": appt.id,
        "patient_id": appt.patient_id,
        "patient_name": appt.patient_name,
        "practitioner": appt.practitioner,
        "appointment_type": appt.appointment_type,
        "type_code": appt.type_code or "",
        "title": appt.title,
        "reception_notes": appt.reception_notes or "",
        "clinical_notes": appt.clinical_notes or "",
        "start": format_instant(appt.start_time),
        "end": format_instant(appt.end_time),
    }


def _apply(appt: Appointment, data: Mapping[str, Any], *, partial: bool) -> None:
    catalog = current_catalog()

    if not partial or "start" in data:
        appt.start_time = parse_instant(data.get("start"), "start")
    if not partial or "end" in data:
        appt.end_time = parse_instant(data.get("end"), "end")
    if appt.end_time <= appt.start_time:
        raise AppointmentError("end must be after start")

    if not partial or "practitioner" in data:
        practitioner = data.get("practitioner") or catalog.default_practitioner
        if not catalog.has_practitioner(practitioner):
            raise AppointmentError(f"unknown practitioner: {practitioner}")
        appt.practitioner = practitioner
    if not partial or "appointment_type" in data:
        appt_type = data.get("appointment_type") or catalog.default_type
        if not catalog.has_type(appt_type):
            raise AppointmentError(f"unknown appointment type: {appt_type}")
        appt.appointment_type = appt_type

    for key in _STRIPPED_FIELDS + _NOTE_FIELDS:
        if not partial or key in data:
            value = data.get(key)
            text = "" if value is None else str(value)
            setattr(appt, key, text.strip() if key in _STRIPPED_FIELDS else text)

    if not partial or "patient_id" in data:
        patient_id = data.get("patient_id")
        if patient_id in (None, "", 0):
            appt.patient_id = None
        else:
            try:
                patient = db.session.get(Patient, int(patient_id))
            except (TypeError, ValueError):
                raise AppointmentError("patient_id must be an integer") from None
            if patient is None:
                raise AppointmentError(f"unknown patient: {patient_id}")
            appt.patient_id = patient.id
            # A relink without an explicit name takes the linked patient's name.
            if not appt.patient_name or "patient_name" not in data:
                appt.patient_name = patient.name

    appt.title = make_title(appt.patient_name, appt.appointment_type)


def list_appointments(
    start: Optional[str] = None,
    end: Optional[str] = None,
    practitioner: Optional[str] = None,
    appointment_type: Optional[str] = None,
) -> list[dict]:
    stmt = select(Appointment)
    if start:
        stmt = stmt.where(Appointment.start_time >= parse_instant(start, "start"))
    if end:
        stmt = stmt.where(Appointment.start_time <= parse_instant(end, "end"))
    if practitioner and practitioner != "All":
        stmt = stmt.where(Appointment.practitioner == practitioner)
    if appointment_type and appointment_type != "All":
        stmt = stmt.where(Appointment.appointment_type == appointment_type)
    stmt = stmt.order_by(Appointment.start_time.asc(), Appointment.id.asc())
    return [serialize(a) for a in db.session.execute(stmt).scalars().all()]


def get_appointment_by_id(appt_id: int) -> dict:
    appt = db.session.get(Appointment, appt_id)
    if appt is None:
        raise AppointmentNotFound(f"appointment {appt_id} not found")
    return serialize(appt)


def create_appointment(data: Mapping[str, Any]) -> dict:
    now = _utcnow()
    appt = Appointment(created_at=now, updated_at=now)
    _apply(appt, data, partial=False)
    db.session.add(appt)
    db.session.commit()
    current_app.logger.info("Created appointment %s for %s", appt.id, appt.practitioner)
    return serialize(appt)


def update_appointment(appt_id: int, data: Mapping[str, Any]) -> dict:
    appt = db.session.get(Appointment, appt_id)
    if appt is None:
        raise AppointmentNotFound(f"appointment {appt_id} not found")
    try:
        _apply(appt, data, partial=True)
    except AppointmentError:
        db.session.rollback()
        raise
    appt.updated_at = _utcnow()
    db.session.commit()
    return serialize(appt)


def delete_appointment(appt_id: int) -> None:
    appt = db.session.get(Appointment, appt_id)
    if appt is None:
        raise AppointmentNotFound(f"appointment {appt_id} not found")
    db.session.delete(appt)
    db.session.commit()
    current_app.logger.info("Deleted appointment %s", appt_id)
