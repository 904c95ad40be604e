"""Patient records backing name lookup and autocomplete."""

from __future__ import annotations

import datetime as dt
from typing import Any, Mapping, Optional

from sqlalchemy import or_, select

from clinic_calendar.extensions import db
from clinic_calendar.models import Patient

_FIELDS = ("name", "phone", "email", "medicare", "date_of_birth", "notes")


class PatientError(Exception):
    """Raised when a patient payload is invalid."""


class PatientNotFound(PatientError):
    pass


def serialize(patient: Patient) -> dict:
    return {
        "id": patient.id,
        "name": patient.name,
        "phone": patient.phone,
        "email": patient.email,
        "medicare": patient.medicare,
        "date_of_birth": patient.date_of_birth,
        "notes": patient.notes,
    }


def list_patients(search: Optional[str] = None) -> list[dict]:
    stmt = select(Patient)
    if search:
        like = f"%{search.strip()}%"
        stmt = stmt.where(or_(Patient.name.ilike(like), Patient.phone.ilike(like)))
    stmt = stmt.order_by(Patient.name.asc(), Patient.id.asc())
    return [serialize(p) for p in db.session.execute(stmt).scalars().all()]


def get_patient(patient_id: int) -> dict:
    patient = db.session.get(Patient, patient_id)
    if patient is None:
        raise PatientNotFound(f"patient {patient_id} not found")
    return serialize(patient)


def _apply(patient: Patient, data: Mapping[str, Any], *, partial: bool) -> None:
    for key in _FIELDS:
        if partial and key not in data:
            continue
        value = data.get(key)
        setattr(patient, key, str(value).strip() if value not in (None, "") else None)
    if not patient.name:
        raise PatientError("name is required")


def create_patient(data: Mapping[str, Any]) -> dict:
    now = dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)
    patient = Patient(created_at=now, updated_at=now)
    _apply(patient, data, partial=False)
    db.session.add(patient)
    db.session.commit()
    return serialize(patient)


def update_patient(patient_id: int, data: Mapping[str, Any]) -> dict:
    patient = db.session.get(Patient, patient_id)
    if patient is None:
        raise PatientNotFound(f"patient {patient_id} not found")
    try:
        _apply(patient, data, partial=True)
    except PatientError:
        db.session.rollback()
        raise
    patient.updated_at = dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)
    db.session.commit()
    return serialize(patient)
