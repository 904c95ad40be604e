from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

DEFAULT_SUGGESTION_LIMIT = 8


@dataclass(frozen=True)
class PatientRef:
    id: int
    name: str


def suggest_patients(
    query: str, patients: Iterable[PatientRef], limit: int = DEFAULT_SUGGESTION_LIMIT
) -> list[PatientRef]:
    """Known patients whose name contains ``query``, ignoring case."""
    needle = (query or "").strip().lower()
    if not needle or limit <= 0:
        return []
    matches: list[PatientRef] = []
    for patient in patients:
        if needle in patient.name.lower():
            matches.append(patient)
            if len(matches) >= limit:
                break
    return matches


def resolve_patient(
    patients: Sequence[PatientRef], patient_id: Optional[int], name: str
) -> Optional[PatientRef]:
    if patient_id is not None:
        for patient in patients:
            if patient.id == patient_id:
                return patient
    wanted = (name or "").strip().lower()
    if not wanted:
        return None
    for patient in patients:
        if patient.name.lower() == wanted:
            return patient
    return None
