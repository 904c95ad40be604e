"""Closed practitioner and appointment-type enumerations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

ALL = "All"


@dataclass(frozen=True)
class Practitioner:
    id: str
    name: str
    color: str = "#64748b"

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "color": self.color}


DEFAULT_PRACTITIONERS: tuple[Practitioner, ...] = (
    Practitioner("dr_lee", "Dr Lee", "#2563eb"),
    Practitioner("dr_singh", "Dr Singh", "#16a34a"),
    Practitioner("nurse_kim", "Nurse Kim", "#d97706"),
)

DEFAULT_APPOINTMENT_TYPES: tuple[str, ...] = (
    "Full Body Check",
    "Lesion Review",
    "Initial Consultation",
    "Follow-up",
)


@dataclass(frozen=True)
class Catalog:
    """The practitioners and appointment types an event may carry.

    Both lists are closed: anything outside them is rejected, which makes the
    ``"All"`` facet exhaustive.
    """

    practitioners: tuple[Practitioner, ...] = DEFAULT_PRACTITIONERS
    appointment_types: tuple[str, ...] = DEFAULT_APPOINTMENT_TYPES

    def __post_init__(self) -> None:
        if not self.practitioners:
            raise ValueError("catalog needs at least one practitioner")
        if not self.appointment_types:
            raise ValueError("catalog needs at least one appointment type")

    @property
    def practitioner_ids(self) -> tuple[str, ...]:
        return tuple(p.id for p in self.practitioners)

    @property
    def default_practitioner(self) -> str:
        return self.practitioners[0].id

    @property
    def default_type(self) -> str:
        return self.appointment_types[0]

    def practitioner(self, practitioner_id: str) -> Optional[Practitioner]:
        for prac in self.practitioners:
            if prac.id == practitioner_id:
                return prac
        return None

    def has_practitioner(self, practitioner_id: str) -> bool:
        return self.practitioner(practitioner_id) is not None

    def has_type(self, appointment_type: str) -> bool:
        return appointment_type in self.appointment_types

    def color_for(self, practitioner_id: str) -> str:
        prac = self.practitioner(practitioner_id)
        return prac.color if prac else "#64748b"

    def to_dict(self) -> dict:
        return {
            "practitioners": [p.to_dict() for p in self.practitioners],
            "appointment_types": list(self.appointment_types),
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "Catalog":
        pracs = tuple(
            Practitioner(
                id=str(item["id"]),
                name=str(item.get("name") or item["id"]),
                color=str(item.get("color") or "#64748b"),
            )
            for item in payload.get("practitioners") or []
        )
        types = tuple(str(t) for t in payload.get("appointment_types") or [])
        return cls(pracs or DEFAULT_PRACTITIONERS, types or DEFAULT_APPOINTMENT_TYPES)


def parse_practitioners(raw: Optional[str]) -> tuple[Practitioner, ...]:
    """Parse ``id:Name:#color`` entries separated by commas.

    Name and color are optional; an empty or blank value yields the defaults.
    """
    if not raw or not raw.strip():
        return DEFAULT_PRACTITIONERS
    parsed: list[Practitioner] = []
    for chunk in raw.split(","):
        parts = [p.strip() for p in chunk.split(":")]
        if not parts[0]:
            continue
        name = parts[1] if len(parts) > 1 and parts[1] else parts[0]
        color = parts[2] if len(parts) > 2 and parts[2] else "#64748b"
        parsed.append(Practitioner(parts[0], name, color))
    return tuple(parsed) or DEFAULT_PRACTITIONERS


def parse_types(raw: Optional[str]) -> tuple[str, ...]:
    if not raw or not raw.strip():
        return DEFAULT_APPOINTMENT_TYPES
    types = _dedupe(t.strip() for t in raw.split(",") if t.strip())
    return types or DEFAULT_APPOINTMENT_TYPES


def _dedupe(values: Iterable[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for value in values:
        seen.setdefault(value, None)
    return tuple(seen)


DEFAULT_CATALOG = Catalog()

__all__ = [
    "ALL",
    "Practitioner",
    "Catalog",
    "DEFAULT_CATALOG",
    "DEFAULT_PRACTITIONERS",
    "DEFAULT_APPOINTMENT_TYPES",
    "parse_practitioners",
    "parse_types",
]
