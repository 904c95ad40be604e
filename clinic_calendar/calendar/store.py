"""HTTP client for the appointment store service."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Optional

import requests

from .catalog import Catalog
from .events import AppointmentEvent
from .patients import PatientRef

logger = logging.getLogger(__name__)

_PATCHABLE = {
    "start",
    "end",
    "patient_name",
    "patient_id",
    "practitioner",
    "appointment_type",
    "type_code",
    "reception_notes",
    "clinical_notes",
}


class StoreError(Exception):
    """The store could not be reached or refused the request."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class StoreNotFound(StoreError):
    pass


def format_instant(moment: dt.datetime) -> str:
    if moment.tzinfo is None:
        raise ValueError("refusing to send a naive timestamp")
    return moment.astimezone(dt.timezone.utc).isoformat()


def parse_instant(value: str) -> dt.datetime:
    moment = dt.datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if moment.tzinfo is None:
        raise ValueError(f"timestamp without offset: {value!r}")
    return moment


def event_to_wire(event: AppointmentEvent, include_id: bool = True) -> dict:
    payload = {
        "patient_id": event.patient_id,
        "patient_name": event.patient_name,
        "practitioner": event.practitioner,
        "appointment_type": event.appointment_type,
        "type_code": event.type_code,
        "reception_notes": event.reception_notes,
        "clinical_notes": event.clinical_notes,
        "start": format_instant(event.start),
        "end": format_instant(event.end),
    }
    if include_id:
        payload["id"] = event.id
    return payload


def event_from_wire(data: dict) -> AppointmentEvent:
    return AppointmentEvent(
        id=int(data["id"]),
        start=parse_instant(data["start"]),
        end=parse_instant(data["end"]),
        patient_name=data.get("patient_name") or "",
        practitioner=data["practitioner"],
        appointment_type=data["appointment_type"],
        patient_id=data.get("patient_id"),
        type_code=data.get("type_code") or "",
        reception_notes=data.get("reception_notes") or "",
        clinical_notes=data.get("clinical_notes") or "",
    )


class AppointmentStoreClient:
    def __init__(self, base_url: str, http: Any = None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.http = http if http is not None else requests.Session()
        self.timeout = timeout

    def list(self) -> list[AppointmentEvent]:
        data = self._request("GET", "/api/appointments")
        return [event_from_wire(item) for item in data.get("appointments", [])]

    def get(self, event_id: int) -> AppointmentEvent:
        data = self._request("GET", f"/api/appointments/{int(event_id)}")
        return event_from_wire(data["appointment"])

    def create(self, event: AppointmentEvent) -> AppointmentEvent:
        data = self._request("POST", "/api/appointments", json=event_to_wire(event, include_id=False))
        return event_from_wire(data["appointment"])

    def patch(self, event_id: int, **fields: Any) -> AppointmentEvent:
        unknown = set(fields) - _PATCHABLE
        if unknown:
            raise ValueError(f"fields cannot be patched: {sorted(unknown)}")
        body = {
            key: format_instant(value) if key in ("start", "end") else value
            for key, value in fields.items()
        }
        data = self._request("PATCH", f"/api/appointments/{int(event_id)}", json=body)
        return event_from_wire(data["appointment"])

    def delete(self, event_id: int) -> bool:
        self._request("DELETE", f"/api/appointments/{int(event_id)}")
        return True

    def options(self) -> Catalog:
        return Catalog.from_dict(self._request("GET", "/api/appointments/options"))

    def list_patients(self, query: Optional[str] = None) -> list[PatientRef]:
        params = {"q": query} if query else None
        data = self._request("GET", "/api/patients", params=params)
        return [PatientRef(int(p["id"]), p["name"]) for p in data.get("patients", [])]

    def _request(self, method: str, path: str, **kwargs: Any) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise StoreError(f"{method} {path} failed: {exc}") from exc
        if response.status_code == 404:
            raise StoreNotFound(f"{method} {path}: not found", status=404)
        if not 200 <= response.status_code < 300:
            raise StoreError(
                f"{method} {path} returned {response.status_code}: {_error_text(response)}",
                status=response.status_code,
            )
        try:
            return response.json() or {}
        except ValueError as exc:
            raise StoreError(f"{method} {path} returned invalid JSON", status=response.status_code) from exc


def _error_text(response: Any) -> str:
    try:
        errors = response.json().get("errors")
    except (ValueError, AttributeError):
        errors = None
    if errors:
        return "; ".join(str(e) for e in errors)
    return getattr(response, "text", "")[:200]


__all__ = [
    "AppointmentStoreClient",
    "StoreError",
    "StoreNotFound",
    "event_to_wire",
    "event_from_wire",
    "format_instant",
    "parse_instant",
]
