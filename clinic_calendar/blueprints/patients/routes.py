from __future__ import annotations

from flask import Blueprint, jsonify, request

from clinic_calendar.services.errors import record_exception
from clinic_calendar.services.patients import (
    PatientError,
    PatientNotFound,
    create_patient,
    get_patient,
    list_patients,
    update_patient,
)

bp = Blueprint("patients", __name__)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise PatientError("request body must be a JSON object")
    return data


@bp.route("/api/patients", methods=["GET"])
def api_list_patients():
    """List patients; ``q`` matches name or phone, ignoring case."""
    search = (request.args.get("q") or "").strip()
    return jsonify({"success": True, "patients": list_patients(search or None)})


@bp.route("/api/patients/<int:patient_id>", methods=["GET"])
def api_get_patient(patient_id: int):
    try:
        return jsonify({"success": True, "patient": get_patient(patient_id)})
    except PatientNotFound as exc:
        return jsonify({"success": False, "errors": [str(exc)]}), 404


@bp.route("/api/patients", methods=["POST"])
def api_create_patient():
    try:
        return jsonify({"success": True, "patient": create_patient(_json_body())}), 201
    except PatientError as exc:
        return jsonify({"success": False, "errors": [str(exc)]}), 400
    except Exception as exc:
        record_exception("patients.create", exc)
        raise


@bp.route("/api/patients/<int:patient_id>", methods=["PATCH"])
def api_patch_patient(patient_id: int):
    try:
        data = _json_body()
        data.pop("id", None)
        return jsonify({"success": True, "patient": update_patient(patient_id, data)})
    except PatientNotFound as exc:
        return jsonify({"success": False, "errors": [str(exc)]}), 404
    except PatientError as exc:
        return jsonify({"success": False, "errors": [str(exc)]}), 400
    except Exception as exc:
        record_exception("patients.patch", exc)
        raise
