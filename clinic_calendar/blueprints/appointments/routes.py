from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from clinic_calendar.services.appointments import (
    AppointmentError,
    AppointmentNotFound,
    create_appointment,
    current_catalog,
    delete_appointment,
    get_appointment_by_id,
    list_appointments,
    update_appointment,
)
from clinic_calendar.services.errors import record_exception

bp = Blueprint("appointments", __name__)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise AppointmentError("request body must be a JSON object")
    return data


def _error(message: str, status: int):
    return jsonify({"success": False, "errors": [message]}), status


@bp.route("/api/appointments", methods=["GET"])
def api_list_appointments():
    """List appointments, optionally narrowed to a start range and facets."""
    try:
        appts = list_appointments(
            start=request.args.get("start"),
            end=request.args.get("end"),
            practitioner=request.args.get("practitioner"),
            appointment_type=request.args.get("type"),
        )
        return jsonify({"success": True, "appointments": appts})
    except AppointmentError as exc:
        return _error(str(exc), 400)
    except Exception as exc:
        record_exception("appointments.list", exc)
        raise


@bp.route("/api/appointments/options", methods=["GET"])
def api_appointment_options():
    """Practitioner and appointment-type catalog used by the calendar."""
    return jsonify({"success": True, **current_catalog().to_dict()})


@bp.route("/api/appointments/<int:appt_id>", methods=["GET"])
def api_get_appointment(appt_id: int):
    try:
        return jsonify({"success": True, "appointment": get_appointment_by_id(appt_id)})
    except AppointmentNotFound as exc:
        return _error(str(exc), 404)


@bp.route("/api/appointments", methods=["POST"])
def api_create_appointment():
    """Create an appointment; any id in the body is ignored."""
    try:
        appt = create_appointment(_json_body())
        return jsonify({"success": True, "appointment": appt}), 201
    except AppointmentError as exc:
        current_app.logger.info("Rejected appointment create: %s", exc)
        return _error(str(exc), 400)
    except Exception as exc:
        record_exception("appointments.create", exc)
        raise


@bp.route("/api/appointments/<int:appt_id>", methods=["PATCH"])
def api_patch_appointment(appt_id: int):
    """Merge a partial update into an existing appointment."""
    try:
        data = _json_body()
        data.pop("id", None)
        appt = update_appointment(appt_id, data)
        return jsonify({"success": True, "appointment": appt})
    except AppointmentNotFound as exc:
        return _error(str(exc), 404)
    except AppointmentError as exc:
        current_app.logger.info("Rejected appointment %s patch: %s", appt_id, exc)
        return _error(str(exc), 400)
    except Exception as exc:
        record_exception("appointments.patch", exc)
        raise


@bp.route("/api/appointments/<int:appt_id>", methods=["DELETE"])
def api_delete_appointment(appt_id: int):
    try:
        delete_appointment(appt_id)
        return jsonify({"success": True})
    except AppointmentNotFound as exc:
        return _error(str(exc), 404)
    except Exception as exc:
        record_exception("appointments.delete", exc)
        raise
