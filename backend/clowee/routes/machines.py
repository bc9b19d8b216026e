# Overview: Flask API routes for machines and their time-versioned settings.

# backend/clowee/routes/machines.py
"""Machine and settings-history API routes"""

from flask import Blueprint, request, jsonify, g

from ..services import machine_service, machine_settings_service
from ..services.machine_settings_service import SettingsResolver
from ..extensions import db
from ..time_utils import today
from ..decorators import require_user, handle_service_errors


machines_bp = Blueprint("machines", __name__, url_prefix="/api/machines")


@machines_bp.post("")
@require_user
@handle_service_errors("Failed to register machine")
def register_machine_route():
    """
    Register a new machine.

    Body: name, location, installation_date and every settings field.
    """
    data = request.get_json(silent=True) or {}
    machine = machine_service.register_machine(data, g.current_user.id)
    return jsonify({"machine": machine.to_dict()}), 201


@machines_bp.get("")
@handle_service_errors("Failed to list machines")
def list_machines_route():
    include_inactive = request.args.get("include_inactive", "false").lower() == "true"
    machines = machine_service.list_machines(include_inactive=include_inactive)
    return jsonify({"machines": [m.to_dict() for m in machines]}), 200


@machines_bp.get("/<int:machine_id>")
@handle_service_errors("Failed to load machine")
def get_machine_route(machine_id: int):
    machine = machine_service.get_machine(machine_id)
    return jsonify({"machine": machine.to_dict()}), 200


@machines_bp.patch("/<int:machine_id>")
@require_user
@handle_service_errors("Failed to update machine")
def update_machine_route(machine_id: int):
    data = request.get_json(silent=True) or {}
    machine = machine_service.update_machine(machine_id, data, g.current_user.id)
    return jsonify({"machine": machine.to_dict()}), 200


@machines_bp.post("/<int:machine_id>/deactivate")
@require_user
@handle_service_errors("Failed to deactivate machine")
def deactivate_machine_route(machine_id: int):
    machine = machine_service.deactivate_machine(machine_id, g.current_user.id)
    return jsonify({"machine": machine.to_dict()}), 200


@machines_bp.get("/<int:machine_id>/change-logs")
@handle_service_errors("Failed to load change logs")
def change_logs_route(machine_id: int):
    logs = machine_service.list_change_logs(machine_id)
    return jsonify({"change_logs": [log.to_dict() for log in logs]}), 200


@machines_bp.get("/<int:machine_id>/settings")
@handle_service_errors("Failed to resolve machine settings")
def effective_settings_route(machine_id: int):
    """
    Effective settings for a date.

    Query: as_of=YYYY-MM-DD (defaults to today)
    """
    as_of = request.args.get("as_of") or today()
    snapshot = SettingsResolver(db.session).resolve_all_settings(machine_id, as_of)
    return jsonify({"settings": snapshot.to_dict(), "formatted": snapshot.formatted()}), 200


@machines_bp.get("/<int:machine_id>/settings/history")
@handle_service_errors("Failed to load settings history")
def settings_history_route(machine_id: int):
    field_name = request.args.get("field")
    if field_name:
        rows = machine_settings_service.get_setting_history(machine_id, field_name)
    else:
        rows = machine_settings_service.get_all_settings_history(machine_id)
    return jsonify({"history": [r.to_dict() for r in rows]}), 200


@machines_bp.post("/<int:machine_id>/settings/history")
@require_user
@handle_service_errors("Failed to add machine setting")
def add_setting_route(machine_id: int):
    """
    Add a setting value effective from a date.

    Body: field_name, field_value, effective_date
    """
    data = request.get_json(silent=True) or {}
    field_name = data.get("field_name")
    field_value = data.get("field_value")
    effective_date = data.get("effective_date")

    if not field_name or field_value is None or not effective_date:
        return jsonify({"error": "field_name, field_value and effective_date required"}), 400

    row = machine_settings_service.add_machine_setting(
        machine_id, field_name, field_value, effective_date, g.current_user.id
    )
    return jsonify({"setting": row.to_dict()}), 201
