# Overview: Flask API routes for cumulative counter readings and period deltas.

from flask import Blueprint, request, jsonify, g

from ..extensions import db
from ..services import counter_service
from ..services.counter_service import CounterDeltaResolver
from ..decorators import require_user, handle_service_errors


counters_bp = Blueprint("counters", __name__, url_prefix="/api/machines/<int:machine_id>/counters")


@counters_bp.post("")
@require_user
@handle_service_errors("Failed to submit counter reading")
def submit_reading_route(machine_id: int):
    """
    Record the machine's counters for a date.

    Body: report_date, coin_count, prize_count. Resubmitting a date updates it.
    """
    data = request.get_json(silent=True) or {}
    if not data.get("report_date") or "coin_count" not in data or "prize_count" not in data:
        return jsonify({"error": "report_date, coin_count and prize_count required"}), 400

    reading, created = counter_service.record_counter_reading(
        machine_id,
        data["report_date"],
        data["coin_count"],
        data["prize_count"],
        g.current_user.id,
    )
    return jsonify({"reading": reading.to_dict(), "created": created}), 201 if created else 200


@counters_bp.get("")
@handle_service_errors("Failed to list counter readings")
def list_readings_route(machine_id: int):
    readings = counter_service.list_counter_readings(
        machine_id,
        start=request.args.get("start"),
        end=request.args.get("end"),
    )
    return jsonify({"readings": [r.to_dict() for r in readings]}), 200


@counters_bp.get("/delta")
@handle_service_errors("Failed to resolve period delta")
def period_delta_route(machine_id: int):
    start = request.args.get("start")
    end = request.args.get("end")
    if not start or not end:
        return jsonify({"error": "start and end required"}), 400

    delta = CounterDeltaResolver(db.session).resolve_period_delta(machine_id, start, end)
    return jsonify({"delta": delta.to_dict()}), 200
