# Overview: Flask API routes for Pay to Clowee settlement calculation and records.

# backend/clowee/routes/settlements.py
"""
Settlement API routes.

calculate returns a breakdown without writing anything; POST /api/settlements
computes the same breakdown and stores it as a settlement record.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..monitoring import get_monitor
from ..services import settlement_service
from ..services.settlement_service import SettlementCalculator
from ..decorators import require_user, handle_service_errors, load_acting_user


settlements_bp = Blueprint("settlements", __name__, url_prefix="/api/settlements")


def _period_args(data: dict):
    machine_id = data.get("machine_id")
    start = data.get("start_date")
    end = data.get("end_date")
    if machine_id is None or not start or not end:
        return None
    return machine_id, start, end


@settlements_bp.post("/calculate")
@handle_service_errors("Failed to calculate settlement")
def calculate_route():
    """
    Preview a settlement.

    Body: machine_id, start_date, end_date
    """
    args = _period_args(request.get_json(silent=True) or {})
    if args is None:
        return jsonify({"error": "machine_id, start_date and end_date required"}), 400

    calculator = SettlementCalculator.for_session(db.session, monitor=get_monitor(current_app))
    breakdown = calculator.compute_settlement(*args)
    return jsonify({"settlement": breakdown.to_dict()}), 200


@settlements_bp.post("")
@require_user
@handle_service_errors("Failed to save settlement")
def save_route():
    args = _period_args(request.get_json(silent=True) or {})
    if args is None:
        return jsonify({"error": "machine_id, start_date and end_date required"}), 400

    machine_id, start, end = args
    calculator = SettlementCalculator.for_session(db.session, monitor=get_monitor(current_app))
    record = settlement_service.save_settlement(
        machine_id, start, end, g.current_user.id, calculator=calculator
    )
    current_app.logger.info(
        "Settlement %s saved for machine %s (%s to %s)",
        record.id, record.machine_id, record.start_date, record.end_date,
    )
    return jsonify({"settlement": record.to_dict()}), 201


@settlements_bp.get("")
@handle_service_errors("Failed to list settlements")
def list_route():
    """
    Query: machine_id (optional), mine=true to list the caller's own records.
    """
    machine_id = request.args.get("machine_id", type=int)
    created_by = None
    if request.args.get("mine", "false").lower() == "true":
        user, error = load_acting_user()
        if user is None:
            return jsonify({"error": error}), 401
        created_by = user.id

    records = settlement_service.list_settlements(machine_id=machine_id, created_by_user_id=created_by)
    return jsonify({"settlements": [r.to_dict() for r in records]}), 200


@settlements_bp.get("/<int:settlement_id>")
@handle_service_errors("Failed to load settlement")
def get_route(settlement_id: int):
    record = settlement_service.get_settlement(settlement_id)
    return jsonify({"settlement": record.to_dict()}), 200


@settlements_bp.delete("/<int:settlement_id>")
@require_user
@handle_service_errors("Failed to delete settlement")
def delete_route(settlement_id: int):
    settlement_service.delete_settlement(settlement_id)
    current_app.logger.info("Settlement %s deleted by user %s", settlement_id, g.current_user.id)
    return jsonify({"deleted": settlement_id}), 200
