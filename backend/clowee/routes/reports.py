# Overview: Flask API routes for settlement reporting.

from flask import Blueprint, request, jsonify

from ..services import reporting_service
from ..decorators import handle_service_errors


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/summary")
@handle_service_errors("Failed to build settlement summary")
def summary_route():
    """
    Totals across saved settlements whose period falls within the range.

    Query: start, end (YYYY-MM-DD, both optional)
    """
    summary = reporting_service.settlement_summary(
        start=request.args.get("start"),
        end=request.args.get("end"),
    )
    return jsonify(summary), 200
