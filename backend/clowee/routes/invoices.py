# Overview: Flask API routes for issuing and reading settlement invoices.

from flask import Blueprint, request, jsonify, g

from ..services import invoice_service
from ..decorators import require_user, handle_service_errors


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


@invoices_bp.post("")
@require_user
@handle_service_errors("Failed to create invoice")
def create_invoice_route():
    """
    Issue the invoice for a saved settlement.

    Body: settlement_id, invoice_date (optional), notes (optional)
    """
    data = request.get_json(silent=True) or {}
    settlement_id = data.get("settlement_id")
    if settlement_id is None:
        return jsonify({"error": "settlement_id required"}), 400

    invoice = invoice_service.create_invoice(
        settlement_id,
        g.current_user.id,
        notes=data.get("notes"),
        invoice_date=data.get("invoice_date"),
    )
    return jsonify({"invoice": invoice.to_dict()}), 201


@invoices_bp.get("")
@handle_service_errors("Failed to list invoices")
def list_invoices_route():
    invoices = invoice_service.list_invoices()
    return jsonify({"invoices": [i.to_dict() for i in invoices]}), 200


@invoices_bp.get("/<int:invoice_id>")
@handle_service_errors("Failed to load invoice")
def get_invoice_route(invoice_id: int):
    invoice = invoice_service.get_invoice(invoice_id)
    return jsonify({
        "invoice": invoice.to_dict(),
        "document": invoice_service.build_invoice_document(invoice),
    }), 200
