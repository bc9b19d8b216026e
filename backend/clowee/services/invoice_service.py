# Overview: Invoices for saved settlements and the payload handed to the PDF renderer.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..currency import format_currency_bdt
from ..errors import ConflictError, NotFoundError
from ..models import Invoice, SettlementRecord
from ..time_utils import parse_optional_date, to_iso_date, today
from .document_service import next_sequence_number
from .settlement_service import get_settlement
from .storage import commit, storage_errors


INVOICE_DOCUMENT_TYPE = "INVOICE"
INVOICE_LINE_DESCRIPTION = "Pay to Clowee - Machine Settlement"


def generate_invoice_number(invoice_date, prefix: str = "INV") -> str:
    """INV-YYYYMMDD-NNN, numbered per issue date."""
    day_key = invoice_date.strftime("%Y%m%d")
    number = next_sequence_number(document_type=INVOICE_DOCUMENT_TYPE, scope_key=day_key)
    return f"{prefix}-{day_key}-{number:03d}"


def create_invoice(
    settlement_id: int,
    user_id: int,
    notes: str | None = None,
    invoice_date=None,
) -> Invoice:
    """
    Issue the invoice for a settlement.

    Raises:
        NotFoundError: settlement does not exist
        ConflictError: settlement already has an invoice
    """
    settlement = get_settlement(settlement_id)
    if settlement.invoice is not None:
        raise ConflictError(
            "Settlement already has an invoice",
            {"settlement_id": settlement.id, "invoice_number": settlement.invoice.invoice_number},
        )

    issued_on = parse_optional_date(invoice_date, "invoice_date") or today()
    prefix = current_app.config.get("INVOICE_PREFIX", "INV")

    invoice = Invoice(
        pay_to_clowee_id=settlement.id,
        invoice_number=generate_invoice_number(issued_on, prefix=prefix),
        invoice_date=issued_on,
        notes=(notes or "").strip() or None,
        created_by_user_id=user_id,
    )
    db.session.add(invoice)
    commit(db.session, "invoice save")
    return invoice


def get_invoice(invoice_id: int) -> Invoice:
    with storage_errors("invoice lookup"):
        invoice = db.session.get(Invoice, invoice_id)
    if invoice is None:
        raise NotFoundError("Invoice not found", {"invoice_id": invoice_id})
    return invoice


def list_invoices() -> list[Invoice]:
    with storage_errors("invoice lookup"):
        return db.session.query(Invoice).order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()


def build_invoice_document(invoice: Invoice) -> dict:
    """
    Everything the external renderer needs to lay out one invoice.
    """
    settlement: SettlementRecord = invoice.settlement
    machine = settlement.machine
    config = current_app.config

    period = f"{to_iso_date(settlement.start_date)} to {to_iso_date(settlement.end_date)}"
    return {
        "company": dict(config.get("INVOICE_COMPANY") or {}),
        "client": {
            "name": machine.name if machine is not None else settlement.machine_name,
            "address": machine.location if machine is not None else None,
        },
        "invoice_number": invoice.invoice_number,
        "invoice_date": to_iso_date(invoice.invoice_date),
        "items": [
            {
                "serial": 1,
                "description": INVOICE_LINE_DESCRIPTION,
                "period": period,
                "total": settlement.net_payable,
            }
        ],
        "total": settlement.net_payable,
        "total_formatted": format_currency_bdt(settlement.net_payable),
        "banks": [dict(b) for b in config.get("INVOICE_BANKS") or []],
        "footer_notes": list(config.get("INVOICE_FOOTER_NOTES") or []),
        "notes": invoice.notes,
    }
