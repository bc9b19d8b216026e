"""
Invoice tests.

Verifies:
- Invoice numbers are sequential per issue date
- One invoice per settlement
- The document payload carries the settlement's payable amount
"""

from datetime import date

import pytest

from clowee.errors import ConflictError, NotFoundError
from clowee.services import invoice_service, settlement_service


@pytest.fixture
def settlements(make_machine, add_reading, operator):
    records = []
    for name in ("Claw A", "Claw B", "Claw C"):
        m = make_machine(name=name, location=f"{name} Mall")
        add_reading(m, date(2025, 1, 15), 500, 10)
        add_reading(m, date(2025, 1, 31), 1500, 30)
        records.append(settlement_service.save_settlement(m.id, "2025-01-16", "2025-01-31", operator.id))
    return records


def test_numbers_are_sequential_per_day(settlements, operator):
    first = invoice_service.create_invoice(settlements[0].id, operator.id, invoice_date="2025-02-01")
    second = invoice_service.create_invoice(settlements[1].id, operator.id, invoice_date="2025-02-01")
    next_day = invoice_service.create_invoice(settlements[2].id, operator.id, invoice_date="2025-02-02")

    assert first.invoice_number == "INV-20250201-001"
    assert second.invoice_number == "INV-20250201-002"
    assert next_day.invoice_number == "INV-20250202-001"


def test_invoice_date_defaults_to_today(settlements, operator):
    invoice = invoice_service.create_invoice(settlements[0].id, operator.id)
    assert invoice.invoice_date is not None
    assert invoice.invoice_number.endswith("-001")


def test_second_invoice_for_settlement_conflicts(settlements, operator):
    invoice_service.create_invoice(settlements[0].id, operator.id, invoice_date="2025-02-01")
    with pytest.raises(ConflictError):
        invoice_service.create_invoice(settlements[0].id, operator.id, invoice_date="2025-02-01")


def test_invoice_for_missing_settlement(db_session, operator):
    with pytest.raises(NotFoundError):
        invoice_service.create_invoice(999, operator.id)


def test_document_payload(settlements, operator):
    invoice = invoice_service.create_invoice(
        settlements[0].id, operator.id, invoice_date=date(2025, 2, 1), notes="  January, second half  "
    )
    doc = invoice_service.build_invoice_document(invoice)

    assert doc["invoice_number"] == "INV-20250201-001"
    assert doc["invoice_date"] == "2025-02-01"
    assert doc["client"] == {"name": "Claw A", "address": "Claw A Mall"}
    assert doc["items"] == [{
        "serial": 1,
        "description": "Pay to Clowee - Machine Settlement",
        "period": "2025-01-16 to 2025-01-31",
        "total": 850,
    }]
    assert doc["total"] == 850
    assert doc["total_formatted"] == "৳850.00"
    assert doc["notes"] == "January, second half"
    assert doc["banks"] and "account_number" in doc["banks"][0]
    assert doc["company"]["name"]


def test_list_invoices(settlements, operator):
    invoice_service.create_invoice(settlements[0].id, operator.id, invoice_date="2025-02-01")
    invoice_service.create_invoice(settlements[1].id, operator.id, invoice_date="2025-02-01")
    assert len(invoice_service.list_invoices()) == 2
