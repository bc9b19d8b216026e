"""
Saved settlement tests.

Verifies:
- A saved record carries the breakdown computed at save time
- Later settings changes never alter a saved record
- Listing filters by machine and author
- Deleting is refused once an invoice exists
"""

from datetime import date

import pytest

from clowee.errors import ConflictError, NoDataForPeriodError, NotFoundError
from clowee.models import SettlementRecord, User
from clowee.services import settlement_service, invoice_service, machine_settings_service


@pytest.fixture
def machine(make_machine, add_reading):
    m = make_machine()
    add_reading(m, date(2025, 1, 15), 500, 10)
    add_reading(m, date(2025, 1, 31), 1500, 30)
    return m


def test_save_persists_breakdown(db_session, machine, operator):
    record = settlement_service.save_settlement(machine.id, "2025-01-16", "2025-01-31", operator.id)

    stored = db_session.get(SettlementRecord, record.id)
    assert stored.machine_name == "Claw A"
    assert stored.total_coins == 1000
    assert stored.total_prizes == 20
    assert stored.total_income == 2000
    assert stored.profit_base == 1600
    assert stored.net_payable == 850
    assert stored.total_amount == 1500
    assert stored.created_by_user_id == operator.id


def test_saved_record_is_frozen_against_later_setting_changes(db_session, machine, operator):
    record = settlement_service.save_settlement(machine.id, "2025-01-16", "2025-01-31", operator.id)
    machine_settings_service.add_machine_setting(machine.id, "coin_price", 10, "2025-01-01", operator.id)

    assert settlement_service.get_settlement(record.id).net_payable == 850
    assert settlement_service.get_settlement(record.id).total_income == 2000


def test_save_without_counter_data_writes_nothing(db_session, make_machine, operator):
    m = make_machine(name="Claw Empty")
    with pytest.raises(NoDataForPeriodError):
        settlement_service.save_settlement(m.id, "2025-01-01", "2025-01-31", operator.id)
    assert db_session.query(SettlementRecord).count() == 0


def test_list_filters(db_session, machine, make_machine, add_reading, operator):
    other_user = User(username="second", name="Second Desk")
    db_session.add(other_user)
    db_session.commit()

    other = make_machine(name="Claw B")
    add_reading(other, date(2025, 1, 31), 100, 2)

    mine = settlement_service.save_settlement(machine.id, "2025-01-16", "2025-01-31", operator.id)
    theirs = settlement_service.save_settlement(other.id, "2025-01-01", "2025-01-31", other_user.id)

    assert {r.id for r in settlement_service.list_settlements()} == {mine.id, theirs.id}
    assert [r.id for r in settlement_service.list_settlements(machine_id=other.id)] == [theirs.id]
    assert [r.id for r in settlement_service.list_settlements(created_by_user_id=operator.id)] == [mine.id]


def test_get_missing_settlement(db_session):
    with pytest.raises(NotFoundError):
        settlement_service.get_settlement(12345)


def test_delete_settlement(db_session, machine, operator):
    record = settlement_service.save_settlement(machine.id, "2025-01-16", "2025-01-31", operator.id)
    settlement_service.delete_settlement(record.id)
    assert db_session.query(SettlementRecord).count() == 0


def test_delete_refused_when_invoiced(db_session, machine, operator):
    record = settlement_service.save_settlement(machine.id, "2025-01-16", "2025-01-31", operator.id)
    invoice_service.create_invoice(record.id, operator.id, invoice_date=date(2025, 2, 1))

    with pytest.raises(ConflictError):
        settlement_service.delete_settlement(record.id)
    assert db_session.query(SettlementRecord).count() == 1
