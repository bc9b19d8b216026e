"""
Settlement calculation tests.

Verifies:
- The worked example (1000 coins, 20 prizes) pays 850
- Zero sales still charge half the electricity cost
- Missing counter data produces no breakdown
- Settings are taken as of the period end
- Repeated calculation is deterministic
"""

from datetime import date

import pytest

from clowee.errors import NoDataForPeriodError, NotFoundError
from clowee.models import MachineSettingHistory
from clowee.monitoring import PerformanceMonitor
from clowee.services.counter_service import PeriodDelta
from clowee.services.machine_settings_service import SettingsSnapshot
from clowee.services.settlement_service import SettlementCalculator, compute_breakdown


@pytest.fixture
def machine(make_machine, add_reading):
    m = make_machine()
    add_reading(m, date(2025, 1, 15), 500, 10)
    add_reading(m, date(2025, 1, 31), 1500, 30)
    return m


@pytest.fixture
def calculator(db_session):
    return SettlementCalculator.for_session(db_session)


def _snapshot(**overrides):
    values = dict(
        machine_id=1,
        as_of=date(2025, 1, 31),
        coin_price=2.0,
        doll_price=5.0,
        electricity_cost=100.0,
        vat_percentage=10.0,
        maintenance_percentage=5.0,
        owner_profit_share_percentage=50.0,
        clowee_profit_share_percentage=50.0,
        duration="half_month",
    )
    values.update(overrides)
    return SettingsSnapshot(**values)


def _delta(coins, prizes):
    return PeriodDelta(
        machine_id=1,
        start_date=date(2025, 1, 16),
        end_date=date(2025, 1, 31),
        coins=coins,
        prizes=prizes,
        end_report_date=date(2025, 1, 31),
        baseline_report_date=date(2025, 1, 15),
    )


class TestBreakdownArithmetic:
    def test_worked_example(self):
        b = compute_breakdown(_delta(1000, 20), _snapshot())
        assert b.total_income == 2000
        assert b.prize_cost == 100
        assert b.vat_amount == 200
        assert b.maintenance_cost == 100
        assert b.profit_base == 1600
        assert b.profit_share_amount == 800
        assert b.owner_profit_share_amount == 800
        assert b.electricity_charge == 50
        assert b.pay_to_clowee == 850
        assert b.total_amount == 1500

    def test_zero_sales_charge_half_electricity(self):
        b = compute_breakdown(_delta(0, 0), _snapshot())
        assert b.total_income == 0
        assert b.prize_cost == 0
        assert b.vat_amount == 0
        assert b.maintenance_cost == 0
        assert b.profit_share_amount == 0
        assert b.pay_to_clowee == -50

    def test_negative_profit_base_passes_through(self):
        # Prizes cost more than the coins brought in
        b = compute_breakdown(_delta(10, 20), _snapshot(electricity_cost=0.0))
        assert b.profit_base == 20 - (100 + 2 + 1)
        assert b.profit_share_amount == pytest.approx(-41.5)
        assert b.pay_to_clowee == pytest.approx(-41.5 + 100)

    def test_to_dict_carries_settings_and_half_electricity(self):
        data = compute_breakdown(_delta(1000, 20), _snapshot()).to_dict()
        assert data["start_date"] == "2025-01-16"
        assert data["electricity_charge"] == 50
        assert data["settings"]["coin_price"] == 2.0


class TestSettlementCalculator:
    def test_compute_from_stored_data(self, calculator, machine):
        b = calculator.compute_settlement(machine, date(2025, 1, 16), date(2025, 1, 31))
        assert (b.coins, b.prizes) == (1000, 20)
        assert b.pay_to_clowee == 850

    def test_accepts_machine_id_and_iso_strings(self, calculator, machine):
        b = calculator.compute_settlement(machine.id, "2025-01-16", "2025-01-31")
        assert b.pay_to_clowee == 850

    def test_no_data_for_period(self, calculator, make_machine):
        m = make_machine(name="Claw Empty")
        with pytest.raises(NoDataForPeriodError):
            calculator.compute_settlement(m, date(2025, 1, 1), date(2025, 1, 31))

    def test_unknown_machine(self, calculator, db_session):
        with pytest.raises(NotFoundError):
            calculator.compute_settlement(404, date(2025, 1, 1), date(2025, 1, 31))

    def test_uses_settings_effective_at_period_end(self, calculator, machine, db_session):
        db_session.add_all([
            MachineSettingHistory(
                machine_id=machine.id, field_name="vat_percentage", field_value="10.0",
                effective_date=date(2024, 12, 1),
            ),
            MachineSettingHistory(
                machine_id=machine.id, field_name="vat_percentage", field_value="20.0",
                effective_date=date(2025, 1, 20),
            ),
            MachineSettingHistory(
                machine_id=machine.id, field_name="vat_percentage", field_value="30.0",
                effective_date=date(2025, 2, 1),
            ),
        ])
        db_session.commit()

        b = calculator.compute_settlement(machine, date(2025, 1, 16), date(2025, 1, 31))
        assert b.settings.vat_percentage == 20.0
        assert b.vat_amount == 400

    def test_repeated_calculation_is_identical(self, calculator, machine):
        first = calculator.compute_settlement(machine, date(2025, 1, 16), date(2025, 1, 31))
        second = calculator.compute_settlement(machine, date(2025, 1, 16), date(2025, 1, 31))
        assert first == second

    def test_calculation_is_timed_on_its_own_monitor(self, db_session, machine):
        monitor_a = PerformanceMonitor()
        monitor_b = PerformanceMonitor()
        SettlementCalculator.for_session(db_session, monitor=monitor_a).compute_settlement(
            machine, date(2025, 1, 16), date(2025, 1, 31)
        )
        assert monitor_a.get_metrics()["settlement.compute"]["count"] == 1
        assert monitor_b.get_metrics() == {}

    def test_failed_calculation_still_records_timing(self, db_session, make_machine):
        monitor = PerformanceMonitor()
        m = make_machine(name="Claw Empty")
        with pytest.raises(NoDataForPeriodError):
            SettlementCalculator.for_session(db_session, monitor=monitor).compute_settlement(
                m, date(2025, 1, 1), date(2025, 1, 31)
            )
        assert "settlement.compute" in monitor.get_metrics()
