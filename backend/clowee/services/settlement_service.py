# Overview: "Pay to Clowee" settlement calculation and settlement records.

"""
Settlement pipeline (authoritative)

1. Period delta from cumulative counter readings (counter_service).
2. Settings resolved as of the period END date; that snapshot governs the
   whole period.
3. Arithmetic, in floats, no intermediate rounding:

   total_income       = coins * coin_price
   prize_cost         = prizes * doll_price
   vat_amount         = total_income * vat% / 100
   maintenance_cost   = total_income * maintenance% / 100
   profit_base        = total_income - (prize_cost + vat_amount + maintenance_cost)
   clowee share       = profit_base * clowee% / 100
   pay_to_clowee      = clowee share + prize_cost - electricity_cost / 2
   total_amount       = total_income - (prize_cost + electricity_cost + vat_amount + maintenance_cost)

Only half the configured electricity cost is charged against the payable
amount; the site owner carries the other half. total_amount (full
electricity) is kept for display only. Negative payables are returned as is.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from ..extensions import db
from ..errors import ConflictError, NotFoundError
from ..models import SettlementRecord
from ..monitoring import PerformanceMonitor
from ..time_utils import to_iso_date
from .counter_service import CounterDeltaResolver, PeriodDelta
from .machine_settings_service import SettingsResolver, SettingsSnapshot
from .storage import commit, storage_errors


@dataclass(frozen=True)
class SettlementBreakdown:
    machine_id: int
    start_date: date
    end_date: date
    coins: int
    prizes: int
    total_income: float
    prize_cost: float
    electricity_cost: float
    vat_amount: float
    maintenance_cost: float
    profit_base: float
    profit_share_amount: float
    owner_profit_share_amount: float
    total_amount: float
    pay_to_clowee: float
    settings: SettingsSnapshot

    @property
    def electricity_charge(self) -> float:
        """The half of electricity_cost deducted from pay_to_clowee."""
        return self.electricity_cost / 2

    def to_dict(self) -> dict:
        return {
            "machine_id": self.machine_id,
            "start_date": to_iso_date(self.start_date),
            "end_date": to_iso_date(self.end_date),
            "coins": self.coins,
            "prizes": self.prizes,
            "total_income": self.total_income,
            "prize_cost": self.prize_cost,
            "electricity_cost": self.electricity_cost,
            "electricity_charge": self.electricity_charge,
            "vat_amount": self.vat_amount,
            "maintenance_cost": self.maintenance_cost,
            "profit_base": self.profit_base,
            "profit_share_amount": self.profit_share_amount,
            "owner_profit_share_amount": self.owner_profit_share_amount,
            "total_amount": self.total_amount,
            "pay_to_clowee": self.pay_to_clowee,
            "settings": self.settings.to_dict(),
        }


def compute_breakdown(delta: PeriodDelta, settings: SettingsSnapshot) -> SettlementBreakdown:
    """Pure arithmetic step of the pipeline; no database access."""
    coins = delta.coins
    prizes = delta.prizes

    total_income = coins * settings.coin_price
    prize_cost = prizes * settings.doll_price
    vat_amount = total_income * settings.vat_percentage / 100
    maintenance_cost = total_income * settings.maintenance_percentage / 100
    profit_base = total_income - (prize_cost + vat_amount + maintenance_cost)
    clowee_share = profit_base * settings.clowee_profit_share_percentage / 100
    owner_share = profit_base * settings.owner_profit_share_percentage / 100
    electricity_cost = settings.electricity_cost

    return SettlementBreakdown(
        machine_id=delta.machine_id,
        start_date=delta.start_date,
        end_date=delta.end_date,
        coins=coins,
        prizes=prizes,
        total_income=total_income,
        prize_cost=prize_cost,
        electricity_cost=electricity_cost,
        vat_amount=vat_amount,
        maintenance_cost=maintenance_cost,
        profit_base=profit_base,
        profit_share_amount=clowee_share,
        owner_profit_share_amount=owner_share,
        total_amount=total_income - (prize_cost + electricity_cost + vat_amount + maintenance_cost),
        pay_to_clowee=clowee_share + prize_cost - electricity_cost / 2,
        settings=settings,
    )


class SettlementCalculator:
    """
    Computes settlements; performs no writes.

    Collaborators are passed in rather than looked up globally.
    """

    def __init__(
        self,
        settings_resolver: SettingsResolver,
        delta_resolver: CounterDeltaResolver,
        monitor: PerformanceMonitor | None = None,
    ):
        self.settings_resolver = settings_resolver
        self.delta_resolver = delta_resolver
        self.monitor = monitor

    @classmethod
    def for_session(cls, session, monitor: PerformanceMonitor | None = None) -> "SettlementCalculator":
        settings_resolver = SettingsResolver(session)
        return cls(settings_resolver, CounterDeltaResolver(session, settings_resolver), monitor=monitor)

    def compute_settlement(self, machine, period_start, period_end) -> SettlementBreakdown:
        machine_id = getattr(machine, "id", machine)
        if self.monitor is None:
            return self._compute(machine_id, period_start, period_end)
        with self.monitor.timed("settlement.compute"):
            return self._compute(machine_id, period_start, period_end)

    def _compute(self, machine_id, period_start, period_end) -> SettlementBreakdown:
        delta = self.delta_resolver.resolve_period_delta(machine_id, period_start, period_end)
        settings = self.settings_resolver.resolve_all_settings(machine_id, delta.end_date)
        return compute_breakdown(delta, settings)


def save_settlement(
    machine_id: int,
    start_date,
    end_date,
    user_id: int,
    calculator: SettlementCalculator | None = None,
) -> SettlementRecord:
    """
    Compute a settlement and persist it as a single pay_to_clowee row.
    """
    calculator = calculator or SettlementCalculator.for_session(db.session)
    machine = calculator.settings_resolver.get_machine(machine_id)
    breakdown = calculator.compute_settlement(machine, start_date, end_date)

    record = SettlementRecord(
        machine_id=machine.id,
        machine_name=machine.name,
        start_date=breakdown.start_date,
        end_date=breakdown.end_date,
        total_coins=breakdown.coins,
        total_prizes=breakdown.prizes,
        total_income=breakdown.total_income,
        prize_cost=breakdown.prize_cost,
        electricity_cost=breakdown.electricity_cost,
        vat_amount=breakdown.vat_amount,
        maintenance_cost=breakdown.maintenance_cost,
        profit_base=breakdown.profit_base,
        profit_share_amount=breakdown.profit_share_amount,
        owner_profit_share_amount=breakdown.owner_profit_share_amount,
        total_amount=breakdown.total_amount,
        net_payable=breakdown.pay_to_clowee,
        created_by_user_id=user_id,
    )
    db.session.add(record)
    commit(db.session, "settlement save")
    return record


def get_settlement(settlement_id: int) -> SettlementRecord:
    with storage_errors("settlement lookup"):
        record = db.session.get(SettlementRecord, settlement_id)
    if record is None:
        raise NotFoundError("Settlement not found", {"settlement_id": settlement_id})
    return record


def list_settlements(
    machine_id: int | None = None,
    created_by_user_id: int | None = None,
) -> list[SettlementRecord]:
    query = db.session.query(SettlementRecord)
    if machine_id is not None:
        query = query.filter(SettlementRecord.machine_id == machine_id)
    if created_by_user_id is not None:
        query = query.filter(SettlementRecord.created_by_user_id == created_by_user_id)
    with storage_errors("settlement lookup"):
        return query.order_by(SettlementRecord.created_at.desc(), SettlementRecord.id.desc()).all()


def delete_settlement(settlement_id: int) -> None:
    record = get_settlement(settlement_id)
    if record.invoice is not None:
        raise ConflictError(
            "Settlement has an invoice and cannot be deleted",
            {"settlement_id": record.id, "invoice_number": record.invoice.invoice_number},
        )
    db.session.delete(record)
    commit(db.session, "settlement delete")
