# Overview: Aggregate figures over saved settlement records for the dashboard.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Machine, SettlementRecord
from ..time_utils import parse_optional_date, to_iso_date
from .counter_service import parse_period
from .storage import storage_errors


def settlement_summary(start=None, end=None) -> dict:
    """
    Totals over settlements whose end_date falls in [start, end].

    Either bound may be omitted. Amounts are raw floats; formatting is left to
    the presentation layer.
    """
    start_day = parse_optional_date(start, "start")
    end_day = parse_optional_date(end, "end")
    if start_day and end_day:
        parse_period(start_day, end_day)

    totals_query = db.session.query(
        func.count(SettlementRecord.id),
        func.coalesce(func.sum(SettlementRecord.total_income), 0.0),
        func.coalesce(func.sum(SettlementRecord.net_payable), 0.0),
        func.coalesce(func.sum(SettlementRecord.profit_share_amount), 0.0),
        func.coalesce(func.sum(SettlementRecord.total_coins), 0),
        func.coalesce(func.sum(SettlementRecord.total_prizes), 0),
    )
    location_query = db.session.query(
        Machine.location,
        func.count(SettlementRecord.id),
        func.coalesce(func.sum(SettlementRecord.total_income), 0.0),
        func.coalesce(func.sum(SettlementRecord.net_payable), 0.0),
    ).join(Machine, Machine.id == SettlementRecord.machine_id)

    if start_day:
        totals_query = totals_query.filter(SettlementRecord.end_date >= start_day)
        location_query = location_query.filter(SettlementRecord.end_date >= start_day)
    if end_day:
        totals_query = totals_query.filter(SettlementRecord.end_date <= end_day)
        location_query = location_query.filter(SettlementRecord.end_date <= end_day)

    with storage_errors("settlement summary"):
        count, income, payable, clowee_share, coins, prizes = totals_query.one()
        by_location = location_query.group_by(Machine.location).order_by(Machine.location.asc()).all()
        active_machines = db.session.query(Machine).filter(Machine.is_active.is_(True)).count()

    return {
        "start": to_iso_date(start_day),
        "end": to_iso_date(end_day),
        "settlement_count": int(count),
        "active_machines": active_machines,
        "total_coins": int(coins),
        "total_prizes": int(prizes),
        "total_income": float(income),
        "total_net_payable": float(payable),
        "total_clowee_share": float(clowee_share),
        "by_location": [
            {
                "location": location,
                "settlement_count": int(n),
                "total_income": float(loc_income),
                "total_net_payable": float(loc_payable),
            }
            for location, n, loc_income, loc_payable in by_location
        ],
    }
