# Overview: Cumulative counter readings and the per-period coin/prize delta.

"""
Counter readings are odometer-style: each report stores the machine's total
coin and prize counters on that date, not the day's sales.

Period delta rules (authoritative)

- End reading: latest report_date <= period end. Missing -> NoDataForPeriodError.
- Baseline reading: latest report_date strictly before period start.
  Missing -> zero baseline (the machine's first period counts from install).
- coins/prizes = max(0, end - baseline), each clamped independently so a
  counter reset or corrected entry never yields a negative delta.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from ..extensions import db
from ..errors import NoDataForPeriodError, ValidationError
from ..models import CounterReading
from ..time_utils import parse_iso_date, parse_optional_date, to_iso_date
from .machine_settings_service import SettingsResolver
from .storage import commit, storage_errors


@dataclass(frozen=True)
class PeriodDelta:
    machine_id: int
    start_date: date
    end_date: date
    coins: int
    prizes: int
    end_report_date: date
    baseline_report_date: date | None

    def to_dict(self) -> dict:
        return {
            "machine_id": self.machine_id,
            "start_date": to_iso_date(self.start_date),
            "end_date": to_iso_date(self.end_date),
            "coins": self.coins,
            "prizes": self.prizes,
            "end_report_date": to_iso_date(self.end_report_date),
            "baseline_report_date": to_iso_date(self.baseline_report_date),
        }


def parse_period(start_date, end_date) -> tuple[date, date]:
    start = parse_iso_date(start_date, "start_date")
    end = parse_iso_date(end_date, "end_date")
    if start > end:
        raise ValidationError(
            "start_date must be on or before end_date",
            {"start_date": to_iso_date(start), "end_date": to_iso_date(end)},
        )
    return start, end


class CounterDeltaResolver:
    """Computes coins/prizes sold in a period from two cumulative readings."""

    def __init__(self, session, settings_resolver: SettingsResolver | None = None):
        self.session = session
        # Reused for its machine lookup so both resolvers agree on NotFound
        self.settings_resolver = settings_resolver or SettingsResolver(session)

    def _latest_reading(self, machine_id: int, *criteria) -> CounterReading | None:
        with storage_errors("counter reading lookup"):
            return (
                self.session.query(CounterReading)
                .filter(CounterReading.machine_id == machine_id, *criteria)
                .order_by(CounterReading.report_date.desc())
                .first()
            )

    def resolve_period_delta(self, machine_id: int, start_date, end_date) -> PeriodDelta:
        start, end = parse_period(start_date, end_date)
        machine = self.settings_resolver.get_machine(machine_id)

        end_reading = self._latest_reading(machine.id, CounterReading.report_date <= end)
        if end_reading is None:
            raise NoDataForPeriodError(
                "No counter readings found at or before the period end",
                {"machine_id": machine.id, "end_date": to_iso_date(end)},
            )

        baseline = self._latest_reading(machine.id, CounterReading.report_date < start)
        baseline_coins = baseline.coin_count if baseline is not None else 0
        baseline_prizes = baseline.prize_count if baseline is not None else 0

        return PeriodDelta(
            machine_id=machine.id,
            start_date=start,
            end_date=end,
            coins=max(0, (end_reading.coin_count or 0) - (baseline_coins or 0)),
            prizes=max(0, (end_reading.prize_count or 0) - (baseline_prizes or 0)),
            end_report_date=end_reading.report_date,
            baseline_report_date=baseline.report_date if baseline is not None else None,
        )


def _parse_count(name: str, value) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a non-negative integer")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value < 0:
        raise ValidationError(f"{name} must be a non-negative integer", {"field": name, "value": value})
    return value


def record_counter_reading(
    machine_id: int,
    report_date,
    coin_count,
    prize_count,
    user_id: int | None,
) -> tuple[CounterReading, bool]:
    """
    Store a machine's counters for a date.

    A second submission for the same machine and date updates the existing
    reading in place. Returns (reading, created).
    """
    report_day = parse_iso_date(report_date, "report_date")
    coins = _parse_count("coin_count", coin_count)
    prizes = _parse_count("prize_count", prize_count)

    machine = SettingsResolver(db.session).get_machine(machine_id)

    with storage_errors("counter reading lookup"):
        reading = (
            db.session.query(CounterReading)
            .filter_by(machine_id=machine.id, report_date=report_day)
            .first()
        )

    created = reading is None
    if created:
        reading = CounterReading(
            machine_id=machine.id,
            report_date=report_day,
            coin_count=coins,
            prize_count=prizes,
            created_by_user_id=user_id,
        )
        db.session.add(reading)
    else:
        reading.coin_count = coins
        reading.prize_count = prizes

    commit(db.session, "counter reading save")
    return reading, created


def list_counter_readings(machine_id: int, start=None, end=None) -> list[CounterReading]:
    start_day = parse_optional_date(start, "start")
    end_day = parse_optional_date(end, "end")
    SettingsResolver(db.session).get_machine(machine_id)

    query = db.session.query(CounterReading).filter(CounterReading.machine_id == machine_id)
    if start_day:
        query = query.filter(CounterReading.report_date >= start_day)
    if end_day:
        query = query.filter(CounterReading.report_date <= end_day)

    with storage_errors("counter reading lookup"):
        return query.order_by(CounterReading.report_date.desc()).all()
