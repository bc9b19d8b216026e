# Overview: Time-versioned machine settings: as-of resolution and history management.

"""
Settings resolution rules (authoritative)

- A history row applies from its effective_date onwards.
- The value of a field "as of D" is the history row with the latest
  effective_date <= D. Rows sharing that date are ordered by created_at,
  then id; the most recently written row wins.
- With no qualifying row the machine's current column value applies.
- Storage failures surface as StorageError; there is no silent fallback.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date

from ..extensions import db
from ..errors import NotFoundError
from ..models import Machine, MachineSettingHistory
from ..settings_catalog import (
    SETTINGS_CATALOG,
    SETTING_FIELDS,
    SHARE_FIELDS,
    FieldDescriptor,
    get_descriptor,
    validate_share_total,
)
from ..time_utils import parse_iso_date, to_iso_date, today
from .storage import commit, storage_errors


@dataclass(frozen=True)
class SettingsSnapshot:
    """Every catalogued setting of one machine, resolved for one date."""
    machine_id: int
    as_of: date
    coin_price: float
    doll_price: float
    electricity_cost: float
    vat_percentage: float
    maintenance_percentage: float
    owner_profit_share_percentage: float
    clowee_profit_share_percentage: float
    duration: str

    def to_dict(self) -> dict:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["as_of"] = to_iso_date(self.as_of)
        return data

    def formatted(self) -> dict[str, str]:
        return {name: SETTINGS_CATALOG[name].format(getattr(self, name)) for name in SETTING_FIELDS}


class SettingsResolver:
    """
    Resolves effective machine settings for a date.

    Constructed with the session it reads from, so tests and callers can run
    isolated instances side by side.
    """

    def __init__(self, session):
        self.session = session

    def get_machine(self, machine_id: int) -> Machine:
        with storage_errors("machine lookup"):
            machine = self.session.get(Machine, machine_id)
        if machine is None:
            raise NotFoundError("Machine not found", {"machine_id": machine_id})
        return machine

    def _latest_history(self, machine_id: int, field_name: str, as_of: date) -> MachineSettingHistory | None:
        with storage_errors("settings history lookup"):
            return (
                self.session.query(MachineSettingHistory)
                .filter(
                    MachineSettingHistory.machine_id == machine_id,
                    MachineSettingHistory.field_name == field_name,
                    MachineSettingHistory.effective_date <= as_of,
                )
                .order_by(
                    MachineSettingHistory.effective_date.desc(),
                    MachineSettingHistory.created_at.desc(),
                    MachineSettingHistory.id.desc(),
                )
                .first()
            )

    def _resolve(self, machine: Machine, descriptor: FieldDescriptor, as_of: date):
        row = self._latest_history(machine.id, descriptor.name, as_of)
        if row is not None:
            return descriptor.from_text(row.field_value)
        current = getattr(machine, descriptor.name)
        return float(current) if descriptor.is_numeric else current

    def resolve_setting(self, machine_id: int, field_name: str, as_of):
        descriptor = get_descriptor(field_name)
        as_of = parse_iso_date(as_of, "as_of")
        machine = self.get_machine(machine_id)
        return self._resolve(machine, descriptor, as_of)

    def resolve_all_settings(self, machine_id: int, as_of) -> SettingsSnapshot:
        as_of = parse_iso_date(as_of, "as_of")
        machine = self.get_machine(machine_id)
        values = {
            name: self._resolve(machine, descriptor, as_of)
            for name, descriptor in SETTINGS_CATALOG.items()
        }
        return SettingsSnapshot(machine_id=machine.id, as_of=as_of, **values)


def add_machine_setting(
    machine_id: int,
    field_name: str,
    field_value,
    effective_date,
    user_id: int | None,
) -> MachineSettingHistory:
    """
    Append a setting value effective from effective_date.

    The first history row for a field is preceded by a baseline row carrying
    the machine's previous column value from its installation date, so
    earlier periods keep resolving to what was in force then. Afterwards the
    machine's current column is set to the value in force today, so backdated
    and future-dated entries never leave it stale.
    """
    descriptor = get_descriptor(field_name)
    value = descriptor.parse(field_value)
    effective = parse_iso_date(effective_date, "effective_date")

    machine = SettingsResolver(db.session).get_machine(machine_id)

    if descriptor.name in SHARE_FIELDS:
        shares = {name: getattr(machine, name) for name in SHARE_FIELDS}
        shares[descriptor.name] = value
        validate_share_total(*(shares[name] for name in SHARE_FIELDS))

    with storage_errors("settings history lookup"):
        has_history = (
            db.session.query(MachineSettingHistory.id)
            .filter_by(machine_id=machine.id, field_name=descriptor.name)
            .first()
            is not None
        )

    row = MachineSettingHistory(
        machine_id=machine.id,
        field_name=descriptor.name,
        field_value=descriptor.to_text(value),
        effective_date=effective,
        created_by_user_id=user_id,
    )
    with storage_errors("settings history insert", session=db.session):
        if not has_history and machine.installation_date and effective > machine.installation_date:
            db.session.add(
                MachineSettingHistory(
                    machine_id=machine.id,
                    field_name=descriptor.name,
                    field_value=descriptor.to_text(getattr(machine, descriptor.name)),
                    effective_date=machine.installation_date,
                    created_by_user_id=user_id,
                )
            )
        db.session.add(row)
        db.session.flush()
        # Keep the current column equal to what is in force today, whatever
        # order the history rows were entered in
        current = SettingsResolver(db.session)._resolve(machine, descriptor, today())
        setattr(machine, descriptor.name, current)
        db.session.flush()
    commit(db.session, "settings history insert")
    return row


def get_setting_history(machine_id: int, field_name: str) -> list[MachineSettingHistory]:
    descriptor = get_descriptor(field_name)
    SettingsResolver(db.session).get_machine(machine_id)
    with storage_errors("settings history lookup"):
        return (
            db.session.query(MachineSettingHistory)
            .filter_by(machine_id=machine_id, field_name=descriptor.name)
            .order_by(MachineSettingHistory.effective_date.desc(), MachineSettingHistory.id.desc())
            .all()
        )


def get_all_settings_history(machine_id: int) -> list[MachineSettingHistory]:
    SettingsResolver(db.session).get_machine(machine_id)
    with storage_errors("settings history lookup"):
        return (
            db.session.query(MachineSettingHistory)
            .filter_by(machine_id=machine_id)
            .order_by(MachineSettingHistory.effective_date.desc(), MachineSettingHistory.id.desc())
            .all()
        )
