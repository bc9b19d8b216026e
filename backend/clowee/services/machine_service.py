# Overview: Machine registration, direct edits and soft removal.

from __future__ import annotations

from ..extensions import db
from ..models import Machine, MachineChangeLog
from ..settings_catalog import SETTING_FIELDS
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_machine
from .machine_settings_service import SettingsResolver
from .storage import commit, storage_errors


MACHINE_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "location",
        "installation_date",
        *SETTING_FIELDS,
    },
    required_on_create={
        "name",
        "location",
        "installation_date",
        "coin_price",
        "doll_price",
        "electricity_cost",
        "owner_profit_share_percentage",
        "clowee_profit_share_percentage",
        "duration",
    },
)


def register_machine(payload: dict, user_id: int | None) -> Machine:
    """
    Create a machine from form data.

    VAT and maintenance percentages default to 0 when omitted.
    """
    patch = validate_payload(model=Machine, payload=payload, policy=MACHINE_POLICY, partial=False)
    enforce_rules_machine(patch)

    machine = Machine(created_by_user_id=user_id, is_active=True, **patch)
    db.session.add(machine)
    commit(db.session, "machine save")
    return machine


def get_machine(machine_id: int) -> Machine:
    return SettingsResolver(db.session).get_machine(machine_id)


def list_machines(include_inactive: bool = False) -> list[Machine]:
    query = db.session.query(Machine)
    if not include_inactive:
        query = query.filter(Machine.is_active.is_(True))
    with storage_errors("machine lookup"):
        return query.order_by(Machine.name.asc(), Machine.id.asc()).all()


def _as_text(value) -> str | None:
    if value is None:
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def update_machine(machine_id: int, payload: dict, user_id: int | None) -> Machine:
    """
    Direct edit of a machine row.

    Writes one machine_change_logs row per field whose value changed. Settings
    edited here change the current value only; to make a change effective from
    a specific date use machine_settings_service.add_machine_setting.
    """
    machine = get_machine(machine_id)
    patch = validate_payload(model=Machine, payload=payload, policy=MACHINE_POLICY, partial=True)
    enforce_rules_machine(patch, current=machine)

    for key, new_value in patch.items():
        old_value = getattr(machine, key)
        if old_value == new_value:
            continue
        db.session.add(
            MachineChangeLog(
                machine_id=machine.id,
                field=key,
                old_value=_as_text(old_value),
                new_value=_as_text(new_value),
                created_by_user_id=user_id,
            )
        )
        setattr(machine, key, new_value)

    commit(db.session, "machine update")
    return machine


def deactivate_machine(machine_id: int, user_id: int | None) -> Machine:
    machine = get_machine(machine_id)
    if machine.is_active:
        machine.is_active = False
        db.session.add(
            MachineChangeLog(
                machine_id=machine.id,
                field="is_active",
                old_value="True",
                new_value="False",
                created_by_user_id=user_id,
            )
        )
        commit(db.session, "machine deactivate")
    return machine


def list_change_logs(machine_id: int) -> list[MachineChangeLog]:
    get_machine(machine_id)
    with storage_errors("change log lookup"):
        return (
            db.session.query(MachineChangeLog)
            .filter_by(machine_id=machine_id)
            .order_by(MachineChangeLog.created_at.desc(), MachineChangeLog.id.desc())
            .all()
        )
