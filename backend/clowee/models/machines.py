from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z


class Machine(db.Model):
    """
    A physical claw machine installed at a branch.

    The settings columns hold the *current* value of each setting. Historical
    values live in machine_settings_history and win over these columns for any
    date they cover; see services.machine_settings_service.

    Machines are never hard-deleted by the application: is_active=False
    removes them from pickers while keeping their settlements intact.
    """
    __tablename__ = "machines"
    __table_args__ = (
        db.Index("ix_machines_active_name", "is_active", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    location = db.Column(db.String(255), nullable=False)
    installation_date = db.Column(db.Date, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    # Current settings values (BDT amounts and percentages as floats)
    coin_price = db.Column(db.Float, nullable=False)
    doll_price = db.Column(db.Float, nullable=False)
    electricity_cost = db.Column(db.Float, nullable=False, default=0.0)
    vat_percentage = db.Column(db.Float, nullable=False, default=0.0)
    maintenance_percentage = db.Column(db.Float, nullable=False, default=0.0)
    owner_profit_share_percentage = db.Column(db.Float, nullable=False, default=0.0)
    clowee_profit_share_percentage = db.Column(db.Float, nullable=False, default=0.0)
    # half_month | full_month
    duration = db.Column(db.String(16), nullable=False, default="full_month")

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Machine id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "installation_date": to_iso_date(self.installation_date),
            "is_active": self.is_active,
            "coin_price": self.coin_price,
            "doll_price": self.doll_price,
            "electricity_cost": self.electricity_cost,
            "vat_percentage": self.vat_percentage,
            "maintenance_percentage": self.maintenance_percentage,
            "owner_profit_share_percentage": self.owner_profit_share_percentage,
            "clowee_profit_share_percentage": self.clowee_profit_share_percentage,
            "duration": self.duration,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class MachineSettingHistory(db.Model):
    """
    Immutable, append-only fact: from effective_date on, field_name had field_value.

    Values are stored as text and parsed through the settings catalogue.
    """
    __tablename__ = "machine_settings_history"
    __table_args__ = (
        db.Index("ix_settings_history_lookup", "machine_id", "field_name", "effective_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    machine_id = db.Column(db.Integer, db.ForeignKey("machines.id"), nullable=False, index=True)
    field_name = db.Column(db.String(64), nullable=False)
    field_value = db.Column(db.Text, nullable=False)
    effective_date = db.Column(db.Date, nullable=False)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    machine = db.relationship("Machine", backref=db.backref("settings_history", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "machine_id": self.machine_id,
            "field_name": self.field_name,
            "field_value": self.field_value,
            "effective_date": to_iso_date(self.effective_date),
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }


class MachineChangeLog(db.Model):
    """
    Best-effort log of direct edits to a machine row.
    """
    __tablename__ = "machine_change_logs"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    machine_id = db.Column(db.Integer, db.ForeignKey("machines.id"), nullable=False, index=True)
    field = db.Column(db.String(64), nullable=False)
    old_value = db.Column(db.Text, nullable=True)
    new_value = db.Column(db.Text, nullable=True)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "machine_id": self.machine_id,
            "field": self.field,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }
