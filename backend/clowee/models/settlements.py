from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z


class SettlementRecord(db.Model):
    """
    Persisted "Pay to Clowee" settlement for one machine and period.

    Freezes the numbers at calculation time. Later settings-history
    changes never alter a saved record; net_payable is the authoritative
    amount owed.
    """
    __tablename__ = "pay_to_clowee"
    __table_args__ = (
        db.Index("ix_pay_to_clowee_machine_period", "machine_id", "start_date", "end_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    machine_id = db.Column(db.Integer, db.ForeignKey("machines.id"), nullable=False, index=True)
    # Snapshot so history stays readable after a machine is renamed
    machine_name = db.Column(db.String(255), nullable=False)

    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)

    total_coins = db.Column(db.Integer, nullable=False, default=0)
    total_prizes = db.Column(db.Integer, nullable=False, default=0)
    total_income = db.Column(db.Float, nullable=False, default=0.0)
    prize_cost = db.Column(db.Float, nullable=False, default=0.0)
    electricity_cost = db.Column(db.Float, nullable=False, default=0.0)
    vat_amount = db.Column(db.Float, nullable=False, default=0.0)
    maintenance_cost = db.Column(db.Float, nullable=False, default=0.0)
    profit_base = db.Column(db.Float, nullable=False, default=0.0)
    profit_share_amount = db.Column(db.Float, nullable=False, default=0.0)
    owner_profit_share_amount = db.Column(db.Float, nullable=False, default=0.0)
    total_amount = db.Column(db.Float, nullable=False, default=0.0)
    net_payable = db.Column(db.Float, nullable=False, default=0.0)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    machine = db.relationship("Machine", backref=db.backref("settlements", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "machine_id": self.machine_id,
            "machine_name": self.machine_name,
            "start_date": to_iso_date(self.start_date),
            "end_date": to_iso_date(self.end_date),
            "total_coins": self.total_coins,
            "total_prizes": self.total_prizes,
            "total_income": self.total_income,
            "prize_cost": self.prize_cost,
            "electricity_cost": self.electricity_cost,
            "vat_amount": self.vat_amount,
            "maintenance_cost": self.maintenance_cost,
            "profit_base": self.profit_base,
            "profit_share_amount": self.profit_share_amount,
            "owner_profit_share_amount": self.owner_profit_share_amount,
            "total_amount": self.total_amount,
            "net_payable": self.net_payable,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }


class Invoice(db.Model):
    """
    Invoice issued for exactly one settlement record.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.UniqueConstraint("pay_to_clowee_id", name="uq_invoices_settlement"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    pay_to_clowee_id = db.Column(db.Integer, db.ForeignKey("pay_to_clowee.id"), nullable=False)
    invoice_number = db.Column(db.String(64), nullable=False, unique=True, index=True)
    invoice_date = db.Column(db.Date, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    settlement = db.relationship("SettlementRecord", backref=db.backref("invoice", uselist=False, lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pay_to_clowee_id": self.pay_to_clowee_id,
            "invoice_number": self.invoice_number,
            "invoice_date": to_iso_date(self.invoice_date),
            "notes": self.notes,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class DocumentSequence(db.Model):
    """
    Counter backing human-readable document numbers.

    scope_key partitions a document type's numbering (invoices use the
    issue date, so numbering restarts every day).
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("document_type", "scope_key", name="uq_document_sequences_type_scope"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    document_type = db.Column(db.String(32), nullable=False)
    scope_key = db.Column(db.String(32), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
