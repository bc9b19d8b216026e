from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z


class CounterReading(db.Model):
    """
    Cumulative odometer-style snapshot of a machine's coin and prize counters.

    One reading per machine per report_date; resubmitting a date updates the
    existing row. Counts for a period are the difference of two readings.
    """
    __tablename__ = "machine_counter_reports"
    __table_args__ = (
        db.UniqueConstraint("machine_id", "report_date", name="uq_counter_reports_machine_date"),
        db.Index("ix_counter_reports_machine_date", "machine_id", "report_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    machine_id = db.Column(db.Integer, db.ForeignKey("machines.id"), nullable=False)
    report_date = db.Column(db.Date, nullable=False)
    coin_count = db.Column(db.Integer, nullable=False, default=0)
    prize_count = db.Column(db.Integer, nullable=False, default=0)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "machine_id": self.machine_id,
            "report_date": to_iso_date(self.report_date),
            "coin_count": self.coin_count,
            "prize_count": self.prize_count,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
