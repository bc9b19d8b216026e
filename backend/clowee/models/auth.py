from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


ROLE_SUPER_ADMIN = "super_admin"
ROLE_ADMIN = "admin"
ROLE_ACCOUNTANT = "accountant"
ALL_ROLES = (ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_ACCOUNTANT)


class User(db.Model):
    """
    Operator account used for attribution.

    Every history row, counter reading, settlement and invoice records the
    user who created it. Sign-in is handled outside this service.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(32), nullable=False, default=ROLE_ADMIN)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
