from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Operator(db.Model):
    """
    Person allowed to ring sales and manage stock.

    WHY: Every sale must be attributable. Sales reference the operator
    resolved from the session token, never one named in a request body.
    """
    __tablename__ = "operators"
    __table_args__ = (
        db.UniqueConstraint("login", name="uq_operators_login"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(120), nullable=False)
    login = db.Column(db.String(64), nullable=False, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<Operator id={self.id} login={self.login!r}>"

    def to_public_dict(self) -> dict:
        return {"id": self.id, "name": self.name}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "login": self.login,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }
