from __future__ import annotations

from ..extensions import db
from ..timestamps import format_z


class Admin(db.Model):
    """
    Console administrator credentials.

    Login looks up exactly one active row by username (case-sensitive exact
    match) and verifies the bcrypt hash. Inactive admins are treated as if
    the row did not exist.
    """
    __tablename__ = "admin"
    __table_args__ = (
        db.UniqueConstraint("username", name="uq_admin_username"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    username = db.Column(db.String(64), nullable=False, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    email = db.Column(db.String(255), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        # password_hash never leaves the server
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "is_active": self.is_active,
            "created_at": format_z(self.created_at),
            "updated_at": format_z(self.updated_at),
        }
