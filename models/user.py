"""User model definition."""

import uuid
from datetime import datetime

from config import Config

from . import db


def _new_id() -> str:
    return uuid.uuid4().hex


class User(db.Model):
    """Represents a registered account."""

    __tablename__ = "users"

    id = db.Column(db.String(32), primary_key=True, default=_new_id)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    is_verified = db.Column(
        db.Boolean,
        nullable=False,
        default=False,
        server_default=db.false(),
    )
    verification_token = db.Column(db.String(64), unique=True, nullable=True)
    token = db.Column(db.Text, nullable=True)
    subscription = db.Column(
        db.String(32),
        nullable=False,
        default=Config.DEFAULT_SUBSCRIPTION,
        server_default=db.text(f"'{Config.DEFAULT_SUBSCRIPTION}'"),
    )
    avatar_url = db.Column(db.String(512), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict[str, object]:
        """Return the public summary of the account."""

        return {
            "id": self.id,
            "email": self.email,
            "subscription": self.subscription,
            "avatar_url": self.avatar_url,
            "is_verified": self.is_verified,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email}>"
