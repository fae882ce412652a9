"""Session token issuance and stored-token checks."""

from __future__ import annotations

import logging
from datetime import timedelta

from flask_jwt_extended import create_access_token
from jwt.exceptions import PyJWTError

from models.user import User
from services import users
from utils.errors import InternalFailure

logger = logging.getLogger(__name__)

SESSION_LIFETIME = timedelta(hours=1)


class TokenIssuer:
    """Mints signed session tokens and keeps the stored copy authoritative.

    A token is only honoured while it equals the ``token`` stored on the
    account it names; signature and expiry are checked by flask-jwt-extended
    before that comparison.
    """

    def __init__(self, expires_delta: timedelta = SESSION_LIFETIME):
        self.expires_delta = expires_delta

    def issue(self, user: User) -> str:
        """Sign a token carrying the account id, email, and subscription."""

        try:
            return create_access_token(
                identity=user.id,
                additional_claims={
                    "email": user.email,
                    "subscription": user.subscription,
                },
                expires_delta=self.expires_delta,
            )
        except (PyJWTError, TypeError, ValueError, RuntimeError):
            logger.exception("Signing a session token for user %s failed", user.id)
            raise InternalFailure()

    def store(self, user: User, token: str) -> User:
        return users.update(user.id, {"token": token})

    def invalidate(self, user_id: str) -> User:
        return users.update(user_id, {"token": None})

    def resolve(self, user_id: str | None, presented: str | None) -> User | None:
        """Return the account whose stored token is ``presented``."""

        if not user_id or not presented:
            return None
        user = users.get_one(user_id)
        if user is None or user.token != presented:
            return None
        return user
