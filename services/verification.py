"""Email verification tokens."""

from __future__ import annotations

import logging
import secrets

from models.user import User
from services import users
from services.mailer import Mailer
from utils.errors import AlreadyVerified, NotFound

logger = logging.getLogger(__name__)

TOKEN_BYTES = 16


def new_verification_token() -> str:
    """Return a random url-safe token (22 characters)."""

    return secrets.token_urlsafe(TOKEN_BYTES)


class VerificationFlow:
    """Issues, re-issues, and consumes single-use verification tokens.

    An account holds at most one pending token. Re-issuing overwrites it, so
    concurrent re-issues resolve last-writer-wins.
    """

    def __init__(self, mailer: Mailer):
        self.mailer = mailer

    def notify(self, email: str, token: str) -> None:
        """Hand the token to the mailer without waiting on delivery."""

        try:
            self.mailer.send(email, token)
        except RuntimeError:
            logger.exception("Could not queue verification email for %s", email)

    def issue(self, user: User) -> str:
        token = new_verification_token()
        users.update(user.id, {"verification_token": token})
        self.notify(user.email, token)
        return token

    def reissue(self, email: str) -> str:
        user = users.get_by_email(email)
        if user is None:
            raise NotFound()
        if user.is_verified:
            raise AlreadyVerified()
        token = self.issue(user)
        logger.info("Verification token reissued for user %s", user.id)
        return token

    def consume(self, token: str) -> User:
        user = users.get_by_verification_token(token) if token else None
        if user is None:
            raise NotFound()
        user = users.update(user.id, {"is_verified": True, "verification_token": None})
        logger.info("User %s verified", user.id)
        return user
