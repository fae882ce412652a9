"""Account lifecycle: registration through removal."""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Mapping, Sequence, TypeVar
from urllib.parse import urlencode

from config import Config
from models.user import User
from services import users
from services.avatars import AvatarPipeline
from services.credentials import CredentialVault
from services.tokens import TokenIssuer
from services.verification import VerificationFlow, new_verification_token
from utils.errors import Conflict, NotFound, Unauthorized, ValidationError
from utils.validators import check_subscription

logger = logging.getLogger(__name__)

T = TypeVar("T")

GRAVATAR_BASE = "https://s.gravatar.com/avatar/"


def gravatar_url(email: str, size: int = 250) -> str:
    """Placeholder avatar derived from the email hash."""

    digest = hashlib.md5(email.strip().lower().encode("utf-8")).hexdigest()
    return GRAVATAR_BASE + digest + "?" + urlencode({"s": size, "r": "pg", "d": "mp"})


def list_page(items: Sequence[T], start_index: int, end_index: int) -> list[T]:
    """Slice an already fetched listing; out-of-range bounds shorten the page."""

    start_index = max(start_index, 0)
    end_index = max(end_index, start_index)
    return list(items[start_index:end_index])


class AccountLifecycle:
    """Composes credentials, tokens, verification, and avatars over ``users``."""

    def __init__(
        self,
        vault: CredentialVault,
        tokens: TokenIssuer,
        verification: VerificationFlow,
        avatars: AvatarPipeline,
        *,
        subscription_tiers: Sequence[str] = Config.SUBSCRIPTION_TIERS,
        default_subscription: str = Config.DEFAULT_SUBSCRIPTION,
        purge_avatars_on_remove: bool = False,
    ):
        self.vault = vault
        self.tokens = tokens
        self.verification = verification
        self.avatars = avatars
        self.subscription_tiers = tuple(subscription_tiers)
        self.default_subscription = default_subscription
        self.purge_avatars_on_remove = purge_avatars_on_remove

    def register(self, email: str, password: str) -> User:
        if users.get_by_email(email) is not None:
            raise Conflict()

        verification_token = new_verification_token()
        user = users.create(
            email=email,
            password_hash=self.vault.hash(password),
            verification_token=verification_token,
            subscription=self.default_subscription,
            avatar_url=gravatar_url(email, self.avatars.size),
        )
        self.verification.notify(email, verification_token)
        logger.info("Registered user %s", user.id)
        return user

    def verify(self, verification_token: str) -> User:
        return self.verification.consume(verification_token)

    def reverify(self, email: str) -> str:
        return self.verification.reissue(email)

    def login(self, email: str, password: str) -> tuple[str, User]:
        """Return a fresh session token and the account it belongs to."""

        user = users.get_by_email(email)
        if (
            user is None
            or not self.vault.verify(password, user.password_hash)
            or not user.is_verified
        ):
            raise Unauthorized()

        token = self.tokens.issue(user)
        user = self.tokens.store(user, token)
        logger.info("User %s logged in", user.id)
        return token, user

    def logout(self, user_id: str) -> None:
        self.tokens.invalidate(user_id)
        logger.info("User %s logged out", user_id)

    def update_profile(self, user_id: str, fields: Mapping[str, Any]) -> User:
        return users.update(user_id, fields)

    def update_subscription(self, user_id: str, tier: str) -> User:
        message = check_subscription(tier, self.subscription_tiers)
        if message:
            raise ValidationError(message)
        return users.update(user_id, {"subscription": tier})

    def update_avatar(self, user_id: str, tmp_path, original_filename: str) -> str:
        return self.avatars.replace(user_id, tmp_path, original_filename)

    def remove(self, user_id: str) -> None:
        users.remove(user_id)
        if self.purge_avatars_on_remove:
            self.avatars.purge(user_id)
        logger.info("Removed user %s", user_id)

    def list_all(self) -> list[User]:
        return users.get_all()

    def list_page(self, items: Sequence[T], start_index: int, end_index: int) -> list[T]:
        return list_page(items, start_index, end_index)

    def get_one(self, user_id: str, requester_id: str | None = None) -> User:
        # Any authenticated requester may read any account.
        user = users.get_one(user_id)
        if user is None:
            raise NotFound()
        return user
