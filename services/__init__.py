"""Account services and their wiring."""

from __future__ import annotations

from flask import Flask, current_app

from storage.local_storage import LocalStorage

EXTENSION_KEY = "accounts"


def init_app(app: Flask):
    """Build the account services from ``app.config`` and register them."""

    from services.accounts import AccountLifecycle
    from services.avatars import AvatarPipeline
    from services.credentials import CredentialVault
    from services.mailer import Mailer
    from services.tokens import TokenIssuer
    from services.verification import VerificationFlow

    config = app.config
    avatars = AvatarPipeline(
        LocalStorage(config["AVATAR_DIR"]),
        config["PUBLIC_BASE_URL"],
        size=config["AVATAR_SIZE"],
        extensions=config["AVATAR_ALLOWED_EXTENSIONS"],
    )
    lifecycle = AccountLifecycle(
        CredentialVault(config["PASSWORD_HASH_METHOD"]),
        TokenIssuer(config["JWT_ACCESS_TOKEN_EXPIRES"]),
        VerificationFlow(Mailer.from_config(config)),
        avatars,
        subscription_tiers=config["SUBSCRIPTION_TIERS"],
        default_subscription=config["DEFAULT_SUBSCRIPTION"],
        purge_avatars_on_remove=config["AVATAR_PURGE_ON_REMOVE"],
    )
    app.extensions[EXTENSION_KEY] = lifecycle
    return lifecycle


def get_accounts():
    """Return the ``AccountLifecycle`` of the current application."""

    return current_app.extensions[EXTENSION_KEY]
