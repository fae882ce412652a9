"""Application configuration module."""

import os
from datetime import timedelta
from pathlib import Path


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


class Config:
    """Base configuration for the Flask application."""

    # Core
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", SECRET_KEY)
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///app.db")
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD", "scrypt")

    # Public address used to build avatar and verification links
    PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:5000")

    # Avatars
    AVATAR_DIR = os.getenv("AVATAR_DIR", str(Path("workspace") / "avatars"))
    UPLOAD_TMP_DIR = os.getenv("UPLOAD_TMP_DIR", str(Path("workspace") / "tmp"))
    AVATAR_SIZE = 250
    AVATAR_ALLOWED_EXTENSIONS = os.getenv(
        "AVATAR_ALLOWED_EXTENSIONS", "jpg,jpeg,png,gif,bmp"
    )
    AVATAR_PURGE_ON_REMOVE = _as_bool(os.getenv("AVATAR_PURGE_ON_REMOVE"))
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", 5 * 1024 * 1024))

    # Subscriptions
    SUBSCRIPTION_TIERS = ("starter", "pro", "business")
    DEFAULT_SUBSCRIPTION = "starter"

    # Outbound mail
    MAIL_SERVER = os.getenv("MAIL_SERVER", "localhost")
    MAIL_PORT = int(os.getenv("MAIL_PORT", 25))
    MAIL_USE_TLS = _as_bool(os.getenv("MAIL_USE_TLS"))
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "no-reply@localhost")
    MAIL_MAX_ATTEMPTS = int(os.getenv("MAIL_MAX_ATTEMPTS", 3))
    MAIL_SUPPRESS_SEND = _as_bool(os.getenv("MAIL_SUPPRESS_SEND"))
    VERIFY_URL_TEMPLATE = os.getenv(
        "VERIFY_URL_TEMPLATE", "{base_url}/api/users/verify/{token}"
    )

    # CORS
    _raw_origins = os.getenv("ORIGINS", "*")
    if _raw_origins.strip() == "*":
        CORS_ORIGINS = "*"
    else:
        CORS_ORIGINS = [o.strip() for o in _raw_origins.split(",") if o.strip()]
