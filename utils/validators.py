"""Request field checks.

Each check returns a human-readable message when the input is rejected and
``None`` when it passes. Callers decide how to surface the message.
"""

from __future__ import annotations

import re
from typing import Iterable, Mapping

from werkzeug.utils import secure_filename

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z0-9-]{2,}$")
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 128
PROFILE_FIELDS = ("subscription", "avatar_url")


def check_email(email: object) -> str | None:
    if not isinstance(email, str) or not email.strip():
        return "Email is required."
    if not EMAIL_PATTERN.match(email.strip()):
        return "Email must be a valid email address."
    return None


def check_password(password: object) -> str | None:
    if not isinstance(password, str) or not password:
        return "Password is required."
    if not PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH:
        return (
            f"Password must be between {PASSWORD_MIN_LENGTH} and "
            f"{PASSWORD_MAX_LENGTH} characters."
        )
    return None


def check_credentials(payload: Mapping[str, object]) -> str | None:
    """Validate a register or login body."""

    return check_email(payload.get("email")) or check_password(payload.get("password"))


def check_reverify(payload: Mapping[str, object]) -> str | None:
    return check_email(payload.get("email"))


def check_logout(payload: Mapping[str, object] | None) -> str | None:
    if payload:
        return "Logout does not accept a request body."
    return None


def check_subscription(value: object, tiers: Iterable[str]) -> str | None:
    tiers = tuple(tiers)
    if value not in tiers:
        return "Subscription must be one of: {}.".format(", ".join(tiers))
    return None


def check_profile(payload: Mapping[str, object], tiers: Iterable[str]) -> str | None:
    """Validate a partial profile update."""

    if not payload:
        return "At least one field must be provided."
    unknown = sorted(key for key in payload if key not in PROFILE_FIELDS)
    if unknown:
        return "Fields cannot be updated: {}.".format(", ".join(unknown))
    if "subscription" in payload:
        message = check_subscription(payload["subscription"], tiers)
        if message:
            return message
    if "avatar_url" in payload:
        value = payload["avatar_url"]
        if not isinstance(value, str) or not value.strip():
            return "avatar_url must be a non-empty string."
    return None


def check_avatar_filename(filename: object, extensions: Iterable[str]) -> str | None:
    """Validate the original name of an uploaded avatar."""

    if not isinstance(filename, str) or not filename.strip():
        return "An avatar file is required."
    if secure_filename(filename) != filename:
        return "Avatar filename contains disallowed characters."
    if "." not in filename:
        return "Avatar filename must have an extension."
    extension = filename.rsplit(".", 1)[-1].lower()
    allowed = set(extensions)
    if extension not in allowed:
        return "File type not allowed. Allowed types: {}.".format(
            ", ".join(sorted(allowed))
        )
    return None
