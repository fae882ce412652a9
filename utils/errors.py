"""Account error taxonomy mapped onto werkzeug HTTP exceptions."""

from __future__ import annotations

from werkzeug import exceptions


class ValidationError(exceptions.BadRequest):
    """Malformed or disallowed input."""


class Conflict(exceptions.Conflict):
    """The email address is already registered."""

    description = "Email is already in use."


class NotFound(exceptions.NotFound):
    """No account matches the given id, email, or token."""

    description = "Not found."


class Unauthorized(exceptions.Unauthorized):
    """Bad credentials, an unverified account, or a stale session token."""

    description = "Email or password is wrong or user is not verified."


class AlreadyVerified(exceptions.BadRequest):
    """Re-verification was requested for a verified account."""

    description = "Verification has already been passed."


class InternalFailure(exceptions.InternalServerError):
    """Persistence, filesystem, or signing failure.

    The description is always generic; callers log the underlying error
    before raising.
    """

    description = "An unexpected error occurred."


__all__ = [
    "AlreadyVerified",
    "Conflict",
    "InternalFailure",
    "NotFound",
    "Unauthorized",
    "ValidationError",
]
