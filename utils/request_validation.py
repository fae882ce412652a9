"""Utilities for validating incoming Flask requests."""

from __future__ import annotations

from typing import Callable

from flask import Request
from werkzeug.exceptions import BadRequest

from utils.errors import ValidationError


def parse_json_request(
    req: Request,
    *,
    allow_empty: bool = False,
) -> dict:
    """Return the parsed JSON body or raise a 400 error.

    With ``allow_empty`` a request without a body yields ``{}``.
    """

    if allow_empty and not req.get_data():
        return {}

    if not req.is_json:
        raise ValidationError("Request content type must be application/json.")

    try:
        data = req.get_json(silent=False)
    except BadRequest:
        raise ValidationError("Request JSON body could not be parsed.")
    if data is None:
        raise ValidationError("Request JSON body is required.")

    if not isinstance(data, dict):
        raise ValidationError("Request JSON payload must be an object.")

    if not data and not allow_empty:
        raise ValidationError("Request JSON body must not be empty.")

    return data


def require_valid(check: Callable[..., str | None], *args) -> None:
    """Run a validator and raise ``ValidationError`` with its message."""

    message = check(*args)
    if message:
        raise ValidationError(message)
