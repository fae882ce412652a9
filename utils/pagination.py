"""Page/limit query parsing for listing endpoints."""

from __future__ import annotations

from typing import Mapping

from utils.errors import ValidationError

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def _positive_int(args: Mapping[str, str], name: str, default: int) -> int:
    raw = args.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer.")
    if value < 1:
        raise ValidationError(f"{name} must be greater than zero.")
    return value


def page_bounds(args: Mapping[str, str]) -> tuple[int, int]:
    """Return the ``(start_index, end_index)`` slice for ``page`` and ``limit``."""

    page = _positive_int(args, "page", DEFAULT_PAGE)
    limit = min(_positive_int(args, "limit", DEFAULT_LIMIT), MAX_LIMIT)
    start_index = (page - 1) * limit
    return start_index, start_index + limit
