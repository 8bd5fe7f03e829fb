"""Input validation — rejects malformed ids, limits and descriptions before any request is sent."""

import math
import re

from planmaker.errors import InputFormatError

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def is_uuid(value) -> bool:
    """Return True if value is a UUID-shaped string (any version, any case)."""
    return isinstance(value, str) and bool(_UUID_RE.match(value))


def validate_uuid(value: str) -> str:
    """Return value unchanged if it is UUID-shaped.

    Raises InputFormatError otherwise.
    """
    if not is_uuid(value):
        raise InputFormatError(
            f'Invalid UUID format: "{value}". '
            f"Expected format: xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx"
        )
    return value


def validate_limit(limit, ceiling: int) -> int:
    """Validate a pagination limit: a positive finite integer no larger than ceiling."""
    if (
        isinstance(limit, bool)
        or not isinstance(limit, (int, float))
        or not math.isfinite(limit)
        or limit != int(limit)
        or limit < 1
        or limit > ceiling
    ):
        raise InputFormatError(f"Invalid limit: {limit}. Limit must be between 1 and {ceiling}.")
    return int(limit)


def validate_positive(name: str, value) -> float:
    """Validate a polling parameter: finite and strictly positive."""
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or not math.isfinite(value)
        or value <= 0
    ):
        raise InputFormatError(f"{name} must be a positive number")
    return value


def validate_description(description: str) -> str:
    """Planner descriptions must contain some text; surrounding whitespace is dropped."""
    if not isinstance(description, str) or not description.strip():
        raise InputFormatError("Description is required and cannot be empty.")
    return description.strip()
