"""
Text Processing Utilities
------------------------
Normalization helpers for the values that cross system boundaries. The email
address is the only identity key shared by System A and System B, so it must
be normalized identically everywhere before it is used for a lookup or a join.
"""

import re
from typing import Any, Optional

from unified_customer.core.exceptions import InvalidIdentity

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str) -> bool:
    """Check an already-normalized email against the accepted pattern."""
    return bool(EMAIL_PATTERN.match(email))


def normalize_email(email: Any) -> str:
    """
    Normalize an email address into the join key used across both systems.

    The value is trimmed and lower-cased, then validated.

    Args:
        email: The raw email as received from a caller or a source system

    Returns:
        str: The normalized email

    Raises:
        InvalidIdentity: If the value is missing or not a valid email address
    """
    if not isinstance(email, str):
        raise InvalidIdentity(email)

    normalized = email.strip().lower()
    if not is_valid_email(normalized):
        raise InvalidIdentity(email)
    return normalized


def blank_to_none(value: Optional[str]) -> Optional[str]:
    """Collapse empty or whitespace-only strings to None."""
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value
