from __future__ import annotations
"""Reusable validation helpers for the public request body.

Every failure raises InvalidRequest (400) with a customer-readable message.
"""
from typing import Any, Iterable, Optional
from repairtrack.errors import InvalidRequest


def validate_choice(value: Any, allowed: Iterable[str], message: str) -> str:
    """Validate that value is one of allowed.

    Returns the value (to enable inline usage) or raises 400.
    """
    if not isinstance(value, str) or value not in allowed:
        raise InvalidRequest(description=message)
    return value


def optional_choice(value: Any, allowed: Iterable[str], message: str) -> Optional[str]:
    if value is None:
        return None
    return validate_choice(value, allowed, message)


def require_bool(value: Any, message: str) -> bool:
    if not isinstance(value, bool):
        raise InvalidRequest(description=message)
    return value

__all__ = ['validate_choice', 'optional_choice', 'require_bool']
