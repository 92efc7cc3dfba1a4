from __future__ import annotations
from typing import Set
from flask_jwt_extended import get_jwt


def current_permissions() -> Set[str]:
    claims = get_jwt()
    return set(claims.get('perms', []))


def has_permissions(*codes: str) -> bool:
    perms = current_permissions()
    return all(c in perms for c in codes)
