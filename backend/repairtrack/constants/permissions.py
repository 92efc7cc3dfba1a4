"""Central enum-like definitions for staff roles and permission codes.
Extend cautiously; role names are stored verbatim in user_roles.role.
"""
from __future__ import annotations
from typing import List, Dict

STAFF_ROLES = ['ADMIN', 'THEKE', 'TECHNIKER', 'BUCHHALTUNG', 'FILIALLEITER']

# Permission required to trigger staff-side KVA tooling (reminder batch)
PERM_KVA_MANAGE = 'RPR.MANAGE'

ROLE_PERMISSIONS: Dict[str, List[str]] = {
    'ADMIN': ['RPR.READ', PERM_KVA_MANAGE],
    'FILIALLEITER': ['RPR.READ', PERM_KVA_MANAGE],
    'THEKE': ['RPR.READ', PERM_KVA_MANAGE],
    'TECHNIKER': ['RPR.READ'],
    'BUCHHALTUNG': ['RPR.READ'],
}


def permissions_for_roles(roles: List[str]) -> List[str]:
    codes = set()
    for role in roles:
        codes.update(ROLE_PERMISSIONS.get(role, []))
    return sorted(codes)
