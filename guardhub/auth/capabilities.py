"""
Capability matrix.

Routes declare the capability they need (``require_capability("clients:write")``)
and the guard checks the caller's role against this table, so role rules live
in one place instead of in each handler.
"""
from typing import Dict, FrozenSet

from ..models.models import UserRole


ADMIN = UserRole.admin.value
SUPERVISOR = UserRole.supervisor.value
OFFICER = UserRole.security_officer.value

ALL_ROLES: FrozenSet[str] = frozenset({ADMIN, SUPERVISOR, OFFICER})
MANAGERS: FrozenSet[str] = frozenset({ADMIN, SUPERVISOR})
ADMINS: FrozenSet[str] = frozenset({ADMIN})


CAPABILITIES: Dict[str, FrozenSet[str]] = {
    "dashboard:read": ALL_ROLES,
    # Staff
    "staff:read": ALL_ROLES,
    "staff:write": ADMINS,
    "staff:status": MANAGERS,
    # Clients & sites
    "clients:read": ALL_ROLES,
    "clients:write": MANAGERS,
    "clients:delete": ADMINS,
    "properties:read": ALL_ROLES,
    "properties:write": MANAGERS,
    "properties:delete": ADMINS,
    # Field work
    "incidents:read": ALL_ROLES,
    "incidents:write": ALL_ROLES,
    "patrol_reports:read": ALL_ROLES,
    "patrol_reports:write": ALL_ROLES,
    "patrol_reports:review": MANAGERS,
    "evidence:read": ALL_ROLES,
    "evidence:write": ALL_ROLES,
    # Scheduling
    "appointments:read": ALL_ROLES,
    "appointments:write": MANAGERS,
    # Accounting
    "financial:read": MANAGERS,
    "financial:write": ADMINS,
    # Audit feed
    "activities:read": MANAGERS,
    # Reference material
    "community:read": ALL_ROLES,
    "community:write": MANAGERS,
    "law:read": ALL_ROLES,
    "law:write": ADMINS,
    # AI assistant
    "ai:use": ALL_ROLES,
}


def roles_for(capability: str) -> FrozenSet[str]:
    try:
        return CAPABILITIES[capability]
    except KeyError:
        raise KeyError(f"Unknown capability: {capability}") from None


def has_capability(role: str, capability: str) -> bool:
    return role in roles_for(capability)
