"""Roles and capabilities for RBAC.

Roles form a closed set. Authorization checks ask for a capability (or an explicit
role set) instead of comparing role name strings, so a misspelt role is an
AttributeError at import time rather than a silently failing check.
"""

from collections.abc import Iterable
from enum import StrEnum


class Capability(StrEnum):
    """Actions a role may perform."""

    MANAGE_ROLES = "manage_roles"
    MANAGE_USERS = "manage_users"
    MANAGE_SESSIONS = "manage_sessions"
    MANAGE_SETTINGS = "manage_settings"
    VIEW_ACCOUNTING = "view_accounting"
    VIEW_REPORTS = "view_reports"
    LOG_FLIGHTS = "log_flights"
    SCHEDULE_FLIGHTS = "schedule_flights"
    PLACE_ORDERS = "place_orders"
    VIEW_FLEET = "view_fleet"
    VIEW_BASES = "view_bases"
    VIEW_BILLING = "view_billing"


class Role(StrEnum):
    """User roles.

    SUPER_ADMIN: Full system access, the only role that manages role assignments.
    ADMIN: School administration (users, settings, accounting, sessions).
    BASE_MANAGER: Operational area access for a home base.
    INSTRUCTOR: Flight instructor with teaching permissions.
    PILOT: Licensed pilot with flight operations access.
    STUDENT: Student pilot.
    PROSPECT: Prospective student; read-only access while onboarding.
    """

    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    BASE_MANAGER = "BASE_MANAGER"
    INSTRUCTOR = "INSTRUCTOR"
    PILOT = "PILOT"
    STUDENT = "STUDENT"
    PROSPECT = "PROSPECT"

    @property
    def capabilities(self) -> frozenset[Capability]:
        """Capabilities granted by this role."""
        return ROLE_CAPABILITIES[self]

    @property
    def level(self) -> int:
        """Position in the role hierarchy (higher is more privileged)."""
        return ROLE_LEVELS[self]


_BROWSE = frozenset({Capability.VIEW_FLEET, Capability.VIEW_BASES, Capability.VIEW_BILLING})
_FLY = _BROWSE | {Capability.LOG_FLIGHTS, Capability.SCHEDULE_FLIGHTS, Capability.PLACE_ORDERS}
_MANAGE = _FLY | {Capability.MANAGE_USERS, Capability.VIEW_ACCOUNTING, Capability.VIEW_REPORTS}
_ADMIN = _MANAGE | {Capability.MANAGE_SETTINGS, Capability.MANAGE_SESSIONS}

ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.SUPER_ADMIN: frozenset(Capability),
    Role.ADMIN: _ADMIN,
    Role.BASE_MANAGER: _MANAGE,
    Role.INSTRUCTOR: _FLY,
    Role.PILOT: _FLY,
    Role.STUDENT: _FLY,
    Role.PROSPECT: _BROWSE,
}

ROLE_LEVELS: dict[Role, int] = {
    Role.SUPER_ADMIN: 4,
    Role.ADMIN: 3,
    Role.BASE_MANAGER: 2,
    Role.INSTRUCTOR: 2,
    Role.PILOT: 1,
    Role.STUDENT: 1,
    Role.PROSPECT: 1,
}


def parse_roles(values: Iterable[str]) -> frozenset[Role]:
    """Convert stored role names to a role set.

    Raises:
        ValueError: If a name is not a known role

    """
    return frozenset(Role(value) for value in values)


def capabilities_for(roles: Iterable[Role]) -> frozenset[Capability]:
    """Union of the capabilities granted by each role."""
    granted: frozenset[Capability] = frozenset()
    for role in roles:
        granted |= role.capabilities
    return granted
