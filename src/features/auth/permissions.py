"""Role/permission gate.

Pure checks over decoded access token claims. A denial is a 403, kept apart from the
401 raised when the token itself is unusable.
"""

from collections.abc import Callable

from src.features.user.roles import Capability, Role

from .exceptions import PermissionDeniedException
from .jwt_utils import AccessTokenClaims

RolePredicate = Callable[[frozenset[Role]], bool]


def any_role(*roles: Role) -> RolePredicate:
    """Allow holders of at least one of ``roles``."""
    required = frozenset(roles)

    def predicate(granted: frozenset[Role]) -> bool:
        return not required.isdisjoint(granted)

    return predicate


def has_capability(capability: Capability) -> RolePredicate:
    """Allow holders of any role granting ``capability``."""

    def predicate(granted: frozenset[Role]) -> bool:
        return any(capability in role.capabilities for role in granted)

    return predicate


def min_level(role: Role) -> RolePredicate:
    """Allow holders of a role at or above ``role`` in the hierarchy."""

    def predicate(granted: frozenset[Role]) -> bool:
        return any(r.level >= role.level for r in granted)

    return predicate


IS_ADMIN = any_role(Role.ADMIN, Role.SUPER_ADMIN)


def is_allowed(claims: AccessTokenClaims, predicate: RolePredicate) -> bool:
    return predicate(claims.roles)


def authorize(claims: AccessTokenClaims, predicate: RolePredicate) -> None:
    """Raise PermissionDeniedException unless the claims satisfy ``predicate``."""
    if not is_allowed(claims, predicate):
        raise PermissionDeniedException()
