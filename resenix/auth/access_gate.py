"""
Page and route access decisions.

`authorize` is a pure function over an already-loaded user profile. Denials
are returned as values; callers turn them into a redirect, a 401 or a 403.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

from ..core.exceptions import InvalidInputError
from ..models.user import Action, Resource, User, UserRole


class DenyReason(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    INSUFFICIENT_ROLE = "insufficient_role"
    MISSING_PERMISSION = "missing_permission"


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: Optional[DenyReason] = None
    resource: Optional[Resource] = None
    action: Optional[Action] = None

    @property
    def message(self) -> str:
        if self.allowed:
            return "Access granted"
        if self.reason == DenyReason.UNAUTHENTICATED:
            return "Authentication required"
        if self.reason == DenyReason.INSUFFICIENT_ROLE:
            return "Insufficient role"
        return f"Missing permission: {self.resource.value}:{self.action.value}"

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = AccessDecision(allowed=True)


def deny(reason: DenyReason, resource: Optional[Resource] = None, action: Optional[Action] = None) -> AccessDecision:
    return AccessDecision(allowed=False, reason=reason, resource=resource, action=action)


def parse_permission(requirement: str) -> Tuple[Resource, Action]:
    """Split a "resource:action" requirement into its enum parts."""
    resource_name, sep, action_name = str(requirement).partition(":")
    if not sep:
        raise InvalidInputError("requiredPermissions", requirement, f"Expected 'resource:action', got {requirement!r}")
    try:
        return Resource(resource_name.strip()), Action(action_name.strip())
    except ValueError as e:
        raise InvalidInputError("requiredPermissions", requirement) from e


def authorize(
    user: Optional[User],
    required_role: Optional[str] = None,
    required_permissions: Iterable[str] = (),
) -> AccessDecision:
    """
    Decide whether `user` may open a page guarded by a role and a list of
    "resource:action" requirements.

    Checks run in order: authentication, role, then every permission (all
    must hold). The admin role passes both the role check and every
    permission check, whatever its stored permission map contains.
    """
    # Parse requirements first so a malformed guard fails for every caller alike
    requirements = [parse_permission(p) for p in required_permissions or ()]
    role = None
    if required_role:
        try:
            role = UserRole(required_role)
        except ValueError as e:
            raise InvalidInputError("requiredRole", required_role) from e

    if user is None:
        return deny(DenyReason.UNAUTHENTICATED)

    if user.role == UserRole.ADMIN:
        return ALLOW

    if role is not None and user.role != role:
        return deny(DenyReason.INSUFFICIENT_ROLE)

    for resource, action in requirements:
        if not user.permissions.allows(resource, action):
            return deny(DenyReason.MISSING_PERMISSION, resource, action)

    return ALLOW
