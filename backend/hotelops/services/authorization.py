"""
Authorization Service
Role-based permission and route checks for an explicitly supplied actor.
"""
from typing import Any, Iterable, List, Optional, Sequence, Union

from hotelops.config.permissions import (
    ALL_PERMISSIONS, FULL_ACCESS_ROLES, ROLE_PERMISSIONS, ROUTE_ACCESS,
)
from hotelops.schemas.profile import Profile

UNAUTHORIZED_NOTICE = "You don't have permission to view this content."


def get_role_permissions(role: Optional[str]) -> frozenset:
    """Granted permission keys for a role. Unknown roles get nothing."""
    return frozenset(ROLE_PERMISSIONS.get(role, ()))


class Authorizer:
    """Permission checks bound to one actor. ``actor`` may be None."""

    def __init__(self, actor: Optional[Profile]):
        self.actor = actor
        self._granted = get_role_permissions(self.role)

    @property
    def role(self) -> Optional[str]:
        return self.actor.role if self.actor else None

    @property
    def has_full_access(self) -> bool:
        return self.role in FULL_ACCESS_ROLES

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_manager(self) -> bool:
        return self.role == "manager"

    @property
    def is_receptionist(self) -> bool:
        return self.role == "receptionist"

    @property
    def is_accounts(self) -> bool:
        return self.role == "accounts"

    @property
    def is_housekeeping(self) -> bool:
        return self.role == "housekeeping"

    def has_permission(self, permission: str) -> bool:
        if self.actor is None:
            return False
        if self.has_full_access:
            return True
        return permission in self._granted

    def has_any_permission(self, permissions: Iterable[str]) -> bool:
        return any(self.has_permission(p) for p in permissions)

    def has_all_permissions(self, permissions: Iterable[str]) -> bool:
        return all(self.has_permission(p) for p in permissions)

    def can_access_route(self, route: str) -> bool:
        if self.actor is None:
            return False
        if self.has_full_access:
            return True
        allowed_roles = ROUTE_ACCESS.get(route)
        return bool(allowed_roles) and self.role in allowed_roles

    def granted_permissions(self) -> List[str]:
        """Flat list of permission keys this actor holds, in registry order."""
        return [key for key in ALL_PERMISSIONS if self.has_permission(key)]

    def accessible_routes(self) -> List[str]:
        return [route for route in ROUTE_ACCESS if self.can_access_route(route)]


def guard(
    authorizer: Authorizer,
    children: Any,
    permissions: Optional[Union[str, Sequence[str]]] = None,
    require_all: bool = False,
    fallback: Any = None,
    show_unauthorized: bool = False,
) -> Any:
    """
    Return ``children`` when the actor passes the permission check.

    A single permission string is checked directly; a list is checked with
    any-of semantics unless ``require_all`` is set, so an empty list denies
    under any-of and grants under all-of. Without permissions (None or an
    empty string) the children are always returned. On denial the fallback
    wins, then the unauthorized notice if requested, then None.
    """
    if permissions is None or permissions == "":
        return children

    if isinstance(permissions, str):
        has_access = authorizer.has_permission(permissions)
    elif require_all:
        has_access = authorizer.has_all_permissions(permissions)
    else:
        has_access = authorizer.has_any_permission(permissions)

    if has_access:
        return children
    if fallback is not None:
        return fallback
    if show_unauthorized:
        return UNAUTHORIZED_NOTICE
    return None
