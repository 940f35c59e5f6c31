"""Role-based DRF permissions.

Roles are Django groups.  Authentication itself is handled by SimpleJWT;
these classes only answer "does the current user hold role X".
Superusers hold every role.
"""

from __future__ import annotations

from typing import ClassVar, FrozenSet

from rest_framework.permissions import BasePermission


class Role:
    ADMIN = "ADMIN"
    SELLER = "SELLER"


def user_has_role(user, *roles: str) -> bool:
    if not user or not user.is_authenticated:
        return False
    if user.is_superuser:
        return True
    return user.groups.filter(name__in=roles).exists()


class HasRole(BasePermission):
    """Grant access when the user belongs to one of ``allowed_roles``."""

    allowed_roles: ClassVar[FrozenSet[str]] = frozenset()
    message = "You do not have the role required for this operation."

    def has_permission(self, request, view) -> bool:
        return user_has_role(request.user, *self.allowed_roles)


class IsAdmin(HasRole):
    allowed_roles = frozenset({Role.ADMIN})


class IsSellerOrAdmin(HasRole):
    allowed_roles = frozenset({Role.ADMIN, Role.SELLER})
