"""Seller look-ups over the Django auth user model.

A seller is an active user holding the ``SELLER`` or ``ADMIN`` role
(see ``modules.core.permissions``).  Superusers always qualify.
"""

from __future__ import annotations

from typing import Any, Optional

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db.models import Q

from modules.core.permissions import Role
from modules.core.repositories.interfaces import IReadRepository


class ISellerRepository(IReadRepository[Any]):
    """Repository contract for the Seller collaborator."""


class SellerDjangoRepository(ISellerRepository):
    """Concrete Seller repository backed by ``AUTH_USER_MODEL``."""

    def _queryset(self):
        User = get_user_model()
        return (
            User.objects.filter(is_active=True)
            .filter(Q(is_superuser=True) | Q(groups__name__in=[Role.SELLER, Role.ADMIN]))
            .distinct()
        )

    def get_by_id(self, id: str) -> Optional[Any]:
        try:
            return self._queryset().filter(pk=id).first()
        except (ValueError, TypeError, ValidationError):
            return None

    def exists(self, id: str) -> bool:
        try:
            return self._queryset().filter(pk=id).exists()
        except (ValueError, TypeError, ValidationError):
            return False
