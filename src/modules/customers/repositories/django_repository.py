"""Django ORM implementation of the Customer repository.

Error handling follows the Null Object pattern: look-ups return ``None``
for unknown or malformed ids and the Service Layer decides which
``NotFound`` to raise.
"""

from __future__ import annotations

from typing import Optional

from django.core.exceptions import ValidationError

from modules.customers.models import Customer
from modules.customers.repositories.interfaces import ICustomerRepository


class CustomerDjangoRepository(ICustomerRepository):
    """Concrete Customer repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Customer]:
        """Retrieve a live customer by primary key.

        Returns ``None`` for non-existent, soft-deleted or invalid IDs.
        """
        try:
            return Customer.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def exists(self, id: str) -> bool:
        try:
            return Customer.objects.alive().filter(id=id).exists()
        except (ValueError, ValidationError):
            return False
