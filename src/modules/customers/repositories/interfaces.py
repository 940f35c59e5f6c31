"""Customer repository interface.

Orders only need existence checks and look-ups by id, so the contract is
the read side of ``IRepository``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from modules.core.repositories.interfaces import IReadRepository

if TYPE_CHECKING:
    from modules.customers.models import Customer


class ICustomerRepository(IReadRepository["Customer"]):
    """Repository contract for the Customer collaborator."""
