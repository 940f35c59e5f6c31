"""Product repository interface.

Extends ``IRepository[Product]`` with the row-locking look-up used while
validating stock inside an order-line transaction.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List["Product"]:
        """List live products with optional filters."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional["Product"]:
        """Retrieve a product with a row-level lock (SELECT FOR UPDATE).

        Must be called inside a transaction.  Returns ``None`` if the
        product does not exist.
        """

    @abstractmethod
    def list_available(self) -> List["Product"]:
        """List live products that are ``ACTIVE`` with stock left."""

    @abstractmethod
    def list_by_status(self, status: str) -> List["Product"]:
        """List live products in the given status."""
