"""Order and OrderLine repository interfaces.

The Service Layer depends exclusively on these contracts (DIP).
Look-ups return ``None`` for unknown ids; services raise the matching
``NotFound``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderLine


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    ``save`` also records pending domain events in the outbox and
    schedules their publication for after commit.
    """

    @abstractmethod
    def get_with_lines(self, id: str) -> Optional[Order]:
        """Retrieve an order with its lines (and their products) prefetched."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List live orders with optional filters."""

    @abstractmethod
    def list_by_customer(self, customer_id: str) -> List[Order]:
        """List live orders placed by a customer."""

    @abstractmethod
    def list_by_seller(self, seller_id: str) -> List[Order]:
        """List live orders handled by a seller."""

    @abstractmethod
    def list_by_status(self, status: str) -> List[Order]:
        """List live orders currently in *status*."""


class IOrderLineRepository(ABC):
    """Repository contract for order lines (owned by the Order aggregate)."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[OrderLine]:
        """Retrieve a line by primary key."""

    @abstractmethod
    def list_for_order(self, order_id: str) -> List[OrderLine]:
        """Return the order's lines, read fresh from storage."""

    @abstractmethod
    def get_by_order_and_product(
        self, order_id: str, product_id: str
    ) -> Optional[OrderLine]:
        """Retrieve the line for (order, product), if any."""

    @abstractmethod
    def save(self, entity: OrderLine) -> OrderLine:
        """Persist a line.

        Raises ``django.db.IntegrityError`` when another line for the same
        (order, product) already exists.
        """

    @abstractmethod
    def delete(self, entity: OrderLine) -> None:
        """Hard-delete a line."""
