"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order is created."""

    customer_id: str = ""
    seller_id: str = ""


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised when an order status changes."""

    old_status: str = ""
    new_status: str = ""


@dataclass(frozen=True)
class OrderTotalsChanged(DomainEvent):
    """Raised when a line or discount mutation changes the order totals."""

    subtotal: str = "0.00"
    discount: str = "0.00"
    tax: str = "0.00"
    total: str = "0.00"


@dataclass(frozen=True)
class OrderDeleted(DomainEvent):
    """Raised when a pending order is soft-deleted."""
