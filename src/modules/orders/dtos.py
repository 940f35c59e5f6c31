"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateOrderDTO``: input for order creation.
- ``UpdateOrderDTO``: partial update of notes and discount amount.
- ``CreateOrderLineDTO``: input for adding a product to an order.
- ``UpdateOrderLineDTO``: partial update of a line (quantity only).
- ``DiscountSummaryDTO``: output describing an order's discount.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.orders.totals import percentage_of

if TYPE_CHECKING:
    from modules.orders.models import Order


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Lines are added afterwards through ``OrderLineService``.
    """

    model_config = ConfigDict(frozen=True)

    customer_id: UUID
    seller_id: int
    notes: Optional[str] = None


class UpdateOrderDTO(BaseModel):
    """Partial order update; only fields explicitly sent are applied."""

    model_config = ConfigDict(frozen=True)

    notes: Optional[str] = None
    discount: Optional[Decimal] = None

    @field_validator("discount")
    @classmethod
    def discount_must_not_be_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None and v < 0:
            raise ValueError("Discount cannot be negative.")
        return v


class CreateOrderLineDTO(BaseModel):
    """Immutable DTO for a single line in an add-to-order request.

    ``unit_price`` is resolved by the Service Layer from the product catalog.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class UpdateOrderLineDTO(BaseModel):
    """Partial line update.  Quantity is the only mutable field."""

    model_config = ConfigDict(frozen=True)

    quantity: Optional[int] = None

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class DiscountSummaryDTO(BaseModel):
    """Immutable DTO describing the discount applied to an order."""

    model_config = ConfigDict(frozen=True)

    order_id: UUID
    order_number: str
    subtotal: Decimal
    discount: Decimal
    discount_percentage: Decimal
    tax: Decimal
    total: Decimal

    @classmethod
    def from_entity(cls, order: Order) -> DiscountSummaryDTO:
        return cls(
            order_id=order.id,
            order_number=order.order_number,
            subtotal=order.subtotal,
            discount=order.discount,
            discount_percentage=percentage_of(order.subtotal, order.discount),
            tax=order.tax,
            total=order.total,
        )
