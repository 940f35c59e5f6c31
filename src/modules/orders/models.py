"""Order and OrderLine models.

Business rules implemented:
- Order number auto-generated as human-readable identifier.
- Customer and seller FKs use PROTECT to preserve sales history.
- Totals (subtotal, discount, tax, total) are derived values written only
  by ``modules.orders.totals.recompute_totals``.
- OrderLine snapshots the product price at creation time (``unit_price``).
- At most one line per (order, product), enforced by a unique constraint.
- Orders are soft-deleted; lines are hard-deleted.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel, SoftDeleteModel
from modules.orders.constants import (
    EDITABLE_STATES,
    ORDER_NUMBER_MAX_RETRIES,
    TERMINAL_STATES,
    OrderStatus,
)
from shared.domain.events import DomainEventMixin

logger = structlog.get_logger(__name__)


def _money_field(**kwargs: Any) -> models.DecimalField:
    return models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        **kwargs,
    )


class Order(DomainEventMixin, SoftDeleteModel):
    """Order aggregate root.

    ``order_number`` is a human-readable identifier auto-generated on first
    save (format: ``ORD-YYYYMMDD-XXXXXXXX``).  The UUIDv7 ``id`` is used
    for all internal references and API lookups.
    """

    order_number: models.CharField = models.CharField(
        max_length=24, unique=True, editable=False
    )
    customer: models.ForeignKey = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    seller: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="sales_orders",
    )
    status: models.CharField = models.CharField(
        max_length=24,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    subtotal: models.DecimalField = _money_field()
    discount: models.DecimalField = _money_field()
    tax: models.DecimalField = _money_field()
    total: models.DecimalField = _money_field()
    notes: models.TextField = models.TextField(null=True, blank=True, default=None)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(discount__gte=0),
                name="orders_discount_non_negative",
            ),
        ]

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    @property
    def is_editable(self) -> bool:
        """Lines can be changed only while the order is editable."""
        return self.status in EDITABLE_STATES

    # ------------------------------------------------------------------
    # Order number generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_order_number() -> str:
        """Generate a human-readable order number: ``ORD-YYYYMMDD-XXXXXXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(4).upper()
        return f"ORD-{now:%Y%m%d}-{suffix}"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.order_number:
            for _attempt in range(ORDER_NUMBER_MAX_RETRIES):
                candidate = self.generate_order_number()
                if not Order.objects.filter(order_number=candidate).exists():
                    self.order_number = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique order_number after "
                    f"{ORDER_NUMBER_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderLine(BaseModel):
    """Line linking an Order to a Product.

    ``unit_price`` is a **snapshot** of the product price at the time the
    line was added; later catalog price changes do not affect it.
    ``subtotal`` is always ``quantity * unit_price``.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="lines",
    )
    product: models.ForeignKey = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_lines",
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price: models.DecimalField = models.DecimalField(
        max_digits=14,
        decimal_places=2,
    )
    subtotal: models.DecimalField = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        editable=False,
    )

    class Meta:
        db_table = "order_lines"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_lines_quantity_positive",
            ),
            models.UniqueConstraint(
                fields=["order", "product"],
                name="order_lines_unique_product_per_order",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def recalculate_subtotal(self) -> Decimal:
        self.subtotal = Decimal(self.quantity) * self.unit_price
        return self.subtotal

    def __str__(self) -> str:
        return f"{self.product_id} x{self.quantity} ({self.subtotal})"
