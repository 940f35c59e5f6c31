"""Django ORM implementations of the Order and OrderLine repositories.

Orders are read through ``Order.objects.alive()`` so soft-deleted orders
are invisible everywhere.  Row-level locks use ``select_for_update()``;
on SQLite they are a no-op and ``modules.core.locks`` provides the
serialization instead.
"""

from __future__ import annotations

from functools import partial
from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from modules.core.models import OutboxEvent
from modules.orders.models import Order, OrderLine
from modules.orders.repositories.interfaces import (
    IOrderLineRepository,
    IOrderRepository,
)
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    def queryset(self) -> QuerySet:
        """Base queryset of live orders, used by the API for filtering."""
        return Order.objects.alive().select_related("customer", "seller")

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order by primary key.

        Returns ``None`` for non-existent, soft-deleted or invalid IDs.
        """
        try:
            return self.queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_with_lines(self, id: str) -> Optional[Order]:
        """Retrieve an order with ``lines__product`` prefetched (no N+1)."""
        try:
            return (
                self.queryset()
                .prefetch_related("lines__product")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Must run inside ``transaction.atomic``.  Returns ``None`` for
        non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.alive()
                .select_for_update()
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def exists(self, id: str) -> bool:
        try:
            return Order.objects.alive().filter(id=id).exists()
        except (ValueError, ValidationError):
            return False

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders with optional Django ORM look-ups.

        Supported filter keys include ``status``, ``customer_id``,
        ``seller_id`` and ``created_at__range``.
        """
        queryset = self.queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def list_by_customer(self, customer_id: str) -> List[Order]:
        try:
            return self.list({"customer_id": customer_id})
        except (ValueError, ValidationError):
            return []

    def list_by_seller(self, seller_id: str) -> List[Order]:
        try:
            return self.list({"seller_id": seller_id})
        except (ValueError, ValidationError):
            return []

    def list_by_status(self, status: str) -> List[Order]:
        return self.list({"status": status})

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist an order and flush its domain events.

        Each event is written to the outbox in this transaction and
        published to the in-process bus once the outermost transaction
        commits.
        """
        entity.save()

        events = entity.domain_events
        for event in events:
            OutboxEvent.record(event, topic=OUTBOX_TOPIC)
            transaction.on_commit(partial(event_bus.publish, event))
        entity.clear_domain_events()

        logger.info("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    @transaction.atomic
    def delete(self, entity: Order) -> None:
        """Soft-delete an order, flushing pending events first."""
        self.save(entity)
        entity.delete()
        logger.info("order.soft_deleted", order_id=str(entity.id))


class OrderLineDjangoRepository(IOrderLineRepository):
    """Concrete OrderLine repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[OrderLine]:
        """Retrieve a line of a live order, or ``None``."""
        try:
            return (
                OrderLine.objects.select_related("product")
                .filter(id=id, order__deleted_at__isnull=True)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list_for_order(self, order_id: str) -> List[OrderLine]:
        try:
            return list(
                OrderLine.objects.select_related("product").filter(order_id=order_id)
            )
        except (ValueError, ValidationError):
            return []

    def get_by_order_and_product(
        self, order_id: str, product_id: str
    ) -> Optional[OrderLine]:
        try:
            return OrderLine.objects.filter(
                order_id=order_id, product_id=product_id
            ).first()
        except (ValueError, ValidationError):
            return None

    @transaction.atomic
    def save(self, entity: OrderLine) -> OrderLine:
        """Persist a line inside a savepoint.

        A duplicate (order, product) pair surfaces as ``IntegrityError``
        and leaves the caller's transaction usable.
        """
        entity.save()
        logger.info(
            "order_line.saved",
            line_id=str(entity.id),
            order_id=str(entity.order_id),
            product_id=str(entity.product_id),
        )
        return entity

    @transaction.atomic
    def delete(self, entity: OrderLine) -> None:
        line_id = str(entity.id)
        entity.delete()
        logger.info(
            "order_line.deleted",
            line_id=line_id,
            order_id=str(entity.order_id),
        )
