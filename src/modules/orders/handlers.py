"""Event handlers for Orders domain events.

Handlers run on the in-process bus after the producing transaction has
committed, so they always observe persisted state.
"""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCreated,
    OrderDeleted,
    OrderStatusChanged,
    OrderTotalsChanged,
)
from modules.orders.tasks import notify_status_changed
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info(
            "order.event.created",
            order_id=str(event.aggregate_id),
            customer_id=event.customer_id,
            seller_id=event.seller_id,
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    """Enqueue the status-change notification."""

    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.event.status_changed",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
            new_status=event.new_status,
        )
        notify_status_changed.delay(
            str(event.aggregate_id), event.old_status, event.new_status
        )


class OrderTotalsChangedHandler(IEventHandler[OrderTotalsChanged]):
    def handle(self, event: OrderTotalsChanged) -> None:
        logger.info(
            "order.event.totals_changed",
            order_id=str(event.aggregate_id),
            subtotal=event.subtotal,
            discount=event.discount,
            tax=event.tax,
            total=event.total,
        )


class OrderDeletedHandler(IEventHandler[OrderDeleted]):
    def handle(self, event: OrderDeleted) -> None:
        logger.info("order.event.deleted", order_id=str(event.aggregate_id))


order_created_handler = OrderCreatedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
order_totals_changed_handler = OrderTotalsChangedHandler()
order_deleted_handler = OrderDeletedHandler()
