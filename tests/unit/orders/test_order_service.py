"""Unit tests for OrderService.

Covers:
- Order creation (customer/seller validation, initial state).
- Reads (by id, with lines, by customer/seller/status).
- Partial update (notes, discount amount) and the CLOSED guard.
- Status changes through the state machine + outbox events.
- Percentage discounts, discount removal and summary.
- Deletion of PENDING orders only.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest

from modules.core.models import OutboxEvent
from modules.customers.exceptions import CustomerNotFound
from modules.orders.constants import OrderStatus
from modules.orders.dtos import CreateOrderDTO, CreateOrderLineDTO, UpdateOrderDTO
from modules.orders.exceptions import (
    InvalidDiscount,
    InvalidStatusTransition,
    OrderClosed,
    OrderNotDeletable,
    OrderNotEditable,
    OrderNotFound,
    SellerNotFound,
)
from modules.orders.models import Order

pytestmark = pytest.mark.unit

D = Decimal


def _advance(order_service, order, *statuses):
    for status in statuses:
        order_service.change_status(str(order.id), status)


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


class TestCreateOrder:
    def test_creates_pending_order_with_zero_totals(self, order_service, customer, seller):
        order = order_service.create_order(
            CreateOrderDTO(customer_id=customer.id, seller_id=seller.pk)
        )

        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING
        assert order.subtotal == D("0.00")
        assert order.discount == D("0.00")
        assert order.tax == D("0.00")
        assert order.total == D("0.00")
        assert order.notes is None
        assert order.lines.count() == 0
        assert order.customer_id == customer.id
        assert order.seller_id == seller.pk

    def test_generates_order_number(self, order):
        assert order.order_number.startswith("ORD-")
        assert len(order.order_number) == len("ORD-20260101-ABCDEF12")

    def test_records_order_created_in_outbox(self, order):
        events = OutboxEvent.objects.filter(aggregate_id=str(order.id))
        assert [e.event_type for e in events] == ["OrderCreated"]
        assert events[0].topic == "orders"

    def test_unknown_customer_raises(self, order_service, seller):
        with pytest.raises(CustomerNotFound):
            order_service.create_order(
                CreateOrderDTO(customer_id=uuid4(), seller_id=seller.pk)
            )
        assert Order.objects.count() == 0

    def test_unknown_seller_raises(self, order_service, customer):
        with pytest.raises(SellerNotFound):
            order_service.create_order(
                CreateOrderDTO(customer_id=customer.id, seller_id=999999)
            )

    def test_user_without_selling_role_is_not_a_seller(
        self, order_service, customer, plain_user
    ):
        with pytest.raises(SellerNotFound):
            order_service.create_order(
                CreateOrderDTO(customer_id=customer.id, seller_id=plain_user.pk)
            )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


class TestQueries:
    def test_get_order_not_found(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.get_order(str(uuid4()))

    def test_get_order_invalid_id(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.get_order("not-a-uuid")

    def test_get_order_with_lines(self, order_service, line_service, order, product_a):
        line_service.create_line(
            str(order.id), CreateOrderLineDTO(product_id=product_a.id, quantity=1)
        )
        loaded = order_service.get_order_with_lines(str(order.id))
        assert [line.product_id for line in loaded.lines.all()] == [product_a.id]

    def test_list_by_customer_and_status(self, order_service, order, customer):
        assert order_service.list_by_customer(str(customer.id)) == [order]
        assert order_service.list_by_status(OrderStatus.PENDING) == [order]
        assert order_service.list_by_status(OrderStatus.PAID) == []

    def test_list_by_seller(self, order_service, order, seller):
        assert order_service.list_by_seller(str(seller.pk)) == [order]

    def test_list_by_unknown_seller_raises(self, order_service):
        with pytest.raises(SellerNotFound):
            order_service.list_by_seller("424242")

    def test_list_available_for_payment(self, order_service, order):
        assert order_service.list_available_for_payment() == []
        order_service.mark_as_available_for_payment(str(order.id))
        assert order_service.list_available_for_payment() == [order]

    def test_list_orders_with_filters(self, order_service, order, customer):
        assert order_service.list_orders() == [order]
        assert order_service.list_orders({"customer_id": customer.id}) == [order]
        assert order_service.list_orders({"status": OrderStatus.CLOSED}) == []


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


class TestUpdateOrder:
    def test_updates_notes_only(self, order_service, order):
        updated = order_service.update_order(
            str(order.id), UpdateOrderDTO(notes="Gift wrap")
        )
        assert updated.notes == "Gift wrap"
        assert updated.discount == D("0.00")

    def test_discount_amount_recomputes_totals(
        self, order_service, line_service, order, product_a
    ):
        line_service.create_line(
            str(order.id), CreateOrderLineDTO(product_id=product_a.id, quantity=1)
        )
        updated = order_service.update_order(
            str(order.id), UpdateOrderDTO(discount=D("10000.00"))
        )
        assert updated.discount == D("10000.00")
        assert updated.tax == D("1800.00")
        assert updated.total == D("91800.00")

    def test_discount_above_subtotal_rejected(self, order_service, order):
        with pytest.raises(InvalidDiscount):
            order_service.update_order(str(order.id), UpdateOrderDTO(discount=D("1.00")))

    def test_closed_order_cannot_be_updated(self, order_service, order):
        _advance(
            order_service,
            order,
            OrderStatus.PAID,
            OrderStatus.DELIVERED,
            OrderStatus.CLOSED,
        )
        with pytest.raises(OrderClosed, match="CLOSED"):
            order_service.update_order(str(order.id), UpdateOrderDTO(notes="late"))

        order.refresh_from_db()
        assert order.notes is None


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------


class TestChangeStatus:
    def test_named_wrappers_walk_the_lifecycle(self, order_service, order):
        oid = str(order.id)
        assert order_service.mark_as_adding_products(oid).status == OrderStatus.ADDING_PRODUCTS
        assert (
            order_service.mark_as_available_for_payment(oid).status
            == OrderStatus.AVAILABLE_FOR_PAYMENT
        )
        assert order_service.mark_as_paid(oid).status == OrderStatus.PAID
        assert order_service.mark_as_delivered(oid).status == OrderStatus.DELIVERED
        assert order_service.mark_as_closed(oid).status == OrderStatus.CLOSED

        order.refresh_from_db()
        assert order.status == OrderStatus.CLOSED

    def test_illegal_transition_leaves_status_unchanged(self, order_service, order):
        with pytest.raises(InvalidStatusTransition):
            order_service.mark_as_delivered(str(order.id))
        order.refresh_from_db()
        assert order.status == OrderStatus.PENDING

    def test_paid_order_can_reopen_for_products(self, order_service, order):
        _advance(order_service, order, OrderStatus.PAID)
        reopened = order_service.mark_as_adding_products(str(order.id))
        assert reopened.status == OrderStatus.ADDING_PRODUCTS

    def test_available_for_payment_order_can_be_closed(self, order_service, order):
        _advance(order_service, order, OrderStatus.AVAILABLE_FOR_PAYMENT)
        assert order_service.mark_as_closed(str(order.id)).status == OrderStatus.CLOSED

    def test_closed_order_rejects_closing_again(self, order_service, order):
        _advance(order_service, order, OrderStatus.PAID, OrderStatus.DELIVERED, OrderStatus.CLOSED)
        with pytest.raises(InvalidStatusTransition, match="closed and terminal"):
            order_service.mark_as_closed(str(order.id))

    def test_status_change_written_to_outbox(self, order_service, order):
        order_service.mark_as_paid(str(order.id))
        event = OutboxEvent.objects.get(
            aggregate_id=str(order.id), event_type="OrderStatusChanged"
        )
        assert event.payload["old_status"] == "PENDING"
        assert event.payload["new_status"] == "PAID"

    def test_status_change_publishes_after_commit(
        self, order_service, order, django_capture_on_commit_callbacks
    ):
        with patch("modules.orders.handlers.notify_status_changed") as task:
            with django_capture_on_commit_callbacks(execute=True):
                order_service.mark_as_paid(str(order.id))

        task.delay.assert_called_once_with(str(order.id), "PENDING", "PAID")

    def test_unknown_order(self, order_service):
        with pytest.raises(OrderNotFound):
            order_service.mark_as_paid(str(uuid4()))


# ---------------------------------------------------------------------------
# Discount
# ---------------------------------------------------------------------------


class TestDiscount:
    def test_full_pricing_scenario(
        self, order_service, line_service, order, product_a, product_b
    ):
        oid = str(order.id)

        line = line_service.create_line(
            oid, CreateOrderLineDTO(product_id=product_a.id, quantity=2)
        )
        assert line.subtotal == D("200000.00")
        order.refresh_from_db()
        assert (order.subtotal, order.tax, order.total) == (
            D("200000.00"),
            D("4000.00"),
            D("204000.00"),
        )

        line_service.create_line(
            oid, CreateOrderLineDTO(product_id=product_b.id, quantity=1)
        )
        order.refresh_from_db()
        assert (order.subtotal, order.tax, order.total) == (
            D("250000.00"),
            D("5000.00"),
            D("255000.00"),
        )

        order_service.apply_discount(oid, 10)
        order.refresh_from_db()
        assert order.discount == D("25000.00")
        assert order.tax == D("4500.00")
        assert order.total == D("229500.00")

    @pytest.mark.parametrize("percentage", [0, -5, D("100.01"), 150])
    def test_percentage_out_of_range(self, order_service, order, percentage):
        with pytest.raises(InvalidDiscount):
            order_service.apply_discount(str(order.id), percentage)

    def test_hundred_percent_is_allowed(self, order_service, line_service, order, product_b):
        line_service.create_line(
            str(order.id), CreateOrderLineDTO(product_id=product_b.id, quantity=1)
        )
        updated = order_service.apply_discount(str(order.id), 100)
        assert updated.discount == D("50000.00")
        assert updated.total == D("0.00")

    @pytest.mark.parametrize(
        "status", [OrderStatus.ADDING_PRODUCTS, OrderStatus.PAID]
    )
    def test_only_pending_orders_accept_discount(self, order_service, order, status):
        order_service.change_status(str(order.id), status)
        with pytest.raises(OrderNotEditable, match="PENDING"):
            order_service.apply_discount(str(order.id), 10)

    def test_remove_discount(self, order_service, line_service, order, product_b):
        oid = str(order.id)
        line_service.create_line(oid, CreateOrderLineDTO(product_id=product_b.id, quantity=1))
        order_service.apply_discount(oid, 20)

        updated = order_service.remove_discount(oid)

        assert updated.discount == D("0.00")
        assert updated.total == D("51000.00")

    def test_discount_summary(self, order_service, line_service, order, product_a):
        oid = str(order.id)
        line_service.create_line(oid, CreateOrderLineDTO(product_id=product_a.id, quantity=1))
        order_service.apply_discount(oid, D("12.5"))

        summary = order_service.discount_summary(oid)

        assert summary.subtotal == D("100000.00")
        assert summary.discount == D("12500.00")
        assert summary.discount_percentage == D("12.50")
        assert summary.tax == D("1750.00")
        assert summary.total == D("89250.00")

    def test_totals_change_recorded_in_outbox(self, order_service, line_service, order, product_b):
        line_service.create_line(
            str(order.id), CreateOrderLineDTO(product_id=product_b.id, quantity=1)
        )
        assert OutboxEvent.objects.filter(
            aggregate_id=str(order.id), event_type="OrderTotalsChanged"
        ).count() == 1


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


class TestDeleteOrder:
    def test_soft_deletes_pending_order(self, order_service, order):
        order_service.delete_order(str(order.id))

        assert Order.objects.filter(id=order.id).exists()
        with pytest.raises(OrderNotFound):
            order_service.get_order(str(order.id))
        assert OutboxEvent.objects.filter(
            aggregate_id=str(order.id), event_type="OrderDeleted"
        ).exists()

    def test_non_pending_order_cannot_be_deleted(self, order_service, order):
        order_service.mark_as_adding_products(str(order.id))
        with pytest.raises(OrderNotDeletable, match="ADDING_PRODUCTS"):
            order_service.delete_order(str(order.id))
        order.refresh_from_db()
        assert order.deleted_at is None
