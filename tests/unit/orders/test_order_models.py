"""Unit tests for Order / OrderLine model behaviour."""

from __future__ import annotations

import re
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import IntegrityError, transaction
from freezegun import freeze_time

from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderLine

pytestmark = pytest.mark.unit


class TestOrderNumber:
    @freeze_time("2026-03-15 10:00:00")
    def test_format_uses_current_date(self, order_service, customer, seller):
        from modules.orders.dtos import CreateOrderDTO

        order = order_service.create_order(
            CreateOrderDTO(customer_id=customer.id, seller_id=seller.pk)
        )

        assert re.fullmatch(r"ORD-20260315-[0-9A-F]{8}", order.order_number)

    def test_existing_number_is_kept(self, order):
        number = order.order_number
        order.notes = "changed"
        order.save()
        order.refresh_from_db()
        assert order.order_number == number

    def test_gives_up_after_repeated_collisions(self, order, customer, seller):
        clash = Order(customer_id=customer.id, seller_id=seller.pk)
        with patch.object(
            Order, "generate_order_number", return_value=order.order_number
        ):
            with pytest.raises(RuntimeError, match="order_number"):
                clash.save()


class TestOrderFlags:
    @pytest.mark.parametrize(
        "status, editable, terminal",
        [
            (OrderStatus.PENDING, True, False),
            (OrderStatus.ADDING_PRODUCTS, True, False),
            (OrderStatus.AVAILABLE_FOR_PAYMENT, False, False),
            (OrderStatus.PAID, False, False),
            (OrderStatus.DELIVERED, False, False),
            (OrderStatus.CLOSED, False, True),
        ],
    )
    def test_flags(self, status, editable, terminal):
        order = Order(status=status)
        assert order.is_editable is editable
        assert order.is_terminal is terminal


class TestOrderLine:
    def test_recalculate_subtotal(self):
        line = OrderLine(quantity=3, unit_price=Decimal("19.99"))
        assert line.recalculate_subtotal() == Decimal("59.97")
        assert line.subtotal == Decimal("59.97")

    def test_one_line_per_product(self, order, product_a):
        OrderLine.objects.create(
            order=order,
            product=product_a,
            quantity=1,
            unit_price=product_a.price,
            subtotal=product_a.price,
        )
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                OrderLine.objects.create(
                    order=order,
                    product=product_a,
                    quantity=2,
                    unit_price=product_a.price,
                    subtotal=product_a.price * 2,
                )
