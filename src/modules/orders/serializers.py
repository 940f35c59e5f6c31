"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderLine
from modules.products.models import Product

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation payload.

    ``seller_id`` defaults to the authenticated user.
    """

    customer_id = serializers.UUIDField()
    seller_id = serializers.IntegerField(required=False, min_value=1)
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class UpdateOrderSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    discount = serializers.DecimalField(
        required=False,
        max_digits=14,
        decimal_places=2,
        min_value=Decimal("0.00"),
    )


class ChangeStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)


class ApplyDiscountSerializer(serializers.Serializer):
    """Percentage range is a business rule checked by the service."""

    percentage = serializers.DecimalField(max_digits=7, decimal_places=2)


class CreateOrderLineSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class UpdateOrderLineSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(required=False, min_value=1)


class UpdateQuantitySerializer(serializers.Serializer):
    """Quantity bounds are a business rule checked by the service."""

    quantity = serializers.IntegerField()


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderLineSerializer(serializers.ModelSerializer):
    """Read serializer for order lines with product snapshot."""

    product_name = serializers.CharField(source="product.name", read_only=True)
    product_code = serializers.CharField(source="product.code", read_only=True)

    class Meta:
        model = OrderLine
        fields = [
            "id",
            "order_id",
            "product_id",
            "product_name",
            "product_code",
            "quantity",
            "unit_price",
            "subtotal",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders (no nested lines)."""

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "seller_id",
            "status",
            "subtotal",
            "discount",
            "tax",
            "total",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrderWithLinesSerializer(OrderSerializer):
    """Read serializer for orders with nested lines."""

    lines = OrderLineSerializer(many=True, read_only=True)

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ["lines"]
        read_only_fields = fields


class DiscountSummarySerializer(serializers.Serializer):
    order_id = serializers.UUIDField()
    order_number = serializers.CharField()
    subtotal = serializers.DecimalField(max_digits=14, decimal_places=2)
    discount = serializers.DecimalField(max_digits=14, decimal_places=2)
    discount_percentage = serializers.DecimalField(max_digits=7, decimal_places=2)
    tax = serializers.DecimalField(max_digits=14, decimal_places=2)
    total = serializers.DecimalField(max_digits=14, decimal_places=2)


class StockCheckSerializer(serializers.Serializer):
    product_id = serializers.UUIDField(source="id")
    product_name = serializers.CharField(source="name")
    available = serializers.IntegerField(source="stock")
    status = serializers.CharField()


class ProductSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ["id", "code", "name", "price", "stock", "status"]
        read_only_fields = fields
