"""Order and OrderLine API views.

Exposes ``OrderService`` and ``OrderLineService`` via HTTP using DRF
ViewSets.  Views translate HTTP into DTOs and back; domain exceptions
propagate to ``modules.core.exception_handler``.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import BasePermission, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.core.permissions import IsAdmin, IsSellerOrAdmin
from modules.core.repositories.sellers import SellerDjangoRepository
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.orders.constants import OrderStatus
from modules.orders.dtos import (
    CreateOrderDTO,
    CreateOrderLineDTO,
    UpdateOrderDTO,
    UpdateOrderLineDTO,
)
from modules.orders.filters import OrderFilter
from modules.orders.line_services import OrderLineService
from modules.orders.models import Order, OrderLine
from modules.orders.repositories.django_repository import (
    OrderDjangoRepository,
    OrderLineDjangoRepository,
)
from modules.orders.serializers import (
    ApplyDiscountSerializer,
    ChangeStatusSerializer,
    CreateOrderLineSerializer,
    CreateOrderSerializer,
    DiscountSummarySerializer,
    OrderLineSerializer,
    OrderSerializer,
    OrderWithLinesSerializer,
    ProductSummarySerializer,
    StockCheckSerializer,
    UpdateOrderLineSerializer,
    UpdateOrderSerializer,
    UpdateQuantitySerializer,
)
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository


def _build_services() -> tuple[OrderService, OrderLineService]:
    order_repo = OrderDjangoRepository()
    line_repo = OrderLineDjangoRepository()
    order_service = OrderService(
        order_repository=order_repo,
        order_line_repository=line_repo,
        customer_repository=CustomerDjangoRepository(),
        seller_repository=SellerDjangoRepository(),
    )
    line_service = OrderLineService(
        order_repository=order_repo,
        order_line_repository=line_repo,
        product_repository=ProductDjangoRepository(),
    )
    return order_service, line_service


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    pagination_class = StandardResultsSetPagination
    filterset_class = OrderFilter
    search_fields = ["order_number", "customer__name"]
    ordering_fields = ["created_at", "total", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    read_actions = {
        "list",
        "retrieve",
        "with_lines",
        "by_customer",
        "by_seller",
        "by_status",
        "available_for_payment",
        "discount_summary",
    }

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service, self._line_service = _build_services()

    def get_queryset(self):
        return OrderDjangoRepository().queryset()

    def get_permissions(self) -> list[BasePermission]:
        if self.action == "destroy":
            return [IsAuthenticated(), IsAdmin()]
        if self.action in self.read_actions:
            return [IsAuthenticated()]
        if self.action == "lines" and self.request.method == "GET":
            return [IsAuthenticated()]
        return [IsAuthenticated(), IsSellerOrAdmin()]

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttling scopes per action."""
        if self.action == "create":
            self.throttle_scope = "order_creation"
        elif self.action in self.read_actions:
            self.throttle_scope = "order_listing"
        else:
            self.throttle_scope = None
        return super().get_throttles()

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        dto = CreateOrderDTO(
            customer_id=data["customer_id"],
            seller_id=data.get("seller_id") or request.user.pk,
            notes=data.get("notes"),
        )
        order = self._service.create_order(dto)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (status, customer, seller, date range, total range) is
        handled by ``OrderFilter``; results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = OrderSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._service.get_order(pk)
        return Response(OrderSerializer(order).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/ (notes and discount amount)."""
        serializer = UpdateOrderSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        dto = UpdateOrderDTO(**serializer.validated_data)
        order = self._service.update_order(pk, dto)
        return Response(OrderSerializer(order).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/orders/{pk}/ (PENDING orders only)."""
        self._service.delete_order(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @action(detail=True, methods=["get"], url_path="with-lines")
    def with_lines(self, request: Request, pk: str | None = None) -> Response:
        order = self._service.get_order_with_lines(pk)
        return Response(OrderWithLinesSerializer(order).data)

    @action(
        detail=False,
        methods=["get"],
        url_path=r"by-customer/(?P<customer_id>[^/.]+)",
    )
    def by_customer(self, request: Request, customer_id: str | None = None) -> Response:
        orders = self._service.list_by_customer(customer_id)
        return Response(OrderSerializer(orders, many=True).data)

    @action(
        detail=False,
        methods=["get"],
        url_path=r"by-seller/(?P<seller_id>[^/.]+)",
    )
    def by_seller(self, request: Request, seller_id: str | None = None) -> Response:
        orders = self._service.list_by_seller(seller_id)
        return Response(OrderSerializer(orders, many=True).data)

    @action(
        detail=False,
        methods=["get"],
        url_path=r"by-status/(?P<order_status>[A-Za-z_]+)",
    )
    def by_status(self, request: Request, order_status: str | None = None) -> Response:
        serializer = ChangeStatusSerializer(data={"status": (order_status or "").upper()})
        serializer.is_valid(raise_exception=True)
        orders = self._service.list_by_status(serializer.validated_data["status"])
        return Response(OrderSerializer(orders, many=True).data)

    @action(detail=False, methods=["get"], url_path="available-for-payment")
    def available_for_payment(self, request: Request) -> Response:
        orders = self._service.list_available_for_payment()
        return Response(OrderSerializer(orders, many=True).data)

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["patch"], url_path="status")
    def change_status(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/status/"""
        serializer = ChangeStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.change_status(pk, serializer.validated_data["status"])
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="mark-adding-products")
    def mark_adding_products(self, request: Request, pk: str | None = None) -> Response:
        return self._transition(pk, OrderStatus.ADDING_PRODUCTS)

    @action(detail=True, methods=["post"], url_path="mark-available-for-payment")
    def mark_available_for_payment(
        self, request: Request, pk: str | None = None
    ) -> Response:
        return self._transition(pk, OrderStatus.AVAILABLE_FOR_PAYMENT)

    @action(detail=True, methods=["post"], url_path="mark-paid")
    def mark_paid(self, request: Request, pk: str | None = None) -> Response:
        return self._transition(pk, OrderStatus.PAID)

    @action(detail=True, methods=["post"], url_path="mark-delivered")
    def mark_delivered(self, request: Request, pk: str | None = None) -> Response:
        return self._transition(pk, OrderStatus.DELIVERED)

    @action(detail=True, methods=["post"], url_path="mark-closed")
    def mark_closed(self, request: Request, pk: str | None = None) -> Response:
        return self._transition(pk, OrderStatus.CLOSED)

    def _transition(self, pk: str | None, target: str) -> Response:
        order = self._service.change_status(pk, target)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Discount
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post", "delete"], url_path="discount")
    def discount(self, request: Request, pk: str | None = None) -> Response:
        """POST applies a percentage discount; DELETE removes it."""
        if request.method == "DELETE":
            order = self._service.remove_discount(pk)
            return Response(OrderSerializer(order).data)

        serializer = ApplyDiscountSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.apply_discount(pk, serializer.validated_data["percentage"])
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["get"], url_path="discount-summary")
    def discount_summary(self, request: Request, pk: str | None = None) -> Response:
        summary = self._service.discount_summary(pk)
        return Response(DiscountSummarySerializer(summary.model_dump()).data)

    # ------------------------------------------------------------------
    # Lines
    # ------------------------------------------------------------------

    @action(detail=True, methods=["get", "post"], url_path="lines")
    def lines(self, request: Request, pk: str | None = None) -> Response:
        """GET lists the order's lines; POST adds one."""
        if request.method == "GET":
            lines = self._line_service.list_lines_for_order(pk)
            return Response(OrderLineSerializer(lines, many=True).data)

        serializer = CreateOrderLineSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        line = self._line_service.create_line(
            pk, CreateOrderLineDTO(**serializer.validated_data)
        )
        return Response(OrderLineSerializer(line).data, status=status.HTTP_201_CREATED)


class OrderLineViewSet(GenericViewSet):
    """ViewSet for OrderLine operations addressed by line id."""

    queryset = OrderLine.objects.none()
    serializer_class = OrderLineSerializer

    read_actions = {
        "retrieve",
        "stock_check",
        "available_products",
        "products_by_status",
    }

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        _, self._service = _build_services()

    def get_permissions(self) -> list[BasePermission]:
        if self.action in self.read_actions:
            return [IsAuthenticated()]
        return [IsAuthenticated(), IsSellerOrAdmin()]

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/order-lines/{pk}/"""
        line = self._service.get_line(pk)
        return Response(OrderLineSerializer(line).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/order-lines/{pk}/"""
        serializer = UpdateOrderLineSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        line = self._service.update_line(
            pk, UpdateOrderLineDTO(**serializer.validated_data)
        )
        return Response(OrderLineSerializer(line).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/order-lines/{pk}/"""
        self._service.delete_line(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["patch"], url_path="quantity")
    def quantity(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/order-lines/{pk}/quantity/"""
        serializer = UpdateQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        line = self._service.update_quantity(pk, serializer.validated_data["quantity"])
        return Response(OrderLineSerializer(line).data)

    @action(
        detail=False,
        methods=["delete"],
        url_path=r"by-order/(?P<order_id>[^/.]+)/product/(?P<product_id>[^/.]+)",
    )
    def delete_by_product(
        self,
        request: Request,
        order_id: str | None = None,
        product_id: str | None = None,
    ) -> Response:
        self._service.delete_line_by_order_and_product(order_id, product_id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(
        detail=False,
        methods=["get"],
        url_path=r"stock-check/(?P<product_id>[^/.]+)/(?P<quantity>-?\d+)",
    )
    def stock_check(
        self,
        request: Request,
        product_id: str | None = None,
        quantity: str | None = None,
    ) -> Response:
        """GET /api/v1/order-lines/stock-check/{product_id}/{quantity}/"""
        product = self._service.validate_stock_available(product_id, int(quantity))
        data = StockCheckSerializer(product).data
        data["requested"] = int(quantity)
        data["is_available"] = True
        return Response(data)

    @action(detail=False, methods=["get"], url_path="available-products")
    def available_products(self, request: Request) -> Response:
        """GET /api/v1/order-lines/available-products/"""
        products = self._service.list_available_products()
        return Response(ProductSummarySerializer(products, many=True).data)

    @action(
        detail=False,
        methods=["get"],
        url_path=r"products-by-status/(?P<product_status>[A-Za-z_]+)",
    )
    def products_by_status(
        self, request: Request, product_status: str | None = None
    ) -> Response:
        """GET /api/v1/order-lines/products-by-status/{status}/"""
        products = self._service.list_products_by_status(product_status)
        return Response(ProductSummarySerializer(products, many=True).data)
