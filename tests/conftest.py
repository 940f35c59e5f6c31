from decimal import Decimal

import pytest

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from rest_framework.test import APIClient

from modules.core.permissions import Role
from modules.core.repositories.sellers import SellerDjangoRepository
from modules.customers.models import Customer
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.orders.line_services import OrderLineService
from modules.orders.repositories.django_repository import (
    OrderDjangoRepository,
    OrderLineDjangoRepository,
)
from modules.orders.services import OrderService
from modules.products.models import Product, ProductStatus
from modules.products.repositories.django_repository import ProductDjangoRepository

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users & roles
# ---------------------------------------------------------------------------


@pytest.fixture()
def seller():
    user = User.objects.create_user(username="seller", password="testpass123")
    user.groups.add(Group.objects.get_or_create(name=Role.SELLER)[0])
    return user


@pytest.fixture()
def admin_user():
    user = User.objects.create_user(username="manager", password="testpass123")
    user.groups.add(Group.objects.get_or_create(name=Role.ADMIN)[0])
    return user


@pytest.fixture()
def plain_user():
    """Authenticated user without any role."""
    return User.objects.create_user(username="viewer", password="testpass123")


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@pytest.fixture()
def customer():
    return Customer.objects.create(
        name="Order Test Customer",
        document="1234567",
        email="customer@example.com",
    )


@pytest.fixture()
def make_product():
    counter = {"n": 0}

    def _make(price="100000.00", stock=100, status=ProductStatus.ACTIVE, name=None):
        counter["n"] += 1
        return Product.objects.create(
            code=f"PROD-{counter['n']:03d}",
            name=name or f"Product {counter['n']}",
            category="Laptops",
            price=Decimal(price),
            stock=stock,
            status=status,
        )

    return _make


@pytest.fixture()
def product_a(make_product):
    return make_product(price="100000.00", stock=10, name="Laptop Pro")


@pytest.fixture()
def product_b(make_product):
    return make_product(price="50000.00", stock=10, name="Monitor")


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@pytest.fixture()
def order_service():
    return OrderService(
        order_repository=OrderDjangoRepository(),
        order_line_repository=OrderLineDjangoRepository(),
        customer_repository=CustomerDjangoRepository(),
        seller_repository=SellerDjangoRepository(),
    )


@pytest.fixture()
def line_service():
    return OrderLineService(
        order_repository=OrderDjangoRepository(),
        order_line_repository=OrderLineDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


@pytest.fixture()
def order(order_service, customer, seller):
    from modules.orders.dtos import CreateOrderDTO

    return order_service.create_order(
        CreateOrderDTO(customer_id=customer.id, seller_id=seller.pk)
    )
