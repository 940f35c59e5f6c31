from __future__ import annotations

from uuid import uuid4

import pytest

from modules.products.exceptions import (
    InsufficientStock,
    InvalidProductStatus,
    ProductNotFound,
    ProductUnavailable,
)
from modules.products.models import ProductStatus
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.stock import StockValidator

pytestmark = pytest.mark.unit


@pytest.fixture()
def validator():
    return StockValidator(ProductDjangoRepository())


class TestValidateAvailable:
    def test_returns_product_when_stock_suffices(self, validator, make_product):
        product = make_product(stock=5)
        assert validator.validate_available(str(product.id), 5) == product

    def test_insufficient_stock_reports_amounts(self, validator, make_product):
        product = make_product(stock=5, name="Webcam")
        with pytest.raises(InsufficientStock) as exc_info:
            validator.validate_available(str(product.id), 6)

        exc = exc_info.value
        assert (exc.available, exc.requested) == (5, 6)
        assert str(exc) == (
            "Insufficient stock for product 'Webcam': available=5, requested=6."
        )

    def test_inactive_product(self, validator, make_product):
        product = make_product(status=ProductStatus.DISCONTINUED, name="Fax")
        with pytest.raises(ProductUnavailable) as exc_info:
            validator.validate_available(str(product.id), 1)
        assert str(exc_info.value) == (
            "Product 'Fax' is not available for sale, status=DISCONTINUED."
        )

    def test_unknown_product(self, validator):
        with pytest.raises(ProductNotFound):
            validator.validate_available(str(uuid4()), 1)

    def test_soft_deleted_product_is_unknown(self, validator, make_product):
        product = make_product()
        product.delete()
        with pytest.raises(ProductNotFound):
            validator.validate_available(str(product.id), 1)

    def test_uses_given_product_instead_of_reading(self, validator, make_product):
        product = make_product(stock=1)
        product.stock = 50
        assert validator.validate_available(str(product.id), 50, product=product) is product

    def test_does_not_change_stock(self, validator, make_product):
        product = make_product(stock=5)
        validator.validate_available(str(product.id), 3)
        product.refresh_from_db()
        assert product.stock == 5


class TestAvailability:
    def test_is_available(self, validator, make_product):
        assert validator.is_available(str(make_product(stock=1).id)) is True
        assert validator.is_available(str(make_product(stock=0).id)) is False
        assert validator.is_available("not-a-uuid") is False

    def test_available_stock(self, validator, make_product):
        assert validator.available_stock(str(make_product(stock=7).id)) == 7
        assert validator.available_stock(str(uuid4())) == 0


class TestListings:
    def test_list_available_only_returns_sellable_products(self, validator, make_product):
        sellable = make_product(stock=3, name="Keyboard")
        make_product(stock=0, name="Mouse")
        make_product(stock=5, status=ProductStatus.INACTIVE, name="Printer")
        deleted = make_product(stock=5, name="Scanner")
        deleted.delete()

        assert validator.list_available() == [sellable]

    def test_list_by_status(self, validator, make_product):
        make_product(name="Keyboard")
        discontinued = make_product(status=ProductStatus.DISCONTINUED, name="Fax")

        assert validator.list_by_status(ProductStatus.DISCONTINUED) == [discontinued]
        assert validator.list_by_status(ProductStatus.OUT_OF_STOCK) == []

    def test_list_by_unknown_status(self, validator):
        with pytest.raises(InvalidProductStatus, match="SOLD"):
            validator.list_by_status("SOLD")
