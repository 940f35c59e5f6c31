"""Product domain exceptions raised by the catalog and stock checks."""

from __future__ import annotations

from shared.domain.exceptions import BusinessRuleViolation, InvalidArgument, NotFound


class ProductNotFound(NotFound):
    """The referenced product does not exist or has been soft-deleted."""

    code = "product_not_found"

    def __init__(self, product_id: object) -> None:
        self.product_id = product_id
        super().__init__(f"Product not found with ID: {product_id}")


class ProductUnavailable(BusinessRuleViolation):
    """The product exists but its status forbids selling it."""

    code = "product_unavailable"

    def __init__(self, name: str, status: str) -> None:
        self.name = name
        self.status = status
        super().__init__(
            f"Product '{name}' is not available for sale, status={status}."
        )


class InsufficientStock(BusinessRuleViolation):
    """The product's stock cannot cover the requested quantity."""

    code = "insufficient_stock"

    def __init__(self, name: str, available: int, requested: int) -> None:
        self.name = name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for product '{name}': "
            f"available={available}, requested={requested}."
        )


class InvalidProductStatus(InvalidArgument):
    code = "invalid_product_status"

    def __init__(self, status: object) -> None:
        self.status = status
        super().__init__(f"Unknown product status: {status}")
