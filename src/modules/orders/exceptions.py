"""Order domain exceptions.

Raised by the Service Layer when business rules are violated and mapped
to HTTP responses by ``modules.core.exception_handler`` through their
``DomainError`` base class.
"""

from __future__ import annotations

from typing import Iterable

from shared.domain.exceptions import Conflict, IllegalState, InvalidArgument, NotFound

# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------


class OrderNotFound(NotFound):
    """The requested order does not exist or has been soft-deleted."""

    code = "order_not_found"

    def __init__(self, order_id: object) -> None:
        self.order_id = order_id
        super().__init__(f"Order not found with ID: {order_id}")


class SellerNotFound(NotFound):
    """The referenced seller is not an active user with a selling role."""

    code = "seller_not_found"

    def __init__(self, seller_id: object) -> None:
        self.seller_id = seller_id
        super().__init__(f"Seller not found with ID: {seller_id}")


class LineNotFound(NotFound):
    """The requested order line does not exist."""

    code = "line_not_found"

    def __init__(
        self,
        line_id: object = None,
        *,
        order_id: object = None,
        product_id: object = None,
    ) -> None:
        self.line_id = line_id
        self.order_id = order_id
        self.product_id = product_id
        if line_id is not None:
            message = f"Order line not found with ID: {line_id}"
        else:
            message = (
                f"No order line found for product ID {product_id} "
                f"in order ID {order_id}"
            )
        super().__init__(message)


class NoLinesFound(NotFound):
    """The order exists but has no lines yet."""

    code = "no_lines_found"

    def __init__(self, order_id: object) -> None:
        self.order_id = order_id
        super().__init__(
            f"No lines found for order ID {order_id}. The order has no lines yet."
        )


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------


class DuplicateLine(Conflict):
    """The order already has a line for the product."""

    code = "duplicate_line"

    def __init__(self, order_id: object, product_id: object) -> None:
        self.order_id = order_id
        self.product_id = product_id
        super().__init__(
            f"A line already exists for product ID {product_id} in order ID "
            f"{order_id}. Update its quantity instead."
        )


# ---------------------------------------------------------------------------
# Illegal state
# ---------------------------------------------------------------------------


class OrderNotEditable(IllegalState):
    """The order status does not allow the requested change."""

    code = "order_not_editable"

    def __init__(self, current: str, required: Iterable[str]) -> None:
        self.current = current
        self.required = sorted(required)
        super().__init__(
            f"Operation not allowed. Current status: {current}. "
            f"Required: {' or '.join(self.required)}."
        )


class InvalidStatusTransition(IllegalState):
    """The requested status transition is not allowed."""

    code = "invalid_status_transition"

    def __init__(self, current: str, target: str, reason: str) -> None:
        self.current = current
        self.target = target
        self.reason = reason
        super().__init__(f"Cannot change status from {current} to {target}: {reason}.")


class OrderClosed(IllegalState):
    """The order is closed and can no longer be modified."""

    code = "order_closed"

    def __init__(self, order_id: object) -> None:
        self.order_id = order_id
        super().__init__(
            f"Order {order_id} cannot be modified. Current status: CLOSED."
        )


class OrderNotDeletable(IllegalState):
    """Only pending orders can be deleted."""

    code = "order_not_deletable"

    def __init__(self, order_id: object, current: str) -> None:
        self.order_id = order_id
        self.current = current
        super().__init__(
            f"Order {order_id} cannot be deleted in status {current}; "
            "only PENDING orders can be deleted."
        )


# ---------------------------------------------------------------------------
# Invalid arguments
# ---------------------------------------------------------------------------


class InvalidQuantity(InvalidArgument):
    """Quantity must be a positive integer."""

    code = "invalid_quantity"

    def __init__(self, quantity: object) -> None:
        self.quantity = quantity
        super().__init__(f"Quantity must be greater than 0, got {quantity}.")


class InvalidDiscount(InvalidArgument):
    """Discount percentage or amount out of range."""

    code = "invalid_discount"
