"""Order domain constants.

Status choices, the transitions the state machine rejects and the
monetary parameters of totals recomputation.
"""

from decimal import Decimal

from decouple import config
from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    ADDING_PRODUCTS = "ADDING_PRODUCTS", "Adding products"
    AVAILABLE_FOR_PAYMENT = "AVAILABLE_FOR_PAYMENT", "Available for payment"
    PAID = "PAID", "Paid"
    DELIVERED = "DELIVERED", "Delivered"
    CLOSED = "CLOSED", "Closed"


# Transitions rejected outright, keyed by current status, with the reason
# reported to the caller. Every pair not listed here is legal, except that
# nothing leaves a terminal status.
MUST_BE_PAID_FIRST = "order must be marked PAID first"
MUST_BE_DELIVERED_FIRST = "order must be marked DELIVERED first"
BACKWARD_MOVE = "cannot move order backward"

ILLEGAL_TRANSITIONS: dict[str, dict[str, str]] = {
    OrderStatus.PENDING: {
        OrderStatus.DELIVERED: MUST_BE_PAID_FIRST,
        OrderStatus.CLOSED: MUST_BE_PAID_FIRST,
    },
    OrderStatus.PAID: {
        OrderStatus.CLOSED: MUST_BE_DELIVERED_FIRST,
        OrderStatus.PENDING: BACKWARD_MOVE,
    },
    OrderStatus.DELIVERED: {
        OrderStatus.PENDING: BACKWARD_MOVE,
        OrderStatus.PAID: BACKWARD_MOVE,
    },
}

EDITABLE_STATES: frozenset[str] = frozenset(
    {OrderStatus.PENDING, OrderStatus.ADDING_PRODUCTS}
)

TERMINAL_STATES: frozenset[str] = frozenset({OrderStatus.CLOSED})

DISCOUNTABLE_STATES: frozenset[str] = frozenset({OrderStatus.PENDING})

DELETABLE_STATES: frozenset[str] = frozenset({OrderStatus.PENDING})

TAX_RATE: Decimal = config("ORDER_TAX_RATE", default="0.02", cast=Decimal)

MONEY_QUANTUM = Decimal("0.01")

ORDER_NUMBER_MAX_RETRIES = 5
