"""Derived order totals.

Pure functions: no I/O, no persistence.  Callers load the order's lines,
call ``recompute_totals`` and save the order themselves.

All amounts are ``Decimal`` quantized to cents with ``ROUND_HALF_UP``::

    subtotal = sum(line subtotals)
    tax      = (subtotal - discount) * TAX_RATE
    total    = (subtotal - discount) + tax
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Iterable

from modules.orders.constants import MONEY_QUANTUM, TAX_RATE

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderLine

ZERO = Decimal("0.00")


def quantize_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal


def compute_totals(
    line_subtotals: Iterable[Decimal],
    discount: Decimal = ZERO,
    tax_rate: Decimal = TAX_RATE,
) -> OrderTotals:
    """Compute totals from line subtotals and a discount amount.

    A discount larger than the subtotal is capped at the subtotal so the
    taxable base never goes negative.  The capped amount is the one
    returned, and callers persist it in place of the original discount.
    """
    subtotal = quantize_money(sum(line_subtotals, ZERO))
    discount = quantize_money(min(max(discount or ZERO, ZERO), subtotal))
    taxable = subtotal - discount
    tax = quantize_money(taxable * tax_rate)
    return OrderTotals(
        subtotal=subtotal,
        discount=discount,
        tax=tax,
        total=quantize_money(taxable + tax),
    )


def recompute_totals(order: Order, lines: Iterable[OrderLine]) -> Order:
    """Write freshly computed totals onto *order* (unsaved) and return it."""
    totals = compute_totals((line.subtotal for line in lines), order.discount)
    order.subtotal = totals.subtotal
    order.discount = totals.discount
    order.tax = totals.tax
    order.total = totals.total
    return order


def discount_from_percentage(subtotal: Decimal, percentage: Decimal) -> Decimal:
    return quantize_money(subtotal * percentage / Decimal("100"))


def percentage_of(subtotal: Decimal, discount: Decimal) -> Decimal:
    """Discount expressed as a percentage of *subtotal* (``0`` when empty)."""
    if not subtotal:
        return ZERO
    return quantize_money(discount * Decimal("100") / subtotal)


def totals_of(order: Order) -> OrderTotals:
    """Snapshot of the totals currently stored on *order*."""
    return OrderTotals(
        subtotal=order.subtotal,
        discount=order.discount,
        tax=order.tax,
        total=order.total,
    )
