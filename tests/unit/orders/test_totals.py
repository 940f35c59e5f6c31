"""Unit tests for the pure totals functions."""

from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace

import pytest

from modules.orders.totals import (
    compute_totals,
    discount_from_percentage,
    percentage_of,
    quantize_money,
    recompute_totals,
)

pytestmark = pytest.mark.unit

D = Decimal


class TestComputeTotals:
    def test_no_lines_gives_zero_totals(self):
        totals = compute_totals([])
        assert totals.subtotal == D("0.00")
        assert totals.discount == D("0.00")
        assert totals.tax == D("0.00")
        assert totals.total == D("0.00")

    def test_tax_is_two_percent_of_subtotal(self):
        totals = compute_totals([D("200000.00")])
        assert totals.subtotal == D("200000.00")
        assert totals.tax == D("4000.00")
        assert totals.total == D("204000.00")

    def test_discount_reduces_taxable_base(self):
        totals = compute_totals([D("200000.00"), D("50000.00")], D("25000.00"))
        assert totals.subtotal == D("250000.00")
        assert totals.discount == D("25000.00")
        assert totals.tax == D("4500.00")
        assert totals.total == D("229500.00")

    def test_invariant_holds(self):
        totals = compute_totals([D("19.99"), D("5.01"), D("0.37")], D("3.33"))
        base = totals.subtotal - totals.discount
        assert totals.tax == quantize_money(base * D("0.02"))
        assert totals.total == base + totals.tax

    def test_tax_rounds_half_up(self):
        # 0.25 * 0.02 = 0.005 -> 0.01
        assert compute_totals([D("0.25")]).tax == D("0.01")

    def test_discount_is_capped_at_subtotal(self):
        totals = compute_totals([D("10.00")], D("50.00"))
        assert totals.discount == D("10.00")
        assert totals.total == D("0.00")


class TestRecomputeTotals:
    def test_writes_totals_onto_order(self):
        order = SimpleNamespace(
            subtotal=D("0"), discount=D("0"), tax=D("0"), total=D("0")
        )
        lines = [SimpleNamespace(subtotal=D("100000.00"))]

        result = recompute_totals(order, lines)

        assert result is order
        assert order.subtotal == D("100000.00")
        assert order.tax == D("2000.00")
        assert order.total == D("102000.00")

    def test_keeps_existing_discount(self):
        order = SimpleNamespace(
            subtotal=D("0"), discount=D("10.00"), tax=D("0"), total=D("0")
        )
        recompute_totals(order, [SimpleNamespace(subtotal=D("100.00"))])
        assert order.discount == D("10.00")
        assert order.total == D("91.80")


class TestDiscountHelpers:
    def test_discount_from_percentage(self):
        assert discount_from_percentage(D("250000.00"), D("10")) == D("25000.00")

    def test_percentage_of(self):
        assert percentage_of(D("250000.00"), D("25000.00")) == D("10.00")

    def test_percentage_of_empty_subtotal_is_zero(self):
        assert percentage_of(D("0.00"), D("0.00")) == D("0.00")
