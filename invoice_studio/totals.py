"""Totals engine: line amounts and document subtotal, tax and grand total.

Line amounts and document totals are derived from the same unrounded
per-line figures. Rounding to cents (half away from zero) happens once, as
the last step, independently for each published figure. Because of that,
``subtotal + tax_total`` can differ from ``grand_total`` by a cent; the
grand total is always the rounded exact sum, never the sum of rounded parts.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from .schemas import LineItem, Totals
from .utils import ZERO, coerce_number, round_money

HUNDRED = Decimal(100)


@dataclass(frozen=True)
class LineBreakdown:
    taxable: Decimal
    tax: Decimal

    @property
    def amount(self) -> Decimal:
        return self.taxable + self.tax


def line_breakdown(item: LineItem) -> LineBreakdown:
    """Unrounded taxable and tax amounts for one line."""
    quantity = coerce_number(item.quantity)
    unit_price = coerce_number(item.unit_price)
    tax_rate = coerce_number(item.tax_rate)

    taxable = quantity * unit_price
    return LineBreakdown(taxable=taxable, tax=taxable * (tax_rate / HUNDRED))


def line_amount(item: LineItem) -> Decimal:
    """Line total including tax, rounded to cents."""
    return round_money(line_breakdown(item).amount)


def compute_totals(items: Iterable[LineItem]) -> Totals:
    subtotal = ZERO
    tax_total = ZERO
    for item in items:
        breakdown = line_breakdown(item)
        subtotal += breakdown.taxable
        tax_total += breakdown.tax

    grand_total = subtotal + tax_total
    return Totals(
        subtotal=round_money(subtotal),
        tax_total=round_money(tax_total),
        grand_total=round_money(grand_total),
    )
