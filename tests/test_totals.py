from decimal import Decimal

import pytest

from invoice_studio.schemas import LineItem
from invoice_studio.totals import compute_totals, line_amount, line_breakdown


def item(quantity, unit_price, tax_rate):
    return LineItem(quantity=quantity, unit_price=unit_price, tax_rate=tax_rate)


def test_no_items_gives_zero_totals():
    totals = compute_totals([])
    assert totals.subtotal == 0
    assert totals.tax_total == 0
    assert totals.grand_total == 0


def test_single_item_without_tax():
    totals = compute_totals([item(2, 50, 0)])
    assert totals.subtotal == Decimal("100.00")
    assert totals.tax_total == Decimal("0.00")
    assert totals.grand_total == Decimal("100.00")


def test_single_item_with_tax():
    line = item(3, 10, 10)
    breakdown = line_breakdown(line)
    assert breakdown.taxable == 30
    assert breakdown.tax == 3

    totals = compute_totals([line])
    assert totals.subtotal == Decimal("30.00")
    assert totals.tax_total == Decimal("3.00")
    assert totals.grand_total == Decimal("33.00")


def test_multiple_items_accumulate():
    totals = compute_totals([item(1, 100, 0), item(2, 50, 10)])
    assert totals.subtotal == Decimal("200.00")
    assert totals.tax_total == Decimal("10.00")
    assert totals.grand_total == Decimal("210.00")


def test_non_numeric_input_counts_as_zero():
    totals = compute_totals([item("", "abc", 5), item(1, 20, 0)])
    assert totals.subtotal == Decimal("20.00")
    assert totals.tax_total == Decimal("0.00")
    assert totals.grand_total == Decimal("20.00")


@pytest.mark.parametrize("value", [None, "", "abc", "inf", "1e999", float("nan"), float("inf")])
def test_unreadable_quantities_never_raise(value):
    totals = compute_totals([item(value, 10, 10)])
    assert totals.grand_total == 0


def test_numeric_strings_are_read_like_form_input():
    totals = compute_totals([item("2", "19.99", "5"), item("1abc", "10", "")])
    assert totals.subtotal == Decimal("49.98")
    assert totals.tax_total == Decimal("2.00")
    assert totals.grand_total == Decimal("51.98")


def test_float_inputs_do_not_leak_binary_error():
    totals = compute_totals([item(0.1, 0.2, 0), item(3, 0.1, 0)])
    assert totals.subtotal == Decimal("0.32")


def test_idempotent():
    items = [item(3, "19.99", "7.5"), item(1, 0.125, 0)]
    assert compute_totals(items) == compute_totals(items)


def test_rounds_half_away_from_zero():
    assert compute_totals([item(1, "0.125", 0)]).subtotal == Decimal("0.13")
    assert compute_totals([item(1, "2.675", 0)]).subtotal == Decimal("2.68")


def test_rounded_parts_can_exceed_rounded_grand_total():
    # Both parts are exactly half a cent: each rounds up on its own, their sum does not.
    totals = compute_totals([item(1, "0.005", 100)])
    assert totals.subtotal == Decimal("0.01")
    assert totals.tax_total == Decimal("0.01")
    assert totals.grand_total == Decimal("0.01")
    assert totals.subtotal + totals.tax_total != totals.grand_total


def test_grand_total_comes_from_unrounded_sums():
    items = [item(1, "0.004", 0), item(1, "0.004", 0)]
    totals = compute_totals(items)
    assert totals.subtotal == Decimal("0.01")
    assert sum(line_amount(line) for line in items) == 0


def test_line_amount_matches_single_item_grand_total():
    line = item(3, "19.99", "7.5")
    assert line_amount(line) == Decimal("64.47")
    assert compute_totals([line]).grand_total == line_amount(line)


def test_removing_items_never_increases_totals():
    items = [item(1, 100, 0), item(2, 50, 10), item(4, "12.5", 5), item("", 3, 20)]
    before = compute_totals(items)
    for index in range(len(items)):
        after = compute_totals(items[:index] + items[index + 1:])
        assert after.subtotal <= before.subtotal
        assert after.tax_total <= before.tax_total
        assert after.grand_total <= before.grand_total


def test_removing_only_item_gives_zero_totals():
    assert compute_totals([item(5, 10, 10)][1:]) == compute_totals([])


def test_unbounded_tax_rate_is_kept():
    totals = compute_totals([item(1, 10, 250)])
    assert totals.tax_total == Decimal("25.00")
    assert totals.grand_total == Decimal("35.00")


def test_huge_values_do_not_raise():
    totals = compute_totals([item("1e300", "1e300", 0)])
    assert totals.subtotal > 0
