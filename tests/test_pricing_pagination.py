from types import SimpleNamespace

import pytest

from utils.pagination import paginate
from utils.pricing import cart_totals, discounted_price, line_total, matches_stock_filter


def line(quantity, unit_price):
    return SimpleNamespace(quantity=quantity, unit_price=unit_price)


def test_cart_totals_applies_tax_on_subtotal():
    totals = cart_totals([line(2, 100.0), line(1, 49.99)])
    assert totals["subtotal"] == 249.99
    assert totals["tax"] == round(249.99 * 0.16, 2)
    assert totals["shipping"] == 0
    assert totals["total"] == round(totals["subtotal"] + totals["tax"], 2)
    assert totals["item_count"] == 3


def test_cart_totals_empty():
    totals = cart_totals([])
    assert totals == {"subtotal": 0, "tax": 0, "shipping": 0, "total": 0, "item_count": 0}


def test_line_total_rounds_to_cents():
    assert line_total(3, 0.1) == 0.3


@pytest.mark.parametrize("discount, expected", [(0, 200.0), (25, 150.0), (100, 0.0), (12.5, 175.0)])
def test_discounted_price(discount, expected):
    assert discounted_price(200.0, discount) == expected


@pytest.mark.parametrize("discount", [-1, 101])
def test_discounted_price_rejects_out_of_range(discount):
    with pytest.raises(ValueError):
        discounted_price(200.0, discount)


def test_stock_buckets():
    assert matches_stock_filter(6, "instock")
    assert not matches_stock_filter(5, "instock")
    assert matches_stock_filter(5, "lowstock")
    assert matches_stock_filter(1, "lowstock")
    assert not matches_stock_filter(0, "lowstock")
    assert matches_stock_filter(0, "outofstock")
    assert matches_stock_filter(0, "anything")
    assert matches_stock_filter(3, None)


def test_paginate_slices_and_counts_pages():
    page = paginate(list(range(25)), page=2, page_size=10)
    assert page["items"] == list(range(10, 20))
    assert page["total"] == 25
    assert page["total_pages"] == 3
    assert page["page"] == 2


def test_paginate_clamps_page_into_range():
    assert paginate(list(range(5)), page=9, page_size=2)["page"] == 3
    assert paginate(list(range(5)), page=-4, page_size=2)["page"] == 1
    empty = paginate([], page=3, page_size=10)
    assert empty["page"] == 1
    assert empty["items"] == []
    assert empty["total_pages"] == 0
