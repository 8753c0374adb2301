"""Tests for catalog lookup helpers and screen formatting."""

from __future__ import annotations

import pytest

from till.data import DEMO_ITEMS, CategoryKind, filter_customers, resolve_category, search_catalog
from till.models import CartLine, Customer
from till.rendering import format_cart_line, format_catalog_row, format_money, format_totals
from till.tax import InvoiceTotals


@pytest.mark.parametrize(
    ("category", "kind"),
    [
        ("Dairy", CategoryKind.DAIRY),
        ("dairy", CategoryKind.DAIRY),
        ("Frozen Food", CategoryKind.FOOD),
        ("Baby Food", CategoryKind.FOOD),
        ("Baby Care", CategoryKind.BABY),
        ("Widgets", CategoryKind.GENERAL),
        ("", CategoryKind.GENERAL),
        (None, CategoryKind.GENERAL),
    ],
)
def test_resolve_category(category, kind):
    assert resolve_category(category) is kind


def test_every_kind_has_a_badge():
    for kind in CategoryKind:
        assert kind.glyph
        assert kind.style


def test_search_matches_name_code_and_category(make_item):
    items = [
        make_item("a", name="Toned Milk", item_code="MILK500", category="Dairy"),
        make_item("b", name="Notebook", item_code="NB200", category="Stationery"),
        make_item("c", name="Old Milk", is_active=False),
    ]

    assert [i.item_id for i in search_catalog(items, "MILK")] == ["a"]
    assert [i.item_id for i in search_catalog(items, "nb2")] == ["b"]
    assert [i.item_id for i in search_catalog(items, "stationery")] == ["b"]
    assert [i.item_id for i in search_catalog(items, "  ")] == ["a", "b"]


def test_filter_customers_by_name_or_phone():
    customers = [
        Customer("c1", "Anita Kulkarni", "9890011223"),
        Customer("c2", "Ravi Reddy", "9000012345"),
    ]

    assert [c.customer_id for c in filter_customers(customers, "anita")] == ["c1"]
    assert [c.customer_id for c in filter_customers(customers, "12345")] == ["c2"]
    assert len(filter_customers(customers, "")) == 2


def test_demo_catalog_is_consistent():
    ids = [item.item_id for item in DEMO_ITEMS]

    assert len(ids) == len(set(ids))
    assert all(0 <= item.tax_rate_percent <= 100 for item in DEMO_ITEMS)
    assert all(item.selling_price >= 0 for item in DEMO_ITEMS)
    assert any(item.stock == 0 for item in DEMO_ITEMS)


def test_format_money_uses_rupee_and_grouping():
    assert format_money(1234.5) == "₹1,234.50"


def test_catalog_row_flags_out_of_stock(make_item):
    item = make_item(name="Cable", category="Mobile Accessories")

    assert "out of stock" in format_catalog_row(item, 0).plain
    assert "[3 pcs]" in format_catalog_row(item, 3).plain


def test_cart_line_shows_tax():
    line = CartLine("l1", "itm", "Soap", 100.0, 2, 18.0, 36.0)

    assert format_cart_line(line).plain == "  2 x Soap  @ ₹100.00  ₹200.00  +18% ₹36.00"


def test_totals_show_igst_or_split():
    interstate = InvoiceTotals(200.0, 36.0, 0.0, 236.0, 0.0, igst=36.0)
    local = InvoiceTotals(200.0, 36.0, 20.0, 216.0, 0.0, cgst=18.0, sgst=18.0)

    assert "IGST" in format_totals(interstate).plain
    assert "CGST" not in format_totals(interstate).plain
    plain = format_totals(local).plain
    assert "CGST" in plain and "SGST" in plain
    assert "Discount" in plain
