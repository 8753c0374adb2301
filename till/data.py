"""Static catalog data, category badges and lookup helpers."""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from till.constant import (
    CATEGORY_BADGES,
    CATEGORY_KEYWORDS,
    CATEGORY_KIND_BY_NAME,
    COMPANY_PROFILE,
    DEMO_CATALOG,
)
from till.models import CatalogItem, CompanyProfile, Customer, TaxMode


class CategoryKind(str, Enum):
    BEVERAGE = "beverage"
    SNACK = "snack"
    FOOD = "food"
    DAIRY = "dairy"
    BAKERY = "bakery"
    PRODUCE = "produce"
    STAPLES = "staples"
    GROCERY = "grocery"
    STATIONERY = "stationery"
    PERSONAL_CARE = "personal_care"
    HEALTH = "health"
    HOME = "home"
    BABY = "baby"
    ELECTRONICS = "electronics"
    HARDWARE = "hardware"
    PETS = "pets"
    FASHION = "fashion"
    SPORTS = "sports"
    GIFTS = "gifts"
    GENERAL = "general"

    @property
    def glyph(self) -> str:
        return CATEGORY_BADGES[self.value][0]

    @property
    def style(self) -> str:
        return CATEGORY_BADGES[self.value][1]


_KIND_BY_LOWER_NAME: dict[str, str] = {name.lower(): kind for name, kind in CATEGORY_KIND_BY_NAME.items()}


def resolve_category(category: str | None) -> CategoryKind:
    """Map a free-form catalog category to its kind.

    Exact name first, then case-insensitive name, then the first keyword
    contained in the name, else general.
    """
    name = (category or "").strip()
    if not name:
        return CategoryKind.GENERAL
    if name in CATEGORY_KIND_BY_NAME:
        return CategoryKind(CATEGORY_KIND_BY_NAME[name])
    lowered = name.lower()
    if lowered in _KIND_BY_LOWER_NAME:
        return CategoryKind(_KIND_BY_LOWER_NAME[lowered])
    for keyword, kind in CATEGORY_KEYWORDS:
        if keyword in lowered:
            return CategoryKind(kind)
    return CategoryKind.GENERAL


def search_catalog(items: Iterable[CatalogItem], query: str) -> list[CatalogItem]:
    """Active items whose name, item code or category contains ``query``."""
    needle = query.strip().lower()
    matches = []
    for item in items:
        if not item.is_active:
            continue
        if not needle or any(needle in field.lower() for field in (item.name, item.item_code, item.category)):
            matches.append(item)
    return matches


def filter_customers(customers: Iterable[Customer], query: str) -> list[Customer]:
    needle = query.strip().lower()
    if not needle:
        return list(customers)
    digits = "".join(ch for ch in needle if ch.isdigit())
    return [
        customer
        for customer in customers
        if needle in customer.name.lower() or (digits and digits in customer.phone)
    ]


def _catalog_item(raw: dict[str, object]) -> CatalogItem:
    tax_mode = raw.get("tax_mode")
    return CatalogItem(
        item_id=str(raw["item_id"]),
        name=str(raw["name"]),
        selling_price=float(raw["selling_price"]),  # type: ignore[arg-type]
        stock=int(raw["stock"]),  # type: ignore[call-overload]
        tax_rate_percent=float(raw.get("tax_rate_percent", 0)),  # type: ignore[arg-type]
        unit=str(raw.get("unit", "PCS")),
        tax_mode=TaxMode(tax_mode) if tax_mode else None,
        category=str(raw.get("category", "")),
        item_code=str(raw.get("item_code", "")),
        hsn_code=str(raw.get("hsn_code", "")),
    )


DEMO_ITEMS: list[CatalogItem] = [_catalog_item(raw) for raw in DEMO_CATALOG]

SHOP_PROFILE = CompanyProfile(**COMPANY_PROFILE)
