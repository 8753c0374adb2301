"""GST, discount and invoice total arithmetic.

Everything here is pure: inputs are never mutated and the same inputs always
give the same result. Callers validate rates (0-100) and non-negative prices.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from till.models import CartLine, Discount, DiscountType, TaxMode

# Notes a cashier usually rounds up to, largest first.
_TENDER_DENOMINATIONS = (500, 200, 100, 50, 20, 10)
_COMMON_NOTES = (100, 200, 500)
_MAX_TENDER_SUGGESTIONS = 6


@dataclass(frozen=True)
class GstSplit:
    """Component rates and amounts for one taxable amount."""

    cgst_rate: float
    sgst_rate: float
    igst_rate: float
    cgst: float
    sgst: float
    igst: float

    @property
    def is_interstate(self) -> bool:
        return self.igst_rate > 0


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: float
    total_tax: float
    discount_amount: float
    grand_total: float
    round_off: float
    cgst: float = 0.0
    sgst: float = 0.0
    igst: float = 0.0

    @property
    def rounded_total(self) -> float:
        return round2(self.grand_total + self.round_off)


def _quantize(amount: float, exp: str) -> float:
    return float(Decimal(str(amount)).quantize(Decimal(exp), rounding=ROUND_HALF_UP))


def round2(amount: float) -> float:
    """Round to paise, half away from zero."""
    return _quantize(amount, "0.01")


def compute_line_tax(base_price: float, quantity: int, rate_percent: float) -> float:
    return round2(base_price * quantity * rate_percent / 100)


def base_price_for(selling_price: float, rate_percent: float, tax_mode: TaxMode) -> float:
    """Price excluding tax for a catalog selling price."""
    if tax_mode is TaxMode.INCLUSIVE and rate_percent > 0:
        return round2(selling_price / (1 + rate_percent / 100))
    return selling_price


def split_gst(
    taxable_amount: float,
    rate_percent: float,
    seller_state_code: str | None,
    buyer_state_code: str | None,
) -> GstSplit:
    """Split a GST rate into CGST+SGST (same state) or IGST (different states)."""
    if seller_state_code == buyer_state_code:
        half = rate_percent / 2
        half_amount = round2(taxable_amount * half / 100)
        return GstSplit(cgst_rate=half, sgst_rate=half, igst_rate=0.0, cgst=half_amount, sgst=half_amount, igst=0.0)
    return GstSplit(
        cgst_rate=0.0,
        sgst_rate=0.0,
        igst_rate=rate_percent,
        cgst=0.0,
        sgst=0.0,
        igst=round2(taxable_amount * rate_percent / 100),
    )


def apply_invoice_discount(subtotal: float, discount: Discount) -> float:
    """Return the discount amount for an invoice-level discount."""
    if discount.type is DiscountType.PERCENT:
        pct = min(max(discount.value, 0.0), 100.0)
        return subtotal * pct / 100
    return min(max(discount.value, 0.0), subtotal)


def grand_total(subtotal: float, total_tax: float, discount_amount: float) -> float:
    return max(0.0, subtotal + total_tax - discount_amount)


def round_off(amount: float) -> float:
    """Adjustment that brings an invoice total to the nearest rupee."""
    return round2(_quantize(amount, "1") - amount)


def change_due(tendered: float, total: float) -> float:
    return max(0.0, tendered - total)


def suggest_tendered_amounts(total: float) -> list[int]:
    """Cash amounts a customer is likely to hand over for ``total``.

    The nearest ten above the total, then for every note the smallest multiple
    covering the total (but not more than twice it). Small bills also offer
    the common 100/200/500 notes. Unique, ascending, at most six.
    """
    if total <= 0:
        return []

    by_note: list[int] = []
    for note in _TENDER_DENOMINATIONS:
        rounded_up = math.ceil(total / note) * note
        if total <= rounded_up <= total * 2 and rounded_up not in by_note:
            by_note.append(rounded_up)
    if total < 500:
        by_note.extend(note for note in _COMMON_NOTES if note >= total and note not in by_note)
    by_note = sorted(by_note)[:_MAX_TENDER_SUGGESTIONS]

    amounts = {math.ceil(total / 10) * 10, *by_note}
    return sorted(amounts)[:_MAX_TENDER_SUGGESTIONS]


def invoice_totals(
    lines: Iterable[CartLine],
    discount: Discount,
    seller_state_code: str | None,
    buyer_state_code: str | None = None,
) -> InvoiceTotals:
    """Totals for a whole invoice.

    The discount comes off the pre-tax subtotal; line taxes stay computed on
    the undiscounted line amounts.
    """
    buyer = buyer_state_code or seller_state_code
    rows = list(lines)
    sub = round2(sum(line.amount for line in rows))
    tax = round2(sum(line.tax_amount for line in rows))
    cgst = sgst = igst = 0.0
    for line in rows:
        split = split_gst(line.amount, line.tax_rate_percent, seller_state_code, buyer)
        cgst += split.cgst
        sgst += split.sgst
        igst += split.igst
    discount_amount = round2(apply_invoice_discount(sub, discount))
    total = round2(grand_total(sub, tax, discount_amount))
    return InvoiceTotals(
        subtotal=sub,
        total_tax=tax,
        discount_amount=discount_amount,
        grand_total=total,
        round_off=round_off(total),
        cgst=round2(cgst),
        sgst=round2(sgst),
        igst=round2(igst),
    )
