"""Thermal receipt printing over ESC/POS USB."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path

from till.config import (
    PRINTER_FONT_PATH,
    PRINTER_FONT_SIZE,
    PRINTER_LEFT_INDENT_PX,
    PRINTER_RECEIPT_COLUMNS,
    PRINTER_TAIL_SPACER_PX,
    PRINTER_USB_PRODUCT_ID,
    PRINTER_USB_VENDOR_ID,
    PRINTER_WIDTH_PX,
)
from till.models import CheckoutDraft, CompanyProfile, PaymentMethod

logger = logging.getLogger(__name__)

# Extra vertical headroom so descenders are not clipped on thermal output.
_LINE_EXTRA_PX = 8
_FONT_OVERRIDE_ENV = "RECEIPT_PRINTER_FONT_PATH"
_LINUX_FONT_FALLBACKS = (
    "/usr/share/fonts/TTF/DejaVuSansMono.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/liberation/LiberationMono-Regular.ttf",
)


def _pair(left: str, right: str, width: int) -> str:
    room = max(1, width - len(right) - 1)
    return f"{left[:room]:<{room}} {right}"


def _money(amount: float) -> str:
    return f"{amount:,.2f}"


def receipt_lines(
    draft: CheckoutDraft,
    company: CompanyProfile,
    when: datetime | None = None,
    columns: int = PRINTER_RECEIPT_COLUMNS,
) -> list[str]:
    """Lay out a sale receipt as fixed-width text rows."""
    when = when or datetime.fromtimestamp(draft.created_at)
    rule = "-" * columns
    double_rule = "=" * columns

    lines = [(company.name or "YOUR SHOP").upper().center(columns)]
    if company.address:
        lines.append(company.address.center(columns))
    place = " ".join(part for part in (company.city, company.state, company.pincode) if part)
    if place:
        lines.append(place.center(columns))
    if company.phone:
        lines.append(f"Ph: {company.phone}".center(columns))
    if company.gstin:
        lines.append(f"GSTIN: {company.gstin}".center(columns))

    title = "*** CASH BILL ***" if draft.payment.method is PaymentMethod.CASH else "*** TAX INVOICE ***"
    lines += [double_rule, title.center(columns), rule]
    lines.append(_pair(f"Bill No: {draft.bill_number}", f"Token #{draft.token_number}", columns))
    lines.append(_pair(f"Date: {when:%d/%m/%Y}", f"{when:%H:%M}", columns))
    lines.append(f"Customer: {draft.customer.name}"[:columns])
    lines += [rule, _pair("ITEM", "AMT", columns), rule]

    for item in draft.items:
        lines.append(item.name[:columns])
        lines.append(_pair(f"  {_money(item.unit_price_excl_tax)} x {item.quantity} {item.unit}", _money(item.amount), columns))

    lines.append(double_rule)
    lines.append(_pair("Sub Total:", _money(draft.subtotal), columns))
    if draft.igst:
        lines.append(_pair("IGST:", _money(draft.igst), columns))
    else:
        lines.append(_pair("CGST:", _money(draft.cgst), columns))
        lines.append(_pair("SGST:", _money(draft.sgst), columns))
    if draft.discount.discount_amount:
        lines.append(_pair("Discount:", f"-{_money(draft.discount.discount_amount)}", columns))
    lines.append(double_rule)
    lines.append(_pair("GRAND TOTAL:", _money(draft.grand_total), columns))
    if draft.round_off:
        lines.append(_pair("Round Off:", f"{draft.round_off:+.2f}", columns))
        lines.append(_pair("Rounded Total:", _money(draft.grand_total + draft.round_off), columns))
    lines.append(rule)

    method = draft.payment.method.value.upper()
    if draft.payment.received_amount is not None:
        lines.append(_pair(f"Paid ({method}):", _money(draft.payment.received_amount), columns))
    else:
        lines.append(_pair("Payment:", method, columns))
    if draft.payment.change_amount:
        lines.append(_pair("Change:", _money(draft.payment.change_amount), columns))
    if draft.payment.transaction_id:
        lines.append(f"Ref: {draft.payment.transaction_id}"[:columns])

    quantity = sum(item.quantity for item in draft.items)
    lines += [
        rule,
        "Thank You! Visit Again!".center(columns),
        f"Items: {len(draft.items)} | Qty: {quantity}".center(columns),
    ]
    return lines


def resolve_printer_font_path() -> str:
    """
    Resolve a monospace printer font path.

    Resolution order:
    1. RECEIPT_PRINTER_FONT_PATH (if set)
    2. PRINTER_FONT_PATH
    3. Known Linux fallbacks
    """
    env_override = os.environ.get(_FONT_OVERRIDE_ENV, "").strip()
    candidates: list[str] = []
    if env_override:
        candidates.append(env_override)
    candidates.append(PRINTER_FONT_PATH)
    candidates.extend(_LINUX_FONT_FALLBACKS)

    seen: set[str] = set()
    for candidate in candidates:
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        if Path(candidate).is_file():
            return candidate

    raise RuntimeError(
        f"No usable printer font found. Set {_FONT_OVERRIDE_ENV} to a valid .ttf/.otf file. "
        f"Tried: {', '.join(seen)}"
    )


def check_printer_dependencies() -> tuple[bool, str]:
    """Check whether printer dependencies are importable and a font resolves."""
    try:
        from escpos.printer import Usb  # noqa: F401
        from PIL import ImageFont

        ImageFont.truetype(resolve_printer_font_path(), PRINTER_FONT_SIZE)
    except Exception as exc:
        return (False, f"Printer unavailable: {exc}")
    return (True, "Printer ready")


def _render_line(text: str, font: object) -> object:
    from PIL import Image, ImageDraw

    canvas_height = PRINTER_FONT_SIZE + _LINE_EXTRA_PX
    img = Image.new("1", (PRINTER_WIDTH_PX, canvas_height), color=1)
    draw = ImageDraw.Draw(img)

    bbox = draw.textbbox((0, 0), text or " ", font=font)
    text_height = bbox[3] - bbox[1]
    # Offset by bbox top so descenders are not clipped.
    y = (canvas_height - text_height) // 2 - bbox[1]
    draw.text((PRINTER_LEFT_INDENT_PX, y), text, font=font, fill=0)
    return img


def _render_spacer(height_px: int) -> object:
    from PIL import Image

    return Image.new("1", (PRINTER_WIDTH_PX, max(1, height_px)), color=1)


def print_receipt(draft: CheckoutDraft, company: CompanyProfile) -> None:
    """Print a sale receipt and cut the paper. Blocking."""
    try:
        from escpos.printer import Usb
        from PIL import ImageFont
    except Exception as exc:
        raise RuntimeError(f"Printer dependencies unavailable: {exc}") from exc

    printer = Usb(PRINTER_USB_VENDOR_ID, PRINTER_USB_PRODUCT_ID)
    font = ImageFont.truetype(resolve_printer_font_path(), PRINTER_FONT_SIZE)
    for line in receipt_lines(draft, company):
        printer.image(_render_line(line, font))
    # Extra tail for easier tearing.
    printer.image(_render_spacer(PRINTER_TAIL_SPACER_PX))
    printer.cut()
    logger.info("receipt_printed bill=%s", draft.bill_number)
