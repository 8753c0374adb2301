"""Stock-aware cart operations on a single ticket.

Every function returns a new ``Ticket``; the input is left untouched.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable
from uuid import uuid4

from till.errors import StockUnavailable, errmsg
from till.models import CartLine, CatalogItem, TaxMode, Ticket
from till.tax import base_price_for, compute_line_tax, round2

logger = logging.getLogger(__name__)


def _new_line_id() -> str:
    return f"cart-{uuid4().hex[:12]}"


def reserved_quantity(item_id: str, tickets: Iterable[Ticket]) -> int:
    """Quantity of ``item_id`` already sitting in the open tickets."""
    return sum(
        line.quantity
        for ticket in tickets
        if ticket.is_open
        for line in ticket.lines
        if line.catalog_item_id == item_id
    )


def available_stock(item: CatalogItem, tickets: Iterable[Ticket]) -> int:
    return item.stock - reserved_quantity(item.item_id, tickets)


def check_stock(item: CatalogItem, open_tickets: Iterable[Ticket]) -> int:
    """Units of ``item`` still sellable. Raises StockUnavailable when none are."""
    available = available_stock(item, open_tickets)
    if available <= 0:
        raise StockUnavailable(errmsg.STOCK_UNAVAILABLE)
    return available


def add_line(
    item: CatalogItem,
    ticket: Ticket,
    open_tickets: Iterable[Ticket],
    default_tax_mode: TaxMode,
    now: float,
) -> Ticket:
    """Add one unit of ``item`` to ``ticket``.

    Silently returns ``ticket`` unchanged when nothing is left to sell.
    ``open_tickets`` must include ``ticket`` itself.
    """
    try:
        check_stock(item, open_tickets)
    except StockUnavailable:
        logger.debug("stock_unavailable item_id=%s ticket=%s", item.item_id, ticket.ticket_id)
        return ticket

    lines = list(ticket.lines)
    for idx, line in enumerate(lines):
        if line.catalog_item_id != item.item_id:
            continue
        quantity = line.quantity + 1
        lines[idx] = replace(
            line,
            quantity=quantity,
            tax_amount=compute_line_tax(line.unit_price_excl_tax, quantity, line.tax_rate_percent),
        )
        return replace(ticket, lines=tuple(lines), last_updated=now)

    tax_mode = item.tax_mode or default_tax_mode
    base_price = base_price_for(item.selling_price, item.tax_rate_percent, tax_mode)
    lines.append(
        CartLine(
            line_id=_new_line_id(),
            catalog_item_id=item.item_id,
            name=item.name,
            unit_price_excl_tax=base_price,
            quantity=1,
            tax_rate_percent=item.tax_rate_percent,
            tax_amount=compute_line_tax(base_price, 1, item.tax_rate_percent),
            unit=item.unit,
        )
    )
    return replace(ticket, lines=tuple(lines), last_updated=now)


def update_quantity(ticket: Ticket, line_id: str, delta: int, now: float) -> Ticket:
    """Shift a line's quantity by ``delta``; lines reaching zero are dropped."""
    lines: list[CartLine] = []
    for line in ticket.lines:
        if line.line_id != line_id:
            lines.append(line)
            continue
        quantity = max(0, line.quantity + delta)
        if quantity == 0:
            continue
        lines.append(
            replace(
                line,
                quantity=quantity,
                tax_amount=compute_line_tax(line.unit_price_excl_tax, quantity, line.tax_rate_percent),
            )
        )
    return replace(ticket, lines=tuple(lines), last_updated=now)


def remove_line(ticket: Ticket, line_id: str, now: float) -> Ticket:
    return replace(
        ticket,
        lines=tuple(line for line in ticket.lines if line.line_id != line_id),
        last_updated=now,
    )


def clear_lines(ticket: Ticket, now: float) -> Ticket:
    return replace(ticket, lines=(), last_updated=now)


def subtotal(lines: Iterable[CartLine]) -> float:
    return round2(sum(line.amount for line in lines))


def total_tax(lines: Iterable[CartLine]) -> float:
    return round2(sum(line.tax_amount for line in lines))


def item_count(lines: Iterable[CartLine]) -> int:
    return sum(line.quantity for line in lines)
