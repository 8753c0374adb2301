"""Rich text rendering helpers for the till screens."""

from __future__ import annotations

from rich.text import Text

from till.cart import item_count
from till.data import resolve_category
from till.models import CartLine, CatalogItem, Ticket, TicketStatus
from till.tax import InvoiceTotals


def format_money(amount: float) -> str:
    return f"₹{amount:,.2f}"


def ticket_style(ticket: Ticket, active: bool) -> str:
    """Return a consistent style for a ticket tab."""
    if ticket.status is TicketStatus.COMPLETED:
        return "bold #0b1f0f on #5fbf72"
    if active:
        return "bold #ffffff on #2f6db5"
    if ticket.status is TicketStatus.PROCESSING or ticket.is_in_checkout:
        return "bold #1f1300 on #e0a43a"
    return "#d0d0d0 on #303030"


def format_ticket_strip(tickets: tuple[Ticket, ...], active_ticket_id: str) -> Text:
    """Render the ticket tabs as ``#token (items)`` badges."""
    text = Text()
    for idx, ticket in enumerate(tickets):
        if idx > 0:
            text.append(" ")
        label = f" #{ticket.token_number}"
        if ticket.customer_name:
            label += f" {ticket.customer_name[:12]}"
        count = item_count(ticket.lines)
        if count:
            label += f" ({count})"
        if ticket.status is TicketStatus.COMPLETED:
            label += " done"
        elif ticket.is_in_checkout:
            label += " $"
        text.append(f"{label} ", style=ticket_style(ticket, ticket.ticket_id == active_ticket_id))
    return text


def category_badge(category: str) -> Text:
    kind = resolve_category(category)
    return Text(f"{kind.glyph:<3}", style=kind.style)


def format_catalog_row(item: CatalogItem, available: int) -> Text:
    text = Text()
    text.append_text(category_badge(item.category))
    text.append(f" {item.name}")
    text.append(f"  {format_money(item.selling_price)}", style="bold")
    if available <= 0:
        text.append("  out of stock", style="bold red")
    else:
        text.append(f"  [{available} {item.unit.lower()}]", style="dim")
    return text


def format_cart_line(line: CartLine) -> Text:
    text = Text()
    text.append(f"{line.quantity:>3} x ", style="bold")
    text.append(line.name)
    text.append(f"  @ {format_money(line.unit_price_excl_tax)}", style="dim")
    text.append(f"  {format_money(line.amount)}", style="bold")
    if line.tax_rate_percent:
        text.append(f"  +{line.tax_rate_percent:g}% {format_money(line.tax_amount)}", style="dim")
    return text


def format_totals(totals: InvoiceTotals) -> Text:
    """Render invoice totals, one figure per line."""
    rows: list[tuple[str, str, str]] = [("Subtotal", format_money(totals.subtotal), "")]
    if totals.igst:
        rows.append(("IGST", format_money(totals.igst), "dim"))
    elif totals.total_tax:
        rows.append(("CGST", format_money(totals.cgst), "dim"))
        rows.append(("SGST", format_money(totals.sgst), "dim"))
    if totals.discount_amount:
        rows.append(("Discount", f"-{format_money(totals.discount_amount)}", "green"))
    rows.append(("Grand total", format_money(totals.grand_total), "bold"))
    if totals.round_off:
        rows.append(("Round off", f"{totals.round_off:+.2f}", "dim"))

    text = Text()
    for idx, (label, value, style) in enumerate(rows):
        if idx > 0:
            text.append("\n")
        text.append(f"{label:<12}{value:>14}", style=style)
    return text
