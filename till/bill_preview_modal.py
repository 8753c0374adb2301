"""Bill preview modal screen."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import Static

from till.config import WALK_IN_CUSTOMER_NAME
from till.models import Ticket
from till.rendering import format_cart_line, format_totals
from till.tax import InvoiceTotals


class BillPreviewModal(ModalScreen[bool]):
    """Show the bill for the active ticket before taking payment."""

    BINDINGS = [
        ("enter", "proceed", "Take payment"),
        ("p", "proceed", "Take payment"),
        ("escape", "back", "Back to cart"),
        ("q", "back", "Back to cart"),
        ("ctrl+c", "back", "Back to cart"),
    ]

    CSS = """
    BillPreviewModal {
        align: center middle;
        background: $background 60%;
    }

    #bill-dialog {
        width: 80;
        height: auto;
        max-height: 90%;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #bill-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #bill-lines {
        color: white;
        margin-bottom: 1;
    }

    #bill-totals {
        border-top: solid $secondary;
        color: white;
    }

    #bill-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    def __init__(self, ticket: Ticket, totals: InvoiceTotals) -> None:
        super().__init__()
        self.ticket = ticket
        self.totals = totals

    def compose(self) -> ComposeResult:
        with Container(id="bill-dialog"):
            yield Static(id="bill-title")
            yield Static(id="bill-lines")
            yield Static(id="bill-totals")
            yield Static("Enter/p take payment. Esc/q back to cart.", id="bill-help")

    def on_mount(self) -> None:
        customer = self.ticket.customer_name or WALK_IN_CUSTOMER_NAME
        self.query_one("#bill-title", Static).update(f"Bill for token #{self.ticket.token_number}  {customer}")

        lines = Text()
        for idx, line in enumerate(self.ticket.lines):
            if idx > 0:
                lines.append("\n")
            lines.append(f"{idx + 1:>2}. ")
            lines.append_text(format_cart_line(line))
        self.query_one("#bill-lines", Static).update(lines)
        self.query_one("#bill-totals", Static).update(format_totals(self.totals))

    def action_proceed(self) -> None:
        self.dismiss(True)

    def action_back(self) -> None:
        self.dismiss(False)
