"""Customer selection modal screen."""

from __future__ import annotations

from dataclasses import dataclass

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.css.query import NoMatches
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from till.config import WALK_IN_CUSTOMER_NAME
from till.data import filter_customers
from till.errors import DirectoryError, errmsg
from till.models import Customer
from till.ports import CustomerDirectory

_CREATE_FIELDS = ("name", "phone", "gstin")
_VISIBLE_ROWS = 10


@dataclass(frozen=True)
class CustomerChoice:
    """Picked customer; ``customer`` is None for a walk-in."""

    customer: Customer | None


class CustomerModal(ModalScreen[CustomerChoice | None]):
    """Search the customer directory or add a new customer."""

    CSS = """
    CustomerModal {
        align: center middle;
        background: $background 60%;
    }

    #customer-dialog {
        width: 64;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #customer-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #customer-body {
        margin-bottom: 1;
        color: white;
    }

    #customer-error {
        color: #ffb3b3;
    }

    #customer-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    def __init__(self, directory: CustomerDirectory) -> None:
        super().__init__()
        self.directory = directory
        self.customers: list[Customer] = []
        self.query_text = ""
        self.cursor_index = 0
        self.creating = False
        self.create_values = {name: "" for name in _CREATE_FIELDS}
        self.create_field = 0
        self.error = ""

    def compose(self) -> ComposeResult:
        with Container(id="customer-dialog"):
            yield Static("Customer", id="customer-title")
            yield Static(id="customer-body")
            yield Static(id="customer-error")
            yield Static(id="customer-help")

    def on_mount(self) -> None:
        try:
            self.customers = self.directory.get_customer_directory("customer")
        except DirectoryError as exc:
            self.error = str(exc)
        self._refresh_content()

    def _rows(self) -> list[Customer | None]:
        return [None, *filter_customers(self.customers, self.query_text)]

    def on_key(self, event: Key) -> None:
        event.stop()
        if self.creating:
            self._on_create_key(event)
        else:
            self._on_search_key(event)
        self._refresh_content()

    def _on_search_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            return
        if event.key == "ctrl+n":
            self.creating = True
            self.create_values = {name: "" for name in _CREATE_FIELDS}
            self.create_values["name"] = self.query_text
            self.create_field = 0
            self.error = ""
            return
        if event.key == "enter":
            rows = self._rows()
            self.dismiss(CustomerChoice(rows[min(self.cursor_index, len(rows) - 1)]))
            return
        if event.key in {"up", "down", "tab"}:
            step = -1 if event.key == "up" else 1
            self.cursor_index = (self.cursor_index + step) % len(self._rows())
            return
        if event.key == "backspace":
            self.query_text = self.query_text[:-1]
            self.cursor_index = 0
            return
        if event.is_printable and event.character:
            self.query_text += event.character
            self.cursor_index = 0

    def _on_create_key(self, event: Key) -> None:
        field = _CREATE_FIELDS[self.create_field]
        if event.key in {"escape", "ctrl+c"}:
            self.creating = False
            self.error = ""
            return
        if event.key == "enter":
            self._create_customer()
            return
        if event.key in {"tab", "down"}:
            self.create_field = (self.create_field + 1) % len(_CREATE_FIELDS)
            return
        if event.key in {"shift+tab", "up"}:
            self.create_field = (self.create_field - 1) % len(_CREATE_FIELDS)
            return
        if event.key == "backspace":
            self.create_values[field] = self.create_values[field][:-1]
            return
        if event.is_printable and event.character:
            self.create_values[field] += event.character

    def _create_customer(self) -> None:
        if not self.create_values["name"].strip():
            self.error = errmsg.CUSTOMER_NAME_REQUIRED
            return
        try:
            customer = self.directory.create_customer(dict(self.create_values))
        except DirectoryError as exc:
            self.error = str(exc)
            return
        self.dismiss(CustomerChoice(customer))

    def _refresh_content(self) -> None:
        try:
            help_text = self.query_one("#customer-help", Static)
        except NoMatches:
            return
        body = Text()
        if self.creating:
            body.append("New customer\n", style="bold")
            for idx, name in enumerate(_CREATE_FIELDS):
                pointer = "➤ " if idx == self.create_field else "  "
                cursor = "|" if idx == self.create_field else ""
                body.append(f"\n{pointer}{name.upper():<7}{self.create_values[name]}{cursor}")
            help_text.update("Tab/↑/↓ field, Enter save, Esc back to search")
        else:
            body.append(f"Search: {self.query_text}|\n", style="bold")
            rows = self._rows()
            if self.cursor_index >= len(rows):
                self.cursor_index = len(rows) - 1
            start = max(0, min(self.cursor_index - _VISIBLE_ROWS // 2, len(rows) - _VISIBLE_ROWS))
            for idx in range(start, min(len(rows), start + _VISIBLE_ROWS)):
                customer = rows[idx]
                pointer = "➤ " if idx == self.cursor_index else "  "
                if customer is None:
                    body.append(f"\n{pointer}{WALK_IN_CUSTOMER_NAME}", style="italic")
                    continue
                body.append(f"\n{pointer}{customer.name}")
                if customer.phone:
                    body.append(f"  {customer.phone}", style="dim")
                if customer.gstin:
                    body.append(f"  GSTIN {customer.gstin}", style="dim")
            help_text.update("Type to search, ↑/↓ move, Enter pick, Ctrl+N new customer, Esc close")
        self.query_one("#customer-body", Static).update(body)
        self.query_one("#customer-error", Static).update(self.error or "")
