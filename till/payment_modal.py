"""Payment collection modal screen."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from till.checkout import CheckoutEngine
from till.config import WALK_IN_CUSTOMER_NAME
from till.models import Discount, DiscountType, PaymentMethod, ShareChannel
from till.rendering import format_money, format_totals


@dataclass(frozen=True)
class PaymentEntry:
    method: PaymentMethod
    tendered: float | None
    transaction_id: str | None
    share_via: ShareChannel


class PaymentOutcome(str, Enum):
    PAID = "paid"
    CANCELLED = "cancelled"
    PREVIOUS_TICKET = "previous"
    NEXT_TICKET = "next"


_METHODS = list(PaymentMethod)
_SHARE_CHANNELS = [ShareChannel.NONE, ShareChannel.PRINT, ShareChannel.WHATSAPP, ShareChannel.SMS]
_QUICK_KEYS = ("f1", "f2", "f3", "f4", "f5", "f6")
_FIELDS = ("tendered", "discount", "reference")
_MAX_FIELD_LEN = 24


class PaymentModal(ModalScreen[PaymentOutcome]):
    """Collect method, tender, discount and share channel for the active ticket."""

    CSS = """
    PaymentModal {
        align: center middle;
        background: $background 60%;
    }

    #payment-dialog {
        width: 72;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #payment-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #payment-body {
        color: white;
        margin-bottom: 1;
    }

    #payment-error {
        color: #ffb3b3;
        margin-bottom: 1;
    }

    #payment-help {
        color: #dddddd;
    }
    """

    def __init__(self, engine: CheckoutEngine, submit: Callable[[PaymentEntry], str | None]) -> None:
        super().__init__()
        self.engine = engine
        self.submit = submit
        self.method_index = _METHODS.index(engine.payment_method)
        self.share_index = 0
        self.field_index = 0
        self.values = {name: "" for name in _FIELDS}
        if engine.tendered is not None:
            self.values["tendered"] = f"{engine.tendered:g}"
        self.values["reference"] = engine.transaction_id or ""
        self.discount_type = engine.discount.type
        if engine.discount.value:
            self.values["discount"] = f"{engine.discount.value:g}"
        self.error = ""

    @property
    def method(self) -> PaymentMethod:
        return _METHODS[self.method_index]

    @property
    def field(self) -> str:
        return _FIELDS[self.field_index]

    def compose(self) -> ComposeResult:
        with Container(id="payment-dialog"):
            yield Static(id="payment-title")
            yield Static(id="payment-body")
            yield Static(id="payment-error")
            yield Static(
                "←/→ method. Tab field. F1-F6 quick cash. % discount type. ↑/↓ share.\n"
                "Enter complete. [/] other customer. Esc back to cart.",
                id="payment-help",
            )

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        key = event.key
        char = event.character if event.is_printable else None
        event.stop()

        if key in {"escape", "ctrl+c"}:
            self.dismiss(PaymentOutcome.CANCELLED)
            return
        if char == "[":
            self.dismiss(PaymentOutcome.PREVIOUS_TICKET)
            return
        if char == "]":
            self.dismiss(PaymentOutcome.NEXT_TICKET)
            return
        if key == "enter":
            self._confirm()
            return

        if key == "tab":
            self.field_index = (self.field_index + 1) % len(_FIELDS)
        elif key == "shift+tab":
            self.field_index = (self.field_index - 1) % len(_FIELDS)
        elif key in {"left", "right"}:
            step = 1 if key == "right" else -1
            self.method_index = (self.method_index + step) % len(_METHODS)
        elif key in {"up", "down"}:
            step = 1 if key == "down" else -1
            self.share_index = (self.share_index + step) % len(_SHARE_CHANNELS)
        elif key in _QUICK_KEYS:
            self._apply_quick_amount(_QUICK_KEYS.index(key))
        elif key == "backspace":
            self.values[self.field] = self.values[self.field][:-1]
            self._after_edit()
        elif char == "%":
            self.discount_type = DiscountType.AMOUNT if self.discount_type is DiscountType.PERCENT else DiscountType.PERCENT
            self._apply_discount()
        elif char:
            self._type_char(char)
        else:
            return
        self._sync_engine()
        self.error = ""
        self._refresh_content()

    def _sync_engine(self) -> None:
        self.engine.payment_method = self.method
        self.engine.tendered = _parse_amount(self.values["tendered"])
        self.engine.transaction_id = self.values["reference"] or None

    def _type_char(self, char: str) -> None:
        current = self.values[self.field]
        if len(current) >= _MAX_FIELD_LEN:
            return
        if self.field == "reference":
            if char.isalnum() or char in "-/":
                self.values["reference"] = current + char
            return
        if char.isdigit() or (char == "." and "." not in current):
            self.values[self.field] = current + char
            self._after_edit()

    def _after_edit(self) -> None:
        if self.field == "discount":
            self._apply_discount()

    def _apply_discount(self) -> None:
        self.engine.set_discount(Discount(type=self.discount_type, value=_parse_amount(self.values["discount"]) or 0.0))

    def _apply_quick_amount(self, index: int) -> None:
        amounts = self.engine.quick_amounts()
        if index >= len(amounts):
            return
        self.method_index = _METHODS.index(PaymentMethod.CASH)
        self.field_index = _FIELDS.index("tendered")
        self.values["tendered"] = str(amounts[index])

    def _confirm(self) -> None:
        entry = PaymentEntry(
            method=self.method,
            tendered=_parse_amount(self.values["tendered"]) if self.method is PaymentMethod.CASH else None,
            transaction_id=self.values["reference"] or None,
            share_via=_SHARE_CHANNELS[self.share_index],
        )
        error = self.submit(entry)
        if error:
            self.error = error
            self._refresh_content()
            return
        self.dismiss(PaymentOutcome.PAID)

    def _refresh_content(self) -> None:
        ticket = self.engine.ticket
        totals = self.engine.totals()
        customer = ticket.customer_name or WALK_IN_CUSTOMER_NAME
        self.query_one("#payment-title", Static).update(
            f"Payment for token #{ticket.token_number}  {customer}"
        )

        body = Text()
        body.append_text(format_totals(totals))
        body.append("\n\nMethod:   ")
        for method in _METHODS:
            label = f" {method.value.upper()} "
            body.append(label, style="bold #ffffff on #2f6db5" if method is self.method else "dim")
            body.append(" ")

        tendered = _parse_amount(self.values["tendered"])
        rows = [
            ("tendered", "Tendered", self.values["tendered"]),
            ("discount", f"Discount ({'%' if self.discount_type is DiscountType.PERCENT else '₹'})", self.values["discount"]),
            ("reference", "Reference", self.values["reference"]),
        ]
        for name, label, value in rows:
            pointer = "➤ " if name == self.field else "  "
            cursor = "|" if name == self.field else ""
            style = "dim" if name == "tendered" and self.method is not PaymentMethod.CASH else "white"
            body.append(f"\n{pointer}{label:<14}{value}{cursor}", style=style)
            if name == "tendered" and self.method is PaymentMethod.CASH and tendered is not None:
                body.append(f"   change {format_money(self.engine.change_for(tendered))}", style="bold green")

        if self.method is PaymentMethod.CASH:
            body.append("\n\nQuick:  ")
            for key, amount in zip(_QUICK_KEYS, self.engine.quick_amounts()):
                body.append(f"{key.upper()} ", style="bold")
                body.append(f"{amount}  ")

        body.append("\nShare:  ")
        body.append(f"< {_SHARE_CHANNELS[self.share_index].value.upper()} >", style="bold")

        self.query_one("#payment-body", Static).update(body)
        self.query_one("#payment-error", Static).update(self.error or "")


def _parse_amount(raw: str) -> float | None:
    if not raw or raw == ".":
        return None
    return float(raw)
