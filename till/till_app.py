"""Main Textual app class."""

from __future__ import annotations

import logging
import time
import webbrowser
from typing import Callable

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.events import Key
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Header, Static

from till.bill_preview_modal import BillPreviewModal
from till.cart import available_stock
from till.checkout import (
    CheckoutEngine,
    CheckoutEvent,
    CheckoutStage,
    SaleFailed,
    SalePending,
    SaleRecorded,
)
from till.config import WALK_IN_CUSTOMER_NAME
from till.customer_modal import CustomerChoice, CustomerModal
from till.customer_queue import CustomerQueue, QueueState, Scheduler, call_later
from till.data import search_catalog
from till.errors import TillError
from till.models import CatalogItem, CheckoutDraft, CompanyProfile
from till.payment_modal import PaymentEntry, PaymentModal, PaymentOutcome
from till.ports import CatalogProvider, CustomerDirectory, SaleRecorder, SettingsProvider
from till.printer import check_printer_dependencies
from till.rendering import format_cart_line, format_catalog_row, format_money, format_ticket_strip, format_totals
from till.session import SessionRegistry
from till.sessions_modal import SessionsModal
from till.share import ShareDispatcher, ShareFailed

logger = logging.getLogger(__name__)

_SEARCH_CHARS = {" ", "-", "."}


class TillApp(App):
    """A keyboard-driven counter till serving several customers at once."""

    TITLE = "Till"
    SUB_TITLE = "Counter billing"

    CSS = """
    Screen {
        layout: vertical;
    }

    #tickets-bar {
        height: 3;
        border: round $accent;
        padding: 0 1;
    }

    #main-layout {
        height: 1fr;
    }

    #cart-pane {
        width: 3fr;
        border: round $primary;
        padding: 1;
    }

    #search-pane {
        width: 2fr;
        border: round $secondary;
        padding: 1;
    }

    #search-bar {
        border: heavy $secondary;
        padding: 0 1;
        margin-bottom: 1;
        height: 4;
    }

    #results {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #cart-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #totals {
        height: auto;
        padding: 0 1;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    input_state = reactive("normal")
    search_text = reactive("")
    selected_index = reactive(0)
    line_index = reactive(None)

    BINDINGS = [
        ("tab", "cycle_results(1)", "Next result"),
        ("up", "cycle_results(-1)", "Previous result"),
        ("down", "cycle_results(1)", "Next result"),
        ("enter", "add_selected", "Add item"),
        ("backspace", "backspace_query", "Delete query char"),
        Binding("ctrl+s", "checkout", "Checkout", priority=True),
        ("escape", "cancel_search", "Exit search"),
        ("ctrl+c", "cancel_search", "Exit search"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        registry: SessionRegistry,
        catalog: CatalogProvider,
        directory: CustomerDirectory,
        recorder: SaleRecorder,
        settings: SettingsProvider,
        *,
        print_receipt: Callable[[CheckoutDraft, CompanyProfile], None] | None = None,
        open_url: Callable[[str], object] = webbrowser.open,
        on_sale_failed: Callable[[SaleFailed], None] | None = None,
        clock: Callable[[], float] = time.time,
        scheduler: Scheduler = call_later,
    ) -> None:
        super().__init__()
        self.registry = registry
        self.catalog = catalog
        self.directory = directory
        self.settings = settings
        self.catalog_items: list[CatalogItem] = []
        self.system_status = ""
        self.last_sale: CheckoutDraft | None = None
        self._session_dirty = False

        self.session = registry.get_or_create_session()
        self.queue = CustomerQueue(
            registry.load_tickets(),
            clock=clock,
            scheduler=scheduler,
            on_change=self._on_queue_change,
            default_tax_mode=settings.get_tax_config().default_tax_mode,
        )
        self.sharer = ShareDispatcher(
            settings.get_company_profile(),
            open_url=open_url,
            print_receipt=print_receipt,
            on_failure=self._on_checkout_event,
        )
        self.engine = CheckoutEngine(
            self.queue,
            recorder,
            settings,
            on_event=self._on_checkout_event,
            sharer=self.sharer,
            on_sale_failed=on_sale_failed,
            clock=clock,
        )
        logger.info("app_init terminal=%s tickets=%s", registry.terminal_id, len(self.queue.tickets))

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static(id="tickets-bar")
        with Horizontal(id="main-layout"):
            with Vertical(id="cart-pane"):
                yield Static(id="cart-title", classes="pane-title")
                yield Static("(cart is empty)", id="cart-list")
                yield Static(id="totals")
            with Vertical(id="search-pane"):
                yield Static(id="search-bar")
                yield Static(id="results")

    def on_mount(self) -> None:
        self._reload_catalog()
        _, msg = check_printer_dependencies()
        self.system_status = msg
        logger.info("on_mount printer_status=%r items=%s", msg, len(self.catalog_items))
        self._refresh_all()
        if self.engine.stage is CheckoutStage.COLLECTING_PAYMENT:
            self._open_payment()

    async def action_quit(self) -> None:
        if self.engine.pending_saves:
            self.notify(f"Saving {self.engine.pending_saves} bill(s)…")
        await self.engine.drain()
        await self.sharer.drain()
        if self._session_dirty:
            self.save_session()
        self.exit()

    def on_key(self, event: Key) -> None:
        if isinstance(self.screen, ModalScreen):
            return

        logger.debug(
            "on_key key=%r char=%r printable=%s state=%r",
            event.key,
            event.character,
            event.is_printable,
            self.input_state,
        )

        if not event.is_printable or not event.character or len(event.character) != 1:
            return

        char = event.character
        if self.input_state == "active":
            if not (char.isalnum() or char in _SEARCH_CHARS):
                return
            self.search_text += char
            self.selected_index = 0
            self._refresh_search()
            event.stop()
            return

        handler = self._normal_keys().get(char.lower() if char.isalpha() else char)
        if handler is None:
            return
        handler()
        event.stop()

    def _normal_keys(self) -> dict[str, Callable[[], None]]:
        return {
            "/": self._start_search,
            "[": lambda: self._switch_relative(-1),
            "]": lambda: self._switch_relative(1),
            "n": self._new_ticket,
            "x": self._close_ticket,
            "j": lambda: self._move_line_selection(1),
            "k": lambda: self._move_line_selection(-1),
            "+": lambda: self._change_selected_quantity(1),
            "=": lambda: self._change_selected_quantity(1),
            "-": lambda: self._change_selected_quantity(-1),
            "d": self._delete_selected_line,
            "c": self._open_customer_dialog,
            "v": self._open_sessions,
        }

    def action_cancel_search(self) -> None:
        if isinstance(self.screen, ModalScreen):
            return
        if self.input_state == "normal":
            return

        self.input_state = "normal"
        self.search_text = ""
        self.selected_index = 0
        self._refresh_search()

    def action_cycle_results(self, delta: int) -> None:
        if isinstance(self.screen, ModalScreen):
            return
        if self.input_state != "active":
            return

        results = self._filtered_results()
        if not results:
            self.selected_index = 0
            self._refresh_results(results)
            return
        self.selected_index = (self.selected_index + delta) % len(results)
        self._refresh_results(results)

    def action_add_selected(self) -> None:
        if isinstance(self.screen, ModalScreen):
            return
        if self.input_state != "active":
            return

        results = self._filtered_results()
        if not results:
            return

        item = results[self.selected_index]
        ticket = self.queue.add_item(item)
        for idx, line in enumerate(ticket.lines):
            if line.catalog_item_id == item.item_id:
                self.line_index = idx
        self._refresh_all()

    def action_backspace_query(self) -> None:
        if isinstance(self.screen, ModalScreen):
            return
        if self.input_state != "active":
            return

        if not self.search_text:
            return
        self.search_text = self.search_text[:-1]
        self.selected_index = 0
        self._refresh_search()

    def action_checkout(self) -> None:
        logger.debug("checkout_enter state=%r screen=%s", self.input_state, type(self.screen).__name__)
        if isinstance(self.screen, ModalScreen):
            return
        if self.input_state != "normal":
            self.system_status = "Checkout only in NORMAL mode (Esc to leave search)"
            self._refresh_search()
            return
        try:
            totals = self.engine.enter_preview()
        except TillError as exc:
            self.notify(str(exc), severity="warning")
            return
        self.push_screen(BillPreviewModal(self.engine.ticket, totals), self._after_preview)

    def _after_preview(self, proceed: bool | None) -> None:
        if not proceed:
            self.engine.cancel_checkout()
            self._refresh_all()
            return
        self.engine.proceed_to_payment()
        self._open_payment()

    def _open_payment(self) -> None:
        self.push_screen(PaymentModal(self.engine, self._submit_payment), self._after_payment)

    def _submit_payment(self, entry: PaymentEntry) -> str | None:
        self.session.payment_method = entry.method
        try:
            sale = self.engine.complete_sale(entry.method, entry.tendered, entry.transaction_id, entry.share_via)
        except TillError as exc:
            logger.info("payment_rejected error=%r", str(exc))
            return str(exc)
        self.last_sale = sale.draft
        change = sale.draft.payment.change_amount
        self.system_status = f"Token #{sale.draft.token_number} paid {format_money(sale.draft.grand_total)}"
        if change:
            self.system_status += f", change {format_money(change)}"
        return None

    def _after_payment(self, outcome: PaymentOutcome | None) -> None:
        if outcome is PaymentOutcome.CANCELLED:
            self.engine.cancel_checkout()
        elif outcome is PaymentOutcome.PREVIOUS_TICKET:
            self._switch_relative(-1)
        elif outcome is PaymentOutcome.NEXT_TICKET:
            self._switch_relative(1)
        elif outcome is PaymentOutcome.PAID and self.engine.stage is CheckoutStage.COLLECTING_PAYMENT:
            # The promoted ticket was itself waiting at the payment screen.
            self._open_payment()
        self._refresh_all()

    def _on_queue_change(self, state: QueueState) -> None:
        # Session writes run after the current message, never inside a reduction.
        if not self._session_dirty:
            self._session_dirty = True
            self.call_later(self.save_session)
        self._refresh_all()

    def save_session(self) -> None:
        """Write the queue and its active ticket to the session store."""
        self._session_dirty = False
        state = self.queue.state
        self.registry.mirror(self.session, state.active)
        self.registry.save_tickets(state)

    def _on_checkout_event(self, event: CheckoutEvent) -> None:
        if isinstance(event, SalePending):
            self.notify(f"Bill {event.bill_number} {format_money(event.grand_total)} saving…", title="Sale complete")
        elif isinstance(event, SaleRecorded):
            self.notify(f"Bill {event.bill_number} saved")
            self._reload_catalog()
            self._refresh_search()
        elif isinstance(event, SaleFailed):
            self.notify(event.error, title="Save failed", severity="error", timeout=10)
        elif isinstance(event, ShareFailed):
            self.notify(
                f"{event.channel.value.upper()} for {event.bill_number} failed: {event.error}",
                severity="warning",
            )

    def _reload_catalog(self) -> None:
        try:
            self.catalog_items = self.catalog.get_catalog_items()
        except Exception as exc:
            logger.exception("catalog_load_failed")
            self.system_status = f"Catalog unavailable: {exc}"

    def _start_search(self) -> None:
        self.input_state = "active"
        self.search_text = ""
        self.selected_index = 0
        self._refresh_search()

    def _switch_relative(self, step: int) -> None:
        tickets = self.queue.open_tickets
        active_id = self.queue.active.ticket_id
        ids = [ticket.ticket_id for ticket in tickets]
        if not ids or (len(ids) == 1 and ids[0] == active_id):
            if self.engine.stage is CheckoutStage.COLLECTING_PAYMENT:
                self._open_payment()
            return
        idx = ids.index(active_id) if active_id in ids else -1
        target = ids[(idx + step) % len(ids)]
        stage = self.engine.switch_ticket(target)
        self.line_index = None
        self._refresh_all()
        if stage is CheckoutStage.COLLECTING_PAYMENT:
            self._open_payment()

    def _new_ticket(self) -> None:
        try:
            ticket = self.queue.create_ticket()
        except TillError as exc:
            self.notify(str(exc), severity="error")
            return
        self.line_index = None
        self.system_status = f"Token #{ticket.token_number} opened"
        self._refresh_all()

    def _close_ticket(self) -> None:
        closing = self.queue.active
        self.queue.remove_ticket(closing.ticket_id)
        self.line_index = None
        self.system_status = f"Token #{closing.token_number} closed"
        self._refresh_all()

    def _open_customer_dialog(self) -> None:
        self.push_screen(CustomerModal(self.directory), self._after_customer)

    def _after_customer(self, choice: CustomerChoice | None) -> None:
        if choice is None:
            return
        customer = choice.customer
        if customer is None:
            self.queue.set_customer("")
        else:
            self.queue.set_customer(customer.name, customer.customer_id, customer.phone or None, customer.state_code)
        self._refresh_all()

    def _open_sessions(self) -> None:
        self.push_screen(SessionsModal(self.registry.list_active_sessions(), self.registry.terminal_id))

    def _filtered_results(self) -> list[CatalogItem]:
        return search_catalog(self.catalog_items, self.search_text)

    def _refresh_all(self) -> None:
        self._refresh_tickets()
        self._refresh_cart()
        self._refresh_search()

    def _move_line_selection(self, delta: int) -> None:
        lines = self.queue.active.lines
        if not lines:
            return

        if self.line_index is None:
            self.line_index = 0 if delta > 0 else len(lines) - 1
        else:
            self.line_index = (self.line_index + delta) % len(lines)
        self._refresh_cart()

    def _selected_line_id(self) -> str | None:
        lines = self.queue.active.lines
        if self.line_index is None or not (0 <= self.line_index < len(lines)):
            return None
        return lines[self.line_index].line_id

    def _change_selected_quantity(self, delta: int) -> None:
        line_id = self._selected_line_id()
        if line_id is None:
            return
        self.queue.change_quantity(line_id, delta)
        self._refresh_all()

    def _delete_selected_line(self) -> None:
        line_id = self._selected_line_id()
        if line_id is None:
            return
        self.queue.remove_line(line_id)
        self._refresh_all()

    def _visible_rows(self, widget: Static) -> int:
        height = widget.size.height
        if height <= 0:
            return 8
        return max(1, height)

    def _window_bounds(self, total: int, rows: int, selected: int | None) -> tuple[int, int]:
        if total <= 0:
            return (0, 0)

        rows = max(1, rows)
        if total <= rows:
            return (0, total)

        if selected is None:
            start = 0
        else:
            start = max(0, selected - rows // 2)
            start = min(start, total - rows)

        return (start, start + rows)

    def _refresh_tickets(self) -> None:
        try:
            bar = self.query_one("#tickets-bar", Static)
        except NoMatches:
            return
        state = self.queue.state
        bar.update(format_ticket_strip(state.tickets, state.active_ticket_id))

    def _refresh_cart(self) -> None:
        try:
            cart_widget = self.query_one("#cart-list", Static)
        except NoMatches:
            return
        ticket = self.queue.active
        title = Text()
        title.append(f"Token #{ticket.token_number}", style="bold")
        title.append(f"  {ticket.customer_name or WALK_IN_CUSTOMER_NAME}")
        if ticket.customer_phone:
            title.append(f"  {ticket.customer_phone}", style="dim")
        if not ticket.is_open:
            title.append("  completed", style="bold green")
        self.query_one("#cart-title", Static).update(title)
        self.query_one("#totals", Static).update(format_totals(self.engine.totals()))

        lines = ticket.lines
        if not lines:
            self.line_index = None
            cart_widget.update("(cart is empty)")
            return

        if self.line_index is not None and self.line_index >= len(lines):
            self.line_index = len(lines) - 1

        visible_rows = self._visible_rows(cart_widget)
        start, end = self._window_bounds(len(lines), visible_rows, self.line_index)

        text = Text()
        if start > 0:
            text.append("⋮\n", style="dim")

        for idx in range(start, end):
            if idx > start:
                text.append("\n")
            pointer = "➤ " if idx == self.line_index else "  "
            text.append(pointer)
            text.append(f"{idx + 1}. ")
            text.append_text(format_cart_line(lines[idx]))

        if end < len(lines):
            text.append("\n⋮", style="dim")

        cart_widget.update(text)

    def _refresh_search(self) -> None:
        self._refresh_search_bar()
        if self.input_state == "normal":
            self._refresh_results([])
            return
        self._refresh_results(self._filtered_results())

    def _refresh_search_bar(self) -> None:
        try:
            bar = self.query_one("#search-bar", Static)
        except NoMatches:
            return
        if self.input_state == "normal":
            status = self.system_status or "Ready"
            bar.update(
                "/ search  n new  x close  [ ] switch  c customer  v sessions\n"
                f"j/k select  +/- qty  d delete  Ctrl+S checkout\n{status}"
            )
            return

        text = Text()
        text.append(" FIND ", style="bold #ffffff on #2f6db5")
        text.append(f" {self.search_text}|")
        bar.update(text)

    def _refresh_results(self, results: list[CatalogItem]) -> None:
        try:
            results_widget = self.query_one("#results", Static)
        except NoMatches:
            return
        if self.input_state == "normal":
            results_widget.update("")
            return

        if not results:
            results_widget.update("No results")
            return

        if self.selected_index >= len(results):
            self.selected_index = 0

        visible_rows = self._visible_rows(results_widget)
        start, end = self._window_bounds(len(results), visible_rows, self.selected_index)
        open_tickets = self.queue.open_tickets

        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")

        for idx in range(start, end):
            if idx > start:
                lines.append("\n")
            pointer = "➤ " if idx == self.selected_index else "  "
            lines.append(pointer)
            lines.append_text(format_catalog_row(results[idx], available_stock(results[idx], open_tickets)))

        if end < len(results):
            lines.append("\n⋮", style="dim")

        results_widget.update(lines)
