"""Checkout state machine for the active ticket.

A sale is completed optimistically: the queue advances to the next customer
first, and only then is the sale handed to the recorder in the background.
A failed save is reported through the event sink; it never undoes the
advancement.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Union

from till.config import BILL_NUMBER_PREFIX, WALK_IN_CUSTOMER_NAME
from till.customer_queue import CustomerQueue
from till.errors import EmptyCartError, InsufficientTenderError, InvalidTransition, PersistenceFailure, errmsg
from till.models import (
    CheckoutDraft,
    CustomerInfo,
    Discount,
    DiscountInfo,
    PaymentInfo,
    PaymentMethod,
    ShareChannel,
    Ticket,
)
from till.ports import SaleRecorder, SettingsProvider
from till.share import ShareDispatcher, ShareFailed
from till.tax import InvoiceTotals, change_due, invoice_totals, round2, suggest_tendered_amounts

logger = logging.getLogger(__name__)


class CheckoutStage(str, Enum):
    BROWSING = "browsing"
    PREVIEWING_BILL = "previewing_bill"
    COLLECTING_PAYMENT = "collecting_payment"
    COMPLETED = "completed"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


@dataclass(frozen=True)
class SalePending:
    bill_number: str
    token_number: int
    grand_total: float


@dataclass(frozen=True)
class SaleRecorded:
    bill_number: str


@dataclass(frozen=True)
class SaleFailed:
    bill_number: str
    error: str
    draft: CheckoutDraft


CheckoutEvent = Union[SalePending, SaleRecorded, SaleFailed, ShareFailed]


@dataclass(frozen=True)
class CompletedSale:
    draft: CheckoutDraft
    next_ticket: Ticket
    task: asyncio.Task[None] | None = None

    @property
    def bill_number(self) -> str:
        return self.draft.bill_number


def make_bill_numbers(
    clock: Callable[[], float] = time.time,
    prefix: str = BILL_NUMBER_PREFIX,
) -> Callable[[], str]:
    """Bill numbers from the last six digits of the millisecond clock."""
    last = -1

    def next_bill_number() -> str:
        nonlocal last
        value = int(clock() * 1000) % 1_000_000
        if value == last:
            value = (value + 1) % 1_000_000
        last = value
        return f"{prefix}{value:06d}"

    return next_bill_number


class CheckoutEngine:
    def __init__(
        self,
        queue: CustomerQueue,
        recorder: SaleRecorder,
        settings: SettingsProvider,
        *,
        on_event: Callable[[CheckoutEvent], None] | None = None,
        sharer: ShareDispatcher | None = None,
        bill_numbers: Callable[[], str] | None = None,
        on_sale_failed: Callable[[SaleFailed], None] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.queue = queue
        self.recorder = recorder
        self.settings = settings
        self.on_event = on_event
        self.sharer = sharer
        self.bill_numbers = bill_numbers or make_bill_numbers(clock)
        self.on_sale_failed = on_sale_failed
        self.clock = clock

        self._stage = CheckoutStage.COLLECTING_PAYMENT if queue.active.is_in_checkout else CheckoutStage.BROWSING
        self.payment_method = PaymentMethod.CASH
        self.tendered: float | None = None
        self.transaction_id: str | None = None
        self._saving: set[asyncio.Task[None]] = set()

    @property
    def stage(self) -> CheckoutStage:
        # A completed ticket stays on screen until purged or edited away.
        if self._stage is CheckoutStage.COMPLETED and self.queue.active.is_open:
            self._stage = CheckoutStage.BROWSING
        return self._stage

    @property
    def ticket(self) -> Ticket:
        return self.queue.active

    @property
    def discount(self) -> Discount:
        """Invoice discount of the active ticket."""
        return self.ticket.discount

    @property
    def pending_saves(self) -> int:
        return len(self._saving)

    def _require(self, action: str, *allowed: CheckoutStage) -> None:
        stage = self.stage
        if stage not in allowed:
            raise InvalidTransition(errmsg.NOT_IN_STAGE.format(action=action, stage=stage.label))

    def _reset_entry(self) -> None:
        self.payment_method = PaymentMethod.CASH
        self.tendered = None
        self.transaction_id = None

    def enter_preview(self) -> InvoiceTotals:
        self._require("preview the bill", CheckoutStage.BROWSING)
        if not self.ticket.lines:
            raise EmptyCartError(errmsg.EMPTY_CART)
        self._stage = CheckoutStage.PREVIEWING_BILL
        return self.totals()

    def proceed_to_payment(self) -> None:
        self._require("take payment", CheckoutStage.PREVIEWING_BILL)
        self._reset_entry()
        self.queue.set_checkout_flag(self.ticket.ticket_id, True)
        self._stage = CheckoutStage.COLLECTING_PAYMENT

    def cancel_checkout(self) -> None:
        """Back to the cart; lines and customer are left as they were."""
        self._require("cancel checkout", CheckoutStage.PREVIEWING_BILL, CheckoutStage.COLLECTING_PAYMENT)
        self.queue.set_checkout_flag(self.ticket.ticket_id, False)
        self._reset_entry()
        self._stage = CheckoutStage.BROWSING

    def set_discount(self, discount: Discount) -> InvoiceTotals:
        self.queue.set_discount(discount)
        return self.totals()

    def totals(self, ticket: Ticket | None = None) -> InvoiceTotals:
        ticket = ticket or self.ticket
        tax = self.settings.get_tax_config()
        return invoice_totals(ticket.lines, ticket.discount, tax.seller_state_code, ticket.customer_state_code)

    def quick_amounts(self) -> list[int]:
        return suggest_tendered_amounts(self.totals().grand_total)

    def change_for(self, tendered: float) -> float:
        return round2(change_due(tendered, self.totals().grand_total))

    def switch_ticket(self, ticket_id: str) -> CheckoutStage:
        """Show another ticket, resuming payment if it was left mid-checkout."""
        previous = self.ticket.ticket_id
        resumed = self.queue.switch_active(ticket_id)
        if self.ticket.ticket_id == previous:
            return self.stage
        self._reset_entry()
        self._stage = CheckoutStage.COLLECTING_PAYMENT if resumed else CheckoutStage.BROWSING
        return self._stage

    def complete_sale(
        self,
        method: PaymentMethod,
        tendered: float | None = None,
        transaction_id: str | None = None,
        share_via: ShareChannel = ShareChannel.NONE,
    ) -> CompletedSale:
        """Finish the active ticket's sale.

        The queue has moved on by the time this returns; the sale itself is
        still being recorded by the returned task.
        """
        self._require("complete the sale", CheckoutStage.COLLECTING_PAYMENT)
        ticket = self.ticket
        if not ticket.lines:
            raise EmptyCartError(errmsg.EMPTY_CART)
        totals = self.totals(ticket)

        received = change = None
        if method is PaymentMethod.CASH:
            received = totals.grand_total if tendered is None else round2(tendered)
            if received < totals.grand_total:
                raise InsufficientTenderError(received, totals.grand_total)
            change = round2(change_due(received, totals.grand_total))

        draft = self._snapshot(ticket, totals, method, received, change, transaction_id)

        self.queue.mark_processing(ticket.ticket_id)
        next_ticket = self.queue.complete_and_advance(ticket.ticket_id)

        self._reset_entry()
        if not next_ticket.is_open:
            self._stage = CheckoutStage.COMPLETED
        elif next_ticket.is_in_checkout:
            self._stage = CheckoutStage.COLLECTING_PAYMENT
        else:
            self._stage = CheckoutStage.BROWSING

        logger.info(
            "sale_completed bill=%s token=%s total=%.2f method=%s",
            draft.bill_number,
            draft.token_number,
            draft.grand_total,
            method.value,
        )
        self._emit(SalePending(draft.bill_number, draft.token_number, draft.grand_total))
        task = self._record_in_background(draft)

        if self.sharer is not None:
            self.sharer.share(share_via, draft)
        return CompletedSale(draft=draft, next_ticket=next_ticket, task=task)

    def _snapshot(
        self,
        ticket: Ticket,
        totals: InvoiceTotals,
        method: PaymentMethod,
        received: float | None,
        change: float | None,
        transaction_id: str | None,
    ) -> CheckoutDraft:
        return CheckoutDraft(
            bill_number=self.bill_numbers(),
            token_number=ticket.token_number,
            created_at=self.clock(),
            customer=CustomerInfo(
                name=ticket.customer_name or WALK_IN_CUSTOMER_NAME,
                is_walk_in=ticket.customer_id is None,
                id=ticket.customer_id,
                phone=ticket.customer_phone or None,
            ),
            payment=PaymentInfo(
                method=method,
                amount=totals.grand_total,
                received_amount=received,
                change_amount=change,
                transaction_id=(transaction_id or "").strip() or None,
            ),
            discount=DiscountInfo(
                type=ticket.discount.type,
                value=ticket.discount.value,
                discount_amount=totals.discount_amount,
            ),
            round_off=totals.round_off,
            grand_total=totals.grand_total,
            items=ticket.lines,
            subtotal=totals.subtotal,
            total_tax=totals.total_tax,
            cgst=totals.cgst,
            sgst=totals.sgst,
            igst=totals.igst,
        )

    def _record_in_background(self, draft: CheckoutDraft) -> asyncio.Task[None] | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop (scripts): the queue has already advanced, so
            # recording inline keeps the same ordering.
            asyncio.run(self._record(draft))
            return None
        task = loop.create_task(self._record(draft))
        self._saving.add(task)
        task.add_done_callback(self._saving.discard)
        return task

    async def _record(self, draft: CheckoutDraft) -> None:
        try:
            await self.recorder.record(draft)
        except Exception as exc:
            failure = PersistenceFailure(draft.bill_number, exc)
            logger.error("sale_record_failed bill=%s error=%r", draft.bill_number, exc)
            event = SaleFailed(bill_number=draft.bill_number, error=f"{failure}: {exc}", draft=draft)
            self._emit(event)
            if self.on_sale_failed is not None:
                self.on_sale_failed(event)
            return
        logger.info("sale_recorded bill=%s", draft.bill_number)
        self._emit(SaleRecorded(draft.bill_number))

    def _emit(self, event: CheckoutEvent) -> None:
        if self.on_event is not None:
            self.on_event(event)

    async def drain(self) -> None:
        """Wait for every background save still in flight."""
        if self._saving:
            await asyncio.gather(*list(self._saving), return_exceptions=True)
