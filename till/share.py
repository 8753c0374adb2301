"""Post-sale sharing: WhatsApp / SMS links and printed receipts."""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from dataclasses import dataclass
from datetime import datetime
from typing import Callable
from urllib.parse import quote, urlencode

from till.models import CheckoutDraft, CompanyProfile, ShareChannel

logger = logging.getLogger(__name__)

_INDIA_DIALING_CODE = "91"


@dataclass(frozen=True)
class ShareFailed:
    bill_number: str
    channel: ShareChannel
    error: str


def render_share_message(draft: CheckoutDraft, shop_name: str, when: datetime | None = None) -> str:
    when = when or datetime.fromtimestamp(draft.created_at)
    rows = [
        f"Bill from {shop_name}",
        "",
        f"Bill No: {draft.bill_number}",
        f"Date: {when:%d/%m/%Y}",
        f"Customer: {draft.customer.name}",
        "",
        "Items:",
    ]
    for idx, item in enumerate(draft.items, start=1):
        rows.append(f"{idx}. {item.name} x {item.quantity} = ₹{item.amount:.2f}")
    rows += [
        "",
        f"Total: ₹{draft.grand_total:.2f}",
        f"Payment: {draft.payment.method.value.upper()}",
        "",
        "Thank you for shopping with us!",
    ]
    return "\n".join(rows)


def _digits(phone: str) -> str:
    return "".join(ch for ch in phone if ch.isdigit())


def whatsapp_url(phone: str, message: str) -> str:
    digits = _digits(phone)
    if len(digits) == 10:
        digits = f"{_INDIA_DIALING_CODE}{digits}"
    return f"https://wa.me/{digits}?text={quote(message)}"


def sms_url(phone: str, message: str) -> str:
    return f"sms:{_digits(phone)}?body={quote(message)}"


def upi_payment_link(upi_id: str, payee: str, amount: float, bill_number: str) -> str:
    """UPI deep link a customer's payment app can open to pay the bill."""
    params = {
        "pa": upi_id,
        "pn": payee,
        "am": f"{amount:.2f}",
        "cu": "INR",
        "tn": f"Bill {bill_number}",
    }
    return f"upi://pay?{urlencode(params, quote_via=quote)}"


class ShareDispatcher:
    """Routes a finished sale to the channel the cashier picked.

    Failures become :class:`ShareFailed` events handed to ``on_failure``.
    """

    def __init__(
        self,
        company: CompanyProfile,
        *,
        open_url: Callable[[str], object] = webbrowser.open,
        print_receipt: Callable[[CheckoutDraft, CompanyProfile], None] | None = None,
        on_failure: Callable[[ShareFailed], None] | None = None,
    ) -> None:
        self.company = company
        self.open_url = open_url
        self.print_receipt = print_receipt
        self.on_failure = on_failure
        self._printing: set[asyncio.Task[None]] = set()

    def share(self, channel: ShareChannel, draft: CheckoutDraft) -> None:
        if channel is ShareChannel.NONE:
            return
        if channel is ShareChannel.PRINT:
            self._start_print(draft)
            return

        phone = draft.customer.phone or ""
        if not _digits(phone):
            self._fail(draft, channel, "Customer has no phone number")
            return
        message = render_share_message(draft, self.company.name)
        url = whatsapp_url(phone, message) if channel is ShareChannel.WHATSAPP else sms_url(phone, message)
        try:
            self.open_url(url)
        except Exception as exc:
            self._fail(draft, channel, str(exc))
            return
        logger.info("bill_shared bill=%s channel=%s", draft.bill_number, channel.value)

    def _start_print(self, draft: CheckoutDraft) -> None:
        if self.print_receipt is None:
            self._fail(draft, ShareChannel.PRINT, "No printer configured")
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            try:
                self.print_receipt(draft, self.company)
            except Exception as exc:
                self._fail(draft, ShareChannel.PRINT, str(exc))
            return
        task = loop.create_task(self._print_in_thread(draft))
        self._printing.add(task)
        task.add_done_callback(self._printing.discard)

    async def _print_in_thread(self, draft: CheckoutDraft) -> None:
        if self.print_receipt is None:
            self._fail(draft, ShareChannel.PRINT, "No printer configured")
            return
        try:
            await asyncio.to_thread(self.print_receipt, draft, self.company)
        except Exception as exc:
            self._fail(draft, ShareChannel.PRINT, str(exc))

    async def drain(self) -> None:
        if self._printing:
            await asyncio.gather(*self._printing, return_exceptions=True)

    def _fail(self, draft: CheckoutDraft, channel: ShareChannel, error: str) -> None:
        logger.warning("share_failed bill=%s channel=%s error=%s", draft.bill_number, channel.value, error)
        if self.on_failure is not None:
            self.on_failure(ShareFailed(bill_number=draft.bill_number, channel=channel, error=error))
