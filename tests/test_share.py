"""Tests for bill sharing links and the share dispatcher."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime
from urllib.parse import parse_qs, urlsplit

from till.models import CustomerInfo, ShareChannel
from till.share import ShareDispatcher, render_share_message, sms_url, upi_payment_link, whatsapp_url


def test_share_message_lists_items_and_total(sample_draft):
    message = render_share_message(sample_draft, "Test Mart", when=datetime(2024, 3, 9, 18, 30))

    assert message.splitlines()[0] == "Bill from Test Mart"
    assert "Bill No: POS-123456" in message
    assert "Date: 09/03/2024" in message
    assert "Customer: Anita" in message
    assert "1. Toned Milk 500ml x 2 = ₹56.00" in message
    assert "2. Bathing Soap 125g x 1 = ₹100.00" in message
    assert "Total: ₹174.00" in message
    assert "Payment: CASH" in message


def test_whatsapp_url_adds_india_code_to_local_numbers():
    assert whatsapp_url("98900 11223", "hi there") == "https://wa.me/919890011223?text=hi%20there"
    assert whatsapp_url("+91 98900 11223", "x").startswith("https://wa.me/919890011223?")


def test_sms_url_keeps_digits_only():
    assert sms_url("+91-98900-11223", "Bill") == "sms:919890011223?body=Bill"


def test_upi_link_carries_amount_and_note():
    link = upi_payment_link("testmart@upi", "Test Mart", 236, "POS-000001")

    parts = urlsplit(link)
    params = parse_qs(parts.query)
    assert parts.scheme == "upi"
    assert params["pa"] == ["testmart@upi"]
    assert params["pn"] == ["Test Mart"]
    assert params["am"] == ["236.00"]
    assert params["cu"] == ["INR"]
    assert params["tn"] == ["Bill POS-000001"]


def test_none_channel_does_nothing(company, sample_draft, sink):
    opened: list[str] = []
    dispatcher = ShareDispatcher(company, open_url=opened.append, on_failure=sink)

    dispatcher.share(ShareChannel.NONE, sample_draft)

    assert opened == [] and sink.events == []


def test_sms_opens_link_for_customer_phone(company, sample_draft, sink):
    opened: list[str] = []
    dispatcher = ShareDispatcher(company, open_url=opened.append, on_failure=sink)

    dispatcher.share(ShareChannel.SMS, sample_draft)

    assert opened[0].startswith("sms:9890011223?body=Bill%20from%20Test%20Mart")
    assert sink.events == []


def test_missing_phone_is_reported(company, sample_draft, sink):
    draft = replace(sample_draft, customer=CustomerInfo(name="Walk-in Customer", is_walk_in=True))
    dispatcher = ShareDispatcher(company, open_url=lambda url: None, on_failure=sink)

    dispatcher.share(ShareChannel.WHATSAPP, draft)

    (failure,) = sink.events
    assert failure.bill_number == "POS-123456"
    assert failure.channel is ShareChannel.WHATSAPP
    assert failure.error == "Customer has no phone number"


def test_browser_errors_are_reported(company, sample_draft, sink):
    def broken(url: str) -> None:
        raise OSError("no browser")

    ShareDispatcher(company, open_url=broken, on_failure=sink).share(ShareChannel.SMS, sample_draft)

    assert sink.events[0].error == "no browser"


def test_print_without_printer_is_reported(company, sample_draft, sink):
    ShareDispatcher(company, on_failure=sink).share(ShareChannel.PRINT, sample_draft)

    assert sink.events[0].channel is ShareChannel.PRINT


def test_print_runs_inline_without_event_loop(company, sample_draft, sink):
    printed = []
    dispatcher = ShareDispatcher(
        company,
        print_receipt=lambda draft, profile: printed.append((draft.bill_number, profile.name)),
        on_failure=sink,
    )

    dispatcher.share(ShareChannel.PRINT, sample_draft)

    assert printed == [("POS-123456", "Test Mart")]


def test_print_runs_in_background_with_event_loop(company, sample_draft, sink):
    printed = []

    def jammed(draft, profile) -> None:
        printed.append(draft.bill_number)
        raise RuntimeError("paper jam")

    dispatcher = ShareDispatcher(company, print_receipt=jammed, on_failure=sink)

    async def scenario() -> None:
        dispatcher.share(ShareChannel.PRINT, sample_draft)
        assert sink.events == []
        await dispatcher.drain()

    asyncio.run(scenario())

    assert printed == ["POS-123456"]
    assert sink.events[0].error == "paper jam"


def test_print_job_without_printer_is_reported(company, sample_draft, sink):
    dispatcher = ShareDispatcher(company, print_receipt=lambda draft, profile: None, on_failure=sink)

    async def scenario() -> None:
        dispatcher.share(ShareChannel.PRINT, sample_draft)
        dispatcher.print_receipt = None
        await dispatcher.drain()

    asyncio.run(scenario())

    (failure,) = sink.events
    assert failure.channel is ShareChannel.PRINT
    assert failure.error == "No printer configured"
