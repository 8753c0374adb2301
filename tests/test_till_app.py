"""Keyboard-driven smoke tests for the till app."""

from __future__ import annotations

import asyncio

from till.bill_preview_modal import BillPreviewModal
from till.customer_modal import CustomerModal
from till.main import build_app
from till.payment_modal import PaymentModal
from till.persistence import load_catalog, load_sale
from till.sessions_modal import SessionsModal


def test_search_add_and_pay_in_cash(tmp_path):
    db_path = str(tmp_path / "till.db")
    app = build_app(db_path, terminal_id="pos_test")

    async def scenario() -> str:
        async with app.run_test() as pilot:
            await pilot.press("/", "m", "i", "l", "k", "enter", "enter", "escape")
            (line,) = app.queue.active.lines
            assert line.name == "Toned Milk 500ml"
            assert line.quantity == 2

            await pilot.press("ctrl+s")
            assert isinstance(app.screen, BillPreviewModal)
            await pilot.press("enter")
            assert isinstance(app.screen, PaymentModal)

            await pilot.press("enter")
            assert not isinstance(app.screen, PaymentModal)
            assert app.last_sale is not None
            assert not app.queue.active.lines

            await app.engine.drain()
            await pilot.pause()
            return app.last_sale.bill_number

    bill_number = asyncio.run(scenario())

    stored = load_sale(bill_number, db_path)
    assert stored is not None
    assert stored["grandTotal"] == 56.0
    stock = {item.item_id: item.stock for item in load_catalog(db_path)}
    assert stock["itm_milk_500"] == 28


def test_ticket_keys_open_switch_and_close(tmp_path):
    app = build_app(str(tmp_path / "till.db"), terminal_id="pos_test")

    async def scenario() -> None:
        async with app.run_test() as pilot:
            first = app.queue.active
            await pilot.press("n")
            assert app.queue.active.token_number == 2

            await pilot.press("[")
            assert app.queue.active.ticket_id == first.ticket_id

            await pilot.press("x")
            assert len(app.queue.open_tickets) == 1
            assert app.queue.active.token_number == 2

    asyncio.run(scenario())


def test_checkout_of_empty_cart_stays_on_main_screen(tmp_path):
    app = build_app(str(tmp_path / "till.db"), terminal_id="pos_test")

    async def scenario() -> None:
        async with app.run_test() as pilot:
            await pilot.press("ctrl+s")
            assert not isinstance(app.screen, BillPreviewModal)

    asyncio.run(scenario())


def test_customer_dialog_sets_interstate_buyer(tmp_path):
    app = build_app(str(tmp_path / "till.db"), terminal_id="pos_test")

    async def scenario() -> None:
        async with app.run_test() as pilot:
            await pilot.press("c")
            assert isinstance(app.screen, CustomerModal)
            await pilot.press(*"reddy")
            await pilot.press("down", "enter")
            assert not isinstance(app.screen, CustomerModal)

            ticket = app.queue.active
            assert ticket.customer_name == "Reddy Provisions"
            assert ticket.customer_state_code == "36"

    asyncio.run(scenario())


def test_sessions_view_lists_own_terminal(tmp_path):
    app = build_app(str(tmp_path / "till.db"), terminal_id="pos_test")

    async def scenario() -> None:
        async with app.run_test() as pilot:
            await pilot.press("v")
            assert isinstance(app.screen, SessionsModal)
            assert [s.id for s in app.screen.sessions] == ["pos_test"]
            await pilot.press("escape")
            assert not isinstance(app.screen, SessionsModal)

    asyncio.run(scenario())


def test_session_is_saved_after_the_queue_change(tmp_path):
    app = build_app(str(tmp_path / "till.db"), terminal_id="pos_test")

    async def scenario() -> None:
        async with app.run_test() as pilot:
            ticket = app.queue.create_ticket()
            stored = app.registry.load_tickets()
            assert stored is None or stored.get(ticket.ticket_id) is None

            await pilot.pause(0.1)
            assert app.registry.load_tickets().get(ticket.ticket_id) is not None

    asyncio.run(scenario())
