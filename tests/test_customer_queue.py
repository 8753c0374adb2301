"""Tests for the customer queue reducer and its side effects."""

from __future__ import annotations

import pytest

from till.config import MAX_TICKETS
from till.customer_queue import (
    AddLine,
    CustomerQueue,
    QueueState,
    SwitchTicket,
    initial_state,
    reduce,
)
from till.errors import CapacityExceeded
from till.models import Discount, DiscountType, TicketStatus


def _queue(clock, scheduler, changes: list | None = None) -> CustomerQueue:
    return CustomerQueue(
        clock=clock,
        scheduler=scheduler,
        on_change=changes.append if changes is not None else None,
    )


def test_starts_with_one_open_ticket(clock, scheduler):
    queue = _queue(clock, scheduler)

    assert len(queue.tickets) == 1
    assert queue.active.token_number == 1
    assert queue.active.status is TicketStatus.ACTIVE


def test_create_ticket_hands_out_next_token_and_activates(clock, scheduler):
    queue = _queue(clock, scheduler)

    ticket = queue.create_ticket()

    assert ticket.token_number == 2
    assert queue.active.ticket_id == ticket.ticket_id


def test_capacity_limit_leaves_state_untouched(clock, scheduler):
    queue = _queue(clock, scheduler)
    for _ in range(MAX_TICKETS - 1):
        queue.create_ticket()
    before = queue.state

    with pytest.raises(CapacityExceeded):
        queue.create_ticket()

    assert queue.state is before
    assert len(queue.open_tickets) == MAX_TICKETS


def test_tokens_are_never_reused(clock, scheduler):
    queue = _queue(clock, scheduler)
    queue.create_ticket()
    third = queue.create_ticket()

    queue.remove_ticket(third.ticket_id)

    assert queue.create_ticket().token_number == 4


def test_removing_the_only_ticket_replaces_it(clock, scheduler):
    queue = _queue(clock, scheduler)
    only = queue.active

    fresh = queue.remove_ticket(only.ticket_id)

    assert len(queue.tickets) == 1
    assert fresh.ticket_id != only.ticket_id
    assert fresh.token_number == 2


def test_removing_active_ticket_activates_the_next_one(clock, scheduler):
    queue = _queue(clock, scheduler)
    first = queue.active
    second = queue.create_ticket()
    third = queue.create_ticket()
    queue.switch_active(second.ticket_id)

    assert queue.remove_ticket(second.ticket_id).ticket_id == third.ticket_id
    assert queue.remove_ticket(third.ticket_id).ticket_id == first.ticket_id


def test_removing_inactive_ticket_keeps_active(clock, scheduler):
    queue = _queue(clock, scheduler)
    first = queue.active
    second = queue.create_ticket()

    queue.remove_ticket(first.ticket_id)

    assert queue.active.ticket_id == second.ticket_id


def test_switch_reports_resumed_checkout(clock, scheduler):
    queue = _queue(clock, scheduler)
    first = queue.active
    second = queue.create_ticket()
    queue.set_checkout_flag(first.ticket_id, True)

    assert queue.switch_active(first.ticket_id) is True
    assert queue.switch_active(second.ticket_id) is False


def test_switch_to_current_ticket_is_not_a_change(clock, scheduler):
    changes: list[QueueState] = []
    queue = _queue(clock, scheduler, changes)

    queue.switch_active(queue.active.ticket_id)
    queue.switch_active("missing")

    assert changes == []


def test_items_land_on_active_ticket_only(clock, scheduler, make_item):
    queue = _queue(clock, scheduler)
    first = queue.active
    queue.create_ticket()

    queue.add_item(make_item())

    assert queue.state.get(first.ticket_id).lines == ()
    assert queue.active.lines[0].quantity == 1


def test_stock_shared_across_tickets(clock, scheduler, make_item):
    item = make_item(stock=1)
    queue = _queue(clock, scheduler)
    queue.add_item(item)
    queue.create_ticket()

    queue.add_item(item)

    assert queue.active.lines == ()


def test_customer_edits(clock, scheduler, make_item):
    queue = _queue(clock, scheduler)
    queue.add_item(make_item())

    ticket = queue.set_customer("Anita", "cust-1", "9890011223", "29")

    assert (ticket.customer_name, ticket.customer_id, ticket.customer_phone) == ("Anita", "cust-1", "9890011223")
    assert ticket.customer_state_code == "29"
    cleared = queue.clear_cart()
    assert cleared.lines == ()
    assert cleared.customer_name == "" and cleared.customer_id is None


def test_discount_is_part_of_the_ticket(clock, scheduler, make_item):
    changes = []
    queue = _queue(clock, scheduler, changes)
    queue.add_item(make_item())
    other = queue.create_ticket()

    queue.switch_active(queue.tickets[0].ticket_id)
    queue.set_discount(Discount(DiscountType.PERCENT, 5))
    queue.set_discount(Discount(DiscountType.PERCENT, 5))

    assert len(changes) == 4
    assert queue.active.discount == Discount(DiscountType.PERCENT, 5)
    assert queue.state.get(other.ticket_id).discount == Discount()
    assert changes[-1].active.discount == Discount(DiscountType.PERCENT, 5)
    assert queue.clear_cart().discount == Discount()


def test_completed_ticket_drops_its_discount(clock, scheduler, make_item):
    queue = _queue(clock, scheduler)
    queue.add_item(make_item())
    queue.set_discount(Discount(DiscountType.AMOUNT, 10))

    done = queue.complete_and_advance(queue.active.ticket_id)

    assert done.status is TicketStatus.COMPLETED
    assert done.discount == Discount()


def test_quantity_edits(clock, scheduler, make_item):
    queue = _queue(clock, scheduler)
    line_id = queue.add_item(make_item()).lines[0].line_id

    assert queue.change_quantity(line_id, 2).lines[0].quantity == 3
    assert queue.remove_line(line_id).lines == ()


def test_completion_promotes_waiting_ticket(clock, scheduler, make_item):
    queue = _queue(clock, scheduler)
    first = queue.active
    queue.add_item(make_item("a"))
    waiting = queue.create_ticket()
    queue.add_item(make_item("b"))
    queue.switch_active(first.ticket_id)

    queue.mark_processing(first.ticket_id)
    promoted = queue.complete_and_advance(first.ticket_id)

    assert promoted.ticket_id == waiting.ticket_id
    assert queue.state.get(first.ticket_id) is None
    assert scheduler.pending == []


def test_completion_without_waiting_ticket_purges_later(clock, scheduler, make_item):
    queue = _queue(clock, scheduler)
    done = queue.active
    queue.add_item(make_item())

    current = queue.complete_and_advance(done.ticket_id)

    assert current.status is TicketStatus.COMPLETED
    assert current.lines == ()
    assert len(scheduler.pending) == 1

    scheduler.run_all()

    assert queue.active.is_open
    assert queue.active.token_number == 2
    assert queue.state.get(done.ticket_id) is None


def test_cart_edit_on_completed_ticket_moves_to_fresh_ticket(clock, scheduler, make_item):
    queue = _queue(clock, scheduler)
    done = queue.active
    queue.add_item(make_item())
    queue.complete_and_advance(done.ticket_id)

    ticket = queue.add_item(make_item("b"))

    assert ticket.ticket_id != done.ticket_id
    assert ticket.is_open
    assert ticket.lines[0].catalog_item_id == "b"


def test_completed_ticket_cannot_be_switched_to(clock, scheduler, make_item):
    queue = _queue(clock, scheduler)
    first = queue.active
    queue.create_ticket()
    queue.complete_and_advance(first.ticket_id)

    assert queue.switch_active(first.ticket_id) is False
    assert queue.active.ticket_id != first.ticket_id


def test_mark_processing_only_from_active(clock, scheduler):
    queue = _queue(clock, scheduler)
    ticket = queue.active

    queue.mark_processing(ticket.ticket_id)
    assert queue.active.status is TicketStatus.PROCESSING

    state = queue.state
    queue.mark_processing(ticket.ticket_id)
    assert queue.state is state


def test_on_change_runs_after_each_reduction(clock, scheduler, make_item):
    changes: list[QueueState] = []
    queue = _queue(clock, scheduler, changes)

    queue.add_item(make_item())
    queue.create_ticket()

    assert len(changes) == 2
    assert changes[-1] is queue.state


def test_reduce_does_not_mutate_input(clock, make_item):
    state = initial_state(clock())
    snapshot = state.to_dict()

    next_state = reduce(state, AddLine(make_item()), clock())

    assert state.to_dict() == snapshot
    assert next_state.active.lines
    assert reduce(next_state, SwitchTicket("missing"), clock()) is next_state


def test_reduce_rejects_unknown_action(clock):
    with pytest.raises(TypeError):
        reduce(initial_state(clock()), object(), clock())  # type: ignore[arg-type]
