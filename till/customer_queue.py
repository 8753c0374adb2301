"""Customer queue: the tickets open on one terminal.

All ticket and cart changes go through :func:`reduce`, which takes the
current :class:`QueueState` and an action and returns the next state in one
step. :class:`CustomerQueue` owns the current state and runs side effects
(persisting, refreshing the screen) only after a reduction has completed.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Callable
from uuid import uuid4

from till import cart
from till.config import COMPLETED_PURGE_DELAY_SECONDS, MAX_TICKETS
from till.errors import CapacityExceeded, errmsg
from till.models import CatalogItem, Discount, TaxMode, Ticket, TicketStatus

logger = logging.getLogger(__name__)

Scheduler = Callable[[float, Callable[[], None]], Any]


@dataclass(frozen=True)
class QueueState:
    tickets: tuple[Ticket, ...]
    active_ticket_id: str
    last_token: int = 0

    @property
    def active(self) -> Ticket:
        return self.get(self.active_ticket_id) or self.tickets[0]

    @property
    def open_tickets(self) -> tuple[Ticket, ...]:
        return tuple(ticket for ticket in self.tickets if ticket.is_open)

    def get(self, ticket_id: str) -> Ticket | None:
        for ticket in self.tickets:
            if ticket.ticket_id == ticket_id:
                return ticket
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tickets": [ticket.to_dict() for ticket in self.tickets],
            "active_ticket_id": self.active_ticket_id,
            "last_token": self.last_token,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> QueueState:
        tickets = tuple(Ticket.from_dict(ticket) for ticket in raw.get("tickets", []))
        return cls(
            tickets=tickets,
            active_ticket_id=str(raw.get("active_ticket_id") or ""),
            last_token=int(raw.get("last_token", 0)),
        )


@dataclass(frozen=True)
class CreateTicket:
    pass


@dataclass(frozen=True)
class SwitchTicket:
    ticket_id: str


@dataclass(frozen=True)
class RemoveTicket:
    ticket_id: str


@dataclass(frozen=True)
class MarkProcessing:
    ticket_id: str


@dataclass(frozen=True)
class CompleteTicket:
    ticket_id: str


@dataclass(frozen=True)
class PurgeCompleted:
    pass


@dataclass(frozen=True)
class AddLine:
    item: CatalogItem
    default_tax_mode: TaxMode = TaxMode.EXCLUSIVE


@dataclass(frozen=True)
class UpdateQuantity:
    line_id: str
    delta: int


@dataclass(frozen=True)
class RemoveLine:
    line_id: str


@dataclass(frozen=True)
class ClearCart:
    pass


@dataclass(frozen=True)
class SetCustomer:
    name: str
    customer_id: str | None = None
    phone: str | None = None
    state_code: str | None = None


@dataclass(frozen=True)
class SetDiscount:
    discount: Discount


@dataclass(frozen=True)
class SetCheckoutFlag:
    ticket_id: str
    in_checkout: bool


Action = (
    CreateTicket
    | SwitchTicket
    | RemoveTicket
    | MarkProcessing
    | CompleteTicket
    | PurgeCompleted
    | AddLine
    | UpdateQuantity
    | RemoveLine
    | ClearCart
    | SetCustomer
    | SetDiscount
    | SetCheckoutFlag
)


def new_ticket(token_number: int, now: float) -> Ticket:
    return Ticket(
        ticket_id=f"tab_{uuid4().hex[:10]}",
        token_number=token_number,
        created_at=now,
        last_updated=now,
    )


def initial_state(now: float) -> QueueState:
    first = new_ticket(1, now)
    return QueueState(tickets=(first,), active_ticket_id=first.ticket_id, last_token=1)


def next_token(state: QueueState) -> int:
    """Next token number; never reuses a token handed out earlier."""
    return max([ticket.token_number for ticket in state.tickets] + [state.last_token]) + 1


def _with_ticket(state: QueueState, updated: Ticket) -> QueueState:
    tickets = tuple(updated if t.ticket_id == updated.ticket_id else t for t in state.tickets)
    return replace(state, tickets=tickets)


def _purge_completed(state: QueueState, now: float) -> QueueState:
    remaining = state.open_tickets
    if not remaining:
        token = next_token(state)
        fresh = new_ticket(token, now)
        return QueueState(tickets=(fresh,), active_ticket_id=fresh.ticket_id, last_token=token)
    active_id = state.active_ticket_id
    if all(ticket.ticket_id != active_id for ticket in remaining):
        active_id = remaining[0].ticket_id
    return replace(state, tickets=remaining, active_ticket_id=active_id)


def _open_active(state: QueueState, now: float) -> QueueState:
    """Make sure cart edits never land on a completed ticket."""
    if state.active.is_open:
        return state
    return _purge_completed(state, now)


def _create(state: QueueState, now: float) -> QueueState:
    if len(state.open_tickets) >= MAX_TICKETS:
        raise CapacityExceeded(errmsg.CAPACITY_EXCEEDED.format(limit=MAX_TICKETS))
    token = next_token(state)
    ticket = new_ticket(token, now)
    return QueueState(tickets=state.tickets + (ticket,), active_ticket_id=ticket.ticket_id, last_token=token)


def _remove(state: QueueState, ticket_id: str, now: float) -> QueueState:
    target = state.get(ticket_id)
    if target is None:
        return state

    others_open = [t for t in state.open_tickets if t.ticket_id != ticket_id]
    if not others_open:
        # The queue is never empty: the last open ticket is swapped for a fresh one.
        token = next_token(state)
        fresh = new_ticket(token, now)
        tickets = tuple(fresh if t.ticket_id == ticket_id else t for t in state.tickets if t.is_open or t is target)
        return QueueState(tickets=tickets, active_ticket_id=fresh.ticket_id, last_token=token)

    index = state.tickets.index(target)
    tickets = tuple(t for t in state.tickets if t.ticket_id != ticket_id)
    active_id = state.active_ticket_id
    if active_id == ticket_id:
        after = [t for t in state.tickets[index + 1 :] if t.is_open]
        before = [t for t in state.tickets[:index] if t.is_open]
        active_id = (after[0] if after else before[-1]).ticket_id
    return replace(state, tickets=tickets, active_ticket_id=active_id)


def _complete(state: QueueState, ticket_id: str, now: float) -> QueueState:
    target = state.get(ticket_id)
    if target is None:
        return state
    done = replace(
        target,
        status=TicketStatus.COMPLETED,
        lines=(),
        discount=Discount(),
        is_in_checkout=False,
        last_updated=now,
    )
    state = _with_ticket(state, done)

    promoted = next(
        (
            t
            for t in state.tickets
            if t.ticket_id != ticket_id and t.status is TicketStatus.ACTIVE and t.lines
        ),
        None,
    )
    if promoted is None:
        # Nothing waiting: leave the completed ticket visible until the purge.
        return state
    tickets = tuple(t for t in state.tickets if t.ticket_id != ticket_id)
    return replace(state, tickets=tickets, active_ticket_id=promoted.ticket_id)


def reduce(state: QueueState, action: Action, now: float) -> QueueState:
    """Return the queue state after ``action``. ``state`` is never mutated."""
    if isinstance(action, CreateTicket):
        return _create(state, now)

    if isinstance(action, SwitchTicket):
        target = state.get(action.ticket_id)
        if target is None or not target.is_open or target.ticket_id == state.active_ticket_id:
            return state
        return replace(state, active_ticket_id=target.ticket_id)

    if isinstance(action, RemoveTicket):
        return _remove(state, action.ticket_id, now)

    if isinstance(action, MarkProcessing):
        target = state.get(action.ticket_id)
        if target is None or target.status is not TicketStatus.ACTIVE:
            return state
        return _with_ticket(state, replace(target, status=TicketStatus.PROCESSING, last_updated=now))

    if isinstance(action, CompleteTicket):
        return _complete(state, action.ticket_id, now)

    if isinstance(action, PurgeCompleted):
        if len(state.open_tickets) == len(state.tickets):
            return state
        return _purge_completed(state, now)

    if isinstance(action, SetCheckoutFlag):
        target = state.get(action.ticket_id)
        if target is None or target.is_in_checkout == action.in_checkout:
            return state
        return _with_ticket(state, replace(target, is_in_checkout=action.in_checkout, last_updated=now))

    state = _open_active(state, now)
    ticket = state.active

    if isinstance(action, AddLine):
        updated = cart.add_line(action.item, ticket, state.open_tickets, action.default_tax_mode, now)
    elif isinstance(action, UpdateQuantity):
        updated = cart.update_quantity(ticket, action.line_id, action.delta, now)
    elif isinstance(action, RemoveLine):
        updated = cart.remove_line(ticket, action.line_id, now)
    elif isinstance(action, ClearCart):
        updated = replace(
            cart.clear_lines(ticket, now),
            customer_name="",
            customer_id=None,
            customer_phone=None,
            customer_state_code=None,
            discount=Discount(),
        )
    elif isinstance(action, SetCustomer):
        updated = replace(
            ticket,
            customer_name=action.name,
            customer_id=action.customer_id,
            customer_phone=action.phone,
            customer_state_code=action.state_code,
            last_updated=now,
        )
    elif isinstance(action, SetDiscount):
        if ticket.discount == action.discount:
            return state
        updated = replace(ticket, discount=action.discount, last_updated=now)
    else:
        raise TypeError(f"Unknown queue action: {action!r}")

    if updated is ticket:
        return state
    return _with_ticket(state, updated)


def call_later(delay: float, callback: Callable[[], None]) -> Any:
    """Run ``callback`` after ``delay`` on the running loop, or now without one."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        callback()
        return None
    return loop.call_later(delay, callback)


class CustomerQueue:
    """Tickets of one terminal, mutated only through the reducer."""

    def __init__(
        self,
        state: QueueState | None = None,
        *,
        clock: Callable[[], float] = time.time,
        scheduler: Scheduler = call_later,
        on_change: Callable[[QueueState], None] | None = None,
        default_tax_mode: TaxMode = TaxMode.EXCLUSIVE,
        purge_delay: float = COMPLETED_PURGE_DELAY_SECONDS,
    ) -> None:
        self.clock = clock
        self.scheduler = scheduler
        self.on_change = on_change
        self.default_tax_mode = default_tax_mode
        self.purge_delay = purge_delay
        self._state = state if state is not None and state.tickets else initial_state(clock())

    @property
    def state(self) -> QueueState:
        return self._state

    @property
    def active(self) -> Ticket:
        return self._state.active

    @property
    def tickets(self) -> tuple[Ticket, ...]:
        return self._state.tickets

    @property
    def open_tickets(self) -> tuple[Ticket, ...]:
        return self._state.open_tickets

    def dispatch(self, action: Action) -> QueueState:
        next_state = reduce(self._state, action, self.clock())
        if next_state is self._state:
            return next_state
        self._state = next_state
        if self.on_change is not None:
            self.on_change(next_state)
        return next_state

    def create_ticket(self) -> Ticket:
        """Open a new customer slot and make it active. Raises CapacityExceeded."""
        ticket = self.dispatch(CreateTicket()).active
        logger.info("ticket_created id=%s token=%s", ticket.ticket_id, ticket.token_number)
        return ticket

    def switch_active(self, ticket_id: str) -> bool:
        """Show ``ticket_id``; returns True when that ticket was mid-checkout."""
        state = self.dispatch(SwitchTicket(ticket_id))
        return state.active_ticket_id == ticket_id and state.active.is_in_checkout

    def remove_ticket(self, ticket_id: str) -> Ticket:
        state = self.dispatch(RemoveTicket(ticket_id))
        logger.info("ticket_removed id=%s active=%s", ticket_id, state.active_ticket_id)
        return state.active

    def mark_processing(self, ticket_id: str) -> None:
        self.dispatch(MarkProcessing(ticket_id))

    def complete_and_advance(self, ticket_id: str) -> Ticket:
        """Complete ``ticket_id`` and show the next customer. Never does I/O.

        A waiting ticket with items is promoted at once; otherwise completed
        tickets are purged after a short grace delay.
        """
        state = self.dispatch(CompleteTicket(ticket_id))
        if not state.active.is_open:
            self.scheduler(self.purge_delay, self.purge_completed)
        logger.info("ticket_completed id=%s next=%s", ticket_id, state.active_ticket_id)
        return state.active

    def purge_completed(self) -> None:
        self.dispatch(PurgeCompleted())

    def add_item(self, item: CatalogItem) -> Ticket:
        return self.dispatch(AddLine(item, self.default_tax_mode)).active

    def change_quantity(self, line_id: str, delta: int) -> Ticket:
        return self.dispatch(UpdateQuantity(line_id, delta)).active

    def remove_line(self, line_id: str) -> Ticket:
        return self.dispatch(RemoveLine(line_id)).active

    def clear_cart(self) -> Ticket:
        return self.dispatch(ClearCart()).active

    def set_customer(
        self,
        name: str,
        customer_id: str | None = None,
        phone: str | None = None,
        state_code: str | None = None,
    ) -> Ticket:
        return self.dispatch(SetCustomer(name, customer_id, phone, state_code)).active

    def set_discount(self, discount: Discount) -> Ticket:
        """Set the invoice discount of the active ticket."""
        return self.dispatch(SetDiscount(discount)).active

    def set_checkout_flag(self, ticket_id: str, in_checkout: bool) -> None:
        self.dispatch(SetCheckoutFlag(ticket_id, in_checkout))
