"""Terminal-scoped session records in the shared durable store.

Each terminal owns exactly one session record and one ticket index. Other
terminals only read them (for the active sessions view) or delete them once
stale. There is no locking; the store is eventually consistent across
terminals.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable
from uuid import uuid4

from till.cart import item_count, subtotal
from till.config import COMPLETED_TICKET_TTL_SECONDS, SESSION_MAX_AGE_SECONDS
from till.customer_queue import QueueState
from till.models import SessionRecord, Ticket
from till.ports import KeyValueStore

logger = logging.getLogger(__name__)

SESSION_PREFIX = "session:"
TICKETS_PREFIX = "tickets:"


def generate_terminal_id(now: float | None = None) -> str:
    stamp = int((now if now is not None else time.time()) * 1000)
    return f"pos_{stamp}_{uuid4().hex[:9]}"


def load_terminal_id(path: str) -> str:
    """Terminal id remembered on this machine, created on first use."""
    id_file = Path(path)
    if id_file.is_file():
        terminal_id = id_file.read_text(encoding="utf-8").strip()
        if terminal_id:
            return terminal_id
    terminal_id = generate_terminal_id()
    id_file.parent.mkdir(parents=True, exist_ok=True)
    id_file.write_text(terminal_id, encoding="utf-8")
    logger.info("terminal_id_created id=%s", terminal_id)
    return terminal_id


@dataclass(frozen=True)
class SessionSummary:
    id: str
    item_count: int
    total: float
    created_at: float

    @property
    def short_id(self) -> str:
        return self.id[-6:]


class SessionRegistry:
    def __init__(
        self,
        store: KeyValueStore,
        terminal_id: str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.terminal_id = terminal_id
        self.clock = clock

    @property
    def session_key(self) -> str:
        return f"{SESSION_PREFIX}{self.terminal_id}"

    @property
    def tickets_key(self) -> str:
        return f"{TICKETS_PREFIX}{self.terminal_id}"

    def get_or_create_session(self) -> SessionRecord:
        raw = self.store.get(self.session_key)
        if raw is not None:
            return SessionRecord.from_dict(raw)
        now = self.clock()
        session = SessionRecord(session_id=self.terminal_id, created_at=now, last_updated=now)
        self.persist(session)
        logger.info("session_created id=%s", self.terminal_id)
        return session

    def persist(self, session: SessionRecord) -> None:
        """Write ``session``; failures are logged and never reach the caller."""
        session.last_updated = self.clock()
        try:
            self.store.put(self.session_key, session.to_dict())
        except Exception:
            logger.exception("session_persist_failed id=%s", self.terminal_id)

    def mirror(self, session: SessionRecord, ticket: Ticket) -> SessionRecord:
        """Copy the active ticket's cart and customer into ``session`` and persist it."""
        session.cart = list(ticket.lines)
        session.customer_id = ticket.customer_id
        session.customer_name = ticket.customer_name
        session.customer_phone = ticket.customer_phone or ""
        self.persist(session)
        return session

    def save_tickets(self, state: QueueState) -> None:
        try:
            self.store.put(self.tickets_key, state.to_dict())
        except Exception:
            logger.exception("tickets_persist_failed id=%s", self.terminal_id)

    def load_tickets(self) -> QueueState | None:
        """Stored ticket queue, without completed tickets past their TTL."""
        raw = self.store.get(self.tickets_key)
        if raw is None:
            return None
        state = QueueState.from_dict(raw)
        now = self.clock()
        kept = tuple(
            ticket
            for ticket in state.tickets
            if ticket.is_open or now - ticket.last_updated < COMPLETED_TICKET_TTL_SECONDS
        )
        if not kept:
            return None
        active_id = state.active_ticket_id
        if all(ticket.ticket_id != active_id for ticket in kept):
            active_id = kept[0].ticket_id
        return QueueState(tickets=kept, active_ticket_id=active_id, last_token=state.last_token)

    def list_active_sessions(self) -> list[SessionSummary]:
        """Every terminal's session, newest first."""
        summaries = []
        for key, raw in self.store.scan(SESSION_PREFIX).items():
            session = SessionRecord.from_dict(raw)
            summaries.append(
                SessionSummary(
                    id=key[len(SESSION_PREFIX) :],
                    item_count=item_count(session.cart),
                    total=subtotal(session.cart),
                    created_at=session.created_at,
                )
            )
        summaries.sort(key=lambda summary: summary.created_at, reverse=True)
        return summaries

    def reap_stale(self, max_age: float = SESSION_MAX_AGE_SECONDS) -> list[str]:
        """Delete other terminals' sessions idle for longer than ``max_age``."""
        now = self.clock()
        reaped = []
        for key, raw in self.store.scan(SESSION_PREFIX).items():
            terminal_id = key[len(SESSION_PREFIX) :]
            if terminal_id == self.terminal_id:
                continue
            if now - float(raw.get("last_updated", 0)) <= max_age:
                continue
            self.store.delete(key)
            self.store.delete(f"{TICKETS_PREFIX}{terminal_id}")
            reaped.append(terminal_id)
        if reaped:
            logger.info("sessions_reaped count=%s", len(reaped))
        return reaped

    def shutdown(self, session: SessionRecord, state: QueueState | None = None) -> bool:
        """Drop the own session on exit unless a cart still holds items.

        Carts with items survive so the cashier can resume the terminal.
        """
        waiting = sum(1 for ticket in state.open_tickets if ticket.lines) if state is not None else 0
        if session.cart or waiting:
            logger.info("session_kept id=%s items=%s waiting=%s", self.terminal_id, len(session.cart), waiting)
            return False
        self.clear_session()
        return True

    def clear_session(self) -> None:
        self.store.delete(self.session_key)
        self.store.delete(self.tickets_key)
        logger.info("session_cleared id=%s", self.terminal_id)
