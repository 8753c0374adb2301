"""Tests for terminal session records."""

from __future__ import annotations

from dataclasses import replace

from till.config import COMPLETED_TICKET_TTL_SECONDS, SESSION_MAX_AGE_SECONDS
from till.customer_queue import CustomerQueue
from till.models import SessionRecord, TicketStatus
from till.session import SESSION_PREFIX, SessionRegistry, generate_terminal_id, load_terminal_id


class BrokenStore:
    def get(self, key):
        return None

    def put(self, key, value, ttl=None):
        raise OSError("disk unplugged")

    def delete(self, key):
        raise OSError("disk unplugged")

    def scan(self, prefix):
        return {}


def test_get_or_create_is_idempotent(store, clock):
    registry = SessionRegistry(store, "pos_a", clock)

    first = registry.get_or_create_session()
    clock.advance(30)
    second = registry.get_or_create_session()

    assert first.session_id == second.session_id == "pos_a"
    assert second.created_at == first.created_at
    assert list(store.data) == ["session:pos_a"]


def test_persist_stamps_last_updated(store, clock):
    registry = SessionRegistry(store, "pos_a", clock)
    session = registry.get_or_create_session()
    clock.advance(12)

    registry.persist(session)

    assert store.data["session:pos_a"]["last_updated"] == clock()


def test_persist_failures_are_swallowed(clock):
    registry = SessionRegistry(BrokenStore(), "pos_a", clock)

    session = registry.get_or_create_session()
    registry.save_tickets(CustomerQueue(clock=clock).state)

    assert session.session_id == "pos_a"


def test_mirror_copies_active_ticket(store, clock, make_item):
    registry = SessionRegistry(store, "pos_a", clock)
    session = registry.get_or_create_session()
    queue = CustomerQueue(clock=clock)
    queue.add_item(make_item())
    ticket = queue.set_customer("Anita", "cust-1", "9890011223")

    registry.mirror(session, ticket)

    stored = SessionRecord.from_dict(store.data["session:pos_a"])
    assert stored.cart == list(ticket.lines)
    assert (stored.customer_id, stored.customer_name, stored.customer_phone) == ("cust-1", "Anita", "9890011223")


def test_tickets_survive_a_restart(store, clock, make_item):
    registry = SessionRegistry(store, "pos_a", clock)
    queue = CustomerQueue(clock=clock)
    queue.add_item(make_item())
    queue.create_ticket()
    registry.save_tickets(queue.state)

    restored = registry.load_tickets()

    assert restored is not None
    assert restored.active_ticket_id == queue.state.active_ticket_id
    assert [t.token_number for t in restored.tickets] == [1, 2]
    assert restored.tickets[0].lines == queue.tickets[0].lines


def test_old_completed_tickets_dropped_on_load(store, clock, make_item):
    registry = SessionRegistry(store, "pos_a", clock)
    queue = CustomerQueue(clock=clock, scheduler=lambda delay, cb: None)
    done = queue.active
    queue.add_item(make_item())
    queue.complete_and_advance(done.ticket_id)
    registry.save_tickets(queue.state)

    clock.advance(COMPLETED_TICKET_TTL_SECONDS + 1)

    assert registry.load_tickets() is None


def test_recent_completed_ticket_kept_on_load(store, clock):
    registry = SessionRegistry(store, "pos_a", clock)
    queue = CustomerQueue(clock=clock)
    open_ticket = queue.active
    done = replace(queue.create_ticket(), status=TicketStatus.COMPLETED)
    state = replace(queue.state, tickets=(open_ticket, done))
    registry.save_tickets(state)

    restored = registry.load_tickets()

    assert restored is not None
    assert len(restored.tickets) == 2


def test_active_sessions_newest_first(store, clock, make_item):
    older = SessionRegistry(store, "pos_old", clock)
    older.get_or_create_session()
    clock.advance(60)
    newer = SessionRegistry(store, "pos_new", clock)
    session = newer.get_or_create_session()
    queue = CustomerQueue(clock=clock)
    queue.add_item(make_item(price=40.0))
    newer.mirror(session, queue.add_item(make_item(price=40.0)))

    summaries = newer.list_active_sessions()

    assert [s.id for s in summaries] == ["pos_new", "pos_old"]
    assert summaries[0].item_count == 2
    assert summaries[0].total == 80.0
    assert summaries[1].item_count == 0


def test_reap_removes_only_stale_foreign_sessions(store, clock):
    own = SessionRegistry(store, "pos_me", clock)
    stale = SessionRegistry(store, "pos_stale", clock)
    stale.get_or_create_session()
    stale.save_tickets(CustomerQueue(clock=clock).state)
    own.get_or_create_session()
    clock.advance(SESSION_MAX_AGE_SECONDS + 1)
    SessionRegistry(store, "pos_fresh", clock).get_or_create_session()

    reaped = own.reap_stale()

    assert reaped == ["pos_stale"]
    assert sorted(store.scan(SESSION_PREFIX)) == ["session:pos_fresh", "session:pos_me"]
    assert "tickets:pos_stale" not in store.data


def test_shutdown_keeps_session_with_items(store, clock, make_item):
    registry = SessionRegistry(store, "pos_a", clock)
    session = registry.get_or_create_session()
    queue = CustomerQueue(clock=clock)
    registry.mirror(session, queue.add_item(make_item()))

    assert registry.shutdown(session, queue.state) is False
    assert "session:pos_a" in store.data


def test_shutdown_keeps_session_with_waiting_ticket(store, clock, make_item):
    registry = SessionRegistry(store, "pos_a", clock)
    session = registry.get_or_create_session()
    queue = CustomerQueue(clock=clock)
    queue.add_item(make_item())
    queue.create_ticket()

    assert registry.shutdown(session, queue.state) is False


def test_shutdown_clears_empty_session(store, clock):
    registry = SessionRegistry(store, "pos_a", clock)
    session = registry.get_or_create_session()
    registry.save_tickets(CustomerQueue(clock=clock).state)

    assert registry.shutdown(session, CustomerQueue(clock=clock).state) is True
    assert store.data == {}


def test_terminal_id_is_remembered(tmp_path):
    path = tmp_path / "state" / "terminal-id"

    first = load_terminal_id(str(path))

    assert first.startswith("pos_")
    assert path.read_text(encoding="utf-8") == first
    assert load_terminal_id(str(path)) == first


def test_generated_terminal_ids_are_unique():
    assert generate_terminal_id(1.0) != generate_terminal_id(1.0)
