"""Shared pytest fixtures for till tests."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import pytest

from till.models import (
    CartLine,
    CatalogItem,
    CheckoutDraft,
    CompanyProfile,
    CustomerInfo,
    DiscountInfo,
    DiscountType,
    PaymentInfo,
    PaymentMethod,
    TaxConfig,
    TaxMode,
)
from till.persistence import bootstrap_schema
from till.ports import StaticSettings


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ManualScheduler:
    """Collects delayed callbacks until the test runs them."""

    def __init__(self) -> None:
        self.pending: list[tuple[float, Callable[[], None]]] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> None:
        self.pending.append((delay, callback))

    def run_all(self) -> None:
        pending, self.pending = self.pending, []
        for _, callback in pending:
            callback()


class MemoryStore:
    """Dict-backed key-value store."""

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}

    def get(self, key: str) -> Any | None:
        return self.data.get(key)

    def put(self, key: str, value: Any, ttl: float | None = None) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    def scan(self, prefix: str) -> dict[str, Any]:
        return {key: value for key, value in self.data.items() if key.startswith(prefix)}


class RecordingRecorder:
    """Sale recorder that can be held open or made to fail."""

    def __init__(self) -> None:
        self.started: list[str] = []
        self.recorded: list[CheckoutDraft] = []
        self.fail: Exception | None = None
        self.gate: asyncio.Event | None = None

    def hold(self) -> None:
        self.gate = asyncio.Event()

    def release(self) -> None:
        assert self.gate is not None
        self.gate.set()

    async def record(self, draft: CheckoutDraft) -> None:
        self.started.append(draft.bill_number)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail is not None:
            raise self.fail
        self.recorded.append(draft)


class EventSink:
    def __init__(self) -> None:
        self.events: list[Any] = []

    def __call__(self, event: Any) -> None:
        self.events.append(event)

    def of_type(self, kind: type) -> list[Any]:
        return [event for event in self.events if isinstance(event, kind)]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def recorder() -> RecordingRecorder:
    return RecordingRecorder()


@pytest.fixture
def sink() -> EventSink:
    return EventSink()


@pytest.fixture
def company() -> CompanyProfile:
    return CompanyProfile(
        name="Test Mart",
        address="1 Market Lane",
        city="Pune",
        state="Maharashtra",
        pincode="411001",
        phone="9800000000",
        gstin="27AAAAA0000A1Z5",
        upi_id="testmart@upi",
    )


@pytest.fixture
def settings(company: CompanyProfile) -> StaticSettings:
    return StaticSettings(company=company, tax=TaxConfig(default_tax_mode=TaxMode.EXCLUSIVE, seller_state_code="27"))


@pytest.fixture
def db_path(tmp_path) -> str:
    path = str(tmp_path / "till.db")
    bootstrap_schema(path)
    return path


@pytest.fixture
def make_item() -> Callable[..., CatalogItem]:
    def _make(
        item_id: str = "itm_1",
        name: str | None = None,
        price: float = 100.0,
        stock: int = 10,
        rate: float = 0.0,
        tax_mode: TaxMode | None = None,
        category: str = "",
        item_code: str = "",
        is_active: bool = True,
    ) -> CatalogItem:
        return CatalogItem(
            item_id=item_id,
            name=name or f"Item {item_id}",
            selling_price=price,
            stock=stock,
            tax_rate_percent=rate,
            tax_mode=tax_mode,
            category=category,
            item_code=item_code,
            is_active=is_active,
        )

    return _make


@pytest.fixture
def sample_draft() -> CheckoutDraft:
    lines = (
        CartLine(
            line_id="cart-1",
            catalog_item_id="itm_milk",
            name="Toned Milk 500ml",
            unit_price_excl_tax=28.0,
            quantity=2,
            tax_rate_percent=0.0,
            tax_amount=0.0,
            unit="PKT",
        ),
        CartLine(
            line_id="cart-2",
            catalog_item_id="itm_soap",
            name="Bathing Soap 125g",
            unit_price_excl_tax=100.0,
            quantity=1,
            tax_rate_percent=18.0,
            tax_amount=18.0,
        ),
    )
    return CheckoutDraft(
        bill_number="POS-123456",
        token_number=3,
        created_at=1_700_000_000.0,
        customer=CustomerInfo(name="Anita", is_walk_in=False, id="cust-1", phone="9890011223"),
        payment=PaymentInfo(
            method=PaymentMethod.CASH,
            amount=174.0,
            received_amount=200.0,
            change_amount=26.0,
        ),
        discount=DiscountInfo(type=DiscountType.PERCENT, value=0.0, discount_amount=0.0),
        round_off=0.0,
        grand_total=174.0,
        items=lines,
        subtotal=156.0,
        total_tax=18.0,
        cgst=9.0,
        sgst=9.0,
        igst=0.0,
    )
