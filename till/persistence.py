"""SQLite persistence: key-value store, catalog, customers and recorded sales."""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any, Callable, Iterable
from uuid import uuid4

from till.config import DB_PATH
from till.errors import DirectoryError, errmsg
from till.models import CatalogItem, CheckoutDraft, Customer, TaxMode

logger = logging.getLogger(__name__)

SALE_STATUS_SAVED = "SAVED"


def _connect(db_path: str = DB_PATH) -> sqlite3.Connection:
    db_file = Path(db_path)
    db_file.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_file)
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def bootstrap_schema(db_path: str = DB_PATH) -> None:
    """Create persistence schema if it does not already exist."""
    with _connect(db_path) as conn:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at REAL NOT NULL,
                expires_at REAL
            );

            CREATE TABLE IF NOT EXISTS catalog_items (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                selling_price REAL NOT NULL,
                stock INTEGER NOT NULL,
                tax_rate REAL NOT NULL DEFAULT 0,
                unit TEXT NOT NULL DEFAULT 'PCS',
                tax_mode TEXT,
                category TEXT NOT NULL DEFAULT '',
                item_code TEXT NOT NULL DEFAULT '',
                hsn_code TEXT NOT NULL DEFAULT '',
                is_active INTEGER NOT NULL DEFAULT 1
            );

            CREATE TABLE IF NOT EXISTS customers (
                id TEXT PRIMARY KEY,
                type TEXT NOT NULL DEFAULT 'customer',
                name TEXT NOT NULL,
                phone TEXT NOT NULL DEFAULT '',
                gstin TEXT NOT NULL DEFAULT '',
                created_at REAL NOT NULL
            );

            CREATE TABLE IF NOT EXISTS sales (
                id TEXT PRIMARY KEY,
                bill_number TEXT NOT NULL,
                created_at REAL NOT NULL,
                token_number INTEGER NOT NULL,
                customer_id TEXT,
                customer_name TEXT NOT NULL,
                payment_method TEXT NOT NULL,
                grand_total REAL NOT NULL,
                payload TEXT NOT NULL,
                status TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS sale_items (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                sale_id TEXT NOT NULL,
                line_index INTEGER NOT NULL,
                catalog_item_id TEXT NOT NULL,
                name TEXT NOT NULL,
                quantity INTEGER NOT NULL,
                unit_price REAL NOT NULL,
                tax_rate REAL NOT NULL,
                tax_amount REAL NOT NULL,
                FOREIGN KEY(sale_id) REFERENCES sales(id) ON DELETE CASCADE
            );

            CREATE TABLE IF NOT EXISTS reconciliation (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                bill_number TEXT NOT NULL,
                created_at REAL NOT NULL,
                payload TEXT NOT NULL,
                error TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_sales_bill_number
                ON sales(bill_number);

            CREATE INDEX IF NOT EXISTS idx_sale_items_sale_line
                ON sale_items(sale_id, line_index);

            CREATE INDEX IF NOT EXISTS idx_kv_expires_at
                ON kv(expires_at);
            """
        )


class SqliteKeyValueStore:
    """Durable JSON key-value store with optional per-key TTL."""

    def __init__(self, db_path: str = DB_PATH, clock: Callable[[], float] = time.time) -> None:
        self.db_path = db_path
        self.clock = clock

    def get(self, key: str) -> Any | None:
        with _connect(self.db_path) as conn:
            row = conn.execute("SELECT value, expires_at FROM kv WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        value, expires_at = row
        if expires_at is not None and expires_at <= self.clock():
            return None
        return json.loads(value)

    def put(self, key: str, value: Any, ttl: float | None = None) -> None:
        now = self.clock()
        expires_at = now + ttl if ttl is not None else None
        with _connect(self.db_path) as conn:
            with conn:
                conn.execute(
                    """
                    INSERT INTO kv (key, value, updated_at, expires_at) VALUES (?, ?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at,
                        expires_at = excluded.expires_at
                    """,
                    (key, json.dumps(value), now, expires_at),
                )

    def delete(self, key: str) -> None:
        with _connect(self.db_path) as conn:
            with conn:
                conn.execute("DELETE FROM kv WHERE key = ?", (key,))

    def scan(self, prefix: str) -> dict[str, Any]:
        """All live entries whose key starts with ``prefix``."""
        now = self.clock()
        with _connect(self.db_path) as conn:
            rows = conn.execute(
                "SELECT key, value, expires_at FROM kv WHERE substr(key, 1, ?) = ?",
                (len(prefix), prefix),
            ).fetchall()
        return {
            key: json.loads(value)
            for key, value, expires_at in rows
            if expires_at is None or expires_at > now
        }


def _row_to_item(row: tuple) -> CatalogItem:
    item_id, name, price, stock, tax_rate, unit, tax_mode, category, item_code, hsn_code, is_active = row
    return CatalogItem(
        item_id=item_id,
        name=name,
        selling_price=float(price),
        stock=int(stock),
        tax_rate_percent=float(tax_rate),
        unit=unit,
        tax_mode=TaxMode(tax_mode) if tax_mode else None,
        category=category,
        item_code=item_code,
        hsn_code=hsn_code,
        is_active=bool(is_active),
    )


def seed_catalog(items: Iterable[CatalogItem], db_path: str = DB_PATH) -> int:
    """Insert ``items`` when the catalog is still empty. Returns rows inserted."""
    rows = list(items)
    with _connect(db_path) as conn:
        with conn:
            (count,) = conn.execute("SELECT COUNT(*) FROM catalog_items").fetchone()
            if count:
                return 0
            conn.executemany(
                """
                INSERT INTO catalog_items
                    (id, name, selling_price, stock, tax_rate, unit, tax_mode, category, item_code, hsn_code, is_active)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        item.item_id,
                        item.name,
                        item.selling_price,
                        item.stock,
                        item.tax_rate_percent,
                        item.unit,
                        item.tax_mode.value if item.tax_mode else None,
                        item.category,
                        item.item_code,
                        item.hsn_code,
                        int(item.is_active),
                    )
                    for item in rows
                ],
            )
    return len(rows)


def load_catalog(db_path: str = DB_PATH) -> list[CatalogItem]:
    with _connect(db_path) as conn:
        rows = conn.execute(
            """
            SELECT id, name, selling_price, stock, tax_rate, unit, tax_mode, category, item_code, hsn_code, is_active
            FROM catalog_items ORDER BY name
            """
        ).fetchall()
    return [_row_to_item(row) for row in rows]


def list_customers(party_type: str = "customer", db_path: str = DB_PATH) -> list[Customer]:
    with _connect(db_path) as conn:
        rows = conn.execute(
            "SELECT id, name, phone, gstin FROM customers WHERE type = ? ORDER BY created_at DESC",
            (party_type,),
        ).fetchall()
    return [Customer(customer_id=row[0], name=row[1], phone=row[2], gstin=row[3]) for row in rows]


def insert_customer(name: str, phone: str = "", gstin: str = "", db_path: str = DB_PATH) -> Customer:
    """Persist a new customer party and return it."""
    name = name.strip()
    if not name:
        raise ValueError(errmsg.CUSTOMER_NAME_REQUIRED)
    customer = Customer(customer_id=uuid4().hex, name=name, phone=phone.strip(), gstin=gstin.strip().upper())
    with _connect(db_path) as conn:
        with conn:
            conn.execute(
                "INSERT INTO customers (id, type, name, phone, gstin, created_at) VALUES (?, 'customer', ?, ?, ?, ?)",
                (customer.customer_id, customer.name, customer.phone, customer.gstin, time.time()),
            )
    return customer


def save_sale(draft: CheckoutDraft, db_path: str = DB_PATH) -> None:
    """Record a completed sale and take its quantities out of stock."""
    if not draft.items:
        raise ValueError("Cannot save a sale without items")

    with _connect(db_path) as conn:
        with conn:
            conn.execute(
                """
                INSERT INTO sales
                    (id, bill_number, created_at, token_number, customer_id, customer_name,
                     payment_method, grand_total, payload, status)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    draft.sale_id,
                    draft.bill_number,
                    draft.created_at,
                    draft.token_number,
                    draft.customer.id,
                    draft.customer.name,
                    draft.payment.method.value,
                    draft.grand_total,
                    json.dumps(draft.to_dict()),
                    SALE_STATUS_SAVED,
                ),
            )
            for idx, line in enumerate(draft.items):
                conn.execute(
                    """
                    INSERT INTO sale_items
                        (sale_id, line_index, catalog_item_id, name, quantity, unit_price, tax_rate, tax_amount)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        draft.sale_id,
                        idx,
                        line.catalog_item_id,
                        line.name,
                        line.quantity,
                        line.unit_price_excl_tax,
                        line.tax_rate_percent,
                        line.tax_amount,
                    ),
                )
                conn.execute(
                    "UPDATE catalog_items SET stock = MAX(0, stock - ?) WHERE id = ?",
                    (line.quantity, line.catalog_item_id),
                )


def load_sale(bill_number: str, db_path: str = DB_PATH) -> dict[str, Any] | None:
    """Most recent sale printed with ``bill_number``."""
    with _connect(db_path) as conn:
        row = conn.execute(
            "SELECT payload, status FROM sales WHERE bill_number = ? ORDER BY created_at DESC, rowid DESC LIMIT 1",
            (bill_number,),
        ).fetchone()
    if row is None:
        return None
    payload = json.loads(row[0])
    payload["status"] = row[1]
    return payload


def save_reconciliation(draft: CheckoutDraft, error: str, db_path: str = DB_PATH) -> None:
    """Park a sale whose background save failed, for manual reconciliation."""
    with _connect(db_path) as conn:
        with conn:
            conn.execute(
                "INSERT INTO reconciliation (bill_number, created_at, payload, error) VALUES (?, ?, ?, ?)",
                (draft.bill_number, time.time(), json.dumps(draft.to_dict()), error),
            )


def list_reconciliation(db_path: str = DB_PATH) -> list[tuple[str, str]]:
    """Bill numbers and errors of sales awaiting reconciliation, oldest first."""
    with _connect(db_path) as conn:
        return [
            (row[0], row[1])
            for row in conn.execute("SELECT bill_number, error FROM reconciliation ORDER BY id").fetchall()
        ]


class SqliteCatalog:
    def __init__(self, db_path: str = DB_PATH) -> None:
        self.db_path = db_path

    def get_catalog_items(self) -> list[CatalogItem]:
        return load_catalog(self.db_path)


class SqliteCustomerDirectory:
    """Customer parties stored alongside the till data."""

    def __init__(self, db_path: str = DB_PATH) -> None:
        self.db_path = db_path

    def get_customer_directory(self, party_type: str = "customer") -> list[Customer]:
        try:
            return list_customers(party_type, self.db_path)
        except sqlite3.Error as exc:
            raise DirectoryError(errmsg.DIRECTORY_FAILED) from exc

    def create_customer(self, fields: dict[str, str]) -> Customer:
        try:
            return insert_customer(
                fields.get("name", ""),
                fields.get("phone", ""),
                fields.get("gstin", ""),
                db_path=self.db_path,
            )
        except ValueError as exc:
            raise DirectoryError(str(exc)) from exc
        except sqlite3.Error as exc:
            raise DirectoryError(errmsg.DIRECTORY_FAILED) from exc


class SqliteSaleRecorder:
    """Records sales off the event loop so the terminal never waits on disk."""

    def __init__(self, db_path: str = DB_PATH) -> None:
        self.db_path = db_path

    async def record(self, draft: CheckoutDraft) -> None:
        await asyncio.to_thread(save_sale, draft, self.db_path)
        logger.info("sale_saved bill=%s total=%.2f", draft.bill_number, draft.grand_total)
