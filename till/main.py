"""Entry point for the till Textual app."""

from __future__ import annotations

import logging
import sqlite3

from till.checkout import SaleFailed
from till.config import DB_PATH, TERMINAL_ID, TERMINAL_ID_PATH
from till.constant import DEMO_CUSTOMERS
from till.data import DEMO_ITEMS, SHOP_PROFILE
from till.logs import configure_logging
from till.persistence import (
    SqliteCatalog,
    SqliteCustomerDirectory,
    SqliteKeyValueStore,
    SqliteSaleRecorder,
    bootstrap_schema,
    insert_customer,
    list_customers,
    save_reconciliation,
    seed_catalog,
)
from till.ports import default_settings
from till.printer import print_receipt
from till.session import SessionRegistry, load_terminal_id
from till.till_app import TillApp

logger = logging.getLogger(__name__)


def seed_demo_data(db_path: str = DB_PATH) -> None:
    """Fill an empty database with the demo catalog and customers."""
    inserted = seed_catalog(DEMO_ITEMS, db_path)
    if inserted:
        logger.info("catalog_seeded items=%s", inserted)
    if not list_customers("customer", db_path):
        for row in DEMO_CUSTOMERS:
            insert_customer(row["name"], row["phone"], row["gstin"], db_path=db_path)


def park_failed_sale(event: SaleFailed, db_path: str = DB_PATH) -> None:
    """Keep a sale whose save failed in the reconciliation outbox."""
    try:
        save_reconciliation(event.draft, event.error, db_path)
    except sqlite3.Error:
        logger.exception("reconciliation_failed bill=%s", event.bill_number)
        return
    logger.warning("sale_parked bill=%s", event.bill_number)


def build_app(db_path: str = DB_PATH, terminal_id: str = TERMINAL_ID) -> TillApp:
    bootstrap_schema(db_path)
    seed_demo_data(db_path)

    registry = SessionRegistry(SqliteKeyValueStore(db_path), terminal_id or load_terminal_id(TERMINAL_ID_PATH))
    reaped = registry.reap_stale()
    if reaped:
        logger.info("stale_sessions_removed ids=%s", ",".join(reaped))

    return TillApp(
        registry,
        SqliteCatalog(db_path),
        SqliteCustomerDirectory(db_path),
        SqliteSaleRecorder(db_path),
        default_settings(SHOP_PROFILE),
        print_receipt=print_receipt,
        on_sale_failed=lambda event: park_failed_sale(event, db_path),
    )


def main() -> None:
    """Run the Textual application."""
    configure_logging()
    app = build_app()
    try:
        app.run()
    finally:
        app.save_session()
        app.registry.shutdown(app.session, app.queue.state)


if __name__ == "__main__":
    main()
