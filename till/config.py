"""Runtime configuration defaults for the till engine, storage and printing."""

from __future__ import annotations

import os

DB_PATH = os.environ.get("TILL_DB_PATH", "data/till.db")
DEBUG_LOG_PATH = os.environ.get("TILL_LOG_PATH", "/tmp/till-debug.log")

# Empty means "use the id remembered in TERMINAL_ID_PATH, creating one if needed".
TERMINAL_ID = os.environ.get("TILL_TERMINAL_ID", "").strip()
TERMINAL_ID_PATH = os.environ.get("TILL_TERMINAL_ID_PATH", "data/terminal-id")

SELLER_STATE_CODE = os.environ.get("TILL_SELLER_STATE_CODE", "27")
DEFAULT_TAX_MODE = os.environ.get("TILL_DEFAULT_TAX_MODE", "exclusive")

MAX_TICKETS = 10
SESSION_MAX_AGE_SECONDS = 24 * 60 * 60
COMPLETED_TICKET_TTL_SECONDS = 60 * 60
COMPLETED_PURGE_DELAY_SECONDS = 0.5

WALK_IN_CUSTOMER_NAME = "Walk-in Customer"
BILL_NUMBER_PREFIX = "POS-"

PRINTER_USB_VENDOR_ID = 0x28E9
PRINTER_USB_PRODUCT_ID = 0x0289
PRINTER_WIDTH_PX = 576
PRINTER_FONT_SIZE = 22
PRINTER_FONT_PATH = "/System/Library/Fonts/Menlo.ttc"
PRINTER_LEFT_INDENT_PX = 8
PRINTER_RECEIPT_COLUMNS = 42
PRINTER_TAIL_SPACER_PX = 70
