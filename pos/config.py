"""Runtime configuration defaults for persistence, sales and printing."""

from __future__ import annotations

import os

DB_PATH = os.environ.get("POS_DB_PATH", "data/pos.db")
LOG_PATH = os.environ.get("POS_LOG_PATH", "/tmp/pos-debug.log")

# Keys in the key-value store, one serialized aggregate each.
INGREDIENTS_STORAGE_KEY = "pos_ingredients"
PRODUCTS_STORAGE_KEY = "pos_products"
CURRENT_ORDER_STORAGE_KEY = "pos_current_order"
SALES_HISTORY_STORAGE_KEY = "pos_sales_history"

# Refuse a sale when any ingredient would be short. Set to 0 to clamp stock instead.
ENFORCE_STOCK = os.environ.get("POS_ENFORCE_STOCK", "1").strip().lower() not in {"0", "false", "no"}

HISTORY_PER_PAGE = 10
# Ingredient amounts are kept rounded to this many decimal places.
AMOUNT_PLACES = 6
CURRENCY_SYMBOL = "$"
PAYMENT_METHODS = ("cash", "card", "mobile")
SHOP_NAME = "Coffee Haven"

PRINTER_USB_VENDOR_ID = 0x28E9
PRINTER_USB_PRODUCT_ID = 0x0289
PRINTER_WIDTH_PX = 384
PRINTER_FONT_SIZE = 28
PRINTER_FONT_PATH = "/System/Library/Fonts/SFNS.ttf"
PRINTER_LEFT_INDENT_PX = 16
PRINTER_TAIL_SPACER_PX = 70
