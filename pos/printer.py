"""Receipt printing on an ESC/POS thermal printer."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from pos.config import (
    PRINTER_FONT_PATH,
    PRINTER_FONT_SIZE,
    PRINTER_LEFT_INDENT_PX,
    PRINTER_TAIL_SPACER_PX,
    PRINTER_USB_PRODUCT_ID,
    PRINTER_USB_VENDOR_ID,
    PRINTER_WIDTH_PX,
    SHOP_NAME,
)
from pos.models import SaleTransaction
from pos.rendering import format_money

_SEPARATOR_HEIGHT_PX = 14
_SEPARATOR_THICKNESS_PX = 3
_LINE_EXTRA_PX = 10
_FONT_OVERRIDE_ENV = "RECEIPT_PRINTER_FONT_PATH"
_LINUX_FONT_FALLBACKS = (
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/noto/NotoSans-Regular.ttf",
    "/usr/share/fonts/liberation/LiberationSans-Regular.ttf",
)


@dataclass(frozen=True)
class ReceiptRow:
    """One printed row: left text, optional right-aligned amount."""

    left: str
    right: str = ""
    separator: bool = False
    emphasis: bool = False


SEPARATOR = ReceiptRow("", separator=True)


def receipt_rows(sale: SaleTransaction, shop_name: str = SHOP_NAME) -> list[ReceiptRow]:
    """Lay out a sale as receipt rows, independent of any printer."""
    rows = [
        ReceiptRow(shop_name, emphasis=True),
        ReceiptRow(sale.date.strftime("%Y-%m-%d %H:%M"), f"#{sale.id[:8]}"),
        SEPARATOR,
    ]
    for item in sale.items:
        rows.append(ReceiptRow(f"{item.quantity} x {item.product_name}", format_money(item.total_item_price)))
        for modifier in item.chosen_modifiers:
            extra = format_money(modifier.additional_price) if modifier.additional_price else ""
            rows.append(ReceiptRow(f"    + {modifier.option_name}", extra))
    rows.append(SEPARATOR)
    rows.append(ReceiptRow("Subtotal", format_money(sale.subtotal)))
    if sale.discount:
        rows.append(ReceiptRow("Discount", f"-{format_money(sale.discount)}"))
    rows.append(ReceiptRow("Total", format_money(sale.total), emphasis=True))
    rows.append(ReceiptRow(f"Paid by {sale.payment_method}"))
    return rows


def receipt_text(sale: SaleTransaction, width: int = 32) -> str:
    """Plain-text receipt, used for screen previews."""
    lines = []
    for row in receipt_rows(sale):
        if row.separator:
            lines.append("-" * width)
            continue
        gap = max(1, width - len(row.left) - len(row.right))
        lines.append(f"{row.left}{' ' * gap}{row.right}" if row.right else row.left)
    return "\n".join(lines)


def resolve_printer_font_path() -> str:
    """
    Resolve a printer font path.

    Resolution order:
    1. RECEIPT_PRINTER_FONT_PATH (if set)
    2. PRINTER_FONT_PATH
    3. Known Linux fallbacks
    """
    env_override = os.environ.get(_FONT_OVERRIDE_ENV, "").strip()
    candidates: list[str] = []
    if env_override:
        candidates.append(env_override)
    candidates.append(PRINTER_FONT_PATH)
    candidates.extend(_LINUX_FONT_FALLBACKS)

    seen: set[str] = set()
    for candidate in candidates:
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        if Path(candidate).is_file():
            return candidate

    raise RuntimeError(
        f"No usable printer font found. Set {_FONT_OVERRIDE_ENV} to a valid .ttf/.otf file. "
        f"Tried: {', '.join(seen)}"
    )


def check_printer_dependencies() -> tuple[bool, str]:
    """Check whether printer dependencies and a font are available."""
    try:
        from escpos.printer import Usb  # noqa: F401
        from PIL import ImageFont

        ImageFont.truetype(resolve_printer_font_path(), PRINTER_FONT_SIZE)
    except Exception as exc:
        return (False, f"Printer unavailable: {exc}")
    return (True, "Printer ready")


def _fit_text_to_px(text: str, font: object, max_width_px: int) -> str:
    from PIL import Image, ImageDraw

    draw = ImageDraw.Draw(Image.new("1", (1, 1), color=1))
    if draw.textbbox((0, 0), text, font=font)[2] <= max_width_px:
        return text
    trimmed = text
    while trimmed:
        candidate = f"{trimmed}..."
        if draw.textbbox((0, 0), candidate, font=font)[2] <= max_width_px:
            return candidate
        trimmed = trimmed[:-1]
    return "..."


def _render_row(row: ReceiptRow, font: object) -> object:
    from PIL import Image, ImageDraw

    canvas_height = PRINTER_FONT_SIZE + _LINE_EXTRA_PX
    img = Image.new("1", (PRINTER_WIDTH_PX, canvas_height), color=1)
    draw = ImageDraw.Draw(img)

    right_width = 0
    if row.right:
        right_bbox = draw.textbbox((0, 0), row.right, font=font)
        right_width = right_bbox[2] - right_bbox[0]
        right_x = PRINTER_WIDTH_PX - PRINTER_LEFT_INDENT_PX - right_width - right_bbox[0]
        draw.text((right_x, (canvas_height - (right_bbox[3] - right_bbox[1])) // 2 - right_bbox[1]), row.right, font=font, fill=0)

    max_left = PRINTER_WIDTH_PX - (PRINTER_LEFT_INDENT_PX * 2) - right_width - 8
    left = _fit_text_to_px(row.left, font, max_left)
    bbox = draw.textbbox((0, 0), left, font=font)
    # Offset by bbox top so descenders are not clipped.
    y = (canvas_height - (bbox[3] - bbox[1])) // 2 - bbox[1]
    draw.text((PRINTER_LEFT_INDENT_PX, y), left, font=font, fill=0)
    return img


def _render_separator() -> object:
    from PIL import Image, ImageDraw

    img = Image.new("1", (PRINTER_WIDTH_PX, _SEPARATOR_HEIGHT_PX), color=1)
    draw = ImageDraw.Draw(img)
    top = (_SEPARATOR_HEIGHT_PX - _SEPARATOR_THICKNESS_PX) // 2
    draw.rectangle((0, top, PRINTER_WIDTH_PX - 1, top + _SEPARATOR_THICKNESS_PX - 1), fill=0)
    return img


def _render_spacer(height_px: int) -> object:
    from PIL import Image

    return Image.new("1", (PRINTER_WIDTH_PX, max(1, height_px)), color=1)


def print_sale_receipt(sale: SaleTransaction, printer: object | None = None) -> None:
    """Print a sale receipt and cut the ticket at the end."""
    try:
        from PIL import ImageFont
    except Exception as exc:
        raise RuntimeError(f"Printer dependencies unavailable: {exc}") from exc

    if printer is None:
        try:
            from escpos.printer import Usb
        except Exception as exc:
            raise RuntimeError(f"Printer dependencies unavailable: {exc}") from exc
        printer = Usb(PRINTER_USB_VENDOR_ID, PRINTER_USB_PRODUCT_ID)

    font_path = resolve_printer_font_path()
    font = ImageFont.truetype(font_path, PRINTER_FONT_SIZE)
    heading_font = ImageFont.truetype(font_path, PRINTER_FONT_SIZE + 8)

    for row in receipt_rows(sale):
        if row.separator:
            printer.image(_render_separator())
            continue
        printer.image(_render_row(row, heading_font if row.emphasis else font))

    printer.image(_render_spacer(PRINTER_TAIL_SPACER_PX))
    printer.cut()
