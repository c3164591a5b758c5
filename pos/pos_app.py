"""Main Textual app class."""

from __future__ import annotations

import logging
from decimal import Decimal

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.events import Key
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Header, Static

from pos.amount_modal import AmountModal
from pos.config import SHOP_NAME
from pos.errors import InsufficientStock, PosError
from pos.models import OrderLineItem, Product
from pos.modifiers_modal import ModifiersModal
from pos.payment_modal import PaymentModal
from pos.printer import check_printer_dependencies, print_sale_receipt
from pos.rendering import (
    category_style,
    format_line_label,
    format_order_totals,
    format_product_label,
    inventory_status_table,
    profit_table,
    sales_history_table,
    sales_summary_table,
)
from pos.report_modal import ReportModal
from pos.session import PointOfSale

logger = logging.getLogger(__name__)


class PosApp(App):
    """A Textual cash register for a small coffee shop."""

    TITLE = SHOP_NAME
    SUB_TITLE = "Point of Sale"

    CSS = """
    Screen {
        layout: vertical;
    }

    #main-layout {
        height: 1fr;
    }

    #orders-pane {
        width: 3fr;
        border: round $primary;
        padding: 1;
    }

    #search-pane {
        width: 2fr;
        border: round $secondary;
        padding: 1;
    }

    #search-bar {
        border: heavy $secondary;
        padding: 0 1;
        margin-bottom: 1;
        height: 3;
    }

    #results {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #orders-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #order-totals {
        height: 1;
        margin-top: 1;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    input_state = reactive("normal")
    query = reactive("")
    selected_index = reactive(0)
    line_selected_index = reactive(None)

    BINDINGS = [
        ("tab", "cycle_results(1)", "Next result"),
        ("up", "cycle_results(-1)", "Previous result"),
        ("down", "cycle_results(1)", "Next result"),
        ("enter", "add_selected", "Add item"),
        ("backspace", "backspace_query", "Delete query char"),
        Binding("ctrl+s", "checkout", "Checkout", priority=True),
        ("ctrl+c", "cancel_search", "Exit search"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, session: PointOfSale) -> None:
        super().__init__()
        self.session = session
        self.system_status = ""
        logger.debug("app_init products=%d", len(session.catalog.list_products()))

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-layout"):
            with Vertical(id="orders-pane"):
                yield Static("Current Order", classes="pane-title")
                yield Static("(no items yet)", id="orders-list")
                yield Static(id="order-totals")
            with Vertical(id="search-pane"):
                yield Static(id="search-bar")
                yield Static(id="results")

    def on_mount(self) -> None:
        _, msg = check_printer_dependencies()
        self.system_status = msg
        logger.debug("on_mount printer_status=%r", msg)
        self._refresh_all()

    def _modal_open(self) -> bool:
        return isinstance(self.screen, ModalScreen)

    def on_key(self, event: Key) -> None:
        if self._modal_open():
            return

        logger.debug(
            "on_key key=%r char=%r printable=%s state=%r", event.key, event.character, event.is_printable, self.input_state
        )

        if not event.is_printable or not event.character or len(event.character) != 1:
            return

        if self.input_state == "active":
            self.query += event.character
            self.selected_index = 0
            self._refresh_search()
            event.stop()
            return

        key = event.character.lower()
        handlers = {
            "/": self._start_search,
            "s": self._start_search,
            "j": lambda: self._move_line_selection(1),
            "k": lambda: self._move_line_selection(-1),
            "+": lambda: self._change_selected_quantity(1),
            "=": lambda: self._change_selected_quantity(1),
            "-": lambda: self._change_selected_quantity(-1),
            "d": self._delete_selected_line,
            "m": self._open_discount,
            "n": self._discard_order,
            "i": self._show_inventory_report,
            "y": self._show_sales_summary,
            "p": self._show_profit_report,
            "h": self._show_history,
        }
        handler = handlers.get(key)
        if handler is None:
            return
        handler()
        event.stop()

    def _start_search(self) -> None:
        self.input_state = "active"
        self.query = ""
        self.selected_index = 0
        self._refresh_search()

    def action_cancel_search(self) -> None:
        if self._modal_open():
            return
        if self.input_state == "normal":
            return

        self.input_state = "normal"
        self.query = ""
        self.selected_index = 0
        self._refresh_search()

    def action_cycle_results(self, delta: int) -> None:
        if self._modal_open():
            return
        if self.input_state != "active":
            self._move_line_selection(delta)
            return

        results = self._filtered_results()
        if not results:
            self.selected_index = 0
            self._refresh_results(results)
            return
        self.selected_index = (self.selected_index + delta) % len(results)
        self._refresh_results(results)

    def action_add_selected(self) -> None:
        if self._modal_open():
            return
        if self.input_state != "active":
            return

        results = self._filtered_results()
        if not results:
            return

        product = results[self.selected_index]
        if not product.modifier_groups:
            self._add_product(product, [])
            return

        def on_modifiers(chosen: list[tuple[str, str]] | None) -> None:
            if chosen is None:
                return
            self._add_product(product, chosen)

        self.push_screen(ModifiersModal(product), on_modifiers)

    def action_backspace_query(self) -> None:
        if self._modal_open():
            return
        if self.input_state != "active":
            return

        if not self.query:
            return
        self.query = self.query[:-1]
        self.selected_index = 0
        self._refresh_search()

    def action_checkout(self) -> None:
        order = self.session.orders.get_current_order()
        logger.debug("checkout_enter state=%r lines=%d screen=%s", self.input_state, len(order.items), type(self.screen).__name__)
        if self._modal_open():
            logger.debug("checkout_blocked reason=modal")
            return
        if self.input_state != "normal":
            self._set_status("Checkout only in NORMAL mode (Ctrl+C to leave search)")
            return
        if not order.items:
            self._set_status("Nothing to check out")
            return

        shortages = self.session.sales.check_availability()
        self.push_screen(PaymentModal(order, shortages), self._finish_checkout)

    def _finish_checkout(self, payment_method: str | None) -> None:
        if payment_method is None:
            return
        try:
            sale = self.session.sales.finalize_sale(payment_method)
        except InsufficientStock as exc:
            names = ", ".join(shortage.name for shortage in exc.shortages)
            self._set_status(f"Not enough stock: {names}")
            logger.info("checkout_blocked reason=insufficient_stock shortages=%d", len(exc.shortages))
            return
        except PosError as exc:
            self._set_status(str(exc))
            logger.info("checkout_failed code=%s error=%s", exc.code, exc)
            return

        for warning in sale.deduction_warnings:
            self.notify(warning, title="Partial stock deduction", severity="warning")

        self.line_selected_index = None
        try:
            print_sale_receipt(sale)
        except Exception as exc:
            self._set_status(f"Sold {sale.id[:8]} but print failed: {exc}")
            logger.warning("receipt_print_failed sale=%s error=%r", sale.id, exc)
            self._refresh_orders()
            return

        self._set_status(f"Sold + printed: {sale.id[:8]}")
        self._refresh_orders()

    def _add_product(self, product: Product, chosen: list[tuple[str, str]]) -> None:
        try:
            order = self.session.orders.add_item_to_order(product.id, 1, chosen)
        except PosError as exc:
            self._set_status(str(exc))
            return
        signature_ids = sorted(option_id for _, option_id in chosen)
        for idx, line in enumerate(order.items):
            if line.product_id == product.id and sorted(m.option_id for m in line.chosen_modifiers) == signature_ids:
                self.line_selected_index = idx
        self._refresh_orders()

    def _open_discount(self) -> None:
        order = self.session.orders.get_current_order()

        def on_amount(amount: Decimal | None) -> None:
            if amount is None:
                return
            try:
                self.session.orders.apply_discount(amount)
            except PosError as exc:
                self._set_status(str(exc))
                return
            self._refresh_orders()

        self.push_screen(AmountModal("Discount", order.discount), on_amount)

    def _discard_order(self) -> None:
        self.session.orders.start_new_order()
        self.line_selected_index = None
        self._set_status("Started a new order")
        self._refresh_orders()

    def _show_inventory_report(self) -> None:
        report = self.session.reports.generate_inventory_status_report()
        self.push_screen(ReportModal("Inventory status", lambda _page: inventory_status_table(report)))

    def _show_sales_summary(self) -> None:
        report = self.session.reports.generate_sales_summary_report()
        self.push_screen(ReportModal("Sales summary", lambda _page: sales_summary_table(report)))

    def _show_profit_report(self) -> None:
        rows = self.session.reports.generate_profit_by_product_report()
        self.push_screen(ReportModal("Profit by product", lambda _page: profit_table(rows)))

    def _show_history(self) -> None:
        sales = self.session.sales
        page_count = sales.page_count()
        self.push_screen(
            ReportModal(
                "Sales history",
                lambda page: sales_history_table(sales.get_sales_history(page), page, page_count),
                page_count,
            )
        )

    def _filtered_results(self) -> list[Product]:
        source = self.session.catalog.list_products()
        if not self.query:
            return source
        q = self.query.lower()
        return [product for product in source if q in product.name.lower() or q in product.sku.lower()]

    def _lines(self) -> list[OrderLineItem]:
        return self.session.orders.get_current_order().items

    def _set_status(self, message: str) -> None:
        self.system_status = message
        self._refresh_search()

    def _refresh_all(self) -> None:
        self._refresh_orders()
        self._refresh_search()

    def _move_line_selection(self, delta: int) -> None:
        lines = self._lines()
        if not lines:
            return

        if self.line_selected_index is None:
            self.line_selected_index = 0 if delta > 0 else len(lines) - 1
        else:
            self.line_selected_index = (self.line_selected_index + delta) % len(lines)
        self._refresh_orders()

    def _selected_line(self) -> OrderLineItem | None:
        lines = self._lines()
        if self.line_selected_index is None:
            return None
        if not (0 <= self.line_selected_index < len(lines)):
            return None
        return lines[self.line_selected_index]

    def _change_selected_quantity(self, delta: int) -> None:
        line = self._selected_line()
        if line is None:
            return
        self.session.orders.update_item_quantity_in_order(line.id, line.quantity + delta)
        self._refresh_orders()

    def _delete_selected_line(self) -> None:
        line = self._selected_line()
        if line is None:
            return
        self.session.orders.remove_item_from_order(line.id)
        self._refresh_orders()

    def _visible_rows(self, widget: Static) -> int:
        height = widget.size.height
        if height <= 0:
            return 8
        return max(1, height)

    def _window_bounds(self, total: int, rows: int, selected: int | None) -> tuple[int, int]:
        if total <= 0:
            return (0, 0)

        rows = max(1, rows)
        if total <= rows:
            return (0, total)

        start = 0
        if selected is not None:
            start = min(max(0, selected - rows // 2), total - rows)
        return (start, start + rows)

    def _refresh_orders(self) -> None:
        try:
            orders_widget = self.query_one("#orders-list", Static)
            totals_widget = self.query_one("#order-totals", Static)
        except NoMatches:
            return
        order = self.session.orders.get_current_order()
        totals_widget.update(format_order_totals(order))
        lines = order.items
        if not lines:
            self.line_selected_index = None
            orders_widget.update("(no items yet)")
            return

        if self.line_selected_index is not None and self.line_selected_index >= len(lines):
            self.line_selected_index = len(lines) - 1

        # Each line may take two rows when it has modifiers.
        visible_rows = max(1, self._visible_rows(orders_widget) // 2)
        start, end = self._window_bounds(len(lines), visible_rows, self.line_selected_index)

        text = Text()
        if start > 0:
            text.append("⋮\n", style="dim")

        for idx in range(start, end):
            if idx > start:
                text.append("\n")
            pointer = "➤ " if idx == self.line_selected_index else "  "
            text.append(pointer)
            text.append(f"{idx + 1}. ")
            text.append_text(format_line_label(lines[idx]))

        if end < len(lines):
            text.append("\n⋮", style="dim")

        orders_widget.update(text)

    def _refresh_search(self) -> None:
        self._refresh_search_bar()
        if self.input_state == "normal":
            self._refresh_results([])
            return
        self._refresh_results(self._filtered_results())

    def _refresh_search_bar(self) -> None:
        try:
            bar = self.query_one("#search-bar", Static)
        except NoMatches:
            return
        if self.input_state == "normal":
            status = self.system_status or "Ready"
            bar.update(f"/ search, J/K +/- D M, Ctrl+S checkout, I Y P H reports\n{status}")
            return

        text = Text()
        text.append("Search", style=category_style(""))
        text.append(f": {self.query}")
        bar.update(text)

    def _refresh_results(self, results: list[Product]) -> None:
        try:
            results_widget = self.query_one("#results", Static)
        except NoMatches:
            return
        if self.input_state == "normal":
            results_widget.update("")
            return

        if not results:
            results_widget.update("No results")
            return

        if self.selected_index >= len(results):
            self.selected_index = 0

        visible_rows = self._visible_rows(results_widget)
        start, end = self._window_bounds(len(results), visible_rows, self.selected_index)

        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")

        for idx in range(start, end):
            if idx > start:
                lines.append("\n")
            pointer = "➤ " if idx == self.selected_index else "  "
            lines.append(pointer)
            lines.append_text(format_product_label(results[idx]))

        if end < len(results):
            lines.append("\n⋮", style="dim")

        results_widget.update(lines)
