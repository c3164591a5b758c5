"""Payment method modal screen."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Static

from pos.config import PAYMENT_METHODS
from pos.errors import Shortage
from pos.models import Order
from pos.rendering import format_order_totals


class PaymentModal(ModalScreen[str | None]):
    """Confirm checkout and choose how the customer pays."""

    BINDINGS = [
        ("escape", "cancel", "Cancel"),
        ("q", "cancel", "Cancel"),
        ("ctrl+c", "cancel", "Cancel"),
        ("j", "move_cursor(1)", "Next"),
        ("k", "move_cursor(-1)", "Previous"),
        ("up", "move_cursor(-1)", "Previous"),
        ("down", "move_cursor(1)", "Next"),
        ("enter", "confirm", "Pay"),
    ]

    CSS = """
    PaymentModal {
        align: center middle;
        background: $background 60%;
    }

    #payment-dialog {
        width: 60;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #payment-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #payment-body {
        color: white;
        margin-bottom: 1;
    }

    #payment-help {
        color: #dddddd;
    }
    """

    cursor_index = reactive(0)

    def __init__(self, order: Order, shortages: list[Shortage] | None = None) -> None:
        super().__init__()
        self.order = order
        self.shortages = shortages or []

    def compose(self) -> ComposeResult:
        with Container(id="payment-dialog"):
            yield Static("Checkout", id="payment-title")
            yield Static(id="payment-body")
            yield Static("J/K/↑/↓ move, Enter pay, Esc cancel", id="payment-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def action_cancel(self) -> None:
        self.dismiss(None)

    def action_move_cursor(self, delta: int) -> None:
        self.cursor_index = (self.cursor_index + delta) % len(PAYMENT_METHODS)
        self._refresh_content()

    def action_confirm(self) -> None:
        self.dismiss(PAYMENT_METHODS[self.cursor_index])

    def _refresh_content(self) -> None:
        content = Text(style="white")
        content.append_text(format_order_totals(self.order))
        for shortage in self.shortages:
            content.append(
                f"\nShort: {shortage.name} needs {shortage.required:g} {shortage.unit}, has {shortage.available:g}",
                style="bold red",
            )
        content.append("\n")
        for idx, method in enumerate(PAYMENT_METHODS):
            pointer = "➤ " if idx == self.cursor_index else "  "
            content.append(f"\n{pointer}{method.title()}", style="bold white" if idx == self.cursor_index else "white")
        self.query_one("#payment-body", Static).update(content)
