"""Money amount entry modal screen."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from pos.config import CURRENCY_SYMBOL

_MAX_CHARS = 9


def parse_amount_entry(raw: str) -> Decimal:
    """Read typed digits as money; blank means zero. Raises ValueError."""
    if not raw:
        return Decimal("0")
    _, _, cents = raw.partition(".")
    if len(cents) > 2:
        raise ValueError("At most two decimal places.")
    try:
        return Decimal(raw)
    except InvalidOperation:
        raise ValueError("Not a valid amount.") from None


class AmountModal(ModalScreen[Decimal | None]):
    """Ask for a money amount, such as the order discount."""

    BINDINGS = [
        ("escape", "cancel", "Cancel"),
        ("ctrl+c", "cancel", "Cancel"),
        ("enter", "confirm", "Confirm"),
        ("backspace", "erase", "Erase"),
    ]

    CSS = """
    AmountModal {
        align: center middle;
        background: $background 60%;
    }

    #amount-dialog {
        width: 40;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #amount-entry {
        border: heavy $secondary;
        padding: 0 1;
        margin: 1 0;
    }
    """

    def __init__(self, heading: str = "Discount", initial: Decimal | None = None) -> None:
        super().__init__()
        self.heading = heading
        self.entry = str(initial) if initial else ""
        self.problem = ""

    def compose(self) -> ComposeResult:
        with Container(id="amount-dialog"):
            yield Static(Text(self.heading, style="bold"))
            yield Static(id="amount-entry")
            yield Static(Text("Enter confirm, blank clears, Esc cancel", style="dim"))

    def on_mount(self) -> None:
        self._show()

    def on_key(self, event: Key) -> None:
        char = event.character
        if not event.is_printable or not char or not (char.isdigit() or char == "."):
            return
        event.stop()
        if char == "." and "." in self.entry:
            return
        if len(self.entry) < _MAX_CHARS:
            self.entry += char
        self.problem = ""
        self._show()

    def action_cancel(self) -> None:
        self.dismiss(None)

    def action_erase(self) -> None:
        self.entry = self.entry[:-1]
        self.problem = ""
        self._show()

    def action_confirm(self) -> None:
        try:
            amount = parse_amount_entry(self.entry)
        except ValueError as exc:
            self.problem = str(exc)
            self._show()
            return
        self.dismiss(amount)

    def _show(self) -> None:
        text = Text(f"{CURRENCY_SYMBOL} {self.entry}")
        if self.problem:
            text.append(f"\n{self.problem}", style="#ffb3b3")
        self.query_one("#amount-entry", Static).update(text)
