"""Modifier selection modal screen."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Static

from pos.models import ModifierGroup, ModifierOption, Product
from pos.rendering import format_money, format_product_label


class ModifiersModal(ModalScreen[list[tuple[str, str]] | None]):
    """Pick at most one option per modifier group before adding a product."""

    BINDINGS = [
        ("escape", "cancel", "Cancel"),
        ("q", "cancel", "Cancel"),
        ("ctrl+c", "cancel", "Cancel"),
        ("j", "move_cursor(1)", "Next"),
        ("k", "move_cursor(-1)", "Previous"),
        ("up", "move_cursor(-1)", "Previous"),
        ("down", "move_cursor(1)", "Next"),
        ("space", "toggle_current", "Toggle"),
        ("enter", "confirm", "Add"),
    ]

    CSS = """
    ModifiersModal {
        align: center middle;
        background: $background 60%;
    }

    #modifiers-dialog {
        width: 64;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #modifiers-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #modifiers-body {
        margin-bottom: 1;
        color: white;
    }

    #modifiers-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    cursor_index = reactive(0)

    def __init__(self, product: Product) -> None:
        super().__init__()
        self.product = product
        self.selected: dict[str, str] = {}

    def compose(self) -> ComposeResult:
        with Container(id="modifiers-dialog"):
            yield Static("Modifiers", id="modifiers-title")
            yield Static(id="modifiers-body")
            yield Static("J/K/↑/↓ move, Space pick, Enter add, Esc cancel", id="modifiers-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def _rows(self) -> list[tuple[ModifierGroup, ModifierOption]]:
        return [(group, option) for group in self.product.modifier_groups for option in group.options]

    def action_cancel(self) -> None:
        self.dismiss(None)

    def action_move_cursor(self, delta: int) -> None:
        rows = self._rows()
        if not rows:
            return
        self.cursor_index = (self.cursor_index + delta) % len(rows)
        self._refresh_content()

    def action_toggle_current(self) -> None:
        rows = self._rows()
        if not rows:
            return
        group, option = rows[self.cursor_index]
        # One option per group: picking another replaces the previous pick.
        if self.selected.get(group.id) == option.id:
            del self.selected[group.id]
        else:
            self.selected[group.id] = option.id
        self._refresh_content()

    def action_confirm(self) -> None:
        self.dismiss([(group_id, option_id) for group_id, option_id in self.selected.items()])

    def _refresh_content(self) -> None:
        body = self.query_one("#modifiers-body", Static)
        content = Text(style="white")
        content.append_text(format_product_label(self.product))

        current_group = None
        for idx, (group, option) in enumerate(self._rows()):
            if group.id != current_group:
                current_group = group.id
                content.append(f"\n\n{group.name}", style="bold")
            pointer = "➤ " if idx == self.cursor_index else "  "
            is_picked = self.selected.get(group.id) == option.id
            mark = "(•)" if is_picked else "( )"
            content.append(f"\n{pointer}{mark} {option.name}", style="bold white" if is_picked else "white")
            if option.additional_price:
                content.append(f"  +{format_money(option.additional_price)}", style="dim")
        body.update(content)
