"""Read-only report modal screen."""

from __future__ import annotations

from typing import Callable

from rich.console import RenderableType
from textual.app import ComposeResult
from textual.containers import Container, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Static


class ReportModal(ModalScreen[None]):
    """Show a rendered report; paged reports flip with h/l."""

    BINDINGS = [
        ("escape", "close", "Close"),
        ("q", "close", "Close"),
        ("ctrl+c", "close", "Close"),
        ("h", "flip(-1)", "Previous page"),
        ("l", "flip(1)", "Next page"),
        ("left", "flip(-1)", "Previous page"),
        ("right", "flip(1)", "Next page"),
    ]

    CSS = """
    ReportModal {
        align: center middle;
        background: $background 60%;
    }

    #report-dialog {
        width: 90%;
        height: 85%;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #report-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #report-help {
        color: #dddddd;
        margin-top: 1;
    }
    """

    def __init__(self, title: str, render: Callable[[int], RenderableType], page_count: int = 1) -> None:
        super().__init__()
        self.title_text = title
        self.render_page = render
        self.page_count = max(1, page_count)
        self.page = 1

    def compose(self) -> ComposeResult:
        with Container(id="report-dialog"):
            yield Static(self.title_text, id="report-title")
            with VerticalScroll():
                yield Static(id="report-body")
            yield Static(id="report-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def action_close(self) -> None:
        self.dismiss(None)

    def action_flip(self, delta: int) -> None:
        page = min(max(1, self.page + delta), self.page_count)
        if page == self.page:
            return
        self.page = page
        self._refresh_content()

    def _refresh_content(self) -> None:
        self.query_one("#report-body", Static).update(self.render_page(self.page))
        help_text = "Esc/q/Ctrl+C close"
        if self.page_count > 1:
            help_text = f"Page {self.page}/{self.page_count}, H/L/←/→ flip. {help_text}"
        self.query_one("#report-help", Static).update(help_text)
