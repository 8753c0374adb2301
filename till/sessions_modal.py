"""Active sessions modal screen."""

from __future__ import annotations

from datetime import datetime

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import Static

from till.rendering import format_money
from till.session import SessionSummary


class SessionsModal(ModalScreen[None]):
    """Read-only list of every terminal's session in the shared store."""

    BINDINGS = [
        ("escape", "close", "Close"),
        ("q", "close", "Close"),
        ("v", "close", "Close"),
        ("ctrl+c", "close", "Close"),
    ]

    CSS = """
    SessionsModal {
        align: center middle;
        background: $background 60%;
    }

    #sessions-dialog {
        width: 64;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #sessions-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #sessions-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    def __init__(self, sessions: list[SessionSummary], own_id: str) -> None:
        super().__init__()
        self.sessions = sessions
        self.own_id = own_id

    def compose(self) -> ComposeResult:
        with Container(id="sessions-dialog"):
            yield Static(f"Active sessions ({len(self.sessions)})", id="sessions-title")
            yield Static(id="sessions-body")
            yield Static("Esc/q/v close", id="sessions-help")

    def on_mount(self) -> None:
        body = Text()
        if not self.sessions:
            body.append("(no sessions)", style="dim")
        for idx, summary in enumerate(self.sessions):
            if idx > 0:
                body.append("\n")
            own = summary.id == self.own_id
            started = datetime.fromtimestamp(summary.created_at).strftime("%d/%m %H:%M")
            body.append(f"{'➤ ' if own else '  '}…{summary.short_id}", style="bold" if own else "")
            body.append(f"  {started}", style="dim")
            body.append(f"  {summary.item_count} items  {format_money(summary.total)}")
        self.query_one("#sessions-body", Static).update(body)

    def action_close(self) -> None:
        self.dismiss()
