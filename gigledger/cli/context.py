"""Session wiring and error reporting shared by every subcommand."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from gigledger.config import config
from gigledger.core.errors import GigLedgerError
from gigledger.core.session import Session, open_session
from gigledger.models.actions import ActionTicket


def connect(
    ledger_db: str,
    account: str = "",
    *,
    console: Console | None = None,
    show_progress: bool = False,
) -> Session:
    """Open a session on *ledger_db*, signing as *account* when given.

    With *show_progress* every action transition is echoed to *console*.
    """
    settings = config.model_copy(update={"ledger_path": Path(ledger_db)})

    on_transition = None
    if show_progress and console is not None:
        def on_transition(ticket: ActionTicket) -> None:
            console.print(f"[dim]  {ticket.kind.value}: {ticket.state.value}[/dim]")

    try:
        return open_session(settings, account or None, on_transition=on_transition)
    except GigLedgerError as exc:
        raise fail(console or Console(), exc) from exc


def fail(console: Console, exc: GigLedgerError) -> typer.Exit:
    """Print *exc* and return the ``Exit`` the command should raise."""
    console.print(f"[bold red]{exc.kind}:[/bold red] {escape(str(exc))}")
    return typer.Exit(code=1)
