"""``gigledger create`` / ``accept`` / ``complete`` — escrow lifecycle writes.

Each command submits one ledger write, waits for it to settle, and rebuilds
the read-model once.  Progress through the action states is printed as it
happens.  On a settlement timeout the outcome is unknown: run ``browse`` or
``stats`` to see what the ledger now says before retrying.
"""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from gigledger.cli.context import connect, fail
from gigledger.config import config
from gigledger.core.errors import GigLedgerError
from gigledger.core.units import parse_units
from gigledger.views.renderer import CURRENCY, MarketRenderer

console = Console()


def _parse_amount(value: str) -> int:
    try:
        return parse_units(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="AMOUNT") from exc


def create_cmd(
    name: str = typer.Argument(..., help="Project title."),
    description: str = typer.Argument(..., help="What the work involves."),
    amount: str = typer.Argument(..., help=f"Price in {CURRENCY}, e.g. 0.5"),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", help="Seconds to wait for settlement."
    ),
    account: str = typer.Option(
        "", "--account", "-a", help="Account to act as (defaults to GIGLEDGER_ACCOUNT)."
    ),
    ledger_db: str = typer.Option(
        str(config.ledger_path), "--ledger", "-l", help="Path to the local ledger SQLite database."
    ),
) -> None:
    """List a new project as freelancer."""
    minor = _parse_amount(amount)
    if not name.strip() or not description.strip():
        raise typer.BadParameter("Project name and description are required")

    session = connect(ledger_db, account, console=console, show_progress=True)
    try:
        ticket = session.create_project(name, description, minor, timeout=timeout)
    except GigLedgerError as exc:
        raise fail(console, exc) from exc
    finally:
        session.close()

    MarketRenderer(console=console).print_ticket(ticket)
    if ticket.settlement is not None and ticket.settlement.project_id is not None:
        console.print(
            f"[bold green]Project {ticket.settlement.project_id} listed.[/bold green]"
        )


def accept_cmd(
    project_id: int = typer.Argument(..., help="Index of the project to accept."),
    amount: Optional[str] = typer.Option(
        None,
        "--amount",
        help=f"Escrow in {CURRENCY}; defaults to the listed price.",
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", help="Seconds to wait for settlement."
    ),
    account: str = typer.Option(
        "", "--account", "-a", help="Account to act as (defaults to GIGLEDGER_ACCOUNT)."
    ),
    ledger_db: str = typer.Option(
        str(config.ledger_path), "--ledger", "-l", help="Path to the local ledger SQLite database."
    ),
) -> None:
    """Accept a project as client, escrowing its full price."""
    escrow = _parse_amount(amount) if amount is not None else None

    session = connect(ledger_db, account, console=console, show_progress=True)
    try:
        ticket = session.accept_project(project_id, escrow, timeout=timeout)
    except GigLedgerError as exc:
        raise fail(console, exc) from exc
    finally:
        session.close()

    MarketRenderer(console=console).print_ticket(ticket)
    console.print(f"[bold green]Project {project_id} accepted.[/bold green]")


def complete_cmd(
    project_id: int = typer.Argument(..., help="Index of the project to complete."),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", help="Seconds to wait for settlement."
    ),
    account: str = typer.Option(
        "", "--account", "-a", help="Account to act as (defaults to GIGLEDGER_ACCOUNT)."
    ),
    ledger_db: str = typer.Option(
        str(config.ledger_path), "--ledger", "-l", help="Path to the local ledger SQLite database."
    ),
) -> None:
    """Mark an accepted project complete, releasing the escrow.

    Only the client who accepted the project may complete it.
    """
    session = connect(ledger_db, account, console=console, show_progress=True)
    try:
        ticket = session.complete_project(project_id, timeout=timeout)
    except GigLedgerError as exc:
        raise fail(console, exc) from exc
    finally:
        session.close()

    MarketRenderer(console=console).print_ticket(ticket)
    console.print(f"[bold green]Project {project_id} completed.[/bold green]")
