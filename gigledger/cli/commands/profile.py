"""``gigledger profile`` / ``update-profile`` — public account profiles."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from gigledger.cli.context import connect, fail
from gigledger.config import config
from gigledger.core.errors import GigLedgerError
from gigledger.views.renderer import MarketRenderer

console = Console()


def profile_cmd(
    address: Optional[str] = typer.Argument(
        None, help="Account to look up; defaults to your own."
    ),
    account: str = typer.Option(
        "", "--account", "-a", help="Account to act as (defaults to GIGLEDGER_ACCOUNT)."
    ),
    ledger_db: str = typer.Option(
        str(config.ledger_path), "--ledger", "-l", help="Path to the local ledger SQLite database."
    ),
) -> None:
    """Show the profile an account published."""
    session = connect(ledger_db, account, console=console)
    try:
        profile = session.profile(address)
    except GigLedgerError as exc:
        raise fail(console, exc) from exc
    finally:
        session.close()

    MarketRenderer(console=console).print_profile(profile)


def update_profile_cmd(
    name: str = typer.Option(..., "--name", "-n", help="Display name."),
    bio: str = typer.Option("", "--bio", "-b", help="Short bio."),
    avatar: str = typer.Option("", "--avatar", help="Avatar URL."),
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
    """Publish your name, bio and avatar."""
    session = connect(ledger_db, account, console=console, show_progress=True)
    try:
        ticket = session.update_profile(name, bio, avatar, timeout=timeout)
        profile = session.profile()
    except GigLedgerError as exc:
        raise fail(console, exc) from exc
    finally:
        session.close()

    renderer = MarketRenderer(console=console)
    renderer.print_ticket(ticket)
    renderer.print_profile(profile)
