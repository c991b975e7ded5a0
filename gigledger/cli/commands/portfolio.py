"""``gigledger mine-projects`` / ``purchased`` / ``stats`` — per-account views.

All three need a signing identity: the freelancer's own listings, the
projects the account accepted as client, and the statistics card.
"""

from __future__ import annotations

import typer
from rich.console import Console

from gigledger.cli.context import connect, fail
from gigledger.config import config
from gigledger.core.errors import GigLedgerError
from gigledger.views.renderer import MarketRenderer

console = Console()


def mine_projects_cmd(
    account: str = typer.Option(
        "", "--account", "-a", help="Account to act as (defaults to GIGLEDGER_ACCOUNT)."
    ),
    ledger_db: str = typer.Option(
        str(config.ledger_path), "--ledger", "-l", help="Path to the local ledger SQLite database."
    ),
) -> None:
    """Projects the account listed as freelancer."""
    session = connect(ledger_db, account, console=console)
    try:
        projects = session.created()
    except GigLedgerError as exc:
        raise fail(console, exc) from exc
    finally:
        session.close()

    MarketRenderer(console=console).print_projects(
        projects, title="My Projects", view=session.view
    )


def purchased_cmd(
    account: str = typer.Option(
        "", "--account", "-a", help="Account to act as (defaults to GIGLEDGER_ACCOUNT)."
    ),
    ledger_db: str = typer.Option(
        str(config.ledger_path), "--ledger", "-l", help="Path to the local ledger SQLite database."
    ),
) -> None:
    """Projects the account accepted as client."""
    session = connect(ledger_db, account, console=console)
    try:
        projects = session.purchased()
    except GigLedgerError as exc:
        raise fail(console, exc) from exc
    finally:
        session.close()

    MarketRenderer(console=console).print_projects(
        projects, title="Purchased Projects", view=session.view
    )


def stats_cmd(
    account: str = typer.Option(
        "", "--account", "-a", help="Account to act as (defaults to GIGLEDGER_ACCOUNT)."
    ),
    ledger_db: str = typer.Option(
        str(config.ledger_path), "--ledger", "-l", help="Path to the local ledger SQLite database."
    ),
) -> None:
    """Listing count, active and completed work, earnings and reputation."""
    session = connect(ledger_db, account, console=console)
    try:
        stats = session.statistics()
    except GigLedgerError as exc:
        raise fail(console, exc) from exc
    finally:
        session.close()

    view = session.view
    MarketRenderer(console=console).print_statistics(
        stats,
        total_projects=view.model.total_projects if view.model else None,
        view=view,
    )
