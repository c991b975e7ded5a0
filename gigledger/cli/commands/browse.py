"""``gigledger browse`` — list open projects on the marketplace.

Every invocation rebuilds the read-model from a full ledger scan and then
applies search, filter and sort to the open projects.
"""

from __future__ import annotations

import typer
from rich.console import Console

from gigledger.cli.context import connect, fail
from gigledger.config import config
from gigledger.core.errors import GigLedgerError
from gigledger.models.query import FilterBy, ProjectQuery, SortBy
from gigledger.views.renderer import MarketRenderer

console = Console()


def browse_cmd(
    search: str = typer.Option(
        "",
        "--search",
        "-s",
        help="Case-insensitive match on project name or description.",
    ),
    filter_by: FilterBy = typer.Option(
        FilterBy.ALL,
        "--filter",
        "-f",
        help="Age bucket: all, recent (hours old) or today (days old).",
    ),
    sort_by: SortBy = typer.Option(
        SortBy.NEWEST,
        "--sort",
        help="Ordering: newest, oldest, price-high or price-low.",
    ),
    ledger_db: str = typer.Option(
        str(config.ledger_path),
        "--ledger",
        "-l",
        help="Path to the local ledger SQLite database.",
    ),
) -> None:
    """Show projects nobody has accepted yet."""
    session = connect(ledger_db, console=console)
    query = ProjectQuery(search_term=search, filter_by=filter_by, sort_by=sort_by)
    try:
        projects = session.marketplace(query)
    except GigLedgerError as exc:
        raise fail(console, exc) from exc
    finally:
        session.close()

    renderer = MarketRenderer(console=console)
    renderer.print_projects(projects, title="Available Projects", view=session.view)
