"""Main Typer application — imports and registers all CLI commands.

Entry point: ``gigledger`` (configured via pyproject.toml project.scripts).

Commands: browse, mine-projects, purchased, stats, create, accept, complete,
profile, update-profile, mine.
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from gigledger.cli.commands.actions import accept_cmd, complete_cmd, create_cmd
from gigledger.cli.commands.browse import browse_cmd
from gigledger.cli.commands.mine import mine_cmd
from gigledger.cli.commands.portfolio import mine_projects_cmd, purchased_cmd, stats_cmd
from gigledger.cli.commands.profile import profile_cmd, update_profile_cmd
from gigledger.config import config

app = typer.Typer(
    name="gigledger",
    help="gigledger: escrowed freelance projects on an append-only ledger.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log at DEBUG instead of the configured level."
    ),
) -> None:
    """Configure logging before any subcommand runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False, rich_tracebacks=True)],
        force=True,
    )


# Register subcommands
app.command(name="browse", help="Browse open projects.")(browse_cmd)
app.command(name="mine-projects", help="Projects you listed as freelancer.")(mine_projects_cmd)
app.command(name="purchased", help="Projects you accepted as client.")(purchased_cmd)
app.command(name="stats", help="Your listing and earnings statistics.")(stats_cmd)
app.command(name="create", help="List a new project.")(create_cmd)
app.command(name="accept", help="Accept a project and escrow its price.")(accept_cmd)
app.command(name="complete", help="Complete an accepted project.")(complete_cmd)
app.command(name="profile", help="Show an account profile.")(profile_cmd)
app.command(name="update-profile", help="Publish your profile.")(update_profile_cmd)
app.command(name="mine", help="Settle pending transactions on the local ledger.")(mine_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
