"""``gigledger mine`` — settle pending transactions on the local ledger.

Only needed when auto-mining is off (``GIGLEDGER_AUTO_MINE=false``), where
actions wait for another process to produce a block.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gigledger.config import config
from gigledger.ledger.local_chain import TX_REVERTED, LocalChain

console = Console()


def mine_cmd(
    ledger_db: str = typer.Option(
        str(config.ledger_path),
        "--ledger",
        "-l",
        help="Path to the local ledger SQLite database.",
    ),
) -> None:
    """Mine one block containing every pending transaction."""
    db_path = Path(ledger_db)
    if not db_path.exists():
        console.print(f"[bold red]Ledger not found:[/bold red] {ledger_db}")
        raise typer.Exit(code=1)

    try:
        receipts = LocalChain(db_path).mine()
    except sqlite3.Error as exc:
        console.print(f"[bold red]unavailable:[/bold red] Ledger unreachable: {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    if not receipts:
        console.print("[dim]No pending transactions.[/dim]")
        return

    table = Table(title=f"Block {receipts[0]['block_number']}")
    table.add_column("Tx", style="cyan")
    table.add_column("Kind")
    table.add_column("Status", justify="center")
    table.add_column("Detail")

    for receipt in receipts:
        if receipt["status"] == TX_REVERTED:
            status = "[red]reverted[/red]"
            detail = escape(receipt["revert_reason"] or "")
        else:
            status = "[green]settled[/green]"
            detail = (
                f"project {receipt['project_id']}"
                if receipt["project_id"] is not None
                else ""
            )
        table.add_row(receipt["tx_hash"][:18], receipt["kind"], status, detail)

    console.print(table)
