"""Rich terminal renderer for marketplace views.

Turns read-model snapshots into Rich renderables.  The renderer never reads
the ledger; it only formats what a ``Session`` hands it.

Color scheme
------------
- green   : OPEN
- yellow  : ACCEPTED
- cyan    : COMPLETED
- red     : stale read-model / failed action
"""

from __future__ import annotations

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from gigledger.core.read_model import PublishedView
from gigledger.core.units import shorten_address
from gigledger.models.actions import ActionState, ActionTicket
from gigledger.models.project import (
    AccountStatistics,
    LifecycleState,
    NormalizedProject,
    Profile,
)

CURRENCY = "ETH"

_STATE_STYLES: dict[LifecycleState, str] = {
    LifecycleState.OPEN: "bold green",
    LifecycleState.ACCEPTED: "bold yellow",
    LifecycleState.COMPLETED: "bold cyan",
}

_ACTION_STYLES: dict[ActionState, str] = {
    ActionState.IDLE: "dim",
    ActionState.SUBMITTING: "yellow",
    ActionState.AWAITING_SETTLEMENT: "yellow",
    ActionState.SETTLED: "green",
    ActionState.REBUILD_TRIGGERED: "bold green",
    ActionState.FAILED: "bold red",
}


class MarketRenderer:
    """Renders marketplace snapshots as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Renderables
    # ------------------------------------------------------------------

    def render_projects(
        self,
        projects: list[NormalizedProject],
        *,
        title: str = "Available Projects",
        view: PublishedView | None = None,
    ) -> Panel:
        """Render a project list as a Panel, with a stale banner if needed."""
        table = Table(
            show_header=True,
            header_style="bold cyan",
            expand=True,
            show_lines=False,
        )
        table.add_column("#", style="dim", width=5, justify="right")
        table.add_column("Project", min_width=20)
        table.add_column("Price", justify="right", min_width=12)
        table.add_column("Freelancer", min_width=13)
        table.add_column("State", justify="center", min_width=10)
        table.add_column("Listed", min_width=12)

        for project in projects:
            style = _STATE_STYLES.get(project.lifecycle_state, "")
            table.add_row(
                str(project.id),
                f"[bold]{escape(project.name)}[/bold]\n[dim]{escape(project.description)}[/dim]",
                f"{project.formatted_amount} {CURRENCY}",
                shorten_address(project.creator),
                f"[{style}]{project.lifecycle_state.value}[/{style}]",
                project.age_label,
            )

        noun = "project" if len(projects) == 1 else "projects"
        parts: list[Text | Table] = []
        banner = self._stale_banner(view)
        if banner is not None:
            parts.append(banner)
        parts.append(table)
        parts.append(Text.from_markup(f"[dim]{len(projects)} {noun}[/dim]"))

        return Panel(
            Group(*parts),
            title=f"[bold]{title}[/bold]",
            border_style="red" if banner is not None else "blue",
            padding=(1, 2),
        )

    def render_statistics(
        self,
        stats: AccountStatistics,
        *,
        total_projects: int | None = None,
        view: PublishedView | None = None,
    ) -> Panel:
        """Render an account's statistics card."""
        lines = [
            f"[bold]Account:[/bold]    {shorten_address(stats.account)}",
            f"[bold]Listed:[/bold]     {stats.total}",
            f"[bold]Active:[/bold]     [yellow]{stats.active}[/yellow]",
            f"[bold]Completed:[/bold]  [cyan]{stats.completed}[/cyan]",
            f"[bold]Earnings:[/bold]   [green]{stats.formatted_earnings} {CURRENCY}[/green]",
            f"[bold]Reputation:[/bold] {stats.reputation}",
        ]
        if total_projects is not None:
            lines.append(f"[bold]Marketplace:[/bold] {total_projects} project(s) on ledger")

        parts: list[Text] = []
        banner = self._stale_banner(view)
        if banner is not None:
            parts.append(banner)
        parts.append(Text.from_markup("\n".join(lines)))

        return Panel(
            Group(*parts),
            title="[bold]Account Statistics[/bold]",
            border_style="red" if banner is not None else "green",
            padding=(1, 2),
        )

    def render_profile(self, profile: Profile) -> Panel:
        lines = [
            f"[bold]Name:[/bold]    {escape(profile.name) if profile.name else '[dim]No name set[/dim]'}",
            f"[bold]Address:[/bold] {profile.account}",
            f"[bold]Bio:[/bold]     {escape(profile.bio) if profile.bio else '[dim]No bio provided[/dim]'}",
        ]
        if profile.avatar:
            lines.append(f"[bold]Avatar:[/bold]  {escape(profile.avatar)}")
        return Panel(
            Text.from_markup("\n".join(lines)),
            title="[bold]Profile[/bold]",
            border_style="blue",
            padding=(1, 2),
        )

    def render_ticket(self, ticket: ActionTicket) -> Text:
        style = _ACTION_STYLES.get(ticket.state, "")
        trail = " -> ".join(s.value for s in ticket.history)
        text = f"[{style}]{ticket.kind.value} {escape(ticket.target)}: {ticket.state.value}[/{style}]"
        if ticket.failure_kind:
            text += f"\n[red]{ticket.failure_kind}: {escape(ticket.failure_message or '')}[/red]"
        if ticket.settlement is not None:
            text += f"\n[dim]tx {ticket.settlement.tx_hash} in block {ticket.settlement.block_number}[/dim]"
        text += f"\n[dim]{trail}[/dim]"
        return Text.from_markup(text)

    # ------------------------------------------------------------------
    # Standalone print
    # ------------------------------------------------------------------

    def print_projects(self, projects: list[NormalizedProject], **kwargs) -> None:
        self.console.print(self.render_projects(projects, **kwargs))

    def print_statistics(self, stats: AccountStatistics, **kwargs) -> None:
        self.console.print(self.render_statistics(stats, **kwargs))

    def print_profile(self, profile: Profile) -> None:
        self.console.print(self.render_profile(profile))

    def print_ticket(self, ticket: ActionTicket) -> None:
        self.console.print(self.render_ticket(ticket))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _stale_banner(view: PublishedView | None) -> Text | None:
        if view is None or not view.stale:
            return None
        return Text.from_markup(
            f"[bold red]STALE[/bold red] [red]last refresh failed "
            f"({view.error_kind}): {escape(view.error_message or '')}[/red]"
        )
