"""Session — the explicit context object behind every screen.

A ``Session`` owns the current account, the published read-model and the
action coordinator.  It is created when a wallet connects, replaced
wholesale when the account changes (``switch_account``), and closed on
disconnect.  Nothing about a session lives in module globals.

Everything handed to callers is a frozen snapshot; the only ways to change
what a session shows are ``refresh()`` and the action methods.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime

from gigledger.config import GigLedgerConfig
from gigledger.core.action_coordinator import ActionCoordinator
from gigledger.core.errors import Unavailable
from gigledger.core.query_engine import run_query
from gigledger.core.read_model import PublishedView, ReadModel, ReadModelBuilder
from gigledger.ledger.client import LedgerClient, LocalLedgerClient, SigningIdentity, StaticIdentity
from gigledger.ledger.local_chain import LocalChain
from gigledger.models.actions import ActionTicket
from gigledger.models.project import AccountStatistics, NormalizedProject, Profile
from gigledger.models.query import ProjectQuery

logger = logging.getLogger(__name__)


class Session:
    """Per-account view of the marketplace plus its write path.

    Parameters
    ----------
    client:
        Ledger client signing as this session's account.
    clock:
        "Now" for age labels; injectable for tests.
    not_found_retries, reputation_per_completed:
        Passed to the ``ReadModelBuilder``.
    settlement_timeout:
        Default bound for action settlement.
    on_transition:
        Receives every action ticket transition.
    """

    def __init__(
        self,
        client: LedgerClient,
        *,
        clock: Callable[[], datetime] | None = None,
        not_found_retries: int = 1,
        reputation_per_completed: int = 10,
        settlement_timeout: float | None = None,
        on_transition: Callable[[ActionTicket], None] | None = None,
    ) -> None:
        self._client = client
        self._clock = clock
        self._not_found_retries = not_found_retries
        self._reputation_per_completed = reputation_per_completed
        self._settlement_timeout = settlement_timeout
        self._on_transition = on_transition

        self.builder = ReadModelBuilder(
            client,
            clock=clock,
            not_found_retries=not_found_retries,
            reputation_per_completed=reputation_per_completed,
        )
        self.coordinator = ActionCoordinator(
            client,
            self.builder,
            settlement_timeout=settlement_timeout,
            on_transition=on_transition,
        )
        self._closed = False
        logger.debug("Session opened for %s.", client.account or "<no account>")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def account(self) -> str | None:
        return self._client.account

    @property
    def closed(self) -> bool:
        return self._closed

    def switch_account(self, identity: SigningIdentity) -> Session:
        """Close this session and return a fresh one for *identity*.

        The new session starts with an empty read-model; call ``refresh()``.
        """
        self.close()
        return Session(
            self._client.with_identity(identity),
            clock=self._clock,
            not_found_retries=self._not_found_retries,
            reputation_per_completed=self._reputation_per_completed,
            settlement_timeout=self._settlement_timeout,
            on_transition=self._on_transition,
        )

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            logger.debug("Session closed for %s.", self.account or "<no account>")

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def view(self) -> PublishedView:
        """The published read-model and its freshness flags."""
        return self.builder.store.current

    def refresh(self) -> PublishedView:
        """Rebuild the read-model from a full ledger scan."""
        self._ensure_open()
        return self.builder.refresh()

    def marketplace(self, query: ProjectQuery | None = None) -> list[NormalizedProject]:
        """Open projects, searched, filtered and sorted per *query*."""
        return run_query(self._model().marketplace, query)

    def created(self) -> list[NormalizedProject]:
        return self._model().created_by(self.account)

    def purchased(self) -> list[NormalizedProject]:
        return self._model().purchased_by(self.account)

    def statistics(self) -> AccountStatistics:
        return self._model().statistics(self.account)

    def profile(self, account: str | None = None) -> Profile:
        """Profile of *account*, defaulting to this session's account."""
        self._ensure_open()
        target = account or self.account
        if not target:
            raise Unavailable("No signing identity connected")
        return self._client.get_profile(target)

    # ------------------------------------------------------------------
    # Write side
    # ------------------------------------------------------------------

    def create_project(
        self, name: str, description: str, amount: int, *, timeout: float | None = None
    ) -> ActionTicket:
        self._ensure_open()
        ticket = self.coordinator.submit_create(name, description, amount)
        return self.coordinator.settle(ticket, timeout)

    def accept_project(
        self,
        project_id: int,
        escrow_amount: int | None = None,
        *,
        timeout: float | None = None,
    ) -> ActionTicket:
        """Accept a project, escrowing its amount.

        When *escrow_amount* is omitted the amount is read from the ledger,
        as a wallet would pre-fill it.
        """
        self._ensure_open()
        if escrow_amount is None:
            escrow_amount = self._client.record_at(project_id).amount
        ticket = self.coordinator.submit_accept(project_id, escrow_amount)
        return self.coordinator.settle(ticket, timeout)

    def complete_project(
        self, project_id: int, *, timeout: float | None = None
    ) -> ActionTicket:
        self._ensure_open()
        ticket = self.coordinator.submit_complete(project_id)
        return self.coordinator.settle(ticket, timeout)

    def update_profile(
        self, name: str, bio: str = "", avatar: str = "", *, timeout: float | None = None
    ) -> ActionTicket:
        self._ensure_open()
        ticket = self.coordinator.submit_update_profile(name, bio, avatar)
        return self.coordinator.settle(ticket, timeout)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise Unavailable("Session is closed")

    def _model(self) -> ReadModel:
        """The published model, building it on first use."""
        self._ensure_open()
        view = self.view
        if view.model is None:
            view = self.builder.refresh()
        if view.model is None:
            raise Unavailable(
                f"Read-model unavailable ({view.error_kind}): {view.error_message}"
            )
        return view.model


def open_session(
    settings: GigLedgerConfig,
    account: str | None = None,
    *,
    clock: Callable[[], datetime] | None = None,
    on_transition: Callable[[ActionTicket], None] | None = None,
) -> Session:
    """Build a ``Session`` on the local chain described by *settings*.

    *account* overrides ``settings.account``.  Raises ``Unavailable`` when
    the ledger file cannot be opened.
    """
    try:
        chain = LocalChain(settings.ledger_path)
    except sqlite3.Error as exc:
        raise Unavailable(f"Ledger unreachable: {exc}") from exc
    client = LocalLedgerClient(
        chain,
        StaticIdentity(account or settings.account or None),
        auto_mine=settings.auto_mine,
        poll_interval=settings.settlement_poll_interval_seconds,
        default_timeout=settings.settlement_timeout_seconds,
    )
    return Session(
        client,
        clock=clock,
        not_found_retries=settings.not_found_retries,
        reputation_per_completed=settings.reputation_per_completed,
        settlement_timeout=settings.settlement_timeout_seconds,
        on_transition=on_transition,
    )
