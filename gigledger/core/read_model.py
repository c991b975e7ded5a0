"""Read-model builder — full-scan reconstruction of the project ledger.

The read-model is a PROJECTION of the ledger.  It does not compute truth, it
derives views from it: every refresh re-reads ``count`` and every record in
``[0, count)``, and nothing is carried over from the previous build.

Publishing is all-or-nothing.  A build is assembled privately and swapped
into the ``ReadModelStore`` with a single reference assignment once every
record has been read and classified.  A build that fails part-way publishes
nothing; the last good model stays visible, flagged stale.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from gigledger.core.errors import GigLedgerError, NotFound, Unavailable
from gigledger.core.normalizer import normalize
from gigledger.core.units import format_units, to_major
from gigledger.ledger.client import LedgerClient
from gigledger.models.project import (
    AccountStatistics,
    LifecycleState,
    NormalizedProject,
)

logger = logging.getLogger(__name__)

DEFAULT_REPUTATION_PER_COMPLETED = 10


def _require_account(account: str | None) -> str:
    if not account:
        raise Unavailable("No signing identity connected")
    return account


class ReadModel(BaseModel):
    """A frozen, fully built view over every ledger record.

    Every field is derived from one full scan.  Per-account partitions and
    statistics are computed from ``records`` on demand, so they can never
    disagree with the marketplace view of the same build.
    """

    model_config = ConfigDict(frozen=True)

    records: list[NormalizedProject] = []
    built_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    reputation_per_completed: int = DEFAULT_REPUTATION_PER_COMPLETED

    @property
    def total_projects(self) -> int:
        """Number of projects on the ledger when the scan started."""
        return len(self.records)

    @property
    def marketplace(self) -> list[NormalizedProject]:
        """Projects nobody has accepted yet, in ledger index order."""
        return self.by_state(LifecycleState.OPEN)

    def by_state(self, state: LifecycleState) -> list[NormalizedProject]:
        return [p for p in self.records if p.lifecycle_state == state]

    def created_by(self, account: str | None) -> list[NormalizedProject]:
        """Projects listed by *account* (as freelancer)."""
        acct = _require_account(account)
        return [p for p in self.records if p.creator == acct]

    def purchased_by(self, account: str | None) -> list[NormalizedProject]:
        """Projects accepted by *account* (as client)."""
        acct = _require_account(account)
        return [p for p in self.records if p.counterparty == acct]

    def statistics(self, account: str | None) -> AccountStatistics:
        """Aggregate the projects *account* created."""
        created = self.created_by(account)
        active = 0
        completed = 0
        earnings = 0
        for project in created:
            if project.lifecycle_state == LifecycleState.COMPLETED:
                completed += 1
                earnings += project.amount
            elif project.lifecycle_state == LifecycleState.ACCEPTED:
                active += 1

        return AccountStatistics(
            account=_require_account(account),
            total=len(created),
            active=active,
            completed=completed,
            earnings_minor=earnings,
            earnings=to_major(earnings),
            formatted_earnings=format_units(earnings),
            reputation=completed * self.reputation_per_completed,
        )


class PublishedView(BaseModel):
    """What readers see: the last good model plus its freshness."""

    model_config = ConfigDict(frozen=True)

    model: ReadModel | None = None
    stale: bool = False
    error_kind: str | None = None
    error_message: str | None = None
    generation: int = 0  # increments on every successful publish

    @property
    def is_ready(self) -> bool:
        return self.model is not None


class ReadModelStore:
    """Single-writer, multi-reader holder of the published read-model.

    Readers call ``current``; the builder is the only caller of
    ``publish`` / ``mark_stale``.  Each write replaces the whole
    ``PublishedView``, so readers never observe a half-applied update.
    """

    def __init__(self) -> None:
        self._view = PublishedView()

    @property
    def current(self) -> PublishedView:
        return self._view

    def publish(self, model: ReadModel) -> PublishedView:
        self._view = PublishedView(model=model, generation=self._view.generation + 1)
        return self._view

    def mark_stale(self, error_kind: str, error_message: str) -> PublishedView:
        previous = self._view
        self._view = PublishedView(
            model=previous.model,
            stale=True,
            error_kind=error_kind,
            error_message=error_message,
            generation=previous.generation,
        )
        return self._view


class ReadModelBuilder:
    """Rebuilds the read-model from the ledger by full scan.

    Parameters
    ----------
    client:
        The ledger client to read from.
    store:
        Where successful builds are published.
    clock:
        Returns "now" for age labels.  One value is taken per build.
    not_found_retries:
        How many times a build that hit ``NotFound`` (``count`` raced a
        record read) is restarted from a fresh ``count`` before giving up.
    reputation_per_completed:
        Weight of each completed project in the reputation figure.
    """

    def __init__(
        self,
        client: LedgerClient,
        store: ReadModelStore | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
        not_found_retries: int = 1,
        reputation_per_completed: int = DEFAULT_REPUTATION_PER_COMPLETED,
    ) -> None:
        self._client = client
        self.store = store or ReadModelStore()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._not_found_retries = max(0, not_found_retries)
        self._reputation_per_completed = reputation_per_completed
        self.builds_attempted = 0

    def build(self) -> ReadModel:
        """Scan the ledger once and return a new ``ReadModel``.

        Does not publish.  Any read or classification failure propagates
        and nothing partial escapes.
        """
        self.builds_attempted += 1
        now = self._clock()
        count = self._client.count()
        logger.debug("Scanning %d project(s).", count)

        records: list[NormalizedProject] = []
        for index in range(count):
            raw = self._client.record_at(index)
            records.append(normalize(raw, now))

        return ReadModel(
            records=records,
            built_at=now,
            reputation_per_completed=self._reputation_per_completed,
        )

    def refresh(self) -> PublishedView:
        """Build and publish, or keep the previous model and flag it stale.

        ``NotFound`` is retried with a fresh scan up to ``not_found_retries``
        times.  Every other ledger failure aborts immediately.
        """
        retries_left = self._not_found_retries
        while True:
            try:
                model = self.build()
            except NotFound as exc:
                if retries_left > 0:
                    retries_left -= 1
                    logger.warning(
                        "Scan raced the ledger at index %d; rebuilding.", exc.index
                    )
                    continue
                return self._fail(exc)
            except GigLedgerError as exc:
                return self._fail(exc)

            view = self.store.publish(model)
            logger.info(
                "Published read-model generation %d (%d project(s), %d open).",
                view.generation,
                model.total_projects,
                len(model.marketplace),
            )
            return view

    def invalidate(self, reason: str = "ledger changed") -> PublishedView:
        """Flag the published model as out of date without clearing it."""
        return self.store.mark_stale("invalidated", reason)

    def _fail(self, exc: GigLedgerError) -> PublishedView:
        logger.warning(
            "Read-model build failed (%s): %s; keeping previous model.", exc.kind, exc
        )
        return self.store.mark_stale(exc.kind, str(exc))
