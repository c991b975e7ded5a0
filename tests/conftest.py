"""Shared test fixtures for gigledger."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from gigledger.core.errors import NotFound, Unavailable
from gigledger.core.session import Session
from gigledger.ledger.client import LocalLedgerClient, StaticIdentity
from gigledger.ledger.local_chain import LocalChain
from gigledger.models.project import ZERO_ADDRESS, Profile, ProjectRecord

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
CAROL = "0x" + "c3" * 20

# 2024-03-10 12:00:00 UTC
FIXED_NOW = datetime(2024, 3, 10, 12, 0, 0, tzinfo=timezone.utc)
FIXED_EPOCH = int(FIXED_NOW.timestamp())

HOUR = 60 * 60
DAY = 24 * HOUR
TENTH = 10**17  # 0.1 in minor units


class BlockClock:
    """Settable epoch-second clock used as the local chain's block time."""

    def __init__(self, now: int = FIXED_EPOCH) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


class InMemoryClient:
    """Read-only ``LedgerClient`` over a plain list of records.

    Used where tests need records the local chain can never produce.
    Writes are not supported.
    """

    def __init__(self, records: list[ProjectRecord], account: str | None = ALICE) -> None:
        self.records = list(records)
        self._account = account

    @property
    def account(self) -> str | None:
        return self._account

    def count(self) -> int:
        return len(self.records)

    def record_at(self, index: int) -> ProjectRecord:
        if index < 0 or index >= len(self.records):
            raise NotFound(index)
        return self.records[index]

    def get_profile(self, account: str) -> Profile:
        return Profile(account=account)

    def with_identity(self, identity) -> InMemoryClient:
        return InMemoryClient(self.records, identity.account)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("submit_") or name == "await_settlement":
            def _unsupported(*args, **kwargs):
                raise Unavailable("In-memory ledger is read-only")
            return _unsupported
        raise AttributeError(name)


class FlakyClient:
    """Wraps a ``LedgerClient`` and injects failures.

    Parameters
    ----------
    inner:
        The client every call is delegated to.
    record_errors:
        ``index -> [exc, ...]``; each read of that index raises and consumes
        the next exception until the list is empty.
    count_errors:
        Exceptions raised by successive ``count()`` calls.
    counts:
        Values returned by successive ``count()`` calls instead of the real
        count (the last value repeats).
    """

    def __init__(
        self,
        inner,
        *,
        record_errors: dict[int, list[Exception]] | None = None,
        count_errors: list[Exception] | None = None,
        counts: list[int] | None = None,
    ) -> None:
        self.inner = inner
        self.record_errors = {k: list(v) for k, v in (record_errors or {}).items()}
        self.count_errors = list(count_errors or [])
        self.counts = list(counts or [])
        self.count_calls = 0
        self.record_reads: list[int] = []
        self.submissions: list[str] = []

    @property
    def account(self) -> str | None:
        return self.inner.account

    def count(self) -> int:
        self.count_calls += 1
        if self.count_errors:
            raise self.count_errors.pop(0)
        if self.counts:
            return self.counts.pop(0) if len(self.counts) > 1 else self.counts[0]
        return self.inner.count()

    def record_at(self, index: int) -> ProjectRecord:
        self.record_reads.append(index)
        pending = self.record_errors.get(index)
        if pending:
            raise pending.pop(0)
        return self.inner.record_at(index)

    def with_identity(self, identity) -> FlakyClient:
        return FlakyClient(self.inner.with_identity(identity))

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self.inner, name)
        if name.startswith("submit_"):
            def _recorded(*args, **kwargs):
                self.submissions.append(name)
                return attr(*args, **kwargs)
            return _recorded
        return attr


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test databases."""
    return tmp_path


@pytest.fixture
def block_clock() -> BlockClock:
    return BlockClock()


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """'Now' for the read-model, pinned to FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def chain(tmp_dir: Path, block_clock: BlockClock) -> LocalChain:
    """Provide a fresh LocalChain backed by a temp SQLite database."""
    return LocalChain(tmp_dir / "chain.db", clock=block_clock)


@pytest.fixture
def client(chain: LocalChain) -> LocalLedgerClient:
    """A client signing as ALICE that mines on settlement."""
    return LocalLedgerClient(chain, StaticIdentity(ALICE), poll_interval=0)


@pytest.fixture
def session(client: LocalLedgerClient, fixed_clock) -> Session:
    return Session(client, clock=fixed_clock)


@pytest.fixture
def bob_session(chain: LocalChain, fixed_clock) -> Session:
    """A session on the same chain signing as BOB."""
    bob = LocalLedgerClient(chain, StaticIdentity(BOB), poll_interval=0)
    return Session(bob, clock=fixed_clock)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_record() -> Callable[..., ProjectRecord]:
    """Factory fixture: build a ProjectRecord with sensible defaults."""

    def _factory(id: int = 0, **overrides: Any) -> ProjectRecord:
        defaults: dict[str, Any] = {
            "id": id,
            "name": f"Project {id}",
            "description": f"Description for project {id}",
            "amount": TENTH,
            "creator": ALICE,
            "counterparty": ZERO_ADDRESS,
            "deadline": FIXED_EPOCH - 3 * HOUR,
            "is_accepted": False,
            "is_completed": False,
        }
        defaults.update(overrides)
        return ProjectRecord(**defaults)

    return _factory


@pytest.fixture
def make_memory_client() -> Callable[..., InMemoryClient]:
    """Factory fixture: an InMemoryClient over the given records."""

    def _factory(records: list[ProjectRecord], account: str | None = ALICE) -> InMemoryClient:
        return InMemoryClient(records, account)

    return _factory


@pytest.fixture
def make_flaky() -> Callable[..., FlakyClient]:
    """Factory fixture: wrap a client with injected failures."""

    def _factory(inner, **kwargs: Any) -> FlakyClient:
        return FlakyClient(inner, **kwargs)

    return _factory


@pytest.fixture
def seed(chain: LocalChain) -> Callable[..., int]:
    """Factory fixture: list a project directly on the chain; returns its id."""

    def _factory(
        name: str = "Logo design",
        description: str = "Vector logo",
        amount: int = TENTH,
        creator: str = ALICE,
    ) -> int:
        chain.submit("create", creator, {"name": name, "description": description, "amount": amount})
        receipts = chain.mine()
        return receipts[-1]["project_id"]

    return _factory
