"""Ledger client boundary — typed reads and two-phase writes.

``LedgerClient`` is the only surface the read-model builder and the action
coordinator depend on.  ``LocalLedgerClient`` implements it over a
``LocalChain``; a client for a deployed contract only has to satisfy the
same Protocol.

Every failure leaves this module as a typed ``GigLedgerError``: a missing
transport or signing identity is ``Unavailable``, never an empty result, so
callers can tell "zero records" from "could not read".
"""

from __future__ import annotations

import logging
import sqlite3
import time
from collections.abc import Callable
from typing import Protocol, TypeVar, runtime_checkable

from gigledger.core.errors import NotFound, Reverted, SettlementTimeout, Unavailable
from gigledger.ledger.local_chain import TX_PENDING, TX_REVERTED, LocalChain
from gigledger.models.actions import ActionKind, PendingHandle, Settlement
from gigledger.models.project import ZERO_ADDRESS, Profile, ProjectRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class SigningIdentity(Protocol):
    """Supplies the active account, or ``None`` when nothing is connected."""

    @property
    def account(self) -> str | None:
        ...


@runtime_checkable
class LedgerClient(Protocol):
    """Read and write contract of the external project ledger.

    Reads
    -----
    ``count()`` and ``record_at(index)``; ``record_at`` raises ``NotFound``
    for indices outside ``[0, count)``.

    Writes
    ------
    ``submit_*`` returns a ``PendingHandle`` as soon as the write is issued.
    Its effect is visible to reads only after ``await_settlement`` returns a
    ``Settlement``.  ``await_settlement`` raises ``Reverted`` when the ledger
    rejects the write and ``SettlementTimeout`` when the caller's bound runs
    out first.
    """

    @property
    def account(self) -> str | None:
        ...

    def count(self) -> int:
        ...

    def record_at(self, index: int) -> ProjectRecord:
        ...

    def get_profile(self, account: str) -> Profile:
        ...

    def submit_create(self, name: str, description: str, amount: int) -> PendingHandle:
        ...

    def submit_accept(self, project_id: int, escrow_amount: int) -> PendingHandle:
        ...

    def submit_complete(self, project_id: int) -> PendingHandle:
        ...

    def submit_update_profile(self, name: str, bio: str, avatar: str) -> PendingHandle:
        ...

    def await_settlement(
        self, handle: PendingHandle, timeout: float | None = None
    ) -> Settlement:
        ...

    def with_identity(self, identity: SigningIdentity) -> LedgerClient:
        """Return a client on the same transport signing as *identity*."""
        ...


# ---------------------------------------------------------------------------
# Identities
# ---------------------------------------------------------------------------


class StaticIdentity:
    """A fixed signing identity; ``None`` models a disconnected wallet."""

    def __init__(self, account: str | None = None) -> None:
        self._account = account or None

    @property
    def account(self) -> str | None:
        return self._account

    def __repr__(self) -> str:
        return f"StaticIdentity({self._account!r})"


# ---------------------------------------------------------------------------
# Local client
# ---------------------------------------------------------------------------


class LocalLedgerClient:
    """``LedgerClient`` over a ``LocalChain``.

    Parameters
    ----------
    chain:
        The local chain to talk to.  ``None`` models a missing transport:
        every call raises ``Unavailable``.
    identity:
        Signing identity used as the sender of writes.
    auto_mine:
        When ``True``, ``await_settlement`` mines pending transactions
        itself (a single-user development chain).  When ``False`` it only
        polls, and another process must call ``LocalChain.mine()``.
    poll_interval:
        Seconds between receipt polls while awaiting settlement.
    default_timeout:
        Bound used when ``await_settlement`` is called without one.
        ``None`` waits indefinitely.
    sleep, monotonic:
        Injectable for tests.
    """

    def __init__(
        self,
        chain: LocalChain | None,
        identity: SigningIdentity | None = None,
        *,
        auto_mine: bool = True,
        poll_interval: float = 0.25,
        default_timeout: float | None = 30.0,
        sleep: Callable[[float], None] = time.sleep,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._chain = chain
        self._identity = identity or StaticIdentity(None)
        self._auto_mine = auto_mine
        self._poll_interval = poll_interval
        self._default_timeout = default_timeout
        self._sleep = sleep
        self._monotonic = monotonic

    @property
    def account(self) -> str | None:
        return self._identity.account

    @property
    def is_connected(self) -> bool:
        return self._chain is not None

    def with_identity(self, identity: SigningIdentity) -> LocalLedgerClient:
        """Return a client on the same chain signing as *identity*."""
        return LocalLedgerClient(
            self._chain,
            identity,
            auto_mine=self._auto_mine,
            poll_interval=self._poll_interval,
            default_timeout=self._default_timeout,
            sleep=self._sleep,
            monotonic=self._monotonic,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def count(self) -> int:
        return self._call(lambda chain: chain.next_project_id())

    def record_at(self, index: int) -> ProjectRecord:
        if index < 0:
            raise NotFound(index)
        record = self._call(lambda chain: chain.project(index))
        if record is None:
            raise NotFound(index)
        return record

    def get_profile(self, account: str) -> Profile:
        return self._call(lambda chain: chain.get_profile(account))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def submit_create(self, name: str, description: str, amount: int) -> PendingHandle:
        return self._submit(
            ActionKind.CREATE,
            {"name": name, "description": description, "amount": amount},
        )

    def submit_accept(self, project_id: int, escrow_amount: int) -> PendingHandle:
        return self._submit(
            ActionKind.ACCEPT, {"project_id": project_id}, value=escrow_amount
        )

    def submit_complete(self, project_id: int) -> PendingHandle:
        return self._submit(ActionKind.COMPLETE, {"project_id": project_id})

    def submit_update_profile(self, name: str, bio: str, avatar: str) -> PendingHandle:
        return self._submit(
            ActionKind.UPDATE_PROFILE, {"name": name, "bio": bio, "avatar": avatar}
        )

    def await_settlement(
        self, handle: PendingHandle, timeout: float | None = None
    ) -> Settlement:
        """Block until *handle* settles, reverts, or *timeout* elapses."""
        bound = self._default_timeout if timeout is None else timeout
        started = self._monotonic()

        if self._auto_mine:
            self._call(lambda chain: chain.mine())

        while True:
            receipt = self._call(lambda chain: chain.receipt(handle.tx_hash))
            if receipt is None:
                raise Reverted(handle.tx_hash, "unknown transaction")

            status = receipt["status"]
            if status == TX_REVERTED:
                raise Reverted(handle.tx_hash, receipt["revert_reason"] or "reverted")
            if status != TX_PENDING:
                logger.debug(
                    "Transaction %s settled in block %s.",
                    handle.tx_hash[:18],
                    receipt["block_number"],
                )
                return Settlement(
                    tx_hash=handle.tx_hash,
                    block_number=receipt["block_number"],
                    block_time=receipt["block_time"],
                    project_id=receipt["project_id"],
                )

            if bound is not None and self._monotonic() - started >= bound:
                raise SettlementTimeout(handle.tx_hash, bound)
            self._sleep(self._poll_interval)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _submit(
        self, kind: ActionKind, params: dict, value: int = 0
    ) -> PendingHandle:
        sender = self._identity.account
        if not sender or sender == ZERO_ADDRESS:
            raise Unavailable("No signing identity connected")
        tx_hash = self._call(
            lambda chain: chain.submit(kind.value, sender, params, value)
        )
        return PendingHandle(tx_hash=tx_hash, kind=kind, sender=sender)

    def _call(self, op: Callable[[LocalChain], T]) -> T:
        if self._chain is None:
            raise Unavailable("No ledger transport configured")
        try:
            return op(self._chain)
        except sqlite3.Error as exc:
            raise Unavailable(f"Ledger unreachable: {exc}") from exc
