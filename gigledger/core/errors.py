"""Error taxonomy shared by the ledger client, builder and coordinator.

Every error carries a stable ``kind`` string so callers (and the CLI) can
report the failure class without matching on exception types.  Ledger-level
failures propagate untouched; only the read-model builder retries, and only
on ``NotFound``.
"""

from __future__ import annotations


class GigLedgerError(RuntimeError):
    """Base class for every failure surfaced by gigledger."""

    kind = "error"


class Unavailable(GigLedgerError):
    """No transport to the ledger, or no signing identity connected."""

    kind = "unavailable"


class NotFound(GigLedgerError):
    """A record index is outside the ledger's current range.

    During a scan this means ``count`` and ``record_at`` raced; it is treated
    as transient by the read-model builder.
    """

    kind = "not_found"

    def __init__(self, index: int, message: str | None = None) -> None:
        self.index = index
        super().__init__(message or f"No project at index {index}")


class Reverted(GigLedgerError):
    """The ledger rejected a submitted action.  ``reason`` is verbatim."""

    kind = "reverted"

    def __init__(self, tx_hash: str, reason: str) -> None:
        self.tx_hash = tx_hash
        self.reason = reason
        super().__init__(f"Transaction {tx_hash} reverted: {reason}")


class SettlementTimeout(GigLedgerError):
    """Settlement was not observed within the caller's bound.

    The outcome is unknown: the caller must re-read ledger state rather than
    assume either success or failure.
    """

    kind = "timeout"

    def __init__(self, tx_hash: str, timeout: float) -> None:
        self.tx_hash = tx_hash
        self.timeout = timeout
        super().__init__(
            f"Transaction {tx_hash} not settled within {timeout:.2f}s; outcome unknown"
        )


class AmountMismatch(GigLedgerError):
    """Escrow offered for an accept does not equal the project amount."""

    kind = "amount_mismatch"

    def __init__(self, project_id: int, expected: int, offered: int) -> None:
        self.project_id = project_id
        self.expected = expected
        self.offered = offered
        super().__init__(
            f"Escrow for project {project_id} must be exactly {expected}, got {offered}"
        )


class AlreadyInProgress(GigLedgerError):
    """An identical action is still submitting or awaiting settlement."""

    kind = "already_in_progress"


class DataIntegrityError(GigLedgerError):
    """A record violates a ledger invariant (completed but never accepted)."""

    kind = "data_integrity"
