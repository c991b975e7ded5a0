"""Ledger boundary — the client Protocol and the local SQLite chain."""

from gigledger.ledger.client import (
    LedgerClient,
    LocalLedgerClient,
    SigningIdentity,
    StaticIdentity,
)
from gigledger.ledger.local_chain import LocalChain

__all__ = [
    "LedgerClient",
    "LocalLedgerClient",
    "SigningIdentity",
    "StaticIdentity",
    "LocalChain",
]
