"""Canonical hashing helpers for transaction identifiers.

Canonical JSON (sorted keys, compact separators, ASCII) keeps transaction
hashes stable across processes reading the same local chain.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes — deterministic, sorted, compact."""
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def compute_tx_hash(
    kind: str, sender: str, params: dict[str, Any], value: int, nonce: str
) -> str:
    """``0x``-prefixed SHA-256 over the canonical transaction payload.

    ``value`` is hashed as a string since it may exceed JSON-safe integers.
    """
    payload = {
        "kind": kind,
        "sender": sender,
        "params": params,
        "value": str(value),
        "nonce": nonce,
    }
    return "0x" + sha256_hex(canonical_json_bytes(payload))
