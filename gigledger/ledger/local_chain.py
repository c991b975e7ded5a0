"""SQLite-backed local stand-in for the FreelanceDAO contract.

The local chain behaves like the deployed contract as seen from a client:

- ``projects`` is indexed densely from 0; ``next_project_id`` is its length.
- Writes are *transactions*: ``submit()`` only places them in a pending
  pool.  Nothing is visible to readers until ``mine()`` settles them.
- ``mine()`` applies pending transactions in submission order, one block per
  call.  A transaction that breaks a contract rule is recorded as reverted
  with its reason and changes nothing.
- Project rows are never deleted; acceptance and completion only ever set
  flags, never clear them.

WAL journal mode lets a CLI process mine while another process reads.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import time
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import Any

from gigledger.core.hasher import compute_tx_hash
from gigledger.models.project import ZERO_ADDRESS, Profile, ProjectRecord

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_PROJECTS = """
CREATE TABLE IF NOT EXISTS projects (
    id            INTEGER PRIMARY KEY,
    name          TEXT NOT NULL,
    description   TEXT NOT NULL,
    amount        TEXT NOT NULL,
    freelancer    TEXT NOT NULL,
    client        TEXT NOT NULL,
    deadline      INTEGER NOT NULL,
    is_accepted   INTEGER NOT NULL DEFAULT 0,
    is_completed  INTEGER NOT NULL DEFAULT 0
);
"""

_CREATE_PROFILES = """
CREATE TABLE IF NOT EXISTS profiles (
    account  TEXT PRIMARY KEY,
    name     TEXT NOT NULL DEFAULT '',
    bio      TEXT NOT NULL DEFAULT '',
    avatar   TEXT NOT NULL DEFAULT ''
);
"""

_CREATE_TRANSACTIONS = """
CREATE TABLE IF NOT EXISTS transactions (
    seq            INTEGER PRIMARY KEY AUTOINCREMENT,
    tx_hash        TEXT NOT NULL UNIQUE,
    kind           TEXT NOT NULL,
    sender         TEXT NOT NULL,
    params_json    TEXT NOT NULL DEFAULT '{}',
    value          TEXT NOT NULL DEFAULT '0',
    status         TEXT NOT NULL DEFAULT 'pending',
    revert_reason  TEXT,
    block_number   INTEGER,
    block_time     INTEGER,
    project_id     INTEGER
);
"""

_CREATE_IDX_STATUS = """
CREATE INDEX IF NOT EXISTS idx_tx_status ON transactions(status, seq);
"""

TX_PENDING = "pending"
TX_SETTLED = "settled"
TX_REVERTED = "reverted"

# Largest id SQLite can bind; anything above cannot name a stored project.
MAX_PROJECT_ID = 2**63 - 1

# Revert reasons, surfaced verbatim to callers.
REVERT_EMPTY_NAME = "Project name required"
REVERT_ZERO_SENDER = "Sender required"
REVERT_NO_PROJECT = "Project does not exist"
REVERT_ALREADY_ACCEPTED = "Project already accepted"
REVERT_AMOUNT_MISMATCH = "AmountMismatch: incorrect escrow amount"
REVERT_NOT_ACCEPTED = "Project not accepted"
REVERT_ALREADY_COMPLETED = "Project already completed"
REVERT_NOT_CLIENT = "Only the client can complete"
REVERT_UNKNOWN_KIND = "Unknown function"


class ContractRevert(Exception):
    """Raised inside ``mine()`` when a transaction breaks a contract rule."""


class LocalChain:
    """Append-only, block-settled project ledger.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created if it does not exist.
    clock:
        Returns the current epoch second; used as the block timestamp.
        Defaults to ``time.time``.
    """

    def __init__(
        self, db_path: Path, clock: Callable[[], int] | None = None
    ) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock or (lambda: int(time.time()))
        self._init_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(_CREATE_PROJECTS)
            conn.execute(_CREATE_PROFILES)
            conn.execute(_CREATE_TRANSACTIONS)
            conn.execute(_CREATE_IDX_STATUS)
            conn.commit()

    # ------------------------------------------------------------------
    # Contract views (read-only)
    # ------------------------------------------------------------------

    def next_project_id(self) -> int:
        """Number of projects ever created (ids are ``0..n-1``)."""
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) FROM projects").fetchone()
        return int(row[0])

    def project(self, index: int) -> ProjectRecord | None:
        """Return the project at *index*, or ``None`` when out of range."""
        if index < 0 or index > MAX_PROJECT_ID:
            return None
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM projects WHERE id = ?", (index,)
            ).fetchone()
        return self._row_to_record(row) if row else None

    def get_profile(self, account: str) -> Profile:
        """Return the profile for *account* (empty fields if never set)."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT name, bio, avatar FROM profiles WHERE account = ?",
                (account,),
            ).fetchone()
        if row is None:
            return Profile(account=account)
        name, bio, avatar = row
        return Profile(account=account, name=name, bio=bio, avatar=avatar)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def submit(
        self,
        kind: str,
        sender: str,
        params: dict[str, Any] | None = None,
        value: int = 0,
    ) -> str:
        """Place a transaction in the pending pool and return its hash."""
        params = params or {}
        tx_hash = compute_tx_hash(kind, sender, params, value, uuid.uuid4().hex)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO transactions (tx_hash, kind, sender, params_json, value, status)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (tx_hash, kind, sender, json.dumps(params), str(value), TX_PENDING),
            )
            conn.commit()
        logger.debug("Submitted %s from %s as %s.", kind, sender, tx_hash[:18])
        return tx_hash

    def pending_count(self) -> int:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM transactions WHERE status = ?", (TX_PENDING,)
            ).fetchone()
        return int(row[0])

    def receipt(self, tx_hash: str) -> dict[str, Any] | None:
        """Return the transaction's receipt, or ``None`` if unknown."""
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT tx_hash, kind, status, revert_reason, block_number,
                       block_time, project_id
                FROM transactions WHERE tx_hash = ?
                """,
                (tx_hash,),
            ).fetchone()
        if row is None:
            return None
        keys = (
            "tx_hash", "kind", "status", "revert_reason",
            "block_number", "block_time", "project_id",
        )
        return dict(zip(keys, row))

    def mine(self) -> list[dict[str, Any]]:
        """Settle every pending transaction in one block.

        Returns the receipts of the transactions included, in order.  The
        whole block is written in one SQLite transaction, so readers see
        either none or all of its effects.
        """
        receipts: list[dict[str, Any]] = []
        with self._connect() as conn:
            pending = conn.execute(
                """
                SELECT seq, tx_hash, kind, sender, params_json, value
                FROM transactions WHERE status = ? ORDER BY seq ASC
                """,
                (TX_PENDING,),
            ).fetchall()
            if not pending:
                return receipts

            row = conn.execute(
                "SELECT COALESCE(MAX(block_number), 0) FROM transactions"
            ).fetchone()
            block_number = int(row[0]) + 1
            block_time = self._clock()

            for seq, tx_hash, kind, sender, params_json, value in pending:
                params = json.loads(params_json)
                project_id: int | None = None
                try:
                    project_id = self._apply(
                        conn, kind, sender, params, int(value), block_time
                    )
                    status, reason = TX_SETTLED, None
                except ContractRevert as exc:
                    status, reason = TX_REVERTED, str(exc)
                    logger.info("Transaction %s reverted: %s", tx_hash[:18], reason)

                conn.execute(
                    """
                    UPDATE transactions
                    SET status = ?, revert_reason = ?, block_number = ?,
                        block_time = ?, project_id = ?
                    WHERE seq = ?
                    """,
                    (status, reason, block_number, block_time, project_id, seq),
                )
                receipts.append({
                    "tx_hash": tx_hash,
                    "kind": kind,
                    "status": status,
                    "revert_reason": reason,
                    "block_number": block_number,
                    "block_time": block_time,
                    "project_id": project_id,
                })
            conn.commit()

        logger.info(
            "Mined block %d with %d transaction(s).", block_number, len(receipts)
        )
        return receipts

    # ------------------------------------------------------------------
    # Contract rules
    # ------------------------------------------------------------------

    def _apply(
        self,
        conn: sqlite3.Connection,
        kind: str,
        sender: str,
        params: dict[str, Any],
        value: int,
        block_time: int,
    ) -> int | None:
        if not sender or sender == ZERO_ADDRESS:
            raise ContractRevert(REVERT_ZERO_SENDER)

        if kind == "create":
            name = str(params.get("name", ""))
            if not name.strip():
                raise ContractRevert(REVERT_EMPTY_NAME)
            amount = int(params.get("amount", 0))
            new_id = int(conn.execute("SELECT COUNT(*) FROM projects").fetchone()[0])
            conn.execute(
                """
                INSERT INTO projects
                    (id, name, description, amount, freelancer, client, deadline)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    new_id,
                    name,
                    str(params.get("description", "")),
                    str(amount),
                    sender,
                    ZERO_ADDRESS,
                    block_time,
                ),
            )
            return new_id

        if kind == "accept":
            project_id = int(params["project_id"])
            row = self._load_project(conn, project_id)
            amount, client, is_accepted, _ = row
            if is_accepted or client != ZERO_ADDRESS:
                raise ContractRevert(REVERT_ALREADY_ACCEPTED)
            if value != int(amount):
                raise ContractRevert(REVERT_AMOUNT_MISMATCH)
            conn.execute(
                "UPDATE projects SET client = ?, is_accepted = 1 WHERE id = ?",
                (sender, project_id),
            )
            return project_id

        if kind == "complete":
            project_id = int(params["project_id"])
            _, client, is_accepted, is_completed = self._load_project(conn, project_id)
            if not is_accepted:
                raise ContractRevert(REVERT_NOT_ACCEPTED)
            if is_completed:
                raise ContractRevert(REVERT_ALREADY_COMPLETED)
            if sender != client:
                raise ContractRevert(REVERT_NOT_CLIENT)
            conn.execute(
                "UPDATE projects SET is_completed = 1 WHERE id = ?", (project_id,)
            )
            return project_id

        if kind == "update_profile":
            conn.execute(
                """
                INSERT INTO profiles (account, name, bio, avatar) VALUES (?, ?, ?, ?)
                ON CONFLICT(account) DO UPDATE SET
                    name = excluded.name, bio = excluded.bio, avatar = excluded.avatar
                """,
                (
                    sender,
                    str(params.get("name", "")),
                    str(params.get("bio", "")),
                    str(params.get("avatar", "")),
                ),
            )
            return None

        raise ContractRevert(REVERT_UNKNOWN_KIND)

    @staticmethod
    def _load_project(conn: sqlite3.Connection, project_id: int) -> tuple:
        if project_id < 0 or project_id > MAX_PROJECT_ID:
            raise ContractRevert(REVERT_NO_PROJECT)
        row = conn.execute(
            "SELECT amount, client, is_accepted, is_completed FROM projects WHERE id = ?",
            (project_id,),
        ).fetchone()
        if row is None:
            raise ContractRevert(REVERT_NO_PROJECT)
        return row

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_record(row: tuple) -> ProjectRecord:
        """Convert a SQLite row tuple to a ProjectRecord."""
        (
            project_id,
            name,
            description,
            amount,
            freelancer,
            client,
            deadline,
            is_accepted,
            is_completed,
        ) = row
        return ProjectRecord(
            id=project_id,
            name=name,
            description=description,
            amount=int(amount),
            creator=freelancer,
            counterparty=client,
            deadline=deadline,
            is_accepted=bool(is_accepted),
            is_completed=bool(is_completed),
        )
