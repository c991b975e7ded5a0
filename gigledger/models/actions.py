"""Action models — the two-phase write path (submit, then settle).

Every user-initiated ledger write is tracked as an ``ActionTicket`` moving
through the ``ActionState`` machine.  ``VALID_ACTION_TRANSITIONS`` is the
only source of allowed moves; the coordinator refuses anything else.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ActionKind(str, Enum):
    CREATE = "create"
    ACCEPT = "accept"
    COMPLETE = "complete"
    UPDATE_PROFILE = "update_profile"


class ActionState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    AWAITING_SETTLEMENT = "awaiting_settlement"
    SETTLED = "settled"
    REBUILD_TRIGGERED = "rebuild_triggered"
    FAILED = "failed"


# Terminal states (REBUILD_TRIGGERED, FAILED) have no outgoing transitions.
VALID_ACTION_TRANSITIONS: dict[ActionState, set[ActionState]] = {
    ActionState.IDLE: {ActionState.SUBMITTING},
    ActionState.SUBMITTING: {ActionState.AWAITING_SETTLEMENT, ActionState.FAILED},
    ActionState.AWAITING_SETTLEMENT: {ActionState.SETTLED, ActionState.FAILED},
    ActionState.SETTLED: {ActionState.REBUILD_TRIGGERED},
    ActionState.REBUILD_TRIGGERED: set(),
    ActionState.FAILED: set(),
}

IN_FLIGHT_STATES = frozenset({ActionState.SUBMITTING, ActionState.AWAITING_SETTLEMENT})


class PendingHandle(BaseModel):
    """Opaque reference to a submitted, not-yet-settled ledger write."""

    model_config = ConfigDict(frozen=True)

    tx_hash: str
    kind: ActionKind
    sender: str
    submitted_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class Settlement(BaseModel):
    """Receipt for a write whose effect is durably visible on the ledger."""

    model_config = ConfigDict(frozen=True)

    tx_hash: str
    block_number: int
    block_time: int
    project_id: int | None = None  # set for creates


class ActionTicket(BaseModel):
    """Point-in-time state of one coordinated action.

    Tickets are frozen; every transition produces a new ticket via
    ``model_copy``.  ``history`` lists every state the action passed through.
    """

    model_config = ConfigDict(frozen=True)

    ticket_id: str = Field(default_factory=lambda: f"act-{uuid.uuid4().hex[:12]}")
    kind: ActionKind
    target: str  # project id as a string, or the account for profile updates
    params: dict[str, Any] = Field(default_factory=dict)
    state: ActionState = ActionState.IDLE
    history: list[ActionState] = Field(default_factory=lambda: [ActionState.IDLE])
    handle: PendingHandle | None = None
    settlement: Settlement | None = None
    failure_kind: str | None = None
    failure_message: str | None = None

    @property
    def key(self) -> tuple[ActionKind, str]:
        """Identity used to reject duplicate in-flight actions."""
        return (self.kind, self.target)

    @property
    def is_in_flight(self) -> bool:
        return self.state in IN_FLIGHT_STATES

    @property
    def succeeded(self) -> bool:
        return self.state == ActionState.REBUILD_TRIGGERED
