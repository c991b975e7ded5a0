"""Action coordinator — the two-phase write path as a state machine.

Every write goes ``IDLE -> SUBMITTING -> AWAITING_SETTLEMENT`` and then
either ``SETTLED -> REBUILD_TRIGGERED`` or ``FAILED``.  Enforces:

- Valid transitions only (``VALID_ACTION_TRANSITIONS``)
- No two identical actions (same kind, same target) in flight at once
- Escrow equals the project amount before an accept is issued
- Exactly one read-model rebuild per settled action
- A failed action leaves the published read-model untouched
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from gigledger.core.errors import (
    AlreadyInProgress,
    AmountMismatch,
    GigLedgerError,
    Unavailable,
)
from gigledger.core.read_model import ReadModelBuilder
from gigledger.ledger.client import LedgerClient
from gigledger.models.actions import (
    VALID_ACTION_TRANSITIONS,
    ActionKind,
    ActionState,
    ActionTicket,
    PendingHandle,
)

logger = logging.getLogger(__name__)


class InvalidActionTransitionError(RuntimeError):
    """Raised when an action is moved to a state its current state forbids."""


class ActionCoordinator:
    """Issues ledger writes and keeps the read-model in step with them.

    Parameters
    ----------
    client:
        The ledger client writes are issued through.
    builder:
        Rebuilt once after every settled action.
    settlement_timeout:
        Default bound for ``settle``; ``None`` defers to the client.
    on_transition:
        Optional callback receiving every new ticket state, for presenting
        progress.
    """

    def __init__(
        self,
        client: LedgerClient,
        builder: ReadModelBuilder,
        *,
        settlement_timeout: float | None = None,
        on_transition: Callable[[ActionTicket], None] | None = None,
    ) -> None:
        self._client = client
        self._builder = builder
        self._settlement_timeout = settlement_timeout
        self._on_transition = on_transition
        # (kind, target) -> ticket, only while SUBMITTING/AWAITING_SETTLEMENT
        self._in_flight: dict[tuple[ActionKind, str], ActionTicket] = {}
        self._tickets: dict[str, ActionTicket] = {}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def ticket(self, ticket_id: str) -> ActionTicket | None:
        """Latest state of a ticket, or ``None`` if unknown."""
        return self._tickets.get(ticket_id)

    def in_flight(self) -> list[ActionTicket]:
        return list(self._in_flight.values())

    def is_in_flight(self, kind: ActionKind, target: str | int) -> bool:
        return (kind, str(target)) in self._in_flight

    # ------------------------------------------------------------------
    # Phase 1: submit
    # ------------------------------------------------------------------

    def submit_create(self, name: str, description: str, amount: int) -> ActionTicket:
        """Submit a new listing.  Name and description must be non-blank."""
        if not name.strip() or not description.strip():
            raise ValueError("Project name and description are required")
        if amount < 0:
            raise ValueError("Amount must not be negative")
        # Creates have no id yet; the listing content identifies the action.
        target = f"{name.strip()}|{amount}"
        return self._submit(
            ActionKind.CREATE,
            target,
            {"name": name, "description": description, "amount": amount},
            lambda: self._client.submit_create(name, description, amount),
        )

    def submit_accept(self, project_id: int, escrow_amount: int) -> ActionTicket:
        """Accept *project_id*, escrowing exactly its listed amount.

        Raises ``AmountMismatch`` before anything is written if
        *escrow_amount* differs from the amount on the ledger.
        """

        def preflight() -> None:
            record = self._client.record_at(project_id)
            if record.amount != escrow_amount:
                raise AmountMismatch(project_id, record.amount, escrow_amount)

        return self._submit(
            ActionKind.ACCEPT,
            str(project_id),
            {"project_id": project_id, "escrow_amount": escrow_amount},
            lambda: self._client.submit_accept(project_id, escrow_amount),
            preflight=preflight,
        )

    def submit_complete(self, project_id: int) -> ActionTicket:
        return self._submit(
            ActionKind.COMPLETE,
            str(project_id),
            {"project_id": project_id},
            lambda: self._client.submit_complete(project_id),
        )

    def submit_update_profile(self, name: str, bio: str, avatar: str) -> ActionTicket:
        return self._submit(
            ActionKind.UPDATE_PROFILE,
            self._client.account or "",
            {"name": name, "bio": bio, "avatar": avatar},
            lambda: self._client.submit_update_profile(name, bio, avatar),
        )

    # ------------------------------------------------------------------
    # Phase 2: settle
    # ------------------------------------------------------------------

    def settle(self, ticket: ActionTicket, timeout: float | None = None) -> ActionTicket:
        """Wait for *ticket* to settle, then rebuild the read-model once.

        On failure the ticket ends ``FAILED``, the read-model is left as it
        was, and the ledger error is re-raised.  After a
        ``SettlementTimeout`` the outcome is unknown: refresh and inspect
        the ledger before retrying.
        """
        current = self._tickets.get(ticket.ticket_id, ticket)
        if current.state != ActionState.AWAITING_SETTLEMENT or current.handle is None:
            raise InvalidActionTransitionError(
                f"Ticket {current.ticket_id} is {current.state.value}, "
                f"not {ActionState.AWAITING_SETTLEMENT.value}"
            )

        bound = self._settlement_timeout if timeout is None else timeout
        try:
            settlement = self._client.await_settlement(current.handle, bound)
        except BaseException as exc:
            # Includes an abandoned wait; the write may still land.
            self._fail(current, exc)
            raise

        settled = self._transition(current, ActionState.SETTLED, settlement=settlement)
        self._in_flight.pop(settled.key, None)

        self._builder.invalidate(f"{settled.kind.value} settled in {settlement.tx_hash}")
        view = self._builder.refresh()
        if view.stale:
            logger.warning(
                "Action %s settled but the rebuild failed (%s); read-model is stale.",
                settled.ticket_id,
                view.error_kind,
            )
        return self._transition(settled, ActionState.REBUILD_TRIGGERED)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _submit(
        self,
        kind: ActionKind,
        target: str,
        params: dict,
        issue: Callable[[], PendingHandle],
        *,
        preflight: Callable[[], None] | None = None,
    ) -> ActionTicket:
        if not self._client.account:
            raise Unavailable("No signing identity connected")

        key = (kind, target)
        if key in self._in_flight:
            pending = self._in_flight[key]
            raise AlreadyInProgress(
                f"{kind.value} for {target} is already {pending.state.value} "
                f"({pending.ticket_id})"
            )

        ticket = ActionTicket(kind=kind, target=target, params=params)
        self._tickets[ticket.ticket_id] = ticket
        ticket = self._transition(ticket, ActionState.SUBMITTING)
        self._in_flight[key] = ticket

        try:
            if preflight is not None:
                preflight()
            handle = issue()
        except BaseException as exc:
            self._fail(ticket, exc)
            raise

        ticket = self._transition(ticket, ActionState.AWAITING_SETTLEMENT, handle=handle)
        self._in_flight[key] = ticket
        logger.info(
            "Submitted %s for %s as %s.", kind.value, target, handle.tx_hash[:18]
        )
        return ticket

    def _fail(self, ticket: ActionTicket, exc: BaseException) -> ActionTicket:
        """Free the in-flight slot and record *ticket* as ``FAILED``.

        Ledger errors keep their ``kind``; anything else (a client bug, an
        interrupt) is recorded as ``aborted``.
        """
        self._in_flight.pop(ticket.key, None)
        kind = exc.kind if isinstance(exc, GigLedgerError) else "aborted"
        failed = self._transition(
            ticket,
            ActionState.FAILED,
            failure_kind=kind,
            failure_message=str(exc) or type(exc).__name__,
        )
        logger.warning(
            "Action %s (%s %s) failed: %s: %s",
            failed.ticket_id,
            failed.kind.value,
            failed.target,
            kind,
            exc,
        )
        return failed

    def _transition(
        self, ticket: ActionTicket, target: ActionState, **updates
    ) -> ActionTicket:
        allowed = VALID_ACTION_TRANSITIONS.get(ticket.state, set())
        if target not in allowed:
            raise InvalidActionTransitionError(
                f"Cannot move {ticket.ticket_id} from {ticket.state.value} to "
                f"{target.value}. Allowed: {sorted(s.value for s in allowed)}"
            )
        moved = ticket.model_copy(
            update={"state": target, "history": [*ticket.history, target], **updates}
        )
        self._tickets[moved.ticket_id] = moved
        logger.debug(
            "Action %s: %s -> %s", moved.ticket_id, ticket.state.value, target.value
        )
        if self._on_transition is not None:
            self._on_transition(moved)
        return moved
