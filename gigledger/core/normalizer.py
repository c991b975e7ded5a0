"""Record normalizer — raw ledger records into display-ready projects.

``normalize`` is pure: given the same record and the same ``now`` it always
produces the same ``NormalizedProject``.  Tests pin ``now`` to get
reproducible age labels.
"""

from __future__ import annotations

from datetime import datetime

from gigledger.core.errors import DataIntegrityError
from gigledger.core.units import format_units
from gigledger.models.project import (
    LifecycleState,
    NormalizedProject,
    ProjectRecord,
    epoch_to_datetime,
)

_MS_PER_HOUR = 60 * 60 * 1000
_MS_PER_DAY = 24 * _MS_PER_HOUR


def age_label(deadline: int, now: datetime) -> str:
    """Bucket the time elapsed since *deadline* (epoch seconds).

    Whole days win over hours; anything under an hour, or in the future,
    is "Just now".
    """
    now_ms = int(now.timestamp() * 1000)
    diff = now_ms - deadline * 1000
    if diff <= 0:
        return "Just now"

    days = diff // _MS_PER_DAY
    hours = (diff % _MS_PER_DAY) // _MS_PER_HOUR
    if days > 0:
        return f"{days} day{'s' if days > 1 else ''} ago"
    if hours > 0:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    return "Just now"


def classify(record: ProjectRecord) -> LifecycleState:
    """Derive the lifecycle state of a record.

    Raises
    ------
    DataIntegrityError
        If the record is completed without having been accepted.  Such a
        record cannot be produced by the contract, so it is surfaced rather
        than silently dropped.
    """
    if record.is_completed:
        if not (record.is_accepted and record.has_counterparty):
            raise DataIntegrityError(
                f"Project {record.id} is completed but was never accepted "
                f"(is_accepted={record.is_accepted}, counterparty={record.counterparty})"
            )
        return LifecycleState.COMPLETED
    if not record.has_counterparty:
        return LifecycleState.OPEN
    return LifecycleState.ACCEPTED


def normalize(raw: ProjectRecord, now: datetime) -> NormalizedProject:
    """Convert a ledger record into a ``NormalizedProject``."""
    return NormalizedProject(
        record=raw,
        formatted_amount=format_units(raw.amount),
        age_label=age_label(raw.deadline, now),
        deadline_at=epoch_to_datetime(raw.deadline),
        lifecycle_state=classify(raw),
    )
