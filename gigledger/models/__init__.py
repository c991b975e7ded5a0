"""gigledger data models — all Pydantic v2, all frozen (immutable)."""

from gigledger.models.actions import (
    IN_FLIGHT_STATES,
    VALID_ACTION_TRANSITIONS,
    ActionKind,
    ActionState,
    ActionTicket,
    PendingHandle,
    Settlement,
)
from gigledger.models.project import (
    ZERO_ADDRESS,
    AccountStatistics,
    LifecycleState,
    NormalizedProject,
    Profile,
    ProjectRecord,
)
from gigledger.models.query import FilterBy, ProjectQuery, SortBy

__all__ = [
    # project
    "ZERO_ADDRESS",
    "LifecycleState",
    "ProjectRecord",
    "NormalizedProject",
    "AccountStatistics",
    "Profile",
    # query
    "FilterBy",
    "SortBy",
    "ProjectQuery",
    # actions
    "ActionKind",
    "ActionState",
    "ActionTicket",
    "PendingHandle",
    "Settlement",
    "VALID_ACTION_TRANSITIONS",
    "IN_FLIGHT_STATES",
]
