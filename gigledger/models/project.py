"""Project record models — ledger-owned records and their derived views.

``ProjectRecord`` mirrors one entry of the contract's ``projects`` array.
Everything else in this module is derived from records and is rebuilt on
every refresh; none of it is ever persisted.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Sentinel the contract uses for "no client yet".
ZERO_ADDRESS = "0x" + "0" * 40


class LifecycleState(str, Enum):
    """Exactly one of these holds for a record at any read."""

    OPEN = "open"
    ACCEPTED = "accepted"
    COMPLETED = "completed"


class ProjectRecord(BaseModel):
    """A single project as stored on the ledger.

    ``amount`` is denominated in minor units (18 fractional decimal digits).
    ``deadline`` is an opaque epoch-seconds timestamp: depending on the
    lifecycle stage it reads as creation time or deadline, so nothing here
    assumes it lies in the future.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=0)
    name: str
    description: str
    amount: int = Field(ge=0)
    creator: str  # the freelancer who listed the project
    counterparty: str = ZERO_ADDRESS  # the client, once accepted
    deadline: int = 0
    is_accepted: bool = False
    is_completed: bool = False

    @property
    def has_counterparty(self) -> bool:
        return self.counterparty != ZERO_ADDRESS


class NormalizedProject(BaseModel):
    """A ``ProjectRecord`` enriched with display and lifecycle fields."""

    model_config = ConfigDict(frozen=True)

    record: ProjectRecord
    formatted_amount: str
    age_label: str
    deadline_at: datetime
    lifecycle_state: LifecycleState

    # Read-through accessors so views can treat this like the record itself.
    @property
    def id(self) -> int:
        return self.record.id

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def description(self) -> str:
        return self.record.description

    @property
    def amount(self) -> int:
        return self.record.amount

    @property
    def creator(self) -> str:
        return self.record.creator

    @property
    def counterparty(self) -> str:
        return self.record.counterparty

    @property
    def deadline(self) -> int:
        return self.record.deadline


class AccountStatistics(BaseModel):
    """Aggregates over every project an account created.

    ``reputation`` is a monotone placeholder proxy (completed count times a
    fixed weight).  It is not a verified score and must not be presented as
    authoritative reputation.
    """

    model_config = ConfigDict(frozen=True)

    account: str
    total: int = 0
    active: int = 0
    completed: int = 0
    earnings_minor: int = 0
    earnings: Decimal = Decimal("0")
    formatted_earnings: str = "0.0"
    reputation: int = 0


class Profile(BaseModel):
    """Public profile an account publishes on the ledger."""

    model_config = ConfigDict(frozen=True)

    account: str
    name: str = ""
    bio: str = ""
    avatar: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.name or self.bio or self.avatar)


def epoch_to_datetime(seconds: int) -> datetime:
    """Convert a ledger timestamp to an aware UTC datetime."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc)
