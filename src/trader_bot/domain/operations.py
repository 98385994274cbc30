"""Domain models for the operation log."""

from dataclasses import dataclass, field
from datetime import datetime

PLAYER = "player"
CHECK = "check"
ACTIVATE = "activate"
PLAYER_INLINE = "player_inline"
CHECK_INLINE = "check_inline"

DASHBOARD_KINDS = (ACTIVATE, CHECK, PLAYER)


@dataclass(frozen=True)
class OperationRecord:
    """Immutable audit entry for one lookup, check or activation attempt."""

    kind: str
    result: str
    actor_id: int | None = None
    timestamp: datetime | None = None
    player_id: str | None = None
    player_name: str | None = None
    code: str | None = None
    amount: str | None = None
    activated_to: str | None = None
    activated_at: int | None = None
    id: str | None = None


@dataclass(frozen=True)
class OperationPage:
    """One page of an actor's operation log."""

    items: list[OperationRecord]
    page: int
    total_pages: int
    total_items: int
    stats: dict[str, int] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "OperationPage":
        return cls(items=[], page=1, total_pages=1, total_items=0, stats={})
