"""Domain models for the trader registry."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TraderRecord:
    """A trader allowed to use the bot."""

    telegram_user_id: int
    username: str | None
    name: str | None
    added_at: datetime
    expires_at: datetime | None
    added_by: int | None = None

    def is_active(self, now: datetime) -> bool:
        return self.expires_at is None or now <= self.expires_at


@dataclass(frozen=True)
class TraderAccount:
    """Subscription view of a trader."""

    trader: TraderRecord
    is_active: bool
    days_left: int
