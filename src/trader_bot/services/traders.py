"""Trader registry and authorization."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

from trader_bot.domain.traders import TraderAccount, TraderRecord


class TraderRepository(Protocol):
    """Persistence interface for registered traders."""

    def get_trader(self, telegram_user_id: int) -> TraderRecord | None:
        """Return the trader for a Telegram user id, if present."""

    def upsert_trader(self, trader: TraderRecord) -> TraderRecord:
        """Create or replace a trader record."""

    def delete_trader(self, telegram_user_id: int) -> None:
        """Remove a trader record."""

    def list_traders(self) -> list[TraderRecord]:
        """Return all registered traders."""


@dataclass
class TraderService:
    """Decides who may use the bot and manages subscriptions."""

    repository: TraderRepository
    owner_id: int | None = None
    subscription_days: int = 30

    def is_owner(self, actor_id: int) -> bool:
        return self.owner_id is not None and actor_id == self.owner_id

    def is_authorized(self, actor_id: int) -> bool:
        """Return true for the owner and for traders with a live subscription."""
        if self.is_owner(actor_id):
            return True
        trader = self.repository.get_trader(actor_id)
        if trader is None:
            return False
        return trader.is_active(datetime.now(tz=UTC))

    def get_account(self, actor_id: int) -> TraderAccount | None:
        """Return subscription details for a registered trader."""
        trader = self.repository.get_trader(actor_id)
        if trader is None:
            return None
        now = datetime.now(tz=UTC)
        is_active = trader.is_active(now)
        days_left = (
            max((trader.expires_at - now).days, 0)
            if trader.expires_at is not None
            else 0
        )
        return TraderAccount(trader=trader, is_active=is_active, days_left=days_left)

    def add_trader(
        self,
        telegram_user_id: int,
        username: str | None = None,
        name: str | None = None,
        added_by: int | None = None,
    ) -> TraderRecord:
        """Register a trader with a fresh subscription window."""
        now = datetime.now(tz=UTC)
        trader = TraderRecord(
            telegram_user_id=telegram_user_id,
            username=username,
            name=name,
            added_at=now,
            expires_at=now + timedelta(days=self.subscription_days),
            added_by=added_by,
        )
        return self.repository.upsert_trader(trader)

    def remove_trader(self, telegram_user_id: int) -> bool:
        """Remove a trader; return false when they were not registered."""
        if self.repository.get_trader(telegram_user_id) is None:
            return False
        self.repository.delete_trader(telegram_user_id)
        return True

    def list_traders(self) -> list[TraderRecord]:
        return self.repository.list_traders()
