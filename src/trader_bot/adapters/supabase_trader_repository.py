"""Supabase-backed trader registry repository."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from trader_bot.domain.traders import TraderRecord
from trader_bot.services.traders import TraderRepository

_COLUMNS = "telegram_user_id, username, name, added_at, expires_at, added_by"


@dataclass
class SupabaseTraderRepository(TraderRepository):
    """Supabase implementation for trader persistence."""

    client: Client

    def get_trader(self, telegram_user_id: int) -> TraderRecord | None:
        """Return the trader row for a Telegram user id, if present."""
        response = (
            self.client.table("traders")
            .select(_COLUMNS)
            .eq("telegram_user_id", telegram_user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def upsert_trader(self, trader: TraderRecord) -> TraderRecord:
        """Insert or update a trader row keyed by Telegram user id."""
        response = (
            self.client.table("traders")
            .upsert(
                {
                    "telegram_user_id": trader.telegram_user_id,
                    "username": trader.username,
                    "name": trader.name,
                    "added_at": trader.added_at.isoformat(),
                    "expires_at": trader.expires_at.isoformat()
                    if trader.expires_at
                    else None,
                    "added_by": trader.added_by,
                },
                on_conflict="telegram_user_id",
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save trader in Supabase")
        return _parse_row(response.data[0])

    def delete_trader(self, telegram_user_id: int) -> None:
        """Delete a trader row."""
        self.client.table("traders").delete().eq(
            "telegram_user_id", telegram_user_id
        ).execute()

    def list_traders(self) -> list[TraderRecord]:
        """Return all trader rows ordered by registration time."""
        response = (
            self.client.table("traders")
            .select(_COLUMNS)
            .order("added_at", desc=False)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]


def _parse_row(row: dict[str, object]) -> TraderRecord:
    expires_raw = row.get("expires_at")
    added_by = row.get("added_by")
    return TraderRecord(
        telegram_user_id=int(row["telegram_user_id"]),
        username=row.get("username"),
        name=row.get("name"),
        added_at=datetime.fromisoformat(str(row["added_at"])),
        expires_at=datetime.fromisoformat(expires_raw)
        if isinstance(expires_raw, str) and expires_raw
        else None,
        added_by=int(added_by) if added_by is not None else None,
    )
