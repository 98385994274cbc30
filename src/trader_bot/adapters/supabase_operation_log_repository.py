"""Supabase repository for operation log records."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from trader_bot.domain.operations import OperationRecord
from trader_bot.services.operation_log import OperationLogRepository

_COLUMNS = (
    "id, actor_id, kind, result, created_at, player_id, player_name, code, "
    "amount, activated_to, activated_at"
)


@dataclass
class SupabaseOperationLogRepository(OperationLogRepository):
    """Supabase-backed operation log repository."""

    client: Client

    def insert_operation(self, record: OperationRecord) -> OperationRecord:
        """Insert an operation row and return the stored record."""
        timestamp = record.timestamp or datetime.now(tz=UTC)
        response = (
            self.client.table("operation_logs")
            .insert(
                {
                    "actor_id": record.actor_id,
                    "kind": record.kind,
                    "result": record.result,
                    "created_at": timestamp.isoformat(),
                    "player_id": record.player_id,
                    "player_name": record.player_name,
                    "code": record.code,
                    "amount": record.amount,
                    "activated_to": record.activated_to,
                    "activated_at": record.activated_at,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to insert operation log row")
        return _parse_row(response.data[0])

    def list_recent_operations(
        self, actor_id: int, limit: int
    ) -> list[OperationRecord]:
        """Return the most recent operation rows for an actor."""
        response = (
            self.client.table("operation_logs")
            .select(_COLUMNS)
            .eq("actor_id", actor_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]


def _parse_row(row: dict[str, object]) -> OperationRecord:
    created_raw = row.get("created_at")
    timestamp = (
        datetime.fromisoformat(created_raw)
        if isinstance(created_raw, str) and created_raw
        else None
    )
    return OperationRecord(
        id=str(row["id"]) if row.get("id") is not None else None,
        actor_id=int(row["actor_id"]) if row.get("actor_id") is not None else None,
        kind=str(row.get("kind", "")),
        result=str(row.get("result", "")),
        timestamp=timestamp,
        player_id=_optional_str(row.get("player_id")),
        player_name=_optional_str(row.get("player_name")),
        code=_optional_str(row.get("code")),
        amount=_optional_str(row.get("amount")),
        activated_to=_optional_str(row.get("activated_to")),
        activated_at=_optional_int(row.get("activated_at")),
    )


def _optional_str(value: object) -> str | None:
    return str(value) if value is not None else None


def _optional_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return int(value)
    if isinstance(value, str) and value.strip():
        try:
            return int(float(value))
        except (OverflowError, ValueError):
            return None
    return None
