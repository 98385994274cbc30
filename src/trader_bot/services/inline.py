"""Inline-mode lookups and code checks outside the conversation workflow."""

import logging
import re
from dataclasses import dataclass

from trader_bot.adapters.ledger_client import LedgerClient
from trader_bot.domain import operations
from trader_bot.domain.errors import RemoteCallFailed, StorageUnavailable
from trader_bot.domain.ledger import CodeStatus
from trader_bot.domain.operations import OperationRecord
from trader_bot.services.formatting import or_dash
from trader_bot.services.operation_log import OperationLogService

logger = logging.getLogger(__name__)

_CODE_PATTERN = re.compile(r"^[A-Za-z0-9]{8,}$")

_STATUS_LABELS = {
    CodeStatus.ACTIVATED: ("✅", "Code is activated"),
    CodeStatus.UNACTIVATED: ("ℹ️", "Code is not activated"),
}


@dataclass
class InlineQueryService:
    """Answers inline queries with player or code articles."""

    ledger_client: LedgerClient
    operation_log: OperationLogService

    async def answer(self, actor_id: int, query: str) -> list[dict[str, object]]:
        """Return inline results for a digits-only id or a code-like token."""
        text = query.strip()
        if not text:
            return []
        if text.isdigit() and text.isascii():
            return await self._lookup(actor_id, text)
        if _CODE_PATTERN.match(text):
            return await self._check(actor_id, text)
        return []

    async def _lookup(self, actor_id: int, player_id: str) -> list[dict[str, object]]:
        try:
            lookup = await self.ledger_client.lookup_player(player_id)
        except RemoteCallFailed as exc:
            logger.warning("Inline player lookup failed", extra={"label": exc.label})
            self._record(
                actor_id,
                OperationRecord(
                    kind=operations.PLAYER_INLINE, result="error", player_id=player_id
                ),
            )
            return []
        if not lookup.found:
            self._record(
                actor_id,
                OperationRecord(
                    kind=operations.PLAYER_INLINE,
                    result="not_found",
                    player_id=player_id,
                ),
            )
            return []

        self._record(
            actor_id,
            OperationRecord(
                kind=operations.PLAYER_INLINE,
                result="success",
                player_id=lookup.player_id,
                player_name=lookup.player_name,
            ),
        )
        name = or_dash(lookup.player_name)
        return [
            _article(
                result_id=f"player-{lookup.player_id}",
                title=f"👤 {name}",
                description=f"ID: {lookup.player_id}",
                message_text=(
                    f"👤 Player:\n• ID: {lookup.player_id}\n• Name: {name}\n\n"
                    "Use ⚡ Activate code in the bot to activate a code for "
                    "this player."
                ),
            )
        ]

    async def _check(self, actor_id: int, code: str) -> list[dict[str, object]]:
        try:
            check = await self.ledger_client.check_code(code)
        except RemoteCallFailed as exc:
            logger.warning("Inline code check failed", extra={"label": exc.label})
            self._record(
                actor_id,
                OperationRecord(
                    kind=operations.CHECK_INLINE, result="error", code=code
                ),
            )
            return []
        if check.status is CodeStatus.UNAVAILABLE:
            self._record(
                actor_id,
                OperationRecord(
                    kind=operations.CHECK_INLINE, result="error", code=code
                ),
            )
            return []

        icon, label = _STATUS_LABELS.get(check.status, ("❌", "Code is invalid"))
        amount = or_dash(check.amount)
        self._record(
            actor_id,
            OperationRecord(
                kind=operations.CHECK_INLINE,
                result=check.raw_status or "unknown",
                code=check.code,
                amount=check.amount,
                activated_to=check.activated_to,
                activated_at=check.activated_at,
            ),
        )
        return [
            _article(
                result_id=f"code-{check.code}",
                title=f"{icon} {label}",
                description=f"Code: {check.code} | Amount: {amount} UC",
                message_text=(
                    f"{icon} {label}\n• Code: {check.code}\n• Amount: {amount} UC"
                ),
            )
        ]

    def _record(self, actor_id: int, record: OperationRecord) -> None:
        try:
            self.operation_log.append(actor_id, record)
        except StorageUnavailable:
            logger.warning(
                "Skipping inline operation record", extra={"actor_id": actor_id}
            )


def _article(
    result_id: str, title: str, description: str, message_text: str
) -> dict[str, object]:
    return {
        "type": "article",
        "id": result_id[:64],
        "title": title,
        "description": description,
        "input_message_content": {"message_text": message_text},
    }
