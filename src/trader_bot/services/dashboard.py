"""Summary and detail views of a trader's operation log."""

import logging
from dataclasses import dataclass

from trader_bot.domain import operations
from trader_bot.domain.errors import StorageUnavailable
from trader_bot.domain.operations import OperationPage, OperationRecord
from trader_bot.services.formatting import format_timestamp, or_dash
from trader_bot.services.operation_log import OperationLogService

logger = logging.getLogger(__name__)

KIND_TITLES = {
    operations.ACTIVATE: "🔌 Activations",
    operations.CHECK: "🧪 Code checks",
    operations.PLAYER: "🎮 Player lookups",
}

SUMMARY_CALLBACK = "logs:summary"


@dataclass(frozen=True)
class DashboardView:
    """Rendered text plus optional inline keyboard."""

    text: str
    reply_markup: dict | None = None


@dataclass
class DashboardService:
    """Builds log summaries and paginated detail pages."""

    operation_log: OperationLogService
    display_timezone: str = "UTC"

    def summary(self, actor_id: int) -> DashboardView:
        """Return counts per kind with buttons to browse each kind."""
        page = self._query(actor_id)
        total = sum(page.stats.values())
        if not total:
            return DashboardView(text="No operations recorded for this account yet.")
        stats = page.stats
        inline = stats.get(operations.PLAYER_INLINE, 0) + stats.get(
            operations.CHECK_INLINE, 0
        )
        lines = [
            "📒 Your log summary:",
            "",
            f"• Activations: {stats.get(operations.ACTIVATE, 0)}",
            f"• Code checks: {stats.get(operations.CHECK, 0)}",
            f"• Player lookups: {stats.get(operations.PLAYER, 0)}",
        ]
        if inline:
            lines.append(f"• Inline queries: {inline}")
        lines.extend([f"• Total recorded: {total}", "", "Choose what to browse:"])
        buttons = [
            [_button(f"Browse {title}", _page_callback(kind, 1))]
            for kind, title in KIND_TITLES.items()
        ]
        return DashboardView(
            text="\n".join(lines), reply_markup={"inline_keyboard": buttons}
        )

    def detail(self, actor_id: int, kind: str, page: int = 1) -> DashboardView:
        """Return one page of records of a single kind, newest first."""
        result = self._query(actor_id, kind=kind, page=page)
        title = KIND_TITLES.get(kind, "📒 Log")
        back_row = [_button("⬅️ Summary", SUMMARY_CALLBACK)]
        if not result.items:
            return DashboardView(
                text=f"{title}: no records yet.",
                reply_markup={"inline_keyboard": [back_row]},
            )

        lines = [f"{title} (page {result.page}/{result.total_pages}):", ""]
        for record in result.items:
            lines.append(self._format_record(kind, record))
        nav_row = []
        if result.page > 1:
            nav_row.append(
                _button("◀️ Previous", _page_callback(kind, result.page - 1))
            )
        if result.page < result.total_pages:
            nav_row.append(_button("Next ▶️", _page_callback(kind, result.page + 1)))
        keyboard = [nav_row, back_row] if nav_row else [back_row]
        return DashboardView(
            text="\n".join(lines).rstrip(), reply_markup={"inline_keyboard": keyboard}
        )

    def _query(
        self, actor_id: int, kind: str | None = None, page: int = 1
    ) -> OperationPage:
        try:
            return self.operation_log.query(actor_id, kind=kind, page=page)
        except StorageUnavailable:
            logger.warning("Operation log unavailable", extra={"actor_id": actor_id})
            return OperationPage.empty()

    def _format_record(self, kind: str, record: OperationRecord) -> str:
        when = format_timestamp(record.timestamp, self.display_timezone)
        player = f"{or_dash(record.player_name)} ({or_dash(record.player_id)})"
        if kind == operations.ACTIVATE:
            return (
                f"• Code: {or_dash(record.code)}\n"
                f"  Player: {player}\n"
                f"  Result: {record.result}\n"
                f"  At: {when}\n"
            )
        if kind == operations.CHECK:
            return (
                f"• Code: {or_dash(record.code)}\n"
                f"  Result: {record.result}\n"
                f"  At: {when}\n"
            )
        return f"• Player: {player}\n  Result: {record.result}\n  At: {when}\n"


def parse_logs_callback(data: str) -> tuple[str, int] | None:
    """Parse callback data in the format logs:<kind>:<page> or logs:summary."""
    if not data.startswith("logs:"):
        return None
    parts = data.split(":")
    if len(parts) == 2 and parts[1] == "summary":  # noqa: PLR2004
        return "summary", 1
    if len(parts) != 3 or parts[1] not in KIND_TITLES:  # noqa: PLR2004
        return None
    try:
        page = int(parts[2])
    except ValueError:
        page = 1
    return parts[1], max(page, 1)


def _page_callback(kind: str, page: int) -> str:
    return f"logs:{kind}:{page}"


def _button(label: str, callback: str) -> dict[str, str]:
    return {"text": label, "callback_data": callback}
