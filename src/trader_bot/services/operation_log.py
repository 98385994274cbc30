"""Operation log store: append-only audit records with paginated views."""

import logging
import math
from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from typing import Protocol

from trader_bot.domain.errors import StorageUnavailable
from trader_bot.domain.operations import DASHBOARD_KINDS, OperationPage, OperationRecord

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 500
DEFAULT_PAGE_SIZE = 10

_EPOCH = datetime.min.replace(tzinfo=UTC)


class OperationLogRepository(Protocol):
    """Persistence interface for operation records."""

    def insert_operation(self, record: OperationRecord) -> OperationRecord:
        """Persist a record and return it as stored."""

    def list_recent_operations(
        self, actor_id: int, limit: int
    ) -> list[OperationRecord]:
        """Return up to ``limit`` of the actor's most recent records."""


@dataclass
class OperationLogService:
    """Append records per actor and serve filtered, paginated slices."""

    repository: OperationLogRepository
    window: int = DEFAULT_WINDOW
    page_size: int = DEFAULT_PAGE_SIZE
    _last_timestamp: datetime | None = field(default=None, init=False, repr=False)

    def append(self, actor_id: int, record: OperationRecord) -> OperationRecord:
        """Persist a record for the actor, stamping a timestamp when missing.

        Appending the same logical operation twice stores two records.
        Raises ``StorageUnavailable`` when the backend fails.
        """
        stamped = replace(
            record,
            actor_id=actor_id,
            timestamp=record.timestamp or self._next_timestamp(),
        )
        try:
            return self.repository.insert_operation(stamped)
        except Exception as exc:
            logger.warning(
                "Operation log append failed",
                extra={"actor_id": actor_id, "kind": record.kind},
            )
            raise StorageUnavailable("append") from exc

    def query(
        self,
        actor_id: int,
        kind: str | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> OperationPage:
        """Return one newest-first page of the actor's records.

        ``stats`` counts every kind in the read window before ``kind`` is
        applied. Out-of-range pages are clamped to the nearest valid page.
        """
        size = max(page_size or self.page_size, 1)
        try:
            records = self.repository.list_recent_operations(actor_id, self.window)
        except Exception as exc:
            logger.warning("Operation log query failed", extra={"actor_id": actor_id})
            raise StorageUnavailable("query") from exc

        stats = _count_by_kind(records)
        ordered = sorted(records, key=_sort_key, reverse=True)
        if kind:
            ordered = [record for record in ordered if record.kind == kind]

        total_pages = max(math.ceil(len(ordered) / size), 1)
        current = min(max(page, 1), total_pages)
        start = (current - 1) * size
        return OperationPage(
            items=ordered[start : start + size],
            page=current,
            total_pages=total_pages,
            total_items=len(ordered),
            stats=stats,
        )

    def _next_timestamp(self) -> datetime:
        now = datetime.now(tz=UTC)
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now


def _count_by_kind(records: list[OperationRecord]) -> dict[str, int]:
    counts = Counter(record.kind for record in records)
    stats = {kind: 0 for kind in DASHBOARD_KINDS}
    stats.update(counts)
    return stats


def _sort_key(record: OperationRecord) -> datetime:
    return record.timestamp or _EPOCH
