"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta

import pytest

from trader_bot.adapters.ledger_client import LedgerClient
from trader_bot.adapters.telegram_client import TelegramClient
from trader_bot.config import Settings
from trader_bot.containers import AppContainer, assemble_container
from trader_bot.domain.errors import RemoteCallFailed
from trader_bot.domain.ledger import (
    ActivateResult,
    CodeCheckResult,
    CodeStatus,
    PlayerLookupResult,
)
from trader_bot.domain.operations import OperationRecord
from trader_bot.domain.traders import TraderRecord
from trader_bot.services.operation_log import OperationLogRepository, OperationLogService
from trader_bot.services.traders import TraderRepository, TraderService

OWNER_ID = 1
TRADER_ID = 123
CHAT_ID = 99

# Shaped like a Supabase service-role JWT so client construction accepts it.
TEST_SUPABASE_KEY = "eyJhbGciOiJIUzI1NiJ9.eyJyb2xlIjoic2VydmljZV9yb2xlIn0.signature"


@dataclass
class FakeTelegramClient(TelegramClient):
    """Fake Telegram client that records outgoing calls."""

    messages: list[tuple[int, str]] = field(default_factory=list)
    markups: list[dict | None] = field(default_factory=list)
    edits: list[tuple[int, int, str, dict | None]] = field(default_factory=list)
    callbacks: list[tuple[str, str | None]] = field(default_factory=list)
    inline_answers: list[tuple[str, list[dict[str, object]], int]] = field(
        default_factory=list
    )
    commands: list[dict[str, str]] | None = None
    menu_button: dict[str, object] | None = None

    async def send_message(
        self, chat_id: int, text: str, reply_markup: dict | None = None
    ) -> None:
        self.messages.append((chat_id, text))
        self.markups.append(reply_markup)

    async def edit_message_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        reply_markup: dict | None = None,
    ) -> None:
        self.edits.append((chat_id, message_id, text, reply_markup))

    async def answer_callback_query(
        self, callback_query_id: str, text: str | None = None, show_alert: bool = False
    ) -> None:
        self.callbacks.append((callback_query_id, text))

    async def answer_inline_query(
        self,
        inline_query_id: str,
        results: list[dict[str, object]],
        cache_time: int = 3,
    ) -> None:
        self.inline_answers.append((inline_query_id, results, cache_time))

    async def set_my_commands(self, commands: list[dict[str, str]]) -> None:
        self.commands = commands

    async def set_chat_menu_button(
        self, menu_button: dict[str, object] | None = None
    ) -> None:
        self.menu_button = menu_button

    @property
    def texts(self) -> list[str]:
        return [text for _, text in self.messages]


@dataclass
class FakeLedgerClient(LedgerClient):
    """Fake ledger client with canned answers and call counters."""

    players: dict[str, str | None] = field(default_factory=dict)
    checks: dict[str, CodeCheckResult] = field(default_factory=dict)
    activate_accepted: bool = True
    fail_lookup: bool = False
    fail_check: bool = False
    fail_activate: bool = False
    lookup_calls: list[str] = field(default_factory=list)
    check_calls: list[str] = field(default_factory=list)
    activate_calls: list[tuple[str, str]] = field(default_factory=list)

    async def lookup_player(self, player_id: str) -> PlayerLookupResult:
        self.lookup_calls.append(player_id)
        if self.fail_lookup:
            raise RemoteCallFailed("getPlayer", "ConnectError")
        if player_id not in self.players:
            return PlayerLookupResult(found=False, player_id=player_id)
        return PlayerLookupResult(
            found=True, player_id=player_id, player_name=self.players[player_id]
        )

    async def check_code(self, code: str) -> CodeCheckResult:
        self.check_calls.append(code)
        if self.fail_check:
            raise RemoteCallFailed("checkCode", "ReadTimeout")
        return self.checks.get(
            code,
            CodeCheckResult(status=CodeStatus.INVALID, code=code, raw_status="invalid"),
        )

    async def activate_code(self, player_id: str, code: str) -> ActivateResult:
        self.activate_calls.append((player_id, code))
        if self.fail_activate:
            raise RemoteCallFailed("activate", "HTTPStatusError")
        return ActivateResult(accepted=self.activate_accepted)


@dataclass
class InMemoryOperationLogRepository(OperationLogRepository):
    """In-memory operation log repository for tests."""

    records: list[OperationRecord] = field(default_factory=list)

    def insert_operation(self, record: OperationRecord) -> OperationRecord:
        stored = replace(record, id=str(len(self.records) + 1))
        self.records.append(stored)
        return stored

    def list_recent_operations(
        self, actor_id: int, limit: int
    ) -> list[OperationRecord]:
        own = [record for record in self.records if record.actor_id == actor_id]
        own.sort(key=lambda record: record.timestamp, reverse=True)
        return own[:limit]


@dataclass
class FailingOperationLogRepository(OperationLogRepository):
    """Repository whose backend is always down."""

    def insert_operation(self, record: OperationRecord) -> OperationRecord:
        raise RuntimeError("connection refused")

    def list_recent_operations(
        self, actor_id: int, limit: int
    ) -> list[OperationRecord]:
        raise RuntimeError("connection refused")


@dataclass
class InMemoryTraderRepository(TraderRepository):
    """In-memory trader repository for tests."""

    traders: dict[int, TraderRecord] = field(default_factory=dict)

    def get_trader(self, telegram_user_id: int) -> TraderRecord | None:
        return self.traders.get(telegram_user_id)

    def upsert_trader(self, trader: TraderRecord) -> TraderRecord:
        self.traders[trader.telegram_user_id] = trader
        return trader

    def delete_trader(self, telegram_user_id: int) -> None:
        self.traders.pop(telegram_user_id, None)

    def list_traders(self) -> list[TraderRecord]:
        return sorted(self.traders.values(), key=lambda trader: trader.added_at)


def make_trader(telegram_user_id: int, days_left: int = 10) -> TraderRecord:
    now = datetime.now(tz=UTC)
    return TraderRecord(
        telegram_user_id=telegram_user_id,
        username="@trader",
        name="Trader",
        added_at=now - timedelta(days=5),
        expires_at=now + timedelta(days=days_left),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        telegram_bot_token="test-token",
        supabase_url="https://example.supabase.co",
        supabase_service_key=TEST_SUPABASE_KEY,
        admin_token="admin-token",
        ledger_api_key="ledger-key",
        owner_telegram_id=OWNER_ID,
        display_timezone="UTC",
    )


@pytest.fixture
def telegram_client() -> FakeTelegramClient:
    return FakeTelegramClient()


@pytest.fixture
def ledger_client() -> FakeLedgerClient:
    return FakeLedgerClient()


@pytest.fixture
def operation_log_repository() -> InMemoryOperationLogRepository:
    return InMemoryOperationLogRepository()


@pytest.fixture
def trader_repository() -> InMemoryTraderRepository:
    return InMemoryTraderRepository(traders={TRADER_ID: make_trader(TRADER_ID)})


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    telegram_client: FakeTelegramClient,
    ledger_client: FakeLedgerClient,
    operation_log_repository: InMemoryOperationLogRepository,
    trader_repository: InMemoryTraderRepository,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return assemble_container(
        settings=settings,
        telegram_client=telegram_client,
        ledger_client=ledger_client,
        trader_service=TraderService(
            repository=trader_repository,
            owner_id=settings.owner_telegram_id,
            subscription_days=settings.subscription_days,
        ),
        operation_log_service=OperationLogService(
            repository=operation_log_repository,
            window=settings.operation_log_window,
            page_size=settings.operation_log_page_size,
        ),
        close_resources=close_resources,
    )
