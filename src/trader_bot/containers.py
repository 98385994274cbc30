"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from trader_bot.adapters.ledger_client import HttpxLedgerClient, LedgerClient
from trader_bot.adapters.supabase_operation_log_repository import (
    SupabaseOperationLogRepository,
)
from trader_bot.adapters.supabase_trader_repository import SupabaseTraderRepository
from trader_bot.adapters.telegram_client import (
    HttpxTelegramClient,
    TelegramClient,
)
from trader_bot.config import Settings
from trader_bot.services.commands import (
    AccountCommandHandler,
    StartCommandHandler,
    TraderAdminCommandHandler,
)
from trader_bot.services.dashboard import DashboardService
from trader_bot.services.inline import InlineQueryService
from trader_bot.services.operation_log import OperationLogService
from trader_bot.services.sessions import SessionRegistry
from trader_bot.services.traders import TraderService
from trader_bot.services.workflow import WorkflowEngine


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    telegram_client: TelegramClient
    ledger_client: LedgerClient
    trader_service: TraderService
    operation_log_service: OperationLogService
    session_registry: SessionRegistry
    workflow_engine: WorkflowEngine
    dashboard_service: DashboardService
    inline_query_service: InlineQueryService
    start_command_handler: StartCommandHandler
    account_command_handler: AccountCommandHandler
    trader_admin_handler: TraderAdminCommandHandler
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    telegram_client = HttpxTelegramClient.create(resolved_settings.telegram_bot_token)
    ledger_client = HttpxLedgerClient.create(
        api_key=resolved_settings.ledger_api_key,
        base_url=resolved_settings.ledger_base_url,
        timeout=resolved_settings.ledger_timeout_seconds,
    )

    async def close_resources() -> None:
        await telegram_client.close()
        await ledger_client.close()

    return assemble_container(
        settings=resolved_settings,
        telegram_client=telegram_client,
        ledger_client=ledger_client,
        trader_service=TraderService(
            repository=SupabaseTraderRepository(supabase_client),
            owner_id=resolved_settings.owner_telegram_id,
            subscription_days=resolved_settings.subscription_days,
        ),
        operation_log_service=OperationLogService(
            repository=SupabaseOperationLogRepository(supabase_client),
            window=resolved_settings.operation_log_window,
            page_size=resolved_settings.operation_log_page_size,
        ),
        close_resources=close_resources,
    )


def assemble_container(  # noqa: PLR0913
    settings: Settings,
    telegram_client: TelegramClient,
    ledger_client: LedgerClient,
    trader_service: TraderService,
    operation_log_service: OperationLogService,
    close_resources: Callable[[], Awaitable[None]],
) -> AppContainer:
    """Wire the services on top of already-built clients and repositories."""
    session_registry = SessionRegistry()
    workflow_engine = WorkflowEngine(
        ledger_client=ledger_client,
        operation_log=operation_log_service,
        sessions=session_registry,
        telegram_client=telegram_client,
        display_timezone=settings.display_timezone,
    )
    return AppContainer(
        settings=settings,
        telegram_client=telegram_client,
        ledger_client=ledger_client,
        trader_service=trader_service,
        operation_log_service=operation_log_service,
        session_registry=session_registry,
        workflow_engine=workflow_engine,
        dashboard_service=DashboardService(
            operation_log=operation_log_service,
            display_timezone=settings.display_timezone,
        ),
        inline_query_service=InlineQueryService(
            ledger_client=ledger_client,
            operation_log=operation_log_service,
        ),
        start_command_handler=StartCommandHandler(
            trader_service=trader_service,
            workflow_engine=workflow_engine,
            telegram_client=telegram_client,
            subscription_contact=settings.subscription_contact,
        ),
        account_command_handler=AccountCommandHandler(
            trader_service=trader_service,
            telegram_client=telegram_client,
            subscription_contact=settings.subscription_contact,
            display_timezone=settings.display_timezone,
        ),
        trader_admin_handler=TraderAdminCommandHandler(
            trader_service=trader_service,
            telegram_client=telegram_client,
        ),
        close_resources=close_resources,
    )
