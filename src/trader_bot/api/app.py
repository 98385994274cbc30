"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from trader_bot.api.admin import router as admin_router
from trader_bot.api.telegram_models import (
    TelegramCallbackQuery,
    TelegramInlineQuery,
    TelegramMessage,
    TelegramUpdate,
)
from trader_bot.app_logging import configure_logging
from trader_bot.containers import AppContainer
from trader_bot.services.commands import (
    NOT_A_TRADER_TEXT,
    TraderTarget,
    build_subscription_text,
)
from trader_bot.services.dashboard import parse_logs_callback
from trader_bot.services.workflow import WorkflowAction
from trader_bot.telegram_commands import (
    CHAT_MENU_BUTTON,
    OWNER_COMMANDS,
    BotCommand,
    MenuButton,
    main_menu_keyboard,
    parse_command,
    telegram_commands,
)

logger = logging.getLogger(__name__)

_ACTIONS_BY_COMMAND = {
    BotCommand.LOOKUP.value.command: WorkflowAction.LOOKUP_PLAYER,
    BotCommand.CHECK.value.command: WorkflowAction.CHECK_CODE,
    BotCommand.ACTIVATE.value.command: WorkflowAction.ACTIVATE_CODE,
}

_ACTIONS_BY_BUTTON = {
    MenuButton.LOOKUP.value: WorkflowAction.LOOKUP_PLAYER,
    MenuButton.CHECK.value: WorkflowAction.CHECK_CODE,
    MenuButton.ACTIVATE.value: WorkflowAction.ACTIVATE_CODE,
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            await app.state.container.telegram_client.set_my_commands(
                telegram_commands()
            )
            await app.state.container.telegram_client.set_chat_menu_button(
                CHAT_MENU_BUTTON
            )
        except Exception:
            logger.exception("Failed to sync Telegram bot commands")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/telegram/webhook")
    async def telegram_webhook(
        update: TelegramUpdate, request: Request
    ) -> dict[str, str]:
        """Handle Telegram webhook updates."""
        state_container: AppContainer = request.app.state.container
        try:
            if update.inline_query:
                await _handle_inline_query(state_container, update.inline_query)
            elif update.callback_query:
                await _handle_callback_query(state_container, update.callback_query)
            elif update.message:
                await _handle_message(state_container, update.message)
        except Exception:
            logger.exception(
                "Failed to handle Telegram update",
                extra={"update_id": update.update_id},
            )
        return {"status": "ok"}

    return app


async def _handle_message(  # noqa: PLR0911
    container: AppContainer, message: TelegramMessage
) -> None:
    text = (message.text or "").strip()
    if not text or message.from_user is None:
        return
    chat_id = message.chat.id
    actor_id = message.from_user.id
    command, args = parse_command(text) or (None, "")

    if command == BotCommand.START.value.command:
        await container.start_command_handler.handle(
            telegram_user_id=actor_id, chat_id=chat_id
        )
        return
    if (
        command == BotCommand.SUBSCRIPTION.value.command
        or text == MenuButton.SUBSCRIPTION.value
    ):
        await container.telegram_client.send_message(
            chat_id=chat_id,
            text=build_subscription_text(container.settings.subscription_contact),
        )
        return
    if command == BotCommand.ACCOUNT.value.command or text == MenuButton.ACCOUNT.value:
        await container.account_command_handler.handle(
            telegram_user_id=actor_id, chat_id=chat_id
        )
        return
    if command in OWNER_COMMANDS:
        await container.trader_admin_handler.handle(
            command, actor_id, chat_id, _resolve_target(message, args)
        )
        return

    if not container.trader_service.is_authorized(actor_id):
        await container.telegram_client.send_message(
            chat_id=chat_id,
            text=(
                f"{NOT_A_TRADER_TEXT}\n\n"
                f"{build_subscription_text(container.settings.subscription_contact)}"
            ),
        )
        return

    if command == BotCommand.CANCEL.value.command:
        cancelled = await container.workflow_engine.cancel(chat_id)
        await container.telegram_client.send_message(
            chat_id=chat_id,
            text="Operation cancelled." if cancelled else "Nothing to cancel.",
            reply_markup=main_menu_keyboard(),
        )
        return
    if command == BotCommand.LOGS.value.command or text == MenuButton.LOGS.value:
        view = container.dashboard_service.summary(actor_id)
        await container.telegram_client.send_message(
            chat_id=chat_id, text=view.text, reply_markup=view.reply_markup
        )
        return

    action = _ACTIONS_BY_COMMAND.get(command or "") or _ACTIONS_BY_BUTTON.get(text)
    if action is not None:
        await container.workflow_engine.start(chat_id, action)
        return
    await container.workflow_engine.handle_text(chat_id, actor_id, text)


async def _handle_callback_query(
    container: AppContainer, callback: TelegramCallbackQuery
) -> None:
    parsed = parse_logs_callback(callback.data or "")
    if parsed is None or callback.message is None:
        await container.telegram_client.answer_callback_query(callback.id)
        return
    if not container.trader_service.is_authorized(callback.from_user.id):
        await container.telegram_client.answer_callback_query(
            callback.id, text="Not authorized.", show_alert=True
        )
        return

    await container.telegram_client.answer_callback_query(callback.id)
    kind, page = parsed
    if kind == "summary":
        view = container.dashboard_service.summary(callback.from_user.id)
    else:
        view = container.dashboard_service.detail(callback.from_user.id, kind, page)
    await container.telegram_client.edit_message_text(
        chat_id=callback.message.chat.id,
        message_id=callback.message.message_id,
        text=view.text,
        reply_markup=view.reply_markup,
    )


async def _handle_inline_query(
    container: AppContainer, inline_query: TelegramInlineQuery
) -> None:
    actor_id = inline_query.from_user.id
    if not inline_query.query.strip() or not container.trader_service.is_authorized(
        actor_id
    ):
        await container.telegram_client.answer_inline_query(
            inline_query.id, [], cache_time=5
        )
        return
    results = await container.inline_query_service.answer(actor_id, inline_query.query)
    await container.telegram_client.answer_inline_query(
        inline_query.id, results, cache_time=3
    )


def _resolve_target(message: TelegramMessage, args: str) -> TraderTarget | None:
    """Pick the command target from a replied-to message or a numeric argument."""
    replied = message.reply_to_message
    if replied is not None and replied.from_user is not None:
        user = replied.from_user
        return TraderTarget(
            telegram_user_id=user.id, username=user.handle, name=user.display_name
        )
    if args.isdigit():
        return TraderTarget(telegram_user_id=int(args))
    return None
