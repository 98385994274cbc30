"""Command handlers for Telegram updates."""

from dataclasses import dataclass
from datetime import UTC, datetime

from trader_bot.adapters.telegram_client import TelegramClient
from trader_bot.domain.traders import TraderRecord
from trader_bot.services.formatting import format_timestamp
from trader_bot.services.traders import TraderService
from trader_bot.services.workflow import WorkflowEngine
from trader_bot.telegram_commands import main_menu_keyboard

NOT_A_TRADER_TEXT = (
    "⚠️ This bot is for registered PUBG top-up traders only.\n\n"
    "You can see the menu, but using its features needs a trader subscription."
)


def build_subscription_text(contact: str) -> str:
    """Return the subscription offer shown to everyone."""
    return (
        "💳 Trader subscription:\n\n"
        "• 49 SAR / month, one trader\n"
        "  Includes:\n"
        "  – Player lookups by id\n"
        "  – UC code checks\n"
        "  – Code activation on customer accounts\n"
        "  – Your operation log inside the bot\n\n"
        f"To subscribe, message the bot owner on Telegram: {contact}"
    )


@dataclass
class StartCommandHandler:
    """Handle the /start Telegram command."""

    trader_service: TraderService
    workflow_engine: WorkflowEngine
    telegram_client: TelegramClient
    subscription_contact: str

    async def handle(self, telegram_user_id: int, chat_id: int) -> None:
        """Reset the conversation and send the welcome text with the menu."""
        await self.workflow_engine.cancel(chat_id)
        if not self.trader_service.is_authorized(telegram_user_id):
            text = (
                f"{NOT_A_TRADER_TEXT}\n\n"
                f"{build_subscription_text(self.subscription_contact)}"
            )
        else:
            text = (
                "Welcome to the PUBG trader bot 💳\n\n"
                "With this bot you can:\n"
                "• Look up a player name by id.\n"
                "• Check UC codes and their status.\n"
                "• Activate UC codes on customer accounts.\n"
                "• Review your operation log.\n\n"
                "Pick an operation from the buttons below."
            )
        await self.telegram_client.send_message(
            chat_id=chat_id, text=text, reply_markup=main_menu_keyboard()
        )


@dataclass
class AccountCommandHandler:
    """Handle the /account command and the account button."""

    trader_service: TraderService
    telegram_client: TelegramClient
    subscription_contact: str
    display_timezone: str = "UTC"

    async def handle(self, telegram_user_id: int, chat_id: int) -> None:
        """Send the trader's subscription status."""
        account = self.trader_service.get_account(telegram_user_id)
        if account is None:
            await self.telegram_client.send_message(
                chat_id=chat_id,
                text=(
                    "You are not registered as a trader.\n\n"
                    f"{build_subscription_text(self.subscription_contact)}"
                ),
            )
            return

        trader = account.trader
        status = "✅ Subscribed" if account.is_active else "❌ Subscription expired"
        lines = ["👤 Trader account:", "", f"• ID: {trader.telegram_user_id}"]
        if trader.username:
            lines.append(f"• Username: {trader.username}")
        if trader.name:
            lines.append(f"• Name: {trader.name}")
        lines.extend(
            [
                "",
                f"• Status: {status}",
                "• Registered: "
                f"{format_timestamp(trader.added_at, self.display_timezone)}",
                "• Expires: "
                f"{format_timestamp(trader.expires_at, self.display_timezone)}",
            ]
        )
        if account.is_active and trader.expires_at is not None:
            lines.append(f"• Days left: about {account.days_left}")
        await self.telegram_client.send_message(chat_id=chat_id, text="\n".join(lines))


@dataclass(frozen=True)
class TraderTarget:
    """The user an owner command refers to."""

    telegram_user_id: int
    username: str | None = None
    name: str | None = None


@dataclass
class TraderAdminCommandHandler:
    """Owner-only commands: /add_trader, /remove_trader and /traders."""

    trader_service: TraderService
    telegram_client: TelegramClient

    async def handle(
        self,
        command: str,
        actor_id: int,
        chat_id: int,
        target: TraderTarget | None,
    ) -> None:
        """Run an owner command, refusing everyone but the owner."""
        if not self.trader_service.is_owner(actor_id):
            await self.telegram_client.send_message(
                chat_id=chat_id, text="❌ This command is for the bot owner only."
            )
            return
        if command == "traders":
            await self.telegram_client.send_message(
                chat_id=chat_id,
                text=_format_trader_list(self.trader_service.list_traders()),
            )
            return
        if target is None:
            await self.telegram_client.send_message(
                chat_id=chat_id,
                text=(
                    f"⚠️ Usage:\n• reply to the trader's message with /{command}\n"
                    f"• or pass an id: /{command} 123456789"
                ),
            )
            return
        if command == "add_trader":
            trader = self.trader_service.add_trader(
                target.telegram_user_id,
                username=target.username,
                name=target.name,
                added_by=actor_id,
            )
            lines = ["✅ Trader added.", f"• ID: {trader.telegram_user_id}"]
            if trader.username:
                lines.append(f"• Username: {trader.username}")
            if trader.name:
                lines.append(f"• Name: {trader.name}")
            lines.append(
                f"• Expires in: {self.trader_service.subscription_days} days"
            )
            text = "\n".join(lines)
        elif self.trader_service.remove_trader(target.telegram_user_id):
            text = f"✅ Trader removed.\n• ID: {target.telegram_user_id}"
        else:
            text = "ℹ️ This id is not in the trader list."
        await self.telegram_client.send_message(chat_id=chat_id, text=text)


def _format_trader_list(traders: list[TraderRecord]) -> str:
    if not traders:
        return "No traders registered yet."
    now = datetime.now(tz=UTC)
    lines = [f"📋 Traders ({len(traders)}):", ""]
    for trader in traders:
        parts = [f"• ID: {trader.telegram_user_id}"]
        if trader.username:
            parts.append(trader.username)
        if trader.name:
            parts.append(trader.name)
        parts.append("✅ active" if trader.is_active(now) else "❌ expired")
        lines.append(" | ".join(parts))
    return "\n".join(lines)
