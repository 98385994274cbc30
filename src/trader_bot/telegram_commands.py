"""Telegram bot command and menu configuration."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class TelegramCommand:
    """Declarative bot command definition."""

    command: str
    description: str


class BotCommand(Enum):
    """Enum of bot commands (single source of truth)."""

    START = TelegramCommand("start", "Main menu")
    LOOKUP = TelegramCommand("lookup", "Look up a player by id")
    CHECK = TelegramCommand("check", "Check a UC code")
    ACTIVATE = TelegramCommand("activate", "Activate a UC code for a player")
    LOGS = TelegramCommand("logs", "Your operation log")
    ACCOUNT = TelegramCommand("account", "Your trader account")
    SUBSCRIPTION = TelegramCommand("subscription", "Subscription details")
    CANCEL = TelegramCommand("cancel", "Cancel the current operation")


class MenuButton(Enum):
    """Reply keyboard buttons of the main menu."""

    LOOKUP = "🎮 Player lookup"
    CHECK = "🧪 Check code"
    ACTIVATE = "⚡ Activate code"
    LOGS = "📒 My log"
    ACCOUNT = "👤 My account"
    SUBSCRIPTION = "💳 Subscription"


# Owner-only commands, intentionally hidden from the command list.
OWNER_COMMANDS = frozenset({"add_trader", "remove_trader", "traders"})


def telegram_commands() -> list[dict[str, str]]:
    """Return commands formatted for Telegram API."""
    return [
        {"command": entry.value.command, "description": entry.value.description}
        for entry in BotCommand
    ]


def main_menu_keyboard() -> dict:
    """Build the persistent reply keyboard with the main menu."""
    return {
        "keyboard": [
            [MenuButton.LOOKUP.value, MenuButton.CHECK.value],
            [MenuButton.ACTIVATE.value, MenuButton.LOGS.value],
            [MenuButton.ACCOUNT.value, MenuButton.SUBSCRIPTION.value],
        ],
        "resize_keyboard": True,
        "one_time_keyboard": False,
    }


def parse_command(text: str) -> tuple[str, str] | None:
    """Split ``/command@bot args`` into the command name and its arguments."""
    if not text.startswith("/"):
        return None
    head, _, args = text[1:].partition(" ")
    name = head.split("@", maxsplit=1)[0].lower()
    if not name:
        return None
    return name, args.strip()


CHAT_MENU_BUTTON: dict[str, object] = {"type": "commands"}
