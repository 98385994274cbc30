"""Conversation state machine for player lookups, code checks and activations."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from trader_bot.adapters.ledger_client import LedgerClient
from trader_bot.adapters.telegram_client import TelegramClient
from trader_bot.domain import operations
from trader_bot.domain.errors import (
    DomainRejected,
    InputValidationError,
    RemoteCallFailed,
    StorageUnavailable,
)
from trader_bot.domain.ledger import CodeCheckResult, CodeStatus
from trader_bot.domain.operations import OperationRecord
from trader_bot.domain.sessions import ConversationSession, SessionMode
from trader_bot.services.formatting import format_timestamp, or_dash
from trader_bot.services.operation_log import OperationLogService
from trader_bot.services.sessions import SessionRegistry
from trader_bot.telegram_commands import main_menu_keyboard

logger = logging.getLogger(__name__)

UNKNOWN_PLAYER_NAME = "-"

MAIN_MENU_TEXT = "Choose an operation from the menu:"


class WorkflowAction(Enum):
    """User-selectable actions that start a flow from IDLE."""

    LOOKUP_PLAYER = "lookup_player"
    CHECK_CODE = "check_code"
    ACTIVATE_CODE = "activate_code"


_ENTRY_STATES = {
    WorkflowAction.LOOKUP_PLAYER: (
        SessionMode.AWAIT_PLAYER_LOOKUP_ID,
        "Send the player id (digits only) to look up the name.",
    ),
    WorkflowAction.CHECK_CODE: (
        SessionMode.AWAIT_CHECK_CODE,
        "Send the UC code to check (the full code, no extra spaces).",
    ),
    WorkflowAction.ACTIVATE_CODE: (
        SessionMode.AWAIT_ACTIVATE_PLAYER_ID,
        "Send the id of the player to activate the code for (digits only).",
    ),
}


@dataclass
class WorkflowEngine:
    """Drives multi-step exchanges for one conversation at a time.

    Every terminal outcome sends a single reply carrying the main menu,
    appends one operation record and resets the session to IDLE. Input
    validation failures keep the current state.
    """

    ledger_client: LedgerClient
    operation_log: OperationLogService
    sessions: SessionRegistry
    telegram_client: TelegramClient
    display_timezone: str = "UTC"

    async def start(self, chat_id: int, action: WorkflowAction) -> None:
        """Enter the awaiting state for an action and prompt for input."""
        async with self.sessions.lock(chat_id):
            mode, prompt = _ENTRY_STATES[action]
            session = self.sessions.reset(chat_id)
            session.mode = mode
            await self.telegram_client.send_message(chat_id=chat_id, text=prompt)

    async def cancel(self, chat_id: int) -> bool:
        """Reset the conversation; return whether a flow was in progress."""
        async with self.sessions.lock(chat_id):
            current = self.sessions.peek(chat_id)
            self.sessions.reset(chat_id)
            return current is not None and not current.is_idle

    async def show_main_menu(self, chat_id: int) -> None:
        await self.telegram_client.send_message(
            chat_id=chat_id, text=MAIN_MENU_TEXT, reply_markup=main_menu_keyboard()
        )

    async def handle_text(self, chat_id: int, actor_id: int, text: str) -> None:
        """Consume a free-text reply according to the conversation's state."""
        async with self.sessions.lock(chat_id):
            session = self.sessions.get(chat_id)
            try:
                await self._dispatch(chat_id, actor_id, session, text.strip())
            except Exception:
                # any failure past input validation ends the flow
                self.sessions.reset(chat_id)
                raise

    async def _dispatch(
        self,
        chat_id: int,
        actor_id: int,
        session: ConversationSession,
        text: str,
    ) -> None:
        if session.mode is SessionMode.AWAIT_PLAYER_LOOKUP_ID:
            await self._handle_lookup_id(chat_id, actor_id, text)
        elif session.mode is SessionMode.AWAIT_CHECK_CODE:
            await self._handle_check_code(chat_id, actor_id, text)
        elif session.mode is SessionMode.AWAIT_ACTIVATE_PLAYER_ID:
            await self._handle_activate_player_id(chat_id, session, text)
        elif (
            session.mode is SessionMode.AWAIT_ACTIVATE_CODE
            and session.temp.get("player_id")
        ):
            await self._handle_activate_code(chat_id, actor_id, session, text)
        else:
            self.sessions.reset(chat_id)
            await self.show_main_menu(chat_id)

    async def _handle_lookup_id(self, chat_id: int, actor_id: int, text: str) -> None:
        try:
            player_id = parse_player_id(text)
        except InputValidationError as exc:
            await self.telegram_client.send_message(chat_id=chat_id, text=exc.message)
            return

        await self._notify(chat_id, "⏳ Looking up the player...")
        try:
            lookup = await self.ledger_client.lookup_player(player_id)
        except RemoteCallFailed as exc:
            logger.warning("Player lookup failed", extra={"label": exc.label})
            reply = "❌ Something went wrong while looking up the player. Try later."
            record = OperationRecord(
                kind=operations.PLAYER, result="error", player_id=player_id
            )
        else:
            if lookup.found:
                reply = format_player_card(lookup.player_id, lookup.player_name)
                record = OperationRecord(
                    kind=operations.PLAYER,
                    result="success",
                    player_id=lookup.player_id,
                    player_name=lookup.player_name,
                )
            else:
                reply = "⚠️ Player not found.\nCheck the id and try again."
                record = OperationRecord(
                    kind=operations.PLAYER, result="not_found", player_id=player_id
                )
        await self._finish(chat_id, actor_id, reply, record)

    async def _handle_check_code(self, chat_id: int, actor_id: int, text: str) -> None:
        try:
            code = parse_code(text)
        except InputValidationError as exc:
            await self.telegram_client.send_message(chat_id=chat_id, text=exc.message)
            return

        await self._notify(chat_id, "⏳ Checking the code...")
        try:
            check = await self.ledger_client.check_code(code)
        except RemoteCallFailed as exc:
            logger.warning("Code check failed", extra={"label": exc.label})
            reply = "❌ Something went wrong while checking the code. Try later."
            record = OperationRecord(kind=operations.CHECK, result="error", code=code)
        else:
            reply, record = self._describe_check(check)
        await self._finish(chat_id, actor_id, reply, record)

    def _describe_check(
        self, check: CodeCheckResult
    ) -> tuple[str, OperationRecord]:
        checked_at = format_timestamp(datetime.now(tz=UTC), self.display_timezone)
        if check.status is CodeStatus.ACTIVATED:
            reply = (
                "✅ Code is activated\n"
                f"• Code: {check.code}\n"
                f"• Amount: {or_dash(check.amount)} UC\n"
                f"• Activated to id: {or_dash(check.activated_to)}\n"
                "• Activated at: "
                f"{format_timestamp(check.activated_at, self.display_timezone)}\n"
                f"• Checked at: {checked_at}"
            )
            record = OperationRecord(
                kind=operations.CHECK,
                result="activated",
                code=check.code,
                amount=check.amount,
                activated_to=check.activated_to,
                activated_at=check.activated_at,
            )
        elif check.status is CodeStatus.UNACTIVATED:
            reply = (
                "ℹ️ Code is not activated\n"
                f"• Code: {check.code}\n"
                f"• Amount: {or_dash(check.amount)} UC\n"
                f"• Checked at: {checked_at}"
            )
            record = OperationRecord(
                kind=operations.CHECK,
                result="unactivated",
                code=check.code,
                amount=check.amount,
            )
        elif check.status is CodeStatus.INVALID:
            reply = (
                "❌ Code status: invalid\n"
                f"• Code: {check.code}\n"
                f"• Checked at: {checked_at}"
            )
            record = OperationRecord(
                kind=operations.CHECK, result="failed", code=check.code
            )
        else:
            reply = "❌ Could not check the code right now. Try again later."
            record = OperationRecord(
                kind=operations.CHECK, result="error", code=check.code
            )
        return reply, record

    async def _handle_activate_player_id(
        self, chat_id: int, session: ConversationSession, text: str
    ) -> None:
        try:
            player_id = parse_player_id(text)
        except InputValidationError as exc:
            await self.telegram_client.send_message(chat_id=chat_id, text=exc.message)
            return

        session.temp = {"player_id": player_id}
        session.mode = SessionMode.AWAIT_ACTIVATE_CODE
        await self._notify(chat_id, "⏳ Looking up the player...")
        try:
            lookup = await self.ledger_client.lookup_player(player_id)
        except RemoteCallFailed as exc:
            logger.warning(
                "Player lookup before activation failed", extra={"label": exc.label}
            )
            reply = (
                "⚠️ Could not resolve the player name, but you can continue.\n"
                "Send the UC code to activate."
            )
        else:
            if lookup.found:
                session.temp["player_name"] = lookup.player_name
                reply = (
                    f"{format_player_card(lookup.player_id, lookup.player_name)}\n\n"
                    "Send the UC code to activate for this player."
                )
            else:
                reply = (
                    "⚠️ Player not found, but you can send the code and the "
                    "activation will be attempted on this id.\n"
                    "Send the UC code to activate for this player."
                )
        await self.telegram_client.send_message(chat_id=chat_id, text=reply)

    async def _handle_activate_code(
        self,
        chat_id: int,
        actor_id: int,
        session: ConversationSession,
        text: str,
    ) -> None:
        try:
            code = parse_code(text)
        except InputValidationError as exc:
            await self.telegram_client.send_message(chat_id=chat_id, text=exc.message)
            return

        player_id = str(session.temp["player_id"])
        player_name = str(session.temp.get("player_name") or UNKNOWN_PLAYER_NAME)

        await self._notify(
            chat_id, "⏳ Verifying the code status before activation..."
        )
        try:
            await self._check_before_activate(code)
        except DomainRejected as rejected:
            reply = self._rejection_text(rejected, player_id, player_name, code)
            check = rejected.check
            record = OperationRecord(
                kind=operations.ACTIVATE,
                result=rejected.result,
                player_id=player_id,
                player_name=player_name,
                code=check.code if check else code,
                activated_to=check.activated_to if check else None,
                activated_at=check.activated_at if check else None,
            )
            await self._finish(chat_id, actor_id, reply, record)
            return

        await self._notify(chat_id, "⏳ Activating the code...")
        try:
            outcome = await self.ledger_client.activate_code(player_id, code)
        except RemoteCallFailed as exc:
            logger.warning("Code activation failed", extra={"label": exc.label})
            reply = "❌ Something went wrong while activating the code. Try later."
            result = "error"
        else:
            headline = (
                "✅ Code activated successfully"
                if outcome.accepted
                else "❌ Failed to activate the code"
            )
            reply = (
                f"{headline}\n{format_player_card(player_id, player_name)}\n\n"
                f"• Code: {code}"
            )
            result = "success" if outcome.accepted else "failed"
        record = OperationRecord(
            kind=operations.ACTIVATE,
            result=result,
            player_id=player_id,
            player_name=player_name,
            code=code,
        )
        await self._finish(chat_id, actor_id, reply, record)

    async def _check_before_activate(self, code: str) -> CodeCheckResult:
        """Check the code and raise ``DomainRejected`` unless it is unactivated.

        The ledger has no atomic activate-if-unactivated call, so a code can
        still be redeemed elsewhere between this check and the activation.
        """
        try:
            check = await self.ledger_client.check_code(code)
        except RemoteCallFailed as exc:
            logger.warning("Pre-activation check failed", extra={"label": exc.label})
            raise DomainRejected("check_error") from exc
        if check.status is CodeStatus.UNAVAILABLE:
            raise DomainRejected("check_error", check)
        if check.status is CodeStatus.ACTIVATED:
            raise DomainRejected("already_activated", check)
        if check.status is not CodeStatus.UNACTIVATED:
            raise DomainRejected("invalid_before_activate", check)
        return check

    def _rejection_text(
        self,
        rejected: DomainRejected,
        player_id: str,
        player_name: str,
        code: str,
    ) -> str:
        check = rejected.check
        if rejected.result == "already_activated" and check is not None:
            return (
                "⚠️ The code was already activated\n"
                f"{format_player_card(player_id, player_name)}\n\n"
                f"• Code: {check.code}\n"
                f"• Activated to id: {or_dash(check.activated_to)}\n"
                "• Activated at: "
                f"{format_timestamp(check.activated_at, self.display_timezone)}"
            )
        if rejected.result == "invalid_before_activate" and check is not None:
            return f"❌ This code cannot be activated\n• Code: {check.code}"
        return (
            "❌ Could not check the code before activation. Try later.\n"
            f"• Code: {code}"
        )

    async def _notify(self, chat_id: int, text: str) -> None:
        await self.telegram_client.send_message(chat_id=chat_id, text=text)

    async def _finish(
        self, chat_id: int, actor_id: int, reply: str, record: OperationRecord
    ) -> None:
        self.sessions.reset(chat_id)
        self._record(actor_id, record)
        await self.telegram_client.send_message(
            chat_id=chat_id, text=reply, reply_markup=main_menu_keyboard()
        )

    def _record(self, actor_id: int, record: OperationRecord) -> None:
        try:
            self.operation_log.append(actor_id, record)
        except StorageUnavailable:
            logger.warning(
                "Skipping operation record",
                extra={"actor_id": actor_id, "kind": record.kind},
            )


def parse_player_id(text: str) -> str:
    """Return the player id when the text is all digits."""
    value = text.strip()
    if not value.isdigit() or not value.isascii():
        raise InputValidationError(
            "⚠️ Invalid id.\nSend digits only, without spaces."
        )
    return value


def parse_code(text: str) -> str:
    """Return the code when the text is non-empty."""
    value = text.strip()
    if not value:
        raise InputValidationError("⚠️ Send the code as text.")
    return value


def format_player_card(player_id: str, player_name: str | None) -> str:
    return f"👤 Player:\n• ID: {player_id}\n• Name: {or_dash(player_name)}"
