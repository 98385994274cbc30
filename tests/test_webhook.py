"""Tests for Telegram webhook handling."""

from fastapi.testclient import TestClient

from trader_bot.api.app import create_app
from trader_bot.domain.operations import OperationRecord
from trader_bot.domain.sessions import SessionMode
from trader_bot.services.commands import NOT_A_TRADER_TEXT
from trader_bot.telegram_commands import MenuButton, telegram_commands
from tests.conftest import (
    CHAT_ID,
    OWNER_ID,
    TRADER_ID,
    FakeLedgerClient,
    FakeTelegramClient,
    InMemoryOperationLogRepository,
    InMemoryTraderRepository,
)

STRANGER_ID = 555


def _message(
    text: str,
    user_id: int = TRADER_ID,
    update_id: int = 1,
    reply_to: dict[str, object] | None = None,
) -> dict[str, object]:
    message: dict[str, object] = {
        "message_id": 10 + update_id,
        "date": 1700000000,
        "chat": {"id": CHAT_ID, "type": "private"},
        "from": {"id": user_id, "is_bot": False, "first_name": "Test"},
        "text": text,
    }
    if reply_to is not None:
        message["reply_to_message"] = reply_to
    return {"update_id": update_id, "message": message}


def _callback(data: str, user_id: int = TRADER_ID) -> dict[str, object]:
    return {
        "update_id": 50,
        "callback_query": {
            "id": "cbq-1",
            "from": {"id": user_id, "is_bot": False, "first_name": "Test"},
            "message": {
                "message_id": 31,
                "date": 1700000002,
                "chat": {"id": CHAT_ID, "type": "private"},
                "text": "📒 Your log summary:",
            },
            "data": data,
        },
    }


def _inline(query: str, user_id: int = TRADER_ID) -> dict[str, object]:
    return {
        "update_id": 60,
        "inline_query": {
            "id": "iq-1",
            "from": {"id": user_id, "is_bot": False, "first_name": "Test"},
            "query": query,
            "offset": "",
        },
    }


def test_health(container) -> None:
    client = TestClient(create_app(container))

    assert client.get("/health").json() == {"status": "ok"}


def test_webhook_start_sends_welcome_with_menu(
    container, telegram_client: FakeTelegramClient
) -> None:
    client = TestClient(create_app(container))

    response = client.post("/telegram/webhook", json=_message("/start"))

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    chat_id, text = telegram_client.messages[0]
    assert chat_id == CHAT_ID
    assert "Welcome" in text
    assert telegram_client.markups[0]["keyboard"][0] == [
        MenuButton.LOOKUP.value,
        MenuButton.CHECK.value,
    ]


def test_webhook_lookup_flow_through_menu_button(
    container,
    ledger_client: FakeLedgerClient,
    telegram_client: FakeTelegramClient,
    operation_log_repository: InMemoryOperationLogRepository,
) -> None:
    ledger_client.players["5398770941"] = "Alice"
    client = TestClient(create_app(container))

    client.post("/telegram/webhook", json=_message(MenuButton.LOOKUP.value, update_id=1))
    client.post("/telegram/webhook", json=_message("5398770941", update_id=2))

    assert "Alice" in telegram_client.texts[-1]
    assert operation_log_repository.records[0].result == "success"


def test_webhook_stranger_gets_subscription_offer(
    container,
    ledger_client: FakeLedgerClient,
    telegram_client: FakeTelegramClient,
) -> None:
    client = TestClient(create_app(container))

    client.post(
        "/telegram/webhook", json=_message(MenuButton.CHECK.value, user_id=STRANGER_ID)
    )
    client.post("/telegram/webhook", json=_message("ABC12345", user_id=STRANGER_ID))

    assert all(text.startswith(NOT_A_TRADER_TEXT) for text in telegram_client.texts)
    assert ledger_client.check_calls == []
    assert container.session_registry.peek(CHAT_ID) is None


def test_webhook_subscription_is_open_to_everyone(
    container, telegram_client: FakeTelegramClient
) -> None:
    client = TestClient(create_app(container))

    client.post("/telegram/webhook", json=_message("/subscription", user_id=STRANGER_ID))

    assert telegram_client.texts[-1].startswith("💳 Trader subscription:")


def test_webhook_account_button(
    container, telegram_client: FakeTelegramClient
) -> None:
    client = TestClient(create_app(container))

    client.post("/telegram/webhook", json=_message(MenuButton.ACCOUNT.value))

    assert telegram_client.texts[-1].startswith("👤 Trader account:")


def test_webhook_cancel(container, telegram_client: FakeTelegramClient) -> None:
    client = TestClient(create_app(container))

    client.post("/telegram/webhook", json=_message("/activate", update_id=1))
    client.post("/telegram/webhook", json=_message("/cancel", update_id=2))
    client.post("/telegram/webhook", json=_message("/cancel", update_id=3))

    assert telegram_client.texts[-2:] == ["Operation cancelled.", "Nothing to cancel."]
    assert container.session_registry.get(CHAT_ID).is_idle


def test_webhook_command_with_bot_suffix_starts_flow(container) -> None:
    client = TestClient(create_app(container))

    client.post("/telegram/webhook", json=_message("/check@TraderBot"))

    session = container.session_registry.get(CHAT_ID)
    assert session.mode is SessionMode.AWAIT_CHECK_CODE


def test_webhook_logs_sends_summary(
    container,
    telegram_client: FakeTelegramClient,
) -> None:
    container.operation_log_service.append(
        TRADER_ID, OperationRecord(kind="check", result="failed", code="X")
    )
    client = TestClient(create_app(container))

    client.post("/telegram/webhook", json=_message("/logs"))

    assert "• Code checks: 1" in telegram_client.texts[-1]
    assert "inline_keyboard" in telegram_client.markups[-1]


def test_webhook_logs_callback_edits_message(
    container, telegram_client: FakeTelegramClient
) -> None:
    container.operation_log_service.append(
        TRADER_ID, OperationRecord(kind="check", result="failed", code="XYZ")
    )
    client = TestClient(create_app(container))

    client.post("/telegram/webhook", json=_callback("logs:check:1"))

    assert telegram_client.callbacks == [("cbq-1", None)]
    chat_id, message_id, text, markup = telegram_client.edits[0]
    assert (chat_id, message_id) == (CHAT_ID, 31)
    assert "XYZ" in text
    assert markup is not None


def test_webhook_logs_callback_requires_authorization(
    container, telegram_client: FakeTelegramClient
) -> None:
    client = TestClient(create_app(container))

    client.post("/telegram/webhook", json=_callback("logs:summary", STRANGER_ID))

    assert telegram_client.callbacks == [("cbq-1", "Not authorized.")]
    assert telegram_client.edits == []


def test_webhook_unknown_callback_is_acknowledged(
    container, telegram_client: FakeTelegramClient
) -> None:
    client = TestClient(create_app(container))

    client.post("/telegram/webhook", json=_callback("something:else"))

    assert telegram_client.callbacks == [("cbq-1", None)]
    assert telegram_client.edits == []


def test_webhook_inline_query(
    container,
    ledger_client: FakeLedgerClient,
    telegram_client: FakeTelegramClient,
) -> None:
    ledger_client.players["5398770941"] = "Alice"
    client = TestClient(create_app(container))

    client.post("/telegram/webhook", json=_inline("5398770941"))
    client.post("/telegram/webhook", json=_inline("5398770941", STRANGER_ID))
    client.post("/telegram/webhook", json=_inline("   "))

    authorized, stranger, empty = telegram_client.inline_answers
    assert authorized[2] == 3
    assert authorized[1][0]["id"] == "player-5398770941"
    assert stranger == ("iq-1", [], 5)
    assert empty == ("iq-1", [], 5)
    assert ledger_client.lookup_calls == ["5398770941"]


def test_webhook_owner_adds_trader_by_reply(
    container,
    telegram_client: FakeTelegramClient,
    trader_repository: InMemoryTraderRepository,
) -> None:
    client = TestClient(create_app(container))
    replied = {
        "message_id": 5,
        "date": 1699999999,
        "chat": {"id": CHAT_ID, "type": "private"},
        "from": {
            "id": 777,
            "is_bot": False,
            "first_name": "New",
            "last_name": "Seller",
            "username": "seller",
        },
        "text": "hi",
    }

    client.post(
        "/telegram/webhook",
        json=_message("/add_trader", user_id=OWNER_ID, reply_to=replied),
    )

    trader = trader_repository.traders[777]
    assert trader.username == "@seller"
    assert trader.name == "New Seller"
    assert trader.added_by == OWNER_ID
    assert telegram_client.texts[-1].startswith("✅ Trader added.")


def test_webhook_owner_removes_trader_by_id(
    container,
    trader_repository: InMemoryTraderRepository,
) -> None:
    client = TestClient(create_app(container))

    client.post(
        "/telegram/webhook",
        json=_message(f"/remove_trader@TraderBot {TRADER_ID}", user_id=OWNER_ID),
    )

    assert TRADER_ID not in trader_repository.traders


def test_webhook_swallows_handler_errors(
    container, telegram_client: FakeTelegramClient
) -> None:
    async def broken_send(*_args, **_kwargs) -> None:  # type: ignore[no-untyped-def]
        raise RuntimeError("telegram down")

    telegram_client.send_message = broken_send  # type: ignore[method-assign]
    client = TestClient(create_app(container))

    response = client.post("/telegram/webhook", json=_message("/start"))

    assert response.status_code == 200


def test_lifespan_syncs_commands(
    container, telegram_client: FakeTelegramClient
) -> None:
    with TestClient(create_app(container)):
        pass

    assert telegram_client.commands == telegram_commands()
    assert telegram_client.menu_button == {"type": "commands"}
