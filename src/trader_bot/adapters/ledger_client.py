"""Remote redemption ledger API client."""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from trader_bot.domain.errors import RemoteCallFailed
from trader_bot.domain.ledger import (
    ActivateResult,
    CodeCheckResult,
    CodeStatus,
    PlayerLookupResult,
)

logger = logging.getLogger(__name__)

_KNOWN_STATUSES = {
    CodeStatus.ACTIVATED.value: CodeStatus.ACTIVATED,
    CodeStatus.UNACTIVATED.value: CodeStatus.UNACTIVATED,
}


class LedgerClient(Protocol):
    """Interface for the external lookup, check and activate calls."""

    async def lookup_player(self, player_id: str) -> PlayerLookupResult:
        """Resolve a numeric player id to a player name."""

    async def check_code(self, code: str) -> CodeCheckResult:
        """Return the current status of a redemption code."""

    async def activate_code(self, player_id: str, code: str) -> ActivateResult:
        """Redeem a code against a player account."""


@dataclass
class HttpxLedgerClient(LedgerClient):
    """Ledger client implemented with httpx."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 15.0

    @classmethod
    def create(
        cls, api_key: str, base_url: str, timeout: float = 15.0
    ) -> "HttpxLedgerClient":
        """Create a ledger client with a managed httpx session."""
        return cls(
            api_key=api_key,
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def lookup_player(self, player_id: str) -> PlayerLookupResult:
        """Look up a player using the getPlayer endpoint."""
        payload = await self._post(
            "/getPlayer", {"player_id": int(player_id)}, "getPlayer"
        )
        return _parse_lookup(player_id, payload)

    async def check_code(self, code: str) -> CodeCheckResult:
        """Check a code using the checkCode endpoint."""
        payload = await self._post(
            "/checkCode", {"uc_code": code, "show_time": True}, "checkCode"
        )
        return _parse_check(code, payload)

    async def activate_code(self, player_id: str, code: str) -> ActivateResult:
        """Activate a code using the activate endpoint."""
        payload = await self._post(
            "/activate",
            {"player_id": int(player_id), "uc_code": code},
            "activate",
        )
        return ActivateResult(accepted=bool(payload.get("success")))

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _post(
        self, endpoint: str, body: dict[str, object], label: str
    ) -> dict[str, object]:
        url = f"{self.base_url}{endpoint}"
        logger.info("Calling ledger API", extra={"label": label, "url": url})
        try:
            response = await self.http_client.post(
                url,
                json=body,
                headers={"X-Api-Key": self.api_key, "Accept": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise RemoteCallFailed(label, type(exc).__name__) from exc
        except ValueError as exc:
            raise RemoteCallFailed(label, "invalid JSON") from exc
        if not isinstance(payload, dict):
            raise RemoteCallFailed(label, "unexpected payload")
        return payload


def _parse_lookup(player_id: str, payload: dict[str, object]) -> PlayerLookupResult:
    data = payload.get("data")
    if (
        not payload.get("success")
        or not isinstance(data, dict)
        or data.get("status") != "success"
    ):
        return PlayerLookupResult(found=False, player_id=player_id)
    return PlayerLookupResult(
        found=True,
        player_id=str(data.get("player_id") or player_id),
        player_name=_optional_str(data.get("player_name")),
    )


def _parse_check(code: str, payload: dict[str, object]) -> CodeCheckResult:
    data = payload.get("data")
    if not payload.get("success") or not isinstance(data, dict):
        return CodeCheckResult(status=CodeStatus.UNAVAILABLE, code=code)
    raw_status = str(data.get("status") or "").lower()
    return CodeCheckResult(
        status=_KNOWN_STATUSES.get(raw_status, CodeStatus.INVALID),
        code=_optional_str(data.get("uc_code")) or code,
        raw_status=raw_status or None,
        amount=_optional_str(data.get("amount")),
        activated_to=_optional_str(data.get("activated_to")),
        activated_at=_optional_int(data.get("activated_at")),
    )


def _optional_str(value: object) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _optional_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None
