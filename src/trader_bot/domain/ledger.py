"""Typed results of the remote ledger API."""

from dataclasses import dataclass
from enum import Enum


class CodeStatus(Enum):
    """Status of a redemption code as reported by the ledger."""

    ACTIVATED = "activated"
    UNACTIVATED = "unactivated"
    INVALID = "invalid"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class PlayerLookupResult:
    """Outcome of a player lookup."""

    found: bool
    player_id: str
    player_name: str | None = None


@dataclass(frozen=True)
class CodeCheckResult:
    """Outcome of a code status check.

    ``INVALID`` covers any status string the ledger returned that is not one
    of the known values; ``UNAVAILABLE`` means the API answered without
    usable data.
    """

    status: CodeStatus
    code: str
    raw_status: str | None = None
    amount: str | None = None
    activated_to: str | None = None
    activated_at: int | None = None


@dataclass(frozen=True)
class ActivateResult:
    """Outcome of an activation request."""

    accepted: bool
