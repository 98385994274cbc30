"""Domain models for conversation sessions."""

from dataclasses import dataclass, field
from enum import Enum


class SessionMode(Enum):
    """States of the conversation workflow."""

    IDLE = "IDLE"
    AWAIT_PLAYER_LOOKUP_ID = "AWAIT_PLAYER_LOOKUP_ID"
    AWAIT_CHECK_CODE = "AWAIT_CHECK_CODE"
    AWAIT_ACTIVATE_PLAYER_ID = "AWAIT_ACTIVATE_PLAYER_ID"
    AWAIT_ACTIVATE_CODE = "AWAIT_ACTIVATE_CODE"


@dataclass
class ConversationSession:
    """Mutable per-conversation state."""

    mode: SessionMode = SessionMode.IDLE
    temp: dict[str, object] = field(default_factory=dict)

    @property
    def is_idle(self) -> bool:
        return self.mode is SessionMode.IDLE
