"""Process-local registry of conversation sessions."""

import asyncio
from dataclasses import dataclass, field

from trader_bot.domain.sessions import ConversationSession


@dataclass
class SessionRegistry:
    """Holds one mutable session per conversation id."""

    _sessions: dict[int, ConversationSession] = field(default_factory=dict)
    _locks: dict[int, asyncio.Lock] = field(default_factory=dict)

    def get(self, chat_id: int) -> ConversationSession:
        """Return the session for a conversation, creating it if absent."""
        session = self._sessions.get(chat_id)
        if session is None:
            session = ConversationSession()
            self._sessions[chat_id] = session
        return session

    def peek(self, chat_id: int) -> ConversationSession | None:
        """Return the session if one exists, without creating it."""
        return self._sessions.get(chat_id)

    def reset(self, chat_id: int) -> ConversationSession:
        """Replace the conversation's session with a fresh idle one."""
        session = ConversationSession()
        self._sessions[chat_id] = session
        return session

    def lock(self, chat_id: int) -> asyncio.Lock:
        """Return the lock serializing updates for one conversation.

        Locks outlive ``reset`` because it runs while the lock is held; like
        the sessions themselves they are bounded by the number of chats seen.
        """
        lock = self._locks.get(chat_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[chat_id] = lock
        return lock
