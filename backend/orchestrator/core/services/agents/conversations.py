# orchestrator/core/services/agents/conversations.py
"""Historique de conversation par (appelant, agent)."""

import asyncio
import contextlib
import copy
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

ConversationKey = Tuple[str, str]


def conversation_key(caller_id: Optional[str], agent_id: str) -> ConversationKey:
    return (caller_id or "anon", agent_id)


class ConversationStore:
    """
    In-memory sliding-window histories.

    Histories are created lazily, replaced wholesale on save (keeping the
    most recent `history_limit` entries) and handed out as copies. A key's
    lock lives only while the key has a history or an open session.
    """

    def __init__(self, history_limit: int = 20):
        self.history_limit = history_limit
        self._histories: Dict[ConversationKey, List[Dict[str, Any]]] = {}
        self._locks: Dict[ConversationKey, asyncio.Lock] = {}
        self._holders: Dict[ConversationKey, int] = {}

    def lock(self, key: ConversationKey) -> asyncio.Lock:
        """Per-key lock serializing turns on the same conversation."""
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    @contextlib.asynccontextmanager
    async def session(self, key: ConversationKey) -> AsyncIterator[None]:
        """Hold the key's lock for one read-modify-write of its history."""
        lock = self.lock(key)
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if not self._holders[key]:
                del self._holders[key]
                if key not in self._histories:
                    self._locks.pop(key, None)

    def get(self, key: ConversationKey) -> List[Dict[str, Any]]:
        return copy.deepcopy(self._histories.get(key, []))

    def save(self, key: ConversationKey, messages: List[Dict[str, Any]]):
        self._histories[key] = list(messages[-self.history_limit:])

    def clear(self, key: ConversationKey) -> bool:
        """Drop a history; True if one existed."""
        cleared = self._histories.pop(key, None) is not None
        if key not in self._holders:
            self._locks.pop(key, None)
        return cleared

    def __contains__(self, key: ConversationKey) -> bool:
        return key in self._histories

    def __len__(self) -> int:
        return len(self._histories)
