"""
Conversation State Store
========================

Bounded in-process store for quote conversation state, backed by a
cachetools TTLCache.

Least-recently-used entries are evicted past max_entries, and entries older
than the TTL are dropped on access or by purge_expired().
"""

import threading
import time
from typing import Callable, Optional

from cachetools import TTLCache

from swiftship.config import settings
from swiftship.quoting.application import IConversationStateStore
from swiftship.quoting.domain import ConversationState
from swiftship.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class ConversationCache(TTLCache):
    """TTLCache that logs capacity evictions."""

    def popitem(self):
        key, value = super().popitem()
        logger.debug("Evicted quote conversation", extra={"conversation_key": key})
        return key, value


class ConversationStateStore(IConversationStateStore):
    """
    LRU + TTL map of conversation key to ConversationState.

    States are stored and returned as copies, so a caller only changes the
    stored state by calling save().
    """

    def __init__(
        self,
        max_entries: Optional[int] = None,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.max_entries = max_entries or settings.conversation_max_entries
        self.ttl_seconds = ttl_seconds or settings.conversation_ttl_seconds
        self._cache = ConversationCache(maxsize=self.max_entries, ttl=self.ttl_seconds, timer=clock)
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[ConversationState]:
        with self._lock:
            state = self._cache.get(key)
        return state.copy() if state is not None else None

    def save(self, key: str, state: ConversationState) -> None:
        with self._lock:
            self._cache[key] = state.copy()

    def delete(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def purge_expired(self) -> int:
        """Drop expired entries; returns how many were removed."""
        with self._lock:
            expired = self._cache.expire()

        if expired:
            logger.info("Purged idle quote conversations", extra={"count": len(expired)})
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            self._cache.expire()
            return len(self._cache)
