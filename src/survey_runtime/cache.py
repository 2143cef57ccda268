"""SessionCache: bounded in-memory store of live sessions.

The cache is an optimisation, never the source of truth: a miss (expired,
evicted, or after a restart) makes the engine rebuild the session from the
durable answer log.  Entries expire after ``ttl_seconds`` without access
(sliding TTL), and the least recently used entry is dropped once
``max_size`` is exceeded.

The cache also hands out one ``asyncio.Lock`` per session id so that the
engine can serialise concurrent operations on the same session within one
process.  Locks are held in a weak-value map and disappear once no
coroutine references them.
"""

from __future__ import annotations

import asyncio
import logging
import time
import weakref
from collections import OrderedDict
from typing import Callable

from survey_runtime.constants import SESSION_CACHE_MAX_SIZE, SESSION_CACHE_TTL_SECONDS
from survey_runtime.models.session import RuntimeSession

logger = logging.getLogger(__name__)


class SessionCache:
    """LRU + sliding-TTL cache of ``RuntimeSession`` objects keyed by session id.

    Args:
        ttl_seconds: idle lifetime of an entry; 0 disables expiry
        max_size: maximum number of entries; 0 disables the bound
        clock: monotonic time source, injectable for tests
    """

    def __init__(
        self,
        ttl_seconds: float = SESSION_CACHE_TTL_SECONDS,
        max_size: int = SESSION_CACHE_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._max_size = max_size
        self._clock = clock
        # session_id → (session, last access time); order is LRU → MRU
        self._entries: OrderedDict[str, tuple[RuntimeSession, float]] = OrderedDict()
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def get(self, session_id: str) -> RuntimeSession | None:
        """Return the cached session, refreshing its TTL, or None on a miss."""
        entry = self._entries.get(session_id)
        if entry is None:
            return None
        session, touched = entry
        now = self._clock()
        if self._ttl and now - touched > self._ttl:
            logger.debug("Session cache entry expired: session_id=%s", session_id)
            del self._entries[session_id]
            return None
        self._entries[session_id] = (session, now)
        self._entries.move_to_end(session_id)
        return session

    def put(self, session: RuntimeSession) -> None:
        """Insert or replace ``session``, evicting the LRU entry when full."""
        self._entries[session.session_id] = (session, self._clock())
        self._entries.move_to_end(session.session_id)
        if self._max_size:
            while len(self._entries) > self._max_size:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Session cache full, evicted session_id=%s", evicted)

    def evict(self, session_id: str) -> None:
        """Drop ``session_id``; a no-op when absent."""
        self._entries.pop(session_id, None)

    def clear(self) -> None:
        self._entries.clear()

    def lock(self, session_id: str) -> asyncio.Lock:
        """Return the lock serialising operations on ``session_id``."""
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._entries
