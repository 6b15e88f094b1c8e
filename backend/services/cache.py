import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from config import logger
from models.verdicts import CacheEntry, Verdict


class SessionVerdictCache:
    """
    Verdicts computed within one logical session, keyed by claim fingerprint.

    Callers hold ``lock_for(fingerprint)`` across the get/analyze/put sequence
    so that concurrent requests for the same text coalesce onto one analysis.
    Different fingerprints never share a lock.
    """

    def __init__(self, session_id: str):
        self.session_id = session_id
        self._entries: Dict[str, CacheEntry] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    def get(self, fingerprint: str) -> Optional[Verdict]:
        entry = self._entries.get(fingerprint)
        if entry is None:
            return None
        return entry.verdict.model_copy(deep=True)

    def put(self, fingerprint: str, verdict: Verdict) -> None:
        self._entries[fingerprint] = CacheEntry(fingerprint=fingerprint, verdict=verdict.model_copy(deep=True))

    def entry(self, fingerprint: str) -> Optional[CacheEntry]:
        return self._entries.get(fingerprint)

    @asynccontextmanager
    async def lock_for(self, fingerprint: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(fingerprint, asyncio.Lock())
        self._lock_users[fingerprint] = self._lock_users.get(fingerprint, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[fingerprint] -= 1
            if self._lock_users[fingerprint] == 0:
                del self._lock_users[fingerprint]
                del self._locks[fingerprint]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, fingerprint: str) -> bool:
        return fingerprint in self._entries


class SessionRegistry:
    """Owns one SessionVerdictCache per caller-supplied session id."""

    def __init__(self):
        self._sessions: Dict[str, SessionVerdictCache] = {}

    def session(self, session_id: str) -> SessionVerdictCache:
        cache = self._sessions.get(session_id)
        if cache is None:
            cache = SessionVerdictCache(session_id)
            self._sessions[session_id] = cache
            logger.info("Opened verdict session.", extra={"session_id": session_id})
        return cache

    def end_session(self, session_id: str) -> bool:
        cache = self._sessions.pop(session_id, None)
        if cache is None:
            return False
        logger.info(
            "Closed verdict session.",
            extra={"session_id": session_id, "cached_verdicts": len(cache)}
        )
        cache.clear()
        return True

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
