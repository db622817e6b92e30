# Storage - Session store

import asyncio
import threading
import time
from contextlib import suppress
from typing import Callable, Dict, Optional, Tuple

from app.core.logging import logger


class MemorySessionStore:
    """
    In-memory store for authenticated sessions.

    Sessions are opaque dictionaries keyed by session id, each with its own
    expiry. Expired sessions are never returned and are removed by a
    periodic sweep every ``check_period`` seconds once ``start()`` is called.
    """

    def __init__(self, check_period: float = 86400, clock: Callable[[], float] = time.monotonic):
        self.check_period = check_period
        self._clock = clock
        self._sessions: Dict[str, Tuple[dict, float]] = {}
        self._lock = threading.Lock()
        self._sweeper: Optional[asyncio.Task] = None

    def _is_expired(self, expires_at: float) -> bool:
        return expires_at <= self._clock()

    async def get(self, sid: str) -> Optional[dict]:
        """Get session data, or None if the session is missing or expired."""
        with self._lock:
            entry = self._sessions.get(sid)
            if entry is None:
                return None
            data, expires_at = entry
            if self._is_expired(expires_at):
                del self._sessions[sid]
                return None
            return dict(data)

    async def set(self, sid: str, data: dict, max_age: float) -> None:
        """Create or replace a session that lives for ``max_age`` seconds."""
        with self._lock:
            self._sessions[sid] = (dict(data), self._clock() + max_age)

    async def touch(self, sid: str, max_age: float) -> bool:
        """Extend a live session. Returns False if it is missing or expired."""
        with self._lock:
            entry = self._sessions.get(sid)
            if entry is None or self._is_expired(entry[1]):
                return False
            self._sessions[sid] = (entry[0], self._clock() + max_age)
            return True

    async def destroy(self, sid: str) -> bool:
        with self._lock:
            return self._sessions.pop(sid, None) is not None

    async def all(self) -> Dict[str, dict]:
        """All live sessions keyed by session id."""
        with self._lock:
            return {
                sid: dict(data)
                for sid, (data, expires_at) in self._sessions.items()
                if not self._is_expired(expires_at)
            }

    async def length(self) -> int:
        return len(await self.all())

    async def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def prune(self) -> int:
        """Remove expired sessions and return how many were removed."""
        with self._lock:
            expired = [
                sid for sid, (_, expires_at) in self._sessions.items()
                if self._is_expired(expires_at)
            ]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)

    # ============== Periodic sweep ==============

    def start(self) -> None:
        """Start the expiry sweep on the running event loop."""
        if self._sweeper is not None and not self._sweeper.done():
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep())
        logger.debug(f"Session sweep started (every {self.check_period}s)")

    async def stop(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await self._sweeper
        self._sweeper = None
        logger.debug("Session sweep stopped")

    async def _sweep(self) -> None:
        while True:
            await asyncio.sleep(self.check_period)
            removed = self.prune()
            if removed:
                logger.info(f"Pruned {removed} expired session(s)")
