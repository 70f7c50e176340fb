"""In-process serialization points keyed by resource ("club:7", "user:abc").

Each request handler that mutates shared state takes the keys it touches
before opening its database transaction. Keys are always acquired in sorted
order so two writers can never wait on each other in a cycle. Row locks
(SELECT ... FOR UPDATE) still guard against writers in other processes.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from src.cs_common.errors import ConflictError

logger = logging.getLogger(__name__)


def club_key(club_id: int) -> str:
    return f"club:{club_id}"


def user_key(user_id: str) -> str:
    return f"user:{user_id}"


def fixture_key(fixture_id: int) -> str:
    return f"fixture:{fixture_id}"


class KeyedLockRegistry:
    """Per-key asyncio locks that exist only while some task holds or waits on them.

    Keys are unbounded (one per user), so each entry carries a count of the
    tasks that checked it out and is dropped when the last one checks it in.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def is_locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def acquire(self, *keys: str, timeout: float) -> AsyncIterator[None]:
        """Hold every lock in ``keys`` for the body; ConflictError if not all
        of them could be taken within ``timeout`` seconds."""
        ordered = sorted(set(keys))
        # Checked out before waiting, so a lock with waiters is never dropped.
        locks = [self._checkout(key) for key in ordered]
        held: list[asyncio.Lock] = []
        try:
            try:
                async with asyncio.timeout(timeout):
                    for lock in locks:
                        await lock.acquire()
                        held.append(lock)
            except TimeoutError as exc:
                logger.warning("Lock wait exceeded %.2fs for %s", timeout, ordered)
                raise ConflictError() from exc
            yield
        finally:
            _release(held)
            for key in ordered:
                self._checkin(key)

    def _checkout(self, key: str) -> asyncio.Lock:
        self._users[key] = self._users.get(key, 0) + 1
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def _checkin(self, key: str) -> None:
        remaining = self._users[key] - 1
        if remaining:
            self._users[key] = remaining
        else:
            del self._users[key]
            del self._locks[key]


def _release(held: list[asyncio.Lock]) -> None:
    for lock in reversed(held):
        lock.release()


_registry: KeyedLockRegistry | None = None


def get_lock_registry() -> KeyedLockRegistry:
    """Process-wide registry shared by trades, settlements and wallet credits."""
    global _registry  # noqa: PLW0603
    if _registry is None:
        _registry = KeyedLockRegistry()
    return _registry
