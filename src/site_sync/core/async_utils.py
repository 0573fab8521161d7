"""Async utilities for running blocking filesystem work and serializing actions."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Hashable
from typing import Any, Callable, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    Used for the copy/remove steps of a publish pipeline, so a cancelled
    action stops at the next await point instead of in the middle of the
    event loop.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Example:
        await run_sync(ensure_sync_dir_empty, staging_root)
    """
    return await asyncio.to_thread(func, *args, **kwargs)


class KeyedLocks:
    """One ``asyncio.Lock`` per key, created on first use.

    The publish pipeline empties and refills per-site directories, so two
    actions for the same key must never interleave.  Locks for different
    keys are independent.  A lock taken through ``hold()`` is dropped once
    its last holder or waiter leaves, so the map only contains keys with
    an action in flight.
    """

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    def get(self, key: Hashable) -> asyncio.Lock:
        """Return the lock for *key*, creating it if needed."""
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
            logger.debug("Created action lock for %s", key)
        return lock

    @contextlib.asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[asyncio.Lock]:
        """Acquire the lock for *key*; forget it when nobody else wants it."""
        lock = self.get(key)
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield lock
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                self._locks.pop(key, None)
                logger.debug("Released action lock for %s", key)

    def is_locked(self, key: Hashable) -> bool:
        """Return ``True`` while an action holds the lock for *key*."""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
