"""Mutex registry — one asyncio lock per shared-set name.

The registry is owned explicitly by whoever builds the mutators (usually
the engine) instead of living in module state. Entries are created lazily
and never removed, so memory grows with the number of distinct set names
touched, not with call volume.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)


class MutexRegistry:
    """Lazily created per-name locks.

    Look-up-or-create is atomic: exactly one lock instance exists per name
    for the lifetime of the registry.

    Example:
        >>> registry = MutexRegistry()
        >>> async with registry.hold("products"):
        ...     ...  # read-modify-write the "products" set
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._guard = threading.Lock()

    def get(self, name: str) -> asyncio.Lock:
        """Return the lock for ``name``, creating it on first access."""
        with self._guard:
            lock = self._locks.get(name)
            if lock is None:
                lock = asyncio.Lock()
                self._locks[name] = lock
            return lock

    @asynccontextmanager
    async def hold(self, name: str) -> AsyncIterator[None]:
        """Hold the lock for ``name``; released on every exit path, cancellation included."""
        lock = self.get(name)
        if lock.locked():
            logger.debug("Waiting for lock on %s", name)
        async with lock:
            yield

    def __contains__(self, name: object) -> bool:
        with self._guard:
            return name in self._locks

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @property
    def names(self) -> list[str]:
        """Names that have a lock (in creation order)."""
        with self._guard:
            return list(self._locks)
