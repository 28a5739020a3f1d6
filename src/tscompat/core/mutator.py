"""Shared-set mutator — concurrency-safe item writes into coarse-grained sets.

The server exposes a shared set as "fetch whole object" / "replace whole
object", with an item-level API only on some versions. Without care, two
callers adding different items to the same set race: both read the old
set, both write back their own version, and one item is silently lost.

Every mutation of set ``name`` runs while holding that name's lock from the
``MutexRegistry``, so writes to the same set from one process are totally
ordered. Writes to different sets proceed in parallel.

Known limitation: the lock is in-process only. Two separate processes (or
an external actor) mutating the same set can still overwrite each other.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Generic

from tscompat.adapters.base.backend import ItemT, SharedSetBackend
from tscompat.core.locks import MutexRegistry
from tscompat.exceptions import OperationCancelledError
from tscompat.versioning.features import FeatureChecker

logger = logging.getLogger(__name__)


@asynccontextmanager
async def deadline(
    timeout: float | None,
    operation: str,
    *,
    collection: str | None = None,
    item_id: str | None = None,
) -> AsyncIterator[None]:
    """Bound the enclosed block by ``timeout`` seconds.

    An expired deadline surfaces as ``OperationCancelledError``. Locks held
    inside the block are released by their own context managers.
    """
    if timeout is None:
        yield
        return
    try:
        async with asyncio.timeout(timeout):
            yield
    except TimeoutError as e:
        raise OperationCancelledError(operation, collection=collection, item_id=item_id) from e


class SharedSetMutator(Generic[ItemT]):
    """Read-modify-write and item-level upsert over one kind of shared set.

    Args:
        backend: Whole-object (and optionally item-level) access to the sets.
        checker: Session feature checker; decides whether the item-level API
            may be used.
        registry: Per-name locks. A private registry is created if omitted.
        use_item_api: Set to False to force the locked read-modify-write
            path even when the server has an item-level API.
        operation_timeout: Default deadline in seconds for each operation.
    """

    def __init__(
        self,
        backend: SharedSetBackend[ItemT],
        checker: FeatureChecker,
        registry: MutexRegistry | None = None,
        *,
        use_item_api: bool = True,
        operation_timeout: float | None = None,
    ) -> None:
        self.backend = backend
        self.checker = checker
        self.registry = registry if registry is not None else MutexRegistry()
        self._use_item_api = use_item_api
        self._operation_timeout = operation_timeout

    @property
    def item_api_available(self) -> bool:
        """True when item-level endpoints are both enabled and supported."""
        feature = self.backend.item_feature
        return self._use_item_api and feature is not None and self.checker.supports(feature)

    def effective_timeout(self, timeout: float | None) -> float | None:
        """Per-call ``timeout`` if given, else the mutator default."""
        return timeout if timeout is not None else self._operation_timeout

    # ── Operations ───────────────────────────────────────────────────────

    async def ensure_exists(self, name: str, *, timeout: float | None = None) -> bool:
        """Create set ``name`` empty if it does not exist.

        Serialized per name so two first-time creators cannot both issue an
        unconditional create and wipe each other's initial items.

        Returns:
            True if the set was created by this call.
        """
        async with deadline(self.effective_timeout(timeout), f"ensure {self.backend.kind}", collection=name):
            async with self.registry.hold(name):
                return await self._ensure_exists_locked(name)

    async def upsert_item(self, name: str, item: ItemT, *, timeout: float | None = None) -> ItemT:
        """Create or replace ``item`` inside set ``name``, creating the set if needed."""
        item_id = item.id
        operation = f"upsert {self.backend.kind} item"
        async with deadline(self.effective_timeout(timeout), operation, collection=name, item_id=item_id):
            async with self.registry.hold(name):
                if self.item_api_available:
                    # The lock spans the existence check and the item write so a
                    # concurrent removal of the last item cannot delete the set in between.
                    await self._ensure_exists_locked(name)
                    await self.backend.upsert_item(name, item)
                    logger.debug("Upserted %s/%s via item API", name, item_id)
                    return item

                items = await self.backend.fetch(name) or []
                for index, existing in enumerate(items):
                    if existing.id == item_id:
                        items[index] = item
                        break
                else:
                    items.append(item)
                await self.backend.replace(name, items)
                logger.debug("Upserted %s/%s via set replace (%d items)", name, item_id, len(items))
                return item

    async def remove_item(self, name: str, item_id: str, *, timeout: float | None = None) -> bool:
        """Remove ``item_id`` from set ``name``.

        Idempotent: an absent item or set is a no-op success. Removing the
        last item deletes the whole set instead of leaving an empty one.

        Returns:
            True if an item was removed.
        """
        operation = f"remove {self.backend.kind} item"
        async with deadline(self.effective_timeout(timeout), operation, collection=name, item_id=item_id):
            async with self.registry.hold(name):
                items = await self.backend.fetch(name)
                if items is None:
                    return False

                remaining = [existing for existing in items if existing.id != item_id]
                if len(remaining) == len(items):
                    return False

                if not remaining:
                    await self.backend.remove(name)
                    logger.info("Deleted empty %s %s", self.backend.kind, name)
                elif self.item_api_available:
                    await self.backend.delete_item(name, item_id)
                else:
                    await self.backend.replace(name, remaining)
                return True

    async def get_item(self, name: str, item_id: str, *, timeout: float | None = None) -> ItemT | None:
        """Return one item of set ``name``, or ``None`` if it (or the set) does not exist."""
        operation = f"get {self.backend.kind} item"
        async with deadline(self.effective_timeout(timeout), operation, collection=name, item_id=item_id):
            if self.item_api_available:
                return await self.backend.get_item(name, item_id)
            items = await self.backend.fetch(name) or []
            return next((existing for existing in items if existing.id == item_id), None)

    async def list_items(self, name: str, *, timeout: float | None = None) -> list[ItemT]:
        """Return all items of set ``name`` in server order (empty if absent)."""
        async with deadline(self.effective_timeout(timeout), f"list {self.backend.kind} items", collection=name):
            return await self.backend.fetch(name) or []

    # ── Helpers ──────────────────────────────────────────────────────────

    async def _ensure_exists_locked(self, name: str) -> bool:
        if await self.backend.fetch(name) is not None:
            return False
        await self.backend.replace(name, [])
        logger.info("Created empty %s %s", self.backend.kind, name)
        return True
