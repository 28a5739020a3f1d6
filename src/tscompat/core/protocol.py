"""Protocol adapter — picks one wire protocol per operation family.

Some families exist in two mutually exclusive wire representations:

  - **legacy**: item-scoped sub-resources under a collection
    (``/collections/{c}/synonyms/{id}``), removed in v30
  - **modern**: named sets replaced as a whole (``/synonym_sets/{name}``)

Selection happens once per operation, deterministically, before any
network call, from the session's ``FeatureChecker`` alone. A failure on the
chosen path propagates as-is; the other protocol is never tried as a
fallback.

When the server version is unknown the legacy path is chosen. This is a
heuristic: legacy was the longer-lived default, but an unknown-version
client may still fail against a server that removed it, and that failure
surfaces as a normal ``RemoteOperationError``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from enum import Enum
from typing import Generic

from tscompat.adapters.base.backend import ItemT
from tscompat.core.mutator import SharedSetMutator, deadline
from tscompat.exceptions import ProtocolSelectionError
from tscompat.versioning.features import Feature, FeatureChecker

logger = logging.getLogger(__name__)


class WireProtocol(str, Enum):
    """Wire representation used for an operation."""

    LEGACY = "legacy"
    MODERN = "modern"


@dataclass(frozen=True)
class ProtocolFamily:
    """An operation family with a legacy and a modern representation."""

    name: str
    modern: Feature
    legacy: Feature
    unsupported_detail: str = ""


@dataclass(frozen=True)
class ProtocolChoice:
    """Result of protocol selection.

    Attributes:
        protocol: The wire protocol to use.
        assumed: True when chosen without version knowledge.
    """

    protocol: WireProtocol
    assumed: bool = False


def select_protocol(checker: FeatureChecker, family: ProtocolFamily) -> ProtocolChoice:
    """Choose the wire protocol for ``family``.

    Raises:
        ProtocolSelectionError: If the known server version supports neither
            representation.
    """
    if checker.supports(family.modern):
        return ProtocolChoice(WireProtocol.MODERN)

    detected = checker.version
    if detected is None:
        logger.debug("Server version unknown; assuming legacy %s protocol", family.name)
        return ProtocolChoice(WireProtocol.LEGACY, assumed=True)

    if checker.supports(family.legacy):
        return ProtocolChoice(WireProtocol.LEGACY)

    raise ProtocolSelectionError(family.name, detected.raw, family.unsupported_detail)


class DualProtocolResource(ABC, Generic[ItemT]):
    """Base class for resources stored per collection on either protocol.

    The modern path goes through a ``SharedSetMutator`` whose set name is the
    collection name; the legacy path calls the per-item endpoints, which the
    server already applies atomically. Both return the same item model, so
    callers never branch on server version.

    Subclasses set ``family`` and implement the ``_legacy_*`` methods.
    """

    family: ProtocolFamily

    def __init__(self, checker: FeatureChecker, mutator: SharedSetMutator[ItemT]) -> None:
        self.checker = checker
        self.mutator = mutator

    def protocol(self) -> ProtocolChoice:
        return select_protocol(self.checker, self.family)

    def _deadline(
        self, timeout: float | None, action: str, collection: str, item_id: str | None = None
    ) -> AbstractAsyncContextManager[None]:
        return deadline(
            self.mutator.effective_timeout(timeout),
            f"{action} {self.family.name}",
            collection=collection,
            item_id=item_id,
        )

    async def upsert(self, collection: str, item: ItemT, *, timeout: float | None = None) -> ItemT:
        """Create or replace ``item`` in ``collection``."""
        choice = self.protocol()
        logger.debug("upsert %s %s/%s via %s protocol", self.family.name, collection, item.id, choice.protocol.value)
        if choice.protocol is WireProtocol.MODERN:
            return await self.mutator.upsert_item(collection, item, timeout=timeout)
        async with self._deadline(timeout, "upsert", collection, item.id):
            return await self._legacy_upsert(collection, item)

    async def get(self, collection: str, item_id: str, *, timeout: float | None = None) -> ItemT | None:
        """Return the item, or ``None`` if it does not exist."""
        choice = self.protocol()
        if choice.protocol is WireProtocol.MODERN:
            return await self.mutator.get_item(collection, item_id, timeout=timeout)
        async with self._deadline(timeout, "get", collection, item_id):
            return await self._legacy_get(collection, item_id)

    async def delete(self, collection: str, item_id: str, *, timeout: float | None = None) -> None:
        """Delete the item. Deleting an absent item succeeds."""
        choice = self.protocol()
        logger.debug("delete %s %s/%s via %s protocol", self.family.name, collection, item_id, choice.protocol.value)
        if choice.protocol is WireProtocol.MODERN:
            await self.mutator.remove_item(collection, item_id, timeout=timeout)
            return
        async with self._deadline(timeout, "delete", collection, item_id):
            await self._legacy_delete(collection, item_id)

    async def list(self, collection: str, *, timeout: float | None = None) -> list[ItemT]:
        """Return every item stored for ``collection``."""
        choice = self.protocol()
        if choice.protocol is WireProtocol.MODERN:
            return await self.mutator.list_items(collection, timeout=timeout)
        async with self._deadline(timeout, "list", collection):
            return await self._legacy_list(collection)

    @abstractmethod
    async def _legacy_upsert(self, collection: str, item: ItemT) -> ItemT: ...

    @abstractmethod
    async def _legacy_get(self, collection: str, item_id: str) -> ItemT | None: ...

    @abstractmethod
    async def _legacy_delete(self, collection: str, item_id: str) -> None: ...

    @abstractmethod
    async def _legacy_list(self, collection: str) -> list[ItemT]: ...
