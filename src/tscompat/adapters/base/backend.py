"""Base shared-set backend — abstract interface over a coarse-grained remote set.

A shared set is a server-side named object holding many items (synonym
rules, curation rules) that the server exposes primarily through
whole-object get / replace / delete. Some sets additionally expose an
item-level API on newer servers.

Every backend must implement the whole-object operations. Backends whose
server offers item-scoped endpoints also set ``item_feature`` and implement
the ``*_item`` methods.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from tscompat.models.item import SetItem
from tscompat.versioning.features import Feature

ItemT = TypeVar("ItemT", bound=SetItem)


class SharedSetBackend(ABC, Generic[ItemT]):
    """Abstract base class for shared-set backends.

    Items are ``SetItem`` models whose ``id`` is unique within their set.
    Item order returned by ``fetch`` is preserved by callers.
    """

    #: Feature gating the item-level API, or ``None`` if the server has none.
    item_feature: Feature | None = None

    @property
    @abstractmethod
    def kind(self) -> str:
        """Human-readable set kind (e.g. ``'synonym set'``)."""

    @abstractmethod
    async def fetch(self, name: str, *, timeout: float | None = None) -> list[ItemT] | None:
        """Return the items of set ``name``, or ``None`` if the set does not exist."""

    @abstractmethod
    async def replace(self, name: str, items: list[ItemT], *, timeout: float | None = None) -> None:
        """Create or replace set ``name`` with exactly ``items``."""

    @abstractmethod
    async def remove(self, name: str, *, timeout: float | None = None) -> None:
        """Delete set ``name``. Deleting an absent set is not an error."""

    async def get_item(self, name: str, item_id: str, *, timeout: float | None = None) -> ItemT | None:
        """Fetch one item via the item-level API."""
        raise NotImplementedError(f"{self.kind} has no item-level API")

    async def upsert_item(self, name: str, item: ItemT, *, timeout: float | None = None) -> None:
        """Create or replace one item via the item-level API."""
        raise NotImplementedError(f"{self.kind} has no item-level API")

    async def delete_item(self, name: str, item_id: str, *, timeout: float | None = None) -> None:
        """Delete one item via the item-level API."""
        raise NotImplementedError(f"{self.kind} has no item-level API")
