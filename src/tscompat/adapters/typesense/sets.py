"""Typesense v30+ named-set backends.

The collection name doubles as the set name on the server.
"""

from __future__ import annotations

from tscompat.adapters.base.backend import SharedSetBackend
from tscompat.adapters.typesense.client import TypesenseServerClient
from tscompat.models.curation import CurationSet, Override
from tscompat.models.synonym import Synonym, SynonymSet
from tscompat.versioning.features import Feature


class SynonymSetBackend(SharedSetBackend[Synonym]):
    """``/synonym_sets/{name}`` with item endpoints under ``/items/{id}``."""

    item_feature = Feature.SYNONYM_SET_ITEMS

    def __init__(self, client: TypesenseServerClient) -> None:
        self._client = client

    @property
    def kind(self) -> str:
        return "synonym set"

    async def fetch(self, name: str, *, timeout: float | None = None) -> list[Synonym] | None:
        synonym_set = await self._client.get_synonym_set(name, timeout=timeout)
        return None if synonym_set is None else list(synonym_set.items)

    async def replace(self, name: str, items: list[Synonym], *, timeout: float | None = None) -> None:
        await self._client.upsert_synonym_set(SynonymSet(name=name, items=items), timeout=timeout)

    async def remove(self, name: str, *, timeout: float | None = None) -> None:
        await self._client.delete_synonym_set(name, timeout=timeout)

    async def get_item(self, name: str, item_id: str, *, timeout: float | None = None) -> Synonym | None:
        return await self._client.get_synonym_set_item(name, item_id, timeout=timeout)

    async def upsert_item(self, name: str, item: Synonym, *, timeout: float | None = None) -> None:
        await self._client.upsert_synonym_set_item(name, item, timeout=timeout)

    async def delete_item(self, name: str, item_id: str, *, timeout: float | None = None) -> None:
        await self._client.delete_synonym_set_item(name, item_id, timeout=timeout)


class CurationSetBackend(SharedSetBackend[Override]):
    """``/curation_sets/{name}``, whole-object only."""

    def __init__(self, client: TypesenseServerClient) -> None:
        self._client = client

    @property
    def kind(self) -> str:
        return "curation set"

    async def fetch(self, name: str, *, timeout: float | None = None) -> list[Override] | None:
        curation_set = await self._client.get_curation_set(name, timeout=timeout)
        return None if curation_set is None else list(curation_set.curations)

    async def replace(self, name: str, items: list[Override], *, timeout: float | None = None) -> None:
        await self._client.upsert_curation_set(CurationSet(name=name, curations=items), timeout=timeout)

    async def remove(self, name: str, *, timeout: float | None = None) -> None:
        await self._client.delete_curation_set(name, timeout=timeout)
