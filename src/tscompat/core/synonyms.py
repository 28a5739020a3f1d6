"""Synonym resource — per-collection synonyms on v29-, synonym sets on v30+."""

from __future__ import annotations

from tscompat.adapters.typesense.client import TypesenseServerClient
from tscompat.core.mutator import SharedSetMutator
from tscompat.core.protocol import DualProtocolResource, ProtocolFamily
from tscompat.models.synonym import Synonym
from tscompat.versioning.features import Feature, FeatureChecker

SYNONYMS = ProtocolFamily(
    name="synonym",
    modern=Feature.SYNONYM_SETS,
    legacy=Feature.PER_COLLECTION_SYNONYMS,
    unsupported_detail="Per-collection synonyms require v29 or earlier, synonym sets require v30+.",
)


class SynonymService(DualProtocolResource[Synonym]):
    """Manage synonyms of a collection regardless of server version.

    On v30+ the collection name is used as the synonym set name.
    """

    family = SYNONYMS

    def __init__(
        self,
        client: TypesenseServerClient,
        checker: FeatureChecker,
        mutator: SharedSetMutator[Synonym],
    ) -> None:
        super().__init__(checker, mutator)
        self._client = client

    async def _legacy_upsert(self, collection: str, item: Synonym) -> Synonym:
        return await self._client.upsert_synonym(collection, item)

    async def _legacy_get(self, collection: str, item_id: str) -> Synonym | None:
        return await self._client.get_synonym(collection, item_id)

    async def _legacy_delete(self, collection: str, item_id: str) -> None:
        await self._client.delete_synonym(collection, item_id)

    async def _legacy_list(self, collection: str) -> list[Synonym]:
        return await self._client.list_synonyms(collection)
