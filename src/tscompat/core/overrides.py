"""Override resource — per-collection overrides on v29-, curation sets on v30+."""

from __future__ import annotations

from tscompat.adapters.typesense.client import TypesenseServerClient
from tscompat.core.mutator import SharedSetMutator
from tscompat.core.protocol import DualProtocolResource, ProtocolFamily
from tscompat.models.curation import Override
from tscompat.versioning.features import Feature, FeatureChecker

OVERRIDES = ProtocolFamily(
    name="override",
    modern=Feature.CURATION_SETS,
    legacy=Feature.PER_COLLECTION_OVERRIDES,
    unsupported_detail="Per-collection overrides require v29 or earlier, curation sets require v30+.",
)


class OverrideService(DualProtocolResource[Override]):
    """Manage overrides (curation rules) of a collection regardless of server version.

    On v30+ the collection name is used as the curation set name. Curation
    sets have no item-level API, so every modern write is a locked
    read-modify-write of the whole set.
    """

    family = OVERRIDES

    def __init__(
        self,
        client: TypesenseServerClient,
        checker: FeatureChecker,
        mutator: SharedSetMutator[Override],
    ) -> None:
        super().__init__(checker, mutator)
        self._client = client

    async def _legacy_upsert(self, collection: str, item: Override) -> Override:
        return await self._client.upsert_override(collection, item)

    async def _legacy_get(self, collection: str, item_id: str) -> Override | None:
        return await self._client.get_override(collection, item_id)

    async def _legacy_delete(self, collection: str, item_id: str) -> None:
        await self._client.delete_override(collection, item_id)

    async def _legacy_list(self, collection: str) -> list[Override]:
        return await self._client.list_overrides(collection)
