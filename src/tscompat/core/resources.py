"""Additive resources — single-protocol endpoints gated by a minimum version.

Each operation runs ``require_feature`` first: a known-too-old server fails
fast with no network call, an unknown version lets the request go through.
"""

from __future__ import annotations

from tscompat.adapters.typesense.client import TypesenseServerClient
from tscompat.models.resources import Preset, StopwordsSet
from tscompat.versioning.features import Feature, FeatureChecker, require_feature


class GatedResource:
    """Single-endpoint resource checked with ``require_feature`` before each call."""

    feature: Feature
    resource: str

    def __init__(
        self,
        client: TypesenseServerClient,
        checker: FeatureChecker,
        *,
        operation_timeout: float | None = None,
    ) -> None:
        self._client = client
        self._checker = checker
        self._operation_timeout = operation_timeout

    def _preflight(self, timeout: float | None) -> float | None:
        require_feature(self._checker, self.feature, self.resource)
        return timeout if timeout is not None else self._operation_timeout


class PresetService(GatedResource):
    """Search presets (v27+)."""

    feature = Feature.PRESETS
    resource = "typesense_preset"

    async def upsert(self, preset: Preset, *, timeout: float | None = None) -> Preset:
        timeout = self._preflight(timeout)
        return await self._client.upsert_preset(preset, timeout=timeout)

    async def get(self, name: str, *, timeout: float | None = None) -> Preset | None:
        timeout = self._preflight(timeout)
        return await self._client.get_preset(name, timeout=timeout)

    async def delete(self, name: str, *, timeout: float | None = None) -> None:
        timeout = self._preflight(timeout)
        await self._client.delete_preset(name, timeout=timeout)


class StopwordsService(GatedResource):
    """Stopwords sets (v27+)."""

    feature = Feature.STOPWORDS
    resource = "typesense_stopwords_set"

    async def upsert(self, stopwords: StopwordsSet, *, timeout: float | None = None) -> StopwordsSet:
        timeout = self._preflight(timeout)
        return await self._client.upsert_stopwords_set(stopwords, timeout=timeout)

    async def get(self, set_id: str, *, timeout: float | None = None) -> StopwordsSet | None:
        timeout = self._preflight(timeout)
        return await self._client.get_stopwords_set(set_id, timeout=timeout)

    async def delete(self, set_id: str, *, timeout: float | None = None) -> None:
        timeout = self._preflight(timeout)
        await self._client.delete_stopwords_set(set_id, timeout=timeout)
