"""Compat engine — one session against one Typesense server.

The engine wires the pieces together for the lifetime of a session:

  1. Open the HTTP client
  2. Detect the server version once and build the shared ``FeatureChecker``
  3. Build one ``MutexRegistry`` per set kind and the shared-set mutators
  4. Expose the resource services: synonyms, overrides, presets, stopwords,
     analytics rules

Everything built in ``initialize()`` is read-only afterwards and shared by
every concurrent operation of the session.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Iterable
from typing import TYPE_CHECKING, Any, TypeVar

from tscompat.adapters.typesense.client import TypesenseServerClient
from tscompat.adapters.typesense.sets import CurationSetBackend, SynonymSetBackend
from tscompat.core.analytics import AnalyticsRuleService
from tscompat.core.locks import MutexRegistry
from tscompat.core.mutator import SharedSetMutator
from tscompat.core.overrides import OverrideService
from tscompat.core.resources import PresetService, StopwordsService
from tscompat.core.synonyms import SynonymService
from tscompat.exceptions import ConfigurationError
from tscompat.models.server import ServerInfo
from tscompat.versioning.detection import VersionDetection, detect_server_version
from tscompat.versioning.features import Feature, FeatureChecker

if TYPE_CHECKING:
    from tscompat.config.settings import Settings

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class CompatEngine:
    """Version-aware session against a Typesense server.

    Usage::

        async with CompatEngine(settings) as engine:
            await engine.synonyms.upsert("products", Synonym(id="phones", synonyms=["phone", "mobile"]))

    Attributes:
        settings: Client configuration.
        client: The underlying HTTP client.
        detection: Version detection outcome (after ``initialize()``).
    """

    def __init__(self, settings: Settings, client: TypesenseServerClient | None = None) -> None:
        self.settings = settings
        self.client = client or TypesenseServerClient(
            host=settings.host,
            api_key=settings.api_key,
            port=settings.port,
            protocol=settings.protocol,
            timeout=settings.request_timeout,
        )
        self.detection: VersionDetection | None = None
        self.synonym_locks = MutexRegistry()
        self.curation_locks = MutexRegistry()
        self._semaphore = asyncio.Semaphore(settings.concurrency.max_concurrent_operations)
        self._synonyms: SynonymService | None = None
        self._overrides: OverrideService | None = None
        self._presets: PresetService | None = None
        self._stopwords: StopwordsService | None = None
        self._analytics: AnalyticsRuleService | None = None

    async def initialize(self) -> None:
        """Open the client, detect the server version and build the services.

        Detection failure is not fatal; the session continues with an
        unknown version.

        Raises:
            ConfigurationError: If host or API key is missing.
        """
        if self.detection is not None:
            return
        if not self.settings.host:
            raise ConfigurationError("Typesense host is not configured (set TYPESENSE_HOST)")
        if not self.settings.api_key:
            raise ConfigurationError("Typesense API key is not configured (set TYPESENSE_API_KEY)")

        await self.client.initialize()
        detection = await detect_server_version(self.client)
        checker = detection.checker

        mutation = self.settings.mutation
        op_timeout = self.settings.concurrency.operation_timeout
        synonym_mutator = SharedSetMutator(
            SynonymSetBackend(self.client),
            checker,
            self.synonym_locks,
            use_item_api=mutation.use_item_api,
            operation_timeout=op_timeout,
        )
        curation_mutator = SharedSetMutator(
            CurationSetBackend(self.client),
            checker,
            self.curation_locks,
            use_item_api=mutation.use_item_api,
            operation_timeout=op_timeout,
        )

        self._synonyms = SynonymService(self.client, checker, synonym_mutator)
        self._overrides = OverrideService(self.client, checker, curation_mutator)
        self._presets = PresetService(self.client, checker, operation_timeout=op_timeout)
        self._stopwords = StopwordsService(self.client, checker, operation_timeout=op_timeout)
        self._analytics = AnalyticsRuleService(self.client, checker, operation_timeout=op_timeout)
        self.detection = detection

        logger.info(
            "Compat engine initialized for %s (server version: %s)",
            self.client.base_url,
            detection.version or "unknown",
        )

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        await self.client.shutdown()
        logger.info("Compat engine shut down")

    async def __aenter__(self) -> CompatEngine:
        await self.initialize()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.shutdown()

    # ── Session state ────────────────────────────────────────────────────

    def _require(self, service: _T | None) -> _T:
        if service is None:
            raise ConfigurationError("CompatEngine used before initialize()")
        return service

    @property
    def checker(self) -> FeatureChecker:
        return self._require(self.detection).checker

    @property
    def synonyms(self) -> SynonymService:
        return self._require(self._synonyms)

    @property
    def overrides(self) -> OverrideService:
        return self._require(self._overrides)

    @property
    def presets(self) -> PresetService:
        return self._require(self._presets)

    @property
    def stopwords(self) -> StopwordsService:
        return self._require(self._stopwords)

    @property
    def analytics(self) -> AnalyticsRuleService:
        return self._require(self._analytics)

    def server_info(self) -> dict[str, Any]:
        """Detected version and per-feature support table.

        ``version`` is ``None`` when detection failed; every feature then
        reports False.
        """
        detection = self._require(self.detection)
        return {
            "base_url": self.client.base_url,
            "version": detection.version.raw if detection.version else None,
            "warning": detection.warning,
            "features": {feature.value: detection.checker.supports(feature) for feature in Feature},
        }

    async def fetch_server_info(self) -> ServerInfo:
        """Fetch the raw ``/debug`` payload from the server."""
        return await self.client.get_server_info(timeout=self.settings.concurrency.operation_timeout)

    # ── Concurrency ──────────────────────────────────────────────────────

    async def run_concurrently(
        self,
        operations: Iterable[Awaitable[_T]],
        *,
        return_exceptions: bool = True,
    ) -> list[Any]:
        """Run operations in parallel, at most ``max_concurrent_operations`` at a time.

        Results are returned in input order, with failures in place of
        results. With ``return_exceptions=False`` the first failure
        propagates; every operation still running is cancelled and awaited
        before it does.
        """

        async def _bounded(operation: Awaitable[_T]) -> _T:
            async with self._semaphore:
                return await operation

        tasks = [asyncio.ensure_future(_bounded(op)) for op in operations]
        try:
            return list(await asyncio.gather(*tasks, return_exceptions=return_exceptions))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
