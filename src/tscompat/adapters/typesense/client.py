"""Typesense server client — HTTP collaborator for every wire protocol.

Communicates with the Typesense Server API using ``httpx``. The client is
pure transport: it performs exactly one round-trip per call, maps failures
to ``RemoteOperationError`` with the operation context, and never retries
or picks a protocol on its own.

Endpoint families:
  - ``/debug``: self-reported server version
  - ``/collections/{c}/synonyms/{id}``, ``/collections/{c}/overrides/{id}``:
    legacy per-collection sub-resources (v29 and earlier)
  - ``/synonym_sets/{name}`` (+ ``/items/{id}``), ``/curation_sets/{name}``:
    v30+ named sets
  - ``/presets/{name}``, ``/stopwords/{id}``: additive resources
  - ``/analytics/rules/{name}``: body shape chosen by the caller

Usage::

    async with TypesenseServerClient(host="localhost", api_key="xyz", port=8108, protocol="http") as client:
        info = await client.get_server_info()
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from tscompat.exceptions import ConfigurationError, RemoteOperationError, VersionDetectionError
from tscompat.models.analytics import AnalyticsRule
from tscompat.models.curation import CurationSet, Override
from tscompat.models.resources import Preset, StopwordsSet
from tscompat.models.server import ServerInfo
from tscompat.models.synonym import Synonym, SynonymSet

logger = logging.getLogger(__name__)

_M = TypeVar("_M", bound=BaseModel)

API_KEY_HEADER = "X-TYPESENSE-API-KEY"


def _segment(value: str) -> str:
    """Quote a single path segment (names may contain ``/`` or spaces)."""
    return quote(value, safe="")


class TypesenseServerClient:
    """Async client for the Typesense Server API.

    Args:
        host: Server hostname, e.g. ``"xxx.a1.typesense.net"`` or ``"localhost"``.
        api_key: Admin API key sent as ``X-TYPESENSE-API-KEY``.
        port: Server port.
        protocol: ``"http"`` or ``"https"``.
        timeout: Default per-request timeout in seconds.
        **httpx_kwargs: Additional keyword arguments passed to ``httpx.AsyncClient``
            (e.g. ``transport`` in tests).
    """

    def __init__(
        self,
        host: str = "localhost",
        api_key: str | None = None,
        *,
        port: int = 443,
        protocol: str = "https",
        timeout: float = 30.0,
        **httpx_kwargs: Any,
    ) -> None:
        self._host = host
        self._api_key = api_key
        self._port = port
        self._protocol = protocol
        self._timeout = timeout
        self._httpx_kwargs = httpx_kwargs
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return f"{self._protocol}://{self._host}:{self._port}"

    async def initialize(self) -> None:
        """Create the underlying ``httpx.AsyncClient``."""
        if self._client is not None:
            return
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers[API_KEY_HEADER] = self._api_key

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self._timeout),
            headers=headers,
            **self._httpx_kwargs,
        )
        logger.info("Typesense client ready for %s", self.base_url)

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> TypesenseServerClient:
        await self.initialize()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.shutdown()

    # ── Transport ────────────────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        *,
        json: Any = None,
        collection: str | None = None,
        item_id: str | None = None,
        allow_not_found: bool = False,
        timeout: float | None = None,
    ) -> httpx.Response | None:
        """Perform one round-trip and map failures to ``RemoteOperationError``.

        Returns ``None`` on HTTP 404 when ``allow_not_found`` is set.
        """
        if self._client is None:
            raise ConfigurationError("Typesense client not initialized. Call initialize() first.")

        kwargs: dict[str, Any] = {}
        if json is not None:
            kwargs["json"] = json
        if timeout is not None:
            kwargs["timeout"] = timeout

        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise RemoteOperationError(
                operation,
                str(e) or type(e).__name__,
                collection=collection,
                item_id=item_id,
            ) from e

        if resp.status_code == 404 and allow_not_found:
            return None
        if resp.status_code not in (200, 201):
            raise RemoteOperationError(
                operation,
                f"status {resp.status_code}, body: {resp.text}",
                collection=collection,
                item_id=item_id,
                status_code=resp.status_code,
            )
        return resp

    @staticmethod
    def _decode(
        resp: httpx.Response,
        model: type[_M],
        operation: str,
        *,
        key: str | None = None,
        collection: str | None = None,
        item_id: str | None = None,
    ) -> _M:
        """Decode a JSON response body into ``model``, optionally unwrapping ``key``."""
        try:
            data = resp.json()
            if key is not None:
                data = data[key]
            return model.model_validate(data)
        except (ValueError, KeyError, TypeError, ValidationError) as e:
            raise RemoteOperationError(
                operation,
                f"failed to decode response: {e}",
                collection=collection,
                item_id=item_id,
                status_code=resp.status_code,
            ) from e

    def _decode_list(
        self,
        resp: httpx.Response,
        model: type[_M],
        operation: str,
        *,
        key: str | None = None,
        collection: str | None = None,
    ) -> list[_M]:
        try:
            data = resp.json()
            if key is not None and isinstance(data, dict):
                data = data.get(key) or []
            return [model.model_validate(entry) for entry in data]
        except (ValueError, AttributeError, TypeError, ValidationError) as e:
            raise RemoteOperationError(
                operation,
                f"failed to decode response: {e}",
                collection=collection,
                status_code=resp.status_code,
            ) from e

    # ── Server info ──────────────────────────────────────────────────────

    async def get_server_info(self, *, timeout: float | None = None) -> ServerInfo:
        """Retrieve the server's self-reported version and state.

        Raises:
            VersionDetectionError: If the call fails or the body is not a
                server info object.
        """
        try:
            resp = await self._request("GET", "/debug", "get server info", timeout=timeout)
            assert resp is not None
            return self._decode(resp, ServerInfo, "get server info")
        except RemoteOperationError as e:
            raise VersionDetectionError(e.operation, e.detail, status_code=e.status_code) from e

    # ── Legacy per-collection synonyms (v29 and earlier) ─────────────────

    async def get_synonym(self, collection: str, synonym_id: str, *, timeout: float | None = None) -> Synonym | None:
        op = "get synonym"
        resp = await self._request(
            "GET",
            f"/collections/{_segment(collection)}/synonyms/{_segment(synonym_id)}",
            op,
            collection=collection,
            item_id=synonym_id,
            allow_not_found=True,
            timeout=timeout,
        )
        if resp is None:
            return None
        return self._decode(resp, Synonym, op, collection=collection, item_id=synonym_id)

    async def upsert_synonym(self, collection: str, synonym: Synonym, *, timeout: float | None = None) -> Synonym:
        op = "upsert synonym"
        resp = await self._request(
            "PUT",
            f"/collections/{_segment(collection)}/synonyms/{_segment(synonym.id)}",
            op,
            json=synonym.model_dump(exclude_none=True),
            collection=collection,
            item_id=synonym.id,
            timeout=timeout,
        )
        assert resp is not None
        return self._decode(resp, Synonym, op, collection=collection, item_id=synonym.id)

    async def delete_synonym(self, collection: str, synonym_id: str, *, timeout: float | None = None) -> None:
        await self._request(
            "DELETE",
            f"/collections/{_segment(collection)}/synonyms/{_segment(synonym_id)}",
            "delete synonym",
            collection=collection,
            item_id=synonym_id,
            allow_not_found=True,
            timeout=timeout,
        )

    async def list_synonyms(self, collection: str, *, timeout: float | None = None) -> list[Synonym]:
        """List per-collection synonyms. Returns ``[]`` when the endpoint does not exist."""
        op = "list synonyms"
        resp = await self._request(
            "GET",
            f"/collections/{_segment(collection)}/synonyms",
            op,
            collection=collection,
            allow_not_found=True,
            timeout=timeout,
        )
        if resp is None:
            return []
        return self._decode_list(resp, Synonym, op, key="synonyms", collection=collection)

    # ── Legacy per-collection overrides (v29 and earlier) ────────────────

    async def get_override(self, collection: str, override_id: str, *, timeout: float | None = None) -> Override | None:
        op = "get override"
        resp = await self._request(
            "GET",
            f"/collections/{_segment(collection)}/overrides/{_segment(override_id)}",
            op,
            collection=collection,
            item_id=override_id,
            allow_not_found=True,
            timeout=timeout,
        )
        if resp is None:
            return None
        return self._decode(resp, Override, op, collection=collection, item_id=override_id)

    async def upsert_override(self, collection: str, override: Override, *, timeout: float | None = None) -> Override:
        op = "upsert override"
        resp = await self._request(
            "PUT",
            f"/collections/{_segment(collection)}/overrides/{_segment(override.id)}",
            op,
            json=override.model_dump(exclude_none=True),
            collection=collection,
            item_id=override.id,
            timeout=timeout,
        )
        assert resp is not None
        return self._decode(resp, Override, op, collection=collection, item_id=override.id)

    async def delete_override(self, collection: str, override_id: str, *, timeout: float | None = None) -> None:
        await self._request(
            "DELETE",
            f"/collections/{_segment(collection)}/overrides/{_segment(override_id)}",
            "delete override",
            collection=collection,
            item_id=override_id,
            allow_not_found=True,
            timeout=timeout,
        )

    async def list_overrides(self, collection: str, *, timeout: float | None = None) -> list[Override]:
        """List per-collection overrides. Returns ``[]`` when the endpoint does not exist."""
        op = "list overrides"
        resp = await self._request(
            "GET",
            f"/collections/{_segment(collection)}/overrides",
            op,
            collection=collection,
            allow_not_found=True,
            timeout=timeout,
        )
        if resp is None:
            return []
        return self._decode_list(resp, Override, op, key="overrides", collection=collection)

    # ── Synonym sets (v30+) ──────────────────────────────────────────────

    async def list_synonym_sets(self, *, timeout: float | None = None) -> list[SynonymSet]:
        op = "list synonym sets"
        resp = await self._request("GET", "/synonym_sets", op, allow_not_found=True, timeout=timeout)
        if resp is None:
            return []
        return self._decode_list(resp, SynonymSet, op)

    async def get_synonym_set(self, name: str, *, timeout: float | None = None) -> SynonymSet | None:
        op = "get synonym set"
        resp = await self._request(
            "GET",
            f"/synonym_sets/{_segment(name)}",
            op,
            collection=name,
            allow_not_found=True,
            timeout=timeout,
        )
        if resp is None:
            return None
        return self._decode(resp, SynonymSet, op, collection=name)

    async def upsert_synonym_set(self, synonym_set: SynonymSet, *, timeout: float | None = None) -> SynonymSet:
        op = "upsert synonym set"
        resp = await self._request(
            "PUT",
            f"/synonym_sets/{_segment(synonym_set.name)}",
            op,
            json=synonym_set.model_dump(exclude_none=True),
            collection=synonym_set.name,
            timeout=timeout,
        )
        assert resp is not None
        return self._decode(resp, SynonymSet, op, collection=synonym_set.name)

    async def delete_synonym_set(self, name: str, *, timeout: float | None = None) -> None:
        await self._request(
            "DELETE",
            f"/synonym_sets/{_segment(name)}",
            "delete synonym set",
            collection=name,
            allow_not_found=True,
            timeout=timeout,
        )

    async def get_synonym_set_item(self, name: str, item_id: str, *, timeout: float | None = None) -> Synonym | None:
        op = "get synonym set item"
        resp = await self._request(
            "GET",
            f"/synonym_sets/{_segment(name)}/items/{_segment(item_id)}",
            op,
            collection=name,
            item_id=item_id,
            allow_not_found=True,
            timeout=timeout,
        )
        if resp is None:
            return None
        return self._decode(resp, Synonym, op, collection=name, item_id=item_id)

    async def upsert_synonym_set_item(self, name: str, item: Synonym, *, timeout: float | None = None) -> Synonym:
        op = "upsert synonym set item"
        resp = await self._request(
            "PUT",
            f"/synonym_sets/{_segment(name)}/items/{_segment(item.id)}",
            op,
            json=item.model_dump(exclude_none=True),
            collection=name,
            item_id=item.id,
            timeout=timeout,
        )
        assert resp is not None
        return self._decode(resp, Synonym, op, collection=name, item_id=item.id)

    async def delete_synonym_set_item(self, name: str, item_id: str, *, timeout: float | None = None) -> None:
        await self._request(
            "DELETE",
            f"/synonym_sets/{_segment(name)}/items/{_segment(item_id)}",
            "delete synonym set item",
            collection=name,
            item_id=item_id,
            allow_not_found=True,
            timeout=timeout,
        )

    # ── Curation sets (v30+) ─────────────────────────────────────────────

    async def list_curation_sets(self, *, timeout: float | None = None) -> list[CurationSet]:
        op = "list curation sets"
        resp = await self._request("GET", "/curation_sets", op, allow_not_found=True, timeout=timeout)
        if resp is None:
            return []
        return self._decode_list(resp, CurationSet, op)

    async def get_curation_set(self, name: str, *, timeout: float | None = None) -> CurationSet | None:
        op = "get curation set"
        resp = await self._request(
            "GET",
            f"/curation_sets/{_segment(name)}",
            op,
            collection=name,
            allow_not_found=True,
            timeout=timeout,
        )
        if resp is None:
            return None
        return self._decode(resp, CurationSet, op, collection=name)

    async def upsert_curation_set(self, curation_set: CurationSet, *, timeout: float | None = None) -> CurationSet:
        op = "upsert curation set"
        resp = await self._request(
            "PUT",
            f"/curation_sets/{_segment(curation_set.name)}",
            op,
            json=curation_set.model_dump(exclude_none=True),
            collection=curation_set.name,
            timeout=timeout,
        )
        assert resp is not None
        return self._decode(resp, CurationSet, op, collection=curation_set.name)

    async def delete_curation_set(self, name: str, *, timeout: float | None = None) -> None:
        await self._request(
            "DELETE",
            f"/curation_sets/{_segment(name)}",
            "delete curation set",
            collection=name,
            allow_not_found=True,
            timeout=timeout,
        )

    # ── Presets (v27+) ───────────────────────────────────────────────────

    async def get_preset(self, name: str, *, timeout: float | None = None) -> Preset | None:
        op = "get preset"
        resp = await self._request(
            "GET", f"/presets/{_segment(name)}", op, item_id=name, allow_not_found=True, timeout=timeout
        )
        if resp is None:
            return None
        return self._decode(resp, Preset, op, item_id=name)

    async def upsert_preset(self, preset: Preset, *, timeout: float | None = None) -> Preset:
        op = "upsert preset"
        # Only the value is sent; the name comes from the path.
        resp = await self._request(
            "PUT",
            f"/presets/{_segment(preset.name)}",
            op,
            json={"value": preset.value},
            item_id=preset.name,
            timeout=timeout,
        )
        assert resp is not None
        return self._decode(resp, Preset, op, item_id=preset.name)

    async def delete_preset(self, name: str, *, timeout: float | None = None) -> None:
        await self._request(
            "DELETE", f"/presets/{_segment(name)}", "delete preset", item_id=name, allow_not_found=True, timeout=timeout
        )

    # ── Stopwords (v27+) ─────────────────────────────────────────────────

    async def get_stopwords_set(self, set_id: str, *, timeout: float | None = None) -> StopwordsSet | None:
        op = "get stopwords"
        resp = await self._request(
            "GET", f"/stopwords/{_segment(set_id)}", op, item_id=set_id, allow_not_found=True, timeout=timeout
        )
        if resp is None:
            return None
        # The API returns a {"stopwords": {...}} envelope
        return self._decode(resp, StopwordsSet, op, key="stopwords", item_id=set_id)

    async def upsert_stopwords_set(self, stopwords: StopwordsSet, *, timeout: float | None = None) -> StopwordsSet:
        op = "upsert stopwords"
        body: dict[str, Any] = {"stopwords": stopwords.stopwords}
        if stopwords.locale:
            body["locale"] = stopwords.locale
        resp = await self._request(
            "PUT",
            f"/stopwords/{_segment(stopwords.id)}",
            op,
            json=body,
            item_id=stopwords.id,
            timeout=timeout,
        )
        assert resp is not None
        return self._decode(resp, StopwordsSet, op, item_id=stopwords.id)

    async def delete_stopwords_set(self, set_id: str, *, timeout: float | None = None) -> None:
        await self._request(
            "DELETE",
            f"/stopwords/{_segment(set_id)}",
            "delete stopwords",
            item_id=set_id,
            allow_not_found=True,
            timeout=timeout,
        )

    # ── Analytics rules (v28+) ───────────────────────────────────────────

    async def list_analytics_rules(self, *, timeout: float | None = None) -> list[AnalyticsRule]:
        op = "list analytics rules"
        resp = await self._request("GET", "/analytics/rules", op, allow_not_found=True, timeout=timeout)
        if resp is None:
            return []
        # Servers before v30 wrap the list in {"rules": [...]}
        return self._decode_list(resp, AnalyticsRule, op, key="rules")

    async def get_analytics_rule(self, name: str, *, timeout: float | None = None) -> AnalyticsRule | None:
        op = "get analytics rule"
        resp = await self._request(
            "GET", f"/analytics/rules/{_segment(name)}", op, item_id=name, allow_not_found=True, timeout=timeout
        )
        if resp is None:
            return None
        return self._decode(resp, AnalyticsRule, op, item_id=name)

    async def upsert_analytics_rule(
        self, name: str, body: dict[str, Any], *, timeout: float | None = None
    ) -> AnalyticsRule:
        """PUT ``body`` as-is; callers pick the flat or nested shape."""
        op = "upsert analytics rule"
        resp = await self._request(
            "PUT", f"/analytics/rules/{_segment(name)}", op, json=body, item_id=name, timeout=timeout
        )
        assert resp is not None
        return self._decode(resp, AnalyticsRule, op, item_id=name)

    async def delete_analytics_rule(self, name: str, *, timeout: float | None = None) -> None:
        await self._request(
            "DELETE",
            f"/analytics/rules/{_segment(name)}",
            "delete analytics rule",
            item_id=name,
            allow_not_found=True,
            timeout=timeout,
        )
