"""Shared test fixtures and configuration."""

from __future__ import annotations

import asyncio
import json
from typing import Any
from urllib.parse import unquote

import httpx
import pytest

from tscompat.adapters.typesense.client import TypesenseServerClient
from tscompat.config.settings import Settings


class FakeTypesense:
    """In-memory Typesense server served through ``httpx.MockTransport``.

    ``version=None`` makes ``/debug`` fail with HTTP 500. Families not
    available on the configured version answer 404, as a real server does.
    Every request yields to the event loop once so concurrent callers
    interleave between their reads and writes.
    """

    def __init__(self, version: str | None = "30.0", *, item_api: bool = True) -> None:
        self.version = version
        self.item_api = item_api
        self.legacy_synonyms: dict[str, dict[str, dict[str, Any]]] = {}
        self.legacy_overrides: dict[str, dict[str, dict[str, Any]]] = {}
        self.synonym_sets: dict[str, list[dict[str, Any]]] = {}
        self.curation_sets: dict[str, list[dict[str, Any]]] = {}
        self.presets: dict[str, dict[str, Any]] = {}
        self.stopwords: dict[str, dict[str, Any]] = {}
        self.analytics_rules: dict[str, dict[str, Any]] = {}
        self.requests: list[tuple[str, str]] = []
        self.delay = 0.0

    # ── Helpers ──────────────────────────────────────────────────────────

    @property
    def major(self) -> int:
        head = (self.version or "").split(".")[0]
        return int(head) if head.isdigit() else 0

    @property
    def modern(self) -> bool:
        return self.version is not None and self.major >= 30

    def calls(self, method: str | None = None) -> list[tuple[str, str]]:
        return [c for c in self.requests if method is None or c[0] == method]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def client(self, **kwargs: Any) -> TypesenseServerClient:
        return TypesenseServerClient(
            host="typesense.test",
            api_key="test-key",
            port=8108,
            protocol="http",
            transport=self.transport(),
            **kwargs,
        )

    # ── Routing ──────────────────────────────────────────────────────────

    async def handle(self, request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(self.delay)
        method = request.method
        parts = [unquote(p) for p in request.url.raw_path.decode().split("?")[0].strip("/").split("/")]
        self.requests.append((method, "/" + "/".join(parts)))
        body = json.loads(request.content) if request.content else None

        if parts == ["debug"]:
            if self.version is None:
                return httpx.Response(500, text="internal error")
            return httpx.Response(200, json={"state": 1, "version": self.version})

        if parts[0] == "collections" and len(parts) >= 3:
            if self.modern:
                return httpx.Response(404, json={"message": "Not Found"})
            store = self.legacy_synonyms if parts[2] == "synonyms" else self.legacy_overrides
            return self._items(store.setdefault(parts[1], {}), method, parts[3:], body, parts[2])

        if parts[0] in ("synonym_sets", "curation_sets"):
            if not self.modern:
                return httpx.Response(404, json={"message": "Not Found"})
            sets = self.synonym_sets if parts[0] == "synonym_sets" else self.curation_sets
            key = "items" if parts[0] == "synonym_sets" else "curations"
            return self._sets(sets, key, method, parts[1:], body)

        if parts[0] == "presets" and len(parts) == 2 and self.major >= 27:
            return self._simple(self.presets, method, parts[1], body, "name")

        if parts[0] == "stopwords" and len(parts) == 2 and self.major >= 27:
            if method == "GET" and parts[1] in self.stopwords:
                return httpx.Response(200, json={"stopwords": self.stopwords[parts[1]]})
            return self._simple(self.stopwords, method, parts[1], body, "id")

        if parts[:2] == ["analytics", "rules"] and self.major >= 28:
            if len(parts) == 2:
                rules = list(self.analytics_rules.values())
                return httpx.Response(200, json=rules if self.modern else {"rules": rules})
            if len(parts) == 3:
                return self._simple(self.analytics_rules, method, parts[2], body, "name")

        return httpx.Response(404, json={"message": "Not Found"})

    def _items(
        self, store: dict[str, dict[str, Any]], method: str, rest: list[str], body: Any, key: str
    ) -> httpx.Response:
        if not rest:
            return httpx.Response(200, json={key: list(store.values())})
        item_id = rest[0]
        if method == "PUT":
            store[item_id] = {**body, "id": item_id}
            return httpx.Response(200, json=store[item_id])
        if item_id not in store:
            return httpx.Response(404, json={"message": "Not Found"})
        if method == "DELETE":
            return httpx.Response(200, json=store.pop(item_id))
        return httpx.Response(200, json=store[item_id])

    def _sets(
        self, sets: dict[str, list[dict[str, Any]]], key: str, method: str, rest: list[str], body: Any
    ) -> httpx.Response:
        if not rest:
            return httpx.Response(200, json=[{"name": n, key: items} for n, items in sets.items()])
        name = rest[0]
        if len(rest) == 1:
            if method == "PUT":
                sets[name] = list(body.get(key, []))
                return httpx.Response(200, json={"name": name, key: sets[name]})
            if name not in sets:
                return httpx.Response(404, json={"message": "Not Found"})
            if method == "DELETE":
                return httpx.Response(200, json={"name": name, key: sets.pop(name)})
            return httpx.Response(200, json={"name": name, key: sets[name]})

        if not self.item_api or key != "items" or len(rest) != 3 or rest[1] != "items":
            return httpx.Response(404, json={"message": "Not Found"})
        if name not in sets:
            return httpx.Response(404, json={"message": "Not Found"})
        item_id = rest[2]
        items = sets[name]
        index = next((i for i, item in enumerate(items) if item["id"] == item_id), None)
        if method == "PUT":
            item = {**body, "id": item_id}
            if index is None:
                items.append(item)
            else:
                items[index] = item
            return httpx.Response(200, json=item)
        if index is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if method == "DELETE":
            return httpx.Response(200, json=items.pop(index))
        return httpx.Response(200, json=items[index])

    def _simple(
        self, store: dict[str, dict[str, Any]], method: str, name: str, body: Any, id_field: str
    ) -> httpx.Response:
        if method == "PUT":
            store[name] = {**body, id_field: name}
            return httpx.Response(200, json=store[name])
        if name not in store:
            return httpx.Response(404, json={"message": "Not Found"})
        if method == "DELETE":
            return httpx.Response(200, json=store.pop(name))
        return httpx.Response(200, json=store[name])


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def settings() -> Settings:
    """Create a test Settings instance pointing at the fake server."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        host="typesense.test",
        api_key="test-key",
        port=8108,
        protocol="http",
    )


@pytest.fixture
def fake_server() -> FakeTypesense:
    """A v30 fake server with item-level synonym endpoints."""
    return FakeTypesense("30.0")


@pytest.fixture
def legacy_server() -> FakeTypesense:
    """A v29 fake server with per-collection endpoints only."""
    return FakeTypesense("29.0")


@pytest.fixture
async def client(fake_server: FakeTypesense):
    """An initialized client bound to ``fake_server``."""
    async with fake_server.client() as c:
        yield c


@pytest.fixture
async def legacy_client(legacy_server: FakeTypesense):
    """An initialized client bound to ``legacy_server``."""
    async with legacy_server.client() as c:
        yield c


@pytest.fixture
def make_server() -> type[FakeTypesense]:
    """Factory for fake servers reporting an arbitrary version."""
    return FakeTypesense
