"""Tests for the shared-set mutator."""

from __future__ import annotations

import asyncio

import pytest

from tscompat.adapters.base.backend import SharedSetBackend
from tscompat.adapters.typesense.sets import CurationSetBackend, SynonymSetBackend
from tscompat.core.locks import MutexRegistry
from tscompat.core.mutator import SharedSetMutator, deadline
from tscompat.exceptions import OperationCancelledError
from tscompat.models.curation import Override, OverrideRule
from tscompat.models.synonym import Synonym
from tscompat.versioning.features import FallbackFeatureChecker, PreciseFeatureChecker
from tscompat.versioning.version import parse_version

V30 = PreciseFeatureChecker(parse_version("30.0"))


class MemoryBackend(SharedSetBackend[Synonym]):
    """Whole-object backend that yields between every read and write."""

    def __init__(self) -> None:
        self.sets: dict[str, list[Synonym]] = {}
        self.gate: asyncio.Event | None = None
        self.entered = asyncio.Event()
        self.replaces = 0

    @property
    def kind(self) -> str:
        return "memory set"

    async def fetch(self, name, *, timeout=None):
        self.entered.set()
        if self.gate is not None:
            await self.gate.wait()
        await asyncio.sleep(0)
        items = self.sets.get(name)
        return None if items is None else list(items)

    async def replace(self, name, items, *, timeout=None):
        await asyncio.sleep(0)
        self.replaces += 1
        self.sets[name] = list(items)

    async def remove(self, name, *, timeout=None):
        self.sets.pop(name, None)


def _syn(item_id: str, *words: str) -> Synonym:
    return Synonym(id=item_id, synonyms=list(words) or [item_id, f"{item_id}-alt"])


def _override(item_id: str) -> Override:
    return Override(id=item_id, rule=OverrideRule(query=item_id, match="exact"))


# ── Read-modify-write path ───────────────────────────────────────────────────


class TestReadModifyWrite:
    async def test_concurrent_distinct_upserts_keep_every_item(self) -> None:
        backend = MemoryBackend()
        mutator = SharedSetMutator(backend, FallbackFeatureChecker())

        await asyncio.gather(*(mutator.upsert_item("products", _syn(f"s{i}")) for i in range(25)))

        ids = {item.id for item in backend.sets["products"]}
        assert ids == {f"s{i}" for i in range(25)}

    async def test_upsert_replaces_in_place(self) -> None:
        backend = MemoryBackend()
        backend.sets["products"] = [_syn("a"), _syn("b"), _syn("c")]
        mutator = SharedSetMutator(backend, FallbackFeatureChecker())

        await mutator.upsert_item("products", _syn("b", "new"))

        assert [item.id for item in backend.sets["products"]] == ["a", "b", "c"]
        assert backend.sets["products"][1].synonyms == ["new"]

    async def test_upsert_creates_missing_set(self) -> None:
        backend = MemoryBackend()
        mutator = SharedSetMutator(backend, FallbackFeatureChecker())
        await mutator.upsert_item("products", _syn("a"))
        assert [item.id for item in backend.sets["products"]] == ["a"]

    async def test_remove_is_idempotent(self) -> None:
        backend = MemoryBackend()
        backend.sets["products"] = [_syn("a"), _syn("b")]
        mutator = SharedSetMutator(backend, FallbackFeatureChecker())

        assert await mutator.remove_item("products", "a") is True
        assert await mutator.remove_item("products", "a") is False
        assert await mutator.remove_item("missing", "a") is False
        assert [item.id for item in backend.sets["products"]] == ["b"]

    async def test_removing_last_item_deletes_set(self) -> None:
        backend = MemoryBackend()
        backend.sets["products"] = [_syn("a")]
        mutator = SharedSetMutator(backend, FallbackFeatureChecker())

        assert await mutator.remove_item("products", "a") is True
        assert "products" not in backend.sets

    async def test_concurrent_removes_and_upserts(self) -> None:
        backend = MemoryBackend()
        backend.sets["products"] = [_syn(f"old{i}") for i in range(10)]
        mutator = SharedSetMutator(backend, FallbackFeatureChecker())

        await asyncio.gather(
            *(mutator.remove_item("products", f"old{i}") for i in range(10)),
            *(mutator.upsert_item("products", _syn(f"new{i}")) for i in range(10)),
        )

        assert {item.id for item in backend.sets["products"]} == {f"new{i}" for i in range(10)}

    async def test_ensure_exists_creates_once(self) -> None:
        backend = MemoryBackend()
        mutator = SharedSetMutator(backend, FallbackFeatureChecker())

        created = await asyncio.gather(*(mutator.ensure_exists("products") for _ in range(5)))

        assert created.count(True) == 1
        assert backend.replaces == 1
        assert backend.sets["products"] == []

    async def test_get_and_list(self) -> None:
        backend = MemoryBackend()
        backend.sets["products"] = [_syn("a"), _syn("b")]
        mutator = SharedSetMutator(backend, FallbackFeatureChecker())

        assert (await mutator.get_item("products", "b")).id == "b"
        assert await mutator.get_item("products", "zzz") is None
        assert [i.id for i in await mutator.list_items("products")] == ["a", "b"]
        assert await mutator.list_items("missing") == []

    async def test_sets_with_different_names_do_not_block(self) -> None:
        backend = MemoryBackend()
        registry = MutexRegistry()
        mutator = SharedSetMutator(backend, FallbackFeatureChecker(), registry)

        async with registry.hold("products"):
            await mutator.upsert_item("articles", _syn("a"))

        assert "articles" in backend.sets


# ── Cancellation and deadlines ───────────────────────────────────────────────


class TestCancellation:
    async def test_cancellation_releases_lock(self) -> None:
        backend = MemoryBackend()
        backend.gate = asyncio.Event()
        registry = MutexRegistry()
        mutator = SharedSetMutator(backend, FallbackFeatureChecker(), registry)

        task = asyncio.create_task(mutator.upsert_item("products", _syn("a")))
        await backend.entered.wait()
        assert registry.get("products").locked()

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert not registry.get("products").locked()
        backend.gate = None
        await mutator.upsert_item("products", _syn("b"))
        assert [item.id for item in backend.sets["products"]] == ["b"]

    async def test_deadline_raises_operation_cancelled(self) -> None:
        backend = MemoryBackend()
        backend.gate = asyncio.Event()
        registry = MutexRegistry()
        mutator = SharedSetMutator(backend, FallbackFeatureChecker(), registry, operation_timeout=0.05)

        with pytest.raises(OperationCancelledError) as exc_info:
            await mutator.upsert_item("products", _syn("a"))

        assert exc_info.value.collection == "products"
        assert exc_info.value.item_id == "a"
        assert not registry.get("products").locked()
        assert "products" not in backend.sets

    async def test_per_call_timeout_overrides_default(self) -> None:
        backend = MemoryBackend()
        backend.gate = asyncio.Event()
        mutator = SharedSetMutator(backend, FallbackFeatureChecker(), operation_timeout=30)

        with pytest.raises(OperationCancelledError):
            await mutator.remove_item("products", "a", timeout=0.05)

    async def test_deadline_without_timeout_is_transparent(self) -> None:
        async with deadline(None, "noop"):
            await asyncio.sleep(0)

    async def test_external_cancel_is_not_converted(self) -> None:
        async def slow() -> None:
            async with deadline(10, "slow"):
                await asyncio.sleep(10)

        task = asyncio.create_task(slow())
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task


# ── Typesense backends ───────────────────────────────────────────────────────


class TestTypesenseBackends:
    async def test_synonym_set_uses_item_api(self, fake_server, client) -> None:
        mutator = SharedSetMutator(SynonymSetBackend(client), V30)
        assert mutator.item_api_available

        await mutator.upsert_item("products", _syn("a"))
        await mutator.upsert_item("products", _syn("b"))

        assert [i["id"] for i in fake_server.synonym_sets["products"]] == ["a", "b"]
        assert ("PUT", "/synonym_sets/products/items/b") in fake_server.calls("PUT")

    async def test_synonym_set_item_api_can_be_disabled(self, fake_server, client) -> None:
        mutator = SharedSetMutator(SynonymSetBackend(client), V30, use_item_api=False)
        assert not mutator.item_api_available

        await asyncio.gather(*(mutator.upsert_item("products", _syn(f"s{i}")) for i in range(10)))

        assert len(fake_server.synonym_sets["products"]) == 10
        assert all("/items/" not in path for _, path in fake_server.calls())

    async def test_concurrent_item_api_upserts_on_new_set(self, fake_server, client) -> None:
        mutator = SharedSetMutator(SynonymSetBackend(client), V30)

        await asyncio.gather(*(mutator.upsert_item("products", _syn(f"s{i}")) for i in range(10)))

        assert {i["id"] for i in fake_server.synonym_sets["products"]} == {f"s{i}" for i in range(10)}
        assert fake_server.calls("PUT").count(("PUT", "/synonym_sets/products")) == 1

    async def test_item_api_remove_last_item_deletes_set(self, fake_server, client) -> None:
        mutator = SharedSetMutator(SynonymSetBackend(client), V30)
        await mutator.upsert_item("products", _syn("a"))
        await mutator.upsert_item("products", _syn("b"))

        await mutator.remove_item("products", "a")
        assert ("DELETE", "/synonym_sets/products/items/a") in fake_server.calls("DELETE")
        await mutator.remove_item("products", "b")

        assert "products" not in fake_server.synonym_sets

    async def test_curation_set_concurrent_upserts(self, fake_server, client) -> None:
        mutator = SharedSetMutator(CurationSetBackend(client), V30)
        assert not mutator.item_api_available

        await asyncio.gather(*(mutator.upsert_item("products", _override(f"o{i}")) for i in range(20)))

        stored = fake_server.curation_sets["products"]
        assert {c["id"] for c in stored} == {f"o{i}" for i in range(20)}

    async def test_deadline_against_slow_server(self, fake_server, client) -> None:
        fake_server.delay = 0.5
        mutator = SharedSetMutator(CurationSetBackend(client), V30, operation_timeout=0.05)

        with pytest.raises(OperationCancelledError):
            await mutator.upsert_item("products", _override("o1"))
        assert not mutator.registry.get("products").locked()
