"""Tests for version-gated presets and stopwords."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from tscompat.adapters.typesense.client import TypesenseServerClient
from tscompat.core.resources import PresetService, StopwordsService
from tscompat.exceptions import RemoteOperationError, UnsupportedFeatureError
from tscompat.models.resources import Preset, StopwordsSet
from tscompat.versioning.features import FallbackFeatureChecker, PreciseFeatureChecker
from tscompat.versioning.version import parse_version


def _checker(raw: str) -> PreciseFeatureChecker:
    return PreciseFeatureChecker(parse_version(raw))


# ── Presets ──────────────────────────────────────────────────────────────────


async def test_preset_roundtrip(fake_server, client) -> None:
    service = PresetService(client, _checker("30.0"))

    saved = await service.upsert(Preset(name="listing", value={"q": "*", "per_page": 20}))
    assert saved.name == "listing"
    assert fake_server.presets["listing"]["value"] == {"q": "*", "per_page": 20}

    assert (await service.get("listing")).value["per_page"] == 20
    await service.delete("listing")
    assert await service.get("listing") is None


async def test_preset_on_old_server_fails_without_network(make_server) -> None:
    server = make_server("26.0")
    async with server.client() as c:
        service = PresetService(c, _checker("26.0"))
        with pytest.raises(UnsupportedFeatureError) as exc_info:
            await service.upsert(Preset(name="listing", value={"q": "*"}))

    message = str(exc_info.value)
    assert "v27.0" in message
    assert "26.0" in message
    assert server.calls() == []


async def test_preset_unknown_version_reaches_server(make_server) -> None:
    server = make_server("26.0")
    async with server.client() as c:
        service = PresetService(c, FallbackFeatureChecker())
        with pytest.raises(RemoteOperationError) as exc_info:
            await service.upsert(Preset(name="listing", value={"q": "*"}))

    assert exc_info.value.status_code == 404
    assert server.calls("PUT") == [("PUT", "/presets/listing")]


# ── Stopwords ────────────────────────────────────────────────────────────────


async def test_stopwords_roundtrip(fake_server, client) -> None:
    service = StopwordsService(client, _checker("30.0"))

    await service.upsert(StopwordsSet(id="common", stopwords=["the", "a"], locale="en"))
    assert fake_server.stopwords["common"] == {"id": "common", "stopwords": ["the", "a"], "locale": "en"}

    got = await service.get("common")
    assert got == StopwordsSet(id="common", stopwords=["the", "a"], locale="en")

    await service.delete("common")
    await service.delete("common")
    assert await service.get("common") is None


async def test_stopwords_on_old_server(make_server) -> None:
    server = make_server("26.2")
    async with server.client() as c:
        service = StopwordsService(c, _checker("26.2"))
        with pytest.raises(UnsupportedFeatureError, match="typesense_stopwords_set"):
            await service.get("common")

    assert server.calls() == []


@pytest.mark.parametrize("service_cls", [PresetService, StopwordsService])
async def test_old_server_never_touches_client(service_cls) -> None:
    client = AsyncMock(spec=TypesenseServerClient)
    service = service_cls(client, _checker("26.2"))

    with pytest.raises(UnsupportedFeatureError):
        await service.get("common")
    with pytest.raises(UnsupportedFeatureError):
        await service.delete("common")

    assert client.mock_calls == []
