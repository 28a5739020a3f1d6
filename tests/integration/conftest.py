"""Integration test fixtures — a real Typesense server.

Expects a server to be running, e.g.:
    docker run -p 8108:8108 typesense/typesense:30.0 --data-dir /tmp --api-key=xyz

Override the target with TYPESENSE_TEST_URL / TYPESENSE_TEST_API_KEY.
Tests are skipped when no server answers ``/health``.
"""

from __future__ import annotations

import os
import time
import uuid

import httpx
import pytest

from tscompat.config.settings import Settings


def _wait_for_service(url: str, timeout: float = 5.0) -> bool:
    """Block until *url* returns HTTP 200, or timeout."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            r = httpx.get(url, timeout=2)
            if r.status_code == 200:
                return True
        except httpx.HTTPError:
            pass
        time.sleep(0.5)
    return False


@pytest.fixture(scope="session")
def typesense_ready() -> Settings:
    """Ensure Typesense is running and return settings pointing at it."""
    url = httpx.URL(os.environ.get("TYPESENSE_TEST_URL", "http://localhost:8108"))
    if not _wait_for_service(str(url.join("/health"))):
        pytest.skip(f"Typesense not available at {url}")
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        host=url.host,
        port=url.port or (443 if url.scheme == "https" else 80),
        protocol=url.scheme,
        api_key=os.environ.get("TYPESENSE_TEST_API_KEY", "xyz"),
    )


@pytest.fixture
def collection_name() -> str:
    """A unique collection / set name per test."""
    return f"tscompat-{uuid.uuid4().hex[:8]}"
