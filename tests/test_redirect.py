"""Redirect endpoint behavior tests."""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from qrlocal.dependencies import ServiceManager
from qrlocal.errors import StoreFailure
from qrlocal.store import RedirectStore


@pytest.mark.asyncio
async def test_redirect_valid_id(client: AsyncClient) -> None:
    create_resp = await client.post("/api/add", json={"url": "https://www.python.org"})
    identifier = create_resp.json()["base32_id"]

    response = await client.get(f"/{identifier}", follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"] == "https://www.python.org"


@pytest.mark.asyncio
async def test_redirect_is_case_insensitive(client: AsyncClient) -> None:
    await client.post("/api/add", json={"url": "https://example.com", "key": "mykey23"})

    response = await client.get("/MYKEY23", follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"] == "https://example.com"


@pytest.mark.asyncio
async def test_redirect_unknown_id(client: AsyncClient, store: RedirectStore) -> None:
    response = await client.get("/nonexistent", follow_redirects=False)
    assert response.status_code == 404
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == "Redirect not found"
    assert await store.list_all() == []


@pytest.mark.asyncio
async def test_redirect_counts_visits(client: AsyncClient, store: RedirectStore) -> None:
    await client.post("/api/add", json={"url": "https://example.com", "key": "visits"})

    for _ in range(3):
        await client.get("/visits", follow_redirects=False)

    record = await store.get("visits")
    assert record.visit_count == 3
    assert record.last_visit_at is not None


@pytest.mark.asyncio
async def test_redirect_survives_visit_update_failure(
    client: AsyncClient, manager: ServiceManager, monkeypatch: pytest.MonkeyPatch
) -> None:
    await client.post("/api/add", json={"url": "https://example.com", "key": "broken"})
    failing = AsyncMock(side_effect=StoreFailure())
    monkeypatch.setattr(manager.store, "record_visit", failing)

    response = await client.get("/broken", follow_redirects=False)

    assert response.status_code == 307
    assert response.headers["location"] == "https://example.com"
    failing.assert_awaited_once_with("broken")


@pytest.mark.asyncio
async def test_redirect_lookup_failure(
    client: AsyncClient, manager: ServiceManager, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(manager.store, "get", AsyncMock(side_effect=StoreFailure()))

    response = await client.get("/anykey", follow_redirects=False)

    assert response.status_code == 500
    assert response.text == "Database error"
