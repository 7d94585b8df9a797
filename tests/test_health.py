"""Health, listing, metrics and docs endpoint tests."""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from qrlocal.dependencies import ServiceManager
from qrlocal.enums import HealthStatus
from qrlocal.errors import StoreFailure


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    response = await client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == HealthStatus.HEALTHY.value
    assert data["database"] == HealthStatus.HEALTHY.value
    assert data["cache"] == HealthStatus.DISABLED.value


@pytest.mark.asyncio
async def test_health_check_database_down(
    client: AsyncClient, manager: ServiceManager, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(manager.store, "ping", AsyncMock(side_effect=StoreFailure()))

    response = await client.get("/api/health")
    data = response.json()
    assert data["status"] == HealthStatus.UNHEALTHY.value
    assert data["database"] == HealthStatus.UNHEALTHY.value


@pytest.mark.asyncio
async def test_list_redirects_newest_first(client: AsyncClient) -> None:
    assert (await client.get("/api/redirects")).json() == []

    for key in ("one", "two", "three"):
        await client.post("/api/add", json={"url": f"https://example.com/{key}", "key": key})
    await client.get("/two", follow_redirects=False)

    response = await client.get("/api/redirects")
    assert response.status_code == 200
    data = response.json()
    assert [item["id"] for item in data] == ["three", "two", "one"]
    assert data[1]["visit_count"] == 1
    assert data[1]["last_visit_at"] is not None
    assert data[0]["last_visit_at"] is None
    assert data[0]["qr_url"] == "qr.local/three"


@pytest.mark.asyncio
async def test_metrics_exposed(client: AsyncClient) -> None:
    await client.post("/api/add", json={"url": "https://example.com"})

    response = await client.get("/api/metrics")
    assert response.status_code == 200
    assert "qrlocal_creation_requests_total" in response.text


@pytest.mark.asyncio
async def test_docs_served_under_api(client: AsyncClient) -> None:
    assert (await client.get("/api/docs")).status_code == 200
    assert (await client.get("/api/openapi.json")).status_code == 200
