"""Shared pytest fixtures for API, store and service tests.

Every test gets its own SQLite database under ``tmp_path``. Tests that need
different configuration parametrize the ``settings`` fixture indirectly::

    @pytest.mark.parametrize("settings", [{"MAX_ID_LENGTH": 1}], indirect=True)
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from qrlocal.config import Settings
from qrlocal.dependencies import ServiceManager, _service_manager
from qrlocal.main import create_app
from qrlocal.store import RedirectStore


@pytest.fixture
def settings(request: pytest.FixtureRequest, tmp_path) -> Settings:
    overrides = getattr(request, "param", {})
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'redirects.db'}",
        REDIS_URL=None,
        **overrides,
    )


@pytest_asyncio.fixture(scope="function")
async def manager(settings: Settings) -> AsyncGenerator[ServiceManager, None]:
    await _service_manager.initialize(settings)
    yield _service_manager
    await _service_manager.cleanup()


@pytest_asyncio.fixture(scope="function")
async def store(manager: ServiceManager) -> RedirectStore:
    return manager.store


@pytest_asyncio.fixture(scope="function")
async def client(manager: ServiceManager, settings: Settings) -> AsyncGenerator[AsyncClient, None]:
    app = create_app(settings)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
