from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from memory_vista.main import create_app
from memory_vista.settings import Settings
from memory_vista.store.memory import MemoryDocumentStore

from tests.utils import JWT_SECRET, FrozenClock


@pytest.fixture
def app_settings() -> Settings:
    return Settings(
        _env_file=None,
        store_backend="memory",
        jwt_secret=JWT_SECRET,
        max_pending_requests=3,
        cooldown_period_days=7,
        max_requests_per_month=5,
    )


@pytest.fixture
def app(
    app_settings: Settings, memory_store: MemoryDocumentStore, clock: FrozenClock
) -> FastAPI:
    return create_app(app_settings, store=memory_store, clock=clock)


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with LifespanManager(app) as manager:
        transport = ASGITransport(app=manager.app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client
