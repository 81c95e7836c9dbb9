from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

import trixy_indexer.app.infrastructure.db.models.trixy  # noqa: F401
from trixy_indexer.app.infrastructure.db.db_base import BaseDB

from tests.support import FakeChainClient, TARGET


@pytest.fixture
async def sqlite_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'trixy.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(BaseDB.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def chain() -> FakeChainClient:
    return FakeChainClient(latest_height=TARGET.start_block)


_SETTINGS_ENV = (
    "DATABASE_URL",
    "POSTGRES_USER",
    "POSTGRES_PASSWORD",
    "POSTGRES_SERVER",
    "POSTGRES_PORT",
    "POSTGRES_DB",
    "FLOW_NETWORK",
    "FLOW_ACCESS_API_URL",
    "NETWORKS_FILE",
    "SYNC_WINDOW_SIZE",
    "SYNC_POLL_INTERVAL_SECONDS",
    "SYNC_RETRY_DELAY_SECONDS",
    "SYNC_MAX_RETRY_DELAY_SECONDS",
    "HTTP_TIMEOUT_SECONDS",
)


@pytest.fixture(autouse=True)
def clean_settings_env(monkeypatch):
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
