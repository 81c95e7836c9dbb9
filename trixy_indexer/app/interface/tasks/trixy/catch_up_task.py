from __future__ import annotations

from trixy_indexer.app.config import get_settings
from trixy_indexer.app.infrastructure.db.engine import create_app_async_engine
from trixy_indexer.app.infrastructure.factories.chain.flow_access_client_factory import (
    flow_access_client_factory,
)
from trixy_indexer.app.infrastructure.factories.trixy.sync_controller_factory import (
    sync_controller_factory,
)
from trixy_indexer.app.interface.tasks.trixy.task_setup import resolve_sync_setup


async def catch_up_task(
    *,
    network: str | None = None,
    contract: str | None = None,
    backend: str = "sqlalchemy",
) -> None:
    """
    Task: one catch-up pass up to the latest sealed block, then exit.

    Failures propagate to the caller instead of being retried.
    """
    settings = get_settings()
    setup = resolve_sync_setup(settings, network=network, contract=contract)

    engine = create_app_async_engine()
    chain = flow_access_client_factory(
        backend="rest",
        base_url=setup.access_api_url,
        timeout=settings.http_timeout_seconds,
    )
    try:
        controller = sync_controller_factory(
            backend=backend,
            engine=engine,
            chain=chain,
            config=setup.config,
        )
        await controller.catch_up_once()
    finally:
        await chain.close()
        await engine.dispose()
