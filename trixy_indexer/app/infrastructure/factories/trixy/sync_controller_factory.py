from __future__ import annotations

from typing import Callable, Dict

from sqlalchemy.ext.asyncio import AsyncEngine

from trixy_indexer.app.application.services.trixy.event_window_retriever import (
    EventWindowRetriever,
)
from trixy_indexer.app.application.services.trixy.sync_controller import (
    SyncConfig,
    SyncController,
)
from trixy_indexer.app.domain.ports.out import ChainClient
from trixy_indexer.app.infrastructure.adapters.trixy.event_record_sink import (
    SqlAlchemyEventRecordSink,
)
from trixy_indexer.app.infrastructure.adapters.trixy.sync_state_repository import (
    SqlAlchemySyncStateRepository,
)
from trixy_indexer.app.infrastructure.decoders.trixy.event_decoder import TrixyEventDecoder

SyncControllerFactory = Callable[[AsyncEngine, ChainClient, SyncConfig], SyncController]

_SYNC_CONTROLLER_REGISTRY: Dict[str, SyncControllerFactory] = {}


def _make_sqlalchemy_controller(
    engine: AsyncEngine,
    chain: ChainClient,
    config: SyncConfig,
) -> SyncController:
    """
    Wire dependencies for SQLAlchemy backend:
    - sync_states cursor repository and trixy_* record sink on the same engine
    - TrixyEvents decoder over JSON-Cadence field bags
    - window retriever bounded by the configured window size
    """
    return SyncController(
        config=config,
        chain=chain,
        sync_states=SqlAlchemySyncStateRepository(engine),
        sink=SqlAlchemyEventRecordSink(engine),
        decoder=TrixyEventDecoder(),
        retriever=EventWindowRetriever(chain=chain, max_window_size=config.window_size),
    )


# Register backends
_SYNC_CONTROLLER_REGISTRY["sqlalchemy"] = _make_sqlalchemy_controller


def sync_controller_factory(
    *,
    backend: str,
    engine: AsyncEngine,
    chain: ChainClient,
    config: SyncConfig,
) -> SyncController:
    try:
        factory = _SYNC_CONTROLLER_REGISTRY[backend]
    except KeyError:
        raise ValueError(f"Unsupported sync controller backend: {backend!r}")

    return factory(engine, chain, config)
