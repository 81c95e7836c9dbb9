from __future__ import annotations

import logging
from dataclasses import dataclass

from trixy_indexer.app.application.services.trixy.sync_controller import SyncConfig
from trixy_indexer.app.config import Settings
from trixy_indexer.app.infrastructure.registry.networks_registry import NetworksRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncSetup:
    access_api_url: str
    config: SyncConfig


def resolve_sync_setup(
    settings: Settings,
    *,
    network: str | None = None,
    contract: str | None = None,
) -> SyncSetup:
    """
    Resolve network, contract and loop tuning into an explicit SyncConfig.

    Raises ConfigurationError for an unknown network or contract.
    """
    registry = NetworksRegistry.load(settings.networks_file)
    network_name = network or settings.flow_network

    target = registry.resolve_target(network_name, contract)
    access_api_url = (
        str(settings.flow_access_api_url)
        if settings.flow_access_api_url is not None
        else registry.access_api_url(network_name)
    )

    logger.info(
        "Contract: %s at %s, network=%s, access_api=%s, start_block=%s",
        target.name,
        target.address,
        target.network,
        access_api_url,
        target.start_block,
    )

    return SyncSetup(
        access_api_url=access_api_url,
        config=SyncConfig(
            target=target,
            window_size=settings.sync_window_size,
            poll_interval=settings.sync_poll_interval_seconds,
            retry_delay=settings.sync_retry_delay_seconds,
            max_retry_delay=settings.sync_max_retry_delay_seconds,
        ),
    )
