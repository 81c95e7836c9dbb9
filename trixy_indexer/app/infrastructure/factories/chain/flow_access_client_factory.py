from __future__ import annotations

from typing import Callable, Dict

from trixy_indexer.app.domain.ports.out import ChainClient
from trixy_indexer.app.infrastructure.chain.flow_access_client import HttpFlowAccessClient

ChainClientFactory = Callable[[str, float], ChainClient]

_CHAIN_CLIENT_REGISTRY: Dict[str, ChainClientFactory] = {}

# Register backends
_CHAIN_CLIENT_REGISTRY["rest"] = lambda base_url, timeout: HttpFlowAccessClient(
    base_url=base_url,
    timeout=timeout,
)


def flow_access_client_factory(
    *,
    backend: str,
    base_url: str,
    timeout: float,
) -> ChainClient:
    """
    Create a Flow chain client for the given backend.

    "rest" talks to an access node over the Flow Access REST API.
    """
    try:
        factory = _CHAIN_CLIENT_REGISTRY[backend]
    except KeyError:
        raise ValueError(f"Unsupported Flow chain client backend: {backend!r}")

    return factory(base_url, timeout)
