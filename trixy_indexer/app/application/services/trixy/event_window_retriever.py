from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence

from trixy_indexer.app.application.services.trixy.height_window import HeightWindow
from trixy_indexer.app.domain.errors import BlockResolutionError, ChainClientError
from trixy_indexer.app.domain.models import (
    ContractTarget,
    EventKind,
    RetrievedEvent,
    WindowReport,
)
from trixy_indexer.app.domain.ports.out import ChainClient

logger = logging.getLogger(__name__)


class EventWindowRetriever:
    """
    Fetches every Trixy event emitted within one height window.

    For each requested kind it runs one ranged query against the access node
    and attaches the timestamp of the block that contains each event.

    Failure isolation:
    - a failed query for one kind is logged and recorded in report.failed_kinds;
      the remaining kinds are still fetched,
    - an event whose block cannot be resolved is logged, counted in
      report.block_failures and dropped,
    - when every kind fails the window is abandoned with ChainClientError,
      so an unreachable access node never looks like an empty window.

    Block headers are cached for the lifetime of a single window only.
    """

    def __init__(self, *, chain: ChainClient, max_window_size: int) -> None:
        if max_window_size <= 0:
            raise ValueError("max_window_size must be positive")
        self._chain = chain
        self._max_window_size = max_window_size

    async def fetch_window(
        self,
        *,
        target: ContractTarget,
        kinds: Sequence[EventKind],
        window: HeightWindow,
        report: WindowReport,
    ) -> AsyncIterator[RetrievedEvent]:
        window.validate()
        if window.size > self._max_window_size:
            raise ValueError(
                f"Window [{window.start_height}, {window.end_height}] spans {window.size} heights, "
                f"max is {self._max_window_size}"
            )

        block_timestamps: dict[int, int] = {}
        last_error: ChainClientError | None = None

        for kind in kinds:
            event_type = kind.type_id(
                contract_address=target.address,
                events_contract=target.events_contract,
            )
            try:
                blocks = await self._chain.get_events_for_height_range(
                    event_type=event_type,
                    start_height=window.start_height,
                    end_height=window.end_height,
                )
            except ChainClientError as exc:
                logger.warning(
                    "Failed to query %s events in [%s, %s]: %s",
                    kind.value,
                    window.start_height,
                    window.end_height,
                    exc,
                )
                report.failed_kinds.append(kind)
                last_error = exc
                continue

            for block in blocks:
                for event in block.events:
                    report.fetched += 1
                    try:
                        timestamp = await self._block_timestamp(block.block_height, block_timestamps)
                    except BlockResolutionError as exc:
                        logger.warning(
                            "Skipping %s tx=%s index=%s: %s",
                            kind.value,
                            event.transaction_id,
                            event.event_index,
                            exc,
                        )
                        report.block_failures += 1
                        continue

                    yield RetrievedEvent(
                        kind=kind,
                        event=event,
                        block_height=block.block_height,
                        block_timestamp=timestamp,
                    )

        if kinds and len(report.failed_kinds) == len(kinds):
            raise ChainClientError(
                f"Every event query failed for [{window.start_height}, {window.end_height}]"
            ) from last_error

    async def _block_timestamp(self, height: int, cache: dict[int, int]) -> int:
        if height in cache:
            return cache[height]
        try:
            header = await self._chain.get_block_by_height(height)
        except ChainClientError as exc:
            raise BlockResolutionError(height, exc) from exc
        cache[height] = header.unix_timestamp
        return cache[height]
