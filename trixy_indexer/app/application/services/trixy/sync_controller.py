from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

from trixy_indexer.app.application.services.trixy.event_window_retriever import (
    EventWindowRetriever,
)
from trixy_indexer.app.application.services.trixy.height_window import HeightWindow
from trixy_indexer.app.domain.errors import (
    ChainClientError,
    EventDecodeError,
    RecordPersistError,
    StoreUnavailableError,
    SyncStateError,
)
from trixy_indexer.app.domain.models import (
    ALL_EVENT_KINDS,
    MAX_EVENT_HEIGHT_RANGE,
    ContractTarget,
    EventKind,
    EventMeta,
    PersistOutcome,
    RetrievedEvent,
    SyncState,
    WindowReport,
)
from trixy_indexer.app.domain.ports.out import (
    ChainClient,
    EventDecoder,
    EventRecordSink,
    SyncStateRepository,
)

logger = logging.getLogger(__name__)

# Errors that abandon the current tick; the loop retries after a delay.
TRANSIENT_ERRORS: tuple[type[Exception], ...] = (
    ChainClientError,
    StoreUnavailableError,
    SyncStateError,
)

SleepFn = Callable[[float], Awaitable[None]]


class SyncPhase(str, Enum):
    BOOTSTRAPPING = "bootstrapping"
    CATCHING_UP = "catching_up"
    UP_TO_DATE = "up_to_date"


@dataclass(frozen=True)
class SyncConfig:
    target: ContractTarget
    window_size: int = 200
    poll_interval: float = 2.0
    retry_delay: float = 2.0
    max_retry_delay: float = 2.0
    kinds: tuple[EventKind, ...] = ALL_EVENT_KINDS

    def validate(self) -> None:
        if not 0 < self.window_size <= MAX_EVENT_HEIGHT_RANGE:
            raise ValueError(f"window_size must be between 1 and {MAX_EVENT_HEIGHT_RANGE}")
        if self.poll_interval < 0 or self.retry_delay < 0:
            raise ValueError("Delays must be non-negative")
        if self.max_retry_delay < self.retry_delay:
            raise ValueError("max_retry_delay must be >= retry_delay")
        if not self.kinds:
            raise ValueError("At least one event kind is required")


@dataclass
class CatchUpSummary:
    start_height: int
    end_height: int
    latest_height: int
    windows: int = 0
    inserted: int = 0
    duplicates: int = 0
    skipped: int = 0
    table_counts: dict[str, int] = field(default_factory=dict)


class SyncController:
    """
    Drives the sync loop for one contract.

    Phases:
      BOOTSTRAPPING -> load the sync state, creating it at target.start_block
      CATCHING_UP   -> windows [cursor + 1, min(cursor + window_size, latest)],
                       each retrieved, decoded, persisted, then the cursor is
                       advanced to the window end
      UP_TO_DATE    -> sleep poll_interval and look at the latest height again

    The cursor is advanced once per window, after every event of the window
    was either stored, found to be a duplicate, or skipped. Events that fail
    to decode or persist do not hold the cursor back. Errors listed in
    TRANSIENT_ERRORS abandon the tick without advancing and are retried.
    """

    def __init__(
        self,
        *,
        config: SyncConfig,
        chain: ChainClient,
        sync_states: SyncStateRepository,
        sink: EventRecordSink,
        decoder: EventDecoder,
        retriever: EventWindowRetriever | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        config.validate()
        self._config = config
        self._chain = chain
        self._sync_states = sync_states
        self._sink = sink
        self._decoder = decoder
        self._retriever = retriever or EventWindowRetriever(
            chain=chain,
            max_window_size=config.window_size,
        )
        self._sleep = sleep
        self._phase = SyncPhase.BOOTSTRAPPING

    @property
    def phase(self) -> SyncPhase:
        return self._phase

    async def bootstrap(self) -> SyncState:
        target = self._config.target

        state = await self._sync_states.load(target.address)
        if state is None:
            logger.info(
                "No sync state for %s (%s) on %s, starting after block %s",
                target.name,
                target.address,
                target.network,
                target.start_block,
            )
            state = await self._sync_states.create(
                SyncState(
                    contract_address=target.address,
                    contract_name=target.name,
                    network=target.network,
                    last_block_height=target.start_block,
                )
            )
        else:
            logger.info(
                "Resuming %s (%s) from block %s",
                target.name,
                target.address,
                state.last_block_height,
            )

        self._phase = SyncPhase.CATCHING_UP
        return state

    async def tick(self) -> CatchUpSummary:
        """Catch up from the stored cursor to the latest sealed height, then report."""
        target = self._config.target

        latest = await self._chain.get_latest_height()
        state = await self._sync_states.load(target.address)
        if state is None:
            state = await self.bootstrap()

        cursor = state.last_block_height
        summary = CatchUpSummary(start_height=cursor, end_height=cursor, latest_height=latest)

        if cursor >= latest:
            logger.debug("Up to date at block %s (latest=%s)", cursor, latest)
            self._phase = SyncPhase.UP_TO_DATE
            return summary

        self._phase = SyncPhase.CATCHING_UP
        logger.info(
            "Catching up %s: blocks=[%s, %s], behind=%s, window_size=%s",
            target.name,
            cursor + 1,
            latest,
            latest - cursor,
            self._config.window_size,
        )

        while cursor < latest:
            window = HeightWindow.next_after(
                cursor=cursor,
                latest=latest,
                window_size=self._config.window_size,
            )
            report = await self.index_window(window)

            if not await self._sync_states.advance(target.address, window.end_height):
                logger.warning(
                    "Sync state for %s was not advanced to %s (already ahead or missing)",
                    target.address,
                    window.end_height,
                )
            cursor = window.end_height

            summary.windows += 1
            summary.inserted += report.inserted
            summary.duplicates += report.duplicates
            summary.skipped += report.skipped
            self._log_window(report, latest)

        summary.end_height = cursor
        summary.table_counts = await self._table_counts()

        logger.info(
            "Caught up to block %s: windows=%s, stored=%s, duplicates=%s, skipped=%s",
            cursor,
            summary.windows,
            summary.inserted,
            summary.duplicates,
            summary.skipped,
            extra={"table_counts": summary.table_counts},
        )
        for table_name, count in summary.table_counts.items():
            logger.info("  %s: %s rows", table_name, count)

        self._phase = SyncPhase.UP_TO_DATE
        return summary

    async def index_window(self, window: HeightWindow) -> WindowReport:
        report = WindowReport(start_height=window.start_height, end_height=window.end_height)

        events = self._retriever.fetch_window(
            target=self._config.target,
            kinds=self._config.kinds,
            window=window,
            report=report,
        )
        async for item in events:
            meta = EventMeta(
                block_height=item.block_height,
                block_timestamp=item.block_timestamp,
                transaction_id=item.event.transaction_id,
                event_index=item.event.event_index,
            )

            try:
                record = self._decoder.decode(kind=item.kind, fields=item.event.fields, meta=meta)
            except EventDecodeError as exc:
                report.decode_failures += 1
                logger.warning(
                    "Failed to decode %s tx=%s index=%s: %s",
                    item.kind.value,
                    meta.transaction_id,
                    meta.event_index,
                    exc,
                )
                await self._dead_letter(item, meta, exc)
                continue

            try:
                outcome = await self._sink.persist(record)
            except RecordPersistError as exc:
                report.persist_failures += 1
                logger.error(
                    "Failed to store %s tx=%s index=%s: %s",
                    item.kind.value,
                    meta.transaction_id,
                    meta.event_index,
                    exc,
                )
                continue

            if outcome is PersistOutcome.INSERTED:
                report.inserted += 1
            else:
                report.duplicates += 1

        return report

    async def catch_up_once(self) -> CatchUpSummary:
        await self.bootstrap()
        return await self.tick()

    async def run_forever(self) -> None:
        """
        Run until cancelled.

        Transient failures are retried after retry_delay, doubling up to
        max_retry_delay; the delay resets after a successful tick.
        """
        delay = self._config.retry_delay

        while True:
            try:
                if self._phase is SyncPhase.BOOTSTRAPPING:
                    await self.bootstrap()
                await self.tick()
            except TRANSIENT_ERRORS as exc:
                logger.warning(
                    "Sync tick failed for %s (%s): %s; retrying in %.1fs",
                    self._config.target.name,
                    type(exc).__name__,
                    exc,
                    delay,
                )
                await self._sleep(delay)
                delay = min(delay * 2, self._config.max_retry_delay)
                continue

            delay = self._config.retry_delay
            await self._sleep(self._config.poll_interval)

    # ---------------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------------

    async def _dead_letter(self, item: RetrievedEvent, meta: EventMeta, exc: EventDecodeError) -> None:
        try:
            await self._sink.record_skipped(
                kind=item.kind,
                contract_address=self._config.target.address,
                meta=meta,
                reason=str(exc),
                payload=item.event.fields.to_plain(),
            )
        except (RecordPersistError, StoreUnavailableError) as write_exc:
            logger.warning(
                "Could not record skipped %s tx=%s index=%s: %s",
                item.kind.value,
                meta.transaction_id,
                meta.event_index,
                write_exc,
            )

    async def _table_counts(self) -> dict[str, int]:
        try:
            return await self._sink.table_counts()
        except StoreUnavailableError as exc:
            logger.warning("Could not read table counts: %s", exc)
            return {}

    def _log_window(self, report: WindowReport, latest: int) -> None:
        logger.info(
            "Indexed blocks=[%s, %s] of %s: fetched=%s, stored=%s, duplicates=%s, skipped=%s",
            report.start_height,
            report.end_height,
            latest,
            report.fetched,
            report.inserted,
            report.duplicates,
            report.skipped,
        )
        if report.failed_kinds:
            logger.warning(
                "Event queries failed in blocks=[%s, %s]: %s",
                report.start_height,
                report.end_height,
                ", ".join(kind.value for kind in report.failed_kinds),
            )
