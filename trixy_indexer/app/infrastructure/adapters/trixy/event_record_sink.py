from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from trixy_indexer.app.domain.errors import RecordPersistError, StoreUnavailableError
from trixy_indexer.app.domain.models import (
    EventKind,
    EventMeta,
    PersistOutcome,
    TrixyEventRecord,
)
from trixy_indexer.app.domain.ports.out import EventRecordSink
from trixy_indexer.app.infrastructure.db.errors import is_systemic_db_error
from trixy_indexer.app.infrastructure.db.models.trixy import EVENT_TABLES, SkippedEventDB
from trixy_indexer.app.infrastructure.db.upsert import insert_on_conflict_do_nothing

logger = logging.getLogger(__name__)

_EVENT_IDENTITY = ("transaction_id", "event_index")
_SKIPPED_IDENTITY = ("kind", "transaction_id", "event_index")


class SqlAlchemyEventRecordSink(EventRecordSink):
    """
    EventRecordSink implementation using SQLAlchemy Core on an AsyncEngine.

    Strategy:
    - one INSERT ... ON CONFLICT (transaction_id, event_index) DO NOTHING per record,
      in its own transaction, so one bad row never rolls back its neighbours,
    - rowcount == 0 means the event was already ingested -> DUPLICATE,
    - connectivity-class errors -> StoreUnavailableError (window is retried),
    - anything else -> RecordPersistError (event is skipped and counted).
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._dialect_name = engine.dialect.name

    async def persist(self, record: TrixyEventRecord) -> PersistOutcome:
        table = EVENT_TABLES[record.KIND]
        stmt = insert_on_conflict_do_nothing(
            dialect_name=self._dialect_name,
            table=table,
            conflict_columns=_EVENT_IDENTITY,
        ).values(**asdict(record))

        rowcount = await self._execute_write(
            stmt,
            what=f"{record.KIND.value} {record.transaction_id}#{record.event_index}",
        )

        if rowcount == 0:
            logger.debug(
                "Already ingested %s tx=%s index=%s",
                record.KIND.value,
                record.transaction_id,
                record.event_index,
            )
            return PersistOutcome.DUPLICATE
        return PersistOutcome.INSERTED

    async def record_skipped(
        self,
        *,
        kind: EventKind,
        contract_address: str,
        meta: EventMeta,
        reason: str,
        payload: dict[str, Any],
    ) -> None:
        stmt = insert_on_conflict_do_nothing(
            dialect_name=self._dialect_name,
            table=SkippedEventDB,
            conflict_columns=_SKIPPED_IDENTITY,
        ).values(
            contract_address=contract_address,
            kind=kind.value,
            block_height=meta.block_height,
            block_timestamp=meta.block_timestamp,
            transaction_id=meta.transaction_id,
            event_index=meta.event_index,
            reason=reason,
            payload=payload,
        )
        await self._execute_write(
            stmt,
            what=f"skipped {kind.value} {meta.transaction_id}#{meta.event_index}",
        )

    async def table_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        try:
            async with self._engine.connect() as conn:
                for table in (*EVENT_TABLES.values(), SkippedEventDB):
                    result = await conn.execute(select(func.count()).select_from(table))
                    counts[table.__tablename__] = int(result.scalar_one())
        except (SQLAlchemyError, OSError) as exc:
            raise StoreUnavailableError(f"Failed to count rows: {exc}") from exc
        return counts

    async def _execute_write(self, stmt: Any, *, what: str) -> int:
        try:
            async with self._engine.begin() as conn:
                result = await conn.execute(stmt)
        except (SQLAlchemyError, OSError) as exc:
            if is_systemic_db_error(exc):
                raise StoreUnavailableError(f"Store unavailable while writing {what}: {exc}") from exc
            raise RecordPersistError(f"Failed to write {what}: {exc}") from exc
        return result.rowcount
