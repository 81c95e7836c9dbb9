from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from trixy_indexer.app.domain.errors import SyncStateError
from trixy_indexer.app.domain.models import SyncState
from trixy_indexer.app.domain.ports.out import SyncStateRepository
from trixy_indexer.app.infrastructure.db.models.trixy import SyncStateDB
from trixy_indexer.app.infrastructure.db.upsert import insert_on_conflict_do_nothing

logger = logging.getLogger(__name__)


class SqlAlchemySyncStateRepository(SyncStateRepository):
    """
    SyncStateRepository implementation backed by the sync_states table.

    - create() is insert-if-absent (ON CONFLICT (contract_address) DO NOTHING),
    - advance() is a conditional UPDATE (... WHERE last_block_height < :height),
      so the stored cursor can never move backwards, whatever the caller does.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def load(self, contract_address: str) -> SyncState | None:
        stmt = select(
            SyncStateDB.contract_address,
            SyncStateDB.contract_name,
            SyncStateDB.network,
            SyncStateDB.last_block_height,
            SyncStateDB.updated_at,
        ).where(SyncStateDB.contract_address == contract_address)

        try:
            async with self._engine.connect() as conn:
                row = (await conn.execute(stmt)).one_or_none()
        except (SQLAlchemyError, OSError) as exc:
            raise SyncStateError(f"Failed to load sync state for {contract_address}: {exc}") from exc

        if row is None:
            return None

        return SyncState(
            contract_address=row.contract_address,
            contract_name=row.contract_name,
            network=row.network,
            last_block_height=row.last_block_height,
            updated_at=row.updated_at,
        )

    async def create(self, state: SyncState) -> SyncState:
        stmt = insert_on_conflict_do_nothing(
            dialect_name=self._engine.dialect.name,
            table=SyncStateDB,
            conflict_columns=("contract_address",),
        ).values(
            contract_address=state.contract_address,
            contract_name=state.contract_name,
            network=state.network,
            last_block_height=state.last_block_height,
            updated_at=datetime.now(timezone.utc),
        )

        try:
            async with self._engine.begin() as conn:
                await conn.execute(stmt)
        except (SQLAlchemyError, OSError) as exc:
            raise SyncStateError(f"Failed to create sync state for {state.contract_address}: {exc}") from exc

        stored = await self.load(state.contract_address)
        if stored is None:
            raise SyncStateError(f"Sync state for {state.contract_address} vanished after create")
        return stored

    async def advance(self, contract_address: str, height: int) -> bool:
        stmt = (
            update(SyncStateDB)
            .where(
                SyncStateDB.contract_address == contract_address,
                SyncStateDB.last_block_height < height,
            )
            .values(last_block_height=height, updated_at=datetime.now(timezone.utc))
        )

        try:
            async with self._engine.begin() as conn:
                result = await conn.execute(stmt)
        except (SQLAlchemyError, OSError) as exc:
            raise SyncStateError(
                f"Failed to advance sync state for {contract_address} to {height}: {exc}"
            ) from exc

        advanced = result.rowcount > 0
        if not advanced:
            logger.debug(
                "Sync state not advanced: contract=%s, height=%s (missing row or not ahead)",
                contract_address,
                height,
            )
        return advanced
