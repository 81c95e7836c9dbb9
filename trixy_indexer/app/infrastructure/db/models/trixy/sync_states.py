from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from trixy_indexer.app.infrastructure.db.db_base import BaseDB
from trixy_indexer.app.infrastructure.db.column_types import SurrogateId


class SyncStateDB(BaseDB):
    """
    Per-contract ingestion cursor.

    last_block_height is the last height whose events are fully accounted for;
    it only ever moves forward.
    """

    __tablename__ = "sync_states"

    id: Mapped[int] = mapped_column(SurrogateId, primary_key=True, autoincrement=True)

    contract_address: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    contract_name: Mapped[str] = mapped_column(Text, nullable=False)
    network: Mapped[str] = mapped_column(Text, nullable=False)

    last_block_height: Mapped[int] = mapped_column(BigInteger, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
