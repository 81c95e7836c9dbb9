from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import BigInteger, DateTime, Integer, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from trixy_indexer.app.infrastructure.db.db_base import BaseDB
from trixy_indexer.app.infrastructure.db.column_types import JsonDocument, SurrogateId


class SkippedEventDB(BaseDB):
    """
    Dead-letter table for events that could not be decoded.

    The cursor moves past them anyway; rows here keep the raw JSON-Cadence
    payload so they can be inspected and replayed by hand.
    """

    __tablename__ = "trixy_skipped_events"
    __table_args__ = (UniqueConstraint("kind", "transaction_id", "event_index"),)

    id: Mapped[int] = mapped_column(SurrogateId, primary_key=True, autoincrement=True)

    contract_address: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    kind: Mapped[str] = mapped_column(Text, nullable=False)
    block_height: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    block_timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    transaction_id: Mapped[str] = mapped_column(Text, nullable=False)
    event_index: Mapped[int] = mapped_column(Integer, nullable=False)

    reason: Mapped[str] = mapped_column(Text, nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JsonDocument, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
