from __future__ import annotations

from typing import Any

from sqlalchemy import BigInteger, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from trixy_indexer.app.infrastructure.db.db_base import BaseDB
from trixy_indexer.app.infrastructure.db.models.trixy.event_columns import TrixyEventColumns
from trixy_indexer.app.infrastructure.db.column_types import JsonDocument


class MarketResolvedDB(TrixyEventColumns, BaseDB):
    """
    One row = one TrixyEvents.MarketResolved event.

    final_apys maps protocol name -> UFix64 APY string, with no fixed set of keys.
    """

    __tablename__ = "trixy_market_resolved"
    __table_args__ = (UniqueConstraint("transaction_id", "event_index"),)

    market_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    winning_option: Mapped[str] = mapped_column(Text, nullable=False)
    final_apys: Mapped[dict[str, Any]] = mapped_column(JsonDocument, nullable=False)
    resolved_at: Mapped[str] = mapped_column(Text, nullable=False)
