from __future__ import annotations

from sqlalchemy import BigInteger, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from trixy_indexer.app.infrastructure.db.db_base import BaseDB
from trixy_indexer.app.infrastructure.db.models.trixy.event_columns import TrixyEventColumns


class BetPlacedDB(TrixyEventColumns, BaseDB):
    """One row = one TrixyEvents.BetPlaced event."""

    __tablename__ = "trixy_bet_placed"
    __table_args__ = (UniqueConstraint("transaction_id", "event_index"),)

    market_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    user: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    selected_option: Mapped[str] = mapped_column(Text, nullable=False)
    protocol_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # UFix64 kept as its exact decimal string
    amount: Mapped[str] = mapped_column(Text, nullable=False)
