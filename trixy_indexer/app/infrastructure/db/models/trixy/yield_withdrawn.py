from __future__ import annotations

from sqlalchemy import BigInteger, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from trixy_indexer.app.infrastructure.db.db_base import BaseDB
from trixy_indexer.app.infrastructure.db.models.trixy.event_columns import TrixyEventColumns


class YieldWithdrawnDB(TrixyEventColumns, BaseDB):
    """One row = one TrixyEvents.YieldWithdrawn event."""

    __tablename__ = "trixy_yield_withdrawn"
    __table_args__ = (UniqueConstraint("transaction_id", "event_index"),)

    market_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    protocol: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[str] = mapped_column(Text, nullable=False)
    yield_earned: Mapped[str] = mapped_column(Text, nullable=False)
