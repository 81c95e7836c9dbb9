from __future__ import annotations

from sqlalchemy import BigInteger, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from trixy_indexer.app.infrastructure.db.db_base import BaseDB
from trixy_indexer.app.infrastructure.db.models.trixy.event_columns import TrixyEventColumns
from trixy_indexer.app.infrastructure.db.column_types import StringList


class MarketCreatedDB(TrixyEventColumns, BaseDB):
    """
    One row = one TrixyEvents.MarketCreated event.

    `options` holds the market outcomes; older contract versions emitted them
    as `protocols`, both land here.
    """

    __tablename__ = "trixy_market_created"
    __table_args__ = (UniqueConstraint("transaction_id", "event_index"),)

    market_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    # Unix seconds, integer part of the UFix64 endTime
    end_time: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[list[str]] = mapped_column(StringList, nullable=False)
    yield_protocol: Mapped[str] = mapped_column(Text, nullable=False, default="")
    creator: Mapped[str] = mapped_column(Text, nullable=False, index=True)
