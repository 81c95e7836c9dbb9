from __future__ import annotations

from sqlalchemy import BigInteger, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from trixy_indexer.app.infrastructure.db.db_base import BaseDB
from trixy_indexer.app.infrastructure.db.models.trixy.event_columns import TrixyEventColumns


class WinningsClaimedDB(TrixyEventColumns, BaseDB):
    """One row = one TrixyEvents.WinningsClaimed event."""

    __tablename__ = "trixy_winnings_claimed"
    __table_args__ = (UniqueConstraint("transaction_id", "event_index"),)

    market_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    user: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    payout: Mapped[str] = mapped_column(Text, nullable=False)
