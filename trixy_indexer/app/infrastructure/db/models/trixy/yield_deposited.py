from __future__ import annotations

from sqlalchemy import Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from trixy_indexer.app.infrastructure.db.db_base import BaseDB
from trixy_indexer.app.infrastructure.db.models.trixy.event_columns import TrixyEventColumns


class YieldDepositedDB(TrixyEventColumns, BaseDB):
    """
    One row = one TrixyEvents.YieldDeposited event.

    position_id falls back to the stringified marketId for contract versions
    that did not emit an explicit position identifier.
    """

    __tablename__ = "trixy_yield_deposited"
    __table_args__ = (UniqueConstraint("transaction_id", "event_index"),)

    user_address: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    protocol_name: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    amount: Mapped[str] = mapped_column(Text, nullable=False)
    position_id: Mapped[str] = mapped_column(Text, nullable=False)
