from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from trixy_indexer.app.infrastructure.db.column_types import SurrogateId


class TrixyEventColumns:
    """
    Columns shared by every Trixy event table.

    Identity of an event on chain is (transaction_id, event_index); each table
    declares a UNIQUE constraint on that pair, while `id` stays a surrogate key.
    """

    id: Mapped[int] = mapped_column(SurrogateId, primary_key=True, autoincrement=True)
    # -------------------------------------------------------------------------
    # Chain position
    # -------------------------------------------------------------------------
    block_height: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    # Seconds since epoch of the containing block
    block_timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    transaction_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    event_index: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
