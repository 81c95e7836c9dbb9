from __future__ import annotations

from trixy_indexer.app.domain.models import EventKind

from .bet_placed import BetPlacedDB
from .event_columns import TrixyEventColumns
from .market_created import MarketCreatedDB
from .market_resolved import MarketResolvedDB
from .skipped_events import SkippedEventDB
from .sync_states import SyncStateDB
from .winnings_claimed import WinningsClaimedDB
from .yield_deposited import YieldDepositedDB
from .yield_withdrawn import YieldWithdrawnDB

EVENT_TABLES: dict[EventKind, type[TrixyEventColumns]] = {
    EventKind.MARKET_CREATED: MarketCreatedDB,
    EventKind.BET_PLACED: BetPlacedDB,
    EventKind.MARKET_RESOLVED: MarketResolvedDB,
    EventKind.WINNINGS_CLAIMED: WinningsClaimedDB,
    EventKind.YIELD_DEPOSITED: YieldDepositedDB,
    EventKind.YIELD_WITHDRAWN: YieldWithdrawnDB,
}

__all__ = [
    "EVENT_TABLES",
    "BetPlacedDB",
    "MarketCreatedDB",
    "MarketResolvedDB",
    "SkippedEventDB",
    "SyncStateDB",
    "TrixyEventColumns",
    "WinningsClaimedDB",
    "YieldDepositedDB",
    "YieldWithdrawnDB",
]
