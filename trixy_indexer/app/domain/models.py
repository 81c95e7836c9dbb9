from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar, TYPE_CHECKING

if TYPE_CHECKING:
    from trixy_indexer.app.domain.ports.out import EventFieldBag


class EventKind(str, Enum):
    """The six events emitted by the TrixyEvents contract."""

    MARKET_CREATED = "MarketCreated"
    BET_PLACED = "BetPlaced"
    MARKET_RESOLVED = "MarketResolved"
    WINNINGS_CLAIMED = "WinningsClaimed"
    YIELD_DEPOSITED = "YieldDeposited"
    YIELD_WITHDRAWN = "YieldWithdrawn"

    def type_id(self, *, contract_address: str, events_contract: str) -> str:
        """
        Fully qualified Cadence event type, e.g.
        ``A.f8d6e0586b0a20c7.TrixyEvents.BetPlaced``.
        """
        address = contract_address.lower().removeprefix("0x")
        return f"A.{address}.{events_contract}.{self.value}"


ALL_EVENT_KINDS: tuple[EventKind, ...] = tuple(EventKind)

# Access nodes reject event queries spanning more heights than this.
MAX_EVENT_HEIGHT_RANGE: int = 250


class PersistOutcome(str, Enum):
    INSERTED = "inserted"
    DUPLICATE = "duplicate"


# -----------------------------------------------------------------------------
# Chain-side values
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class BlockHeader:
    height: int
    timestamp: datetime

    @property
    def unix_timestamp(self) -> int:
        return int(self.timestamp.timestamp())


@dataclass(frozen=True)
class ChainEvent:
    """One raw event as returned by the access node, payload already parsed."""

    type: str
    transaction_id: str
    event_index: int
    fields: EventFieldBag


@dataclass(frozen=True)
class BlockEvents:
    block_height: int
    events: list[ChainEvent]


@dataclass(frozen=True)
class RetrievedEvent:
    kind: EventKind
    event: ChainEvent
    block_height: int
    block_timestamp: int


@dataclass(frozen=True)
class EventMeta:
    """Where an event sits on chain; shared by every decoded record."""

    block_height: int
    block_timestamp: int
    transaction_id: str
    event_index: int


# -----------------------------------------------------------------------------
# Decoded domain records
# -----------------------------------------------------------------------------


@dataclass(frozen=True, kw_only=True)
class TrixyEventRecord:
    KIND: ClassVar[EventKind]

    block_height: int
    block_timestamp: int
    transaction_id: str
    event_index: int


@dataclass(frozen=True, kw_only=True)
class MarketCreatedRecord(TrixyEventRecord):
    KIND: ClassVar[EventKind] = EventKind.MARKET_CREATED

    market_id: int
    question: str
    end_time: str
    options: list[str]
    yield_protocol: str
    creator: str


@dataclass(frozen=True, kw_only=True)
class BetPlacedRecord(TrixyEventRecord):
    KIND: ClassVar[EventKind] = EventKind.BET_PLACED

    market_id: int
    user: str
    selected_option: str
    protocol_index: int
    amount: str


@dataclass(frozen=True, kw_only=True)
class MarketResolvedRecord(TrixyEventRecord):
    KIND: ClassVar[EventKind] = EventKind.MARKET_RESOLVED

    market_id: int
    winning_option: str
    final_apys: dict[str, str]
    resolved_at: str


@dataclass(frozen=True, kw_only=True)
class WinningsClaimedRecord(TrixyEventRecord):
    KIND: ClassVar[EventKind] = EventKind.WINNINGS_CLAIMED

    market_id: int
    user: str
    payout: str


@dataclass(frozen=True, kw_only=True)
class YieldDepositedRecord(TrixyEventRecord):
    KIND: ClassVar[EventKind] = EventKind.YIELD_DEPOSITED

    user_address: str
    protocol_name: str
    amount: str
    position_id: str


@dataclass(frozen=True, kw_only=True)
class YieldWithdrawnRecord(TrixyEventRecord):
    KIND: ClassVar[EventKind] = EventKind.YIELD_WITHDRAWN

    market_id: int
    protocol: str
    amount: str
    yield_earned: str


# -----------------------------------------------------------------------------
# Sync bookkeeping
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ContractTarget:
    """Resolved contract to index; passed explicitly into the controller."""

    name: str
    address: str
    network: str
    start_block: int
    events_contract: str = "TrixyEvents"


@dataclass(frozen=True)
class SyncState:
    contract_address: str
    contract_name: str
    network: str
    last_block_height: int
    updated_at: datetime | None = None


@dataclass
class WindowReport:
    """Counters for one processed window, used for progress logging."""

    start_height: int
    end_height: int
    fetched: int = 0
    inserted: int = 0
    duplicates: int = 0
    decode_failures: int = 0
    persist_failures: int = 0
    block_failures: int = 0
    failed_kinds: list[EventKind] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return self.decode_failures + self.persist_failures + self.block_failures
