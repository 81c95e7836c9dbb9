from __future__ import annotations

import base64
import json
from datetime import datetime, timedelta, timezone
from typing import Any

from trixy_indexer.app.domain.errors import ChainClientError
from trixy_indexer.app.domain.models import (
    BlockEvents,
    BlockHeader,
    ChainEvent,
    ContractTarget,
    EventKind,
    MAX_EVENT_HEIGHT_RANGE,
)
from trixy_indexer.app.infrastructure.chain.cadence import CadenceFieldBag

CONTRACT_ADDRESS = "0xf8d6e0586b0a20c7"
USER_ADDRESS = "0x01cf0e2f2f715450"

TARGET = ContractTarget(
    name="TrixyProtocol",
    address=CONTRACT_ADDRESS,
    network="emulator",
    start_block=100,
)

GENESIS_TIME = datetime(2024, 3, 1, tzinfo=timezone.utc)


# -----------------------------------------------------------------------------
# JSON-Cadence builders
# -----------------------------------------------------------------------------


def string(value: str) -> dict[str, Any]:
    return {"type": "String", "value": value}


def uint64(value: int) -> dict[str, Any]:
    return {"type": "UInt64", "value": str(value)}


def ufix64(value: str) -> dict[str, Any]:
    return {"type": "UFix64", "value": value}


def address(value: str) -> dict[str, Any]:
    return {"type": "Address", "value": value}


def array(*items: dict[str, Any]) -> dict[str, Any]:
    return {"type": "Array", "value": list(items)}


def dictionary(*pairs: tuple[dict[str, Any], dict[str, Any]]) -> dict[str, Any]:
    return {"type": "Dictionary", "value": [{"key": key, "value": value} for key, value in pairs]}


def optional(value: dict[str, Any] | None = None) -> dict[str, Any]:
    return {"type": "Optional", "value": value}


def event_payload(
    kind: EventKind,
    fields: dict[str, dict[str, Any]],
    *,
    contract_address: str = CONTRACT_ADDRESS,
) -> dict[str, Any]:
    return {
        "type": "Event",
        "value": {
            "id": kind.type_id(contract_address=contract_address, events_contract="TrixyEvents"),
            "fields": [{"name": name, "value": value} for name, value in fields.items()],
        },
    }


def encoded_payload(kind: EventKind, fields: dict[str, dict[str, Any]]) -> str:
    return base64.b64encode(json.dumps(event_payload(kind, fields)).encode()).decode()


def field_bag(kind: EventKind, fields: dict[str, dict[str, Any]]) -> CadenceFieldBag:
    return CadenceFieldBag(event_payload(kind, fields))


def sample_fields(kind: EventKind) -> dict[str, dict[str, Any]]:
    """A valid payload for every kind, as the current contract emits it."""
    samples: dict[EventKind, dict[str, dict[str, Any]]] = {
        EventKind.MARKET_CREATED: {
            "marketId": uint64(1),
            "question": string("Will FLOW close above $1?"),
            "endTime": ufix64("1735689600.00000000"),
            "options": array(string("Yes"), string("No")),
            "yieldProtocol": string("IncrementFi"),
            "creator": address(CONTRACT_ADDRESS),
        },
        EventKind.BET_PLACED: {
            "marketId": uint64(1),
            "user": address(USER_ADDRESS),
            "selectedOption": string("Yes"),
            "protocolIndex": uint64(1),
            "amount": ufix64("10.00000000"),
        },
        EventKind.MARKET_RESOLVED: {
            "marketId": uint64(1),
            "winningOption": string("Yes"),
            "finalAPYs": dictionary((string("IncrementFi"), ufix64("4.25000000"))),
            "resolvedAt": ufix64("1735689700.00000000"),
        },
        EventKind.WINNINGS_CLAIMED: {
            "marketId": uint64(1),
            "user": address(USER_ADDRESS),
            "payout": ufix64("19.50000000"),
        },
        EventKind.YIELD_DEPOSITED: {
            "user": address(USER_ADDRESS),
            "protocol": string("IncrementFi"),
            "amount": ufix64("10.00000000"),
            "positionId": string("pos-1"),
        },
        EventKind.YIELD_WITHDRAWN: {
            "marketId": uint64(1),
            "protocol": string("IncrementFi"),
            "amount": ufix64("10.00000000"),
            "yieldEarned": ufix64("0.42000000"),
        },
    }
    return samples[kind]


# -----------------------------------------------------------------------------
# Chain fake
# -----------------------------------------------------------------------------


def block_unix_time(height: int) -> int:
    return int((GENESIS_TIME + timedelta(seconds=height)).timestamp())


class FakeChainClient:
    """In-memory ChainClient; block h is sealed at GENESIS_TIME + h seconds."""

    def __init__(self, *, latest_height: int, target: ContractTarget = TARGET) -> None:
        self.latest_height = latest_height
        self.target = target
        self.failing_kinds: set[EventKind] = set()
        self.failing_blocks: set[int] = set()
        self.latest_failures = 0
        self.event_queries: list[tuple[str, int, int]] = []
        self.block_queries: list[int] = []
        self.closed = False
        self._events: dict[str, list[tuple[int, ChainEvent]]] = {}

    def type_id(self, kind: EventKind) -> str:
        return kind.type_id(
            contract_address=self.target.address,
            events_contract=self.target.events_contract,
        )

    def add_event(
        self,
        kind: EventKind,
        height: int,
        fields: dict[str, dict[str, Any]] | None = None,
        *,
        transaction_id: str | None = None,
        event_index: int = 0,
        bag: CadenceFieldBag | None = None,
    ) -> ChainEvent:
        event = ChainEvent(
            type=self.type_id(kind),
            transaction_id=transaction_id or f"tx-{height}-{kind.value}",
            event_index=event_index,
            fields=bag or field_bag(kind, fields if fields is not None else sample_fields(kind)),
        )
        self._events.setdefault(event.type, []).append((height, event))
        return event

    async def get_latest_height(self) -> int:
        if self.latest_failures > 0:
            self.latest_failures -= 1
            raise ChainClientError("access node unreachable")
        return self.latest_height

    async def get_events_for_height_range(
        self,
        *,
        event_type: str,
        start_height: int,
        end_height: int,
    ) -> list[BlockEvents]:
        if end_height - start_height + 1 > MAX_EVENT_HEIGHT_RANGE:
            raise ValueError(f"Height range [{start_height}, {end_height}] exceeds {MAX_EVENT_HEIGHT_RANGE} blocks")
        self.event_queries.append((event_type, start_height, end_height))
        if any(self.type_id(kind) == event_type for kind in self.failing_kinds):
            raise ChainClientError(f"query failed for {event_type}")

        by_height: dict[int, list[ChainEvent]] = {}
        for height, event in self._events.get(event_type, []):
            if start_height <= height <= end_height:
                by_height.setdefault(height, []).append(event)
        return [BlockEvents(block_height=h, events=by_height[h]) for h in sorted(by_height)]

    async def get_block_by_height(self, height: int) -> BlockHeader:
        self.block_queries.append(height)
        if height in self.failing_blocks:
            raise ChainClientError(f"block {height} unavailable")
        return BlockHeader(height=height, timestamp=GENESIS_TIME + timedelta(seconds=height))

    async def close(self) -> None:
        self.closed = True
