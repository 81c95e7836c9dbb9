from __future__ import annotations

from dataclasses import asdict
from decimal import Decimal
from typing import Any, Callable, Final

from trixy_indexer.app.domain.errors import EventDecodeError, FieldMissingError
from trixy_indexer.app.domain.models import (
    BetPlacedRecord,
    EventKind,
    EventMeta,
    MarketCreatedRecord,
    MarketResolvedRecord,
    TrixyEventRecord,
    WinningsClaimedRecord,
    YieldDepositedRecord,
    YieldWithdrawnRecord,
)
from trixy_indexer.app.domain.ports.out import EventDecoder, EventField, EventFieldBag

# -----------------------------------------------------------------------------
# Field name candidates, tried in order (first present wins).
# Older contract versions emitted some fields under different names.
# -----------------------------------------------------------------------------
MARKET_OPTIONS_FIELDS: Final[tuple[str, ...]] = ("options", "protocols")
DEPOSIT_USER_FIELDS: Final[tuple[str, ...]] = ("user", "userAddress")
DEPOSIT_PROTOCOL_FIELDS: Final[tuple[str, ...]] = ("protocol", "protocolName")
DEPOSIT_POSITION_FIELDS: Final[tuple[str, ...]] = ("positionId",)
DEPOSIT_POSITION_FALLBACK_FIELDS: Final[tuple[str, ...]] = ("marketId",)


def first_present(fields: EventFieldBag, names: tuple[str, ...]) -> EventField | None:
    for name in names:
        value = fields.get(name)
        if value is not None:
            return value
    return None


def require(fields: EventFieldBag, *names: str) -> EventField:
    value = first_present(fields, names)
    if value is None:
        raise FieldMissingError(names)
    return value


class TrixyEventDecoder(EventDecoder):
    """
    Decoder for TrixyEvents contract events.

    It:
    - dispatches on EventKind to one routine per event,
    - reads fields through the EventFieldBag port (no payload format knowledge here),
    - keeps every UFix64 amount as its exact decimal string,
    - raises EventDecodeError for missing/mistyped required fields.

    Only genuinely optional fields get defaults (yieldProtocol, protocolIndex,
    options, the deposit protocol/position); business keys such as marketId
    never do.
    """

    def __init__(self) -> None:
        self._routines: dict[EventKind, Callable[[EventFieldBag, dict[str, Any]], TrixyEventRecord]] = {
            EventKind.MARKET_CREATED: self._market_created,
            EventKind.BET_PLACED: self._bet_placed,
            EventKind.MARKET_RESOLVED: self._market_resolved,
            EventKind.WINNINGS_CLAIMED: self._winnings_claimed,
            EventKind.YIELD_DEPOSITED: self._yield_deposited,
            EventKind.YIELD_WITHDRAWN: self._yield_withdrawn,
        }

    def decode(
        self,
        *,
        kind: EventKind,
        fields: EventFieldBag,
        meta: EventMeta,
    ) -> TrixyEventRecord:
        try:
            routine = self._routines[kind]
        except KeyError:
            raise EventDecodeError(f"Unsupported event kind: {kind!r}")
        return routine(fields, asdict(meta))

    # ---------------------------------------------------------------------
    # Per-kind routines
    # ---------------------------------------------------------------------

    def _market_created(self, fields: EventFieldBag, meta: dict[str, Any]) -> MarketCreatedRecord:
        options_field = first_present(fields, MARKET_OPTIONS_FIELDS)
        options = [item.as_string() for item in options_field.as_list()] if options_field else []

        yield_protocol_field = fields.get("yieldProtocol")

        return MarketCreatedRecord(
            market_id=require(fields, "marketId").as_unsigned_int(),
            question=require(fields, "question").as_string(),
            end_time=self._whole_seconds(require(fields, "endTime").as_fixed_point()),
            options=options,
            yield_protocol=yield_protocol_field.as_string() if yield_protocol_field else "",
            creator=require(fields, "creator").as_address(),
            **meta,
        )

    def _bet_placed(self, fields: EventFieldBag, meta: dict[str, Any]) -> BetPlacedRecord:
        protocol_index_field = fields.get("protocolIndex")

        return BetPlacedRecord(
            market_id=require(fields, "marketId").as_unsigned_int(),
            user=require(fields, "user").as_address(),
            selected_option=require(fields, "selectedOption").as_string(),
            protocol_index=protocol_index_field.as_unsigned_int() if protocol_index_field else 0,
            amount=require(fields, "amount").as_fixed_point(),
            **meta,
        )

    def _market_resolved(self, fields: EventFieldBag, meta: dict[str, Any]) -> MarketResolvedRecord:
        final_apys = {
            key.as_string(): value.as_fixed_point()
            for key, value in require(fields, "finalAPYs").as_map()
        }

        return MarketResolvedRecord(
            market_id=require(fields, "marketId").as_unsigned_int(),
            winning_option=require(fields, "winningOption").as_string(),
            final_apys=final_apys,
            resolved_at=require(fields, "resolvedAt").as_fixed_point(),
            **meta,
        )

    def _winnings_claimed(self, fields: EventFieldBag, meta: dict[str, Any]) -> WinningsClaimedRecord:
        return WinningsClaimedRecord(
            market_id=require(fields, "marketId").as_unsigned_int(),
            user=require(fields, "user").as_address(),
            payout=require(fields, "payout").as_fixed_point(),
            **meta,
        )

    def _yield_deposited(self, fields: EventFieldBag, meta: dict[str, Any]) -> YieldDepositedRecord:
        protocol_field = first_present(fields, DEPOSIT_PROTOCOL_FIELDS)

        position_field = first_present(fields, DEPOSIT_POSITION_FIELDS)
        if position_field is not None:
            position_id = position_field.as_string()
        else:
            market_field = first_present(fields, DEPOSIT_POSITION_FALLBACK_FIELDS)
            position_id = str(market_field.as_unsigned_int()) if market_field else ""

        return YieldDepositedRecord(
            user_address=require(fields, *DEPOSIT_USER_FIELDS).as_address(),
            protocol_name=protocol_field.as_string() if protocol_field else "",
            amount=require(fields, "amount").as_fixed_point(),
            position_id=position_id,
            **meta,
        )

    def _yield_withdrawn(self, fields: EventFieldBag, meta: dict[str, Any]) -> YieldWithdrawnRecord:
        return YieldWithdrawnRecord(
            market_id=require(fields, "marketId").as_unsigned_int(),
            protocol=require(fields, "protocol").as_string(),
            amount=require(fields, "amount").as_fixed_point(),
            yield_earned=require(fields, "yieldEarned").as_fixed_point(),
            **meta,
        )

    # ---------------------------------------------------------------------
    # Value helpers
    # ---------------------------------------------------------------------

    @staticmethod
    def _whole_seconds(fixed_point: str) -> str:
        # endTime is a UFix64 unix timestamp; only the integer part is kept
        return str(int(Decimal(fixed_point)))
