from __future__ import annotations

import pytest

from trixy_indexer.app.domain.errors import EventDecodeError, FieldMissingError, FieldTypeError
from trixy_indexer.app.domain.models import (
    BetPlacedRecord,
    EventKind,
    EventMeta,
    MarketCreatedRecord,
    MarketResolvedRecord,
    YieldDepositedRecord,
)
from trixy_indexer.app.infrastructure.decoders.trixy.event_decoder import TrixyEventDecoder

from tests.support import (
    USER_ADDRESS,
    address,
    array,
    field_bag,
    optional,
    sample_fields,
    string,
    ufix64,
    uint64,
)

META = EventMeta(block_height=150, block_timestamp=1_709_251_350, transaction_id="abc", event_index=2)


@pytest.fixture
def decoder() -> TrixyEventDecoder:
    return TrixyEventDecoder()


@pytest.mark.parametrize("kind", list(EventKind))
def test_every_kind_decodes_with_chain_position(decoder, kind):
    record = decoder.decode(kind=kind, fields=field_bag(kind, sample_fields(kind)), meta=META)

    assert record.KIND is kind
    assert record.block_height == 150
    assert record.block_timestamp == 1_709_251_350
    assert record.transaction_id == "abc"
    assert record.event_index == 2


def test_bet_placed_without_protocol_index_defaults_to_zero(decoder):
    fields = field_bag(
        EventKind.BET_PLACED,
        {
            "marketId": uint64(7),
            "user": address(USER_ADDRESS),
            "selectedOption": string("Yes"),
            "amount": ufix64("12.50000000"),
        },
    )

    record = decoder.decode(kind=EventKind.BET_PLACED, fields=fields, meta=META)

    assert record == BetPlacedRecord(
        market_id=7,
        user=USER_ADDRESS,
        selected_option="Yes",
        protocol_index=0,
        amount="12.50000000",
        **vars(META),
    )


def test_market_created_reads_legacy_protocols_field(decoder):
    fields = sample_fields(EventKind.MARKET_CREATED)
    del fields["options"]
    fields["protocols"] = array(string("IncrementFi"), string("Beta"))

    record = decoder.decode(kind=EventKind.MARKET_CREATED, fields=field_bag(EventKind.MARKET_CREATED, fields), meta=META)

    assert isinstance(record, MarketCreatedRecord)
    assert record.options == ["IncrementFi", "Beta"]


def test_market_created_optional_fields_and_end_time(decoder):
    fields = sample_fields(EventKind.MARKET_CREATED)
    del fields["options"]
    fields["yieldProtocol"] = optional(None)
    fields["endTime"] = ufix64("1735689600.75000000")

    record = decoder.decode(kind=EventKind.MARKET_CREATED, fields=field_bag(EventKind.MARKET_CREATED, fields), meta=META)

    assert record.options == []
    assert record.yield_protocol == ""
    assert record.end_time == "1735689600"


def test_market_resolved_keeps_apys_as_strings(decoder):
    record = decoder.decode(
        kind=EventKind.MARKET_RESOLVED,
        fields=field_bag(EventKind.MARKET_RESOLVED, sample_fields(EventKind.MARKET_RESOLVED)),
        meta=META,
    )

    assert isinstance(record, MarketResolvedRecord)
    assert record.final_apys == {"IncrementFi": "4.25000000"}
    assert record.resolved_at == "1735689700.00000000"


def test_yield_deposited_legacy_names_and_position_fallback(decoder):
    fields = field_bag(
        EventKind.YIELD_DEPOSITED,
        {
            "userAddress": address(USER_ADDRESS),
            "protocolName": string("IncrementFi"),
            "amount": ufix64("5.00000000"),
            "marketId": uint64(42),
        },
    )

    record = decoder.decode(kind=EventKind.YIELD_DEPOSITED, fields=fields, meta=META)

    assert isinstance(record, YieldDepositedRecord)
    assert record.user_address == USER_ADDRESS
    assert record.protocol_name == "IncrementFi"
    assert record.position_id == "42"


def test_yield_deposited_prefers_current_field_names(decoder):
    fields = field_bag(
        EventKind.YIELD_DEPOSITED,
        {
            "user": address(USER_ADDRESS),
            "userAddress": address("0x0000000000000001"),
            "protocol": string("Current"),
            "protocolName": string("Legacy"),
            "amount": ufix64("5.00000000"),
            "positionId": string("pos-9"),
            "marketId": uint64(42),
        },
    )

    record = decoder.decode(kind=EventKind.YIELD_DEPOSITED, fields=fields, meta=META)

    assert record.user_address == USER_ADDRESS
    assert record.protocol_name == "Current"
    assert record.position_id == "pos-9"


def test_yield_deposited_without_protocol_or_position(decoder):
    fields = field_bag(
        EventKind.YIELD_DEPOSITED,
        {"user": address(USER_ADDRESS), "amount": ufix64("5.00000000")},
    )

    record = decoder.decode(kind=EventKind.YIELD_DEPOSITED, fields=fields, meta=META)

    assert record.protocol_name == ""
    assert record.position_id == ""


def test_missing_market_id_is_a_decode_error(decoder):
    fields = sample_fields(EventKind.WINNINGS_CLAIMED)
    del fields["marketId"]

    with pytest.raises(FieldMissingError) as exc_info:
        decoder.decode(kind=EventKind.WINNINGS_CLAIMED, fields=field_bag(EventKind.WINNINGS_CLAIMED, fields), meta=META)

    assert exc_info.value.names == ("marketId",)


def test_missing_deposit_user_is_a_decode_error(decoder):
    fields = field_bag(EventKind.YIELD_DEPOSITED, {"amount": ufix64("5.00000000")})

    with pytest.raises(FieldMissingError):
        decoder.decode(kind=EventKind.YIELD_DEPOSITED, fields=fields, meta=META)


def test_mistyped_amount_is_a_decode_error(decoder):
    fields = sample_fields(EventKind.BET_PLACED)
    fields["amount"] = string("12.5")

    with pytest.raises(FieldTypeError):
        decoder.decode(kind=EventKind.BET_PLACED, fields=field_bag(EventKind.BET_PLACED, fields), meta=META)


def test_decode_errors_are_value_errors(decoder):
    fields = field_bag(EventKind.BET_PLACED, {})

    with pytest.raises(ValueError):
        decoder.decode(kind=EventKind.BET_PLACED, fields=fields, meta=META)

    assert issubclass(FieldMissingError, EventDecodeError)
