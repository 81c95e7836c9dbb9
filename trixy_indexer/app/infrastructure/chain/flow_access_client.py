from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Final

import httpx
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from trixy_indexer.app.domain.errors import ChainClientError
from trixy_indexer.app.domain.models import (
    MAX_EVENT_HEIGHT_RANGE,
    BlockEvents,
    BlockHeader,
    ChainEvent,
)
from trixy_indexer.app.domain.ports.out import ChainClient
from trixy_indexer.app.infrastructure.chain.cadence import CadenceFieldBag

logger = logging.getLogger(__name__)

_SEALED: Final[str] = "sealed"
_FRACTION_RE: Final = re.compile(r"\.(\d+)")


# -----------------------------------------------------------------------------
# REST response shapes (numbers are JSON strings in the Flow REST API)
# -----------------------------------------------------------------------------


class _RestModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class _BlockHeaderPayload(_RestModel):
    height: int
    timestamp: str


class _BlockPayload(_RestModel):
    header: _BlockHeaderPayload


class _EventPayload(_RestModel):
    type: str
    transaction_id: str
    event_index: int
    payload: str


class _BlockEventsPayload(_RestModel):
    block_height: int
    events: list[_EventPayload] = Field(default_factory=list)


_BLOCKS_ADAPTER: Final = TypeAdapter(list[_BlockPayload])
_BLOCK_EVENTS_ADAPTER: Final = TypeAdapter(list[_BlockEventsPayload])


def parse_flow_timestamp(value: str) -> datetime:
    """
    Parse an RFC 3339 timestamp as emitted by access nodes.

    Flow timestamps carry nanoseconds ("2024-03-01T10:00:00.123456789Z");
    anything past microseconds is truncated.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise ChainClientError(f"Unparseable block timestamp {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class HttpFlowAccessClient(ChainClient):
    """
    ChainClient implementation over the Flow Access REST API using httpx.

    Endpoints:
      - GET /v1/blocks?height=sealed                   -> latest sealed block
      - GET /v1/blocks?height=<h>                      -> block by height
      - GET /v1/events?type=<t>&start_height=&end_height= -> events per block

    Event payloads are base64-encoded JSON-Cadence and are exposed to the
    decoder as CadenceFieldBag instances.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def __aenter__(self) -> HttpFlowAccessClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def get_latest_height(self) -> int:
        return (await self._fetch_block(_SEALED)).height

    async def get_block_by_height(self, height: int) -> BlockHeader:
        return await self._fetch_block(str(height))

    async def get_events_for_height_range(
        self,
        *,
        event_type: str,
        start_height: int,
        end_height: int,
    ) -> list[BlockEvents]:
        if start_height > end_height:
            raise ValueError("start_height must be <= end_height")
        if end_height - start_height + 1 > MAX_EVENT_HEIGHT_RANGE:
            raise ValueError(
                f"Height range [{start_height}, {end_height}] exceeds {MAX_EVENT_HEIGHT_RANGE} blocks"
            )

        data = await self._get_json(
            "/v1/events",
            params={
                "type": event_type,
                "start_height": str(start_height),
                "end_height": str(end_height),
            },
        )
        try:
            payloads = _BLOCK_EVENTS_ADAPTER.validate_python(data)
        except ValidationError as exc:
            raise ChainClientError(f"Malformed events response for {event_type}: {exc}") from exc

        return [
            BlockEvents(
                block_height=block.block_height,
                events=[
                    ChainEvent(
                        type=event.type,
                        transaction_id=event.transaction_id,
                        event_index=event.event_index,
                        fields=CadenceFieldBag.from_base64(event.payload),
                    )
                    for event in block.events
                ],
            )
            for block in payloads
        ]

    # ---------------------------------------------------------------------
    # HTTP helpers
    # ---------------------------------------------------------------------

    async def _fetch_block(self, height: str) -> BlockHeader:
        data = await self._get_json("/v1/blocks", params={"height": height})
        try:
            blocks = _BLOCKS_ADAPTER.validate_python(data)
        except ValidationError as exc:
            raise ChainClientError(f"Malformed block response for height={height}: {exc}") from exc
        if not blocks:
            raise ChainClientError(f"No block returned for height={height}")

        header = blocks[0].header
        return BlockHeader(height=header.height, timestamp=parse_flow_timestamp(header.timestamp))

    async def _get_json(self, path: str, *, params: dict[str, str]) -> Any:
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ChainClientError(
                f"Access API {path} returned {exc.response.status_code}: {exc.response.text[:200]}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ChainClientError(f"Access API {path} request failed: {exc!r}") from exc

        logger.debug("GET %s params=%s -> %s", path, params, response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise ChainClientError(f"Access API {path} returned invalid JSON") from exc
