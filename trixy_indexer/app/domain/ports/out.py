from __future__ import annotations

from typing import Any, Protocol

from trixy_indexer.app.domain.models import (
    BlockEvents,
    BlockHeader,
    EventKind,
    EventMeta,
    PersistOutcome,
    SyncState,
    TrixyEventRecord,
)


class EventField(Protocol):
    """
    A single typed value inside an event payload.

    Every accessor raises FieldTypeError when the underlying value has a
    different type than requested.
    """

    @property
    def type_name(self) -> str: ...

    def as_string(self) -> str: ...

    def as_unsigned_int(self) -> int: ...

    def as_fixed_point(self) -> str:
        """Exact decimal string (e.g. '12.50000000'); never goes through float."""
        ...

    def as_address(self) -> str: ...

    def as_list(self) -> list[EventField]: ...

    def as_map(self) -> list[tuple[EventField, EventField]]: ...

    def to_plain(self) -> Any:
        """JSON-serializable rendering, used for dead-letter payloads."""
        ...


class EventFieldBag(Protocol):
    """Name-keyed view over one event's payload."""

    def get(self, name: str) -> EventField | None:
        """Return the field, or None when absent (an empty Optional counts as absent)."""
        ...

    def names(self) -> list[str]: ...

    def to_plain(self) -> dict[str, Any]: ...


class ChainClient(Protocol):
    """
    Port for reading Flow chain data.

    Implementations raise ChainClientError for transport failures and for
    responses that cannot be interpreted.
    """

    async def get_latest_height(self) -> int:
        """Height of the latest sealed block."""
        ...

    async def get_events_for_height_range(
        self,
        *,
        event_type: str,
        start_height: int,
        end_height: int,
    ) -> list[BlockEvents]:
        """Events of one fully qualified type within the inclusive height range."""
        ...

    async def get_block_by_height(self, height: int) -> BlockHeader: ...

    async def close(self) -> None: ...


class EventDecoder(Protocol):
    def decode(
        self,
        *,
        kind: EventKind,
        fields: EventFieldBag,
        meta: EventMeta,
    ) -> TrixyEventRecord:
        """
        Turn a raw payload into a typed record.

        Raises EventDecodeError when a required field is missing or has the
        wrong representation.
        """
        ...


class SyncStateRepository(Protocol):
    """
    Port for the durable per-contract cursor (last fully processed height).

    Implementations raise SyncStateError for storage failures.
    """

    async def load(self, contract_address: str) -> SyncState | None: ...

    async def create(self, state: SyncState) -> SyncState:
        """Insert the state if absent and return what is stored."""
        ...

    async def advance(self, contract_address: str, height: int) -> bool:
        """
        Move last_block_height forward to `height`.

        Never moves it backwards; returns False when nothing changed.
        """
        ...


class EventRecordSink(Protocol):
    """
    Port for persisting decoded records in an idempotent way.

    Duplicates on (transaction_id, event_index) are reported as
    PersistOutcome.DUPLICATE, not raised. Systemic failures raise
    StoreUnavailableError; isolated ones raise RecordPersistError.
    """

    async def persist(self, record: TrixyEventRecord) -> PersistOutcome: ...

    async def record_skipped(
        self,
        *,
        kind: EventKind,
        contract_address: str,
        meta: EventMeta,
        reason: str,
        payload: dict[str, Any],
    ) -> None: ...

    async def table_counts(self) -> dict[str, int]: ...
