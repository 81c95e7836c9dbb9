from __future__ import annotations

import base64
import binascii
import json
import re
from typing import Any, Final

from trixy_indexer.app.domain.errors import EventDecodeError, FieldTypeError

_UNSIGNED_INT_TYPES: Final[frozenset[str]] = frozenset(
    {
        "UInt",
        "UInt8",
        "UInt16",
        "UInt32",
        "UInt64",
        "UInt128",
        "UInt256",
        "Word8",
        "Word16",
        "Word32",
        "Word64",
        "Word128",
        "Word256",
    }
)
_FIXED_POINT_TYPES: Final[frozenset[str]] = frozenset({"UFix64", "Fix64"})
_FIXED_POINT_RE: Final = re.compile(r"^-?\d+\.\d+$")
_ADDRESS_RE: Final = re.compile(r"^(0x)?[0-9a-fA-F]{1,16}$")


def _unwrap_optional(value: Any) -> Any | None:
    # Optional(T) is {"type": "Optional", "value": null | <T>}
    while isinstance(value, dict) and value.get("type") == "Optional":
        value = value.get("value")
    return value


class CadenceValue:
    """
    EventField implementation over one JSON-Cadence value
    (``{"type": "<CadenceType>", "value": ...}``).
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: dict[str, Any]) -> None:
        if not isinstance(raw, dict) or "type" not in raw:
            raise EventDecodeError(f"Malformed JSON-Cadence value: {raw!r}")
        self._raw = raw

    def __repr__(self) -> str:
        return f"CadenceValue({self._raw!r})"

    @property
    def type_name(self) -> str:
        return str(self._raw["type"])

    @property
    def _value(self) -> Any:
        return self._raw.get("value")

    def _expect(self, *types: str) -> None:
        if self.type_name not in types:
            raise FieldTypeError(" | ".join(types), self.type_name)

    def as_string(self) -> str:
        self._expect("String")
        if not isinstance(self._value, str):
            raise FieldTypeError("String", f"String({self._value!r})")
        return self._value

    def as_unsigned_int(self) -> int:
        if self.type_name not in _UNSIGNED_INT_TYPES:
            raise FieldTypeError("UInt*", self.type_name)
        try:
            number = int(self._value)
        except (TypeError, ValueError):
            raise FieldTypeError(self.type_name, f"{self.type_name}({self._value!r})")
        if number < 0:
            raise FieldTypeError(self.type_name, f"negative value {number}")
        return number

    def as_fixed_point(self) -> str:
        if self.type_name not in _FIXED_POINT_TYPES:
            raise FieldTypeError("UFix64 | Fix64", self.type_name)
        value = self._value
        if not isinstance(value, str) or not _FIXED_POINT_RE.match(value):
            raise FieldTypeError(self.type_name, f"{self.type_name}({value!r})")
        if self.type_name == "UFix64" and value.startswith("-"):
            raise FieldTypeError("UFix64", f"negative value {value}")
        return value

    def as_address(self) -> str:
        self._expect("Address")
        value = self._value
        if not isinstance(value, str) or not _ADDRESS_RE.match(value):
            raise FieldTypeError("Address", f"Address({value!r})")
        return "0x" + value.lower().removeprefix("0x").rjust(16, "0")

    def as_list(self) -> list[CadenceValue]:
        self._expect("Array")
        if not isinstance(self._value, list):
            raise FieldTypeError("Array", f"Array({self._value!r})")
        items: list[CadenceValue] = []
        for item in self._value:
            unwrapped = _unwrap_optional(item)
            if unwrapped is None:
                raise FieldTypeError("non-nil array element", "nil")
            items.append(CadenceValue(unwrapped))
        return items

    def as_map(self) -> list[tuple[CadenceValue, CadenceValue]]:
        self._expect("Dictionary")
        if not isinstance(self._value, list):
            raise FieldTypeError("Dictionary", f"Dictionary({self._value!r})")
        pairs: list[tuple[CadenceValue, CadenceValue]] = []
        for entry in self._value:
            if not isinstance(entry, dict) or "key" not in entry or "value" not in entry:
                raise FieldTypeError("Dictionary entry", repr(entry))
            key = _unwrap_optional(entry["key"])
            value = _unwrap_optional(entry["value"])
            if key is None or value is None:
                raise FieldTypeError("non-nil dictionary entry", "nil")
            pairs.append((CadenceValue(key), CadenceValue(value)))
        return pairs

    def to_plain(self) -> Any:
        return self._raw


class CadenceFieldBag:
    """
    EventFieldBag implementation over a JSON-Cadence event payload:

        {"type": "Event",
         "value": {"id": "A.<addr>.TrixyEvents.BetPlaced",
                   "fields": [{"name": "marketId", "value": {"type": "UInt64", "value": "7"}}, ...]}}

    Parsing is lazy: a malformed payload only fails when the decoder reads it,
    so one broken event never breaks the surrounding batch.
    """

    def __init__(self, payload: Any) -> None:
        self._payload = payload
        self._fields: dict[str, Any] | None = None

    @classmethod
    def from_json_bytes(cls, raw: bytes | str) -> CadenceFieldBag:
        try:
            return cls(json.loads(raw))
        except ValueError as exc:
            return cls(_MalformedPayload(f"Invalid JSON payload: {exc}"))

    @classmethod
    def from_base64(cls, encoded: str) -> CadenceFieldBag:
        try:
            raw = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            return cls(_MalformedPayload(f"Invalid base64 payload: {exc}"))
        return cls.from_json_bytes(raw)

    def _composite(self) -> dict[str, Any]:
        if isinstance(self._payload, _MalformedPayload):
            raise EventDecodeError(self._payload.reason)
        if not isinstance(self._payload, dict):
            raise EventDecodeError(f"Unexpected event payload: {self._payload!r}")
        composite = self._payload.get("value")
        if not isinstance(composite, dict) or not isinstance(composite.get("fields"), list):
            raise EventDecodeError("Event payload has no composite fields")
        return composite

    def _index(self) -> dict[str, Any]:
        if self._fields is None:
            fields: dict[str, Any] = {}
            for entry in self._composite()["fields"]:
                if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
                    raise EventDecodeError(f"Malformed event field: {entry!r}")
                fields[entry["name"]] = entry.get("value")
            self._fields = fields
        return self._fields

    def get(self, name: str) -> CadenceValue | None:
        raw = _unwrap_optional(self._index().get(name))
        if raw is None:
            return None
        return CadenceValue(raw)

    def names(self) -> list[str]:
        return list(self._index())

    def to_plain(self) -> dict[str, Any]:
        if isinstance(self._payload, _MalformedPayload):
            return {"error": self._payload.reason}
        if isinstance(self._payload, dict):
            return self._payload
        return {"payload": repr(self._payload)}


class _MalformedPayload:
    __slots__ = ("reason",)

    def __init__(self, reason: str) -> None:
        self.reason = reason
