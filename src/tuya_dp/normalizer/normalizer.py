"""Value normalization implementation."""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Union

from tuya_dp.core.frame import DatapointRecord, FrameCodec, WireType
from tuya_dp.normalizer.inputs import (
    ArrayInput,
    BoolInput,
    BytesInput,
    NullInput,
    NumberInput,
    ObjectInput,
    OpaqueInput,
    RawInput,
    TextInput,
    classify,
)


ID_KEYS = ("dp", "dpId", "datapoint", "id")
TYPE_KEYS = ("type", "dpType", "dataType", "datatype")
VALUE_KEYS = ("value", "dpValue", "data")

TRUE_WORDS = frozenset({"true", "1", "on", "yes"})
FALSE_WORDS = frozenset({"false", "0", "off", "no"})

_DECIMAL_RE = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?\s*$", re.ASCII)
_PRINTABLE_RE = re.compile(r"[\x20-\x7E\t\n\r]*")


class ValueKind(Enum):
    """Canonical shapes a normalized value can take."""

    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STR = "str"
    BYTES = "bytes"
    RECORD = "record"
    RECORD_LIST = "record_list"
    STRUCT = "struct"


@dataclass(frozen=True)
class NormalizedRecord:
    """A datapoint reduced from a report object or a multi-record buffer."""

    dp: Any
    wire_type: Any
    value: Any
    value_shape: Optional[str] = None
    raw: Any = field(default=None, compare=False, repr=False)

    @classmethod
    def from_datapoint(cls, record: DatapointRecord) -> "NormalizedRecord":
        return cls(
            dp=record.dp,
            wire_type=record.wire_type,
            value=record.value,
            value_shape=record.type_name.lower(),
            raw=record,
        )


@dataclass(frozen=True)
class NormalizedValue:
    """Result of normalizing one inbound value.

    Attributes:
        kind: Canonical value shape.
        value: The reduced value (``None`` for NULL, list of
            ``NormalizedRecord`` for RECORD_LIST).
        shape: Provenance tag describing how the value was inferred
            (e.g. ``"int16"``, ``"json"``, ``"zcl_measured"``).
        context: The context hint the value was normalized under.
        truncated: True when a multi-record buffer had a partial tail.
    """

    kind: ValueKind
    value: Any
    shape: str
    context: str = "unknown"
    truncated: bool = False
    raw: Any = field(default=None, compare=False, repr=False)

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL

    def records(self) -> list[NormalizedRecord]:
        """Records carried by this value (empty unless RECORD or RECORD_LIST)."""
        if self.kind is ValueKind.RECORD_LIST:
            return list(self.value)
        if self.kind is ValueKind.RECORD:
            return [self.value]
        return []

    def to_dict(self) -> dict[str, Any]:
        value = self.value
        if isinstance(value, bytes):
            value = value.hex()
        elif isinstance(value, NormalizedRecord):
            value = _record_dict(value)
        elif self.kind is ValueKind.RECORD_LIST:
            value = [_record_dict(r) for r in value]
        return {
            "kind": self.kind.value,
            "shape": self.shape,
            "context": self.context,
            "truncated": self.truncated,
            "value": value,
        }


def _record_dict(record: NormalizedRecord) -> dict[str, Any]:
    value = record.value.hex() if isinstance(record.value, bytes) else record.value
    wire_type = record.wire_type.name if isinstance(record.wire_type, WireType) else record.wire_type
    return {"dp": record.dp, "type": wire_type, "value": value, "value_shape": record.value_shape}


def _first_present(fields: Mapping[Any, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = fields.get(key)
        if value is not None:
            return value
    return None


def _is_byte_list(items: tuple[Any, ...]) -> bool:
    return all(
        isinstance(v, int) and not isinstance(v, bool) and 0 <= v <= 0xFF for v in items
    )


def _is_printable(text: str) -> bool:
    return bool(text) and _PRINTABLE_RE.fullmatch(text) is not None and bool(text.strip())


def _parse_decimal(text: str) -> Optional[Union[int, float]]:
    """Parse decimal text; None when the number is unrepresentable."""
    try:
        if any(c in text for c in ".eE"):
            number = float(text)
            return number if math.isfinite(number) else None
        return int(text)
    except ValueError:
        # int() refuses strings beyond the interpreter's digit limit
        return None


class ValueNormalizer:
    """Reduces heterogeneous inbound data to one canonical ``NormalizedValue``.

    The context hint (e.g. ``"temperature"``, ``"alarm_contact"``,
    ``"tuya"``) steers how byte buffers are interpreted. ``normalize`` is
    total: every input yields a value, never an exception.
    """

    def __init__(self, codec: Optional[FrameCodec] = None) -> None:
        self._codec = codec or FrameCodec()

    def normalize(self, raw: Any, context: str = "unknown") -> NormalizedValue:
        context = context or "unknown"
        return self._dispatch(classify(raw), raw, context)

    def _dispatch(self, item: RawInput, raw: Any, context: str) -> NormalizedValue:
        if isinstance(item, NullInput):
            return NormalizedValue(ValueKind.NULL, None, "null", context, raw=raw)
        if isinstance(item, BoolInput):
            return NormalizedValue(ValueKind.BOOL, item.value, "boolean", context, raw=raw)
        if isinstance(item, NumberInput):
            return NormalizedValue(ValueKind.NUMBER, item.value, "number", context, raw=raw)
        if isinstance(item, TextInput):
            return self._from_text(item.value, context)
        if isinstance(item, BytesInput):
            return self._from_bytes(item.value, context, raw)
        if isinstance(item, ArrayInput):
            return self._from_array(item.items, context, raw)
        if isinstance(item, ObjectInput):
            return self._from_object(item.fields, context, raw)
        if isinstance(item, OpaqueInput):
            return NormalizedValue(ValueKind.STRUCT, item.value, type(item.value).__name__, context, raw=raw)
        raise TypeError(f"Unhandled input variant: {item!r}")

    # --- strings ---
    def _from_text(self, text: str, context: str) -> NormalizedValue:
        if (text.startswith("{") and text.endswith("}")) or (text.startswith("[") and text.endswith("]")):
            try:
                parsed = json.loads(text)
            except (ValueError, RecursionError):
                pass
            else:
                return NormalizedValue(ValueKind.STRUCT, parsed, "json", context, raw=text)

        if _DECIMAL_RE.match(text):
            number = _parse_decimal(text.strip())
            if number is not None:
                return NormalizedValue(ValueKind.NUMBER, number, "number", context, raw=text)

        if text.startswith(("0x", "0X")):
            try:
                return NormalizedValue(ValueKind.NUMBER, int(text, 16), "hex", context, raw=text)
            except ValueError:
                pass

        word = text.strip().lower()
        if word in TRUE_WORDS:
            return NormalizedValue(ValueKind.BOOL, True, "boolean", context, raw=text)
        if word in FALSE_WORDS:
            return NormalizedValue(ValueKind.BOOL, False, "boolean", context, raw=text)

        return NormalizedValue(ValueKind.STR, text, "string", context, raw=text)

    # --- byte buffers ---
    def _from_bytes(self, data: bytes, context: str, raw: Any) -> NormalizedValue:
        hint = context.lower()
        size = len(data)

        if size == 0:
            return NormalizedValue(ValueKind.NULL, None, "empty", context, raw=raw)

        if size == 1:
            if "bool" in hint or "onoff" in hint or "alarm" in hint:
                return NormalizedValue(ValueKind.BOOL, data[0] == 1, "boolean", context, raw=raw)
            return NormalizedValue(ValueKind.NUMBER, data[0], "uint8", context, raw=raw)

        if size == 2:
            if "temp" in hint or "humid" in hint:
                value = int.from_bytes(data, byteorder="big", signed=True)
                return NormalizedValue(ValueKind.NUMBER, value, "int16", context, raw=raw)
            value = int.from_bytes(data, byteorder="big", signed=False)
            return NormalizedValue(ValueKind.NUMBER, value, "uint16", context, raw=raw)

        if size == 4:
            unsigned = int.from_bytes(data, byteorder="big", signed=False)
            if "temp" in hint and unsigned > 0x7FFFFFFF:
                signed = int.from_bytes(data, byteorder="big", signed=True)
                return NormalizedValue(ValueKind.NUMBER, signed, "int32", context, raw=raw)
            return NormalizedValue(ValueKind.NUMBER, unsigned, "uint32", context, raw=raw)

        if size >= 4 and "tuya" in hint:
            result = self._decode_datapoints(data, context, raw, "tuya_dp")
            if result is not None:
                return result

        text = data.decode("utf-8", errors="replace")
        if _is_printable(text):
            return NormalizedValue(ValueKind.STR, text, "string", context, raw=raw)

        return NormalizedValue(ValueKind.BYTES, data, "byte_array", context, raw=raw)

    def _decode_datapoints(self, data: bytes, context: str, raw: Any, shape: str) -> Optional[NormalizedValue]:
        decoded = self._codec.decode(data)
        if not decoded.records:
            return None
        return NormalizedValue(
            ValueKind.RECORD_LIST,
            [NormalizedRecord.from_datapoint(r) for r in decoded.records],
            shape,
            context,
            truncated=decoded.truncated,
            raw=raw,
        )

    # --- arrays ---
    def _from_array(self, items: tuple[Any, ...], context: str, raw: Any) -> NormalizedValue:
        if _is_byte_list(items):
            return self._from_bytes(bytes(items), context, raw)

        if (
            items
            and all(isinstance(i, Mapping) for i in items)
            and _first_present(items[0], ID_KEYS) is not None
        ):
            records = [self._record(i) for i in items]
            return NormalizedValue(ValueKind.RECORD_LIST, records, "datapoint_array", context, raw=raw)

        return NormalizedValue(ValueKind.STRUCT, list(items), "array", context, raw=raw)

    # --- objects ---
    def _from_object(self, fields: Mapping[Any, Any], context: str, raw: Any) -> NormalizedValue:
        if _first_present(fields, ID_KEYS) is not None:
            return NormalizedValue(ValueKind.RECORD, self._record(fields), "datapoint", context, raw=raw)

        if "measuredValue" in fields:
            inner = self.normalize(fields["measuredValue"], context)
            return NormalizedValue(inner.kind, inner.value, "zcl_measured", context, inner.truncated, raw=raw)

        data = fields.get("data")
        if fields.get("type") == "Buffer" and isinstance(data, (list, tuple)) and _is_byte_list(tuple(data)):
            return self._from_bytes(bytes(data), context, raw)

        datapoints = fields.get("datapoints")
        if isinstance(datapoints, (list, tuple)) and all(isinstance(d, Mapping) for d in datapoints):
            records = [self._record(d) for d in datapoints]
            return NormalizedValue(ValueKind.RECORD_LIST, records, "datapoint_array", context, raw=raw)

        dp_values = fields.get("dpValues")
        if isinstance(dp_values, (bytes, bytearray)):
            result = self._decode_datapoints(bytes(dp_values), context, raw, "tuya_dp_buffer")
            if result is not None:
                return result

        return NormalizedValue(ValueKind.STRUCT, dict(fields), "object", context, raw=raw)

    def _record(self, fields: Mapping[Any, Any]) -> NormalizedRecord:
        dp = _first_present(fields, ID_KEYS)
        wire_type = _first_present(fields, TYPE_KEYS)
        value = _first_present(fields, VALUE_KEYS)
        value_shape = None

        if isinstance(value, (bytes, bytearray)):
            inner = self.normalize(bytes(value), f"dp_{dp}")
            value = inner.value
            value_shape = inner.shape

        return NormalizedRecord(dp=dp, wire_type=wire_type, value=value, value_shape=value_shape, raw=fields)
