"""Datapoint frame codec for the Tuya 0xEF00 wire format.

Each entry is ``[dp:1][type:1][length:2 BE][value:length]`` and a frame is
entries concatenated with no separators.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Iterable, Iterator, Union

from tuya_dp.core.errors import FrameError


HEADER_SIZE = 4
DP_MAX = 0xFF
MAX_PAYLOAD = 0xFFFF
DEFAULT_MAX_STRING_LENGTH = 2048

INT32_MIN = -(1 << 31)
UINT32_MAX = (1 << 32) - 1


class WireType(IntEnum):
    """Byte-level encoding tag carried with each datapoint."""

    RAW = 0x00
    BOOL = 0x01
    VALUE = 0x02
    STRING = 0x03
    ENUM = 0x04
    BITMAP = 0x05

    @classmethod
    def parse(cls, value: Union[int, str, "WireType"]) -> "WireType":
        """Accept a code, a member, or a case-insensitive name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown wire type name: {value!r}") from None
        return cls(value)


def _coerce_type(code: int) -> Union[WireType, int]:
    try:
        return WireType(code)
    except ValueError:
        return code


def _read_uint(payload: bytes) -> Union[int, bytes]:
    if len(payload) in (1, 2, 4):
        return int.from_bytes(payload, byteorder="big", signed=False)
    return payload


def decode_value(wire_type: Union[WireType, int], payload: bytes) -> Any:
    """Interpret a single datapoint payload according to its wire type."""
    if wire_type == WireType.BOOL:
        return bool(payload[0]) if payload else False
    if wire_type in (WireType.VALUE, WireType.BITMAP, WireType.ENUM):
        return _read_uint(payload)
    if wire_type == WireType.STRING:
        return payload.decode("utf-8", errors="replace")
    return bytes(payload)


def active_bits(value: int) -> list[int]:
    """Indices of the bits set in a bitmap value, least significant first."""
    bits = []
    index = 0
    while value > 0:
        if value & 1:
            bits.append(index)
        value >>= 1
        index += 1
    return bits


@dataclass(frozen=True, slots=True)
class DatapointRecord:
    """One decoded wire entry.

    Attributes:
        dp: Datapoint id (0-255), local to one device.
        wire_type: ``WireType`` member, or the raw code when unknown.
        length: Declared payload length.
        value: Interpreted value (bool, int, str or bytes).
        raw: Payload bytes exactly as received.
    """

    dp: int
    wire_type: Union[WireType, int]
    length: int
    value: Any
    raw: bytes = b""

    def __post_init__(self) -> None:
        if not (0 <= self.dp <= DP_MAX):
            raise ValueError(f"dp must be 0-255, got {self.dp}")
        if self.length != len(self.raw):
            raise ValueError(f"length ({self.length}) does not match payload size ({len(self.raw)})")

    @property
    def type_name(self) -> str:
        if isinstance(self.wire_type, WireType):
            return self.wire_type.name
        return f"0x{self.wire_type:02x}"

    def to_dict(self) -> dict[str, Any]:
        value = self.value.hex() if isinstance(self.value, (bytes, bytearray)) else self.value
        return {
            "dp": self.dp,
            "type": self.type_name,
            "length": self.length,
            "value": value,
            "raw_hex": self.raw.hex(),
        }

    def __repr__(self) -> str:
        return f"DP{self.dp}<{self.type_name}>={self.value!r}"


@dataclass(frozen=True)
class DecodeResult:
    """Records decoded from one buffer, plus whether a trailing entry was dropped."""

    records: tuple[DatapointRecord, ...] = ()
    truncated: bool = False
    consumed: int = 0

    def __iter__(self) -> Iterator[DatapointRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def __getitem__(self, index: int) -> DatapointRecord:
        return self.records[index]


@dataclass(frozen=True)
class CodecConfig:
    """Configuration for the frame codec."""

    max_string_length: int = DEFAULT_MAX_STRING_LENGTH


@dataclass
class FrameCodec:
    """Encodes and decodes concatenated datapoint entries.

    Decoding never raises: a partial trailing entry is dropped and reported
    through ``DecodeResult.truncated``. Encoding validates its input and
    raises ``FrameError``.
    """

    config: CodecConfig = field(default_factory=CodecConfig)

    def decode(self, data: Union[bytes, bytearray, memoryview]) -> DecodeResult:
        buf = bytes(data)
        records: list[DatapointRecord] = []
        offset = 0

        while len(buf) - offset >= HEADER_SIZE:
            dp = buf[offset]
            code = buf[offset + 1]
            length = int.from_bytes(buf[offset + 2 : offset + 4], byteorder="big")
            end = offset + HEADER_SIZE + length
            if end > len(buf):
                break
            payload = buf[offset + HEADER_SIZE : end]
            wire_type = _coerce_type(code)
            records.append(
                DatapointRecord(
                    dp=dp,
                    wire_type=wire_type,
                    length=length,
                    value=decode_value(wire_type, payload),
                    raw=payload,
                )
            )
            offset = end

        return DecodeResult(
            records=tuple(records),
            truncated=offset < len(buf),
            consumed=offset,
        )

    def encode(self, dp: int, wire_type: Union[WireType, int, str], value: Any) -> bytes:
        if isinstance(dp, bool) or not isinstance(dp, int) or not (0 <= dp <= DP_MAX):
            raise FrameError(f"dp must be an integer 0-255, got {dp!r}")
        try:
            wtype = WireType.parse(wire_type)
        except ValueError as exc:
            raise FrameError(str(exc)) from exc

        payload = self._encode_payload(wtype, value)
        if len(payload) > MAX_PAYLOAD:
            raise FrameError(f"payload of {len(payload)} bytes exceeds {MAX_PAYLOAD}")

        return bytes([dp, int(wtype)]) + len(payload).to_bytes(2, byteorder="big") + payload

    def encode_many(self, entries: Iterable[tuple[int, Union[WireType, int, str], Any]]) -> bytes:
        """Encode several ``(dp, wire_type, value)`` entries into one frame."""
        return b"".join(self.encode(dp, wtype, value) for dp, wtype, value in entries)

    def _encode_payload(self, wtype: WireType, value: Any) -> bytes:
        if wtype == WireType.BOOL:
            return bytes([1 if value else 0])

        if wtype == WireType.VALUE:
            number = _as_int(value, wtype)
            if not (INT32_MIN <= number <= UINT32_MAX):
                raise FrameError(f"VALUE {number} does not fit in 4 bytes")
            return (number & UINT32_MAX).to_bytes(4, byteorder="big")

        if wtype == WireType.BITMAP:
            number = _as_int(value, wtype)
            if not (0 <= number <= UINT32_MAX):
                raise FrameError(f"BITMAP {number} does not fit in 4 bytes")
            width = 1 if number <= 0xFF else 2 if number <= 0xFFFF else 4
            return number.to_bytes(width, byteorder="big")

        if wtype == WireType.ENUM:
            number = _as_int(value, wtype)
            if not (0 <= number <= 0xFF):
                raise FrameError(f"ENUM {number} must be 0-255")
            return bytes([number])

        if wtype == WireType.STRING:
            if not isinstance(value, str):
                raise FrameError(f"STRING value must be str, got {type(value).__name__}")
            encoded = value.encode("utf-8")
            if len(encoded) > self.config.max_string_length:
                raise FrameError(
                    f"STRING of {len(encoded)} bytes exceeds max length {self.config.max_string_length}"
                )
            return encoded

        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value)
        if isinstance(value, (list, tuple)) and all(
            isinstance(v, int) and not isinstance(v, bool) and 0 <= v <= 0xFF for v in value
        ):
            return bytes(value)
        raise FrameError(f"RAW value must be bytes, got {type(value).__name__}")


def _as_int(value: Any, wtype: WireType) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise FrameError(f"{wtype.name} value must be an integer, got {value!r}")
