"""Raw input shapes accepted by the value normalizer.

``classify`` is the single place that inspects Python runtime types; the
normalizer dispatches over the resulting variant.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence, Union


@dataclass(frozen=True)
class NullInput:
    pass


@dataclass(frozen=True)
class BoolInput:
    value: bool


@dataclass(frozen=True)
class NumberInput:
    value: Union[int, float]


@dataclass(frozen=True)
class TextInput:
    value: str


@dataclass(frozen=True)
class BytesInput:
    value: bytes


@dataclass(frozen=True)
class ArrayInput:
    items: Sequence[Any]


@dataclass(frozen=True)
class ObjectInput:
    fields: Mapping[str, Any]


@dataclass(frozen=True)
class OpaqueInput:
    value: Any


RawInput = Union[
    NullInput,
    BoolInput,
    NumberInput,
    TextInput,
    BytesInput,
    ArrayInput,
    ObjectInput,
    OpaqueInput,
]


def classify(raw: Any) -> RawInput:
    """Wrap an arbitrary inbound value in its ``RawInput`` variant."""
    if raw is None:
        return NullInput()
    # bool before int: bool is an int subclass
    if isinstance(raw, bool):
        return BoolInput(raw)
    if isinstance(raw, (int, float)):
        return NumberInput(raw)
    if isinstance(raw, str):
        return TextInput(raw)
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return BytesInput(bytes(raw))
    if isinstance(raw, (list, tuple)):
        return ArrayInput(tuple(raw))
    if isinstance(raw, Mapping):
        return ObjectInput(raw)
    return OpaqueInput(raw)
