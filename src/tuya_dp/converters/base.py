"""Converter type definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional


Params = Mapping[str, Any]
TransformFn = Callable[[Any, Params], Any]
ValidateFn = Callable[[Any, Params], bool]


@dataclass(frozen=True)
class Converter:
    """A pure bidirectional transform between wire and domain values.

    ``to_domain`` and ``to_wire`` receive the value and the merged params
    (converter defaults overlaid with the datapoint's own params).
    ``validate`` is consulted on the write path only.
    """

    name: str
    to_domain: TransformFn
    to_wire: TransformFn
    validate: Optional[ValidateFn] = None
    defaults: Params = field(default_factory=dict)
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("converter name must be non-empty")
        object.__setattr__(self, "defaults", MappingProxyType(dict(self.defaults)))

    def params(self, overrides: Optional[Params] = None) -> dict[str, Any]:
        merged = dict(self.defaults)
        if overrides:
            merged.update(overrides)
        return merged

    def alias(self, name: str, defaults: Optional[Params] = None, description: str = "") -> "Converter":
        """Same transform under another name, with different default params."""
        return Converter(
            name=name,
            to_domain=self.to_domain,
            to_wire=self.to_wire,
            validate=self.validate,
            defaults=self.params(defaults),
            description=description or self.description,
        )


@dataclass(frozen=True)
class ConverterLookup:
    """Outcome of resolving a converter name."""

    converter: Converter
    requested: str
    fallback: bool = False
