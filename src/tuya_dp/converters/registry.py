"""Converter registry implementation."""

from __future__ import annotations

import logging
import threading
from typing import Any, Iterable, Optional

from tuya_dp.converters.base import Converter, ConverterLookup, Params
from tuya_dp.converters.builtin import BUILTIN_CONVERTERS, IDENTITY
from tuya_dp.core.errors import ConverterError


LOGGER = logging.getLogger(__name__)


class ConverterRegistry:
    """Static table from converter name to a ``Converter``.

    Built once at startup and passed to the pipeline. Looking up a name
    that is not registered never fails: it resolves to identity and the
    name is recorded in ``unresolved`` for diagnostics.
    """

    def __init__(
        self,
        converters: Optional[Iterable[Converter]] = None,
        include_builtins: bool = True,
    ) -> None:
        self._converters: dict[str, Converter] = {}
        self._unresolved: set[str] = set()
        self._lock = threading.Lock()

        if include_builtins:
            for converter in BUILTIN_CONVERTERS:
                self.register(converter)
        for converter in converters or ():
            self.register(converter, replace=True)

    @property
    def names(self) -> list[str]:
        """Registered converter names, sorted."""
        return sorted(self._converters)

    @property
    def unresolved(self) -> frozenset[str]:
        """Names that were looked up but not registered."""
        with self._lock:
            return frozenset(self._unresolved)

    @property
    def diagnostics(self) -> list[str]:
        return [f"converter '{name}' not registered, identity used" for name in sorted(self.unresolved)]

    def __contains__(self, name: object) -> bool:
        return name in self._converters

    def __len__(self) -> int:
        return len(self._converters)

    def register(self, converter: Converter, replace: bool = False) -> None:
        """Add a converter. Re-registering a name requires ``replace``."""
        if converter.name in self._converters and not replace:
            raise ValueError(f"Converter '{converter.name}' is already registered")
        self._converters[converter.name] = converter

    def get(self, name: str) -> Optional[Converter]:
        return self._converters.get(name)

    def lookup(self, name: Optional[str]) -> ConverterLookup:
        """Resolve a name, falling back to identity for unknown names."""
        requested = name or IDENTITY.name
        converter = self._converters.get(requested)
        if converter is not None:
            return ConverterLookup(converter=converter, requested=requested)

        with self._lock:
            first_miss = requested not in self._unresolved
            self._unresolved.add(requested)
        if first_miss:
            LOGGER.debug("Converter %r not registered, using identity pass-through", requested)
        return ConverterLookup(converter=IDENTITY, requested=requested, fallback=True)

    def resolve(self, name: Optional[str]) -> Converter:
        return self.lookup(name).converter

    def to_domain(self, name: Optional[str], value: Any, params: Optional[Params] = None) -> Any:
        converter = self.resolve(name)
        return converter.to_domain(value, converter.params(params))

    def to_wire(self, name: Optional[str], value: Any, params: Optional[Params] = None) -> Any:
        """Validate (when the converter defines it) then convert for the wire."""
        converter = self.resolve(name)
        merged = converter.params(params)
        if converter.validate is not None and not converter.validate(value, merged):
            raise ConverterError(f"{converter.name}: invalid value {value!r}")
        return converter.to_wire(value, merged)

    def clear_unresolved(self) -> None:
        with self._lock:
            self._unresolved.clear()
