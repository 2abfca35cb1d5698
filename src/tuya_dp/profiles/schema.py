"""Profile, fingerprint and datapoint configuration definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from tuya_dp.core.errors import ProfileLoadError
from tuya_dp.core.frame import WireType


_DP_CONFIG_KEYS = frozenset({"dp", "wireType", "wire_type", "type", "converter", "params", "description"})

DP_CONFIG_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["dp"],
    "properties": {
        "dp": {"type": "integer", "minimum": 0, "maximum": 255},
        "wireType": {"type": ["string", "integer"]},
        "wire_type": {"type": ["string", "integer"]},
        "type": {"type": ["string", "integer"]},
        "converter": {"type": "string", "minLength": 1},
        "params": {"type": "object"},
        "description": {"type": "string"},
    },
}

PROFILE_TABLE_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": {
        "type": "object",
        "required": ["capabilities"],
        "properties": {
            "capabilities": {
                "type": "array",
                "items": {"type": "string", "minLength": 1},
            },
            "dpMapping": {"type": "object", "additionalProperties": DP_CONFIG_SCHEMA},
            "dp_mapping": {"type": "object", "additionalProperties": DP_CONFIG_SCHEMA},
            "description": {"type": "string"},
        },
    },
}

_FINGERPRINT_ENTRY = {
    "type": "object",
    "required": ["profile"],
    "properties": {
        "profile": {"type": "string", "minLength": 1},
        "model": {"type": ["string", "null"]},
    },
}

FINGERPRINT_TABLE_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": {
        "anyOf": [
            {"type": "string", "minLength": 1},
            _FINGERPRINT_ENTRY,
            {"type": "array", "items": _FINGERPRINT_ENTRY, "minItems": 1},
        ]
    },
}


@dataclass(frozen=True)
class Fingerprint:
    """Device identity key: manufacturer name plus optional model id."""

    manufacturer: str
    model: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.model}|{self.manufacturer}" if self.model else self.manufacturer


@dataclass(frozen=True)
class DPConfig:
    """One capability's binding to a datapoint.

    The converter name is only a reference; it is resolved when the
    datapoint is first converted, not when the profile is loaded.
    """

    dp: int
    wire_type: WireType = WireType.VALUE
    converter: str = "identity"
    params: Mapping[str, Any] = field(default_factory=dict)
    description: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.dp, bool) or not isinstance(self.dp, int) or not (0 <= self.dp <= 0xFF):
            raise ValueError(f"dp must be 0-255, got {self.dp!r}")
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    @classmethod
    def from_dict(cls, capability: str, data: Mapping[str, Any]) -> "DPConfig":
        """Build from a profile table entry.

        Keys other than the known ones are folded into ``params``, so
        ``{"dp": 1, "converter": "linear_scale", "scale": 10}`` works as
        well as an explicit ``params`` mapping. Without a converter the
        capability name is used.
        """
        raw_type = data.get("wireType", data.get("wire_type", data.get("type", WireType.VALUE)))
        try:
            wire_type = WireType.parse(raw_type)
        except ValueError as exc:
            raise ProfileLoadError(f"{capability}: {exc}") from exc

        params = {k: v for k, v in data.items() if k not in _DP_CONFIG_KEYS}
        params.update(data.get("params") or {})

        try:
            return cls(
                dp=data["dp"],
                wire_type=wire_type,
                converter=data.get("converter") or capability,
                params=params,
                description=data.get("description", ""),
            )
        except (KeyError, ValueError) as exc:
            raise ProfileLoadError(f"{capability}: invalid datapoint config: {exc}") from exc


@dataclass(frozen=True, eq=False)
class Profile:
    """A device family's capabilities and their datapoint bindings.

    Immutable and shared read-only by every device resolved to it.
    """

    name: str
    capabilities: tuple[str, ...] = ()
    dp_mapping: Mapping[str, DPConfig] = field(default_factory=dict)
    description: str = ""
    _by_dp: Mapping[int, tuple[str, ...]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "capabilities", tuple(self.capabilities))
        object.__setattr__(self, "dp_mapping", MappingProxyType(dict(self.dp_mapping)))

        by_dp: dict[int, list[str]] = {}
        for capability, config in self.dp_mapping.items():
            by_dp.setdefault(config.dp, []).append(capability)
        object.__setattr__(
            self, "_by_dp", MappingProxyType({dp: tuple(caps) for dp, caps in by_dp.items()})
        )

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> "Profile":
        mapping = data.get("dpMapping", data.get("dp_mapping")) or {}
        return cls(
            name=name,
            capabilities=tuple(data.get("capabilities") or ()),
            dp_mapping={cap: DPConfig.from_dict(cap, cfg) for cap, cfg in mapping.items()},
            description=data.get("description", ""),
        )

    @property
    def datapoints(self) -> list[int]:
        return sorted(self._by_dp)

    def dp_config(self, capability: str) -> Optional[DPConfig]:
        return self.dp_mapping.get(capability)

    def capability_for_dp(self, dp: int) -> Optional[str]:
        """First capability (in mapping order) bound to ``dp``."""
        capabilities = self._by_dp.get(dp)
        return capabilities[0] if capabilities else None

    def capabilities_for_dp(self, dp: int) -> tuple[str, ...]:
        return self._by_dp.get(dp, ())

    def summary(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "capabilities": list(self.capabilities),
            "datapoints": {
                cap: {"dp": cfg.dp, "type": cfg.wire_type.name, "converter": cfg.converter}
                for cap, cfg in self.dp_mapping.items()
            },
        }
