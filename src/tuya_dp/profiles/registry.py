"""Fingerprint and profile registry."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from jsonschema import ValidationError, validators

from tuya_dp.core.errors import ProfileLoadError
from tuya_dp.profiles.schema import (
    FINGERPRINT_TABLE_SCHEMA,
    PROFILE_TABLE_SCHEMA,
    DPConfig,
    Fingerprint,
    Profile,
)


LOGGER = logging.getLogger(__name__)


def _build_validator(schema: dict[str, Any]) -> Any:
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


_PROFILE_VALIDATOR = _build_validator(PROFILE_TABLE_SCHEMA)
_FINGERPRINT_VALIDATOR = _build_validator(FINGERPRINT_TABLE_SCHEMA)


def _validate(validator: Any, doc: Any, what: str) -> None:
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise ProfileLoadError(f"Schema validation failed for {what}{where}: {exc.message}") from exc


@dataclass(frozen=True)
class RegistrySnapshot:
    """One consistent generation of the fingerprint and profile tables."""

    profiles: Mapping[str, Profile] = field(default_factory=dict)
    fingerprints: Mapping[Fingerprint, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "profiles", MappingProxyType(dict(self.profiles)))
        object.__setattr__(self, "fingerprints", MappingProxyType(dict(self.fingerprints)))


def build_snapshot(
    fingerprint_table: Mapping[str, Any],
    profile_table: Mapping[str, Any],
) -> RegistrySnapshot:
    """Validate plain tables and build immutable objects from them."""
    _validate(_PROFILE_VALIDATOR, profile_table, "profile table")
    _validate(_FINGERPRINT_VALIDATOR, fingerprint_table, "fingerprint table")

    profiles = {name: Profile.from_dict(name, data) for name, data in profile_table.items()}

    fingerprints: dict[Fingerprint, str] = {}
    for manufacturer, target in fingerprint_table.items():
        if isinstance(target, str):
            entries = [{"profile": target}]
        elif isinstance(target, Mapping):
            entries = [target]
        else:
            entries = list(target)

        for entry in entries:
            profile_name = entry["profile"]
            if profile_name not in profiles:
                raise ProfileLoadError(
                    f"Fingerprint '{manufacturer}' references unknown profile '{profile_name}'"
                )
            key = Fingerprint(manufacturer=manufacturer, model=entry.get("model"))
            if key in fingerprints and fingerprints[key] != profile_name:
                raise ProfileLoadError(
                    f"Fingerprint '{key}' mapped to both '{fingerprints[key]}' and '{profile_name}'"
                )
            fingerprints[key] = profile_name

    return RegistrySnapshot(profiles=profiles, fingerprints=fingerprints)


class ProfileRegistry:
    """Device identity -> profile -> capability -> datapoint lookups.

    Tables are supplied as plain mappings by the host. ``load`` builds a
    complete new snapshot before installing it, so readers on other
    threads see either the old tables or the new ones, never a mix.
    """

    def __init__(
        self,
        fingerprint_table: Optional[Mapping[str, Any]] = None,
        profile_table: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._snapshot = RegistrySnapshot()
        if fingerprint_table is not None or profile_table is not None:
            self.load(fingerprint_table or {}, profile_table or {})

    @classmethod
    def from_tables(
        cls,
        fingerprint_table: Mapping[str, Any],
        profile_table: Mapping[str, Any],
    ) -> "ProfileRegistry":
        return cls(fingerprint_table, profile_table)

    def load(self, fingerprint_table: Mapping[str, Any], profile_table: Mapping[str, Any]) -> None:
        """Validate and install new tables. Raises ``ProfileLoadError``."""
        snapshot = build_snapshot(fingerprint_table, profile_table)
        self._snapshot = snapshot
        LOGGER.info(
            "Loaded %d profiles and %d fingerprints",
            len(snapshot.profiles),
            len(snapshot.fingerprints),
        )

    reload = load

    @property
    def snapshot(self) -> RegistrySnapshot:
        return self._snapshot

    @property
    def profile_names(self) -> list[str]:
        return sorted(self._snapshot.profiles)

    @property
    def fingerprints(self) -> Mapping[Fingerprint, str]:
        return self._snapshot.fingerprints

    def __len__(self) -> int:
        return len(self._snapshot.profiles)

    def resolve(self, manufacturer_id: Optional[str], model_id: Optional[str] = None) -> Optional[Profile]:
        """Exact fingerprint match; ``None`` means the device is unmanaged.

        A model-specific entry wins over a manufacturer-only one.
        """
        if not manufacturer_id:
            return None
        snapshot = self._snapshot
        name = None
        if model_id:
            name = snapshot.fingerprints.get(Fingerprint(manufacturer_id, model_id))
        if name is None:
            name = snapshot.fingerprints.get(Fingerprint(manufacturer_id))
        return snapshot.profiles.get(name) if name is not None else None

    def profile(self, name: str) -> Optional[Profile]:
        return self._snapshot.profiles.get(name)

    def dp_config_for(self, profile: Optional[Profile], capability: str) -> Optional[DPConfig]:
        if profile is None:
            return None
        return profile.dp_config(capability)

    def capability_for_dp(self, profile: Optional[Profile], dp_id: int) -> Optional[str]:
        if profile is None:
            return None
        return profile.capability_for_dp(dp_id)

    def capabilities_for_dp(self, profile: Optional[Profile], dp_id: int) -> tuple[str, ...]:
        if profile is None:
            return ()
        return profile.capabilities_for_dp(dp_id)
