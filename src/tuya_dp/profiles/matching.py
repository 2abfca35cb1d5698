"""Wildcard fingerprint policy layered over exact registry lookups."""

from __future__ import annotations

import fnmatch
import logging
from typing import Iterable, Optional, Union

from tuya_dp.profiles.registry import ProfileRegistry
from tuya_dp.profiles.schema import Profile


LOGGER = logging.getLogger(__name__)

Pattern = Union[tuple[str, str], tuple[str, Optional[str], str]]


class FingerprintMatcher:
    """Resolve devices whose manufacturer id only matches a pattern.

    Patterns are ``(manufacturer_glob, profile_name)`` or
    ``(manufacturer_glob, model_glob, profile_name)`` and are tried in
    declaration order after an exact ``resolve`` misses.
    """

    def __init__(self, registry: ProfileRegistry, patterns: Iterable[Pattern] = ()) -> None:
        self.registry = registry
        self._patterns: list[tuple[str, Optional[str], str]] = []
        for entry in patterns:
            if len(entry) == 2:
                manufacturer, profile_name = entry  # type: ignore[misc]
                model = None
            else:
                manufacturer, model, profile_name = entry  # type: ignore[misc]
            self._patterns.append((manufacturer, model, profile_name))

    @property
    def patterns(self) -> list[tuple[str, Optional[str], str]]:
        return list(self._patterns)

    def resolve(self, manufacturer_id: Optional[str], model_id: Optional[str] = None) -> Optional[Profile]:
        profile = self.registry.resolve(manufacturer_id, model_id)
        if profile is not None or not manufacturer_id:
            return profile

        for manufacturer, model, profile_name in self._patterns:
            if not fnmatch.fnmatchcase(manufacturer_id, manufacturer):
                continue
            if model is not None and not fnmatch.fnmatchcase(model_id or "", model):
                continue
            profile = self.registry.profile(profile_name)
            if profile is None:
                LOGGER.debug("Pattern %r names unknown profile %r", manufacturer, profile_name)
                continue
            return profile
        return None
