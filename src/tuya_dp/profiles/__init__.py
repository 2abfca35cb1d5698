"""Device fingerprints, profiles and datapoint bindings."""

from tuya_dp.profiles.matching import FingerprintMatcher
from tuya_dp.profiles.registry import ProfileRegistry, RegistrySnapshot
from tuya_dp.profiles.schema import DPConfig, Fingerprint, Profile
from tuya_dp.profiles.tables import DEFAULT_FINGERPRINTS, DEFAULT_PROFILES, default_registry

__all__ = [
    "DPConfig",
    "Fingerprint",
    "FingerprintMatcher",
    "Profile",
    "ProfileRegistry",
    "RegistrySnapshot",
    "DEFAULT_FINGERPRINTS",
    "DEFAULT_PROFILES",
    "default_registry",
]
