"""Tests for profiles, fingerprints and the profile registry."""

import logging
from typing import Any

import pytest

from tuya_dp.converters.registry import ConverterRegistry
from tuya_dp.core.errors import ProfileLoadError
from tuya_dp.core.frame import WireType
from tuya_dp.profiles.matching import FingerprintMatcher
from tuya_dp.profiles.registry import ProfileRegistry
from tuya_dp.profiles.schema import DPConfig, Fingerprint, Profile
from tuya_dp.profiles.tables import DEFAULT_FINGERPRINTS, DEFAULT_PROFILES, default_registry


def make_profiles() -> dict[str, Any]:
    return {
        "switch": {
            "capabilities": ["onoff"],
            "dpMapping": {"onoff": {"dp": 1, "wireType": "Bool", "converter": "onoff"}},
        },
        "thermo": {
            "capabilities": ["measure_temperature", "target_temperature", "measure_battery"],
            "dpMapping": {
                "measure_temperature": {"dp": 3, "type": "Value", "converter": "temperature", "divisor": 10},
                "target_temperature": {"dp": 3, "wireType": 2, "converter": "temperature"},
                "measure_battery": {"dp": 14},
            },
        },
    }


def make_fingerprints() -> dict[str, Any]:
    return {
        "_TZE200_switch01": "switch",
        "_TZE200_thermo01": [
            {"profile": "thermo"},
            {"profile": "switch", "model": "TS0001"},
        ],
    }


class TestDPConfig:
    """Tests for DPConfig construction."""

    def test_loose_keys_become_params(self) -> None:
        """Test that unknown keys are folded into params."""
        config = DPConfig.from_dict("measure_power", {"dp": 19, "converter": "linear_scale", "scale": 10})

        assert config.wire_type is WireType.VALUE
        assert config.params == {"scale": 10}

    def test_explicit_params_win(self) -> None:
        """Test that an explicit params mapping overrides loose keys."""
        config = DPConfig.from_dict("x", {"dp": 1, "scale": 10, "params": {"scale": 100}})

        assert config.params["scale"] == 100

    def test_converter_defaults_to_capability(self) -> None:
        """Test that a missing converter name is the capability name."""
        assert DPConfig.from_dict("onoff", {"dp": 1, "type": "Bool"}).converter == "onoff"

    def test_unknown_wire_type(self) -> None:
        """Test that an unknown wire type name fails to load."""
        with pytest.raises(ProfileLoadError, match="Unknown wire type"):
            DPConfig.from_dict("x", {"dp": 1, "wireType": "Float"})

    def test_params_are_read_only(self) -> None:
        """Test that params cannot be mutated."""
        config = DPConfig(dp=1, params={"a": 1})

        with pytest.raises(TypeError):
            config.params["a"] = 2  # type: ignore[index]


class TestProfile:
    """Tests for Profile lookups."""

    @pytest.fixture
    def profile(self) -> Profile:
        return Profile.from_dict("thermo", make_profiles()["thermo"])

    def test_reverse_lookup_first_match(self, profile: Profile) -> None:
        """Test that the first capability bound to a shared dp wins."""
        assert profile.capability_for_dp(3) == "measure_temperature"
        assert profile.capabilities_for_dp(3) == ("measure_temperature", "target_temperature")

    def test_unmapped_dp(self, profile: Profile) -> None:
        """Test lookups for a dp no capability uses."""
        assert profile.capability_for_dp(99) is None
        assert profile.capabilities_for_dp(99) == ()

    def test_datapoints_and_summary(self, profile: Profile) -> None:
        """Test the dp listing and summary export."""
        assert profile.datapoints == [3, 14]
        summary = profile.summary()
        assert summary["datapoints"]["measure_battery"] == {
            "dp": 14,
            "type": "VALUE",
            "converter": "measure_battery",
        }


class TestProfileRegistry:
    """Tests for ProfileRegistry."""

    @pytest.fixture
    def registry(self) -> ProfileRegistry:
        return ProfileRegistry.from_tables(make_fingerprints(), make_profiles())

    def test_resolve_returns_same_object(self, registry: ProfileRegistry) -> None:
        """Test that resolving twice yields the same Profile."""
        first = registry.resolve("_TZE200_switch01")

        assert first is not None
        assert first is registry.resolve("_TZE200_switch01")
        assert first is registry.profile("switch")

    def test_model_specific_entry_wins(self, registry: ProfileRegistry) -> None:
        """Test that a model-specific fingerprint beats a manufacturer-only one."""
        assert registry.resolve("_TZE200_thermo01", "TS0001").name == "switch"
        assert registry.resolve("_TZE200_thermo01", "TS0601").name == "thermo"
        assert registry.resolve("_TZE200_thermo01").name == "thermo"

    def test_unmanaged(self, registry: ProfileRegistry) -> None:
        """Test that unknown devices resolve to None."""
        assert registry.resolve("_TZE200_unknown") is None
        assert registry.resolve(None) is None
        assert registry.resolve("") is None

    def test_lookups_through_registry(self, registry: ProfileRegistry) -> None:
        """Test registry-level config and reverse lookups."""
        profile = registry.profile("thermo")

        assert registry.dp_config_for(profile, "measure_temperature").params == {"divisor": 10}
        assert registry.dp_config_for(profile, "missing") is None
        assert registry.dp_config_for(None, "onoff") is None
        assert registry.capability_for_dp(profile, 14) == "measure_battery"
        assert registry.capability_for_dp(None, 14) is None
        assert registry.capabilities_for_dp(None, 3) == ()

    def test_fingerprint_keys(self, registry: ProfileRegistry) -> None:
        """Test that fingerprint entries are keyed by manufacturer and model."""
        assert registry.fingerprints[Fingerprint("_TZE200_thermo01", "TS0001")] == "switch"
        assert str(Fingerprint("_TZE200_thermo01", "TS0001")) == "TS0001|_TZE200_thermo01"
        assert str(Fingerprint("_TZE200_switch01")) == "_TZE200_switch01"

    def test_unknown_profile_reference(self) -> None:
        """Test that fingerprints must name a loaded profile."""
        with pytest.raises(ProfileLoadError, match="unknown profile 'dimmer'"):
            ProfileRegistry.from_tables({"_TZE200_x": "dimmer"}, make_profiles())

    @pytest.mark.parametrize(
        "profiles",
        [
            {"p": {"dpMapping": {}}},
            {"p": {"capabilities": "onoff"}},
            {"p": {"capabilities": [], "dpMapping": {"onoff": {"dp": 300}}}},
            {"p": {"capabilities": [], "dpMapping": {"onoff": {"wireType": "Bool"}}}},
            {"p": {"capabilities": [], "dpMapping": {"onoff": {"dp": True}}}},
            {"p": []},
        ],
    )
    def test_structural_errors(self, profiles: dict[str, Any]) -> None:
        """Test that malformed profile tables are rejected."""
        with pytest.raises(ProfileLoadError, match="Schema validation failed"):
            ProfileRegistry.from_tables({}, profiles)

    def test_malformed_fingerprint_table(self) -> None:
        """Test that malformed fingerprint entries are rejected."""
        with pytest.raises(ProfileLoadError, match="fingerprint table"):
            ProfileRegistry.from_tables({"_TZE200_x": {"model": "TS0601"}}, make_profiles())

    def test_converter_names_not_checked(self) -> None:
        """Test that unknown converter names load fine."""
        profiles = {"p": {"capabilities": ["x"], "dpMapping": {"x": {"dp": 1, "converter": "no_such"}}}}

        registry = ProfileRegistry.from_tables({}, profiles)

        assert registry.profile("p").dp_config("x").converter == "no_such"

    def test_reload_swaps_snapshot(self, registry: ProfileRegistry) -> None:
        """Test that reloading replaces the tables without touching old profiles."""
        old = registry.resolve("_TZE200_switch01")

        registry.reload({"_TZE200_switch02": "switch"}, make_profiles())

        assert registry.resolve("_TZE200_switch01") is None
        assert registry.resolve("_TZE200_switch02") is not old
        assert old.capability_for_dp(1) == "onoff"

    def test_failed_reload_keeps_tables(self, registry: ProfileRegistry) -> None:
        """Test that a failed load leaves the previous snapshot installed."""
        snapshot = registry.snapshot

        with pytest.raises(ProfileLoadError):
            registry.load({"_TZE200_x": "missing"}, make_profiles())

        assert registry.snapshot is snapshot
        assert registry.resolve("_TZE200_switch01") is not None

    def test_load_logs(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that a load is logged at INFO."""
        with caplog.at_level(logging.INFO, logger="tuya_dp.profiles.registry"):
            ProfileRegistry.from_tables(make_fingerprints(), make_profiles())

        assert "Loaded 2 profiles and 3 fingerprints" in caplog.text

    def test_empty_registry(self) -> None:
        """Test a registry with nothing loaded."""
        registry = ProfileRegistry()

        assert len(registry) == 0
        assert registry.resolve("_TZE200_switch01") is None


class TestFingerprintMatcher:
    """Tests for wildcard fingerprint matching."""

    @pytest.fixture
    def matcher(self) -> FingerprintMatcher:
        registry = ProfileRegistry.from_tables(make_fingerprints(), make_profiles())
        return FingerprintMatcher(
            registry,
            [
                ("_TZE200_thermo*", "thermo"),
                ("_TZ3000_*", "TS0001", "switch"),
                ("_TZE204_*", "missing"),
                ("_TZE2*", "switch"),
            ],
        )

    def test_exact_match_first(self, matcher: FingerprintMatcher) -> None:
        """Test that exact fingerprints win over patterns."""
        assert matcher.resolve("_TZE200_switch01").name == "switch"

    def test_glob(self, matcher: FingerprintMatcher) -> None:
        """Test manufacturer glob patterns in declaration order."""
        assert matcher.resolve("_TZE200_thermo99").name == "thermo"
        assert matcher.resolve("_TZE284_abcdefgh").name == "switch"

    def test_model_glob(self, matcher: FingerprintMatcher) -> None:
        """Test patterns that also constrain the model."""
        assert matcher.resolve("_TZ3000_abcdefgh", "TS0001").name == "switch"
        assert matcher.resolve("_TZ3000_abcdefgh", "TS0002") is None

    def test_pattern_with_unknown_profile_is_skipped(self, matcher: FingerprintMatcher) -> None:
        """Test that a pattern naming a missing profile falls through."""
        assert matcher.resolve("_TZE204_abcdefgh").name == "switch"

    def test_no_match(self, matcher: FingerprintMatcher) -> None:
        """Test that unmatched devices stay unmanaged."""
        assert matcher.resolve("lumi.sensor") is None


class TestDefaultTables:
    """Tests for the built-in tables."""

    @pytest.fixture
    def registry(self) -> ProfileRegistry:
        return default_registry()

    def test_every_fingerprint_resolves(self, registry: ProfileRegistry) -> None:
        """Test that each built-in fingerprint resolves to a profile."""
        for manufacturer, target in DEFAULT_FINGERPRINTS.items():
            model = target.get("model") if isinstance(target, dict) else None
            assert registry.resolve(manufacturer, model) is not None, manufacturer

    def test_expected_profiles(self, registry: ProfileRegistry) -> None:
        """Test that the built-in device families are present."""
        assert set(registry.profile_names) == set(DEFAULT_PROFILES)
        for name in (
            "climate_monitor",
            "soil_sensor",
            "radar_presence",
            "smart_plug",
            "curtain_motor",
            "wall_switch_1gang",
            "wall_switch_2gang",
            "wall_switch_3gang",
            "dimmer",
            "radiator_valve",
        ):
            assert registry.profile(name) is not None

    def test_converters_are_registered(self, registry: ProfileRegistry) -> None:
        """Test that built-in profiles only use registered converters."""
        converters = ConverterRegistry()

        for name in registry.profile_names:
            for capability, config in registry.profile(name).dp_mapping.items():
                assert config.converter in converters, f"{name}.{capability}"

    def test_capabilities_are_mapped(self, registry: ProfileRegistry) -> None:
        """Test that every declared capability has a datapoint."""
        for name in registry.profile_names:
            profile = registry.profile(name)
            assert set(profile.capabilities) == set(profile.dp_mapping), name
