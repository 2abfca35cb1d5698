"""Built-in fingerprint and profile tables for common Tuya DP hardware."""

from __future__ import annotations

from typing import Any

from tuya_dp.profiles.registry import ProfileRegistry


DEFAULT_PROFILES: dict[str, dict[str, Any]] = {
    "climate_monitor": {
        "description": "Temperature/humidity sensor (ZTH01 class)",
        "capabilities": ["measure_temperature", "measure_humidity", "measure_battery"],
        "dpMapping": {
            "measure_temperature": {"dp": 1, "wireType": "Value", "converter": "temperature", "divisor": 10},
            "measure_humidity": {"dp": 2, "wireType": "Value", "converter": "humidity", "divisor": 1},
            "measure_battery": {"dp": 4, "wireType": "Value", "converter": "battery", "divisor": 1},
        },
    },
    "soil_sensor": {
        "description": "Soil moisture and climate sensor",
        "capabilities": ["measure_temperature", "measure_humidity", "measure_battery", "battery_state"],
        "dpMapping": {
            "measure_temperature": {"dp": 1, "wireType": "Value", "converter": "temperature", "divisor": 10},
            "measure_humidity": {"dp": 2, "wireType": "Value", "converter": "percent_clamp"},
            "measure_battery": {"dp": 3, "wireType": "Value", "converter": "battery", "divisor": 1},
            "battery_state": {
                "dp": 14,
                "wireType": "Enum",
                "converter": "enum_table",
                "params": {"values": {"0": "low", "1": "middle", "2": "high"}},
            },
        },
    },
    "radar_presence": {
        "description": "mmWave human presence radar",
        "capabilities": ["alarm_motion", "measure_luminance", "radar_sensitivity", "target_distance"],
        "dpMapping": {
            "alarm_motion": {"dp": 1, "wireType": "Bool", "converter": "boolean"},
            "measure_luminance": {"dp": 4, "wireType": "Value", "converter": "illuminance"},
            "radar_sensitivity": {"dp": 9, "wireType": "Value", "converter": "linear_scale", "min": 0, "max": 9},
            "target_distance": {"dp": 103, "wireType": "Value", "converter": "linear_scale", "scale": 100},
        },
    },
    "smart_plug": {
        "description": "Plug with energy metering",
        "capabilities": ["onoff", "meter_power", "measure_current", "measure_power", "measure_voltage"],
        "dpMapping": {
            "onoff": {"dp": 1, "wireType": "Bool", "converter": "onoff"},
            "meter_power": {"dp": 17, "wireType": "Value", "converter": "energy"},
            "measure_current": {"dp": 18, "wireType": "Value", "converter": "current"},
            "measure_power": {"dp": 19, "wireType": "Value", "converter": "power"},
            "measure_voltage": {"dp": 20, "wireType": "Value", "converter": "voltage"},
        },
    },
    "curtain_motor": {
        "description": "Curtain/roller motor",
        "capabilities": ["windowcoverings_state", "windowcoverings_set", "dim"],
        "dpMapping": {
            "windowcoverings_state": {
                "dp": 1,
                "wireType": "Enum",
                "converter": "enum_table",
                "params": {"values": {"0": "up", "1": "idle", "2": "down"}},
            },
            "windowcoverings_set": {"dp": 2, "wireType": "Value", "converter": "cover_position"},
            "dim": {"dp": 3, "wireType": "Value", "converter": "cover_position"},
        },
    },
    "wall_switch_1gang": {
        "description": "Single-gang wall switch",
        "capabilities": ["onoff"],
        "dpMapping": {
            "onoff": {"dp": 1, "wireType": "Bool", "converter": "onoff"},
        },
    },
    "wall_switch_2gang": {
        "description": "Two-gang wall switch",
        "capabilities": ["onoff", "onoff.gang2"],
        "dpMapping": {
            "onoff": {"dp": 1, "wireType": "Bool", "converter": "onoff"},
            "onoff.gang2": {"dp": 2, "wireType": "Bool", "converter": "onoff"},
        },
    },
    "wall_switch_3gang": {
        "description": "Three-gang wall switch or double socket with USB",
        "capabilities": ["onoff", "onoff.gang2", "onoff.gang3"],
        "dpMapping": {
            "onoff": {"dp": 1, "wireType": "Bool", "converter": "onoff"},
            "onoff.gang2": {"dp": 2, "wireType": "Bool", "converter": "onoff"},
            "onoff.gang3": {"dp": 3, "wireType": "Bool", "converter": "onoff"},
        },
    },
    "dimmer": {
        "description": "Single-gang dimmer, brightness 0-1000 on the wire",
        "capabilities": ["onoff", "dim"],
        "dpMapping": {
            "onoff": {"dp": 1, "wireType": "Bool", "converter": "onoff"},
            "dim": {"dp": 2, "wireType": "Value", "converter": "linear_scale", "scale": 1000, "min": 0, "max": 1},
        },
    },
    "radiator_valve": {
        "description": "Thermostatic radiator valve",
        "capabilities": [
            "target_temperature",
            "measure_temperature",
            "thermostat_mode",
            "child_lock",
            "measure_battery",
        ],
        "dpMapping": {
            "target_temperature": {
                "dp": 2,
                "wireType": "Value",
                "converter": "temperature",
                "divisor": 10,
                "min": 5,
                "max": 35,
            },
            "measure_temperature": {"dp": 3, "wireType": "Value", "converter": "temperature", "divisor": 10},
            "thermostat_mode": {
                "dp": 4,
                "wireType": "Enum",
                "converter": "enum_table",
                "params": {"values": {"0": "auto", "1": "heat", "2": "off"}},
            },
            "child_lock": {"dp": 7, "wireType": "Bool", "converter": "boolean"},
            "measure_battery": {"dp": 14, "wireType": "Value", "converter": "battery", "divisor": 1},
        },
    },
}

DEFAULT_FINGERPRINTS: dict[str, Any] = {
    "_TZE200_9yapgbuv": "climate_monitor",
    "_TZE284_vvmbj46n": "soil_sensor",
    "_TZE284_oitavov2": "soil_sensor",
    "_TZE200_rhgsbacq": "radar_presence",
    "_TZE200_ikvncluo": "radar_presence",
    "_TZE204_sxm7l9xa": "radar_presence",
    "_TZE204_ijxvkhd0": "radar_presence",
    "_TZ3000_g5xawfcq": {"profile": "smart_plug", "model": "TS011F"},
    "_TZ3000_cehuw1lw": {"profile": "smart_plug", "model": "TS011F"},
    "_TZE200_fctwhugx": "curtain_motor",
    "_TZE200_cowvfni3": "curtain_motor",
    "_TZE200_icka1clh": "curtain_motor",
    "_TZE200_mvtclclq": "wall_switch_3gang",
    "_TZE204_mvtclclq": "wall_switch_3gang",
    "_TZE200_hvaxb2tc": "radiator_valve",
    "_TZE200_aoclfnxz": "radiator_valve",
    "_TZE200_bvu2wnxz": "radiator_valve",
}


def default_registry() -> ProfileRegistry:
    """A registry loaded with the built-in tables."""
    return ProfileRegistry.from_tables(DEFAULT_FINGERPRINTS, DEFAULT_PROFILES)
