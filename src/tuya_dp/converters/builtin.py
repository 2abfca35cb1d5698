"""Built-in converters.

Every transform here is pure. Numeric input outside a converter's range is
clamped rather than rejected; only the write path raises, and only for
values that have no wire representation at all (e.g. an unknown enum label).
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional

from tuya_dp.converters.base import Converter, Params
from tuya_dp.core.errors import ConverterError
from tuya_dp.normalizer.sensors import (
    from_illuminance,
    to_battery,
    to_humidity,
    to_illuminance,
    to_number,
    to_temperature,
)


UNKNOWN_ENUM = "unknown"

INT32_MAX = 0x7FFFFFFF
UINT32_RANGE = 1 << 32


def _round_int(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: float, low: Optional[float], high: Optional[float]) -> float:
    if low is not None and value < low:
        return low
    if high is not None and value > high:
        return high
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _signed32(number: float, params: Params) -> float:
    if params.get("signed", True) and isinstance(number, int) and number > INT32_MAX:
        return number - UINT32_RANGE
    return number


def _require_number(value: Any, name: str) -> float:
    number = to_number(value) if not isinstance(value, str) else None
    if number is None:
        raise ConverterError(f"{name}: cannot encode non-numeric value {value!r}")
    return number


# --- identity ---

def _identity(value: Any, params: Params) -> Any:
    return value


# --- boolean ---

def _bool_to_domain(value: Any, params: Params) -> bool:
    if isinstance(value, (bytes, bytearray)):
        state = bool(to_number(value))
    else:
        state = bool(value)
    return state != bool(params.get("invert", False))


def _bool_to_wire(value: Any, params: Params) -> bool:
    return bool(value) != bool(params.get("invert", False))


def _bool_validate(value: Any, params: Params) -> bool:
    return isinstance(value, bool)


# --- linear scale ---

def _linear_to_domain(value: Any, params: Params) -> Optional[float]:
    number = to_number(value)
    if number is None:
        return None
    number = _signed32(number, params)
    scale = params.get("scale") or 1
    offset = params.get("offset", 0)
    result = number + offset if scale == 1 else number / scale + offset
    return _clamp(result, params.get("min"), params.get("max"))


def _linear_to_wire(value: Any, params: Params) -> int:
    number = _require_number(value, "linear_scale")
    number = _clamp(number, params.get("min"), params.get("max"))
    scale = params.get("scale") or 1
    return _round_int((number - params.get("offset", 0)) * scale)


def _numeric_validate(value: Any, params: Params) -> bool:
    return _is_number(value)


# --- percent clamp ---

def _percent_to_domain(value: Any, params: Params) -> Optional[float]:
    number = to_number(value)
    if number is None:
        return None
    return _clamp(number, params.get("min", 0), params.get("max", 100))


def _percent_to_wire(value: Any, params: Params) -> int:
    number = _require_number(value, "percent_clamp")
    return _round_int(_clamp(number, params.get("min", 0), params.get("max", 100)))


# --- enum table ---

def enum_table(params: Params) -> dict[int, str]:
    """Code -> label table from params; JSON-style string keys are accepted."""
    raw = params.get("values") or params.get("enum") or {}
    if not isinstance(raw, Mapping):
        return {}
    table: dict[int, str] = {}
    for code, label in raw.items():
        try:
            table[int(code)] = str(label)
        except (TypeError, ValueError):
            continue
    return table


def _enum_to_domain(value: Any, params: Params) -> str:
    table = enum_table(params)
    if isinstance(value, str) and value in table.values():
        return value
    number = to_number(value)
    if number is None or not float(number).is_integer():
        return UNKNOWN_ENUM
    return table.get(int(number), UNKNOWN_ENUM)


def _enum_to_wire(value: Any, params: Params) -> int:
    table = enum_table(params)
    if not table:
        raise ConverterError("enum_table: no 'values' table configured")
    for code, label in table.items():
        if label == value:
            return code
    if _is_number(value) and float(value).is_integer() and int(value) in table:
        return int(value)
    raise ConverterError(f"enum_table: unknown label {value!r}; expected one of {sorted(table.values())}")


def _enum_validate(value: Any, params: Params) -> bool:
    table = enum_table(params)
    if isinstance(value, str):
        return value in table.values()
    return _is_number(value) and float(value).is_integer() and int(value) in table


# --- cover position ---

def _cover_to_domain(value: Any, params: Params) -> Optional[float]:
    number = to_number(value)
    if number is None:
        return None
    position = _clamp(number, 0, 100) / 100
    return 1 - position if params.get("invert", False) else position


def _cover_to_wire(value: Any, params: Params) -> int:
    position = _clamp(_require_number(value, "cover_position"), 0, 1)
    if params.get("invert", False):
        position = 1 - position
    return _round_int(position * 100)


# --- sensor heuristics ---

def _divisor(params: Params, default: float) -> float:
    return params.get("divisor") or params.get("scale") or default


def _temperature_to_domain(value: Any, params: Params) -> Optional[float]:
    number = to_number(value)
    if number is None:
        return None
    return to_temperature(
        _signed32(number, params),
        divisor=_divisor(params, 100),
        offset=params.get("offset", 0),
        signed=params.get("signed", True),
    )


def _temperature_to_wire(value: Any, params: Params) -> int:
    number = _clamp(_require_number(value, "temperature"), params.get("min"), params.get("max"))
    return _round_int((number - params.get("offset", 0)) * _divisor(params, 100))


def _humidity_to_domain(value: Any, params: Params) -> Optional[int]:
    return to_humidity(
        value,
        divisor=_divisor(params, 100),
        min_value=params.get("min", 0),
        max_value=params.get("max", 100),
    )


def _humidity_to_wire(value: Any, params: Params) -> int:
    number = _clamp(_require_number(value, "humidity"), params.get("min", 0), params.get("max", 100))
    return _round_int(number * _divisor(params, 100))


def _battery_to_domain(value: Any, params: Params) -> Optional[int]:
    return to_battery(value, divisor=params.get("divisor", 2), max_value=params.get("max", 100))


def _battery_to_wire(value: Any, params: Params) -> int:
    return _round_int(_clamp(_require_number(value, "battery"), 0, params.get("max", 100)))


def _illuminance_to_domain(value: Any, params: Params) -> Optional[int]:
    return to_illuminance(value)


def _illuminance_to_wire(value: Any, params: Params) -> int:
    return from_illuminance(_require_number(value, "illuminance"))


IDENTITY = Converter(
    name="identity",
    to_domain=_identity,
    to_wire=_identity,
    description="Pass-through",
)

BOOLEAN = Converter(
    name="boolean",
    to_domain=_bool_to_domain,
    to_wire=_bool_to_wire,
    validate=_bool_validate,
    defaults={"invert": False},
    description="On/off state",
)

LINEAR_SCALE = Converter(
    name="linear_scale",
    to_domain=_linear_to_domain,
    to_wire=_linear_to_wire,
    validate=_numeric_validate,
    defaults={"scale": 1, "offset": 0, "signed": True},
    description="domain = wire / scale + offset",
)

PERCENT_CLAMP = Converter(
    name="percent_clamp",
    to_domain=_percent_to_domain,
    to_wire=_percent_to_wire,
    validate=_numeric_validate,
    defaults={"min": 0, "max": 100},
    description="Percentage clamped to [min, max]",
)

ENUM_TABLE = Converter(
    name="enum_table",
    to_domain=_enum_to_domain,
    to_wire=_enum_to_wire,
    validate=_enum_validate,
    description="Integer code <-> label",
)

COVER_POSITION = Converter(
    name="cover_position",
    to_domain=_cover_to_domain,
    to_wire=_cover_to_wire,
    validate=_numeric_validate,
    defaults={"invert": False},
    description="Position 0-100 <-> 0-1",
)

TEMPERATURE = Converter(
    name="temperature",
    to_domain=_temperature_to_domain,
    to_wire=_temperature_to_wire,
    validate=_numeric_validate,
    defaults={"divisor": 100, "offset": 0, "signed": True},
    description="Degrees Celsius with divisor fallback",
)

HUMIDITY = Converter(
    name="humidity",
    to_domain=_humidity_to_domain,
    to_wire=_humidity_to_wire,
    validate=_numeric_validate,
    defaults={"divisor": 100, "min": 0, "max": 100},
    description="Relative humidity percent with divisor fallback",
)

BATTERY = Converter(
    name="battery",
    to_domain=_battery_to_domain,
    to_wire=_battery_to_wire,
    validate=_numeric_validate,
    defaults={"divisor": 2, "max": 100},
    description="Battery percent from percent, half-percent or millivolts",
)

ILLUMINANCE = Converter(
    name="illuminance",
    to_domain=_illuminance_to_domain,
    to_wire=_illuminance_to_wire,
    validate=_numeric_validate,
    description="Lux, ZCL log encoding above 10000",
)


BUILTIN_CONVERTERS: tuple[Converter, ...] = (
    IDENTITY,
    BOOLEAN,
    BOOLEAN.alias("onoff"),
    LINEAR_SCALE,
    LINEAR_SCALE.alias("power", {"scale": 10}, "Watts from deciwatts"),
    LINEAR_SCALE.alias("voltage", {"scale": 10}, "Volts from decivolts"),
    LINEAR_SCALE.alias("current", {"scale": 1000}, "Amps from milliamps"),
    LINEAR_SCALE.alias("energy", {"scale": 100}, "kWh from hundredths"),
    PERCENT_CLAMP,
    ENUM_TABLE,
    COVER_POSITION,
    TEMPERATURE,
    HUMIDITY,
    BATTERY,
    ILLUMINANCE,
)
