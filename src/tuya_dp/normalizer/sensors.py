"""Sensor value heuristics.

These operate on an already-normalized number plus a small config. The
thresholds and retry order match what deployed hardware reports and must
not be tuned.
"""

from __future__ import annotations

import math
import re
from typing import Any, Optional, Union

from tuya_dp.normalizer.normalizer import NormalizedValue


Number = Union[int, float]

_LEADING_NUMBER_RE = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
# largest log-encoded exponent whose power is still a finite float
LUX_EXPONENT_MAX = 308


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like the firmware tooling does (halves towards +inf)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _round_int(value: float) -> int:
    return int(math.floor(value + 0.5))


def to_number(value: Any) -> Optional[Number]:
    """Coerce a wire or normalized value into a number, or None."""
    if isinstance(value, NormalizedValue):
        return to_number(value.value)
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return value
    if isinstance(value, str):
        match = _LEADING_NUMBER_RE.match(value)
        if match is None:
            return None
        number = float(match.group(0))
        return number if math.isfinite(number) else None
    if isinstance(value, (bytes, bytearray)):
        if len(value) in (1, 2, 4):
            return int.from_bytes(value, byteorder="big", signed=False)
        return None
    if isinstance(value, (list, tuple)) and value:
        return to_number(value[0])
    return None


def to_temperature(
    value: Any,
    divisor: Number = 100,
    offset: Number = 0,
    signed: bool = True,
) -> Optional[float]:
    """Convert a raw reading to degrees Celsius, one decimal place.

    16-bit readings above 32767 are treated as negative when ``signed``.
    A result outside [-50, 100] is retried with divisor 10.
    """
    number = to_number(value)
    if number is None:
        return None
    divisor = divisor or 100

    if signed and number > 32767:
        number = number - 65536

    temp = number / divisor + offset

    if temp < -50 or temp > 100:
        if abs(number / 10) < 100:
            return round_half_up(number / 10 + offset, 1)

    return round_half_up(temp, 1)


def to_humidity(
    value: Any,
    divisor: Number = 100,
    min_value: Number = 0,
    max_value: Number = 100,
) -> Optional[int]:
    """Convert a raw reading to relative humidity percent.

    Falls back to divisor 10, then 1, while the result exceeds 100.
    """
    number = to_number(value)
    if number is None:
        return None
    divisor = divisor or 100

    humidity = number / divisor
    if humidity > 100 and number / 10 <= 100:
        humidity = number / 10
    if humidity > 100 and number <= 100:
        humidity = number

    humidity = max(min_value, min(max_value, humidity))
    return _round_int(humidity)


def to_battery(
    value: Any,
    divisor: Number = 2,
    max_value: Number = 100,
) -> Optional[int]:
    """Convert a raw battery reading to percent.

    (100, 200] is ZCL half-percent, [0, 100] is already percent,
    (2000, 4000) is millivolts mapped linearly from 2700-3200 mV.
    """
    number = to_number(value)
    if number is None:
        return None
    divisor = divisor or 2

    if 100 < number <= 200:
        battery: float = number / 2
    elif 0 <= number <= 100:
        battery = number
    elif 2000 < number < 4000:
        battery = _round_int((number - 2700) / 500 * 100)
    else:
        battery = number / divisor

    return int(max(0, min(max_value, _round_int(battery))))


def to_illuminance(value: Any) -> Optional[int]:
    """Convert a raw reading to lux.

    Readings above 10000 use the ZCL log encoding
    ``10 ** ((v - 1) / 10000)``; anything else is lux floored at 0.
    """
    number = to_number(value)
    if number is None:
        return None

    if number > 10000:
        exponent = min((number - 1) / 10000, LUX_EXPONENT_MAX)
        return _round_int(10 ** exponent)

    return max(0, _round_int(number))


def from_illuminance(lux: Any) -> int:
    """Inverse of ``to_illuminance``: lux above 10000 uses the log encoding."""
    number = to_number(lux)
    if number is None or number <= 0:
        return 0
    if number > 10000:
        return _round_int(10000 * math.log10(number) + 1)
    return _round_int(number)

