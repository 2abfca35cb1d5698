"""Value normalization components."""

from tuya_dp.normalizer.normalizer import (
    NormalizedRecord,
    NormalizedValue,
    ValueKind,
    ValueNormalizer,
)
from tuya_dp.normalizer.inputs import RawInput, classify
from tuya_dp.normalizer.sensors import (
    to_battery,
    to_humidity,
    to_illuminance,
    to_number,
    to_temperature,
)

__all__ = [
    "NormalizedRecord",
    "NormalizedValue",
    "ValueKind",
    "ValueNormalizer",
    "RawInput",
    "classify",
    "to_battery",
    "to_humidity",
    "to_illuminance",
    "to_number",
    "to_temperature",
]
