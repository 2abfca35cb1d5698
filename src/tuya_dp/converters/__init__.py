"""Wire <-> domain value converters."""

from tuya_dp.converters.base import Converter, ConverterLookup
from tuya_dp.converters.builtin import BUILTIN_CONVERTERS, UNKNOWN_ENUM
from tuya_dp.converters.registry import ConverterRegistry

__all__ = [
    "Converter",
    "ConverterLookup",
    "ConverterRegistry",
    "BUILTIN_CONVERTERS",
    "UNKNOWN_ENUM",
]
