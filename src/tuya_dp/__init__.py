"""tuya-dp - Tuya Zigbee datapoint protocol codec, normalizer and converters."""

__version__ = "0.1.0"

from tuya_dp.converters import Converter, ConverterRegistry
from tuya_dp.core import (
    ConverterError,
    DatapointRecord,
    DecodeResult,
    FrameCodec,
    FrameError,
    ProfileLoadError,
    TuyaDPError,
    UnmappedCapability,
    WireType,
)
from tuya_dp.normalizer import NormalizedValue, ValueKind, ValueNormalizer
from tuya_dp.pipeline import ConversionPipeline, DeviceBinding, InboundResult
from tuya_dp.profiles import DPConfig, Profile, ProfileRegistry, default_registry

__all__ = [
    "__version__",
    "Converter",
    "ConverterRegistry",
    "ConverterError",
    "DatapointRecord",
    "DecodeResult",
    "FrameCodec",
    "FrameError",
    "ProfileLoadError",
    "TuyaDPError",
    "UnmappedCapability",
    "WireType",
    "NormalizedValue",
    "ValueKind",
    "ValueNormalizer",
    "ConversionPipeline",
    "DeviceBinding",
    "InboundResult",
    "DPConfig",
    "Profile",
    "ProfileRegistry",
    "default_registry",
]
