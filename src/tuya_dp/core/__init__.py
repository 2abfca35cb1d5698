"""Wire-level components: datapoint frame codec, command envelope, errors."""

from tuya_dp.core.frame import (
    CodecConfig,
    DatapointRecord,
    DecodeResult,
    FrameCodec,
    WireType,
    active_bits,
)
from tuya_dp.core.command import CommandEnvelope, TuyaCommand, unwrap_command, wrap_command
from tuya_dp.core.errors import (
    ConverterError,
    FrameError,
    ProfileLoadError,
    TuyaDPError,
    UnmappedCapability,
)

__all__ = [
    "CodecConfig",
    "DatapointRecord",
    "DecodeResult",
    "FrameCodec",
    "WireType",
    "active_bits",
    "CommandEnvelope",
    "TuyaCommand",
    "unwrap_command",
    "wrap_command",
    "ConverterError",
    "FrameError",
    "ProfileLoadError",
    "TuyaDPError",
    "UnmappedCapability",
]
