"""Frame and report conversion pipeline."""

from tuya_dp.pipeline.events import (
    ConverterFallbackEvent,
    EventSeverity,
    PipelineEvent,
    TruncatedFrameEvent,
    UnmappedDatapointEvent,
    UnrecognizedReportEvent,
)
from tuya_dp.pipeline.pipeline import (
    CapabilityUpdate,
    ConversionPipeline,
    DeviceBinding,
    InboundResult,
)

__all__ = [
    "CapabilityUpdate",
    "ConversionPipeline",
    "DeviceBinding",
    "InboundResult",
    "EventSeverity",
    "PipelineEvent",
    "UnmappedDatapointEvent",
    "TruncatedFrameEvent",
    "ConverterFallbackEvent",
    "UnrecognizedReportEvent",
]
