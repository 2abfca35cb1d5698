"""Pipeline event definitions."""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class EventSeverity(Enum):
    """Severity level for pipeline events."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"


@dataclass
class PipelineEvent:
    """Base class for pipeline events."""

    severity: EventSeverity
    message: str = ""
    dp: Optional[int] = None
    profile: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    def __repr__(self) -> str:
        dp_str = f"[DP{self.dp}]" if self.dp is not None else ""
        return f"{self.severity.value.upper()}{dp_str}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "event": type(self).__name__,
            "severity": self.severity.value,
            "message": self.message,
            "dp": self.dp,
            "profile": self.profile,
            "timestamp": self.timestamp,
        }


@dataclass(repr=False)
class UnmappedDatapointEvent(PipelineEvent):
    """A datapoint arrived that the device's profile does not map."""

    severity: EventSeverity = EventSeverity.DEBUG
    record: Any = None

    def __post_init__(self) -> None:
        if not self.message:
            owner = f"profile '{self.profile}'" if self.profile else "unmanaged device"
            self.message = f"Unmapped DP{self.dp} for {owner}"


@dataclass(repr=False)
class TruncatedFrameEvent(PipelineEvent):
    """A frame ended partway through a datapoint entry."""

    severity: EventSeverity = EventSeverity.WARNING
    consumed: int = 0
    length: int = 0

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Truncated frame: decoded {self.consumed} of {self.length} bytes"


@dataclass(repr=False)
class ConverterFallbackEvent(PipelineEvent):
    """A datapoint's converter name was not registered; identity was used."""

    severity: EventSeverity = EventSeverity.DEBUG
    converter: str = ""
    capability: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Converter '{self.converter}' for {self.capability} not registered, using identity"


@dataclass(repr=False)
class UnrecognizedReportEvent(PipelineEvent):
    """A report normalized to something that carries no datapoint records."""

    severity: EventSeverity = EventSeverity.INFO
    shape: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Report carried no datapoints (shape '{self.shape}')"
