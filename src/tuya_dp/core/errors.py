"""Domain-specific errors for tuya_dp."""


class TuyaDPError(Exception):
    """Base error for tuya_dp."""


class FrameError(TuyaDPError, ValueError):
    """Raised when a datapoint cannot be encoded into a wire frame."""


class ConverterError(TuyaDPError, ValueError):
    """Raised on the write path when a domain value cannot be converted."""


class ProfileLoadError(TuyaDPError):
    """Raised when fingerprint/profile tables fail validation at load time."""


class UnmappedCapability(TuyaDPError, LookupError):
    """Raised when writing a capability that has no datapoint configuration."""

    def __init__(self, capability: str, profile: str | None = None) -> None:
        self.capability = capability
        self.profile = profile
        where = f"profile '{profile}'" if profile else "unmanaged device"
        super().__init__(f"No datapoint mapping for capability '{capability}' ({where})")
