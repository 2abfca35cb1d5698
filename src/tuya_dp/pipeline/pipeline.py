"""Inbound and outbound conversion between frames and capability values."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from tuya_dp.converters.registry import ConverterRegistry
from tuya_dp.core.command import unwrap_command, wrap_command
from tuya_dp.core.errors import UnmappedCapability
from tuya_dp.core.frame import DatapointRecord, FrameCodec, WireType
from tuya_dp.normalizer.normalizer import NormalizedRecord, ValueNormalizer
from tuya_dp.pipeline.events import (
    ConverterFallbackEvent,
    PipelineEvent,
    TruncatedFrameEvent,
    UnmappedDatapointEvent,
    UnrecognizedReportEvent,
)
from tuya_dp.profiles.schema import DPConfig, Profile


LOGGER = logging.getLogger(__name__)

FrameData = Union[bytes, bytearray, memoryview]
EventCallback = Callable[[PipelineEvent], None]


@dataclass(frozen=True)
class CapabilityUpdate:
    """One capability value produced from an inbound datapoint."""

    capability: str
    value: Any
    dp: int
    wire_value: Any = None

    def as_tuple(self) -> tuple[str, Any]:
        return (self.capability, self.value)


@dataclass
class InboundResult:
    """Everything produced by processing one inbound frame or report."""

    updates: list[CapabilityUpdate] = field(default_factory=list)
    events: list[PipelineEvent] = field(default_factory=list)
    truncated: bool = False

    def pairs(self) -> list[tuple[str, Any]]:
        return [update.as_tuple() for update in self.updates]

    def latest(self) -> dict[str, Any]:
        """Capability -> value, the last update for each capability winning."""
        return {update.capability: update.value for update in self.updates}


def _as_dp(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        dp = int(value)
    except (TypeError, ValueError):
        return None
    return dp if 0 <= dp <= 0xFF else None


class ConversionPipeline:
    """Converts datapoint frames to capability values and back.

    Args:
        profiles: Resolves device fingerprints to profiles. A
            ``ProfileRegistry`` or anything with the same ``resolve``.
        converters: Converter table used for every datapoint.
        codec: Frame codec; a default ``FrameCodec`` if omitted.
        normalizer: Report normalizer; a default one sharing ``codec``.
        on_event: Called with every event as it is produced.
    """

    def __init__(
        self,
        profiles: Any,
        converters: ConverterRegistry,
        codec: Optional[FrameCodec] = None,
        normalizer: Optional[ValueNormalizer] = None,
        on_event: Optional[EventCallback] = None,
    ) -> None:
        self.profiles = profiles
        self.converters = converters
        self.codec = codec or FrameCodec()
        self.normalizer = normalizer or ValueNormalizer(self.codec)
        self.on_event = on_event

    def bind(self, manufacturer_id: Optional[str], model_id: Optional[str] = None) -> "DeviceBinding":
        """Resolve a device once and return a handle with its profile bound."""
        profile = self.profiles.resolve(manufacturer_id, model_id)
        if profile is None:
            LOGGER.debug("No profile for %s/%s, device is unmanaged", manufacturer_id, model_id)
        return DeviceBinding(self, profile, manufacturer_id, model_id)

    # --- inbound ---

    def process_frame(self, profile: Optional[Profile], data: FrameData) -> InboundResult:
        decoded = self.codec.decode(data)
        result = InboundResult(truncated=decoded.truncated)

        for record in decoded.records:
            self._apply(profile, record.dp, record.value, record, result)

        if decoded.truncated:
            self._emit(
                result,
                TruncatedFrameEvent(
                    profile=_name(profile),
                    consumed=decoded.consumed,
                    length=len(data),
                ),
            )
        return result

    def on_frame(self, profile: Optional[Profile], data: FrameData) -> list[tuple[str, Any]]:
        return self.process_frame(profile, data).pairs()

    def process_command(self, profile: Optional[Profile], data: FrameData) -> InboundResult:
        """Strip the ``[seq:2]`` command envelope, then process the payload."""
        envelope = unwrap_command(data)
        if envelope is None:
            result = InboundResult(truncated=True)
            self._emit(result, TruncatedFrameEvent(profile=_name(profile), length=len(data)))
            return result
        return self.process_frame(profile, envelope.payload)

    def on_command(self, profile: Optional[Profile], data: FrameData) -> list[tuple[str, Any]]:
        return self.process_command(profile, data).pairs()

    def process_report(self, profile: Optional[Profile], raw: Any) -> InboundResult:
        """Normalize a heterogeneous report and map the records it carries."""
        normalized = self.normalizer.normalize(raw, context="tuya")
        result = InboundResult(truncated=normalized.truncated)
        records = normalized.records()

        if not records:
            self._emit(result, UnrecognizedReportEvent(profile=_name(profile), shape=normalized.shape))
            return result

        for record in records:
            dp = _as_dp(record.dp)
            if dp is None:
                self._emit(result, UnmappedDatapointEvent(profile=_name(profile), record=record))
                continue
            self._apply(profile, dp, record.value, record, result)

        if normalized.truncated:
            self._emit(result, TruncatedFrameEvent(profile=_name(profile)))
        return result

    def on_report(self, profile: Optional[Profile], raw: Any) -> list[tuple[str, Any]]:
        return self.process_report(profile, raw).pairs()

    def _apply(
        self,
        profile: Optional[Profile],
        dp: int,
        value: Any,
        record: Union[DatapointRecord, NormalizedRecord],
        result: InboundResult,
    ) -> None:
        capability = profile.capability_for_dp(dp) if profile is not None else None
        if capability is None:
            LOGGER.debug("Unmapped DP%d (%s): %r", dp, _name(profile) or "unmanaged", record)
            self._emit(result, UnmappedDatapointEvent(dp=dp, profile=_name(profile), record=record))
            return

        config = profile.dp_config(capability)
        converter = self._converter_for(profile, capability, config, result)
        domain = converter.to_domain(value, converter.params(config.params))
        result.updates.append(CapabilityUpdate(capability, domain, dp, value))

    def _converter_for(
        self,
        profile: Profile,
        capability: str,
        config: DPConfig,
        result: Optional[InboundResult] = None,
    ):
        lookup = self.converters.lookup(config.converter)
        if lookup.fallback:
            self._emit(
                result,
                ConverterFallbackEvent(
                    dp=config.dp,
                    profile=profile.name,
                    converter=lookup.requested,
                    capability=capability,
                ),
            )
        return lookup.converter

    def _emit(self, result: Optional[InboundResult], event: PipelineEvent) -> None:
        if result is not None:
            result.events.append(event)
        if self.on_event is not None:
            self.on_event(event)

    # --- outbound ---

    def encode_value(self, profile: Optional[Profile], capability: str, value: Any) -> tuple[DPConfig, Any]:
        """Validate and convert a domain value; returns its config and wire value."""
        config = profile.dp_config(capability) if profile is not None else None
        if config is None:
            raise UnmappedCapability(capability, _name(profile))

        self._converter_for(profile, capability, config)
        wire_value = self.converters.to_wire(config.converter, value, config.params)
        return config, wire_value

    def write(self, profile: Optional[Profile], capability: str, value: Any) -> bytes:
        """Encode one capability value as a single datapoint entry.

        Raises:
            UnmappedCapability: The profile has no datapoint for the capability.
            ConverterError: The value fails the converter's validation.
            FrameError: The wire value cannot be framed.
        """
        config, wire_value = self.encode_value(profile, capability, value)
        return self.codec.encode(config.dp, config.wire_type, wire_value)

    def write_many(
        self,
        profile: Optional[Profile],
        values: Union[Mapping[str, Any], Iterable[tuple[str, Any]]],
    ) -> bytes:
        """Encode several capability values into one datapoint payload."""
        items = values.items() if isinstance(values, Mapping) else values
        entries: list[tuple[int, WireType, Any]] = []
        for capability, value in items:
            config, wire_value = self.encode_value(profile, capability, value)
            entries.append((config.dp, config.wire_type, wire_value))
        return self.codec.encode_many(entries)

    def write_command(self, profile: Optional[Profile], capability: str, value: Any, seq: int) -> bytes:
        return wrap_command(seq, self.write(profile, capability, value))


def _name(profile: Optional[Profile]) -> Optional[str]:
    return profile.name if profile is not None else None


@dataclass(frozen=True)
class DeviceBinding:
    """A device's resolved profile bound to a pipeline.

    ``profile`` is ``None`` for unmanaged devices: inbound datapoints then
    all surface as unmapped events and every write raises
    ``UnmappedCapability``.
    """

    pipeline: ConversionPipeline
    profile: Optional[Profile]
    manufacturer_id: Optional[str] = None
    model_id: Optional[str] = None

    @property
    def managed(self) -> bool:
        return self.profile is not None

    @property
    def capabilities(self) -> tuple[str, ...]:
        return self.profile.capabilities if self.profile is not None else ()

    def on_frame(self, data: FrameData) -> list[tuple[str, Any]]:
        return self.pipeline.on_frame(self.profile, data)

    def process_frame(self, data: FrameData) -> InboundResult:
        return self.pipeline.process_frame(self.profile, data)

    def on_command(self, data: FrameData) -> list[tuple[str, Any]]:
        return self.pipeline.on_command(self.profile, data)

    def process_command(self, data: FrameData) -> InboundResult:
        return self.pipeline.process_command(self.profile, data)

    def on_report(self, raw: Any) -> list[tuple[str, Any]]:
        return self.pipeline.on_report(self.profile, raw)

    def process_report(self, raw: Any) -> InboundResult:
        return self.pipeline.process_report(self.profile, raw)

    def write(self, capability: str, value: Any) -> bytes:
        return self.pipeline.write(self.profile, capability, value)

    def write_many(self, values: Union[Mapping[str, Any], Iterable[tuple[str, Any]]]) -> bytes:
        return self.pipeline.write_many(self.profile, values)

    def write_command(self, capability: str, value: Any, seq: int) -> bytes:
        return self.pipeline.write_command(self.profile, capability, value, seq)
