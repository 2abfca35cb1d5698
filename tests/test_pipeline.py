"""Tests for the conversion pipeline."""

import logging

import pytest

from tuya_dp.converters.registry import ConverterRegistry
from tuya_dp.core.command import wrap_command
from tuya_dp.core.errors import ConverterError, FrameError, UnmappedCapability
from tuya_dp.core.frame import FrameCodec, WireType
from tuya_dp.pipeline.events import (
    ConverterFallbackEvent,
    EventSeverity,
    PipelineEvent,
    TruncatedFrameEvent,
    UnmappedDatapointEvent,
    UnrecognizedReportEvent,
)
from tuya_dp.pipeline.pipeline import ConversionPipeline, InboundResult
from tuya_dp.profiles.registry import ProfileRegistry
from tuya_dp.profiles.tables import default_registry


PROFILES = {
    "switch": {
        "capabilities": ["onoff"],
        "dpMapping": {"onoff": {"dp": 1, "wireType": "Bool", "converter": "onoff"}},
    },
    "sensor": {
        "capabilities": ["measure_temperature", "measure_humidity", "mode"],
        "dpMapping": {
            "measure_temperature": {"dp": 1, "wireType": "Value", "converter": "temperature", "divisor": 10},
            "measure_humidity": {"dp": 2, "wireType": "Value", "converter": "custom_humidity"},
            "mode": {
                "dp": 4,
                "wireType": "Enum",
                "converter": "enum_table",
                "params": {"values": {"0": "auto", "1": "manual"}},
            },
        },
    },
}

FINGERPRINTS = {
    "_TZ3000_switch": "switch",
    "_TZE200_sensor": "sensor",
}


class TestInboundFrames:
    """Tests for frame -> capability conversion."""

    @pytest.fixture
    def events(self) -> list[PipelineEvent]:
        return []

    @pytest.fixture
    def pipeline(self, events: list[PipelineEvent]) -> ConversionPipeline:
        return ConversionPipeline(
            ProfileRegistry.from_tables(FINGERPRINTS, PROFILES),
            ConverterRegistry(),
            on_event=events.append,
        )

    def test_onoff_end_to_end(self, pipeline: ConversionPipeline) -> None:
        """Test the canonical single bool datapoint."""
        device = pipeline.bind("_TZ3000_switch")

        assert device.on_frame(bytes.fromhex("0101000101")) == [("onoff", True)]

    def test_multiple_datapoints(self, pipeline: ConversionPipeline) -> None:
        """Test that every mapped record produces an update in order."""
        profile = pipeline.profiles.resolve("_TZE200_sensor")
        frame = FrameCodec().encode_many(
            [(1, WireType.VALUE, 215), (4, WireType.ENUM, 1)]
        )

        assert pipeline.on_frame(profile, frame) == [("measure_temperature", 21.5), ("mode", "manual")]

    def test_negative_temperature(self, pipeline: ConversionPipeline) -> None:
        """Test that a two's complement VALUE reads as a negative temperature."""
        profile = pipeline.profiles.resolve("_TZE200_sensor")

        assert pipeline.on_frame(profile, bytes.fromhex("01020004ffffffce")) == [("measure_temperature", -5.0)]

    def test_unmapped_datapoint_event(self, pipeline: ConversionPipeline, events: list[PipelineEvent]) -> None:
        """Test that an unmapped dp is reported, not raised."""
        device = pipeline.bind("_TZ3000_switch")
        result = device.process_frame(bytes.fromhex("0901000101"))

        assert result.updates == []
        assert len(events) == 1
        event = events[0]
        assert isinstance(event, UnmappedDatapointEvent)
        assert event.dp == 9
        assert event.profile == "switch"
        assert event.record.raw == b"\x01"
        assert event.severity is EventSeverity.DEBUG
        assert result.events == events

    def test_unmapped_datapoint_logged(self, pipeline: ConversionPipeline, caplog: pytest.LogCaptureFixture) -> None:
        """Test that unmapped dps are logged at debug."""
        with caplog.at_level(logging.DEBUG, logger="tuya_dp.pipeline.pipeline"):
            pipeline.bind("_TZ3000_switch").on_frame(bytes.fromhex("0901000101"))

        assert "Unmapped DP9" in caplog.text

    def test_unmanaged_device(self, pipeline: ConversionPipeline) -> None:
        """Test that an unmanaged device maps nothing."""
        device = pipeline.bind("_TZE200_unknown")
        result = device.process_frame(bytes.fromhex("0101000101"))

        assert not device.managed
        assert device.capabilities == ()
        assert result.updates == []
        assert isinstance(result.events[0], UnmappedDatapointEvent)
        assert "unmanaged device" in result.events[0].message

    def test_truncated_frame(self, pipeline: ConversionPipeline) -> None:
        """Test that a partial tail keeps the good records and flags truncation."""
        device = pipeline.bind("_TZ3000_switch")
        result = device.process_frame(bytes.fromhex("0101000101" "010100"))

        assert result.truncated
        assert result.pairs() == [("onoff", True)]
        event = result.events[-1]
        assert isinstance(event, TruncatedFrameEvent)
        assert (event.consumed, event.length) == (5, 8)

    def test_converter_fallback(self, pipeline: ConversionPipeline) -> None:
        """Test that an unknown converter passes the value through and is reported."""
        profile = pipeline.profiles.resolve("_TZE200_sensor")
        result = pipeline.process_frame(profile, bytes.fromhex("0202000400000037"))

        assert result.pairs() == [("measure_humidity", 55)]
        event = result.events[0]
        assert isinstance(event, ConverterFallbackEvent)
        assert event.converter == "custom_humidity"
        assert event.capability == "measure_humidity"
        assert "custom_humidity" in pipeline.converters.unresolved

    def test_latest_wins(self, pipeline: ConversionPipeline) -> None:
        """Test last-write-wins when a frame repeats a capability."""
        device = pipeline.bind("_TZ3000_switch")
        result = device.process_frame(bytes.fromhex("0101000101" "0101000100"))

        assert result.pairs() == [("onoff", True), ("onoff", False)]
        assert result.latest() == {"onoff": False}

    def test_command_envelope(self, pipeline: ConversionPipeline) -> None:
        """Test that inbound commands have their sequence number stripped."""
        device = pipeline.bind("_TZ3000_switch")

        assert device.on_command(bytes.fromhex("00120101000101")) == [("onoff", True)]

    def test_short_command(self, pipeline: ConversionPipeline) -> None:
        """Test that a command shorter than its sequence number is truncated."""
        result = pipeline.bind("_TZ3000_switch").process_command(b"\x00")

        assert result.truncated
        assert isinstance(result.events[0], TruncatedFrameEvent)


class TestInboundReports:
    """Tests for heterogeneous report objects."""

    @pytest.fixture
    def pipeline(self) -> ConversionPipeline:
        return ConversionPipeline(ProfileRegistry.from_tables(FINGERPRINTS, PROFILES), ConverterRegistry())

    def test_report_buffer(self, pipeline: ConversionPipeline) -> None:
        """Test that a raw buffer report is decoded as datapoints."""
        device = pipeline.bind("_TZ3000_switch")

        assert device.on_report(bytes.fromhex("0101000101")) == [("onoff", True)]

    def test_report_object(self, pipeline: ConversionPipeline) -> None:
        """Test that a datapoint object with a string dp id is mapped."""
        device = pipeline.bind("_TZE200_sensor")

        assert device.on_report({"dpId": "1", "dpValue": 235}) == [("measure_temperature", 23.5)]

    def test_report_datapoint_list(self, pipeline: ConversionPipeline) -> None:
        """Test a report carrying several datapoints."""
        device = pipeline.bind("_TZE200_sensor")
        result = device.process_report({"datapoints": [{"dp": 1, "value": 200}, {"dp": 4, "value": 0}]})

        assert result.latest() == {"measure_temperature": 20.0, "mode": "auto"}

    def test_report_oversized_text(self, pipeline: ConversionPipeline) -> None:
        """Test that a huge digit string is reported as unrecognized."""
        result = pipeline.bind("_TZE200_sensor").process_report("9" * 5000)

        assert result.updates == []
        assert isinstance(result.events[0], UnrecognizedReportEvent)
        assert result.events[0].shape == "string"

    def test_report_with_bad_dp(self, pipeline: ConversionPipeline) -> None:
        """Test that records with an unusable dp id become events."""
        result = pipeline.bind("_TZE200_sensor").process_report({"dp": "x", "value": 1})

        assert result.updates == []
        assert isinstance(result.events[0], UnmappedDatapointEvent)
        assert result.events[0].dp is None

    def test_report_without_datapoints(self, pipeline: ConversionPipeline) -> None:
        """Test that reports with no records are reported as unrecognized."""
        result = pipeline.bind("_TZE200_sensor").process_report({"foo": "bar"})

        assert result.updates == []
        event = result.events[0]
        assert isinstance(event, UnrecognizedReportEvent)
        assert event.shape == "object"
        assert event.to_dict()["event"] == "UnrecognizedReportEvent"


class TestOutbound:
    """Tests for capability -> frame conversion."""

    @pytest.fixture
    def pipeline(self) -> ConversionPipeline:
        return ConversionPipeline(ProfileRegistry.from_tables(FINGERPRINTS, PROFILES), ConverterRegistry())

    def test_write_bool(self, pipeline: ConversionPipeline) -> None:
        """Test the exact bytes of a bool write."""
        assert pipeline.bind("_TZ3000_switch").write("onoff", True) == bytes.fromhex("0101000101")

    def test_write_enum(self, pipeline: ConversionPipeline) -> None:
        """Test that enum labels are written as their code."""
        assert pipeline.bind("_TZE200_sensor").write("mode", "manual") == bytes.fromhex("0404000101")

    def test_write_negative_value(self, pipeline: ConversionPipeline) -> None:
        """Test that negative values are framed as two's complement."""
        assert pipeline.bind("_TZE200_sensor").write("measure_temperature", -5.0) == bytes.fromhex("01020004ffffffce")

    def test_write_unmapped_capability(self, pipeline: ConversionPipeline) -> None:
        """Test that writing a capability with no dp raises."""
        with pytest.raises(UnmappedCapability) as info:
            pipeline.bind("_TZ3000_switch").write("dim", 0.5)

        assert info.value.capability == "dim"
        assert info.value.profile == "switch"

    def test_write_unmanaged(self, pipeline: ConversionPipeline) -> None:
        """Test that writes to unmanaged devices raise."""
        with pytest.raises(UnmappedCapability, match="unmanaged device"):
            pipeline.bind("_TZE200_unknown").write("onoff", True)

    def test_write_invalid_value(self, pipeline: ConversionPipeline) -> None:
        """Test that validation failures raise ConverterError."""
        with pytest.raises(ConverterError):
            pipeline.bind("_TZ3000_switch").write("onoff", "maybe")
        with pytest.raises(ConverterError):
            pipeline.bind("_TZE200_sensor").write("mode", "turbo")

    def test_identity_fallback_surfaces_frame_errors(self, pipeline: ConversionPipeline) -> None:
        """Test that a value the codec cannot frame raises FrameError."""
        with pytest.raises(FrameError):
            pipeline.bind("_TZE200_sensor").write("measure_humidity", 55.5)

    def test_write_many(self, pipeline: ConversionPipeline) -> None:
        """Test that several values share one payload."""
        frame = pipeline.bind("_TZE200_sensor").write_many({"measure_temperature": 21.5, "mode": "auto"})

        assert frame == bytes.fromhex("01020004000000d7" "0404000100")

    def test_write_command(self, pipeline: ConversionPipeline) -> None:
        """Test that commands are wrapped with the sequence number."""
        frame = pipeline.bind("_TZ3000_switch").write_command("onoff", False, seq=0x0102)

        assert frame == wrap_command(0x0102, bytes.fromhex("0101000100"))

    def test_round_trip_through_profile(self, pipeline: ConversionPipeline) -> None:
        """Test write then read through the same datapoint config."""
        device = pipeline.bind("_TZE200_sensor")

        for capability, value in [("measure_temperature", -12.3), ("mode", "auto")]:
            assert device.on_frame(device.write(capability, value)) == [(capability, value)]


class TestBuiltinProfiles:
    """Tests driving the built-in tables through the pipeline."""

    @pytest.fixture
    def pipeline(self) -> ConversionPipeline:
        return ConversionPipeline(default_registry(), ConverterRegistry())

    def test_smart_plug_metering(self, pipeline: ConversionPipeline) -> None:
        """Test the metering datapoints of the built-in plug."""
        device = pipeline.bind("_TZ3000_g5xawfcq", "TS011F")
        frame = FrameCodec().encode_many(
            [(19, WireType.VALUE, 1234), (20, WireType.VALUE, 2301), (1, WireType.BOOL, True)]
        )

        assert device.process_frame(frame).latest() == {
            "measure_power": 123.4,
            "measure_voltage": 230.1,
            "onoff": True,
        }

    def test_plug_needs_model(self, pipeline: ConversionPipeline) -> None:
        """Test that model-specific fingerprints need the model id."""
        assert not pipeline.bind("_TZ3000_g5xawfcq").managed

    def test_curtain(self, pipeline: ConversionPipeline) -> None:
        """Test the curtain motor state and position."""
        device = pipeline.bind("_TZE200_fctwhugx")

        assert device.write("windowcoverings_set", 0.4) == bytes.fromhex("0202000400000028")
        assert device.on_frame(bytes.fromhex("0104000102")) == [("windowcoverings_state", "down")]

    def test_radiator_valve(self, pipeline: ConversionPipeline) -> None:
        """Test that TRV setpoints clamp to the configured range."""
        device = pipeline.bind("_TZE200_hvaxb2tc")

        assert device.write("target_temperature", 40) == device.write("target_temperature", 35)
        assert device.on_frame(device.write("thermostat_mode", "heat")) == [("thermostat_mode", "heat")]


class TestInboundResult:
    """Tests for InboundResult helpers."""

    def test_empty(self) -> None:
        """Test an empty result."""
        result = InboundResult()

        assert result.pairs() == []
        assert result.latest() == {}
        assert not result.truncated
