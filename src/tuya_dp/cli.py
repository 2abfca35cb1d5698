"""Command-line interface for tuya-dp."""

import json
import logging
from typing import Any, Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from tuya_dp import __version__
from tuya_dp.converters.registry import ConverterRegistry
from tuya_dp.core.command import unwrap_command, wrap_command
from tuya_dp.core.errors import TuyaDPError
from tuya_dp.core.frame import FrameCodec, WireType
from tuya_dp.normalizer.normalizer import ValueNormalizer
from tuya_dp.pipeline.pipeline import ConversionPipeline
from tuya_dp.profiles.schema import DPConfig, Profile
from tuya_dp.profiles.tables import default_registry
from tuya_dp.visualization.console import ConsoleVisualizer, hex_bytes


console = Console()

TRUE_WORDS = ("true", "on", "yes")
FALSE_WORDS = ("false", "off", "no")


def configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("tuya_dp")
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(console=console, show_path=False))
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def parse_hex(text: str) -> bytes:
    """Parse ``"01 01 00 01 01"``, ``"0101000101"`` or ``"0x01..."``."""
    cleaned = text.strip().lower()
    if cleaned.startswith("0x"):
        cleaned = cleaned[2:]
    cleaned = "".join(cleaned.replace(":", " ").replace("-", " ").split())
    try:
        return bytes.fromhex(cleaned)
    except ValueError as exc:
        raise click.BadParameter(f"not a hex byte string: {text!r}") from exc


def parse_scalar(text: str) -> Any:
    """Best-effort typed value from a command-line word."""
    lowered = text.strip().lower()
    if lowered in TRUE_WORDS:
        return True
    if lowered in FALSE_WORDS:
        return False
    try:
        return int(text, 0)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return text


def parse_wire_value(wire_type: WireType, text: str) -> Any:
    if wire_type is WireType.RAW:
        return parse_hex(text)
    if wire_type is WireType.STRING:
        return text
    value = parse_scalar(text)
    if wire_type is WireType.BOOL:
        return bool(value)
    if isinstance(value, str):
        raise click.BadParameter(f"{wire_type.name} needs a number, got {text!r}")
    return value


def _profile_or_fail(name: Optional[str]) -> Optional[Profile]:
    if name is None:
        return None
    profile = default_registry().profile(name)
    if profile is None:
        raise click.BadParameter(f"unknown profile '{name}'", param_hint="--profile")
    return profile


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def main(verbose: bool) -> None:
    """tuya-dp - Tuya Zigbee datapoint codec and converters."""
    configure_logging(verbose)


@main.command()
@click.argument("data")
@click.option("--profile", "-p", default=None, help="Map datapoints through a built-in profile")
@click.option("--command", "-c", "with_seq", is_flag=True, help="Input starts with a 2-byte sequence number")
def decode(data: str, profile: Optional[str], with_seq: bool) -> None:
    """Decode a hex datapoint frame."""
    payload = parse_hex(data)
    visualizer = ConsoleVisualizer(console)

    if with_seq:
        envelope = unwrap_command(payload)
        if envelope is None:
            raise click.ClickException("command frame shorter than its sequence number")
        console.print(f"[dim]seq={envelope.seq}[/dim]")
        payload = envelope.payload

    visualizer.print_records_table(FrameCodec().decode(payload))

    bound = _profile_or_fail(profile)
    if bound is not None:
        pipeline = ConversionPipeline(default_registry(), ConverterRegistry())
        visualizer.print_updates(pipeline.process_frame(bound, payload))


@main.command()
@click.argument("dp", type=click.IntRange(0, 255))
@click.argument("wire_type", type=click.Choice([t.name for t in WireType], case_sensitive=False))
@click.argument("value")
@click.option("--seq", "-s", type=click.IntRange(0, 0xFFFF), default=None, help="Wrap in a command envelope")
def encode(dp: int, wire_type: str, value: str, seq: Optional[int]) -> None:
    """Encode one datapoint entry."""
    wtype = WireType.parse(wire_type)
    try:
        frame = FrameCodec().encode(dp, wtype, parse_wire_value(wtype, value))
        if seq is not None:
            frame = wrap_command(seq, frame)
    except TuyaDPError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print(hex_bytes(frame))


@main.command()
@click.argument("profile")
@click.argument("capability")
@click.argument("value")
@click.option("--seq", "-s", type=click.IntRange(0, 0xFFFF), default=None, help="Wrap in a command envelope")
def write(profile: str, capability: str, value: str, seq: Optional[int]) -> None:
    """Encode a capability value through a built-in profile."""
    bound = _profile_or_fail(profile)
    pipeline = ConversionPipeline(default_registry(), ConverterRegistry())
    try:
        if seq is None:
            frame = pipeline.write(bound, capability, parse_scalar(value))
        else:
            frame = pipeline.write_command(bound, capability, parse_scalar(value), seq)
    except TuyaDPError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print(hex_bytes(frame))


@main.command()
@click.argument("value")
@click.option("--context", "-c", default="unknown", help="Context hint, e.g. temperature or tuya")
@click.option("--hex", "as_hex", is_flag=True, help="Treat VALUE as hex bytes")
def normalize(value: str, context: str, as_hex: bool) -> None:
    """Normalize a value given as JSON, text or hex bytes."""
    raw: Any
    if as_hex:
        raw = parse_hex(value)
    else:
        try:
            raw = json.loads(value)
        except ValueError:
            raw = value

    result = ValueNormalizer().normalize(raw, context=context)
    ConsoleVisualizer(console).print_normalized(result)


@main.command()
@click.argument("name", required=False)
def profiles(name: Optional[str]) -> None:
    """List built-in profiles, or show one in detail."""
    registry = default_registry()
    visualizer = ConsoleVisualizer(console)

    if name is None:
        visualizer.print_profiles_table(registry)
        return

    profile = registry.profile(name)
    if profile is None:
        raise click.ClickException(f"unknown profile '{name}'")
    fingerprints = [fp for fp, target in registry.fingerprints.items() if target == name]
    visualizer.print_profile(profile, fingerprints)


def sample_value(config: DPConfig) -> Any:
    """A plausible domain value for a datapoint, used to drive simulations."""
    params = config.params
    converter = config.converter
    if config.wire_type is WireType.BOOL or converter in ("boolean", "onoff"):
        return True
    if converter == "enum_table":
        values = params.get("values") or {}
        return next(iter(values.values()), 0)
    if converter == "cover_position":
        return 0.5
    if converter == "temperature":
        return 21.5
    if converter in ("humidity", "percent_clamp"):
        return 55
    if converter == "battery":
        return 80
    if converter == "illuminance":
        return 320
    if "max" in params:
        return params["max"]
    return 1


@main.command()
@click.argument("profile")
@click.option("--seq", "-s", type=click.IntRange(0, 0xFFFF), default=1, help="First sequence number")
def simulate(profile: str, seq: int) -> None:
    """Round-trip sample values for every capability of a profile."""
    bound = _profile_or_fail(profile)
    events = []
    pipeline = ConversionPipeline(default_registry(), ConverterRegistry(), on_event=events.append)
    visualizer = ConsoleVisualizer(console)

    console.print(f"[bold]Simulating[/bold] {bound.name} ({len(bound.dp_mapping)} datapoints)")

    for offset, (capability, config) in enumerate(bound.dp_mapping.items()):
        value = sample_value(config)
        try:
            frame = pipeline.write_command(bound, capability, value, (seq + offset) & 0xFFFF)
        except TuyaDPError as exc:
            console.print(f"[red]{capability}: {exc}[/red]")
            continue
        visualizer.print_frame(frame, label=f"{capability}={value!r}")
        visualizer.print_updates(pipeline.process_command(bound, frame))

    console.print(f"\n[bold]Simulation Complete[/bold] ({len(events)} events)")


if __name__ == "__main__":
    main()
