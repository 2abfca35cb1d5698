"""Console-based visualization using Rich."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from tuya_dp.core.frame import DatapointRecord, DecodeResult, WireType
from tuya_dp.normalizer.normalizer import NormalizedValue, ValueKind
from tuya_dp.pipeline.events import EventSeverity, PipelineEvent
from tuya_dp.pipeline.pipeline import InboundResult
from tuya_dp.profiles.registry import ProfileRegistry
from tuya_dp.profiles.schema import Fingerprint, Profile


def hex_bytes(data: bytes) -> str:
    return " ".join(f"{b:02X}" for b in data)


def _format_value(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return hex_bytes(bytes(value)) or "<empty>"
    if isinstance(value, float):
        return f"{value:g}"
    return escape(repr(value))


class ConsoleVisualizer:
    """Renders frames, conversions and profiles to the console using Rich."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def print_frame(self, data: bytes, label: str = "frame") -> None:
        """Print raw frame bytes."""
        self.console.print(
            f"[dim]{label}[/dim] "
            f"[dim]len={len(data)}[/dim] "
            f"[green]{hex_bytes(data)}[/green]"
        )

    def print_record(self, record: DatapointRecord) -> None:
        self.console.print(
            f"[cyan]DP{record.dp}[/cyan] "
            f"[dim]{record.type_name} len={record.length}[/dim] "
            f"[green]{_format_value(record.value)}[/green]"
        )

    def print_records_table(self, decoded: DecodeResult) -> None:
        """Print a table of decoded datapoint records."""
        table = Table(title="Datapoints")

        table.add_column("DP", style="cyan", justify="right")
        table.add_column("Type")
        table.add_column("Len", justify="right")
        table.add_column("Value", style="green")
        table.add_column("Raw", style="dim")

        for record in decoded.records:
            table.add_row(
                str(record.dp),
                record.type_name,
                str(record.length),
                _format_value(record.value),
                hex_bytes(record.raw),
            )

        self.console.print(table)
        if decoded.truncated:
            self.console.print(f"[yellow]Truncated after {decoded.consumed} bytes[/yellow]")

    def print_updates(self, result: InboundResult) -> None:
        """Print capability updates followed by any events."""
        for update in result.updates:
            self.console.print(
                f"[bold cyan]{update.capability}[/bold cyan] "
                f"[dim]<- DP{update.dp} {_format_value(update.wire_value)}[/dim] "
                f"[green]{_format_value(update.value)}[/green]"
            )
        for event in result.events:
            self.print_event(event)

    def print_event(self, event: PipelineEvent) -> None:
        """Print a pipeline event."""
        color = {
            EventSeverity.DEBUG: "dim",
            EventSeverity.INFO: "blue",
            EventSeverity.WARNING: "yellow",
        }.get(event.severity, "white")

        self.console.print(f"[{color}]{event.severity.value.upper()}[/{color}] {escape(event.message)}")

    def print_normalized(self, value: NormalizedValue) -> None:
        """Print a normalized value, one line per record when it carries any."""
        header = (
            f"[bold cyan]{value.kind.value}[/bold cyan] "
            f"[dim]shape={value.shape} context={value.context}[/dim]"
        )
        if value.kind in (ValueKind.RECORD, ValueKind.RECORD_LIST):
            self.console.print(header)
            for record in value.records():
                shape = f" [dim]({record.value_shape})[/dim]" if record.value_shape else ""
                self.console.print(
                    f"  [cyan]DP{record.dp}[/cyan] {_type_name(record.wire_type)} "
                    f"[green]{_format_value(record.value)}[/green]{shape}"
                )
        else:
            self.console.print(f"{header} [green]{_format_value(value.value)}[/green]")

        if value.truncated:
            self.console.print("[yellow]Truncated[/yellow]")

    def print_profiles_table(self, registry: ProfileRegistry) -> None:
        """Print every loaded profile with its fingerprint count."""
        counts: dict[str, int] = {}
        for name in registry.fingerprints.values():
            counts[name] = counts.get(name, 0) + 1

        table = Table(title="Profiles")

        table.add_column("Profile", style="cyan")
        table.add_column("Capabilities")
        table.add_column("DPs", justify="right")
        table.add_column("Fingerprints", justify="right")

        for name in registry.profile_names:
            profile = registry.profile(name)
            table.add_row(
                name,
                ", ".join(profile.capabilities),
                ", ".join(str(dp) for dp in profile.datapoints),
                str(counts.get(name, 0)),
            )

        self.console.print(table)

    def print_profile(self, profile: Profile, fingerprints: Iterable[Fingerprint] = ()) -> None:
        """Print one profile's datapoint mapping."""
        table = Table(title=profile.name)

        table.add_column("Capability", style="cyan")
        table.add_column("DP", justify="right")
        table.add_column("Type")
        table.add_column("Converter")
        table.add_column("Params", style="dim")

        for capability, config in profile.dp_mapping.items():
            table.add_row(
                capability,
                str(config.dp),
                config.wire_type.name,
                config.converter,
                _format_params(config.params),
            )

        self.console.print(table)

        matched = ", ".join(str(fp) for fp in fingerprints)
        panel = Panel(
            f"Description: {profile.description or '-'}\n"
            f"Fingerprints: {matched or 'none'}",
            title="Profile Summary",
        )
        self.console.print(panel)


def _type_name(wire_type: Any) -> str:
    return wire_type.name if isinstance(wire_type, WireType) else str(wire_type)


def _format_params(params: Mapping[str, Any]) -> str:
    return escape(", ".join(f"{key}={value}" for key, value in params.items()))
