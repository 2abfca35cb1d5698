"""Local visualization components."""

from tuya_dp.visualization.console import ConsoleVisualizer

__all__ = ["ConsoleVisualizer"]
