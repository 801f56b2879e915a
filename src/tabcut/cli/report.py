"""Summary display of design script results."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from rich.console import Console
from rich.table import Table

from tabcut.core.path import Path
from tabcut.core.turtle import Turtle
from tabcut.faces.tabbed_face import DEFAULT_CLOSE_TOLERANCE, ClosedFace, normalize_angle_deg


@dataclass(frozen=True)
class OutputSummary:
    """What the check command reports for one script variable.

    Attributes:
        name: Variable name in the script
        kind: "face", "turtle" or "path"
        num_commands: Number of path commands
        end_pos: Final position, or None for an empty path
        end_angle_deg: Final heading, or None where a path carries no heading
        closed: Whether the outline ends where it started
        tabs: Names of the tab definitions of a face
    """

    name: str
    kind: str
    num_commands: int
    end_pos: tuple[float, float] | None
    end_angle_deg: float | None
    closed: bool
    tabs: tuple[str, ...] = ()


def _ends_at_start(path: Path, end: tuple[float, float] | None, tolerance: float) -> bool:
    start = path.start
    if start is None or end is None:
        return False
    return bool(np.hypot(end[0] - start[0], end[1] - start[1]) <= tolerance)


def summarize(
    name: str, value: ClosedFace | Turtle | Path, tolerance: float = DEFAULT_CLOSE_TOLERANCE
) -> OutputSummary:
    if isinstance(value, ClosedFace):
        return OutputSummary(
            name,
            "face",
            len(value.path),
            value.end_pos,
            value.end_angle_deg,
            bool(np.hypot(*value.end_pos) <= tolerance),
            tuple(value.registry.names()),
        )
    if isinstance(value, Turtle):
        path = value.as_path()
        return OutputSummary(
            name,
            "turtle",
            len(path),
            value.pos,
            value.angle_deg,
            _ends_at_start(path, value.pos, tolerance),
        )
    if isinstance(value, Path):
        vertices = value.vertices()
        end = tuple(float(v) for v in vertices[-1]) if len(vertices) else None
        return OutputSummary(
            name, "path", len(value), end, None, _ends_at_start(value, end, tolerance)
        )
    raise TypeError(f"Cannot summarize {type(value).__name__}")


def format_pose(summary: OutputSummary) -> str:
    if summary.end_pos is None:
        return "-"
    x, y = summary.end_pos
    pose = f"({x:.3f}, {y:.3f})"
    if summary.end_angle_deg is not None:
        pose += f" @ {normalize_angle_deg(summary.end_angle_deg):.1f}°"
    return pose


def print_summary(console: Console, summaries: list[OutputSummary]) -> None:
    """Print one row per collected output.

    Args:
        console: Rich console instance
        summaries: Summaries of the collected outputs
    """
    table = Table(show_header=True, box=None, padding=(0, 2))
    table.add_column("Name", style="cyan")
    table.add_column("Kind", style="white")
    table.add_column("Commands", justify="right")
    table.add_column("End pose", style="white")
    table.add_column("Closed")
    table.add_column("Tabs", style="dim")

    for s in summaries:
        closed = "[green]yes[/green]" if s.closed else "[yellow]no[/yellow]"
        table.add_row(
            s.name,
            s.kind,
            str(s.num_commands),
            format_pose(s),
            closed,
            ", ".join(s.tabs),
        )

    console.print(table)
    console.print()
