"""
Immutable list of path commands.

A Path is the single output contract of the geometry core: an ordered list of
move, line, arc and Bézier commands with absolute coordinates. Serializing it
to a drawable format is a separate, explicit step (see tabcut.io.export).

Coordinates follow the SVG convention: x grows to the right, y grows down.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Union

import numpy as np
from numpy.typing import NDArray

Point = tuple[float, float]


def as_point(point: Any) -> Point:
    """Normalize a 2-sequence to a tuple of floats."""
    x, y = point
    return (float(x), float(y))


@dataclass(frozen=True)
class MoveTo:
    """Move to the target without drawing."""

    target: Point
    kind: ClassVar[str] = "move"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "target": list(self.target)}


@dataclass(frozen=True)
class LineTo:
    """Straight line to the target."""

    target: Point
    kind: ClassVar[str] = "line"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "target": list(self.target)}


@dataclass(frozen=True)
class ArcTo:
    """Elliptical arc to the target.

    Attributes:
        radius_x: Radius along the (rotated) x axis, non-negative
        radius_y: Radius along the (rotated) y axis, non-negative
        x_axis_rotation_deg: Rotation of the ellipse axes
        large_arc: Whether the arc spans more than 180 degrees
        clockwise: Sweep direction (clockwise on screen, y axis down)
        target: End point
    """

    radius_x: float
    radius_y: float
    x_axis_rotation_deg: float
    large_arc: bool
    clockwise: bool
    target: Point
    kind: ClassVar[str] = "arc"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "radius_x": self.radius_x,
            "radius_y": self.radius_y,
            "x_axis_rotation_deg": self.x_axis_rotation_deg,
            "large_arc": self.large_arc,
            "clockwise": self.clockwise,
            "target": list(self.target),
        }


@dataclass(frozen=True)
class QuadraticTo:
    """Quadratic Bézier curve to the target."""

    control: Point
    target: Point
    kind: ClassVar[str] = "quadratic"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "control": list(self.control), "target": list(self.target)}


@dataclass(frozen=True)
class CubicTo:
    """Cubic Bézier curve to the target."""

    control1: Point
    control2: Point
    target: Point
    kind: ClassVar[str] = "cubic"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "control1": list(self.control1),
            "control2": list(self.control2),
            "target": list(self.target),
        }


@dataclass(frozen=True)
class ClosePath:
    """Close the current subpath."""

    kind: ClassVar[str] = "close"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind}


PathCommand = Union[MoveTo, LineTo, ArcTo, QuadraticTo, CubicTo, ClosePath]


@dataclass(frozen=True)
class Path:
    """Immutable ordered list of path commands.

    Every method appending a command returns a new Path holding a copy of the
    commands tuple, so building a path command by command is quadratic in its
    length. Outlines have at most a few thousand commands.
    """

    commands: tuple[PathCommand, ...] = ()

    @classmethod
    def create(cls, start: Point = (0.0, 0.0)) -> Path:
        return cls(()).move_to(start)

    def _append(self, *commands: PathCommand) -> Path:
        return Path((*self.commands, *commands))

    def move_to(self, target: Point) -> Path:
        return self._append(MoveTo(as_point(target)))

    def line_to(self, *targets: Point) -> Path:
        return self._append(*(LineTo(as_point(t)) for t in targets))

    def arc(
        self,
        target: Point,
        radius_x: float,
        radius_y: float | None = None,
        x_axis_rotation_deg: float = 0.0,
        large_arc: bool = False,
        clockwise: bool = True,
    ) -> Path:
        if radius_y is None:
            radius_y = radius_x
        return self._append(
            ArcTo(
                radius_x=abs(float(radius_x)),
                radius_y=abs(float(radius_y)),
                x_axis_rotation_deg=float(x_axis_rotation_deg),
                large_arc=bool(large_arc),
                clockwise=bool(clockwise),
                target=as_point(target),
            )
        )

    def quadratic(self, control: Point, target: Point) -> Path:
        return self._append(QuadraticTo(as_point(control), as_point(target)))

    def cubic(self, control1: Point, control2: Point, target: Point) -> Path:
        return self._append(CubicTo(as_point(control1), as_point(control2), as_point(target)))

    def close_path(self) -> Path:
        return self._append(ClosePath())

    @property
    def start(self) -> Point | None:
        for command in self.commands:
            if isinstance(command, MoveTo):
                return command.target
        return None

    def drawing_commands(self) -> tuple[PathCommand, ...]:
        """Commands that put ink on the material (everything but moves)."""
        return tuple(c for c in self.commands if not isinstance(c, MoveTo))

    def vertices(self) -> NDArray[np.floating]:
        """(N, 2) array of all command end points, in order."""
        points = [c.target for c in self.commands if not isinstance(c, ClosePath)]
        if not points:
            return np.zeros((0, 2), dtype=np.float64)
        return np.asarray(points, dtype=np.float64)

    def bounds(self) -> tuple[Point, Point] | None:
        """Bounding box of the end and control points, or None if empty.

        Arcs may bulge outside of this box; it is meant for quick summaries.
        """
        points = [self.vertices()]
        for command in self.commands:
            if isinstance(command, QuadraticTo):
                points.append(np.asarray([command.control]))
            elif isinstance(command, CubicTo):
                points.append(np.asarray([command.control1, command.control2]))
        stacked = np.vstack(points)
        if stacked.shape[0] == 0:
            return None
        lo = stacked.min(axis=0)
        hi = stacked.max(axis=0)
        return (float(lo[0]), float(lo[1])), (float(hi[0]), float(hi[1]))

    def to_records(self) -> list[dict[str, Any]]:
        return [command.to_dict() for command in self.commands]

    def __len__(self) -> int:
        return len(self.commands)

    def __str__(self) -> str:
        return f"Path[{len(self.commands)} commands]"
