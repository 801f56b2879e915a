"""
Immutable turtle graphics.

A Turtle is a pen on the plane with a position, a heading and a pen state,
plus any number of named stacks of saved states. Every drawing method returns
a new Turtle with the new commands appended to its Path; no method mutates the
Turtle it is called on.

Conventions:
- Coordinates follow SVG: x grows to the right, y grows down.
- Headings are in degrees, measured clockwise from "up": 0 moves towards
  negative y, 90 towards positive x.

Example:
    >>> t = Turtle.create().forward(10).right().arc_right(90, 5).forward(10)
    >>> t.pos, t.angle_deg
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from numbers import Real
from types import MappingProxyType
from typing import Any, Literal, Union

import numpy as np

from tabcut.core.path import Path, Point, as_point
from tabcut.errors import EmptyStack

TurtleFunc = Callable[..., "Turtle"]
StackKey = Union[str, int, None]
ControlPointSpeed = Union[float, Literal["auto"]]

DEFAULT_STACK_KEY: StackKey = None

# Heading lines closer to parallel than this have no usable intersection.
AUTO_POINT_DETERMINANT_EPS = 1e-9

# Private stack used to draw full circles.
_FULL_ARC_STACK_KEY = "__full_arc__"


def sin_cos(angle_deg: float) -> tuple[float, float]:
    angle_rad = math.radians(angle_deg)
    return math.sin(angle_rad), math.cos(angle_rad)


@dataclass(frozen=True)
class TurtleState:
    """Position, heading and pen state of a Turtle."""

    pos: Point = (0.0, 0.0)
    angle_deg: float = 0.0
    pen_down: bool = True


@dataclass(frozen=True)
class StateSnapshot:
    """Partial state saved on a stack. Unset fields are not restored."""

    pos: Point | None = None
    angle_deg: float | None = None
    pen_down: bool | None = None


@dataclass(frozen=True)
class CurveArgs:
    """Control point speeds of a cubic Bézier curve.

    A numeric speed places the control point that far forward from the start
    (or back from the target). ``"auto"`` places it at the intersection of the
    start and target heading lines.

    Attributes:
        speed: Default for both start_speed and target_speed
        start_speed: Speed at the start point, defaults to speed
        target_speed: Speed at the target point, defaults to speed
    """

    speed: ControlPointSpeed = "auto"
    start_speed: ControlPointSpeed | None = None
    target_speed: ControlPointSpeed | None = None

    def __post_init__(self) -> None:
        for name in ("speed", "start_speed", "target_speed"):
            value = getattr(self, name)
            if value is None or value == "auto" or isinstance(value, Real):
                continue
            raise ValueError(f"{name} must be a number or 'auto', got {value!r}")

    @property
    def resolved_start_speed(self) -> ControlPointSpeed:
        return self.speed if self.start_speed is None else self.start_speed

    @property
    def resolved_target_speed(self) -> ControlPointSpeed:
        return self.speed if self.target_speed is None else self.target_speed


PartialCurveArgs = Union[Literal["quad"], CurveArgs]


@dataclass(frozen=True)
class Turtle:
    """Immutable turtle drawing a single Path.

    Create with ``Turtle.create()``; all methods return new instances.
    """

    path: Path = field(default_factory=Path.create)
    state: TurtleState = field(default_factory=TurtleState)
    stacks: Mapping[StackKey, tuple[StateSnapshot, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def create(cls, start: Point = (0.0, 0.0)) -> Turtle:
        start = as_point(start)
        return cls(Path.create(start), TurtleState(pos=start), MappingProxyType({}))

    @property
    def pos(self) -> Point:
        return self.state.pos

    @property
    def angle_deg(self) -> float:
        """The heading in degrees, measured clockwise from the up direction."""
        return self.state.angle_deg

    @property
    def is_pen_down(self) -> bool:
        return self.state.pen_down

    @property
    def commands(self):
        return self.path.commands

    def as_path(self) -> Path:
        return self.path

    def close_path(self) -> Path:
        """Closes the Turtle's path and returns the Path."""
        return self.path.close_path()

    # === Internal state transitions ===

    def _rel_pos(self, forward: float, strafe_right: float) -> Point:
        sin, cos = sin_cos(self.angle_deg)
        return (forward * sin + strafe_right * cos, -forward * cos + strafe_right * sin)

    def _offset(self, rel: Point) -> Point:
        return (self.pos[0] + rel[0], self.pos[1] + rel[1])

    def _with(
        self,
        path: Path | None = None,
        angle_deg: float | None = None,
        pen_down: bool | None = None,
        stacks: Mapping[StackKey, tuple[StateSnapshot, ...]] | None = None,
    ) -> Turtle:
        state = self.state
        if angle_deg is not None or pen_down is not None:
            state = replace(
                state,
                angle_deg=state.angle_deg if angle_deg is None else float(angle_deg),
                pen_down=state.pen_down if pen_down is None else bool(pen_down),
            )
        return Turtle(
            self.path if path is None else path,
            state,
            self.stacks if stacks is None else MappingProxyType(dict(stacks)),
        )

    def _jump(self, pos: Point | None = None, angle_deg: float | None = None) -> Turtle:
        state = self.state
        path = self.path
        if pos is not None:
            pos = as_point(pos)
            path = path.move_to(pos)
            state = replace(state, pos=pos)
        if angle_deg is not None:
            state = replace(state, angle_deg=float(angle_deg))
        return Turtle(path, state, self.stacks)

    def _draw(self, path_if_down: Path, pos: Point, angle_deg: float | None = None) -> Turtle:
        if not self.is_pen_down:
            return self._jump(pos, angle_deg)
        state = replace(
            self.state,
            pos=as_point(pos),
            angle_deg=self.angle_deg if angle_deg is None else float(angle_deg),
        )
        return Turtle(path_if_down, state, self.stacks)

    def _restore(self, snapshot: StateSnapshot | TurtleState) -> Turtle:
        result = self
        if snapshot.pos is not None:
            result = result._jump(snapshot.pos)
        return result._with(angle_deg=snapshot.angle_deg, pen_down=snapshot.pen_down)

    # === Function application and control flow ===

    def then(self, func: TurtleFunc, *args: Any, **kwargs: Any) -> Turtle:
        """Applies a turtle function: ``func(self, *args, **kwargs)``."""
        result = func(self, *args, **kwargs)
        if not isinstance(result, Turtle):
            raise TypeError(
                f"Turtle function {func!r} must return a Turtle, got {type(result).__name__}"
            )
        return result

    def branch(self, func: TurtleFunc, *args: Any, **kwargs: Any) -> Turtle:
        """Runs the function and then restores the state from before it ran.

        The path drawn by the function is kept. Similar to
        ``.push().then(func, ...).pop()``.
        """
        return self.then(func, *args, **kwargs)._restore(self.state)

    def repeat(self, count_or_elements: float | Iterable[Any], func: TurtleFunc, *args: Any) -> Turtle:
        """Executes the function in a loop, passing the result of each call to the next.

        With a count, the function is called as ``func(t, *args, index, count)``.
        With an iterable, as ``func(t, *args, element, index, elements)``.
        """
        t = self
        if isinstance(count_or_elements, Real):
            count = count_or_elements
            index = 0
            while index < count:
                t = t.then(func, *args, index, count)
                index += 1
        else:
            elements = list(count_or_elements)
            for index, element in enumerate(elements):
                t = t.then(func, *args, element, index, elements)
        return t

    def branches(self, count_or_elements: float | Iterable[Any], func: TurtleFunc, *args: Any) -> Turtle:
        """Executes the function in a loop, each time in a separate branch."""
        return self.repeat(
            count_or_elements, lambda t, *full_args: t.branch(func, *full_args), *args
        )

    # === Stacks ===

    def _push_snapshot(self, key: StackKey, snapshot: StateSnapshot) -> Turtle:
        stacks = dict(self.stacks)
        stacks[key] = (*stacks.get(key, ()), snapshot)
        return self._with(stacks=stacks)

    def push(self, key: StackKey = DEFAULT_STACK_KEY) -> Turtle:
        """Saves position, angle and pen state on the specified stack."""
        return self._push_snapshot(
            key, StateSnapshot(self.pos, self.angle_deg, self.is_pen_down)
        )

    def push_pos(self, key: StackKey = DEFAULT_STACK_KEY) -> Turtle:
        return self._push_snapshot(key, StateSnapshot(pos=self.pos))

    def push_angle(self, key: StackKey = DEFAULT_STACK_KEY) -> Turtle:
        return self._push_snapshot(key, StateSnapshot(angle_deg=self.angle_deg))

    def push_pos_and_angle(self, key: StackKey = DEFAULT_STACK_KEY) -> Turtle:
        return self._push_snapshot(key, StateSnapshot(pos=self.pos, angle_deg=self.angle_deg))

    def push_pen(self, key: StackKey = DEFAULT_STACK_KEY) -> Turtle:
        return self._push_snapshot(key, StateSnapshot(pen_down=self.is_pen_down))

    def stack_size(self, key: StackKey = DEFAULT_STACK_KEY) -> int:
        return len(self.stacks.get(key, ()))

    def stack_keys(self) -> list[StackKey]:
        return list(self.stacks)

    def is_stack_empty(self, key: StackKey = DEFAULT_STACK_KEY) -> bool:
        return self.stack_size(key) == 0

    def peek(self, key: StackKey = DEFAULT_STACK_KEY) -> Turtle:
        """Loads the last state saved on the stack without removing it.

        Raises:
            EmptyStack: If nothing is saved on the stack
        """
        stack = self.stacks.get(key)
        if not stack:
            raise EmptyStack(key)
        return self._restore(stack[-1])

    def pop(self, key: StackKey = DEFAULT_STACK_KEY) -> Turtle:
        """Loads the last state saved on the stack and removes it.

        Raises:
            EmptyStack: If nothing is saved on the stack
        """
        restored = self.peek(key)
        stacks = dict(self.stacks)
        remaining = stacks[key][:-1]
        if remaining:
            stacks[key] = remaining
        else:
            del stacks[key]
        return restored._with(stacks=stacks)

    # === Copying state ===

    def copy(self, other: Turtle) -> Turtle:
        """Copies position, angle and pen state from the other Turtle."""
        return self._restore(other.state)

    def copy_pos(self, other: Turtle) -> Turtle:
        return self._restore(StateSnapshot(pos=other.pos))

    def copy_angle(self, other: Turtle) -> Turtle:
        return self._restore(StateSnapshot(angle_deg=other.angle_deg))

    def copy_pos_and_angle(self, other: Turtle) -> Turtle:
        return self._restore(StateSnapshot(pos=other.pos, angle_deg=other.angle_deg))

    def copy_pen(self, other: Turtle) -> Turtle:
        return self._restore(StateSnapshot(pen_down=other.is_pen_down))

    def drop_path(self) -> Turtle:
        """Clears the drawn path without changing the state."""
        return self._with(path=Path.create(self.pos))

    # === Pen ===

    def pen_down(self, down: bool = True) -> Turtle:
        """Sets the pen down or up. Moves only draw while the pen is down."""
        return self._with(pen_down=down)

    def pen_up(self, up: bool = True) -> Turtle:
        return self.pen_down(not up)

    def with_pen_down(self, func: TurtleFunc, *args: Any, down: bool = True) -> Turtle:
        """Runs the function with the pen set down (or up), then restores the pen."""
        previous = self.is_pen_down
        return self.pen_down(down).then(func, *args).pen_down(previous)

    def with_pen_up(self, func: TurtleFunc, *args: Any, up: bool = True) -> Turtle:
        return self.with_pen_down(func, *args, down=not up)

    # === Straight moves ===

    def _go_relative(self, forward: float, strafe_right: float) -> Turtle:
        target = self._offset(self._rel_pos(forward, strafe_right))
        return self._draw(self.path.line_to(target), target)

    def forward(self, length: float) -> Turtle:
        return self._go_relative(length, 0.0)

    def back(self, length: float) -> Turtle:
        return self.forward(-length)

    def strafe_right(self, length: float) -> Turtle:
        """Moves directly to the right without turning.

        Same as ``.right().forward(length).left()``.
        """
        return self._go_relative(0.0, length)

    def strafe_left(self, length: float) -> Turtle:
        return self.strafe_right(-length)

    def go_to(self, target: Point) -> Turtle:
        return self._draw(self.path.line_to(target), target)

    def jump_to(self, target: Point) -> Turtle:
        """Moves to the target without drawing."""
        return self._jump(target)

    # === Rotation ===

    def set_angle(self, angle_deg: float) -> Turtle:
        return self._with(angle_deg=angle_deg)

    def look_up(self) -> Turtle:
        return self.set_angle(0)

    def look_down(self) -> Turtle:
        return self.set_angle(180)

    def look_right(self) -> Turtle:
        return self.set_angle(90)

    def look_left(self) -> Turtle:
        return self.set_angle(270)

    def look_at(self, target: Point) -> Turtle:
        """Sets the heading towards the target point."""
        return self.set_angle(
            math.degrees(math.atan2(target[0] - self.pos[0], self.pos[1] - target[1]))
        )

    def right(self, angle_deg: float = 90) -> Turtle:
        return self._with(angle_deg=self.angle_deg + angle_deg)

    def left(self, angle_deg: float = 90) -> Turtle:
        return self.right(-angle_deg)

    def turn_back(self) -> Turtle:
        return self.right(180)

    # === Arcs and ellipses ===

    def arc_right(self, angle_deg: float, radius: float) -> Turtle:
        """Turns right over the angle along a circle of the given radius.

        Angles of 360 degrees or more cannot be expressed as a single arc
        command; the full circle is drawn as two half arcs in a branch, and the
        turtle ends at the target of the whole turn.
        """
        sin, cos = sin_cos(angle_deg)
        target = self._offset(self._rel_pos(radius * sin, radius * (1 - cos)))
        new_angle = self.angle_deg + angle_deg
        if abs(angle_deg) < 360:
            return self._draw(
                self.path.arc(
                    target,
                    radius,
                    large_arc=(sin < 0) == (angle_deg > 0),
                    clockwise=angle_deg > 0,
                ),
                target,
                new_angle,
            )
        at_target = self._jump(target, new_angle)
        if not self.is_pen_down:
            return at_target
        return (
            at_target.push(_FULL_ARC_STACK_KEY)
            .arc_right(180, radius)
            .arc_right(180, radius)
            .pop(_FULL_ARC_STACK_KEY)
        )

    def arc_left(self, angle_deg: float, radius: float) -> Turtle:
        return self.arc_right(-angle_deg, -radius)

    def round_corner_right(self, forward: float, right: float | None = None) -> Turtle:
        """Draws a quarter ellipse corresponding to ``.forward(forward).right().forward(right)``."""
        if right is None:
            right = forward
        target = self._offset(self._rel_pos(forward, right))
        return self._draw(
            self.path.arc(
                target,
                right,
                forward,
                x_axis_rotation_deg=self.angle_deg,
                clockwise=forward * right >= 0,
            ),
            target,
            self.angle_deg + 90,
        )

    def round_corner_left(self, forward: float, left: float | None = None) -> Turtle:
        """Draws a quarter ellipse corresponding to ``.forward(forward).left().forward(left)``."""
        if left is None:
            left = forward
        return self.round_corner_right(forward, -left).turn_back()

    def half_ellipse_right(self, forward: float, right: float) -> Turtle:
        """Draws half of an ellipse corresponding to
        ``.forward(forward).right().forward(right).right().forward(forward)``.
        """
        target = self._offset(self._rel_pos(0.0, right))
        return self._draw(
            self.path.arc(
                target,
                right / 2,
                forward,
                x_axis_rotation_deg=self.angle_deg,
                clockwise=forward * right >= 0,
            ),
            target,
            self.angle_deg + 180,
        )

    def half_ellipse_left(self, forward: float, left: float) -> Turtle:
        return self.half_ellipse_right(forward, -left)

    def circle(self, radius: float) -> Turtle:
        """Draws a circle centered at the current position."""
        return self.ellipse(radius)

    def ellipse(self, radius_forward: float, radius_sides: float | None = None) -> Turtle:
        """Draws an ellipse centered at the current position."""
        if not self.is_pen_down:
            return self
        if radius_sides is None:
            radius_sides = radius_forward
        return self.branch(
            lambda t: t._jump(t._offset(t._rel_pos(radius_forward, 0.0)), t.angle_deg + 90)
            .half_ellipse_right(radius_sides, 2 * radius_forward)
            .half_ellipse_right(radius_sides, 2 * radius_forward)
        )

    # === Curves ===

    def curve_to(self, target: Turtle, curve_args: PartialCurveArgs = "quad") -> Turtle:
        """Draws a Bézier curve from the current position to the target turtle.

        With ``"quad"`` (the default) a quadratic curve is drawn with its control
        point in the auto position. With CurveArgs a cubic curve is drawn with
        the control points ``self.forward(start_speed).pos`` and
        ``target.back(target_speed).pos``.

        The auto position is the intersection of the start and target heading
        lines. If they are parallel, each endpoint's own position is used.
        """
        if not self.is_pen_down:
            return self._jump(target.pos, target.angle_deg)
        if curve_args == "quad":
            start_speed: ControlPointSpeed = "auto"
            target_speed: ControlPointSpeed | None = None
        elif isinstance(curve_args, CurveArgs):
            start_speed = curve_args.resolved_start_speed
            target_speed = curve_args.resolved_target_speed
        else:
            raise ValueError(f"curve_args must be 'quad' or CurveArgs, got {curve_args!r}")

        auto = heading_intersection(self, target)

        def control_point(turtle: Turtle, speed: ControlPointSpeed, direction: int) -> Point:
            if speed == "auto":
                return turtle.pos if auto is None else auto
            return turtle.forward(speed * direction).pos

        control1 = control_point(self, start_speed, 1)
        if target_speed is None:
            path = self.path.quadratic(control1, target.pos)
        else:
            path = self.path.cubic(control1, control_point(target, target_speed, -1), target.pos)
        return self._draw(path, target.pos, target.angle_deg)

    def curve(self, func: TurtleFunc, curve_args: PartialCurveArgs = "quad") -> Turtle:
        """Draws a curve to where the function would move the turtle.

        Anything drawn by the function is discarded; only its final state counts.
        """
        return self.curve_to(self.then(func), curve_args)

    def curve_from_pop(
        self, key: StackKey = DEFAULT_STACK_KEY, curve_args: PartialCurveArgs = "quad"
    ) -> Turtle:
        """Pops from the stack and then draws a curve to the current position."""
        return self.pop(key).curve_to(self, curve_args)

    def curve_from_peek(
        self, key: StackKey = DEFAULT_STACK_KEY, curve_args: PartialCurveArgs = "quad"
    ) -> Turtle:
        """Peeks the stack and then draws a curve to the current position."""
        return self.peek(key).curve_to(self, curve_args)

    def smooth_right(
        self, angle_deg: float, circle_r: float, curve_args: PartialCurveArgs = "quad"
    ) -> Turtle:
        """Draws a curve to the result of ``.forward(circle_r).right(angle_deg).forward(circle_r)``."""
        return self.curve(
            lambda t: t.forward(circle_r).right(angle_deg).forward(circle_r), curve_args
        )

    def smooth_left(
        self, angle_deg: float, circle_r: float, curve_args: PartialCurveArgs = "quad"
    ) -> Turtle:
        return self.smooth_right(-angle_deg, circle_r, curve_args)

    def __repr__(self) -> str:
        return (
            f"Turtle(pos=({self.pos[0]:.6g}, {self.pos[1]:.6g}), "
            f"angle_deg={self.angle_deg:.6g}, pen_down={self.is_pen_down}, "
            f"stacks={ {k: len(v) for k, v in self.stacks.items()} }, "
            f"commands={len(self.path)})"
        )


def heading_intersection(start: Turtle, target: Turtle) -> Point | None:
    """Intersection of the two turtles' heading lines, or None if parallel.

    Each heading line is written in homogeneous coordinates as ``(a, b, c)``
    with ``a*x + b*y + c = 0``; the intersection is their cross product.
    """

    def homogeneous(turtle: Turtle) -> np.ndarray:
        sin, cos = sin_cos(turtle.angle_deg)
        x, y = turtle.pos
        return np.array([cos, sin, -cos * x - sin * y])

    a, b, c = np.cross(homogeneous(start), homogeneous(target))
    if abs(c) < AUTO_POINT_DETERMINANT_EPS:
        return None
    return (float(a / c), float(b / c))
