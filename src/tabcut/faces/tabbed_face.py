"""
Builder of closed outlines with tabbed edges.

A TabbedFace accumulates segments: tabbed edges (``tabs``, ``tabs_def``) and
ordinary moves (``forward``, ``right``, ``arc_right``, ...). Between two tabbed
edges the turtle is either on the base level or on the tab level, inferred
from the adjacent edges; e.g. if an edge ends with a tab and the next one
starts with a tab, the corner between them is drawn on the tab level. The
level can be forced with ``start_on_tab``/``end_on_tab`` or with
``to_tab_level``/``from_tab_level``.

Ordinary moves take their parameters relative to a pivot level and are
adjusted when traced on the other level, so that both parallel lines stay
consistent. ``close_face`` validates that the outline returns to its start
pose and produces an immutable ClosedFace.

Example: two sides of an open box::

    front = (
        TabbedFace.create(options, "down")
        .tabs_def("right_side", right_pattern).right()
        .tabs_def("bottom", bottom_pattern).right()
        .tabs_def("left_side", "right_side", reverse=True).right()
        .no_tabs("bottom").right()
        .close_face()
    )
    side = (
        TabbedFace.create(options, "down")
        .tabs_def("front", front.fit["left_side"]).right()
        .tabs_def("bottom", front.tt["bottom"]).right()
        .tabs_def("back", "front", reverse=True).right()
        .no_tabs("bottom").right()
        .close_face()
    )
"""

from __future__ import annotations

import math
import warnings
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields, replace
from typing import Any, Literal, Union

import numpy as np

from tabcut.core.path import Path
from tabcut.core.turtle import PartialCurveArgs, Turtle, TurtleFunc
from tabcut.errors import FaceNotClosed
from tabcut.faces.levels import (
    DualSegment,
    HopSegment,
    Level,
    LevelPreference,
    Segment,
    identity,
    point_level,
    segment_levels,
)
from tabcut.faces.registry import TabsDef, TabsRegistry
from tabcut.interlock.geometry import InterlockOptions, TabsOptions, draw_tabs
from tabcut.interlock.patterns import TabsPattern

TurnLevel = Literal["base", "tab", "auto"]
StartAngleDeg = Union[float, Literal["up", "down", "right", "left"]]
TabsParams = Union[TabsPattern, TabsDef, str]

# Above this, the forward compensation of a turn off the pivot level is
# replaced by strafing to the pivot level and back.
MAX_FORWARD_LEN_MULTIPLIER_ON_TURN = 1e3

DEFAULT_CLOSE_TOLERANCE = 1e-6
DEFAULT_ANGLE_TOLERANCE = 1e-6

ROTATION = {
    "up": 0.0,
    "down": 180.0,
    "right": 90.0,
    "left": -90.0,
}


def start_angle_deg(start_dir: StartAngleDeg | None) -> float:
    if start_dir is None:
        return 0.0
    if isinstance(start_dir, str):
        if start_dir not in ROTATION:
            raise ValueError(
                f"start_dir must be a number or one of {sorted(ROTATION)}, got '{start_dir}'"
            )
        return ROTATION[start_dir]
    return float(start_dir)


@dataclass(frozen=True)
class FaceOptions(TabsOptions):
    """Options of a tabbed face.

    Attributes:
        turn_level: Level on which the turn parameters are measured: "base",
            "tab", or "auto" (turns away from the tabs pivot on the tab level,
            turns towards the tabs on the base level)
        box_mode: Add the box correction to every turn
    """

    turn_level: TurnLevel = "base"
    box_mode: bool = False

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.turn_level not in ("base", "tab", "auto"):
            raise ValueError(
                f"turn_level must be 'base', 'tab' or 'auto', got '{self.turn_level}'"
            )

    @classmethod
    def from_tabs_options(cls, options: TabsOptions, **changes: Any) -> FaceOptions:
        values = {f.name: getattr(options, f.name) for f in fields(options)}
        values.update(changes)
        return cls(**values)

    @property
    def tab_strafe_left(self) -> float:
        """Strafe-left distance from the base line to the tab line."""
        return self.tab_width * -self.dir_sign


def box_correction(tab_width: float, angle_deg: float) -> float:
    """Extra forward length at a turn of a box face.

    Zero at a right angle, growing to ``tab_width / 2`` for coplanar faces.
    """
    c = max(math.cos(math.radians(angle_deg)), 0.0)
    return tab_width * c / (1 + c)


def tab_width_for_acute_angle(angle_deg: float, tab_width: float) -> float:
    """Width of tabs going through a wall that meets this face at a turn of angle_deg.

    At a right angle this is the wall thickness, tab_width. For a sharper
    corner the tab crosses the wall obliquely and also has to clear its outer
    face, so it gets longer; for a blunter corner only the oblique crossing
    remains.

    Args:
        angle_deg: Turn angle between the two walls, in (0, 180)
        tab_width: Thickness of the wall

    Raises:
        ValueError: If the walls are coplanar or fold back onto each other
    """
    if not 0 < angle_deg < 180:
        raise ValueError(f"angle_deg must be between 0 and 180, got {angle_deg}")
    interior = math.radians(180 - angle_deg)
    return tab_width / math.sin(interior) + max(tab_width / math.tan(interior), 0.0)


def _fwd(t: Turtle, length: float) -> Turtle:
    return t if length == 0 else t.forward(length)


def _strafe_left(distance: float) -> TurtleFunc:
    return lambda t: t if distance == 0 else t.strafe_left(distance)


@dataclass(frozen=True)
class TabbedFace:
    """Immutable builder of a face with tabbed edges.

    Every builder method returns a new TabbedFace. A TabbedFace can also be
    used directly as a turtle function, ``t.then(face)``, in which case its
    start direction is ignored.
    """

    options: FaceOptions
    segments: tuple[Segment, ...] = ()
    registry: TabsRegistry = field(default_factory=TabsRegistry)
    start_dir: float = 0.0

    @classmethod
    def create(
        cls, options: TabsOptions, start_dir: StartAngleDeg | None = None
    ) -> TabbedFace:
        if not isinstance(options, FaceOptions):
            options = FaceOptions.from_tabs_options(options)
        return cls(options, (), TabsRegistry(), start_angle_deg(start_dir))

    # === Named tabs ===

    @property
    def tt(self) -> Mapping[str, TabsDef]:
        """Named tab definitions stored in this face."""
        return self.registry.tt

    @property
    def fit(self) -> Mapping[str, TabsDef]:
        """Reversed matching definitions, ready for an adjoining face."""
        return self.registry.fit

    @property
    def pat(self) -> Mapping[str, TabsPattern]:
        return self.registry.pat

    # === Options ===

    def set_options(self, **changes: Any) -> TabbedFace:
        return replace(self, options=replace(self.options, **changes))

    def with_options(
        self, changes: Mapping[str, Any], func: Callable[[TabbedFace], TabbedFace]
    ) -> TabbedFace:
        """Runs func on a face with changed options, then restores the options."""
        return replace(func(self.set_options(**changes)), options=self.options)

    # === Level geometry ===

    def _level_strafe_left(self, level: Level) -> float:
        return self.options.tab_strafe_left if level.is_tab else 0.0

    def _pivot(self, direction: float) -> Level:
        """Level on which the parameters of a turn in the direction are measured."""
        policy = self.options.turn_level
        if policy == "base":
            return Level.BASE
        if policy == "tab":
            return Level.TAB
        if direction == 0:
            return Level.BASE
        toward_tabs = (direction > 0) == (self.options.dir_sign > 0)
        return Level.BASE if toward_tabs else Level.TAB

    def _offset(self, level: Level, direction: float) -> float:
        """Strafe-left distance from the pivot line of a turn to the level's line."""
        return self._level_strafe_left(level) - self._level_strafe_left(self._pivot(direction))

    def _strafe_between(self, start: Level, end: Level) -> TurtleFunc:
        return _strafe_left(self._level_strafe_left(end) - self._level_strafe_left(start))

    def _box(self, angle_deg: float) -> float:
        if not self.options.box_mode:
            return 0.0
        return box_correction(self.options.tab_width, angle_deg)

    # === Segments ===

    def _append(self, segment: Segment) -> TabbedFace:
        if isinstance(segment, HopSegment) and segment.start is not None and segment.start.required:
            last_hop = next(
                (s for s in reversed(self.segments) if isinstance(s, HopSegment)), None
            )
            if last_hop is not None:
                point_level(last_hop.end, segment.start)
        return replace(self, segments=(*self.segments, segment))

    def _dual(self, func: Callable[[Level], TurtleFunc]) -> TabbedFace:
        return self._append(DualSegment(func(Level.BASE), func(Level.TAB)))

    def _expand(
        self,
        params: TabsParams,
        reverse: bool = False,
        on_tab_level: bool | None = None,
        start_on_tab: bool | None = None,
        end_on_tab: bool | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> TabsDef:
        if isinstance(params, str):
            if params not in self.registry:
                raise KeyError(f"No tabs named '{params}' in this face")
            tabs = self.registry.tt[params]
        elif isinstance(params, TabsPattern):
            tabs = TabsDef.create(params)
        elif isinstance(params, TabsDef):
            tabs = params
        else:
            raise TypeError(
                f"Expected TabsPattern, TabsDef or a tabs name, got {type(params).__name__}"
            )
        if on_tab_level is not None:
            tabs = replace(tabs, start_on_tab=on_tab_level, end_on_tab=on_tab_level)
        if start_on_tab is not None:
            tabs = replace(tabs, start_on_tab=start_on_tab)
        if end_on_tab is not None:
            tabs = replace(tabs, end_on_tab=end_on_tab)
        if options:
            tabs = TabsDef.create(
                tabs.pattern,
                start_on_tab=tabs.start_on_tab,
                end_on_tab=tabs.end_on_tab,
                options={**tabs.options, **options},
            )
        if reverse:
            tabs = tabs.reversed()
        return tabs

    # === Tabbed edges ===

    def tabs(self, params: TabsParams, **modifiers: Any) -> TabbedFace:
        """Draws a tabbed edge.

        Args:
            params: A pattern, a full definition, or the name of a stored definition
            **modifiers: ``reverse``, ``on_tab_level``, ``start_on_tab``,
                ``end_on_tab`` or ``options`` (a dict of TabsOptions overrides)
        """
        tabs = self._expand(params, **modifiers)
        options = replace(self.options, **tabs.options) if tabs.options else self.options

        def preference(declared: bool | None, tab_at_end: bool) -> LevelPreference:
            on_tab = tab_at_end if declared is None else declared
            return LevelPreference(Level.of(on_tab), required=declared is not None)

        def get_func(start: Level, end: Level) -> TurtleFunc:
            return lambda t: draw_tabs(
                t, tabs.pattern, options, start_on_tab=start.is_tab, end_on_tab=end.is_tab
            )

        return self._append(
            HopSegment(
                preference(tabs.start_on_tab, tabs.pattern.starts_with_tab()),
                preference(tabs.end_on_tab, tabs.pattern.ends_with_tab()),
                get_func,
            )
        )

    def tabs_def(self, name: str, params: TabsParams, **modifiers: Any) -> TabbedFace:
        """Stores the tabs definition under the name and draws the tabs.

        Raises:
            ValueError: If the name is already used in this face
        """
        tabs = self._expand(params, **modifiers)
        registry = self.registry.add(name, tabs)
        return replace(self.tabs(tabs), registry=registry)

    def no_tabs(self, params: TabsParams, on_tab_level: bool = False) -> TabbedFace:
        """Draws a straight edge as long as the tabs, on the given level."""
        length = self._expand(params).length()
        return self.to_tab_level(on_tab_level).forward(length).from_tab_level(on_tab_level)

    # === Level control ===

    def to_tab_level(self, tab_level: bool = True) -> TabbedFace:
        """Forces the following fragment onto the given level."""
        level = Level.of(tab_level)
        return self._append(
            HopSegment(
                LevelPreference(level),
                LevelPreference(level, required=True),
                lambda start, end: identity if start == level else self._strafe_between(start, level),
            )
        )

    def to_base_level(self, base_level: bool = True) -> TabbedFace:
        return self.to_tab_level(not base_level)

    def from_tab_level(self, tab_level: bool = True) -> TabbedFace:
        """Forces the previous fragment onto the given level."""
        level = Level.of(tab_level)
        return self._append(
            HopSegment(
                LevelPreference(level, required=True),
                LevelPreference(level),
                lambda start, end: identity if end == level else self._strafe_between(level, end),
            )
        )

    def from_base_level(self, base_level: bool = True) -> TabbedFace:
        return self.from_tab_level(not base_level)

    # === Moves ===

    def forward(self, length: float) -> TabbedFace:
        return self._dual(lambda level: lambda t: t.forward(length))

    def back(self, length: float) -> TabbedFace:
        return self.forward(-length)

    def strafe_right(self, length: float) -> TabbedFace:
        return self._dual(lambda level: lambda t: t.strafe_right(length))

    def strafe_left(self, length: float) -> TabbedFace:
        return self.strafe_right(-length)

    # === Turns ===

    def _turn_via_pivot(self, offset: float, angle_deg: float) -> TurtleFunc:
        """Pen-up strafe to the pivot line, turn, and strafe back."""
        return lambda t: t.with_pen_up(
            lambda t: t.then(_strafe_left(-offset)).right(angle_deg).then(_strafe_left(offset))
        )

    def right(self, angle_deg: float = 90) -> TabbedFace:
        """Turns right.

        Off the pivot level, the turn is preceded and followed by a forward
        segment, so that the parallel line meets the next edge correctly.
        """
        multiplier = math.tan(math.radians(angle_deg / 2))
        box = self._box(angle_deg)

        def level_func(level: Level) -> TurtleFunc:
            offset = self._offset(level, angle_deg)
            if offset == 0 or abs(multiplier) < MAX_FORWARD_LEN_MULTIPLIER_ON_TURN:
                extra = box + offset * multiplier
                return lambda t: _fwd(_fwd(t, extra).right(angle_deg), extra)

            via_pivot = self._turn_via_pivot(offset, angle_deg)

            def func(t: Turtle) -> Turtle:
                warnings.warn(
                    f"Turn of {angle_deg} degrees off the pivot level cannot be compensated, "
                    "moving through the pivot line with the pen up",
                    UserWarning,
                    stacklevel=2,
                )
                return _fwd(_fwd(t, box).then(via_pivot), box)

            return func

        return self._dual(level_func)

    def left(self, angle_deg: float = 90) -> TabbedFace:
        return self.right(-angle_deg)

    def arc_right(self, angle_deg: float = 90, radius: float = 0) -> TabbedFace:
        """Turns right along an arc, adjusting the radius on the other level.

        ``arc_right()`` without parameters is a plain turn on the pivot level
        and a quarter circle on the other level.
        """
        return self._dual(
            lambda level: lambda t: t.arc_right(angle_deg, radius + self._offset(level, angle_deg))
        )

    def arc_left(self, angle_deg: float = 90, radius: float = 0) -> TabbedFace:
        return self.arc_right(-angle_deg, -radius)

    def bevel_right(self, angle_deg: float = 90) -> TabbedFace:
        """Turns right; off the pivot level, cuts the corner with a straight line."""
        box = self._box(angle_deg)

        def level_func(level: Level) -> TurtleFunc:
            offset = self._offset(level, angle_deg)

            def func(t: Turtle) -> Turtle:
                t = _fwd(t, box)
                if offset == 0:
                    t = t.right(angle_deg)
                else:
                    turned = t.then(self._turn_via_pivot(offset, angle_deg))
                    t = t.go_to(turned.pos).copy_angle(turned)
                return _fwd(t, box)

            return func

        return self._dual(level_func)

    def bevel_left(self, angle_deg: float = 90) -> TabbedFace:
        return self.bevel_right(-angle_deg)

    def smooth_right(
        self,
        angle_deg: float = 90,
        circle_r: float = 0,
        curve_args: PartialCurveArgs = "quad",
        on_tab_curve_args: PartialCurveArgs | None = None,
    ) -> TabbedFace:
        """Turns right along a Bézier curve.

        Curve args can be given separately for the non-pivot level.
        """
        multiplier = math.tan(math.radians(angle_deg / 2))
        other_args = curve_args if on_tab_curve_args is None else on_tab_curve_args

        def level_func(level: Level) -> TurtleFunc:
            offset = self._offset(level, angle_deg)
            if offset == 0:
                return lambda t: t.smooth_right(angle_deg, circle_r, curve_args)
            return lambda t: t.smooth_right(angle_deg, circle_r + offset * multiplier, other_args)

        return self._dual(level_func)

    def smooth_left(
        self,
        angle_deg: float = 90,
        circle_r: float = 0,
        curve_args: PartialCurveArgs = "quad",
        on_tab_curve_args: PartialCurveArgs | None = None,
    ) -> TabbedFace:
        return self.smooth_right(-angle_deg, circle_r, curve_args, on_tab_curve_args)

    def round_corner_right(self, forward: float, right: float | None = None) -> TabbedFace:
        if right is None:
            right = forward

        def level_func(level: Level) -> TurtleFunc:
            offset = self._offset(level, 1)
            return lambda t: t.round_corner_right(forward + offset, right + offset)

        return self._dual(level_func)

    def round_corner_left(self, forward: float, left: float | None = None) -> TabbedFace:
        if left is None:
            left = forward

        def level_func(level: Level) -> TurtleFunc:
            offset = self._offset(level, -1)
            return lambda t: t.round_corner_left(forward - offset, left - offset)

        return self._dual(level_func)

    def half_ellipse_right(self, forward: float, right: float) -> TabbedFace:
        def level_func(level: Level) -> TurtleFunc:
            offset = self._offset(level, 1)
            return lambda t: t.half_ellipse_right(forward + offset, right + 2 * offset)

        return self._dual(level_func)

    def half_ellipse_left(self, forward: float, left: float) -> TabbedFace:
        def level_func(level: Level) -> TurtleFunc:
            offset = self._offset(level, -1)
            return lambda t: t.half_ellipse_left(forward - offset, left - 2 * offset)

        return self._dual(level_func)

    # === Free turtle drawing ===

    def then_turtle(self, func: TurtleFunc, *args: Any) -> TabbedFace:
        """Runs a turtle function, passing the level as ``on_tab_level``.

        The function is expected to keep the turtle on its level.
        """
        return self._dual(
            lambda level: lambda t: t.then(func, *args, on_tab_level=level.is_tab)
        )

    def branch_turtle(
        self, func: TurtleFunc, *args: Any, from_tab_level: bool | None = None
    ) -> TabbedFace:
        """Runs a turtle function in a branch.

        With ``from_tab_level`` set, the branch starts on that level regardless
        of the face's current level.
        """

        def level_func(level: Level) -> TurtleFunc:
            target = level if from_tab_level is None else Level.of(from_tab_level)
            move = self._strafe_between(level, target)
            return lambda t: t.branch(
                lambda t: t.with_pen_up(move).then(func, *args, on_tab_level=target.is_tab)
            )

        return self._dual(level_func)

    # === Building ===

    def _trace(self, t: Turtle, segments: tuple[Segment, ...]) -> Turtle:
        levels = segment_levels(segments)
        if not levels:
            return t
        start_level = levels[0][0]
        t = t.with_pen_up(self._strafe_between(Level.BASE, start_level))
        for segment, (start, end) in zip(segments, levels):
            if isinstance(segment, HopSegment):
                t = t.then(segment.func(start, end))
            else:
                t = t.then(segment.func(start))
        return t.with_pen_up(self._strafe_between(levels[-1][1], Level.BASE))

    def __call__(self, t: Turtle) -> Turtle:
        return self._trace(t, self.segments)

    def build_turtle(self) -> Turtle:
        """Traces the face from the origin in its start direction."""
        return Turtle.create().set_angle(self.start_dir).then(self)

    def as_path(self) -> Path:
        return self.build_turtle().as_path()

    def close_face(
        self,
        close_path: bool = False,
        allow_open: bool | None = None,
        tolerance: float = DEFAULT_CLOSE_TOLERANCE,
    ) -> ClosedFace:
        """Closes the face.

        - Determines the level at the point where the end meets the start.
        - Verifies that the turtle is back at the start pose, unless allow_open
          (which defaults to close_path).
        - Appends a close command if close_path.

        Raises:
            LevelConflict: If the end and start of the face require different levels
            FaceNotClosed: If the outline does not return to its start pose
        """
        if allow_open is None:
            allow_open = close_path
        hops = [s for s in self.segments if isinstance(s, HopSegment)]
        segments = self.segments
        if hops:
            closing_pref = LevelPreference(point_level(hops[-1].end, hops[0].start), required=True)
            closing = HopSegment(closing_pref, closing_pref, lambda start, end: identity)
            segments = (closing, *segments, closing)
        turtle = Turtle.create().set_angle(self.start_dir).then(self._trace, segments)
        if not allow_open:
            check_face_closed(self.start_dir, turtle, tolerance)
        path = turtle.close_path() if close_path else turtle.as_path()
        return ClosedFace(path, self.registry, turtle.pos, turtle.angle_deg)


def normalize_angle_deg(angle_deg: float) -> float:
    """Heading in the range [-180, 180)."""
    return (angle_deg % 360 + 180) % 360 - 180


def check_face_closed(
    start_dir: float,
    turtle: Turtle,
    tolerance: float = DEFAULT_CLOSE_TOLERANCE,
    angle_tolerance: float = DEFAULT_ANGLE_TOLERANCE,
) -> None:
    """Raises FaceNotClosed unless the turtle is back at the origin facing start_dir."""
    x, y = turtle.pos
    expected_angle = normalize_angle_deg(start_dir)
    angle = normalize_angle_deg(turtle.angle_deg)
    angle_error = abs(normalize_angle_deg(angle - expected_angle))
    if np.hypot(x, y) > tolerance or angle_error > angle_tolerance:
        raise FaceNotClosed((x, y), (0.0, 0.0), angle, expected_angle)


@dataclass(frozen=True)
class ClosedFace:
    """A finished face outline with its named tab definitions.

    Attributes:
        path: The outline
        registry: Named tabs of the face, for defining adjoining faces
        end_pos: Final turtle position
        end_angle_deg: Final turtle heading
    """

    path: Path
    registry: TabsRegistry
    end_pos: tuple[float, float] = (0.0, 0.0)
    end_angle_deg: float = 0.0

    @property
    def tt(self) -> Mapping[str, TabsDef]:
        return self.registry.tt

    @property
    def fit(self) -> Mapping[str, TabsDef]:
        return self.registry.fit

    @property
    def pat(self) -> Mapping[str, TabsPattern]:
        return self.registry.pat

    @property
    def commands(self):
        return self.path.commands

    def as_path(self) -> Path:
        return self.path


class TabbedFaceCreator:
    """Creates TabbedFaces sharing the same options."""

    def __init__(self, options: TabsOptions) -> None:
        if not isinstance(options, FaceOptions):
            options = FaceOptions.from_tabs_options(options)
        self.options = options

    @classmethod
    def from_interlock(cls, options: InterlockOptions, **face_options: Any) -> TabbedFaceCreator:
        return cls(FaceOptions.from_tabs_options(options.tabs_options(), **face_options))

    def create(self, start_dir: StartAngleDeg | None = None) -> TabbedFace:
        return TabbedFace.create(self.options, start_dir)
