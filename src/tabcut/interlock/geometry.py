"""
Turtle geometry of tabbed and slotted edges.

draw_tabs traces an edge alternating between the base line and the parallel
tab line, ``tab_width`` to the side given by ``tabs_dir``. draw_slots cuts the
openings that receive such tabs, leaving the turtle at the end of the edge.

Kerf correction moves each tooth flank by ``kerf.one_side`` so that the teeth
get longer and the openings get shorter; the flank at the very start of an
edge is not corrected, as it has no mating flank to react against.

Example:
    >>> options = TabsOptions(kerf=Kerf.millimeters(0.18), tab_width=3, tabs_dir="left")
    >>> pattern = TabsPattern.distributed(length=60, tab_every_len=15)
    >>> t = draw_tabs(Turtle.create(), pattern, options)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any, Literal, Union

from tabcut.core.path import Path
from tabcut.core.turtle import Turtle
from tabcut.errors import NegativeEdge
from tabcut.interlock.kerf import Kerf
from tabcut.interlock.patterns import InterlockPattern, SlotsPattern, TabsPattern

TabsDir = Literal["left", "right"]
SlotsDir = Literal["center", "left", "right"]

# Straight segments shorter than this (negative) are reported as errors.
NEGATIVE_EDGE_TOLERANCE = 1e-9

_TABS_DIR_VALUES = {"right": 1, "left": -1}
_SLOTS_DIR_VALUES = {"center": 0, "right": 1, "left": -1}


@dataclass(frozen=True)
class TabsOptions:
    """Options of a tabbed edge.

    Attributes:
        kerf: Kerf correction, affecting connection tightness
        tab_width: Protrusion of the tabs, usually the material thickness
        tabs_dir: Side of the base line the tabs go to
        outer_corners_radius: Radius of the tab corners, easing insertion
        inner_corners_radius: Concave radius of the inner corners, reducing
            stress in brittle materials like acrylic
    """

    kerf: Kerf = Kerf.ZERO
    tab_width: float = 3.0
    tabs_dir: TabsDir = "left"
    outer_corners_radius: float = 0.0
    inner_corners_radius: float = 0.0

    def __post_init__(self) -> None:
        if self.tabs_dir not in _TABS_DIR_VALUES:
            raise ValueError(f"tabs_dir must be 'left' or 'right', got '{self.tabs_dir}'")
        if self.tab_width <= 0:
            raise ValueError(f"tab_width must be positive, got {self.tab_width}")
        if self.outer_corners_radius < 0:
            raise ValueError(
                f"outer_corners_radius must be non-negative, got {self.outer_corners_radius}"
            )
        if self.inner_corners_radius < 0:
            raise ValueError(
                f"inner_corners_radius must be non-negative, got {self.inner_corners_radius}"
            )

    @property
    def dir_sign(self) -> int:
        """+1 if tabs go right of the base line, -1 if left."""
        return _TABS_DIR_VALUES[self.tabs_dir]


@dataclass(frozen=True)
class SlotsOptions:
    """Options of a slotted edge.

    Attributes:
        kerf: Kerf correction, affecting connection tightness
        slot_width: Width of the slots, usually the material thickness
        slot_width_kerf: Kerf correction of the width: True for the same as
            kerf, False for none, or a separate Kerf
        inner_corners_radius: Concave radius of the slot corners
    """

    kerf: Kerf = Kerf.ZERO
    slot_width: float = 3.0
    slot_width_kerf: Union[bool, Kerf] = True
    inner_corners_radius: float = 0.0

    def __post_init__(self) -> None:
        if self.slot_width <= 0:
            raise ValueError(f"slot_width must be positive, got {self.slot_width}")
        if self.inner_corners_radius < 0:
            raise ValueError(
                f"inner_corners_radius must be non-negative, got {self.inner_corners_radius}"
            )

    @property
    def width_kerf(self) -> Kerf:
        if self.slot_width_kerf is True:
            return self.kerf
        if self.slot_width_kerf is False:
            return Kerf.ZERO
        return self.slot_width_kerf


@dataclass(frozen=True)
class InterlockOptions:
    """Options shared by a pair of matching tabbed and slotted edges."""

    kerf: Kerf = Kerf.ZERO
    thickness: float = 3.0
    tabs_dir: TabsDir = "left"
    outer_corners_radius: float = 0.0
    inner_corners_radius: float = 0.0
    slot_width_kerf: Union[bool, Kerf] = True

    def tabs_options(self) -> TabsOptions:
        return TabsOptions(
            kerf=self.kerf,
            tab_width=self.thickness,
            tabs_dir=self.tabs_dir,
            outer_corners_radius=self.outer_corners_radius,
            inner_corners_radius=self.inner_corners_radius,
        )

    def slots_options(self) -> SlotsOptions:
        return SlotsOptions(
            kerf=self.kerf,
            slot_width=self.thickness,
            slot_width_kerf=self.slot_width_kerf,
            inner_corners_radius=self.inner_corners_radius,
        )


def slot_width(options: SlotsOptions) -> float:
    """Kerf-corrected width of the slots."""
    return max(0.0, options.slot_width - 2 * options.width_kerf.one_side)


# === Pattern progression ===


@dataclass(frozen=True)
class Boundary:
    """Start or end of the edge."""

    boundary: Literal["start", "end"]
    active: bool


@dataclass(frozen=True)
class Forward:
    """A straight run along one pattern segment."""

    active: bool
    length: float


@dataclass(frozen=True)
class ActiveEdge:
    """Transition between an inactive and an active segment."""

    new_active: bool
    use_kerf: bool


ProgressionItem = Union[Boundary, Forward, ActiveEdge]


def pattern_progression(
    pattern: InterlockPattern, start_active: bool, end_active: bool
) -> list[ProgressionItem]:
    """Expand a pattern into boundaries, straight runs and transitions.

    A transition right after the start boundary (the edge starts on the
    other level) and the transition to the requested end level are not
    kerf corrected.
    """
    active = start_active
    items: list[ProgressionItem] = [Boundary("start", active)]
    for item in pattern.items:
        if item.active != active:
            active = item.active
            items.append(ActiveEdge(new_active=active, use_kerf=len(items) > 1))
        items.append(Forward(active, item.length))
    if end_active != active:
        active = end_active
        items.append(ActiveEdge(new_active=active, use_kerf=False))
    items.append(Boundary("end", active))
    return items


def _windows(items: list[ProgressionItem]):
    for i in range(len(items) - 2):
        yield items[i], items[i + 1], items[i + 2]


def _half(item: ProgressionItem) -> float:
    return item.length / 2 if isinstance(item, Forward) else 0.0


def _check_edge(length: float, what: str) -> float:
    if length < -NEGATIVE_EDGE_TOLERANCE:
        raise NegativeEdge(
            f"Kerf or corner radius too big, negative edge: {what} has length {length:.6g}"
        )
    return max(length, 0.0)


def _sign_abs(value: float) -> tuple[int, float]:
    if value > 0:
        return 1, value
    if value < 0:
        return -1, -value
    return 0, 0.0


def arc_turn(t: Turtle, r_sign: int, r_val: float, d: int) -> Turtle:
    """Turn by 90 degrees in direction d (+1 right, -1 left).

    A convex radius (r_sign > 0) is a single arc. A concave radius goes
    around the corner the other way: a quarter turn back, a 270 degree arc
    and a quarter turn back, which ends in the same direction as a plain turn.
    """
    if r_val == 0:
        return t.right(90 * d)
    if r_sign > 0:
        return t.arc_right(90 * d, r_val * d)
    return t.left(90 * d).arc_right(270 * d, r_val * d).left(90 * d)


# === Tabs ===


def draw_tabs(
    t: Turtle,
    pattern: TabsPattern,
    options: TabsOptions,
    start_on_tab: bool | None = None,
    end_on_tab: bool | None = None,
    on_tab_level: bool = False,
) -> Turtle:
    """Trace a tabbed edge.

    The turtle moves along the base line for the pattern length; tooth
    segments are traced on the tab line, ``tab_width`` to the ``tabs_dir`` side.

    Args:
        t: Turtle at the start of the edge, on the start level
        pattern: Tabs to draw
        options: Tab geometry
        start_on_tab: Whether the edge starts on the tab line (defaults to on_tab_level)
        end_on_tab: Whether the edge ends on the tab line (defaults to on_tab_level)
        on_tab_level: Default for start_on_tab and end_on_tab

    Raises:
        NegativeEdge: If kerf plus corner radius exceeds a straight span
    """
    start_active = on_tab_level if start_on_tab is None else start_on_tab
    end_active = on_tab_level if end_on_tab is None else end_on_tab
    progression = pattern_progression(pattern.pattern, start_active, end_active)
    kerf = options.kerf.one_side

    for prev, curr, next_ in _windows(progression):
        if isinstance(curr, Forward):
            if isinstance(prev, Boundary):
                t = t.forward(curr.length / 2)
            if isinstance(next_, Boundary):
                t = t.forward(curr.length / 2)
        elif isinstance(curr, ActiveEdge):
            kerf_correction = kerf * (-1 if curr.new_active else 1) if curr.use_kerf else 0.0
            pre_len = _half(prev) + kerf_correction
            post_len = _half(next_) - kerf_correction

            radii = [-options.inner_corners_radius, options.outer_corners_radius]
            if not curr.new_active:
                radii.reverse()
            (r1_sign, r1_val), (r2_sign, r2_val) = (
                _sign_abs(0.0 if isinstance(neigh, Boundary) else r)
                for r, neigh in zip(radii, (prev, next_))
            )
            d = options.dir_sign * (1 if curr.new_active else -1)

            before = _check_edge(pre_len - r1_val, "segment before the flank")
            flank = _check_edge(options.tab_width - r1_val - r2_val, "tab flank")
            after = _check_edge(post_len - r2_val, "segment after the flank")
            t = (
                t.forward(before)
                .then(arc_turn, r1_sign, r1_val, d)
                .forward(flank)
                .then(arc_turn, r2_sign, r2_val, -d)
                .forward(after)
            )
    return t


# === Slots ===


def draw_slots(
    t: Turtle,
    pattern: SlotsPattern,
    options: SlotsOptions,
    dir: SlotsDir = "center",
    start_open: bool | None = None,
    end_open: bool | None = None,
) -> Turtle:
    """Cut the slots of a pattern along the current heading.

    Both long sides of every slot are traced in two mirrored passes at half
    the kerf-corrected slot width from the slot line, connected by pen-up
    travel. The turtle ends on the slot line at the end of the pattern, with
    the heading and pen state it started with.

    Args:
        t: Turtle at the start of the slotted line
        pattern: Slots to cut
        options: Slot geometry
        dir: Side of the turtle's line the slots go to, or "center"
        start_open: Whether the first slot is open at the start (slide slots),
            defaults to whether the pattern starts with a slot
        end_open: Whether the last slot is open at the end

    Raises:
        NegativeEdge: If kerf plus corner radius exceeds a straight span
    """
    if dir not in _SLOTS_DIR_VALUES:
        raise ValueError(f"dir must be 'center', 'left' or 'right', got '{dir}'")
    if start_open is None:
        start_open = pattern.starts_with_slot()
    if end_open is None:
        end_open = pattern.ends_with_slot()
    progression = pattern_progression(pattern.pattern, start_open, end_open)
    kerf = options.kerf.one_side
    half_width = slot_width(options) / 2
    r_sign, r_val = _sign_abs(-options.inner_corners_radius)

    def fwd(t: Turtle, pen_down: bool, length: float) -> Turtle:
        return t.with_pen_down(lambda t: t.forward(length), down=pen_down)

    def side_pass(t: Turtle, d: int) -> Turtle:
        if start_open:
            t = t.with_pen_up(lambda t: t.strafe_right(half_width * d))
        for prev, curr, next_ in _windows(progression):
            if isinstance(curr, Forward):
                if isinstance(prev, Boundary):
                    t = fwd(t, curr.active, curr.length / 2)
                if isinstance(next_, Boundary):
                    t = fwd(t, curr.active, curr.length / 2)
            elif isinstance(curr, ActiveEdge):
                kerf_correction = kerf * (1 if curr.new_active else -1) if curr.use_kerf else 0.0
                pre_len = _check_edge(_half(prev) + kerf_correction, "segment before the slot end")
                post_len = _check_edge(_half(next_) - kerf_correction, "segment after the slot end")
                side = _check_edge(half_width - r_val, "slot end")
                if curr.new_active:
                    t = (
                        fwd(t, False, pre_len)
                        .right(90 * d)
                        .forward(side)
                        .then(arc_turn, r_sign, r_val, -d)
                        .forward(_check_edge(post_len - r_val, "slot side"))
                    )
                else:
                    t = (
                        t.forward(_check_edge(pre_len - r_val, "slot side"))
                        .then(arc_turn, r_sign, r_val, -d)
                        .forward(side)
                        .right(90 * d)
                        .then(fwd, False, post_len)
                    )
        return t

    def both_passes(t: Turtle) -> Turtle:
        offset = options.slot_width / 2 * _SLOTS_DIR_VALUES[dir]
        t = t.with_pen_up(lambda t: t.strafe_right(offset))
        for d in (1, -1):
            t = t.branch(side_pass, d)
        return t

    total = sum(item.length for item in progression if isinstance(item, Forward))
    return t.branch(both_passes).with_pen_up(lambda t: t.forward(total))


# === Partially applied forms ===


def turtle_tabs(options: TabsOptions) -> Callable[..., Turtle]:
    """A turtle function drawing tabs with fixed options.

    Usage: ``t.then(turtle_tabs(options), pattern, end_on_tab=True)``.
    """

    def tabs(t: Turtle, pattern: TabsPattern, **kwargs: Any) -> Turtle:
        merged = _merged(options, kwargs)
        return draw_tabs(t, pattern, merged, **kwargs)

    return tabs


def turtle_slots(options: SlotsOptions) -> Callable[..., Turtle]:
    """A turtle function drawing slots with fixed options."""

    def slots(t: Turtle, pattern: SlotsPattern, **kwargs: Any) -> Turtle:
        merged = _merged(options, kwargs)
        return draw_slots(t, pattern, merged, **kwargs)

    return slots


def _merged(options: Any, kwargs: dict[str, Any]) -> Any:
    """Pops an ``options`` override dict from kwargs and applies it."""
    override = kwargs.pop("options", None)
    return replace(options, **override) if override else options


@dataclass(frozen=True)
class TurtleInterlock:
    """A pair of matching tabs and slots turtle functions."""

    tabs: Callable[..., Turtle]
    slots: Callable[..., Turtle]
    tabs_options: TabsOptions
    slots_options: SlotsOptions


def turtle_interlock(options: InterlockOptions) -> TurtleInterlock:
    """Tabs and slots turtle functions sharing the same options."""
    tabs_options = options.tabs_options()
    slots_options = options.slots_options()
    return TurtleInterlock(
        tabs=turtle_tabs(tabs_options),
        slots=turtle_slots(slots_options),
        tabs_options=tabs_options,
        slots_options=slots_options,
    )


def tabs_path(pattern: TabsPattern, options: TabsOptions, **kwargs: Any) -> Path:
    """A standalone Path of a tabbed edge starting at the origin, heading up."""
    return draw_tabs(Turtle.create(), pattern, options, **kwargs).as_path()


def slots_path(pattern: SlotsPattern, options: SlotsOptions, **kwargs: Any) -> Path:
    """A standalone Path of slots starting at the origin, heading up."""
    return draw_slots(Turtle.create(), pattern, options, **kwargs).as_path()
