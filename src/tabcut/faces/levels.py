"""
Base/tab level bookkeeping of tabbed faces.

Between two tabbed edges, a face is traced either on the base line or on the
parallel tab line. Each tabbed edge states a preference for the level at its
start and at its end, either required (declared explicitly) or advisory
(implied by whether the pattern starts or ends with a tab). The level at each
point between two edges is inferred from the two adjacent preferences.

Face segments form a closed sum type:
- DualSegment: an ordinary move, with one turtle function per level
- HopSegment: a tabbed edge (or level change), which may change the level
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Union

from tabcut.core.turtle import Turtle, TurtleFunc
from tabcut.errors import LevelConflict


class Level(Enum):
    """Which of the two parallel lines the turtle traces."""

    BASE = "base"
    TAB = "tab"

    @classmethod
    def of(cls, on_tab: bool) -> Level:
        return cls.TAB if on_tab else cls.BASE

    @property
    def is_tab(self) -> bool:
        return self is Level.TAB

    def __str__(self) -> str:
        return f"{self.value} level"


@dataclass(frozen=True)
class LevelPreference:
    """Preferred level at one end of a hop segment.

    Attributes:
        level: The preferred level
        required: Required preferences win over advisory ones and must not
            conflict with each other
    """

    level: Level
    required: bool = False


@dataclass(frozen=True)
class DualSegment:
    """A move that is valid on either level."""

    base_func: TurtleFunc
    tab_func: TurtleFunc

    def func(self, level: Level) -> TurtleFunc:
        return self.tab_func if level.is_tab else self.base_func


@dataclass(frozen=True)
class HopSegment:
    """A segment that may start and end on different levels."""

    start: LevelPreference | None
    end: LevelPreference | None
    get_func: Callable[[Level, Level], TurtleFunc]

    def func(self, start: Level, end: Level) -> TurtleFunc:
        return self.get_func(start, end)


Segment = Union[DualSegment, HopSegment]


def identity(t: Turtle) -> Turtle:
    return t


def point_level(
    prev_pref: LevelPreference | None, next_pref: LevelPreference | None
) -> Level:
    """Level at the point between two hop segments.

    A required preference wins; two conflicting required preferences raise
    LevelConflict. Otherwise advisory preferences are used, resolving a
    disagreement to the base level. With no preference at all, the point is
    on the base level.
    """
    if prev_pref is not None and prev_pref.required:
        if next_pref is not None and next_pref.required and next_pref.level != prev_pref.level:
            raise LevelConflict(
                f"Mismatching levels: previous segment ends on {prev_pref.level}, "
                f"next segment starts on {next_pref.level}"
            )
        return prev_pref.level
    if next_pref is not None and next_pref.required:
        return next_pref.level
    if prev_pref is not None:
        if next_pref is not None and next_pref.level != prev_pref.level:
            return Level.BASE
        return prev_pref.level
    if next_pref is not None:
        return next_pref.level
    return Level.BASE


def segment_levels(segments: tuple[Segment, ...]) -> list[tuple[Level, Level]]:
    """Start and end level of every segment, in order.

    Dual segments start and end on the same level. Raises LevelConflict if
    two adjacent hops require different levels.
    """
    next_hop: list[HopSegment | None] = [None] * len(segments)
    following: HopSegment | None = None
    for i in range(len(segments) - 1, -1, -1):
        next_hop[i] = following
        if isinstance(segments[i], HopSegment):
            following = segments[i]
    first_hop = following

    levels = []
    level = point_level(None, first_hop.start if first_hop else None)
    for i, segment in enumerate(segments):
        if isinstance(segment, HopSegment):
            after = next_hop[i]
            end = point_level(segment.end, after.start if after else None)
            levels.append((level, end))
            level = end
        elif isinstance(segment, DualSegment):
            levels.append((level, level))
        else:
            raise TypeError(f"Unknown segment type: {type(segment).__name__}")
    return levels
