"""Turtle graphics, path commands and the root finder."""

from tabcut.core.path import (
    ArcTo,
    ClosePath,
    CubicTo,
    LineTo,
    MoveTo,
    Path,
    PathCommand,
    QuadraticTo,
)
from tabcut.core.solver import (
    TURTLE_FINDER_PARAMS,
    FinderParams,
    solve_for_zero,
    turtle_solve,
)
from tabcut.core.turtle import CurveArgs, Turtle, heading_intersection

__all__ = [
    "ArcTo",
    "ClosePath",
    "CubicTo",
    "CurveArgs",
    "FinderParams",
    "LineTo",
    "MoveTo",
    "Path",
    "PathCommand",
    "QuadraticTo",
    "TURTLE_FINDER_PARAMS",
    "Turtle",
    "heading_intersection",
    "solve_for_zero",
    "turtle_solve",
]
