"""
Export of path commands as plain data.

The records are the hand-off format for downstream tools (SVG writers, cutter
job packaging); each command is a dict with a ``kind`` key, see
``tabcut.core.path``.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path as FilePath
from typing import Any, Union

from tabcut.core.path import Path
from tabcut.core.turtle import Turtle

Drawable = Union[Path, Turtle, Any]


def as_command_path(drawable: Drawable) -> Path:
    """Path of a Path, a Turtle, or anything with an ``as_path()`` method (e.g. ClosedFace)."""
    if isinstance(drawable, Path):
        return drawable
    if hasattr(drawable, "as_path"):
        return drawable.as_path()
    raise TypeError(f"Cannot export {type(drawable).__name__} as path commands")


def commands_to_records(drawable: Drawable) -> list[dict[str, Any]]:
    """List of JSON-ready dicts, one per path command."""
    return as_command_path(drawable).to_records()


def path_summary(drawable: Drawable) -> dict[str, Any]:
    path = as_command_path(drawable)
    bounds = path.bounds()
    return {
        "num_commands": len(path),
        "num_drawing_commands": len(path.drawing_commands()),
        "bounding_box": None if bounds is None else [list(bounds[0]), list(bounds[1])],
    }


def export_json(
    drawables: Drawable | Mapping[str, Drawable],
    path: str | FilePath,
) -> None:
    """
    Export path commands as JSON.

    A single drawable is written as ``{"commands": [...], "metadata": {...}}``.
    A mapping of names to drawables is written as
    ``{"paths": {name: {"commands": ..., "metadata": ...}}}``.

    Args:
        drawables: A Path, Turtle or ClosedFace, or a mapping of names to them
        path: Path to output JSON file
    """
    path = FilePath(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    def entry(drawable: Drawable) -> dict[str, Any]:
        return {
            "commands": commands_to_records(drawable),
            "metadata": path_summary(drawable),
        }

    if isinstance(drawables, Mapping):
        data: dict[str, Any] = {"paths": {name: entry(d) for name, d in drawables.items()}}
    else:
        data = entry(drawables)

    with open(path, "w") as f:
        json.dump(data, f, indent=2)
