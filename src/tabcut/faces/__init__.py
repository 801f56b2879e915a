"""Faces with tabbed edges, traced on base and tab levels."""

from tabcut.faces.levels import (
    DualSegment,
    HopSegment,
    Level,
    LevelPreference,
    point_level,
)
from tabcut.faces.registry import TabsDef, TabsRegistry
from tabcut.faces.tabbed_face import (
    ClosedFace,
    FaceOptions,
    TabbedFace,
    TabbedFaceCreator,
    box_correction,
    check_face_closed,
    normalize_angle_deg,
    tab_width_for_acute_angle,
)

__all__ = [
    "ClosedFace",
    "DualSegment",
    "FaceOptions",
    "HopSegment",
    "Level",
    "LevelPreference",
    "TabbedFace",
    "TabbedFaceCreator",
    "TabsDef",
    "TabsRegistry",
    "box_correction",
    "check_face_closed",
    "normalize_angle_deg",
    "point_level",
    "tab_width_for_acute_angle",
]
