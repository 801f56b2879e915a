"""
tabcut - turtle geometry for laser-cut interlocking parts.

Main exports:
- Turtle, Path: Immutable turtle graphics producing path commands
- TabsPattern, SlotsPattern: Run-length patterns of tabs and slots
- Kerf: Laser kerf compensation
- TabsOptions, SlotsOptions, InterlockOptions: Interlock geometry
- TabbedFace, TabbedFaceCreator: Closed outlines with tabbed edges
- solve_for_zero, turtle_solve: Back-solving distances and angles
"""

from tabcut.core import (
    CurveArgs,
    FinderParams,
    Path,
    Turtle,
    heading_intersection,
    solve_for_zero,
    turtle_solve,
)
from tabcut.errors import (
    EmptyStack,
    FaceNotClosed,
    InvalidCount,
    InvalidLength,
    LevelConflict,
    NegativeEdge,
    NoZeroFound,
    TabcutError,
)
from tabcut.faces import (
    ClosedFace,
    FaceOptions,
    TabbedFace,
    TabbedFaceCreator,
    TabsDef,
)
from tabcut.interlock import (
    InterlockOptions,
    InterlockPattern,
    Kerf,
    SlotsOptions,
    SlotsPattern,
    TabsOptions,
    TabsPattern,
    slots_path,
    tabs_path,
    turtle_interlock,
    turtle_slots,
    turtle_tabs,
)

__version__ = "0.1.0"

__all__ = [
    # Turtle graphics
    "CurveArgs",
    "Path",
    "Turtle",
    "heading_intersection",
    # Solver
    "FinderParams",
    "solve_for_zero",
    "turtle_solve",
    # Interlock
    "InterlockOptions",
    "InterlockPattern",
    "Kerf",
    "SlotsOptions",
    "SlotsPattern",
    "TabsOptions",
    "TabsPattern",
    "slots_path",
    "tabs_path",
    "turtle_interlock",
    "turtle_slots",
    "turtle_tabs",
    # Faces
    "ClosedFace",
    "FaceOptions",
    "TabbedFace",
    "TabbedFaceCreator",
    "TabsDef",
    # Errors
    "EmptyStack",
    "FaceNotClosed",
    "InvalidCount",
    "InvalidLength",
    "LevelConflict",
    "NegativeEdge",
    "NoZeroFound",
    "TabcutError",
]
