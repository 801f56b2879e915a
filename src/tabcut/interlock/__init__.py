"""
Tabs and slots: pattern algebra, kerf and the turtle geometry of interlocks.
"""

from tabcut.interlock.geometry import (
    InterlockOptions,
    SlotsOptions,
    TabsOptions,
    TurtleInterlock,
    draw_slots,
    draw_tabs,
    pattern_progression,
    slot_width,
    slots_path,
    tabs_path,
    turtle_interlock,
    turtle_slots,
    turtle_tabs,
)
from tabcut.interlock.kerf import Kerf
from tabcut.interlock.patterns import (
    InterlockPattern,
    PatternItem,
    SlotsPattern,
    TabsPattern,
)

__all__ = [
    "InterlockOptions",
    "InterlockPattern",
    "Kerf",
    "PatternItem",
    "SlotsOptions",
    "SlotsPattern",
    "TabsOptions",
    "TabsPattern",
    "TurtleInterlock",
    "draw_slots",
    "draw_tabs",
    "pattern_progression",
    "slot_width",
    "slots_path",
    "tabs_path",
    "turtle_interlock",
    "turtle_slots",
    "turtle_tabs",
]
