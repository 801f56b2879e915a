"""
Example: Shelf in Slots
=======================
A side panel with a row of slots across its middle, and a shelf whose
tabbed edges go into those slots.

The slots are cut from the panel outline with ``branch_turtle``, which
draws on the side without moving the outline turtle.

Run with: tabcut-check examples/shelf.py -o shelf.json

Panel: 50mm deep × 120mm high
Shelf: 70mm wide × 50mm deep
Material: 4mm, kerf 0.2mm total
"""

from tabcut import InterlockOptions, Kerf, TabbedFaceCreator, TabsPattern, turtle_interlock

DEPTH = 50
HEIGHT = 120
SHELF_WIDTH = 70

options = InterlockOptions(kerf=Kerf.millimeters(0.2), thickness=4)
interlock = turtle_interlock(options)
creator = TabbedFaceCreator.from_interlock(options)

shelf_edge = TabsPattern.distributed(DEPTH, num_tabs=2, tab_to_skip_ratio=2)


def shelf_slots(t, on_tab_level):
    """Slots across the panel, half way down from the top edge."""
    return (
        t.pen_up()
        .right()
        .forward(HEIGHT / 2)
        .left()
        .then(interlock.slots, shelf_edge.matching_slots())
    )


panel = (
    creator.create("right")
    .branch_turtle(shelf_slots)
    .forward(DEPTH)
    .right()
    .forward(HEIGHT)
    .right()
    .forward(DEPTH)
    .right()
    .forward(HEIGHT)
    .right()
    .close_face()
)

shelf = (
    creator.create("right")
    .forward(SHELF_WIDTH)
    .right()
    .tabs_def("right", shelf_edge)
    .right()
    .forward(SHELF_WIDTH)
    .right()
    .tabs("right", reverse=True)
    .right()
    .close_face()
)

print("=" * 60)
print("Shelf in slots")
print("=" * 60)
print(f"Slot width: {interlock.slots_options.slot_width} mm")
print(f"Shelf edge: {shelf_edge}")
print(f"Panel: {len(panel.commands)} commands")
print(f"Shelf: {len(shelf.commands)} commands")
print("=" * 60)
