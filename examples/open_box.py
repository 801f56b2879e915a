"""
Example: Open Box
=================
An open-top box of 3mm plywood: a bottom plate, a front and back face and
two sides, all joined with finger joints.

Each mating edge is defined once and fitted on the adjoining face with
``fit``, so the fingers of one face land in the gaps of the other.

Run with: tabcut-check examples/open_box.py -o open_box.json

Box: 80mm wide × 60mm deep × 40mm high (outer dimensions of the base lines)
Kerf: 0.15mm total
"""

from tabcut import InterlockOptions, Kerf, TabbedFaceCreator, TabsPattern

WIDTH = 80
DEPTH = 60
HEIGHT = 40

creator = TabbedFaceCreator.from_interlock(
    InterlockOptions(kerf=Kerf.millimeters(0.15), thickness=3)
)

width_edge = TabsPattern.distributed(WIDTH, tab_every_len=20)
depth_edge = TabsPattern.distributed(DEPTH, tab_every_len=20)
height_edge = TabsPattern.distributed(HEIGHT, num_tabs=2)

# Every face is traced clockwise so that the tabs point outwards
bottom = (
    creator.create("right")
    .tabs_def("front", width_edge)
    .right()
    .tabs_def("right", depth_edge)
    .right()
    .tabs_def("back", width_edge)
    .right()
    .tabs_def("left", depth_edge)
    .right()
    .close_face()
)

# Front and back: fitted to the bottom, fingers up the vertical edges
front = (
    creator.create("right")
    .tabs_def("bottom", bottom.fit["front"])
    .right()
    .tabs_def("right", height_edge)
    .right()
    .forward(WIDTH)
    .right()
    .tabs_def("left", "right", reverse=True)
    .right()
    .close_face()
)

back = (
    creator.create("right")
    .tabs_def("bottom", bottom.fit["back"])
    .right()
    .tabs_def("right", height_edge)
    .right()
    .forward(WIDTH)
    .right()
    .tabs_def("left", "right", reverse=True)
    .right()
    .close_face()
)

# Sides: fitted to the bottom and to the vertical edges of front and back
side = (
    creator.create("right")
    .tabs_def("bottom", bottom.fit["right"])
    .right()
    .tabs_def("back", back.fit["left"])
    .right()
    .forward(DEPTH)
    .right()
    .tabs_def("front", front.fit["right"])
    .right()
    .close_face()
)

print("=" * 60)
print("Open box")
print("=" * 60)
for name, face in [("bottom", bottom), ("front", front), ("back", back), ("side", side)]:
    print(f"{name:>8}: {len(face.commands)} commands, tabs: {', '.join(face.tt)}")
print("=" * 60)
