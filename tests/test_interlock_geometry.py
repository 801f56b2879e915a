"""
Unit tests for the turtle geometry of tabs and slots.

Tests verify:
- Tab outlines on the base and tab lines
- Kerf correction tightening the connection
- Corner radii and negative edge detection
- Slots leaving the turtle at the end of the edge
"""

import numpy as np
import pytest

from tabcut import NegativeEdge
from tabcut.core.path import ArcTo, LineTo, MoveTo
from tabcut.core.turtle import Turtle
from tabcut.interlock.geometry import (
    ActiveEdge,
    Boundary,
    Forward,
    InterlockOptions,
    SlotsOptions,
    TabsOptions,
    draw_slots,
    draw_tabs,
    pattern_progression,
    slot_width,
    slots_path,
    tabs_path,
    turtle_interlock,
)
from tabcut.interlock.kerf import Kerf
from tabcut.interlock.patterns import SlotsPattern, TabsPattern

ONE_TAB = TabsPattern.base(2).add_tab(2).add_base(2)


def tooth_span(path, tab_x, y_range=(-np.inf, np.inf)):
    """Length along y of the vertices on the line x == tab_x, strictly inside y_range."""
    vertices = path.vertices()
    lo, hi = y_range
    selected = (
        np.isclose(vertices[:, 0], tab_x)
        & (vertices[:, 1] > lo + 1e-9)
        & (vertices[:, 1] < hi - 1e-9)
    )
    ys = vertices[selected, 1]
    return ys.max() - ys.min()


# =============================================================================
# Options
# =============================================================================


class TestOptions:
    def test_tabs_options_validation(self):
        with pytest.raises(ValueError, match="tabs_dir must be 'left' or 'right'"):
            TabsOptions(tabs_dir="up")
        with pytest.raises(ValueError, match="tab_width must be positive"):
            TabsOptions(tab_width=0)
        with pytest.raises(ValueError, match="outer_corners_radius must be non-negative"):
            TabsOptions(outer_corners_radius=-1)

    def test_dir_sign(self):
        assert TabsOptions(tabs_dir="right").dir_sign == 1
        assert TabsOptions(tabs_dir="left").dir_sign == -1

    def test_slot_width_kerf(self):
        """Slot width is reduced by the width kerf on both sides."""
        kerf = Kerf(0.1)

        assert slot_width(SlotsOptions(kerf=kerf, slot_width=3)) == pytest.approx(2.8)
        assert slot_width(SlotsOptions(kerf=kerf, slot_width=3, slot_width_kerf=False)) == 3
        assert slot_width(
            SlotsOptions(kerf=kerf, slot_width=3, slot_width_kerf=Kerf(0.5))
        ) == pytest.approx(2)
        assert slot_width(SlotsOptions(kerf=Kerf(2), slot_width=3)) == 0

    def test_interlock_options_split(self):
        options = InterlockOptions(kerf=Kerf(0.1), thickness=4, tabs_dir="right")

        assert options.tabs_options() == TabsOptions(
            kerf=Kerf(0.1), tab_width=4, tabs_dir="right"
        )
        assert options.slots_options().slot_width == 4


# =============================================================================
# Progression
# =============================================================================


class TestPatternProgression:
    def test_transitions_between_segments(self):
        progression = pattern_progression(ONE_TAB.pattern, False, False)

        assert progression == [
            Boundary("start", False),
            Forward(False, 2),
            ActiveEdge(new_active=True, use_kerf=True),
            Forward(True, 2),
            ActiveEdge(new_active=False, use_kerf=True),
            Forward(False, 2),
            Boundary("end", False),
        ]

    def test_boundary_transitions_are_not_kerf_corrected(self):
        """Level changes at the edge ends have no mating flank."""
        progression = pattern_progression(TabsPattern.base(2).pattern, True, True)

        assert progression[1] == ActiveEdge(new_active=False, use_kerf=False)
        assert progression[-2] == ActiveEdge(new_active=True, use_kerf=False)


# =============================================================================
# Tabs
# =============================================================================


class TestDrawTabs:
    def test_single_tab_outline(self, tabs_options):
        """A tab to the left goes out by tab_width and comes back."""
        path = tabs_path(ONE_TAB, tabs_options)
        lines = [c.target for c in path.commands if isinstance(c, LineTo)]

        np.testing.assert_allclose(
            lines,
            [(0, -1), (0, -2), (-3, -2), (-3, -3), (-3, -4), (0, -4), (0, -5), (0, -6)],
            atol=1e-12,
        )

    def test_ends_on_base_line(self, tabs_options, assert_pose):
        t = draw_tabs(Turtle.create(), TabsPattern.distributed(60, tab_every_len=15), tabs_options)

        assert_pose(t, (0, -60), 0)

    def test_tabs_right(self, tabs_options):
        options = TabsOptions(tab_width=3, tabs_dir="right")
        path = tabs_path(ONE_TAB, options)

        assert path.vertices()[:, 0].max() == pytest.approx(3)

    def test_kerf_lengthens_teeth(self):
        """Kerf moves each flank out, so the tooth gets longer by twice the kerf."""
        options = TabsOptions(kerf=Kerf(0.25), tab_width=3)

        assert tooth_span(tabs_path(ONE_TAB, options), -3) == pytest.approx(2.5)

    def test_kerf_tightens_monotonically(self):
        """More kerf means longer teeth and shorter mating gaps."""
        tooth = []
        gap = []
        for kerf in (0.0, 0.1, 0.2, 0.3):
            options = TabsOptions(kerf=Kerf(kerf), tab_width=3)
            tooth.append(tooth_span(tabs_path(ONE_TAB, options), -3))
            # The mating edge has a gap on its base line where this one has a tooth.
            mating = tabs_path(ONE_TAB.matching_tabs(), options)
            gap.append(tooth_span(mating, 0, y_range=(-6, 0)))

        assert all(b > a for a, b in zip(tooth, tooth[1:]))
        assert all(b < a for a, b in zip(gap, gap[1:]))

    def test_start_on_tab_level(self, tabs_options, assert_pose):
        """Starting on the tab line, the edge first comes down to the base."""
        t = draw_tabs(
            Turtle.create((-3, 0)),
            TabsPattern.base(2).add_tab(2),
            tabs_options,
            start_on_tab=True,
            end_on_tab=True,
        )

        np.testing.assert_allclose(t.commands[2].target, (0, 0), atol=1e-12)
        np.testing.assert_allclose(t.commands[3].target, (0, -1), atol=1e-12)
        assert_pose(t, (-3, -4), 0)

    def test_on_tab_level(self, tabs_options, assert_pose):
        """on_tab_level sets both ends on the tab line."""
        t = draw_tabs(Turtle.create((-3, 0)), TabsPattern.base(4), tabs_options, on_tab_level=True)

        assert_pose(t, (-3, -4), 0)
        assert np.isclose(t.as_path().vertices()[:, 0], 0).any()

    def test_corner_radii_draw_arcs(self, assert_pose):
        options = TabsOptions(tab_width=3, outer_corners_radius=0.5, inner_corners_radius=0.5)
        t = draw_tabs(Turtle.create(), ONE_TAB, options)
        arcs = [c for c in t.commands if isinstance(c, ArcTo)]

        # Two corners per flank, the inner ones going around the other way.
        assert len(arcs) == 4
        assert_pose(t, (0, -6), 0)

    def test_corner_at_edge_start_stays_sharp(self, assert_pose):
        """The corner next to the edge boundary is not rounded."""
        options = TabsOptions(tab_width=3, outer_corners_radius=0.5)
        t = draw_tabs(
            Turtle.create((-3, 0)),
            TabsPattern.base(2).add_tab(2),
            options,
            start_on_tab=True,
            end_on_tab=True,
        )

        assert sum(isinstance(c, ArcTo) for c in t.commands) == 1
        assert_pose(t, (-3, -4), 0)

    def test_negative_edge_from_kerf(self):
        with pytest.raises(NegativeEdge, match="negative edge"):
            tabs_path(ONE_TAB, TabsOptions(kerf=Kerf(1.5)))

    def test_negative_edge_from_radius(self):
        with pytest.raises(NegativeEdge, match="tab flank"):
            tabs_path(ONE_TAB, TabsOptions(tab_width=1.5, outer_corners_radius=2))


# =============================================================================
# Slots
# =============================================================================


class TestDrawSlots:
    def test_net_pose(self, assert_pose):
        """The turtle ends at the end of the slotted line, pen as before."""
        pattern = SlotsPattern.distributed(30, num_slots=3)
        t = draw_slots(Turtle.create().right(90), pattern, SlotsOptions(slot_width=3))

        assert_pose(t, (30, 0), 90)
        assert t.is_pen_down
        assert isinstance(t.commands[-1], MoveTo)

    def test_slot_outline(self):
        """Both sides of a centered slot are cut at half the width."""
        path = slots_path(SlotsPattern.skip(2).add_slot(2).add_skip(2), SlotsOptions(slot_width=3))
        drawn_x = {
            round(c.target[0], 9) for c in path.commands if isinstance(c, LineTo)
        }

        assert drawn_x == {-1.5, 0.0, 1.5}

    def test_slot_kerf_shortens_slots(self):
        """Kerf makes the openings shorter and narrower."""
        options = SlotsOptions(kerf=Kerf(0.25), slot_width=3)
        path = slots_path(SlotsPattern.skip(2).add_slot(2).add_skip(2), options)
        side = [c.target for c in path.commands if isinstance(c, LineTo)]
        ys = np.array([y for x, y in side if np.isclose(abs(x), 1.25)])

        assert ys.max() - ys.min() == pytest.approx(1.5)

    def test_slots_to_the_right(self):
        path = slots_path(SlotsPattern.skip(1).add_slot(2).add_skip(1), SlotsOptions(), dir="right")
        xs = path.vertices()[:, 0]

        assert xs.min() == pytest.approx(0)
        assert xs.max() == pytest.approx(3)

    def test_invalid_dir(self):
        with pytest.raises(ValueError, match="dir must be"):
            slots_path(SlotsPattern.slot(1), SlotsOptions(), dir="up")

    def test_slide_is_open(self, assert_pose):
        """A slide slot leaves the start of the slot open."""
        t = draw_slots(Turtle.create(), SlotsPattern.slide(5), SlotsOptions(slot_width=2))

        assert_pose(t, (0, -5), 0, atol=1e-6)
        first_drawn = next(c for c in t.commands if isinstance(c, LineTo))
        assert first_drawn.target[1] == pytest.approx(-2.5)


# =============================================================================
# Partially applied interlock
# =============================================================================


class TestTurtleInterlock:
    def test_tabs_and_slots_share_options(self, assert_pose):
        interlock = turtle_interlock(InterlockOptions(thickness=4))
        pattern = TabsPattern.distributed(20, num_tabs=2)

        t = Turtle.create().then(interlock.tabs, pattern)
        assert_pose(t, (0, -20), 0)
        assert t.as_path().vertices()[:, 0].min() == pytest.approx(-4)

        s = Turtle.create().then(interlock.slots, pattern.matching_slots())
        assert_pose(s, (0, -20), 0)
        assert interlock.slots_options.slot_width == 4

    def test_options_override(self):
        interlock = turtle_interlock(InterlockOptions(thickness=4))
        t = Turtle.create().then(
            interlock.tabs, TabsPattern.distributed(20, num_tabs=2), options={"tab_width": 6}
        )

        assert t.as_path().vertices()[:, 0].min() == pytest.approx(-6)
