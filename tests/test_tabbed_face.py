"""
Unit tests for tabbed faces.

Tests verify:
- Faces closing on the base and tab levels
- Turn compensation off the pivot level, turn policies and box mode
- Named tabs and fitting adjoining faces
- Level conflicts and unclosed faces
"""

import numpy as np
import pytest

from tabcut import (
    FaceNotClosed,
    InterlockOptions,
    Kerf,
    LevelConflict,
    TabsOptions,
    TabsPattern,
    Turtle,
)
from tabcut.core.path import ClosePath
from tabcut.faces.tabbed_face import (
    ClosedFace,
    FaceOptions,
    TabbedFace,
    TabbedFaceCreator,
    box_correction,
    normalize_angle_deg,
    start_angle_deg,
    tab_width_for_acute_angle,
)

LONG = TabsPattern.distributed(30, num_tabs=2)
SHORT = TabsPattern.distributed(20, num_tabs=2)
LONG_ON_TAB = TabsPattern.distributed(30, num_tabs=2, start_with_tab=True, end_with_tab=True)


def rectangle(face, corner=lambda f: f.right()):
    """Four edges with tabs that start and end with a tab, joined by corners."""
    for _ in range(4):
        face = corner(face.tabs(LONG_ON_TAB))
    return face


# =============================================================================
# Options and creation
# =============================================================================


class TestFaceOptions:
    def test_from_tabs_options(self):
        options = FaceOptions.from_tabs_options(
            TabsOptions(kerf=Kerf(0.1), tab_width=4), box_mode=True
        )

        assert options.tab_width == 4
        assert options.kerf == Kerf(0.1)
        assert options.box_mode
        assert options.turn_level == "base"

    def test_invalid_turn_level(self):
        with pytest.raises(ValueError, match="turn_level must be"):
            FaceOptions(turn_level="middle")

    def test_inherits_validation(self):
        with pytest.raises(ValueError, match="tab_width must be positive"):
            FaceOptions(tab_width=-1)

    def test_tab_strafe_left(self):
        assert FaceOptions(tab_width=3, tabs_dir="left").tab_strafe_left == 3
        assert FaceOptions(tab_width=3, tabs_dir="right").tab_strafe_left == -3


class TestCreation:
    def test_start_directions(self):
        assert start_angle_deg(None) == 0
        assert start_angle_deg("down") == 180
        assert start_angle_deg("right") == 90
        assert start_angle_deg("left") == -90
        assert start_angle_deg(30) == 30
        with pytest.raises(ValueError, match="start_dir must be"):
            start_angle_deg("north")

    def test_create_converts_options(self, tabs_options):
        face = TabbedFace.create(tabs_options, "right")

        assert isinstance(face.options, FaceOptions)
        assert face.start_dir == 90
        assert face.build_turtle().angle_deg == 90

    def test_creator(self, tabs_options):
        creator = TabbedFaceCreator(tabs_options)

        assert creator.create("down").start_dir == 180
        assert creator.create().options == creator.options

    def test_creator_from_interlock(self):
        creator = TabbedFaceCreator.from_interlock(
            InterlockOptions(thickness=4, tabs_dir="right"), turn_level="auto"
        )

        assert creator.options.tab_width == 4
        assert creator.options.tabs_dir == "right"
        assert creator.options.turn_level == "auto"

    def test_faces_are_immutable(self, tabs_options):
        face = TabbedFace.create(tabs_options)
        longer = face.forward(10)

        assert face.segments == ()
        assert len(longer.segments) == 1


# =============================================================================
# Closing
# =============================================================================


class TestCloseFace:
    def test_plain_rectangle(self, tabs_options):
        closed = (
            TabbedFace.create(tabs_options)
            .tabs(LONG)
            .right()
            .forward(20)
            .right()
            .tabs(LONG)
            .right()
            .forward(20)
            .right()
            .close_face()
        )

        assert isinstance(closed, ClosedFace)
        np.testing.assert_allclose(closed.end_pos, (0, 0), atol=1e-9)
        assert closed.commands == closed.path.commands

    def test_corners_on_tab_level(self, tabs_options):
        """Tab-level corners get compensated so the outline still closes."""
        closed = rectangle(TabbedFace.create(tabs_options)).close_face()
        vertices = closed.path.vertices()

        # The corners lie on the tab lines, tab_width outside the base rectangle.
        assert vertices[:, 0].min() == pytest.approx(-3)
        assert vertices[:, 1].min() == pytest.approx(-33)
        assert vertices[:, 0].max() == pytest.approx(33)

    def test_closes_with_kerf_and_radii(self):
        options = TabsOptions(
            kerf=Kerf(0.2), tab_width=3, outer_corners_radius=0.5, inner_corners_radius=0.3
        )

        rectangle(TabbedFace.create(options)).close_face()

    @pytest.mark.parametrize(
        "corner",
        [
            lambda f: f.right(),
            lambda f: f.arc_right(90, 5),
            lambda f: f.arc_right(),
            lambda f: f.bevel_right(),
            lambda f: f.smooth_right(90, 5),
            lambda f: f.round_corner_right(5),
        ],
    )
    def test_corner_kinds_close_on_tab_level(self, tabs_options, corner):
        """Every kind of corner is consistent between the two levels."""
        rectangle(TabbedFace.create(tabs_options), corner).close_face()

    @pytest.mark.parametrize("tabs_dir", ["left", "right"])
    @pytest.mark.parametrize("turn_level", ["base", "tab", "auto"])
    def test_turn_levels_close(self, tabs_dir, turn_level):
        options = FaceOptions(tab_width=3, tabs_dir=tabs_dir, turn_level=turn_level)
        face = (
            TabbedFace.create(options)
            .tabs(LONG_ON_TAB)
            .right()
            .forward(20)
            .right()
            .tabs(LONG)
            .right()
            .forward(20)
            .right()
        )

        face.close_face()

    def test_half_ellipse_stadium(self, tabs_options):
        face = (
            TabbedFace.create(tabs_options)
            .tabs(LONG_ON_TAB)
            .half_ellipse_right(5, 20)
            .tabs(LONG_ON_TAB)
            .half_ellipse_right(5, 20)
        )

        face.close_face()

    def test_shrunk_side_does_not_close(self, tabs_options):
        face = (
            TabbedFace.create(tabs_options)
            .tabs(LONG)
            .right()
            .forward(20)
            .right()
            .tabs(LONG)
            .right()
            .forward(19)
            .right()
        )

        with pytest.raises(FaceNotClosed, match="not closed properly") as exc_info:
            face.close_face()

        np.testing.assert_allclose(exc_info.value.position, (1, 0), atol=1e-9)
        assert exc_info.value.expected_position == (0.0, 0.0)
        assert exc_info.value.angle_deg == pytest.approx(0)

    def test_wrong_heading_does_not_close(self, tabs_options):
        with pytest.raises(FaceNotClosed):
            TabbedFace.create(tabs_options).right(90).close_face()

    def test_allow_open(self, tabs_options):
        closed = TabbedFace.create(tabs_options).forward(10).close_face(allow_open=True)

        np.testing.assert_allclose(closed.end_pos, (0, -10), atol=1e-9)

    def test_close_path(self, tabs_options):
        closed = TabbedFace.create(tabs_options).forward(10).right().forward(5).close_face(
            close_path=True
        )

        assert closed.commands[-1] == ClosePath()

    def test_tolerance(self, tabs_options):
        face = TabbedFace.create(tabs_options).forward(1e-3)

        face.close_face(tolerance=1e-2)
        with pytest.raises(FaceNotClosed):
            face.close_face()

    def test_start_dir(self, tabs_options):
        """A face starting down closes back at the same heading."""
        face = TabbedFace.create(tabs_options, "down")

        rectangle(face).close_face()
        assert face.build_turtle().angle_deg == 180


# =============================================================================
# Levels
# =============================================================================


class TestLevels:
    def test_required_conflict_detected_on_append(self, tabs_options):
        face = TabbedFace.create(tabs_options).tabs(LONG, end_on_tab=True)

        with pytest.raises(LevelConflict, match="Mismatching levels"):
            face.tabs(LONG, start_on_tab=False)

    def test_conflict_across_the_closing_point(self, tabs_options):
        face = (
            TabbedFace.create(tabs_options)
            .tabs(LONG, start_on_tab=False)
            .right()
            .tabs(LONG, end_on_tab=True)
        )

        with pytest.raises(LevelConflict):
            face.close_face()

    def test_to_and_from_tab_level(self, tabs_options, assert_pose):
        """Explicit level changes draw a connecting line and come back."""
        t = (
            TabbedFace.create(tabs_options)
            .forward(10)
            .from_base_level()
            .to_tab_level()
            .forward(5)
            .from_tab_level()
            .to_base_level()
            .forward(5)
            .build_turtle()
        )

        assert_pose(t, (0, -20), 0)
        assert t.as_path().vertices()[:, 0].min() == pytest.approx(-3)

    def test_no_tabs(self, tabs_options, assert_pose):
        face = TabbedFace.create(tabs_options).tabs_def("a", LONG).right().no_tabs("a")
        t = face.build_turtle()

        assert_pose(t, (30, -30), 90)

    def test_no_tabs_on_tab_level(self, tabs_options, assert_pose):
        t = TabbedFace.create(tabs_options).no_tabs(LONG, on_tab_level=True).build_turtle()

        assert_pose(t, (0, -30), 0)
        assert t.as_path().vertices()[:, 0].min() == pytest.approx(-3)


# =============================================================================
# Turns
# =============================================================================


class TestTurns:
    def test_base_pivot_on_base_level(self, tabs_options, assert_pose):
        assert_pose(TabbedFace.create(tabs_options).right().build_turtle(), (0, 0), 90)

    def test_tab_pivot_on_base_level(self, assert_pose):
        """Measured on the tab line, a right turn is shorter on the inner base line."""
        options = FaceOptions(tab_width=3, turn_level="tab")
        t = TabbedFace.create(options).right().build_turtle()

        assert_pose(t, (-3, 3), 90)

    def test_auto_pivot(self, assert_pose):
        """Turns away from the tabs pivot on the tab line, towards them on the base line."""
        options = FaceOptions(tab_width=3, tabs_dir="left", turn_level="auto")

        assert_pose(TabbedFace.create(options).right().build_turtle(), (-3, 3), 90)
        assert_pose(TabbedFace.create(options).left().build_turtle(), (0, 0), -90)

    def test_box_correction_values(self):
        assert box_correction(3, 0) == pytest.approx(1.5)
        assert box_correction(3, 60) == pytest.approx(1)
        assert box_correction(3, 90) == pytest.approx(0)
        assert box_correction(3, 120) == 0

    def test_tab_width_for_acute_angle(self):
        """Tabs through a wall at a sharper corner get longer."""
        assert tab_width_for_acute_angle(90, 3) == pytest.approx(3)
        # Interior angle 60: 3 / sin 60 through the wall plus 3 / tan 60 to clear it.
        assert tab_width_for_acute_angle(120, 3) == pytest.approx(3 * np.sqrt(3))
        assert tab_width_for_acute_angle(60, 3) == pytest.approx(2 * np.sqrt(3))
        with pytest.raises(ValueError, match="angle_deg must be between 0 and 180"):
            tab_width_for_acute_angle(180, 3)

    def test_normalize_angle_deg(self):
        assert normalize_angle_deg(450) == pytest.approx(90)
        assert normalize_angle_deg(180) == pytest.approx(-180)
        assert normalize_angle_deg(-190) == pytest.approx(170)

    def test_box_mode_adds_forward(self, assert_pose):
        options = FaceOptions(tab_width=3, box_mode=True)
        t = TabbedFace.create(options).right(60).build_turtle()

        assert_pose(t, (np.sin(np.radians(60)), -1.5), 60)

    def test_near_half_turn_on_tab_level_warns(self, tabs_options, assert_pose):
        face = TabbedFace.create(tabs_options).to_tab_level().right(180).from_tab_level()

        with pytest.warns(UserWarning, match="cannot be compensated"):
            t = face.build_turtle()

        assert_pose(t, (0, 0), 180)

    def test_arc_without_radius_on_tab_level(self, tabs_options):
        """arc_right() is a sharp turn on the base line and a quarter circle on the tab line."""
        face = TabbedFace.create(tabs_options).to_tab_level().arc_right().from_tab_level()
        arc = face.build_turtle().commands[-2]

        assert arc.radius_x == pytest.approx(3)

    @pytest.mark.parametrize("tabs_dir", ["left", "right"])
    @pytest.mark.parametrize("turn_level", ["base", "tab", "auto"])
    @pytest.mark.parametrize(
        "corner",
        [
            lambda f: f.left(),
            lambda f: f.arc_left(90, 4),
            lambda f: f.arc_left(),
            lambda f: f.bevel_left(),
            lambda f: f.smooth_left(90, 4),
            lambda f: f.round_corner_left(4),
        ],
    )
    def test_left_corners_close_on_tab_level(self, corner, turn_level, tabs_dir):
        """Left corners are consistent between the two levels, on either tabs side."""
        options = FaceOptions(tab_width=3, tabs_dir=tabs_dir, turn_level=turn_level)

        rectangle(TabbedFace.create(options), corner).close_face()


# =============================================================================
# Named tabs
# =============================================================================


class TestNamedTabs:
    def test_tabs_def_registers(self, tabs_options):
        face = TabbedFace.create(tabs_options).tabs_def("side", LONG)

        assert face.tt["side"].pattern == LONG
        assert face.pat["side"] == LONG
        assert face.fit["side"].pattern == LONG.matching_tabs().reverse()

    def test_duplicate_name(self, tabs_options):
        face = TabbedFace.create(tabs_options).tabs_def("side", LONG)

        with pytest.raises(ValueError, match="already defined"):
            face.tabs_def("side", SHORT)

    def test_unknown_name(self, tabs_options):
        with pytest.raises(KeyError, match="No tabs named"):
            TabbedFace.create(tabs_options).tabs("missing")

    def test_invalid_params(self, tabs_options):
        with pytest.raises(TypeError, match="Expected TabsPattern"):
            TabbedFace.create(tabs_options).tabs(30)

    def test_reverse_modifier(self, tabs_options):
        pattern = TabsPattern.base(1).add_tab(2).add_base(5)
        face = TabbedFace.create(tabs_options).tabs_def("a", pattern, start_on_tab=False)
        reversed_face = face.tabs_def("b", "a", reverse=True)

        assert reversed_face.tt["b"].pattern == pattern.reverse()
        assert reversed_face.tt["b"].end_on_tab is False

    def test_options_modifier(self, tabs_options):
        face = TabbedFace.create(tabs_options).tabs_def("a", LONG, options={"tab_width": 5})
        t = face.build_turtle()

        assert face.tt["a"].options["tab_width"] == 5
        assert t.as_path().vertices()[:, 0].min() == pytest.approx(-5)

    def test_adjoining_faces(self, tabs_options):
        """The fit of an edge closes an adjoining face with the same rotation."""
        front = (
            TabbedFace.create(tabs_options, "down")
            .tabs_def("right_side", LONG)
            .right()
            .tabs_def("bottom", SHORT)
            .right()
            .tabs_def("left_side", "right_side", reverse=True)
            .right()
            .no_tabs("bottom")
            .right()
            .close_face()
        )
        side = (
            TabbedFace.create(tabs_options, "down")
            .tabs_def("front", front.fit["left_side"])
            .right()
            .tabs_def("bottom", SHORT)
            .right()
            .tabs_def("back", "front", reverse=True)
            .right()
            .no_tabs("bottom")
            .right()
            .close_face()
        )

        assert side.tt["front"].pattern == LONG.matching_tabs()
        assert set(side.tt) == {"front", "bottom", "back"}


# =============================================================================
# Free turtle drawing and options
# =============================================================================


class TestTurtleIntegration:
    def test_face_as_turtle_function(self, tabs_options, assert_pose):
        face = TabbedFace.create(tabs_options, "right").forward(10).right().forward(5)
        t = Turtle.create((1, 1)).then(face)

        # The start direction is ignored when used as a turtle function.
        assert_pose(t, (6, -9), 90)

    def test_as_path(self, tabs_options):
        face = TabbedFace.create(tabs_options).forward(10)

        assert face.as_path() == face.build_turtle().as_path()

    def test_then_turtle_receives_level(self, tabs_options, assert_pose):
        seen = []

        def draw(t, length, on_tab_level):
            seen.append(on_tab_level)
            return t.forward(length)

        face = (
            TabbedFace.create(tabs_options)
            .then_turtle(draw, 2)
            .to_tab_level()
            .then_turtle(draw, 3)
            .from_tab_level()
            .to_base_level()
        )

        assert_pose(face.build_turtle(), (0, -5), 0)
        assert seen == [True, True]

    def test_branch_turtle_from_tab_level(self, tabs_options, assert_pose):
        seen = []

        def mark(t, on_tab_level):
            seen.append((t.pos, on_tab_level))
            return t.forward(1)

        t = TabbedFace.create(tabs_options).branch_turtle(mark, from_tab_level=True).build_turtle()

        assert_pose(t, (0, 0), 0)
        np.testing.assert_allclose(seen[0][0], (-3, 0), atol=1e-12)
        assert seen[0][1] is True

    def test_set_options(self, tabs_options):
        face = TabbedFace.create(tabs_options).set_options(tab_width=5)

        assert face.options.tab_width == 5

    def test_with_options_restores(self, tabs_options):
        face = TabbedFace.create(tabs_options).with_options(
            {"tab_width": 5}, lambda f: f.tabs(LONG)
        )

        assert face.options.tab_width == 3
        assert face.build_turtle().as_path().vertices()[:, 0].min() == pytest.approx(-5)
