"""Pytest configuration for the tabcut test suite."""

import numpy as np
import pytest

from tabcut import Kerf, TabsOptions


@pytest.fixture
def tabs_options():
    """Plain tab options: 3 units wide tabs to the left, no kerf, no radii."""
    return TabsOptions(kerf=Kerf.ZERO, tab_width=3.0, tabs_dir="left")


@pytest.fixture
def assert_pose():
    """Asserts the position and heading of a turtle."""

    def check(turtle, pos, angle_deg, atol=1e-9):
        np.testing.assert_allclose(turtle.pos, pos, atol=atol)
        assert ((turtle.angle_deg - angle_deg + 180) % 360 - 180) == pytest.approx(0, abs=atol)

    return check
