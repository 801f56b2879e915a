"""
Exception types raised while building patterns, turtles and faces.

Every error is raised synchronously at the point of detection and aborts the
construction of the current pattern or face. There is no partial-result mode:
fix the input and rebuild.
"""

from __future__ import annotations


class TabcutError(Exception):
    """Base class of all tabcut errors."""

    pass


class InvalidLength(TabcutError, ValueError):
    """A negative length was requested for a pattern segment."""

    pass


class InvalidCount(TabcutError, ValueError):
    """The requested tooth/gap distribution needs a negative count."""

    pass


class NegativeEdge(TabcutError, ValueError):
    """Kerf correction plus corner radius exceeds the straight span of an edge."""

    pass


class LevelConflict(TabcutError, ValueError):
    """Two adjacent required level preferences disagree."""

    pass


class FaceNotClosed(TabcutError, ValueError):
    """The traced outline does not return to its start pose.

    Attributes:
        position: Observed end position
        expected_position: Start position of the face
        angle_deg: Observed end heading, normalized to [-180, 180)
        expected_angle_deg: Start heading, normalized to [-180, 180)
    """

    def __init__(
        self,
        position: tuple[float, float],
        expected_position: tuple[float, float],
        angle_deg: float,
        expected_angle_deg: float,
    ) -> None:
        self.position = position
        self.expected_position = expected_position
        self.angle_deg = angle_deg
        self.expected_angle_deg = expected_angle_deg
        super().__init__(
            "The face shape is not closed properly: "
            f"angle_deg={angle_deg:.6g} (expected: {expected_angle_deg:.6g}), "
            f"pos=[{position[0]:.6g}, {position[1]:.6g}] "
            f"(expected: [{expected_position[0]:.6g}, {expected_position[1]:.6g}])"
        )


class EmptyStack(TabcutError, IndexError):
    """A turtle stack was peeked or popped with nothing saved."""

    def __init__(self, key: str | int | None) -> None:
        self.key = key
        name = "default" if key is None else repr(key)
        super().__init__(f"Stack {name} is empty")


class NoZeroFound(TabcutError, ValueError):
    """The root finder found no sign change in its search interval."""

    def __init__(
        self, min: float, max: float, value_at_min: float, value_at_max: float
    ) -> None:
        self.min = min
        self.max = max
        self.value_at_min = value_at_min
        self.value_at_max = value_at_max
        super().__init__(
            f"No zero found in the range (min={min}, value(min)={value_at_min}, "
            f"max={max}, value(max)={value_at_max})"
        )
