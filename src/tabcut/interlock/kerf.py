"""
Kerf correction values.

Kerf is the size correction needed to obtain the desired tightness between
two cut pieces. It depends on the laser, its focus, the material and the
desired fit, so it is usually calibrated experimentally.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Kerf:
    """One-side kerf correction.

    Attributes:
        one_side: Distance (in drawing units) by which each of two adjacent
            edges is moved towards the other
    """

    one_side: float = 0.0

    @classmethod
    def one_side_units(cls, one_side: float) -> Kerf:
        """Kerf given as the displacement of one of a pair of edges, in units."""
        return cls(float(one_side))

    @classmethod
    def total(cls, total: float) -> Kerf:
        """Kerf given as the total relative displacement of both edges, in units."""
        return cls(total / 2)

    @classmethod
    def one_side_millimeters(
        cls, one_side_mm: float, millimeters_per_unit: float = 1.0
    ) -> Kerf:
        if millimeters_per_unit <= 0:
            raise ValueError(
                f"millimeters_per_unit must be positive, got {millimeters_per_unit}"
            )
        return cls(one_side_mm / millimeters_per_unit)

    @classmethod
    def millimeters(cls, total_mm: float, millimeters_per_unit: float = 1.0) -> Kerf:
        """Kerf given as the total displacement of both edges, in millimeters."""
        return cls.one_side_millimeters(total_mm / 2, millimeters_per_unit)


# Zero kerf, corresponding to a very loose connection.
Kerf.ZERO = Kerf(0.0)
ZERO = Kerf.ZERO
