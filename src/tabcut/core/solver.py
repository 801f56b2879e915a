"""
One-dimensional root finding by bracketing and bisection.

Used to back-solve an unknown turtle distance or angle from a desired
geometric outcome, e.g. "go forward until y == -1".

Example:
    >>> solve_for_zero(lambda x: x - 5, min=0, max=100, resolution=1e-6)
    >>> t = turtle_solve(
    ...     Turtle.create(),
    ...     action=lambda t, x: t.forward(x),
    ...     find_zero=lambda t, x: t.pos[1] + 1,
    ... )
"""

from __future__ import annotations

import warnings
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from tabcut.errors import NoZeroFound

if TYPE_CHECKING:
    from tabcut.core.turtle import Turtle


@dataclass(frozen=True)
class FinderParams:
    """Search parameters of solve_for_zero.

    Attributes:
        min: Start of the search interval
        max: End of the search interval
        resolution: Bisection stops once the step is at most this size
        start_step: First step of the bracketing search
        max_step: Cap of the doubling step (defaults to max)
        value_on_not_found: Returned instead of raising NoZeroFound
    """

    min: float = 0.0
    max: float = 1e6
    resolution: float = 1e-3
    start_step: float = 1.0
    max_step: float | None = None
    value_on_not_found: float | None = None

    def __post_init__(self) -> None:
        if self.max < self.min:
            raise ValueError(f"max ({self.max}) must be >= min ({self.min})")
        if self.resolution <= 0:
            raise ValueError(f"resolution must be positive, got {self.resolution}")
        if self.start_step <= 0:
            raise ValueError(f"start_step must be positive, got {self.start_step}")
        if self.max_step is not None and self.max_step <= 0:
            raise ValueError(f"max_step must be positive, got {self.max_step}")

    @property
    def effective_max_step(self) -> float:
        return self.max if self.max_step is None else self.max_step


# Defaults for solving turtle distances: positive, reasonably sized values.
TURTLE_FINDER_PARAMS = FinderParams(min=1e-3, max=1000.0, resolution=1e-3)


def _params(params: FinderParams | None, base: FinderParams, overrides: dict[str, Any]) -> FinderParams:
    params = base if params is None else params
    return replace(params, **overrides) if overrides else params


def solve_for_zero(
    value: Callable[[float], float],
    params: FinderParams | None = None,
    **overrides: Any,
) -> float:
    """Find x such that value(x) changes sign around x.

    Starting at ``min``, steps forward (doubling the step, capped at
    ``max_step``) until a sign change is bracketed, then bisects the bracket
    until the step is at most ``resolution``.

    Args:
        value: Function of one variable
        params: Search parameters
        **overrides: Individual FinderParams fields, e.g. ``min=0, max=10``

    Returns:
        The left end of the final bracket, within ``resolution`` of the root

    Raises:
        NoZeroFound: If no sign change is found up to ``max`` and no
            ``value_on_not_found`` is set
    """
    p = _params(params, FinderParams(), overrides)
    max_step = p.effective_max_step

    x1 = p.min
    y1 = value(x1)
    y_min = y1
    if y1 == 0:
        return x1

    step = p.start_step

    def step_end(x: float, s: float) -> float:
        return min(max(x + s, p.min), p.max)

    x2 = step_end(x1, step)
    y2 = value(x2)
    while y1 * y2 > 0:
        if x2 == p.max:
            if p.value_on_not_found is not None:
                warnings.warn(
                    f"No zero found in [{p.min}, {p.max}], "
                    f"using value_on_not_found={p.value_on_not_found}",
                    UserWarning,
                    stacklevel=2,
                )
                return p.value_on_not_found
            raise NoZeroFound(p.min, p.max, y_min, y2)
        step = min(step * 2, max_step)
        x1, y1 = x2, y2
        x2 = step_end(x1, step)
        y2 = value(x2)

    # The bracket is [x1, x1 + step]; the clamped end may be shorter.
    step = x2 - x1
    while step > p.resolution:
        step /= 2
        x_mid = x1 + step
        y_mid = value(x_mid)
        if y1 * y_mid > 0:
            x1, y1 = x_mid, y_mid
    return x1


def turtle_solve(
    turtle: Turtle,
    action: Callable[[Turtle, float], Turtle],
    find_zero: Callable[[Turtle, float], float],
    test_action: Callable[[Turtle, float], Turtle] | None = None,
    params: FinderParams | None = None,
    **overrides: Any,
) -> Turtle:
    """Apply ``action(turtle, x)`` with the x that zeroes ``find_zero``.

    The search evaluates ``find_zero(test_action(turtle, x), x)``; the test
    action defaults to the action itself. Search defaults are
    TURTLE_FINDER_PARAMS.
    """
    test = action if test_action is None else test_action
    p = _params(params, TURTLE_FINDER_PARAMS, overrides)
    x = solve_for_zero(lambda x: find_zero(turtle.then(test, x), x), p)
    return turtle.then(action, x)
