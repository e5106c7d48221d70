"""Mass tolerance windows (ppm and absolute).

A tolerance turns a centre value into an inclusive ``[min, max]`` window.
PPM windows scale with the centre value, absolute windows do not.

Examples
--------
>>> tol = PpmTolerance(20.0)
>>> low, high = tol.get_range(500.0)
>>> # (499.99, 500.01)
>>> tol.within(500.005, 500.0)
True
"""

from __future__ import annotations

from typing import Tuple, Union

from .constants import DEFAULT_PPM_TOLERANCE
from .exceptions import InvalidInputError


class Tolerance:
    """Base class for tolerance windows."""

    unit = ""

    def __init__(self, value: float):
        if not value > 0:
            raise InvalidInputError(f"Tolerance must be positive, got {value}")
        self.value = float(value)

    def half_width(self, center: float) -> float:
        raise NotImplementedError

    def get_range(self, center: float) -> Tuple[float, float]:
        """Return the inclusive (min, max) window around ``center``."""
        width = self.half_width(center)
        return center - width, center + width

    def get_minimum_value(self, center: float) -> float:
        return self.get_range(center)[0]

    def get_maximum_value(self, center: float) -> float:
        return self.get_range(center)[1]

    def within(self, experimental: float, theoretical: float) -> bool:
        """Check whether ``experimental`` falls inside the window around ``theoretical``."""
        low, high = self.get_range(theoretical)
        return low <= experimental <= high

    def __repr__(self):
        return f"{type(self).__name__}({self.value})"

    def __eq__(self, other):
        return type(self) is type(other) and self.value == other.value

    def __hash__(self):
        return hash((type(self).__name__, self.value))


class PpmTolerance(Tolerance):
    """Tolerance in parts per million of the centre value."""

    unit = "ppm"

    def half_width(self, center: float) -> float:
        return abs(center) * self.value / 1e6


class AbsoluteTolerance(Tolerance):
    """Tolerance in absolute units (Da or Th)."""

    unit = "Da"

    def half_width(self, center: float) -> float:
        return self.value


def as_tolerance(tolerance: Union[Tolerance, float, None]) -> Tolerance:
    """Coerce a tolerance argument; bare numbers are read as ppm.

    None gives the default peak-finding tolerance (20 ppm).

    Raises
    ------
    InvalidInputError
        If the value is not positive.
    """
    if tolerance is None:
        return PpmTolerance(DEFAULT_PPM_TOLERANCE)
    if isinstance(tolerance, Tolerance):
        if not tolerance.value > 0:
            raise InvalidInputError(f"Tolerance must be positive, got {tolerance.value}")
        return tolerance
    return PpmTolerance(tolerance)
