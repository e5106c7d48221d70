"""Local extrema of smoothed XIC traces.

The smoothed intensities of a trace are fitted with an Akima spline; its
stationary points are classified by the sign of the second derivative.
Extremum times are reported on the reference time axis (``rt + rt_shift``)
so extrema of aligned traces can be compared directly.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import numpy as np
from scipy.interpolate import Akima1DInterpolator

from ..constants import MIN_SPLINE_POINTS
from ..exceptions import InvalidInputError


class ExtremumType(Enum):
    """Kind of stationary point."""

    MINIMUM = "minimum"
    MAXIMUM = "maximum"


@dataclass(order=True, frozen=True)
class Extremum:
    """A local minimum or maximum of a trace.

    Ordered by retention time, then intensity.
    """

    retention_time: float
    intensity: float
    type: ExtremumType = field(compare=False)


@dataclass(frozen=True)
class PeakRegion:
    """A chromatographic peak bounded by ``start_rt`` and ``end_rt``."""

    apex_rt: float
    start_rt: float
    end_rt: float

    @property
    def width(self) -> float:
        return self.end_rt - self.start_rt


def build_smoothed_spline(
    retention_times: np.ndarray,
    smoothed_intensities: np.ndarray,
) -> Optional[Akima1DInterpolator]:
    """Akima spline through smoothed intensities, or None for short traces.

    Raises InvalidInputError if two peaks share a retention time.
    """
    if len(retention_times) < MIN_SPLINE_POINTS:
        return None

    retention_times = np.asarray(retention_times, dtype=np.float64)
    if np.any(np.diff(retention_times) <= 0):
        raise InvalidInputError("Retention times must be strictly increasing.")
    return Akima1DInterpolator(
        retention_times, np.asarray(smoothed_intensities, dtype=np.float64)
    )


def find_extrema(
    smoothed_spline: Optional[Akima1DInterpolator],
    retention_times: np.ndarray,
    intensities: np.ndarray,
    rt_shift: float = 0.0,
) -> List[Extremum]:
    """Find the local minima and maxima of a smoothed trace.

    Parameters
    ----------
    smoothed_spline : Akima1DInterpolator or None
        Spline of the smoothed trace; None yields no extrema
    retention_times, intensities : np.ndarray
        Raw trace, used to report the (unsmoothed) intensity at each extremum
    rt_shift : float
        Added to each extremum time to project it onto the reference axis

    Returns
    -------
    extrema : list of Extremum
        Sorted by (projected) retention time
    """
    if smoothed_spline is None:
        return []

    stationary = smoothed_spline.derivative().roots(extrapolate=False)
    stationary = np.unique(stationary[np.isfinite(stationary)])

    extrema = []
    for point in stationary:
        curvature = smoothed_spline(point, 2)
        if curvature < 0:
            extremum_type = ExtremumType.MAXIMUM
        elif curvature > 0:
            extremum_type = ExtremumType.MINIMUM
        else:
            continue

        intensity = float(np.interp(point, retention_times, intensities))
        extrema.append(Extremum(float(point + rt_shift), intensity, extremum_type))

    extrema.sort()
    return extrema
