"""Intensity smoothing for XIC traces.

Two window smoothers, both leaving the first and last ``window // 2`` points
untouched:

- weighted smoothing: each window value is weighted by its share of the
  window sum, so the result is ``sum(w**2) / sum(w)`` and large points
  dominate
- moving average: plain mean over the window

``smooth_intensities`` applies them in that order. The smoothed trace is the
input for extremum detection (see :mod:`alphaxic.xic.extrema`).
"""

import numpy as np
from numba import njit

from ..constants import DEFAULT_SMOOTH_DEGREE
from ..exceptions import InvalidInputError


@njit
def weighted_smoothing(intensities: np.ndarray, points_to_average: int) -> np.ndarray:
    """Intensity-weighted window smoothing (numba-optimized).

    Args:
        intensities: Input intensity array
        points_to_average: Window size (odd numbers keep the window centred)

    Returns:
        Smoothed intensity array (same length as input)
    """
    n = len(intensities)
    half = points_to_average // 2
    smoothed = np.empty(n, dtype=np.float64)

    for i in range(n):
        if i < half or i >= n - half:
            smoothed[i] = intensities[i]
            continue

        window_sum = 0.0
        square_sum = 0.0
        for j in range(points_to_average):
            value = intensities[i + j - half]
            window_sum += value
            square_sum += value * value

        smoothed[i] = square_sum / window_sum if window_sum > 0 else 0.0

    return smoothed


@njit
def moving_average_smoothing(intensities: np.ndarray, points_to_average: int) -> np.ndarray:
    """Moving-average window smoothing (numba-optimized).

    Args:
        intensities: Input intensity array
        points_to_average: Window size (odd numbers keep the window centred)

    Returns:
        Smoothed intensity array (same length as input)
    """
    n = len(intensities)
    half = points_to_average // 2
    smoothed = np.empty(n, dtype=np.float64)

    for i in range(n):
        if i < half or i >= n - half:
            smoothed[i] = intensities[i]
            continue

        window_sum = 0.0
        for j in range(points_to_average):
            window_sum += intensities[i + j - half]
        smoothed[i] = window_sum / points_to_average

    return smoothed


def smooth_intensities(
    intensities: np.ndarray,
    points_to_average: int = DEFAULT_SMOOTH_DEGREE,
) -> np.ndarray:
    """Weighted smoothing followed by a moving average.

    Args:
        intensities: Input intensity array
        points_to_average: Window size of both passes (default: 5)

    Returns:
        Smoothed intensity array (same length as input)

    Raises:
        InvalidInputError: If ``points_to_average`` is not positive

    Examples:
        >>> smooth_intensities(np.array([1.0, 3.0, 1.0, 1.0, 3.0, 5.0, 10.0]), 3)
    """
    if points_to_average <= 0:
        raise InvalidInputError(
            f"points_to_average must be greater than 0, got {points_to_average}"
        )

    intensities = np.asarray(intensities, dtype=np.float64)
    smoothed = weighted_smoothing(intensities, points_to_average)
    return moving_average_smoothing(smoothed, points_to_average)
