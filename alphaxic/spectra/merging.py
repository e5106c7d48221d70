"""Merging of m/z-sorted peak arrays into one centroid-like spectrum.

Used when several component spectra (e.g. TOF frames of one scan) have to be
combined: arrays are merged pairwise with a two-pointer sweep, then
neighbouring points closer than a ppm tolerance are collapsed into one.

Examples
--------
>>> mz, intensity = merge_spectra(
...     [np.array([1.0, 3.0, 5.0]), np.array([2.0, 4.0])],
...     [np.array([1.0, 3.0, 5.0]), np.array([2.0, 4.0])],
... )
>>> mz
array([1., 2., 3., 4., 5.])
"""

from typing import List, Tuple

import numpy as np
from numba import njit

from ..exceptions import InvalidInputError

DEFAULT_MERGE_PPM_TOLERANCE = 10.0


@njit
def two_pointer_merge(
    mz_array1: np.ndarray,
    mz_array2: np.ndarray,
    intensity_array1: np.ndarray,
    intensity_array2: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    """Merge two m/z-sorted arrays (and their intensities) into one sorted array.

    Parameters
    ----------
    mz_array1, mz_array2 : np.ndarray
        m/z values, each sorted ascending
    intensity_array1, intensity_array2 : np.ndarray
        Matching intensities

    Returns
    -------
    merged_mz : np.ndarray (float64)
    merged_intensity : np.ndarray (float64)
    """
    n1 = len(mz_array1)
    n2 = len(mz_array2)
    merged_mz = np.empty(n1 + n2, dtype=np.float64)
    merged_intensity = np.empty(n1 + n2, dtype=np.float64)

    p1 = 0
    p2 = 0
    while p1 < n1 or p2 < n2:
        if p2 == n2 or (p1 < n1 and mz_array1[p1] < mz_array2[p2]):
            merged_mz[p1 + p2] = mz_array1[p1]
            merged_intensity[p1 + p2] = intensity_array1[p1]
            p1 += 1
        else:
            merged_mz[p1 + p2] = mz_array2[p2]
            merged_intensity[p1 + p2] = intensity_array2[p2]
            p2 += 1

    return merged_mz, merged_intensity


@njit
def collapse_arrays(
    mz_array: np.ndarray,
    intensity_array: np.ndarray,
    ppm_tolerance: float = DEFAULT_MERGE_PPM_TOLERANCE,
) -> Tuple[np.ndarray, np.ndarray]:
    """Collapse runs of neighbouring m/z values into single points.

    A run keeps growing while the next m/z lies within ``ppm_tolerance`` of
    the last m/z added to it (chained clustering). Each run becomes one point
    with the mean m/z and the summed intensity.

    Parameters
    ----------
    mz_array : np.ndarray
        Sorted m/z values
    intensity_array : np.ndarray
        Matching intensities
    ppm_tolerance : float
        Clustering tolerance in ppm (default: 10.0)

    Returns
    -------
    collapsed_mz : np.ndarray (float64)
    collapsed_intensity : np.ndarray (float64)
    """
    n = len(mz_array)
    collapsed_mz = np.empty(n, dtype=np.float64)
    collapsed_intensity = np.empty(n, dtype=np.float64)
    n_out = 0

    i = 0
    while i < n:
        mz_sum = mz_array[i]
        intensity_sum = intensity_array[i]
        upper = mz_array[i] + mz_array[i] * ppm_tolerance / 1e6
        j = i + 1
        while j < n and mz_array[j] <= upper:
            mz_sum += mz_array[j]
            intensity_sum += intensity_array[j]
            upper = mz_array[j] + mz_array[j] * ppm_tolerance / 1e6
            j += 1

        collapsed_mz[n_out] = mz_sum / (j - i)
        collapsed_intensity[n_out] = intensity_sum
        n_out += 1
        i = j

    return collapsed_mz[:n_out], collapsed_intensity[:n_out]


def merge_spectra(
    mz_arrays: List[np.ndarray],
    intensity_arrays: List[np.ndarray],
    ppm_tolerance: float = DEFAULT_MERGE_PPM_TOLERANCE,
) -> Tuple[np.ndarray, np.ndarray]:
    """Merge several m/z-sorted spectra into one collapsed spectrum.

    Parameters
    ----------
    mz_arrays : list of np.ndarray
        m/z arrays, each sorted ascending
    intensity_arrays : list of np.ndarray
        Matching intensity arrays
    ppm_tolerance : float
        Tolerance for collapsing near-duplicate m/z values (default: 10.0)

    Returns
    -------
    mz : np.ndarray
    intensity : np.ndarray

    Raises
    ------
    InvalidInputError
        If no arrays are given, the lists differ in length, or a pair of
        arrays differs in length.
    """
    if len(mz_arrays) == 0 or len(mz_arrays) != len(intensity_arrays):
        raise InvalidInputError(
            f"Expected matching, non-empty lists of arrays, got {len(mz_arrays)} m/z "
            f"and {len(intensity_arrays)} intensity arrays"
        )

    merged_mz = np.asarray(mz_arrays[0], dtype=np.float64)
    merged_intensity = np.asarray(intensity_arrays[0], dtype=np.float64)
    if len(merged_mz) != len(merged_intensity):
        raise InvalidInputError("m/z and intensity arrays must have the same length")

    for mz, intensity in zip(mz_arrays[1:], intensity_arrays[1:]):
        mz = np.asarray(mz, dtype=np.float64)
        intensity = np.asarray(intensity, dtype=np.float64)
        if len(mz) != len(intensity):
            raise InvalidInputError("m/z and intensity arrays must have the same length")
        merged_mz, merged_intensity = two_pointer_merge(merged_mz, mz, merged_intensity, intensity)

    return collapse_arrays(merged_mz, merged_intensity, ppm_tolerance)
