"""Retention-time alignment of XIC traces by cross-correlation.

Each trace is padded with zero-intensity points at its average RT spacing,
sampled by linear interpolation on a uniform grid of ``1 / resolution``
minutes, and the lag maximising the FFT cross-correlation with the reference
is returned as an RT shift. A trace eluting later than the reference gets a
negative shift: ``rt + shift`` maps it onto the reference time axis.

Examples
--------
>>> shift = cross_correlation_shift(ref_rt, ref_intensity, rt, intensity)
>>> # apex at 3.1 vs reference apex at 3.0 -> shift = -0.1
"""

from typing import Tuple

import numpy as np

from ..constants import ALIGNMENT_PADDING_POINTS
from ..exceptions import InsufficientDataError, InvalidInputError


def pad_profile(
    retention_times: np.ndarray,
    intensities: np.ndarray,
    n_points: int = ALIGNMENT_PADDING_POINTS,
) -> Tuple[np.ndarray, np.ndarray]:
    """Pad a trace with ``n_points`` zero-intensity points on each side.

    The padding points are spaced by the average RT gap of the trace.

    Raises
    ------
    InsufficientDataError
        If the trace has fewer than 2 points.
    """
    rt = np.asarray(retention_times, dtype=np.float64)
    intensity = np.asarray(intensities, dtype=np.float64)
    if len(rt) < 2:
        raise InsufficientDataError("At least 2 points are needed to build an RT profile")

    gap = (rt[-1] - rt[0]) / (len(rt) - 1)
    before = rt[0] - gap * np.arange(n_points, 0, -1)
    after = rt[-1] + gap * np.arange(1, n_points + 1)

    padded_rt = np.concatenate([before, rt, after])
    padded_intensity = np.concatenate([np.zeros(n_points), intensity, np.zeros(n_points)])
    return padded_rt, padded_intensity


def cross_correlation_shift(
    reference_rt: np.ndarray,
    reference_intensity: np.ndarray,
    retention_times: np.ndarray,
    intensities: np.ndarray,
    resolution: int = 1000,
) -> float:
    """RT shift that best maps a trace onto a reference trace.

    Parameters
    ----------
    reference_rt, reference_intensity : np.ndarray
        Reference trace (not padded)
    retention_times, intensities : np.ndarray
        Trace to align (not padded)
    resolution : int
        Grid points per RT unit (default: 1000)

    Returns
    -------
    rt_shift : float
        Multiple of ``1 / resolution``

    Notes
    -----
    Both signals are zero-padded to twice the grid length before the FFT, so
    the correlation is linear rather than circular.
    """
    if resolution <= 0:
        raise InvalidInputError(f"resolution must be positive, got {resolution}")

    ref_x, ref_y = pad_profile(reference_rt, reference_intensity)
    x, y = pad_profile(retention_times, intensities)

    start = min(ref_x[0], x[0])
    end = max(ref_x[-1], x[-1])
    n = int((end - start) * resolution) + 2
    grid = start + np.arange(n) / resolution

    ref_signal = np.interp(grid, ref_x, ref_y, left=0.0, right=0.0)
    signal = np.interp(grid, x, y, left=0.0, right=0.0)

    n_fft = 2 * n
    correlation = np.fft.irfft(
        np.fft.rfft(ref_signal, n_fft) * np.conj(np.fft.rfft(signal, n_fft)),
        n_fft,
    )

    lag = int(np.argmax(correlation))
    if lag >= n:
        lag -= n_fft
    return lag / resolution
