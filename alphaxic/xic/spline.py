"""Resampling of XIC traces onto uniform grids.

``XicLinearSpline`` and ``XicCubicSpline`` resample the (RT, intensity) or
(scan index, intensity) series of an XIC at a fixed step. Optional
zero-intensity padding points before and after the trace pin the
interpolant to zero at the edges, which suppresses cubic overshoot.

Examples
--------
>>> spline = XicCubicSpline(step_size=0.05, num_padding_points=1, padding_step=0.1)
>>> spline.set_xic_spline_xy_data(xic)
>>> xic.xy_data[:, 0].min(), xic.xy_data[:, 0].max()
(0.9, 2.0)
>>> XicLinearSpline(0.05).set_xic_spline_xy_data(xic, cycle=True)
"""

from typing import Optional

import numpy as np
from scipy.interpolate import CubicSpline

from ..constants import MIN_SPLINE_POINTS
from ..exceptions import InsufficientDataError, InvalidInputError, LengthMismatchError
from .chromatogram import ExtractedIonChromatogram

# Absorbs float rounding when counting grid points, e.g. (1.9 - 1.0) / 0.05
GRID_EPSILON = 1e-9


class XicSpline:
    """Base class for XIC resampling.

    Parameters
    ----------
    step_size : float
        Grid spacing, in RT units or scan indices depending on the mode
    num_padding_points : int
        Zero-intensity points added before and after the trace (default: 0)
    padding_step : float, optional
        Spacing of the padding points (default: ``step_size``)

    Raises
    ------
    InvalidInputError
        If ``step_size`` or ``padding_step`` is not positive, or
        ``num_padding_points`` is negative.
    """

    def __init__(
        self,
        step_size: float,
        num_padding_points: int = 0,
        padding_step: Optional[float] = None,
    ):
        if not step_size > 0:
            raise InvalidInputError(f"step_size must be positive, got {step_size}")
        if padding_step is None:
            padding_step = step_size
        if not padding_step > 0:
            raise InvalidInputError(f"padding_step must be positive, got {padding_step}")
        if num_padding_points < 0:
            raise InvalidInputError(
                f"num_padding_points must be >= 0, got {num_padding_points}"
            )

        self.step_size = float(step_size)
        self.num_padding_points = int(num_padding_points)
        self.padding_step = float(padding_step)

    def interpolate(self, x: np.ndarray, y: np.ndarray, points: np.ndarray) -> np.ndarray:
        """Evaluate the interpolant through (x, y) at ``points``."""
        raise NotImplementedError

    def get_xic_spline_data(
        self,
        x: np.ndarray,
        y: np.ndarray,
        start: float,
        end: float,
    ) -> np.ndarray:
        """Resample (x, y) on the grid ``start, start + step, ...`` up to ``end``.

        Parameters
        ----------
        x : np.ndarray
            Strictly increasing sample positions
        y : np.ndarray
            Sample values
        start, end : float
            Grid range (``end`` is included when it lies on the grid)

        Returns
        -------
        xy_data : np.ndarray
            Shape (n, 2), columns are grid position and interpolated value

        Raises
        ------
        LengthMismatchError
            If ``x`` and ``y`` differ in length.
        InsufficientDataError
            If fewer than 5 points are given.
        InvalidInputError
            If ``x`` is not strictly increasing (e.g. two scans share an RT).
        """
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        if len(x) != len(y):
            raise LengthMismatchError("Input arrays must have the same length.")
        if len(x) < MIN_SPLINE_POINTS:
            raise InsufficientDataError("Input arrays must contain at least 5 points.")
        if np.any(np.diff(x) <= 0):
            raise InvalidInputError("Sample positions must be strictly increasing.")

        n_points = int(np.floor((end - start) / self.step_size + GRID_EPSILON)) + 1
        grid = start + np.arange(max(n_points, 0)) * self.step_size
        return np.column_stack([grid, self.interpolate(x, y, grid)])

    def set_xic_spline_xy_data(self, xic: ExtractedIonChromatogram, cycle: bool = False):
        """Resample an XIC and store the result in ``xic.xy_data``.

        Parameters
        ----------
        xic : ExtractedIonChromatogram
            Trace to resample
        cycle : bool
            Use zero-based scan indices instead of retention times as x
        """
        if cycle:
            x = xic.scan_indices.astype(np.float64)
        else:
            x = xic.retention_times
        y = xic.intensities

        n_pad = self.num_padding_points
        if n_pad > 0:
            offsets = self.padding_step * np.arange(1, n_pad + 1)
            x = np.concatenate([x[0] - offsets[::-1], x, x[-1] + offsets])
            y = np.concatenate([np.zeros(n_pad), y, np.zeros(n_pad)])

        start = x[0]
        if not cycle:
            start = max(start, 0.0)
        xic.xy_data = self.get_xic_spline_data(x, y, start, x[-1])


class XicLinearSpline(XicSpline):
    """Piecewise-linear resampling."""

    def interpolate(self, x: np.ndarray, y: np.ndarray, points: np.ndarray) -> np.ndarray:
        return np.interp(points, x, y)


class XicCubicSpline(XicSpline):
    """Natural cubic spline resampling."""

    def interpolate(self, x: np.ndarray, y: np.ndarray, points: np.ndarray) -> np.ndarray:
        return CubicSpline(x, y, bc_type="natural")(points)
