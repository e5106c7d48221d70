"""Extracted ion chromatograms.

An ``ExtractedIonChromatogram`` wraps the peaks traced for one m/z across
scans and derives the summary statistics used downstream (apex, RT range,
intensity-weighted m/z). It also carries the optional products of later
processing steps: normalised intensities, resampled spline data, the RT shift
to a reference trace and the extrema of the smoothed trace.

Examples
--------
>>> peaks = engine.get_xic(800.3672, 0, PpmTolerance(20))
>>> xic = ExtractedIonChromatogram(peaks)
>>> xic.apex_rt, xic.start_rt, xic.end_rt
(1.6, 1.0, 1.9)
>>> xic.set_normalized_peak_intensities()
>>> xic.normalized_peak_intensities.sum()
100.0
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Sequence

import numpy as np

from ..constants import DEFAULT_SMOOTH_DEGREE, DISCRIMINATION_FACTOR_TO_CUT_PEAK
from ..exceptions import EmptyInputError, InvalidInputError
from .alignment import cross_correlation_shift, pad_profile
from .extrema import Extremum, build_smoothed_spline, find_extrema
from .smoothing import smooth_intensities

if TYPE_CHECKING:
    from scipy.interpolate import Akima1DInterpolator

    from ..indexing.peaks import IndexedPeak

MIN_PEAKS_TO_CUT = 5


class ExtractedIonChromatogram:
    """Chromatographic trace of one m/z.

    Parameters
    ----------
    peaks : sequence of IndexedPeak
        Peaks of the trace, at most one per scan, in any order
    reference : bool
        Marks this trace as the alignment reference of an XICGroups
    smooth_degree : int
        Window of the smoothing used for extremum detection (default: 5)

    Attributes
    ----------
    peaks : list of IndexedPeak
        Sorted by scan index
    apex : IndexedPeak
        Most intense peak (first one on ties)
    apex_index : int
        Position of the apex in ``peaks``
    apex_scan_index : int
        Scan index of the apex
    apex_rt, start_rt, end_rt : float
        RT of the apex, first and last peak
    averaged_m : float
        Intensity-weighted mean m/z
    normalized_peak_intensities : np.ndarray or None
        Set by :meth:`set_normalized_peak_intensities`
    xy_data : np.ndarray or None
        ``(n, 2)`` resampled (x, y) pairs, set by an XicSpline
    rt_shift : float
        Shift onto the reference time axis, set by :meth:`align_to`
    extrema : list of Extremum
        Set by :meth:`find_extrema`

    Raises
    ------
    EmptyInputError
        If ``peaks`` is empty.
    InvalidInputError
        If two peaks share a scan index.
    """

    def __init__(
        self,
        peaks: Sequence[IndexedPeak],
        reference: bool = False,
        smooth_degree: int = DEFAULT_SMOOTH_DEGREE,
    ):
        if len(peaks) == 0:
            raise EmptyInputError("Cannot build an XIC from an empty peak list")

        self.reference = reference
        self.smooth_degree = smooth_degree
        self.normalized_peak_intensities: Optional[np.ndarray] = None
        self.xy_data: Optional[np.ndarray] = None
        self.rt_shift = 0.0
        self.extrema: List[Extremum] = []

        self._set_peaks(sorted(peaks, key=lambda p: p.zero_based_scan_index))

    def _set_peaks(self, peaks: List[IndexedPeak]):
        scan_indices = np.array([p.zero_based_scan_index for p in peaks], dtype=np.int64)
        if len(scan_indices) > 1 and np.any(np.diff(scan_indices) == 0):
            raise InvalidInputError("An XIC cannot contain two peaks from the same scan")

        self.peaks = list(peaks)
        self._scan_indices = scan_indices
        self._retention_times = np.array([p.retention_time for p in peaks], dtype=np.float64)
        self._intensities = np.array([p.intensity for p in peaks], dtype=np.float64)
        mzs = np.array([p.mz for p in peaks], dtype=np.float64)

        self.apex_index = int(np.argmax(self._intensities))
        self.apex = self.peaks[self.apex_index]
        self.apex_scan_index = self.apex.zero_based_scan_index
        self.apex_rt = self.apex.retention_time
        self.start_rt = self.peaks[0].retention_time
        self.end_rt = self.peaks[-1].retention_time

        total = self._intensities.sum()
        if total > 0:
            self.averaged_m = float(np.dot(mzs, self._intensities) / total)
        else:
            self.averaged_m = float(mzs.mean())

        self._smoothed_spline = None
        self._smoothed_built = False
        self.extrema = []
        if self.normalized_peak_intensities is not None:
            self.set_normalized_peak_intensities()

    # ------------------------------------------------------------------
    # Array views
    # ------------------------------------------------------------------

    @property
    def retention_times(self) -> np.ndarray:
        return self._retention_times

    @property
    def intensities(self) -> np.ndarray:
        return self._intensities

    @property
    def scan_indices(self) -> np.ndarray:
        return self._scan_indices

    def __len__(self):
        return len(self.peaks)

    # ------------------------------------------------------------------
    # Derived data
    # ------------------------------------------------------------------

    def set_normalized_peak_intensities(self):
        """Store intensities as percentages of the total (sums to 100)."""
        total = self._intensities.sum()
        if total > 0:
            self.normalized_peak_intensities = self._intensities / total * 100.0
        else:
            self.normalized_peak_intensities = np.full(len(self.peaks), 100.0 / len(self.peaks))

    @property
    def smoothed_spline(self) -> Optional[Akima1DInterpolator]:
        """Akima spline of the smoothed trace (None below 5 peaks)."""
        if not self._smoothed_built:
            smoothed = smooth_intensities(self._intensities, self.smooth_degree)
            self._smoothed_spline = build_smoothed_spline(self._retention_times, smoothed)
            self._smoothed_built = True
        return self._smoothed_spline

    def padded_profile(self):
        """Trace with 5 zero-intensity points added on each side (RT, intensity)."""
        return pad_profile(self._retention_times, self._intensities)

    def profile_at(self, times: np.ndarray) -> np.ndarray:
        """Linear-interpolated intensity of the padded trace, zero outside it."""
        x, y = self.padded_profile()
        return np.interp(times, x, y, left=0.0, right=0.0)

    def align_to(self, reference: ExtractedIonChromatogram, resolution: int = 1000) -> float:
        """Compute and store the RT shift mapping this trace onto ``reference``.

        Parameters
        ----------
        reference : ExtractedIonChromatogram
            Reference trace
        resolution : int
            Cross-correlation grid points per RT unit (default: 1000)

        Returns
        -------
        rt_shift : float
            Negative when this trace elutes later than the reference
        """
        self.rt_shift = cross_correlation_shift(
            reference.retention_times, reference.intensities,
            self._retention_times, self._intensities,
            resolution=resolution,
        )
        return self.rt_shift

    def find_extrema(self) -> List[Extremum]:
        """Find and store extrema of the smoothed trace, in reference time."""
        self.extrema = find_extrema(
            self.smoothed_spline, self._retention_times, self._intensities, self.rt_shift
        )
        return self.extrema

    # ------------------------------------------------------------------
    # Peak splitting
    # ------------------------------------------------------------------

    def cut_peak(self, discrimination_factor: float = DISCRIMINATION_FACTOR_TO_CUT_PEAK):
        """Trim a trace that runs into a second chromatographic peak.

        Walking away from the apex in each direction, the lowest point seen
        so far is the valley. A later point more than ``discrimination_factor``
        (relative to that point) above the valley triggers a cut when it is
        also that far above the point after the valley, or when the scan
        after the valley is missing from the trace. The valley and everything
        beyond it are removed. Traces with fewer than 5 peaks are untouched.

        A cut clears ``xy_data`` and ``extrema`` and keeps ``rt_shift``.
        """
        n = len(self.peaks)
        if n < MIN_PEAKS_TO_CUT:
            return

        intensities = self._intensities
        scan_set = set(self._scan_indices.tolist())

        for direction in (1, -1):
            valley = -1
            i = self.apex_index + direction
            while 0 <= i < n:
                if valley < 0 or intensities[i] < intensities[valley]:
                    valley = i

                point = intensities[i]
                if point > 0 and (point - intensities[valley]) / point > discrimination_factor:
                    after_valley = valley + direction
                    cut = False
                    if 0 <= after_valley < n:
                        second = (point - intensities[after_valley]) / point
                        if second > discrimination_factor:
                            cut = True
                        elif int(self._scan_indices[valley]) + direction not in scan_set:
                            cut = True

                    if cut:
                        if direction == 1:
                            kept = self.peaks[:valley]
                        else:
                            kept = self.peaks[valley + 1:]
                        self._set_peaks(kept)
                        self.xy_data = None
                        return
                i += direction

    def __repr__(self):
        return (
            f"ExtractedIonChromatogram(n_peaks={len(self.peaks)}, "
            f"averaged_m={self.averaged_m:.4f}, apex_rt={self.apex_rt:.3f})"
        )
