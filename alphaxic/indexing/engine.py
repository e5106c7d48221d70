"""Peak indexing engine for tolerance-based XIC retrieval.

All peaks of an LC-MS run are bucketed by their rounded m/z
(``round(mz * bins_per_dalton)``, 0.01 Da buckets by default). Within a
bucket, peaks are ordered by scan index so the peaks of one scan are found by
binary search. A query with a tolerance window visits every bucket between
``floor(min * bpd)`` and ``ceil(max * bpd)``.

The index is stored as flat numpy arrays in CSR layout:

- ``bin_offsets[b]:bin_offsets[b + 1]`` is the slice of bucket ``b``
- ``peak_mz``, ``peak_intensity``, ``peak_scan``, ``peak_local`` hold the
  per-peak values in bucket order

which lets the tracing kernels run under Numba, including a parallel batch
kernel for many targets at once.

Examples
--------
>>> engine = PeakIndexingEngine.initialize(scans)
>>> peaks = engine.get_xic(800.3672, zero_based_start_index=0, tolerance=PpmTolerance(20))
>>> xic = ExtractedIonChromatogram(peaks)
"""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

import h5py
import numba as nb
import numpy as np

from ..constants import DEFAULT_BINS_PER_DALTON, DEFAULT_MS_LEVEL
from ..exceptions import EmptyInputError, IndexOutOfRangeError, InvalidInputError
from ..spectra.scan import ScanInfo
from ..tolerance import Tolerance, as_tolerance
from ..xic.chromatogram import ExtractedIonChromatogram
from .peaks import IndexedPeak

logger = logging.getLogger(__name__)

INDEX_FORMAT_VERSION = 1

# Numba's workqueue threading layer aborts on concurrent parallel launches
_PARALLEL_KERNEL_LOCK = threading.Lock()


@dataclass(frozen=True)
class IndexingParams:
    """Parameters for building a peak index.

    Attributes
    ----------
    bins_per_dalton : int
        Number of m/z buckets per Dalton (default: 100, i.e. 0.01 Da buckets)
    ms_level : int
        Only scans of this MS level are indexed (default: 1)
    """

    bins_per_dalton: int = DEFAULT_BINS_PER_DALTON
    ms_level: int = DEFAULT_MS_LEVEL

    def __post_init__(self):
        if self.bins_per_dalton <= 0:
            raise InvalidInputError(
                f"bins_per_dalton must be positive, got {self.bins_per_dalton}"
            )


# ============================================================================
# Numba kernels
# ============================================================================


@nb.njit
def find_best_peak(
    peak_mz: np.ndarray,
    peak_scan: np.ndarray,
    peak_local: np.ndarray,
    bin_offsets: np.ndarray,
    bins_per_dalton: int,
    scan_idx: int,
    target_mz: float,
    low_mz: float,
    high_mz: float,
) -> int:
    """Find the peak of one scan closest to ``target_mz`` within ``[low_mz, high_mz]``.

    Parameters
    ----------
    peak_mz, peak_scan, peak_local : np.ndarray
        Per-peak arrays in bucket order
    bin_offsets : np.ndarray (int64)
        CSR offsets of the buckets
    bins_per_dalton : int
        Bucket resolution
    scan_idx : int
        Zero-based scan index to search
    target_mz : float
        Target m/z
    low_mz, high_mz : float
        Inclusive tolerance window

    Returns
    -------
    peak_idx : int
        Position of the best peak in the per-peak arrays, or -1 if no peak
        of the scan lies inside the window. Ties in m/z error go to the peak
        with the lower position in the m/z-sorted scan.
    """
    n_bins = len(bin_offsets) - 1
    lo_bin = max(int(np.floor(low_mz * bins_per_dalton)), 0)
    hi_bin = min(int(np.ceil(high_mz * bins_per_dalton)), n_bins - 1)

    best_idx = -1
    best_error = np.inf
    best_local = 0

    for b in range(lo_bin, hi_bin + 1):
        start = bin_offsets[b]
        end = bin_offsets[b + 1]
        if start == end:
            continue

        i = start + np.searchsorted(peak_scan[start:end], scan_idx)
        while i < end and peak_scan[i] == scan_idx:
            mz = peak_mz[i]
            if low_mz <= mz <= high_mz:
                error = abs(mz - target_mz)
                if error < best_error or (error == best_error and peak_local[i] < best_local):
                    best_idx = i
                    best_error = error
                    best_local = peak_local[i]
            i += 1

    return best_idx


@nb.njit
def trace_peaks(
    peak_mz: np.ndarray,
    peak_scan: np.ndarray,
    peak_local: np.ndarray,
    bin_offsets: np.ndarray,
    scan_rt: np.ndarray,
    bins_per_dalton: int,
    target_mz: float,
    low_mz: float,
    high_mz: float,
    start_scan: int,
    missed_scans_allowed: int,
    max_peak_half_width: float,
    bidirectional: bool,
    claimed: np.ndarray,
) -> np.ndarray:
    """Trace a target m/z across scans starting at ``start_scan``.

    The start scan is searched first. With ``bidirectional`` the trace then
    walks backward, and in all cases it walks forward to the last scan. A
    walk stops after more than ``missed_scans_allowed`` consecutive scans
    without a usable peak (-1 never stops), or once a scan lies further than
    ``max_peak_half_width`` in RT from the first peak found.

    Parameters
    ----------
    claimed : np.ndarray (bool)
        Either empty, or one flag per peak; claimed peaks count as misses.

    Returns
    -------
    peak_indices : np.ndarray (int64)
        Positions of the traced peaks, ordered by scan index
    """
    n_scans = len(scan_rt)
    check_claimed = len(claimed) > 0
    found = np.empty(n_scans, dtype=np.int64)
    n_found = 0

    has_initial = False
    initial_rt = 0.0
    first = find_best_peak(
        peak_mz, peak_scan, peak_local, bin_offsets, bins_per_dalton,
        start_scan, target_mz, low_mz, high_mz,
    )
    if first >= 0 and not (check_claimed and claimed[first]):
        found[0] = first
        n_found = 1
        has_initial = True
        initial_rt = scan_rt[start_scan]

    for direction in range(2):
        if direction == 0:
            if not bidirectional:
                continue
            step = -1
        else:
            step = 1

        missed = 0
        scan = start_scan
        while missed_scans_allowed < 0 or missed <= missed_scans_allowed:
            scan += step
            if scan < 0 or scan >= n_scans:
                break
            if has_initial and abs(scan_rt[scan] - initial_rt) > max_peak_half_width:
                break

            best = find_best_peak(
                peak_mz, peak_scan, peak_local, bin_offsets, bins_per_dalton,
                scan, target_mz, low_mz, high_mz,
            )
            if best < 0 or (check_claimed and claimed[best]):
                missed += 1
            else:
                if not has_initial:
                    has_initial = True
                    initial_rt = scan_rt[scan]
                found[n_found] = best
                n_found += 1
                missed = 0

    result = found[:n_found].copy()
    order = np.argsort(peak_scan[result], kind="mergesort")
    return result[order]


@nb.njit(parallel=True)
def trace_peaks_batch(
    peak_mz: np.ndarray,
    peak_scan: np.ndarray,
    peak_local: np.ndarray,
    bin_offsets: np.ndarray,
    scan_rt: np.ndarray,
    bins_per_dalton: int,
    target_mzs: np.ndarray,
    low_mzs: np.ndarray,
    high_mzs: np.ndarray,
    start_scan: int,
    missed_scans_allowed: int,
    max_peak_half_width: float,
) -> np.ndarray:
    """Forward-trace many targets in parallel.

    Returns
    -------
    peak_matrix : np.ndarray (int64)
        Shape (n_targets, n_scans); row ``t`` lists the traced peak positions
        of target ``t`` in scan order, padded with -1.

    Performance
    -----------
    Targets are independent, so the loop runs under ``prange`` and scales
    with the number of cores.
    """
    n_targets = len(target_mzs)
    n_scans = len(scan_rt)
    peak_matrix = np.full((n_targets, n_scans), -1, dtype=np.int64)
    no_claims = np.zeros(0, dtype=np.bool_)

    for t in nb.prange(n_targets):
        traced = trace_peaks(
            peak_mz, peak_scan, peak_local, bin_offsets, scan_rt, bins_per_dalton,
            target_mzs[t], low_mzs[t], high_mzs[t], start_scan,
            missed_scans_allowed, max_peak_half_width, False, no_claims,
        )
        for j in range(len(traced)):
            peak_matrix[t, j] = traced[j]

    return peak_matrix


# ============================================================================
# Engine
# ============================================================================


class PeakIndexingEngine:
    """Index of all peaks of an LC-MS run for fast XIC retrieval.

    The index is built once and only read afterwards, so queries may run
    concurrently from several threads. Batch queries (:meth:`get_xics`)
    share one parallel kernel and are serialised internally.

    Parameters
    ----------
    scans : sequence of scan-like objects
        Objects exposing ``one_based_scan_number``, ``retention_time``,
        ``mz_array``, ``intensity_array`` and ``ms_level``
        (see :class:`alphaxic.spectra.Scan`), ordered by acquisition
    params : IndexingParams, optional
        Bucket resolution and MS level to index

    Raises
    ------
    EmptyInputError
        If no scans are given.
    InvalidInputError
        If a scan's m/z and intensity arrays differ in length, or a scan
        contains a negative m/z.

    Examples
    --------
    >>> engine = PeakIndexingEngine.initialize(scans)
    >>> engine.n_scans
    10
    >>> peaks = engine.get_xic(500.0, 0, PpmTolerance(20.0))
    """

    def __init__(self, scans: Sequence, params: Optional[IndexingParams] = None):
        if scans is None or len(scans) == 0:
            raise EmptyInputError("Cannot build a peak index from an empty scan list")

        self.params = params or IndexingParams()
        self._build(scans)

    @classmethod
    def initialize(
        cls, scans: Sequence, params: Optional[IndexingParams] = None
    ) -> "PeakIndexingEngine":
        """Build an engine from scans (same as calling the constructor)."""
        return cls(scans, params)

    def _build(self, scans: Sequence):
        bpd = self.params.bins_per_dalton
        ms_level = self.params.ms_level

        scan_infos = []
        mz_parts = []
        intensity_parts = []
        scan_parts = []
        local_parts = []
        n_skipped = 0

        for scan in scans:
            mz = np.asarray(scan.mz_array, dtype=np.float64)
            intensity = np.asarray(scan.intensity_array, dtype=np.float64)
            if len(mz) != len(intensity):
                raise InvalidInputError(
                    f"Scan {scan.one_based_scan_number}: m/z array ({len(mz)}) and "
                    f"intensity array ({len(intensity)}) must have the same length"
                )

            if getattr(scan, "ms_level", ms_level) != ms_level:
                n_skipped += 1
                continue

            if len(mz) > 0 and mz.min() < 0:
                raise InvalidInputError(
                    f"Scan {scan.one_based_scan_number} contains negative m/z values"
                )

            scan_idx = len(scan_infos)
            scan_infos.append(
                ScanInfo(
                    one_based_scan_number=int(scan.one_based_scan_number),
                    zero_based_scan_index=scan_idx,
                    retention_time=float(scan.retention_time),
                    ms_level=ms_level,
                )
            )

            order = np.argsort(mz, kind="mergesort")
            mz_parts.append(mz[order])
            intensity_parts.append(intensity[order])
            scan_parts.append(np.full(len(mz), scan_idx, dtype=np.int32))
            local_parts.append(np.arange(len(mz), dtype=np.int32))

        if n_skipped:
            logger.warning(f"Skipped {n_skipped:,} scans with MS level != {ms_level}")
        if not scan_infos:
            logger.warning(f"No MS{ms_level} scans to index, the index is empty")

        self._scan_infos = scan_infos
        self._scan_rt = np.array([s.retention_time for s in scan_infos], dtype=np.float64)

        if mz_parts:
            peak_mz = np.concatenate(mz_parts)
            peak_intensity = np.concatenate(intensity_parts)
            peak_scan = np.concatenate(scan_parts)
            peak_local = np.concatenate(local_parts)
        else:
            peak_mz = np.zeros(0, dtype=np.float64)
            peak_intensity = np.zeros(0, dtype=np.float64)
            peak_scan = np.zeros(0, dtype=np.int32)
            peak_local = np.zeros(0, dtype=np.int32)

        bins = np.rint(peak_mz * bpd).astype(np.int64)
        order = np.lexsort((peak_local, peak_scan, bins))

        self._peak_mz = peak_mz[order]
        self._peak_intensity = peak_intensity[order]
        self._peak_scan = peak_scan[order]
        self._peak_local = peak_local[order]

        n_bins = int(bins.max()) + 1 if len(bins) > 0 else 1
        counts = np.bincount(bins, minlength=n_bins)
        self._bin_offsets = np.zeros(n_bins + 1, dtype=np.int64)
        np.cumsum(counts, out=self._bin_offsets[1:])

        logger.info(
            f"✓ Indexed {len(self._peak_mz):,} peaks from {len(scan_infos):,} scans "
            f"({np.count_nonzero(counts):,} occupied m/z bins)"
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def scan_infos(self) -> List[ScanInfo]:
        return list(self._scan_infos)

    @property
    def n_scans(self) -> int:
        return len(self._scan_infos)

    @property
    def n_peaks(self) -> int:
        return len(self._peak_mz)

    @property
    def retention_times(self) -> np.ndarray:
        """Retention time of each indexed scan (read-only view)."""
        view = self._scan_rt.view()
        view.flags.writeable = False
        return view

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _make_peak(self, idx: int) -> IndexedPeak:
        scan_idx = int(self._peak_scan[idx])
        return IndexedPeak(
            mz=float(self._peak_mz[idx]),
            intensity=float(self._peak_intensity[idx]),
            zero_based_scan_index=scan_idx,
            retention_time=float(self._scan_rt[scan_idx]),
        )

    def _check_scan_index(self, zero_based_scan_index: int):
        if not 0 <= zero_based_scan_index < self.n_scans:
            raise IndexOutOfRangeError(
                f"Scan index {zero_based_scan_index} is out of range [0, {self.n_scans})"
            )

    def get_indexed_peak(
        self,
        target_mz: float,
        zero_based_scan_index: int,
        tolerance: Union[Tolerance, float],
    ) -> Optional[IndexedPeak]:
        """Return the peak of one scan closest to ``target_mz``, or None.

        Parameters
        ----------
        target_mz : float
            Target m/z
        zero_based_scan_index : int
            Scan to search
        tolerance : Tolerance or float
            Tolerance window (bare numbers are ppm)
        """
        tolerance = as_tolerance(tolerance)
        self._check_scan_index(zero_based_scan_index)
        low_mz, high_mz = tolerance.get_range(target_mz)

        idx = find_best_peak(
            self._peak_mz, self._peak_scan, self._peak_local, self._bin_offsets,
            self.params.bins_per_dalton, zero_based_scan_index,
            float(target_mz), float(low_mz), float(high_mz),
        )
        if idx < 0:
            return None
        return self._make_peak(idx)

    def _trace(
        self,
        target_mz: float,
        start_index: int,
        tolerance: Tolerance,
        missed_scans_allowed: Optional[int],
        max_peak_half_width: float,
        bidirectional: bool,
        claimed: np.ndarray,
    ) -> np.ndarray:
        low_mz, high_mz = tolerance.get_range(target_mz)
        return trace_peaks(
            self._peak_mz, self._peak_scan, self._peak_local, self._bin_offsets,
            self._scan_rt, self.params.bins_per_dalton,
            float(target_mz), float(low_mz), float(high_mz), int(start_index),
            -1 if missed_scans_allowed is None else int(missed_scans_allowed),
            float(max_peak_half_width), bool(bidirectional), claimed,
        )

    def get_xic(
        self,
        target_mz: float,
        zero_based_start_index: int,
        tolerance: Union[Tolerance, float],
        missed_scans_allowed: Optional[int] = None,
        max_peak_half_width: float = np.inf,
        bidirectional: bool = False,
    ) -> List[IndexedPeak]:
        """Trace a target m/z across scans.

        Starting at ``zero_based_start_index``, each visited scan contributes
        its peak closest to ``target_mz`` inside the tolerance window (ties go
        to the lower m/z-sorted position). Scans without such a peak
        contribute nothing.

        Parameters
        ----------
        target_mz : float
            Target m/z
        zero_based_start_index : int
            First scan to visit
        tolerance : Tolerance or float
            Tolerance window (bare numbers are ppm)
        missed_scans_allowed : int, optional
            Stop after more than this many consecutive scans without a peak.
            None (default) visits every scan up to the end of the run.
        max_peak_half_width : float
            Stop once a scan is further than this from the first peak found,
            in retention time (default: unlimited)
        bidirectional : bool
            Also trace backward from the start index (default: False)

        Returns
        -------
        peaks : list of IndexedPeak
            Ordered by scan index

        Raises
        ------
        IndexOutOfRangeError
            If the start index is outside ``[0, n_scans)``.
        InvalidInputError
            If the tolerance is not positive or ``missed_scans_allowed`` is
            negative.
        """
        tolerance = as_tolerance(tolerance)
        self._check_scan_index(zero_based_start_index)
        if missed_scans_allowed is not None and missed_scans_allowed < 0:
            raise InvalidInputError(
                f"missed_scans_allowed must be >= 0, got {missed_scans_allowed}"
            )

        indices = self._trace(
            target_mz, zero_based_start_index, tolerance, missed_scans_allowed,
            max_peak_half_width, bidirectional, np.zeros(0, dtype=np.bool_),
        )
        return [self._make_peak(i) for i in indices]

    def get_xics(
        self,
        target_mzs: Union[Sequence[float], np.ndarray],
        zero_based_start_index: int,
        tolerance: Union[Tolerance, float],
        missed_scans_allowed: Optional[int] = None,
        max_peak_half_width: float = np.inf,
    ) -> List[List[IndexedPeak]]:
        """Forward-trace many target m/z values in one parallel pass.

        Equivalent to calling :meth:`get_xic` for each target (forward only).
        Safe to call from several threads: concurrent batches run one after
        another, each on all cores.

        Parameters
        ----------
        target_mzs : array-like
            Target m/z values
        zero_based_start_index : int
            First scan to visit
        tolerance : Tolerance or float
            Tolerance window (bare numbers are ppm)
        missed_scans_allowed : int, optional
            See :meth:`get_xic`
        max_peak_half_width : float
            See :meth:`get_xic`

        Returns
        -------
        xics : list of list of IndexedPeak
            One peak list per target, in input order
        """
        tolerance = as_tolerance(tolerance)
        self._check_scan_index(zero_based_start_index)
        if missed_scans_allowed is not None and missed_scans_allowed < 0:
            raise InvalidInputError(
                f"missed_scans_allowed must be >= 0, got {missed_scans_allowed}"
            )

        target_mzs = np.asarray(target_mzs, dtype=np.float64)
        if len(target_mzs) == 0:
            return []

        low_mzs, high_mzs = tolerance.get_range(target_mzs)
        with _PARALLEL_KERNEL_LOCK:
            peak_matrix = trace_peaks_batch(
                self._peak_mz, self._peak_scan, self._peak_local, self._bin_offsets,
                self._scan_rt, self.params.bins_per_dalton,
                target_mzs, np.asarray(low_mzs, dtype=np.float64),
                np.asarray(high_mzs, dtype=np.float64), int(zero_based_start_index),
                -1 if missed_scans_allowed is None else int(missed_scans_allowed),
                float(max_peak_half_width),
            )

        logger.info(f"Extracted {len(target_mzs):,} XICs over {self.n_scans:,} scans")
        return [[self._make_peak(i) for i in row if i >= 0] for row in peak_matrix]

    def get_all_xics(
        self,
        tolerance: Union[Tolerance, float],
        max_missed_scans: int,
        max_rt_range: float,
        min_num_peaks: int,
    ) -> List[ExtractedIonChromatogram]:
        """Detect every XIC in the run by seeding traces from the peaks themselves.

        Peaks are visited from most to least intense. Each peak not yet part
        of an XIC seeds a bidirectional trace at its own m/z and scan; peaks
        already claimed by an XIC count as misses. A trace with at least
        ``min_num_peaks`` peaks becomes an XIC and claims its peaks, otherwise
        only the seed is marked as used.

        Parameters
        ----------
        tolerance : Tolerance or float
            Tolerance window (bare numbers are ppm)
        max_missed_scans : int
            Consecutive misses allowed before a trace stops
        max_rt_range : float
            Maximum RT distance from the seed peak
        min_num_peaks : int
            Minimum number of peaks per XIC

        Returns
        -------
        xics : list of ExtractedIonChromatogram
            In order of detection (most intense seed first)
        """
        tolerance = as_tolerance(tolerance)
        if max_missed_scans < 0:
            raise InvalidInputError(f"max_missed_scans must be >= 0, got {max_missed_scans}")

        logger.info(f"Detecting XICs from {self.n_peaks:,} peaks...")

        claimed = np.zeros(self.n_peaks, dtype=np.bool_)
        seeds = np.argsort(-self._peak_intensity, kind="mergesort")
        xics = []

        for seed in seeds:
            if claimed[seed]:
                continue

            indices = self._trace(
                self._peak_mz[seed], int(self._peak_scan[seed]), tolerance,
                max_missed_scans, max_rt_range, True, claimed,
            )
            if len(indices) >= min_num_peaks:
                claimed[indices] = True
                xics.append(ExtractedIonChromatogram([self._make_peak(i) for i in indices]))
            else:
                claimed[seed] = True

        logger.info(f"✓ Found {len(xics):,} XICs with >= {min_num_peaks} peaks")
        return xics

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, path: Union[Path, str]):
        """Write the index to an HDF5 file.

        Parameters
        ----------
        path : Path or str
            Output file (overwritten if it exists)
        """
        path = Path(path)
        with h5py.File(path, "w") as hdf:
            hdf.attrs["format_version"] = INDEX_FORMAT_VERSION
            hdf.attrs["bins_per_dalton"] = self.params.bins_per_dalton
            hdf.attrs["ms_level"] = self.params.ms_level

            scans = hdf.create_group("scans")
            scans.create_dataset(
                "one_based_scan_number",
                data=np.array([s.one_based_scan_number for s in self._scan_infos], dtype=np.int64),
            )
            scans.create_dataset("retention_time", data=self._scan_rt)

            peaks = hdf.create_group("peaks")
            peaks.create_dataset("mz", data=self._peak_mz)
            peaks.create_dataset("intensity", data=self._peak_intensity)
            peaks.create_dataset("scan", data=self._peak_scan)
            peaks.create_dataset("local", data=self._peak_local)
            peaks.create_dataset("bin_offsets", data=self._bin_offsets)

        logger.info(f"✓ Saved index ({self.n_peaks:,} peaks) to {path.name}")

    @classmethod
    def load(cls, path: Union[Path, str]) -> "PeakIndexingEngine":
        """Restore an index written by :meth:`save`.

        Raises
        ------
        InvalidInputError
            If the file was written with an unknown format version.
        """
        path = Path(path)
        with h5py.File(path, "r") as hdf:
            version = int(hdf.attrs["format_version"])
            if version != INDEX_FORMAT_VERSION:
                raise InvalidInputError(
                    f"Unsupported index format version {version} in {path.name}"
                )

            params = IndexingParams(
                bins_per_dalton=int(hdf.attrs["bins_per_dalton"]),
                ms_level=int(hdf.attrs["ms_level"]),
            )
            scan_numbers = hdf["scans/one_based_scan_number"][:]
            scan_rt = hdf["scans/retention_time"][:]

            engine = cls.__new__(cls)
            engine.params = params
            engine._peak_mz = hdf["peaks/mz"][:]
            engine._peak_intensity = hdf["peaks/intensity"][:]
            engine._peak_scan = hdf["peaks/scan"][:]
            engine._peak_local = hdf["peaks/local"][:]
            engine._bin_offsets = hdf["peaks/bin_offsets"][:]

        engine._scan_rt = np.asarray(scan_rt, dtype=np.float64)
        engine._scan_infos = [
            ScanInfo(
                one_based_scan_number=int(number),
                zero_based_scan_index=i,
                retention_time=float(rt),
                ms_level=params.ms_level,
            )
            for i, (number, rt) in enumerate(zip(scan_numbers, scan_rt))
        ]

        logger.info(f"✓ Loaded index ({engine.n_peaks:,} peaks) from {path.name}")
        return engine

    def __repr__(self):
        return (
            f"PeakIndexingEngine(n_scans={self.n_scans}, n_peaks={self.n_peaks}, "
            f"bins_per_dalton={self.params.bins_per_dalton})"
        )
