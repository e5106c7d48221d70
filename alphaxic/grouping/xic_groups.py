"""Co-elution analysis of related XICs (e.g. isotopologue traces).

``XICGroups`` aligns a set of XICs to a reference trace, scores their
pairwise profile similarity in reference time and partitions them into
co-eluting groups. It also tracks the extrema the traces have in common and
turns them into shared peak regions.

Examples
--------
>>> groups = XICGroups([m0_xic, m1_xic, m2_xic], min_similarity=0.7)
>>> groups.rt_shifts
{0: 0.0, 1: -0.002, 2: 0.001}
>>> groups.groups
[[0, 1, 2]]
>>> [(p.start_rt, p.apex_rt, p.end_rt) for p in groups.shared_peaks]
"""

import logging
from typing import Dict, Iterator, List, Sequence

import numpy as np

from ..exceptions import EmptyInputError, InvalidInputError
from ..xic.chromatogram import ExtractedIonChromatogram
from ..xic.extrema import Extremum, ExtremumType, PeakRegion
from .similarity import connected_components, similarity_matrix

logger = logging.getLogger(__name__)

SIMILARITY_GRID_POINTS = 1000
TRIMMING_WINDOW = 0.3
PEAK_WINDOW_LIMIT = 0.3


class XICGroups:
    """A set of XICs with their alignment, similarity groups and shared peaks.

    Member XICs are shared, not copied: alignment stores each trace's RT
    shift and extrema on the XIC itself.

    Parameters
    ----------
    xics : sequence of ExtractedIonChromatogram
        Traces to analyse (at least 2 peaks each)
    min_similarity : float
        Cosine similarity linking two traces into one group (default: 0.7)
    align : bool
        Align traces to the reference before comparing them (default: True)
    shared_peak_threshold : float
        Fraction of traces that must show an extremum for it to be shared
        (default: 0.55)
    extrema_tolerance : float
        RT window for matching extrema across traces (default: 0.10)
    intensity_cutoff : float
        Extrema below this intensity are ignored (default: 0.0)

    Attributes
    ----------
    reference_xic : ExtractedIonChromatogram
        First trace flagged ``reference``, else the first trace
    rt_shifts : dict
        Trace position -> RT shift onto the reference
    similarity_matrix : np.ndarray
        Pairwise cosine similarity in reference time
    groups : list of list of int
        Connected components of the similarity graph
    shared_extrema : list of Extremum
        Extrema shared by enough traces, in reference time
    extrema_in_ref : dict
        Shared extremum RT -> smoothed reference intensity at that RT
    shared_peaks : list of PeakRegion
        Peak regions bounded by the shared extrema
    """

    def __init__(
        self,
        xics: Sequence[ExtractedIonChromatogram],
        min_similarity: float = 0.7,
        align: bool = True,
        shared_peak_threshold: float = 0.55,
        extrema_tolerance: float = 0.10,
        intensity_cutoff: float = 0.0,
    ):
        if len(xics) == 0:
            raise EmptyInputError("XICGroups needs at least one XIC")
        if not 0.0 <= min_similarity <= 1.0:
            raise InvalidInputError(f"min_similarity must be in [0, 1], got {min_similarity}")
        if extrema_tolerance < 0:
            raise InvalidInputError(
                f"extrema_tolerance must be >= 0, got {extrema_tolerance}"
            )

        self.xics = list(xics)
        self.min_similarity = min_similarity
        self.reference_xic = next((x for x in self.xics if x.reference), self.xics[0])

        self.rt_shifts: Dict[int, float] = {}
        for i, xic in enumerate(self.xics):
            if align:
                xic.align_to(self.reference_xic)
            else:
                xic.rt_shift = 0.0
            self.rt_shifts[i] = xic.rt_shift
            xic.find_extrema()

        self.similarity_matrix = self._compute_similarity_matrix()
        self.groups = connected_components(self.similarity_matrix, min_similarity)

        self.shared_extrema = self._find_shared_extrema(
            shared_peak_threshold, extrema_tolerance, intensity_cutoff
        )
        self.extrema_in_ref = {
            e.retention_time: self._reference_intensity(e.retention_time)
            for e in self.shared_extrema
        }
        self.shared_peaks = self.build_shared_peaks()

        logger.info(
            f"✓ Grouped {len(self.xics)} XICs into {len(self.groups)} co-eluting groups "
            f"({len(self.shared_extrema)} shared extrema, {len(self.shared_peaks)} shared peaks)"
        )

    # ------------------------------------------------------------------
    # Similarity
    # ------------------------------------------------------------------

    def _compute_similarity_matrix(self) -> np.ndarray:
        padded = [xic.padded_profile() for xic in self.xics]
        start = min(x[0] + xic.rt_shift for (x, _), xic in zip(padded, self.xics))
        end = max(x[-1] + xic.rt_shift for (x, _), xic in zip(padded, self.xics))
        grid = np.linspace(start, end, SIMILARITY_GRID_POINTS)

        profiles = np.empty((len(self.xics), len(grid)), dtype=np.float64)
        for i, ((x, y), xic) in enumerate(zip(padded, self.xics)):
            profiles[i] = np.interp(grid - xic.rt_shift, x, y, left=0.0, right=0.0)

        return similarity_matrix(profiles)

    # ------------------------------------------------------------------
    # Shared extrema and peaks
    # ------------------------------------------------------------------

    def _reference_intensity(self, retention_time: float) -> float:
        reference = self.reference_xic
        spline = reference.smoothed_spline
        if spline is None:
            return float(reference.profile_at(retention_time))

        rt = reference.retention_times
        return float(spline(np.clip(retention_time, rt[0], rt[-1])))

    def _group_extrema(
        self, extrema: List[Extremum], tolerance: float, count_threshold: float
    ) -> List[Extremum]:
        """Keep the first extremum of each RT cluster seen in enough traces."""
        kept = []
        min_count = count_threshold * len(self.xics)
        i = 0
        while i < len(extrema):
            first = extrema[i]
            j = i + 1
            while j < len(extrema) and extrema[j].retention_time - first.retention_time <= tolerance:
                j += 1
            if j - i >= min_count:
                kept.append(first)
            i = j
        return kept

    def _find_shared_extrema(
        self, count_threshold: float, tolerance: float, intensity_cutoff: float
    ) -> List[Extremum]:
        minima = sorted(
            e for xic in self.xics for e in xic.extrema
            if e.type is ExtremumType.MINIMUM and e.intensity >= intensity_cutoff
        )
        maxima = sorted(
            e for xic in self.xics for e in xic.extrema
            if e.type is ExtremumType.MAXIMUM and e.intensity >= intensity_cutoff
        )

        shared = self._group_extrema(minima, tolerance, count_threshold)
        shared += self._group_extrema(maxima, tolerance, count_threshold)
        shared.sort(key=lambda e: e.retention_time)
        return self._trim_close_extrema(shared)

    def _trim_close_extrema(self, extrema: List[Extremum]) -> List[Extremum]:
        """Drop the first of two close same-type extrema that the second dominates.

        Of two consecutive minima closer than 0.3, the first is dropped when
        the reference rises towards the second; of two maxima, when it falls.
        """
        extrema = list(extrema)
        i = 0
        while i < len(extrema) - 1:
            current = extrema[i]
            following = extrema[i + 1]

            intensity = self._reference_intensity(current.retention_time)
            intensity_next = self._reference_intensity(following.retention_time)
            close = following.retention_time - current.retention_time < TRIMMING_WINDOW
            same_type = current.type is following.type

            if close and same_type and current.type is ExtremumType.MINIMUM and intensity_next > intensity:
                del extrema[i]
            elif close and same_type and current.type is ExtremumType.MAXIMUM and intensity_next < intensity:
                del extrema[i]
            else:
                i += 1
        return extrema

    def build_shared_peaks(self, window_limit: float = PEAK_WINDOW_LIMIT) -> List[PeakRegion]:
        """Build a peak region around every shared maximum.

        A region starts at the preceding shared minimum, or halfway to the
        preceding maximum, and ends likewise on the right. Without a
        neighbour the region extends 1.0 beyond the outermost shared
        extremum. Regions narrower than ``window_limit`` are dropped.
        """
        extrema = self.shared_extrema
        if not extrema:
            return []

        default_start = extrema[0].retention_time - 1.0
        default_end = extrema[-1].retention_time + 1.0

        regions = []
        for i, extremum in enumerate(extrema):
            if extremum.type is not ExtremumType.MAXIMUM:
                continue

            start = default_start
            if i > 0:
                previous = extrema[i - 1]
                if previous.type is ExtremumType.MINIMUM:
                    start = previous.retention_time
                else:
                    start = (extremum.retention_time + previous.retention_time) / 2

            end = default_end
            if i + 1 < len(extrema):
                following = extrema[i + 1]
                if following.type is ExtremumType.MINIMUM:
                    end = following.retention_time
                else:
                    end = (extremum.retention_time + following.retention_time) / 2

            regions.append(PeakRegion(extremum.retention_time, start, end))

        return [r for r in regions if r.width >= window_limit]

    # ------------------------------------------------------------------
    # Container protocol
    # ------------------------------------------------------------------

    def __iter__(self) -> Iterator[ExtractedIonChromatogram]:
        return iter(self.xics)

    def __len__(self):
        return len(self.xics)

    def __getitem__(self, index: int) -> ExtractedIonChromatogram:
        return self.xics[index]

    def __repr__(self):
        return f"XICGroups(n_xics={len(self.xics)}, n_groups={len(self.groups)})"
