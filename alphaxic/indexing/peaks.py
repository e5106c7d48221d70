"""Indexed spectral peaks."""

from dataclasses import dataclass


@dataclass(frozen=True)
class IndexedPeak:
    """A single centroided peak together with the scan it was observed in.

    Peaks are created by the indexing engine and shared (never copied) by the
    chromatograms built from them.

    Attributes
    ----------
    mz : float
        Peak m/z
    intensity : float
        Peak intensity
    zero_based_scan_index : int
        Position of the owning scan among the indexed scans
    retention_time : float
        Retention time of the owning scan (minutes)
    """

    mz: float
    intensity: float
    zero_based_scan_index: int
    retention_time: float
