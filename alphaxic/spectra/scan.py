"""Scan containers consumed by the peak indexing engine.

The engine only relies on the attributes below, so any reader output with the
same fields works as well. ``Scan`` performs no validation; the indexing engine
checks array lengths and sorts each spectrum by m/z while indexing.
"""

from dataclasses import dataclass

import numpy as np


@dataclass
class Scan:
    """One mass spectrum with its acquisition metadata."""

    one_based_scan_number: int
    retention_time: float
    mz_array: np.ndarray
    intensity_array: np.ndarray
    ms_level: int = 1

    @property
    def n_peaks(self) -> int:
        return len(self.mz_array)


@dataclass(frozen=True)
class ScanInfo:
    """Position and timing of an indexed scan."""

    one_based_scan_number: int
    zero_based_scan_index: int
    retention_time: float
    ms_level: int = 1
