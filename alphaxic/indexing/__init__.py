"""Peak indexing for tolerance-based XIC retrieval.

Examples
--------
>>> from alphaxic.indexing import PeakIndexingEngine
>>> from alphaxic.tolerance import PpmTolerance
>>>
>>> engine = PeakIndexingEngine.initialize(scans)
>>> peaks = engine.get_xic(800.3672, 0, PpmTolerance(20.0))
>>> xics = engine.get_all_xics(PpmTolerance(20.0), max_missed_scans=2,
...                            max_rt_range=2.0, min_num_peaks=3)
"""

from .engine import (
    IndexingParams,
    PeakIndexingEngine,
    find_best_peak,
    trace_peaks,
    trace_peaks_batch,
)
from .peaks import IndexedPeak

__all__ = [
    "IndexedPeak",
    "IndexingParams",
    "PeakIndexingEngine",
    "find_best_peak",
    "trace_peaks",
    "trace_peaks_batch",
]
