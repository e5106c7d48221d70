"""AlphaXIC: peak indexing and extracted ion chromatograms for LC-MS data.

This package builds chromatographic traces (XICs) from centroided LC-MS
scans:

- Peak indexing with 0.01 Da m/z buckets for tolerance-based lookup
- Targeted XIC tracing (single and Numba-parallel batch) and untargeted
  detection of all XICs in a run
- XIC statistics, normalisation and double-peak trimming
- Linear / natural cubic spline resampling in RT or scan units
- Cross-correlation alignment and co-elution grouping of related XICs

Examples
--------
>>> from alphaxic import PeakIndexingEngine, ExtractedIonChromatogram, PpmTolerance
>>>
>>> engine = PeakIndexingEngine.initialize(scans)
>>> xic = ExtractedIonChromatogram(engine.get_xic(800.3672, 0, PpmTolerance(20.0)))
>>> xic.apex_rt
"""

__version__ = "0.1.0"

from .exceptions import (
    AlphaXicError,
    EmptyInputError,
    IndexOutOfRangeError,
    InsufficientDataError,
    InvalidInputError,
    LengthMismatchError,
)
from .grouping import XICGroups
from .indexing import IndexedPeak, IndexingParams, PeakIndexingEngine
from .spectra import Scan, ScanInfo, merge_spectra
from .tolerance import AbsoluteTolerance, PpmTolerance, Tolerance
from .xic import (
    ExtractedIonChromatogram,
    Extremum,
    ExtremumType,
    PeakRegion,
    XicCubicSpline,
    XicLinearSpline,
    XicSpline,
)

__all__ = [
    "__version__",
    # Errors
    "AlphaXicError",
    "InvalidInputError",
    "EmptyInputError",
    "IndexOutOfRangeError",
    "InsufficientDataError",
    "LengthMismatchError",
    # Tolerances
    "Tolerance",
    "PpmTolerance",
    "AbsoluteTolerance",
    # Scans
    "Scan",
    "ScanInfo",
    "merge_spectra",
    # Indexing
    "IndexedPeak",
    "IndexingParams",
    "PeakIndexingEngine",
    # XICs
    "ExtractedIonChromatogram",
    "XicSpline",
    "XicLinearSpline",
    "XicCubicSpline",
    "Extremum",
    "ExtremumType",
    "PeakRegion",
    # Grouping
    "XICGroups",
]
