"""Scan containers and spectrum merging utilities."""

from .merging import (
    collapse_arrays,
    merge_spectra,
    two_pointer_merge,
)
from .scan import Scan, ScanInfo

__all__ = [
    "Scan",
    "ScanInfo",
    "two_pointer_merge",
    "collapse_arrays",
    "merge_spectra",
]
