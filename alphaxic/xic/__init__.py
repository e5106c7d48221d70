"""Extracted ion chromatograms (XICs).

This module provides the chromatogram object built from traced peaks and
the processing applied to it:

Key Features
------------
- Apex, RT range and intensity-weighted m/z of a trace
- Normalised intensities and double-peak trimming
- Linear and natural cubic spline resampling in RT or scan units
- Weighted/moving-average smoothing and Akima-spline extrema
- FFT cross-correlation RT alignment to a reference trace

Examples
--------
>>> from alphaxic.xic import ExtractedIonChromatogram, XicCubicSpline
>>>
>>> xic = ExtractedIonChromatogram(peaks)
>>> xic.set_normalized_peak_intensities()
>>>
>>> XicCubicSpline(0.05).set_xic_spline_xy_data(xic)
>>> xic.xy_data.shape
(19, 2)
"""

from .alignment import (
    cross_correlation_shift,
    pad_profile,
)

from .chromatogram import ExtractedIonChromatogram

from .extrema import (
    Extremum,
    ExtremumType,
    PeakRegion,
    build_smoothed_spline,
    find_extrema,
)

from .smoothing import (
    moving_average_smoothing,
    smooth_intensities,
    weighted_smoothing,
)

from .spline import (
    XicCubicSpline,
    XicLinearSpline,
    XicSpline,
)

__all__ = [
    # Chromatogram
    "ExtractedIonChromatogram",
    # Splines
    "XicSpline",
    "XicLinearSpline",
    "XicCubicSpline",
    # Smoothing and extrema
    "weighted_smoothing",
    "moving_average_smoothing",
    "smooth_intensities",
    "Extremum",
    "ExtremumType",
    "PeakRegion",
    "build_smoothed_spline",
    "find_extrema",
    # Alignment
    "pad_profile",
    "cross_correlation_shift",
]
