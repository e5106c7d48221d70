"""Physical constants and default settings for XIC extraction.

All masses in Dalton, retention times in the unit of the input scans
(minutes for Thermo/mzML data).
"""

# =============================================================================
# Fundamental Physical Constants (NIST values)
# =============================================================================

# Proton mass (NOT hydrogen atom mass!)
# Source: NIST 2018 CODATA
PROTON_MASS = 1.007276466622  # Da

# 13C - 12C mass difference, spacing of isotopologue traces at z=1
C13_MASS_DIFF = 1.0033548  # Da

# =============================================================================
# Peak Indexing
# =============================================================================

# Width of one index bucket is 1 / DEFAULT_BINS_PER_DALTON Da (0.01 Da)
DEFAULT_BINS_PER_DALTON = 100

# Only MS1 scans are indexed unless configured otherwise
DEFAULT_MS_LEVEL = 1

# Peak-finding tolerance used for XIC tracing
DEFAULT_PPM_TOLERANCE = 20.0

# =============================================================================
# XIC Processing
# =============================================================================

# Minimum number of (padded) points required for spline resampling
MIN_SPLINE_POINTS = 5

# Relative intensity drop to a valley required to split a trace in two
DISCRIMINATION_FACTOR_TO_CUT_PEAK = 0.6

# Number of zero-intensity points padded on each side of a trace before
# alignment / linear interpolation
ALIGNMENT_PADDING_POINTS = 5

# Points averaged when smoothing a trace before extrema detection
DEFAULT_SMOOTH_DEGREE = 5
