"""Pytest configuration for AlphaXIC tests.

Provides synthetic LC-MS runs and XIC builders shared by the unit tests.
Everything is generated in memory; only the HDF5 round-trip tests touch
disk (via ``tmp_path``).
"""

import numpy as np
import pytest

from alphaxic.constants import C13_MASS_DIFF
from alphaxic.indexing import IndexedPeak
from alphaxic.spectra import Scan

# [M+H]+ of PEPTIDE
MONO_MZ = 800.367299

# Relative isotope abundances (M0..M9)
ISOTOPE_ABUNDANCES = np.array([
    1.0, 0.44, 0.12, 0.025, 4.2e-3, 6.1e-4, 7.7e-5, 8.6e-6, 8.8e-7, 8.1e-8,
])

# Intensity multiplier of each of the 10 scans (apex in scan 6)
INTENSITY_MULTIPLIERS = np.array([1, 3, 1, 1, 3, 5, 10, 5, 3, 1], dtype=np.float64)

# Second peak placed this far above each isotope
NEIGHBOUR_OFFSET = 0.0001


def make_fake_scans(empty_scans=()):
    """Ten MS1 scans (RT 1.0..1.9) with two close peaks per isotope.

    The peak at each isotope m/z follows ``INTENSITY_MULTIPLIERS``, its
    neighbour ``NEIGHBOUR_OFFSET`` higher has constant intensity. Scans listed
    in ``empty_scans`` contain no peaks.
    """
    isotope_mzs = MONO_MZ + C13_MASS_DIFF * np.arange(len(ISOTOPE_ABUNDANCES))
    scans = []
    for s in range(len(INTENSITY_MULTIPLIERS)):
        if s in empty_scans:
            mz = np.zeros(0)
            intensity = np.zeros(0)
        else:
            mz = np.column_stack([isotope_mzs, isotope_mzs + NEIGHBOUR_OFFSET]).ravel()
            intensity = np.column_stack([
                ISOTOPE_ABUNDANCES * 1e6 * INTENSITY_MULTIPLIERS[s],
                ISOTOPE_ABUNDANCES * 1e6,
            ]).ravel()

        scans.append(
            Scan(
                one_based_scan_number=s + 1,
                retention_time=1.0 + s / 10.0,
                mz_array=mz,
                intensity_array=intensity,
                ms_level=1,
            )
        )
    return scans


def make_gaussian_peaks(center, sigma=0.6, start=10.0, n_points=200, step=0.1,
                        scale=1e6, mz=500.0):
    """Peaks sampling a Gaussian elution profile, one per scan."""
    peaks = []
    for i in range(n_points):
        rt = start + i * step
        intensity = scale * np.exp(-0.5 * ((rt - center) / sigma) ** 2) / (sigma * np.sqrt(2 * np.pi))
        peaks.append(IndexedPeak(mz, intensity, i, rt))
    return peaks


@pytest.fixture
def mono_mz():
    """Monoisotopic m/z of the synthetic analyte."""
    return MONO_MZ


@pytest.fixture
def fake_scans():
    """Ten-scan synthetic run."""
    return make_fake_scans()


@pytest.fixture
def scan_factory():
    """Builder for synthetic runs with empty scans."""
    return make_fake_scans


@pytest.fixture
def gaussian_peaks():
    """Builder for Gaussian elution profiles."""
    return make_gaussian_peaks


@pytest.fixture
def rng():
    """Seeded random generator for reproducible tests."""
    return np.random.default_rng(42)
