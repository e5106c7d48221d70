"""Tests for linear and cubic XIC resampling."""

import re

import numpy as np
import pytest

from alphaxic.exceptions import InsufficientDataError, InvalidInputError, LengthMismatchError
from alphaxic.indexing import IndexedPeak, PeakIndexingEngine
from alphaxic.tolerance import PpmTolerance
from alphaxic.xic import ExtractedIonChromatogram, XicCubicSpline, XicLinearSpline


@pytest.fixture
def example_xic(fake_scans, mono_mz):
    """Monoisotopic XIC of the ten-scan run (RT 1.0..1.9)."""
    engine = PeakIndexingEngine.initialize(fake_scans)
    return ExtractedIonChromatogram(engine.get_xic(mono_mz, 0, PpmTolerance(20)))


class TestGridLength:
    """Test the resampled grid."""

    @pytest.mark.parametrize("spline_cls", [XicCubicSpline, XicLinearSpline])
    def test_retention_time_grid(self, example_xic, spline_cls):
        """0.05 steps over RT 1.0..1.9 give 19 points, end included."""
        spline_cls(0.05).set_xic_spline_xy_data(example_xic)

        assert example_xic.xy_data.shape == (19, 2)
        assert example_xic.xy_data[0, 0] == pytest.approx(1.0)
        assert example_xic.xy_data[-1, 0] == pytest.approx(1.9)

    def test_cycle_grid(self, example_xic):
        """0.05 steps over scan indices 0..9 give 181 points."""
        XicCubicSpline(0.05).set_xic_spline_xy_data(example_xic, cycle=True)

        assert len(example_xic.xy_data) == 181
        assert example_xic.xy_data[-1, 0] == pytest.approx(9.0)

    def test_padding_widens_domain(self, example_xic):
        """One padding point of 0.1 widens the domain to 0.9..2.0."""
        XicCubicSpline(0.05, 1, 0.1).set_xic_spline_xy_data(example_xic)

        assert example_xic.xy_data[:, 0].min() == pytest.approx(0.9, abs=1e-7)
        assert example_xic.xy_data[:, 0].max() == pytest.approx(2.0, abs=1e-7)

    def test_padding_clipped_at_zero(self):
        """The time-axis grid never starts below zero."""
        peaks = [IndexedPeak(500.0, 1.0 + i, i, 0.05 + i * 0.1) for i in range(5)]
        xic = ExtractedIonChromatogram(peaks)

        XicLinearSpline(0.05, 1, 0.1).set_xic_spline_xy_data(xic)

        assert xic.xy_data[0, 0] == 0.0
        assert xic.xy_data[-1, 0] == pytest.approx(0.55)


class TestPadding:
    """Test zero-intensity padding in scan-cycle mode."""

    def test_padding_points_added(self):
        """Two zero points on each side of a three-peak trace."""
        peaks = [
            IndexedPeak(500.0, 1e5 * multiplier, i + 5, 1.0)
            for i, multiplier in enumerate([1, 3, 1])
        ]
        xic = ExtractedIonChromatogram(peaks)

        XicLinearSpline(1, 2, 1).set_xic_spline_xy_data(xic, cycle=True)

        assert len(xic.xy_data) == 7
        assert np.all(xic.xy_data[:2, 1] == 0)
        assert np.all(xic.xy_data[-2:, 1] == 0)
        for peak in xic.peaks:
            row = xic.xy_data[xic.xy_data[:, 0] == peak.zero_based_scan_index]
            assert row[0, 1] == peak.intensity


class TestInterpolation:
    """Test interpolation properties."""

    @pytest.mark.parametrize("spline_cls", [XicCubicSpline, XicLinearSpline])
    def test_knots_reproduced(self, spline_cls):
        """Both variants pass through the input samples."""
        x = np.arange(6, dtype=np.float64)
        y = np.array([0.0, 3.0, 1.0, 4.0, 1.0, 5.0])

        xy = spline_cls(1.0).get_xic_spline_data(x, y, 0.0, 5.0)

        np.testing.assert_allclose(xy[:, 0], x)
        np.testing.assert_allclose(xy[:, 1], y, atol=1e-9)

    def test_linear_midpoints(self):
        """The linear variant averages neighbours at midpoints."""
        x = np.arange(5, dtype=np.float64)
        y = np.array([0.0, 2.0, 4.0, 2.0, 0.0])

        xy = XicLinearSpline(0.5).get_xic_spline_data(x, y, 0.0, 4.0)

        assert xy[1, 1] == pytest.approx(1.0)
        assert xy[5, 1] == pytest.approx(3.0)

    def test_cubic_is_natural(self):
        """The cubic variant has zero curvature at the ends."""
        x = np.arange(5, dtype=np.float64)
        y = np.array([0.0, 2.0, 4.0, 2.0, 0.0])
        spline = XicCubicSpline(0.01)

        xy = spline.get_xic_spline_data(x, y, 0.0, 4.0)

        # second difference at the boundary vanishes for a natural spline
        second_diff = xy[2, 1] - 2 * xy[1, 1] + xy[0, 1]
        assert abs(second_diff) < 1e-3


class TestErrors:
    """Test error handling."""

    def test_too_few_points(self):
        """Fewer than 5 points are rejected with the documented message."""
        spline = XicCubicSpline(0.05)
        rt = np.array([1.0, 1.1, 1.2])
        intensity = np.array([100.0, 200.0, 300.0])

        with pytest.raises(InsufficientDataError,
                           match=re.escape("Input arrays must contain at least 5 points.")):
            spline.get_xic_spline_data(rt, intensity, 1.0, 1.2)

    def test_length_mismatch(self):
        """Unequal lengths are reported before the point count."""
        spline = XicCubicSpline(0.05)
        rt = np.array([1.0, 1.1, 1.2])
        intensity = np.array([100.0, 200.0, 300.0, 400.0, 500.0])

        with pytest.raises(LengthMismatchError,
                           match=re.escape("Input arrays must have the same length.")):
            spline.get_xic_spline_data(rt, intensity, 1.0, 1.2)

    def test_short_xic(self):
        """A short XIC without padding cannot be resampled."""
        peaks = [IndexedPeak(500.0, 1.0, i, 1.0 + i / 10) for i in range(3)]
        xic = ExtractedIonChromatogram(peaks)

        with pytest.raises(InsufficientDataError):
            XicLinearSpline(0.05).set_xic_spline_xy_data(xic)
        assert xic.xy_data is None

    @pytest.mark.parametrize("spline_cls", [XicCubicSpline, XicLinearSpline])
    def test_shared_retention_time(self, spline_cls):
        """Scans sharing an RT are rejected on the time axis, accepted by cycle."""
        peaks = [IndexedPeak(500.0, 1e5 * (i + 1), i, 1.0) for i in range(6)]
        xic = ExtractedIonChromatogram(peaks)

        with pytest.raises(InvalidInputError, match="strictly increasing"):
            spline_cls(0.05).set_xic_spline_xy_data(xic)
        assert xic.xy_data is None

        spline_cls(0.5).set_xic_spline_xy_data(xic, cycle=True)
        assert len(xic.xy_data) == 11

    def test_unsorted_positions(self):
        """Decreasing sample positions are rejected."""
        x = np.array([0.0, 2.0, 1.0, 3.0, 4.0])

        with pytest.raises(InvalidInputError):
            XicCubicSpline(0.5).get_xic_spline_data(x, np.ones(5), 0.0, 4.0)

    @pytest.mark.parametrize("args", [(0.0,), (-0.1,), (0.1, -1), (0.1, 1, 0.0)])
    def test_invalid_construction(self, args):
        """Non-positive steps and negative padding are rejected."""
        with pytest.raises(InvalidInputError):
            XicLinearSpline(*args)
