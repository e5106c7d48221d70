"""Tests for XIC intensity smoothing."""

import numpy as np
import pytest

from alphaxic.exceptions import InvalidInputError
from alphaxic.xic import moving_average_smoothing, smooth_intensities, weighted_smoothing


class TestWeightedSmoothing:
    """Test intensity-weighted window smoothing."""

    def test_window_value(self):
        """Window [1, 2, 3] smooths to (1 + 4 + 9) / 6."""
        smoothed = weighted_smoothing(np.array([1.0, 2.0, 3.0]), 3)

        assert smoothed[1] == pytest.approx(14.0 / 6.0)

    def test_edges_unchanged(self):
        """The first and last window // 2 points are kept."""
        intensities = np.array([5.0, 1.0, 9.0, 2.0, 7.0, 3.0, 8.0])

        smoothed = weighted_smoothing(intensities, 5)

        np.testing.assert_array_equal(smoothed[:2], intensities[:2])
        np.testing.assert_array_equal(smoothed[-2:], intensities[-2:])

    def test_constant_signal(self):
        """A constant trace is unchanged."""
        intensities = np.full(10, 4.0)

        np.testing.assert_allclose(weighted_smoothing(intensities, 5), intensities)

    def test_zero_window(self):
        """All-zero windows stay zero."""
        smoothed = weighted_smoothing(np.zeros(7), 3)

        assert np.all(smoothed == 0.0)


class TestMovingAverage:
    """Test plain moving-average smoothing."""

    def test_linear_signal_preserved(self):
        """A linear ramp is its own moving average."""
        intensities = np.arange(1.0, 8.0)

        np.testing.assert_allclose(moving_average_smoothing(intensities, 3), intensities)

    def test_spike_spread(self):
        """A single spike is spread over the window."""
        intensities = np.array([0.0, 0.0, 3.0, 0.0, 0.0])

        smoothed = moving_average_smoothing(intensities, 3)

        np.testing.assert_allclose(smoothed, [0.0, 1.0, 1.0, 1.0, 0.0])


class TestSmoothIntensities:
    """Test the combined smoother."""

    def test_same_length(self, rng):
        """The smoothed trace has the input length."""
        intensities = rng.uniform(0, 100, 50)

        assert len(smooth_intensities(intensities)) == 50

    def test_reduces_noise(self, rng):
        """Smoothing a noisy Gaussian reduces its roughness."""
        rt = np.linspace(0, 10, 101)
        clean = 1e4 * np.exp(-0.5 * ((rt - 5) / 1.0) ** 2)
        noisy = clean + rng.normal(0, 200, len(rt))

        smoothed = smooth_intensities(noisy)

        assert np.abs(np.diff(smoothed, 2)).sum() < np.abs(np.diff(noisy, 2)).sum()

    def test_invalid_window(self):
        """Non-positive windows are rejected."""
        with pytest.raises(InvalidInputError):
            smooth_intensities(np.ones(10), 0)
