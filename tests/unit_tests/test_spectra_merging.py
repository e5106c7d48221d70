"""Tests for spectrum merging."""

import numpy as np
import pytest

from alphaxic.exceptions import InvalidInputError
from alphaxic.spectra import collapse_arrays, merge_spectra, two_pointer_merge


class TestTwoPointerMerge:
    """Test merging of sorted arrays."""

    def test_interleaved(self):
        """Odd and even values merge into one sorted array."""
        mz1 = np.array([1.0, 3.0, 5.0, 7.0, 9.0])
        mz2 = np.array([2.0, 4.0, 6.0, 8.0, 10.0])

        mz, intensity = two_pointer_merge(mz1, mz2, mz1 * 10, mz2 * 10)

        np.testing.assert_array_equal(mz, np.arange(1.0, 11.0))
        np.testing.assert_array_equal(intensity, np.arange(1.0, 11.0) * 10)

    def test_empty_side(self):
        """Merging with an empty array returns the other one."""
        mz1 = np.array([1.0, 2.0])
        empty = np.zeros(0)

        mz, intensity = two_pointer_merge(empty, mz1, empty, np.array([5.0, 6.0]))

        np.testing.assert_array_equal(mz, mz1)
        np.testing.assert_array_equal(intensity, [5.0, 6.0])

    def test_random_arrays_sorted(self, rng):
        """The merge of two sorted random arrays is sorted."""
        mz1 = np.sort(rng.uniform(100, 1000, 200))
        mz2 = np.sort(rng.uniform(100, 1000, 150))

        mz, _ = two_pointer_merge(mz1, mz2, np.ones(200), np.ones(150))

        assert len(mz) == 350
        assert np.all(np.diff(mz) >= 0)


class TestCollapseArrays:
    """Test collapsing of near-duplicate m/z values."""

    def test_near_duplicates_collapsed(self):
        """Values 1e-6 apart become one point with summed intensity."""
        mz, intensity = collapse_arrays(np.array([1.0, 1.0 + 1e-6, 2.0]), np.array([1.0, 2.0, 3.0]))

        assert len(mz) == 2
        assert mz[0] == pytest.approx(1.0 + 5e-7, abs=1e-12)
        assert intensity[0] == pytest.approx(3.0)
        assert mz[1] == 2.0

    def test_distinct_values_kept(self):
        """Values outside the tolerance stay separate."""
        mz, _ = collapse_arrays(np.array([500.0, 500.01, 500.02]), np.ones(3), 10.0)

        assert len(mz) == 3

    def test_chained_clustering(self):
        """A run grows while each step stays within tolerance."""
        mz = np.array([500.0, 500.004, 500.008, 500.012])

        collapsed, intensity = collapse_arrays(mz, np.ones(4), 10.0)

        assert len(collapsed) == 1
        assert intensity[0] == 4.0


class TestMergeSpectra:
    """Test the merge-then-collapse pipeline."""

    def test_merge_two_spectra(self):
        """Two interleaved spectra give a 10-point sorted spectrum."""
        mz, intensity = merge_spectra(
            [np.array([1.0, 3.0, 5.0, 7.0, 9.0]), np.array([2.0, 4.0, 6.0, 8.0, 10.0])],
            [np.ones(5), np.ones(5)],
        )

        np.testing.assert_array_equal(mz, np.arange(1.0, 11.0))
        assert intensity.sum() == 10.0

    def test_duplicates_across_spectra(self):
        """The same m/z in two spectra is summed."""
        mz, intensity = merge_spectra(
            [np.array([100.0, 200.0]), np.array([100.0 + 1e-6, 300.0])],
            [np.array([1.0, 1.0]), np.array([2.0, 1.0])],
        )

        assert len(mz) == 3
        assert intensity[0] == pytest.approx(3.0)

    def test_invalid_input(self):
        """Empty or mismatched inputs are rejected."""
        with pytest.raises(InvalidInputError):
            merge_spectra([], [])
        with pytest.raises(InvalidInputError):
            merge_spectra([np.array([1.0, 2.0])], [np.array([1.0])])
