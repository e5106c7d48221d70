"""Tests for ppm and absolute tolerance windows."""

import pytest

from alphaxic.exceptions import InvalidInputError
from alphaxic.tolerance import AbsoluteTolerance, PpmTolerance, as_tolerance


class TestPpmTolerance:
    """Test ppm windows."""

    def test_range_scales_with_center(self):
        """20 ppm is 0.01 at 500 and 0.02 at 1000."""
        tol = PpmTolerance(20.0)

        assert tol.get_range(500.0) == pytest.approx((499.99, 500.01))
        assert tol.get_range(1000.0) == pytest.approx((999.98, 1000.02))

    def test_min_max_values(self):
        """Minimum and maximum match the range."""
        tol = PpmTolerance(10.0)

        assert tol.get_minimum_value(800.0) == pytest.approx(799.992)
        assert tol.get_maximum_value(800.0) == pytest.approx(800.008)

    def test_within_is_inclusive(self):
        """Values on the window boundary are inside."""
        tol = PpmTolerance(20.0)
        low, high = tol.get_range(500.0)

        assert tol.within(low, 500.0)
        assert tol.within(high, 500.0)
        assert not tol.within(500.02, 500.0)

    def test_non_positive_rejected(self):
        """Zero or negative tolerances are invalid."""
        with pytest.raises(InvalidInputError):
            PpmTolerance(0.0)
        with pytest.raises(InvalidInputError):
            PpmTolerance(-5.0)

    def test_invalid_input_is_value_error(self):
        """Callers catching ValueError keep working."""
        with pytest.raises(ValueError):
            PpmTolerance(0.0)


class TestAbsoluteTolerance:
    """Test absolute windows."""

    def test_range_is_constant(self):
        """Absolute windows do not depend on the center."""
        tol = AbsoluteTolerance(0.5)

        assert tol.get_range(100.0) == (99.5, 100.5)
        assert tol.get_range(1000.0) == (999.5, 1000.5)

    def test_equality(self):
        """Tolerances compare by type and value."""
        assert AbsoluteTolerance(0.5) == AbsoluteTolerance(0.5)
        assert AbsoluteTolerance(0.5) != PpmTolerance(0.5)


class TestAsTolerance:
    """Test coercion of tolerance arguments."""

    def test_number_is_ppm(self):
        """Bare numbers are read as ppm."""
        assert as_tolerance(20.0) == PpmTolerance(20.0)

    def test_none_is_default(self):
        """None gives the 20 ppm peak-finding default."""
        assert as_tolerance(None) == PpmTolerance(20.0)

    def test_tolerance_passthrough(self):
        """Tolerance objects are returned unchanged."""
        tol = AbsoluteTolerance(0.01)
        assert as_tolerance(tol) is tol

    def test_non_positive_number_rejected(self):
        """Non-positive numbers are rejected."""
        with pytest.raises(InvalidInputError):
            as_tolerance(0)
