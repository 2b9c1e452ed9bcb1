"""
Tests for returns calculation utilities.
Hand-verifiable prices; the 'N/A' marker must never be a number.
"""

import math
import pytest
from datetime import date

from analysis.calculations.returns import (
    percent_return,
    trailing_return,
    is_available
)
from analysis.models import NOT_AVAILABLE, PricePoint


class TestPercentReturn:
    """Tests for percent_return function."""

    def test_percent_return_basic(self):
        """10% gain from 110 to 121."""
        assert percent_return(110.0, 121.0) == pytest.approx(10.0)

    def test_percent_return_negative(self):
        """Loss is a negative percentage."""
        assert percent_return(100.0, 80.0) == pytest.approx(-20.0)

    def test_percent_return_flat(self):
        """Unchanged price is a computed zero, not the marker."""
        result = percent_return(50.0, 50.0)
        assert result == 0.0
        assert result != NOT_AVAILABLE

    def test_percent_return_zero_anchor(self):
        """Zero anchor price yields the marker instead of dividing."""
        result = percent_return(0.0, 121.0)
        assert result == 'N/A'
        assert isinstance(result, str)

    def test_percent_return_missing_anchor(self):
        """Missing anchor price yields the marker."""
        assert percent_return(None, 121.0) == NOT_AVAILABLE

    def test_percent_return_latest_zero(self):
        """A zero latest price is a total loss."""
        assert percent_return(40.0, 0.0) == pytest.approx(-100.0)

    def test_percent_return_subnormal_anchor(self):
        """A tiny positive anchor that overflows yields the marker."""
        assert percent_return(1e-310, 121.0) == NOT_AVAILABLE


class TestTrailingReturn:
    """Tests for trailing_return function."""

    def test_trailing_return_from_anchor(self):
        """Uses the anchor's adjusted close."""
        anchor = PricePoint('DAL', date(2021, 1, 1), 110.0)
        assert trailing_return(anchor, 121.0) == pytest.approx(10.0)

    def test_trailing_return_no_anchor(self):
        """No anchor yields the marker."""
        assert trailing_return(None, 121.0) == NOT_AVAILABLE

    def test_trailing_return_unpriced_anchor(self):
        """Anchor without a price yields the marker."""
        anchor = PricePoint('DAL', date(2021, 1, 1), None)
        assert trailing_return(anchor, 121.0) == NOT_AVAILABLE

    def test_trailing_return_zero_priced_anchor(self):
        """Zero-priced anchor yields the marker, never infinity."""
        anchor = PricePoint('DAL', date(2021, 1, 1), 0.0)
        result = trailing_return(anchor, 121.0)
        assert result == NOT_AVAILABLE
        assert not (isinstance(result, float) and math.isinf(result))


class TestIsAvailable:
    """Tests for is_available function."""

    def test_numbers_are_available(self):
        assert is_available(10.0)
        assert is_available(0.0)
        assert is_available(-3)

    def test_marker_is_not_available(self):
        assert not is_available(NOT_AVAILABLE)

    def test_non_finite_is_not_available(self):
        assert not is_available(float('nan'))
        assert not is_available(float('inf'))
