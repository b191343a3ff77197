"""
test_analysis.py - Tests for the floating-point reference valuation
"""

import math

import numpy as np
import pytest

from bpt_oracle import CrossCheck, cross_check, reference_share_price
from bpt_oracle.analysis import fixed_to_float, relative_deviation

from tests.fake_chain import POOL


class TestReferenceSharePrice:

    def test_reference_scenario(self):
        assert reference_share_price([2.0, 8.0], [0.5, 0.5], 1000.0, 500.0) == pytest.approx(16.0, rel=1e-12)

    def test_unequal_weights(self):
        prices = np.array([2000.0, 1.0])
        weights = np.array([0.8, 0.2])
        expected = math.prod((prices / weights) ** weights) * 10.0 / 4.0
        assert reference_share_price(prices, weights, 10.0, 4.0) == pytest.approx(expected, rel=1e-12)

    def test_mismatched_lengths(self):
        with pytest.raises(ValueError, match="parallel"):
            reference_share_price([1.0], [0.5, 0.5], 1.0, 1.0)

    @pytest.mark.parametrize("prices", [[0.0, 1.0], [-1.0, 1.0], [float("nan"), 1.0]])
    def test_bad_prices(self, prices):
        with pytest.raises(ValueError, match="prices"):
            reference_share_price(prices, [0.5, 0.5], 1.0, 1.0)

    def test_zero_supply(self):
        with pytest.raises(ValueError, match="total_supply"):
            reference_share_price([1.0, 1.0], [0.5, 0.5], 1.0, 0.0)


class TestHelpers:

    def test_fixed_to_float(self):
        assert fixed_to_float(1_500_000_000_000_000_000) == 1.5
        assert fixed_to_float(16_000_000, 6) == 16.0

    def test_relative_deviation(self):
        assert relative_deviation(101.0, 100.0) == pytest.approx(0.01)
        assert relative_deviation(0.0, 0.0) == 0.0
        assert relative_deviation(1.0, 0.0) == float("inf")


class TestCrossCheck:

    def test_fixed_point_matches_float(self, registered_oracle):
        check = cross_check(registered_oracle.breakdown(POOL))
        assert isinstance(check, CrossCheck)
        assert check.deviation < 1e-12
        assert check.within(1e-12)

    def test_within(self):
        check = CrossCheck(price=1.0, reference=1.1, deviation=0.0909)
        assert check.within(0.1)
        assert not check.within(0.01)
