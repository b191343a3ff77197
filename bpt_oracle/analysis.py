"""
analysis.py - Floating-point reference valuation

Recomputes the share price with numpy/scipy doubles so that the fixed-point
result can be sanity-checked off-chain:

    reference = gmean(p / w, weights=w) * V / Γ / d

scipy's weighted geometric mean is exp(Σ w·ln(x) / Σ w), which equals
Π x^w when the weights sum to one.

Nothing here feeds back into pricing. Doubles carry about 15 significant
digits, so deviations around 1e-12 are expected and anything near 1e-6
points at a bad input rather than rounding.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np
from scipy.stats import gmean

from .core import CANONICAL_DECIMALS


def fixed_to_float(value: int, decimals: int = CANONICAL_DECIMALS) -> float:
    """Fixed-point integer to float (lossy)."""
    return value / 10 ** decimals


def reference_share_price(
    prices: Sequence[float],
    weights: Sequence[float],
    invariant: float,
    total_supply: float,
) -> float:
    """
    Share price from float inputs.

    Raises:
        ValueError: If inputs are not parallel, prices/weights are not
                    positive and finite, or total_supply is not positive
    """
    p = np.asarray(prices, dtype=float)
    w = np.asarray(weights, dtype=float)
    if p.shape != w.shape or p.ndim != 1 or p.size == 0:
        raise ValueError("prices and weights must be non-empty and parallel")
    if not np.all(np.isfinite(p)) or np.any(p <= 0):
        raise ValueError("prices must be positive and finite")
    if not np.all(np.isfinite(w)) or np.any(w <= 0):
        raise ValueError("weights must be positive and finite")
    if total_supply <= 0:
        raise ValueError("total_supply must be positive")

    total_pi = float(gmean(p / w, weights=w))
    return total_pi * invariant / total_supply


def relative_deviation(actual: float, expected: float) -> float:
    """|actual - expected| / |expected|; 0 when both are 0, inf when only expected is."""
    if expected == 0:
        return 0.0 if actual == 0 else float("inf")
    return abs(actual - expected) / abs(expected)


@dataclass(frozen=True, slots=True)
class CrossCheck:
    """
    Fixed-point price next to its float reference, both in denomination units.

    Attributes:
        price: Oracle price converted to float.
        reference: Float recomputation from the same inputs.
        deviation: Relative deviation of price from reference.
    """
    price: float
    reference: float
    deviation: float

    def within(self, tolerance: float) -> bool:
        return self.deviation <= tolerance


def cross_check(breakdown) -> CrossCheck:
    """
    Cross-check a PriceBreakdown against the float reference.

    The reference uses the breakdown's own inputs, so the comparison isolates
    arithmetic error from feed movement between calls.
    """
    prices = [fixed_to_float(p) for p in breakdown.prices]
    weights = [fixed_to_float(w) for w in breakdown.weights]
    share = reference_share_price(
        prices,
        weights,
        fixed_to_float(breakdown.invariant),
        fixed_to_float(breakdown.total_supply),
    )
    reference = share / fixed_to_float(breakdown.denomination_price)
    price = fixed_to_float(breakdown.price, breakdown.output_decimals)
    return CrossCheck(price=price, reference=reference, deviation=relative_deviation(price, reference))
