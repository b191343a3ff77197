"""
reference.py - Decimal reference values for fixed-point results

Every expected value in the math and pricing tests is computed here with
60-digit Decimal arithmetic, independently of bpt_oracle.fixed_point.
"""

from decimal import Decimal, localcontext

from bpt_oracle import to_decimal


def assert_close(actual: int, expected: Decimal, rel: str = "1e-15", units: int = 10, decimals: int = 18):
    """
    Assert a fixed-point int is within `rel` relative or `units` absolute
    units of a Decimal reference.
    """
    with localcontext() as ctx:
        ctx.prec = 60
        got = to_decimal(actual, decimals)
        tolerance = max(abs(expected) * Decimal(rel), Decimal(units).scaleb(-decimals))
        assert abs(got - expected) <= tolerance, f"{got} != {expected} (tolerance {tolerance})"


def ref_ln(x: str) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = 60
        return Decimal(x).ln()


def ref_exp(x: str) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = 60
        return Decimal(x).exp()


def ref_pow(base: str, exponent: str) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = 60
        return (Decimal(exponent) * Decimal(base).ln()).exp()


def ref_share_price(prices, weights, invariant, total_supply, denomination="1") -> Decimal:
    """Π (p_i / w_i)^w_i · V / Γ / d with Decimal inputs given as strings."""
    with localcontext() as ctx:
        ctx.prec = 60
        total = Decimal(1)
        for p, w in zip(prices, weights):
            p, w = Decimal(p), Decimal(w)
            total *= ((p / w).ln() * w).exp()
        return total * Decimal(invariant) / Decimal(total_supply) / Decimal(denomination)
