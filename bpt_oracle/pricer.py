"""
pricer.py - Fair price of a weighted pool share

Values one pool share from the pool invariant and external asset prices,
never from the pool's own balances:

    total_pi    = Π (p_i / w_i) ^ w_i
    share_price = total_pi * V / Γ
    price       = share_price / d        (rescaled to the output decimals)

where p_i are the normalised asset prices, w_i the live normalised weights,
V the live invariant, Γ the share supply and d the denomination price.

Every step runs in 18-decimal fixed point (fixed_point.py); the per-token
factor goes through the signed flavour and is converted back to unsigned
before it joins the product. The only externally visible values are unsigned.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .core import (
    Address,
    ChainView,
    DenominationConfig,
    InvalidElapsedTime,
    MalformedResponse,
    SECONDS_PER_YEAR,
    call_collaborator,
    require_uint,
)
from .fixed_point import ONE, div, exp, ln, mul, pow, sdiv, smul, to_decimal, to_signed, to_unsigned
from .normalizer import to_output_decimals
from .price_feed import PriceSourceAdapter
from .registry import PoolRegistry


@dataclass(frozen=True, slots=True)
class PriceBreakdown:
    """
    Every intermediate value of one share-price computation.

    All fields are 18-decimal fixed point except `price`, which is at
    `output_decimals`.
    """
    pool_address: Address
    tokens: Tuple[Address, ...]
    prices: Tuple[int, ...]
    weights: Tuple[int, ...]
    factors: Tuple[int, ...]
    total_pi: int
    invariant: int
    total_supply: int
    tvl: int
    share_price: int
    denomination_price: int
    price: int
    output_decimals: int

    def __repr__(self) -> str:
        w = 80
        bar = "─" * w

        def pad(text: str) -> str:
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        lines = [
            "",
            f"┌{bar}┐",
            f"│{pad(' Share price breakdown: ' + self.pool_address)}│",
            f"├{bar}┤",
        ]
        for token, p, wt, f in zip(self.tokens, self.prices, self.weights, self.factors):
            row = f"   {token}: price={to_decimal(p)} weight={to_decimal(wt)} factor={to_decimal(f)}"
            lines.append(f"│{pad(row)}│")
        lines += [
            f"├{bar}┤",
            f"│{pad('   total_pi     : ' + str(to_decimal(self.total_pi)))}│",
            f"│{pad('   invariant    : ' + str(to_decimal(self.invariant)))}│",
            f"│{pad('   total_supply : ' + str(to_decimal(self.total_supply)))}│",
            f"│{pad('   tvl          : ' + str(to_decimal(self.tvl)))}│",
            f"│{pad('   share_price  : ' + str(to_decimal(self.share_price)))}│",
            f"│{pad('   denomination : ' + str(to_decimal(self.denomination_price)))}│",
            f"│{pad('   price        : ' + str(to_decimal(self.price, self.output_decimals)))}│",
            f"└{bar}┘",
        ]
        return "\n".join(lines)


def _weighted_factor(price: int, weight: int) -> int:
    """(price / weight) ^ weight, computed in the signed flavour."""
    value = div(price, weight)
    factor = pow(to_signed(value), to_signed(weight))
    return to_unsigned(factor)


def compute_share_price(
    prices: Sequence[int],
    weights: Sequence[int],
    invariant: int,
    total_supply: int,
) -> int:
    """
    Share price in the price unit of `prices`, 18-decimal.

    Pure function: no collaborator is consulted. `prices` and `weights` are
    parallel and 18-decimal; weights are trusted to sum to ONE.

    Raises:
        ValueError: If prices and weights differ in length
        DivisionByZero: If a weight or total_supply is zero
        MathError: If any intermediate leaves its fixed-point range
    """
    if len(prices) != len(weights):
        raise ValueError(f"{len(prices)} prices for {len(weights)} weights")

    total_pi = ONE
    for price, weight in zip(prices, weights):
        total_pi = mul(total_pi, _weighted_factor(price, weight))

    return div(mul(total_pi, invariant), total_supply)


class WeightedPricer:
    """
    Reads live pool state and feed answers and turns them into a share price.

    The pricer holds no state of its own beyond its collaborators; two calls
    with identical external state return identical results.
    """

    def __init__(
        self,
        chain: ChainView,
        registry: PoolRegistry,
        adapter: PriceSourceAdapter,
        denomination: DenominationConfig,
    ):
        self.chain = chain
        self.registry = registry
        self.adapter = adapter
        self.denomination = denomination

    # ========================================================================
    # LIVE INPUTS
    # ========================================================================

    def denomination_price(self) -> int:
        """Live denomination price at 18 decimals."""
        return self.adapter.fetch_normalized(self.denomination.price_feed)

    def _live_weights(self, pool_address: Address, expected: int) -> List[int]:
        pool = call_collaborator(pool_address, "get_pool", self.chain.get_pool, pool_address)
        weights = call_collaborator(pool_address, "normalized_weights", pool.normalized_weights)
        if weights is None or isinstance(weights, (str, bytes)):
            raise MalformedResponse(pool_address, "normalized_weights", f"unexpected {weights!r}")
        weights = [require_uint(pool_address, "normalized_weights", w) for w in weights]
        if len(weights) != expected:
            raise MalformedResponse(
                pool_address,
                "normalized_weights",
                f"{len(weights)} weights for {expected} registered tokens",
            )
        return weights

    def _live_supply_side(self, pool_address: Address) -> Tuple[int, int]:
        pool = call_collaborator(pool_address, "get_pool", self.chain.get_pool, pool_address)
        invariant = require_uint(
            pool_address, "invariant", call_collaborator(pool_address, "invariant", pool.invariant)
        )
        supply = require_uint(
            pool_address, "total_supply", call_collaborator(pool_address, "total_supply", pool.total_supply)
        )
        return invariant, supply

    # ========================================================================
    # PRICING
    # ========================================================================

    def breakdown(self, pool_address: Address) -> PriceBreakdown:
        """
        Compute the share price and keep every intermediate value.

        Raises:
            PairNotInitialized: If the pool is not registered
            ExternalDataError: If a collaborator fails or a feed has no usable answer
            MathError: On division by zero (zero weight or supply) or overflow
        """
        record = self.registry.require(pool_address)
        weights = self._live_weights(pool_address, record.token_count)
        prices = [self.adapter.fetch_normalized(source) for source in record.price_sources]

        factors = [_weighted_factor(p, w) for p, w in zip(prices, weights)]
        total_pi = ONE
        for factor in factors:
            total_pi = mul(total_pi, factor)

        invariant, supply = self._live_supply_side(pool_address)
        tvl = mul(total_pi, invariant)
        share_price = div(tvl, supply)

        denomination_price = self.denomination_price()
        price = to_output_decimals(div(share_price, denomination_price), self.denomination.decimals)

        return PriceBreakdown(
            pool_address=pool_address,
            tokens=record.pool_tokens,
            prices=tuple(prices),
            weights=tuple(weights),
            factors=tuple(factors),
            total_pi=total_pi,
            invariant=invariant,
            total_supply=supply,
            tvl=tvl,
            share_price=share_price,
            denomination_price=denomination_price,
            price=price,
            output_decimals=self.denomination.decimals,
        )

    def price(self, pool_address: Address) -> int:
        """Fair price of one pool share, in the denomination's decimals."""
        return self.breakdown(pool_address).price

    def asset_prices(self, pool_address: Address) -> List[int]:
        """
        Each pool token's price in the denomination, record order, output decimals.

        Raises:
            PairNotInitialized: If the pool is not registered
            ExternalDataError: If any feed has no usable answer
        """
        record = self.registry.require(pool_address)
        d = self.denomination_price()
        decimals = self.denomination.decimals
        return [
            to_output_decimals(div(self.adapter.fetch_normalized(source), d), decimals)
            for source in record.price_sources
        ]

    # ========================================================================
    # RATES
    # ========================================================================

    @staticmethod
    def annualized_rate(rate_last: int, rate_current: int, elapsed_seconds: int) -> int:
        """
        Continuously compounded annual growth between two rate observations.

            exp((ln(current) - ln(last)) * SECONDS_PER_YEAR / elapsed) - 1

        The result is signed 18-decimal: a falling rate gives a negative value.
        This is the one public operation whose return value may be negative;
        every price the oracle returns is unsigned. Callers that need an
        unsigned figure should branch on the sign.

        Raises:
            InvalidElapsedTime: If elapsed_seconds <= 0
            LogarithmDomainError: If either rate is <= 0
            Overflow: If the annualised exponent exceeds the exp domain
        """
        if isinstance(elapsed_seconds, bool) or not isinstance(elapsed_seconds, int):
            raise InvalidElapsedTime(elapsed_seconds)
        if elapsed_seconds <= 0:
            raise InvalidElapsedTime(elapsed_seconds)

        log_growth = ln(rate_current) - ln(rate_last)
        per_year = smul(log_growth, SECONDS_PER_YEAR * ONE)
        exponent = sdiv(per_year, elapsed_seconds * ONE)
        return exp(exponent) - ONE
