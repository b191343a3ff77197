"""
oracle.py - WeightedPoolOracle service

The public surface of the package. Composes:
    - DecimalNormalizer (scalar cache)
    - PoolRegistry (registration records and listing)
    - PriceSourceAdapter (feed reads)
    - WeightedPricer (valuation)
    - AdminGate and ReentrancyGuard (authorisation and exclusion)

Mutating entry points (register, propose_admin, accept_admin) run inside the
reentrancy guard. Pricing queries are read-only and take no lock.

Every identity crossing the public surface (pools, feeds, admins, callers)
is first put in the chain's canonical spelling, so two spellings of one
address are one registry key and one admin.

Example:
    oracle = WeightedPoolOracle(chain, admin="alice", denomination=DenominationConfig(
        currency="USD", decimals=18, price_feed="USD/USD"))
    oracle.register("0xPool", ["0xFeedA", "0xFeedB"], caller="alice")
    oracle.price("0xPool")
"""

from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from .admin import AdminGate, ReentrancyGuard
from .analysis import CrossCheck, cross_check
from .core import (
    Address,
    ChainView,
    DenominationConfig,
    InvalidAddress,
    PoolRegistered,
    RegistrationRecord,
    Unauthorized,
    call_collaborator,
    is_null_identity,
)
from .normalizer import DecimalNormalizer
from .price_feed import PriceSourceAdapter
from .pricer import PriceBreakdown, WeightedPricer, compute_share_price
from .registry import PoolRegistry


class WeightedPoolOracle:
    """
    Fair-price oracle for weighted pool share tokens.

    Prices are returned as unsigned ints at `output_decimals`, expressed in
    the configured denomination currency.
    """

    def __init__(
        self,
        chain: ChainView,
        admin: Address,
        denomination: DenominationConfig,
        verbose: bool = True,
    ):
        """
        Create the oracle and cache the denomination feed's decimal scalar.

        Raises:
            ValueError: If admin is the null identity
            InvalidAddress: If admin or the denomination feed is not a valid identity on the chain
            UnsupportedDecimals: If the denomination feed reports decimals > 18
            ExternalDataError: If the denomination feed cannot be queried
        """
        self.chain = chain
        self.verbose = verbose
        denomination = replace(denomination, price_feed=self._canonical(denomination.price_feed))
        self.denomination = denomination

        self.normalizer = DecimalNormalizer()
        self.registry = PoolRegistry(chain, self.normalizer, verbose=verbose)
        self.adapter = PriceSourceAdapter(chain, self.normalizer)
        self.pricer = WeightedPricer(chain, self.registry, self.adapter, denomination)
        self.gate = AdminGate(self._canonical(admin), verbose=verbose)
        self.guard = ReentrancyGuard()

        feed = call_collaborator(
            denomination.price_feed, "get_price_feed", chain.get_price_feed, denomination.price_feed
        )
        feed_decimals = call_collaborator(denomination.price_feed, "decimals", feed.decimals)
        self.normalizer.compute_scalar(denomination.price_feed, feed_decimals)

        if verbose:
            print(
                f"🏦 Oracle ready: denomination {denomination.currency} "
                f"({denomination.decimals} dec) via {denomination.price_feed}"
            )

    # ========================================================================
    # IDENTITIES
    # ========================================================================

    def _canonical(self, identity: Optional[Address]) -> Optional[Address]:
        """Chain-canonical spelling; the null identity passes through as None."""
        if is_null_identity(identity):
            return None
        return self.chain.canonical(identity)

    def _caller(self, caller: Optional[Address], operation: str) -> Optional[Address]:
        """A caller that is not an address on this chain cannot be the admin."""
        try:
            return self._canonical(caller)
        except InvalidAddress as exc:
            raise Unauthorized(caller, operation) from exc

    # ========================================================================
    # PRICING (Read-only)
    # ========================================================================

    def price(self, pool_address: Address) -> int:
        return self.pricer.price(self._canonical(pool_address))

    def asset_prices(self, pool_address: Address) -> List[int]:
        return self.pricer.asset_prices(self._canonical(pool_address))

    def denomination_price(self) -> int:
        return self.pricer.denomination_price()

    def breakdown(self, pool_address: Address) -> PriceBreakdown:
        return self.pricer.breakdown(self._canonical(pool_address))

    def cross_check(self, pool_address: Address) -> CrossCheck:
        """Compare the fixed-point price with a floating-point reference."""
        return cross_check(self.breakdown(pool_address))

    compute_share_price = staticmethod(compute_share_price)
    annualized_rate = staticmethod(WeightedPricer.annualized_rate)

    # ========================================================================
    # REGISTRY
    # ========================================================================

    def register(
        self,
        pool_address: Address,
        price_sources: Sequence[Address],
        *,
        caller: Optional[Address],
    ) -> RegistrationRecord:
        """
        Register a pool. Admin only.

        price_sources must be in the same order as the vault's token list for
        the pool; this is trusted, not verified.
        """
        with self.guard.hold("register"):
            self.gate.require_admin(self._caller(caller, "register"), "register")
            return self.registry.register(
                self._canonical(pool_address),
                [self._canonical(source) for source in price_sources],
            )

    def lookup(self, pool_address: Address) -> Optional[RegistrationRecord]:
        return self.registry.lookup(self._canonical(pool_address))

    def listing_size(self) -> int:
        return self.registry.listing_size()

    def all_listed(self) -> Tuple[Address, ...]:
        return self.registry.all_listed()

    @property
    def event_log(self) -> List[PoolRegistered]:
        return self.registry.event_log

    # ========================================================================
    # ADMINISTRATION
    # ========================================================================

    def propose_admin(self, candidate: Optional[Address], *, caller: Optional[Address]) -> None:
        with self.guard.hold("propose_admin"):
            self.gate.propose_admin(
                self._canonical(candidate), self._caller(caller, "propose_admin")
            )

    def accept_admin(self, *, caller: Optional[Address] = None) -> Address:
        with self.guard.hold("accept_admin"):
            # Acceptance is open to anyone; caller only labels the log line
            return self.gate.accept_admin(caller)

    @property
    def admin(self) -> Address:
        return self.gate.admin

    @property
    def pending_admin(self) -> Optional[Address]:
        return self.gate.pending_admin

    @property
    def output_decimals(self) -> int:
        return self.denomination.decimals

    def __repr__(self):
        return (
            f"WeightedPoolOracle(denomination={self.denomination.currency}, "
            f"pools={self.listing_size()}, admin={self.admin})"
        )
