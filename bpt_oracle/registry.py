"""
registry.py - Pool registration store

The PoolRegistry is the only component that records pool metadata. It owns:
    - One RegistrationRecord per pool identity (never deleted, never replaced)
    - The append-only listing of registered pools, in registration order
    - The log of PoolRegistered events

Registration is all-or-nothing: every collaborator query runs and every
decimal scalar is staged before the first byte of state is written.

Authorisation and reentrancy are enforced by the owning service
(WeightedPoolOracle); the registry assumes its caller already holds both.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from .core import (
    ASSET_KIND_FEED,
    ASSET_KIND_TOKEN,
    Address,
    ChainView,
    InvalidPoolComposition,
    MalformedResponse,
    PairAlreadyInitialized,
    PairNotInitialized,
    PoolRegistered,
    PriceSourceCountMismatch,
    RegistrationRecord,
    call_collaborator,
)
from .normalizer import DecimalNormalizer


class PoolRegistry:
    """
    Durable mapping from pool identity to its registration record.

    Example:
        registry = PoolRegistry(chain, DecimalNormalizer())
        record = registry.register("0xPool", ["0xFeedA", "0xFeedB"])
        registry.lookup("0xPool").pool_tokens
        registry.all_listed()     # ("0xPool",)
    """

    def __init__(self, chain: ChainView, normalizer: DecimalNormalizer, verbose: bool = True):
        """
        Create an empty registry.

        Args:
            chain: Resolver for pools, the vault, tokens and price feeds
            normalizer: Scalar cache shared with the pricer
            verbose: Print a confirmation line on every registration
        """
        self.chain = chain
        self.normalizer = normalizer
        self.verbose = verbose
        self._records: Dict[Address, RegistrationRecord] = {}
        self._listing: List[Address] = []
        self.event_log: List[PoolRegistered] = []

    # ========================================================================
    # QUERIES
    # ========================================================================

    def lookup(self, pool_address: Address) -> Optional[RegistrationRecord]:
        """Record for a pool, or None when the pool was never registered."""
        return self._records.get(pool_address)

    def require(self, pool_address: Address) -> RegistrationRecord:
        """
        Record for a pool.

        Raises:
            PairNotInitialized: If the pool has no initialized record
        """
        record = self._records.get(pool_address)
        if record is None or not record.initialized:
            raise PairNotInitialized(pool_address)
        return record

    def is_initialized(self, pool_address: Address) -> bool:
        record = self._records.get(pool_address)
        return record is not None and record.initialized

    def listing_size(self) -> int:
        return len(self._listing)

    def all_listed(self) -> Tuple[Address, ...]:
        """Every registered pool, in registration order."""
        return tuple(self._listing)

    @property
    def next_id(self) -> int:
        return len(self._listing)

    # ========================================================================
    # REGISTRATION (Mutating)
    # ========================================================================

    def register(self, pool_address: Address, price_sources: Sequence[Address]) -> RegistrationRecord:
        """
        Register a pool and cache its token metadata.

        PRECONDITION: price_sources[i] prices the i-th token of the pool as
        reported by the vault. The registry cannot check this and never
        reorders.

        Args:
            pool_address: Identity of the weighted pool
            price_sources: Feed identities, parallel to the pool's tokens

        Returns:
            The stored RegistrationRecord

        Raises:
            PairAlreadyInitialized: If the pool already has a record
            InvalidPoolComposition: If the vault reports fewer than 2 tokens
            PriceSourceCountMismatch: If len(price_sources) != token count
            UnsupportedDecimals: If a token or feed reports decimals > 18
            ExternalDataError: If any collaborator call fails
        """
        if self.is_initialized(pool_address):
            raise PairAlreadyInitialized(pool_address)

        price_sources = tuple(price_sources)

        pool = call_collaborator(pool_address, "get_pool", self.chain.get_pool, pool_address)
        pool_id = call_collaborator(pool_address, "pool_id", pool.pool_id)
        display_name = call_collaborator(pool_address, "name", pool.name)
        vault = call_collaborator("vault", "get_vault", self.chain.get_vault)
        tokens = call_collaborator("vault", "tokens_of_pool", vault.tokens_of_pool, pool_id)
        if tokens is None or isinstance(tokens, (str, bytes)):
            raise MalformedResponse("vault", "tokens_of_pool", f"unexpected token list {tokens!r}")
        tokens = tuple(tokens)

        if len(tokens) < 2:
            raise InvalidPoolComposition(pool_address, len(tokens))
        if len(price_sources) != len(tokens):
            raise PriceSourceCountMismatch(pool_address, len(tokens), len(price_sources))

        token_decimals = tuple(self._read_decimals(token, self.chain.get_token) for token in tokens)
        source_decimals = tuple(
            self._read_decimals(source, self.chain.get_price_feed) for source in price_sources
        )

        # Validates every decimal count before anything is committed
        staged = self.normalizer.stage(
            [(ASSET_KIND_TOKEN, t, d) for t, d in zip(tokens, token_decimals)]
            + [(ASSET_KIND_FEED, s, d) for s, d in zip(price_sources, source_decimals)]
        )

        record = RegistrationRecord(
            id=self.next_id,
            display_name=str(display_name),
            pool_address=pool_address,
            pool_id=pool_id,
            pool_tokens=tokens,
            token_decimals=token_decimals,
            price_sources=price_sources,
            price_source_decimals=source_decimals,
            initialized=True,
        )

        # Commit
        self.normalizer.commit(staged)
        self._records[pool_address] = record
        self._listing.append(pool_address)
        event = PoolRegistered(sequence=len(self.event_log), record=record.snapshot())
        self.event_log.append(event)

        if self.verbose:
            print(
                f"📝 Registered pool #{record.id}: {record.display_name} ({pool_address}) "
                f"[{record.token_count} tokens]"
            )
        return record

    def _read_decimals(self, address: Address, resolve) -> int:
        contract = call_collaborator(address, "resolve", resolve, address)
        decimals = call_collaborator(address, "decimals", contract.decimals)
        if isinstance(decimals, bool) or not isinstance(decimals, int):
            raise MalformedResponse(address, "decimals", f"expected int, got {decimals!r}")
        return decimals

    def __repr__(self):
        return f"PoolRegistry({len(self._listing)} pools)"
