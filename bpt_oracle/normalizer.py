"""
normalizer.py - Decimal scaling cache

Converts raw integer amounts expressed in an asset's native decimals into the
canonical 18-decimal representation. The scalar 10**(18 - decimals) is
computed once per (kind, identity) and reused; decimals are assumed immutable
for a given identity, so a cached scalar is never recomputed.

Registration stages scalars for every asset it touches and commits them only
once all collaborator queries have succeeded.
"""

from typing import Dict, Iterable, List, Mapping, Tuple

from .core import (
    ASSET_KIND_FEED,
    CANONICAL_DECIMALS,
    Address,
    AssetNotNormalized,
    Overflow,
    UnsupportedDecimals,
)
from .fixed_point import UINT256_MAX


# (kind, identity), kind being ASSET_KIND_TOKEN or ASSET_KIND_FEED
ScaleKey = Tuple[str, Address]


def scalar_for(asset: Address, decimals: int) -> int:
    """
    Return 10**(18 - decimals) for an asset's native decimal count.

    Raises:
        UnsupportedDecimals: If decimals is not an int in [0, 18]
    """
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise UnsupportedDecimals(asset, decimals)
    if not 0 <= decimals <= CANONICAL_DECIMALS:
        raise UnsupportedDecimals(asset, decimals)
    return 10 ** (CANONICAL_DECIMALS - decimals)


def to_output_decimals(value: int, decimals: int) -> int:
    """
    Rescale a canonical 18-decimal value down to `decimals`, truncating.

    Example:
        to_output_decimals(16_000_000_000_000_000_000, 6) -> 16_000_000
    """
    if not 0 <= decimals <= CANONICAL_DECIMALS:
        raise UnsupportedDecimals("output", decimals)
    return value // 10 ** (CANONICAL_DECIMALS - decimals)


class DecimalNormalizer:
    """
    Per-asset scalar cache, keyed by (kind, identity).

    Tokens and price feeds live in separate namespaces: a token and a feed
    that share an identity keep their own scalars. Lookups default to the
    feed namespace, the one pricing reads.

    Example:
        normalizer = DecimalNormalizer()
        normalizer.compute_scalar("USDC", 6)
        normalizer.normalize("USDC", 8_000_000)   # -> 8 * 10**18
        normalizer.compute_scalar("USDC", 6, kind="token")
    """

    def __init__(self):
        self._scalars: Dict[ScaleKey, int] = {}

    def __repr__(self) -> str:
        return f"DecimalNormalizer({len(self._scalars)} assets)"

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_cached(self, asset: Address, kind: str = ASSET_KIND_FEED) -> bool:
        return (kind, asset) in self._scalars

    def scalar(self, asset: Address, kind: str = ASSET_KIND_FEED) -> int:
        """Cached scalar for an asset (AssetNotNormalized if never computed)."""
        key = (kind, asset)
        if key not in self._scalars:
            raise AssetNotNormalized(asset, kind)
        return self._scalars[key]

    def cached_assets(self, kind: str = ASSET_KIND_FEED) -> List[Address]:
        """Identities cached under one kind, sorted."""
        return sorted(asset for k, asset in self._scalars if k == kind)

    def cached_keys(self) -> List[ScaleKey]:
        """Every (kind, identity) pair in the cache, sorted."""
        return sorted(self._scalars)

    def normalize(self, asset: Address, raw_amount: int, kind: str = ASSET_KIND_FEED) -> int:
        """
        Reinterpret a raw amount at the canonical 18-decimal scale.

        Raises:
            AssetNotNormalized: If compute_scalar was never called for the asset
            Overflow: If the scaled amount leaves the unsigned range
        """
        result = raw_amount * self.scalar(asset, kind)
        if result < 0 or result > UINT256_MAX:
            raise Overflow(f"normalize: {asset} amount {raw_amount} out of range")
        return result

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def compute_scalar(self, asset: Address, decimals: int, kind: str = ASSET_KIND_FEED) -> int:
        """
        Cache the scalar for an asset and return the cached value.

        Idempotent: if the asset is already cached, the stored scalar wins even
        when `decimals` now disagrees with it.
        """
        key = (kind, asset)
        if key not in self._scalars:
            self._scalars[key] = scalar_for(asset, decimals)
        return self._scalars[key]

    def stage(self, entries: Iterable[Tuple[str, Address, int]]) -> Dict[ScaleKey, int]:
        """
        Compute scalars for (kind, asset, decimals) triples without touching
        the cache.

        Already cached assets contribute their cached scalar. Any unsupported
        decimal count raises before anything is committed.
        """
        staged: Dict[ScaleKey, int] = {}
        for kind, asset, decimals in entries:
            key = (kind, asset)
            if key in self._scalars:
                staged[key] = self._scalars[key]
            elif key not in staged:
                staged[key] = scalar_for(asset, decimals)
        return staged

    def commit(self, staged: Mapping[ScaleKey, int]) -> None:
        """Store staged scalars; existing entries are left untouched."""
        for key, scalar in staged.items():
            self._scalars.setdefault(key, scalar)
