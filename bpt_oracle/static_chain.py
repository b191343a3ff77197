"""
static_chain.py - In-memory collaborators

A ChainView whose pools, tokens and feeds are plain Python objects. Used by
demo.py and the test suite, and handy for what-if valuations off-chain.

Classes:
- StaticToken: Fixed name and decimals
- StaticWeightedPool: Settable weights, invariant and supply
- StaticVault: pool_id -> ordered token list
- InMemoryChain: Address book tying them together
"""

from typing import Any, Dict, List, Optional, Sequence

from .core import Address, PriceFeed, Token, Vault, WeightedPool


class StaticToken:
    """ERC20 metadata with fixed values."""

    def __init__(self, name: str, decimals: int = 18):
        self._name = name
        self._decimals = decimals

    def name(self) -> str:
        return self._name

    def decimals(self) -> int:
        return self._decimals

    def __repr__(self):
        return f"StaticToken({self._name}, decimals={self._decimals})"


class StaticWeightedPool:
    """
    Weighted pool with directly settable state.

    Weights, invariant and supply are 18-decimal fixed-point integers.
    """

    def __init__(
        self,
        name: str,
        pool_id: Any,
        weights: Sequence[int],
        invariant: int,
        total_supply: int,
    ):
        self._name = name
        self._pool_id = pool_id
        self._weights = list(weights)
        self._invariant = invariant
        self._total_supply = total_supply

    def pool_id(self) -> Any:
        return self._pool_id

    def name(self) -> str:
        return self._name

    def normalized_weights(self) -> List[int]:
        return list(self._weights)

    def invariant(self) -> int:
        return self._invariant

    def total_supply(self) -> int:
        return self._total_supply

    def update_weights(self, weights: Sequence[int]) -> None:
        self._weights = list(weights)

    def update_invariant(self, invariant: int) -> None:
        self._invariant = invariant

    def update_total_supply(self, total_supply: int) -> None:
        self._total_supply = total_supply

    def __repr__(self):
        return f"StaticWeightedPool({self._name}, {len(self._weights)} tokens)"


class StaticVault:
    """Maps a pool id to its ordered token identities."""

    def __init__(self, pools: Optional[Dict[Any, Sequence[Address]]] = None):
        self.pools: Dict[Any, List[Address]] = {
            pool_id: list(tokens) for pool_id, tokens in (pools or {}).items()
        }

    def tokens_of_pool(self, pool_id: Any) -> List[Address]:
        if pool_id not in self.pools:
            raise KeyError(f"Unknown pool id {pool_id}")
        return list(self.pools[pool_id])

    def set_pool_tokens(self, pool_id: Any, tokens: Sequence[Address]) -> None:
        self.pools[pool_id] = list(tokens)


class InMemoryChain:
    """
    ChainView backed by dictionaries.

    Unknown addresses raise KeyError; the oracle surfaces those as
    collaborator failures with the offending identity attached.

    Example:
        chain = InMemoryChain()
        chain.add_token("WETH", StaticToken("Wrapped Ether", 18))
        chain.add_token("USDC", StaticToken("USD Coin", 6))
        chain.add_price_feed("ETH/USD", StaticPriceFeed(2_000 * 10**8, 8))
        chain.add_price_feed("USDC/USD", StaticPriceFeed(10**8, 8))
        chain.add_pool("B-50WETH-50USDC", StaticWeightedPool(...), ["WETH", "USDC"])
    """

    def __init__(self, vault: Optional[StaticVault] = None):
        self.vault = vault if vault is not None else StaticVault()
        self.pools: Dict[Address, WeightedPool] = {}
        self.tokens: Dict[Address, Token] = {}
        self.price_feeds: Dict[Address, PriceFeed] = {}

    # ------------------------------------------------------------------
    # ChainView
    # ------------------------------------------------------------------

    def get_pool(self, address: Address) -> WeightedPool:
        if address not in self.pools:
            raise KeyError(f"No pool at {address}")
        return self.pools[address]

    def get_vault(self) -> Vault:
        return self.vault

    def get_token(self, address: Address) -> Token:
        if address not in self.tokens:
            raise KeyError(f"No token at {address}")
        return self.tokens[address]

    def get_price_feed(self, address: Address) -> PriceFeed:
        if address not in self.price_feeds:
            raise KeyError(f"No price feed at {address}")
        return self.price_feeds[address]

    def canonical(self, address: Address) -> Address:
        """In-memory identities are opaque labels and already canonical."""
        return address

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def add_token(self, address: Address, token: Token) -> None:
        self.tokens[address] = token

    def add_price_feed(self, address: Address, feed: PriceFeed) -> None:
        self.price_feeds[address] = feed

    def add_pool(
        self,
        address: Address,
        pool: WeightedPool,
        tokens: Optional[Sequence[Address]] = None,
    ) -> None:
        """
        Add a pool and, when `tokens` is given, register its token list with
        the vault under the pool's id.
        """
        self.pools[address] = pool
        if tokens is not None:
            self.vault.set_pool_tokens(pool.pool_id(), tokens)

    def __repr__(self):
        return (
            f"InMemoryChain({len(self.pools)} pools, {len(self.tokens)} tokens, "
            f"{len(self.price_feeds)} feeds)"
        )
