"""
bpt_oracle - Fair-price oracle for weighted pool share tokens

Values a share of an n-token weighted AMM pool from the pool invariant and
external asset prices, in 18-decimal fixed point, so that the result cannot
be moved by trading against the pool.

Usage:
    from bpt_oracle import (
        WeightedPoolOracle, DenominationConfig, InMemoryChain,
        StaticToken, StaticWeightedPool, StaticPriceFeed, from_decimal,
    )

    chain = InMemoryChain()
    chain.add_token("WETH", StaticToken("Wrapped Ether", 18))
    chain.add_token("USDC", StaticToken("USD Coin", 6))
    chain.add_price_feed("ETH/USD", StaticPriceFeed(2_000 * 10**8, 8))
    chain.add_price_feed("USDC/USD", StaticPriceFeed(10**8, 8))
    chain.add_price_feed("USD", StaticPriceFeed(10**8, 8))
    chain.add_pool("B-50WETH-50USDC", StaticWeightedPool(
        "B-50WETH-50USDC", "pool-1",
        weights=[from_decimal("0.5"), from_decimal("0.5")],
        invariant=from_decimal("1000"), total_supply=from_decimal("500"),
    ), ["WETH", "USDC"])

    oracle = WeightedPoolOracle(chain, "alice", DenominationConfig("USD", 18, "USD"))
    oracle.register("B-50WETH-50USDC", ["ETH/USD", "USDC/USD"], caller="alice")
    oracle.price("B-50WETH-50USDC")

Against a live node, with settings read from .env and BPT_ORACLE_* variables:

    from bpt_oracle import connect, load_settings

    oracle = connect(load_settings())
"""

# Core types
from .core import (
    ChainView,
    WeightedPool,
    Vault,
    Token,
    PriceFeed,
    DenominationConfig,
    RegistrationRecord,
    PoolRegistered,
    AdminState,
    OracleError,
    AuthorizationError,
    Unauthorized,
    StateConflictError,
    PairAlreadyInitialized,
    DuplicateAdminProposal,
    ReentrantCall,
    NotFoundError,
    PairNotInitialized,
    AssetNotNormalized,
    InvalidInputError,
    NoPendingAdmin,
    InvalidElapsedTime,
    UnsupportedDecimals,
    InvalidPoolComposition,
    PriceSourceCountMismatch,
    InvalidAddress,
    MathError,
    Overflow,
    DivisionByZero,
    LogarithmDomainError,
    PowerDomainError,
    ExternalDataError,
    PriceUnavailable,
    CollaboratorCallFailed,
    MalformedResponse,
    CANONICAL_DECIMALS,
    SECONDS_PER_YEAR,
    ZERO_ADDRESS,
    ASSET_KIND_TOKEN,
    ASSET_KIND_FEED,
)

# Fixed-point math
from .fixed_point import (
    ONE,
    mul, div, smul, sdiv,
    ln, exp, pow, powu,
    to_signed, to_unsigned,
    from_decimal, to_decimal,
)

# Components
from .normalizer import DecimalNormalizer, to_output_decimals
from .price_feed import PriceSourceAdapter, StaticPriceFeed, FeedAnswer
from .registry import PoolRegistry
from .admin import AdminGate, ReentrancyGuard
from .pricer import WeightedPricer, PriceBreakdown, compute_share_price
from .analysis import CrossCheck, cross_check, reference_share_price

# Service
from .oracle import WeightedPoolOracle

# Collaborators
from .static_chain import InMemoryChain, StaticToken, StaticVault, StaticWeightedPool
from .web3_chain import Web3Chain, connect

# Configuration
from .config import OracleSettings, load_settings

__version__ = "0.1.0"
