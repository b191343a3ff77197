"""
Core types and protocols for the weighted pool share oracle.

This module provides the foundational data structures shared by every component:
1. Protocols: ChainView and the external collaborators it resolves
   (WeightedPool, Vault, Token, PriceFeed)
2. Immutable data structures: DenominationConfig, RegistrationRecord,
   PoolRegistered, AdminState
3. Exceptions: OracleError and the domain-specific error taxonomy
4. Type aliases and constants

Collaborators are read-only from the oracle's point of view. Nothing in this
module mutates oracle state.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol, Sequence, Tuple, runtime_checkable


# ============================================================================
# CONSTANTS
# ============================================================================

# Every price, weight, invariant and supply is handled at this scale internally.
CANONICAL_DECIMALS = 18

# The null identity on EVM chains. None is accepted as null as well.
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# 365 days, used for continuously-compounded annualisation.
SECONDS_PER_YEAR = 31_536_000

# Namespaces of the decimal scalar cache. Tokens and price feeds are resolved
# separately and may share an identity.
ASSET_KIND_TOKEN = "token"
ASSET_KIND_FEED = "feed"


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Identity of a contract or account (an EVM address on live chains).
Address = str

# 18-decimal fixed-point value stored as a plain int.
Fixed = int


def is_null_identity(identity: Optional[Address]) -> bool:
    """Return True for the null identity (None or the zero address)."""
    return identity is None or identity == ZERO_ADDRESS


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class WeightedPool(Protocol):
    """
    Read-only interface to a weighted AMM pool.

    All amounts are 18-decimal fixed-point integers. Weights are expected to
    sum to ONE; the oracle trusts the pool on this and does not re-verify.
    """

    def pool_id(self) -> Any:
        """Identity of the pool inside its vault."""
        ...

    def name(self) -> str:
        """Human-readable name of the pool share token."""
        ...

    def normalized_weights(self) -> Sequence[int]:
        """Current normalised weights, in vault token order."""
        ...

    def invariant(self) -> int:
        """Current value of the pool invariant."""
        ...

    def total_supply(self) -> int:
        """Total supply of the pool share token."""
        ...


@runtime_checkable
class Vault(Protocol):
    """Registry that owns pool balances and knows each pool's token list."""

    def tokens_of_pool(self, pool_id: Any) -> Sequence[Address]:
        """Ordered token identities of a pool."""
        ...


@runtime_checkable
class Token(Protocol):
    """ERC20-style asset metadata."""

    def decimals(self) -> int:
        ...

    def name(self) -> str:
        ...


@runtime_checkable
class PriceFeed(Protocol):
    """
    External price source.

    latest_answer() returns the raw scalar answer in the feed's own decimals.
    Implementations may raise or return None/garbage; the price adapter is
    responsible for rejecting anything that is not a usable answer.
    """

    def latest_answer(self) -> Any:
        ...

    def decimals(self) -> int:
        ...


@runtime_checkable
class ChainView(Protocol):
    """
    Read-only resolver from identities to collaborator objects.

    This is the only way components reach external state. Implementations:
    - InMemoryChain (static_chain.py) for simulation and tests
    - Web3Chain (web3_chain.py) for live EVM chains
    """

    def get_pool(self, address: Address) -> WeightedPool:
        ...

    def get_vault(self) -> Vault:
        ...

    def get_token(self, address: Address) -> Token:
        ...

    def get_price_feed(self, address: Address) -> PriceFeed:
        ...

    def canonical(self, address: Address) -> Address:
        """Canonical spelling of an identity; equal identities compare equal."""
        ...


# ============================================================================
# EXCEPTIONS
# ============================================================================

class OracleError(Exception):
    """Base exception for all oracle errors."""
    pass


# --- Authorization ----------------------------------------------------------

class AuthorizationError(OracleError):
    """Raised when the caller lacks the required authority."""
    pass


class Unauthorized(AuthorizationError):
    """Raised when a non-admin caller attempts an admin-only operation."""

    def __init__(self, caller: Optional[Address], operation: str):
        super().__init__(f"{caller} is not authorized to call {operation}")
        self.caller = caller
        self.operation = operation


# --- State conflicts --------------------------------------------------------

class StateConflictError(OracleError):
    """Raised when an operation conflicts with existing state."""
    pass


class PairAlreadyInitialized(StateConflictError):
    """Raised when registering a pool that already has a record."""

    def __init__(self, pool: Address):
        super().__init__(f"Pool {pool} already initialized")
        self.pool = pool


class DuplicateAdminProposal(StateConflictError):
    """Raised when proposing the identity that is already pending."""

    def __init__(self, candidate: Optional[Address]):
        super().__init__(f"{candidate} is already the pending admin")
        self.candidate = candidate


class ReentrantCall(StateConflictError):
    """Raised when a mutating entry point is re-entered before it completes."""

    def __init__(self, operation: str):
        super().__init__(f"Reentrant call into {operation}")
        self.operation = operation


# --- Not found --------------------------------------------------------------

class NotFoundError(OracleError):
    """Raised when a referenced entity does not exist."""
    pass


class PairNotInitialized(NotFoundError):
    """Raised when pricing or requiring a pool that has no record."""

    def __init__(self, pool: Address):
        super().__init__(f"Pool {pool} not initialized")
        self.pool = pool


class AssetNotNormalized(NotFoundError):
    """Raised when normalising an amount for an asset with no cached scalar."""

    def __init__(self, asset: Address, kind: str = ASSET_KIND_FEED):
        super().__init__(f"{kind.capitalize()} {asset} has no cached decimal scalar")
        self.asset = asset
        self.kind = kind


# --- Invalid input ----------------------------------------------------------

class InvalidInputError(OracleError, ValueError):
    """Raised when an argument is outside the accepted domain."""
    pass


class NoPendingAdmin(InvalidInputError):
    """Raised when accepting admin while no proposal is pending."""

    def __init__(self):
        super().__init__("No pending admin to accept")


class InvalidAddress(InvalidInputError):
    """Raised when an identity cannot be put in canonical form."""

    def __init__(self, identity: Any):
        super().__init__(f"Not a valid address: {identity!r}")
        self.identity = identity


class InvalidElapsedTime(InvalidInputError):
    """Raised when an annualisation window is not strictly positive."""

    def __init__(self, elapsed_seconds: int):
        super().__init__(f"Elapsed time must be positive, got {elapsed_seconds}")
        self.elapsed_seconds = elapsed_seconds


class UnsupportedDecimals(InvalidInputError):
    """Raised when an asset reports a decimal count outside [0, 18]."""

    def __init__(self, asset: Address, decimals: int):
        super().__init__(f"Asset {asset} reports unsupported decimals {decimals}")
        self.asset = asset
        self.decimals = decimals


class InvalidPoolComposition(InvalidInputError):
    """Raised when a pool's vault token list cannot be priced."""

    def __init__(self, pool: Address, token_count: int):
        super().__init__(f"Pool {pool} has {token_count} tokens, need at least 2")
        self.pool = pool
        self.token_count = token_count


class PriceSourceCountMismatch(InvalidInputError):
    """Raised when the number of price sources differs from the token count."""

    def __init__(self, pool: Address, token_count: int, source_count: int):
        super().__init__(
            f"Pool {pool} has {token_count} tokens but {source_count} price sources were supplied"
        )
        self.pool = pool
        self.token_count = token_count
        self.source_count = source_count


# --- Arithmetic -------------------------------------------------------------

class MathError(OracleError, ArithmeticError):
    """Base for fixed-point arithmetic failures."""
    pass


class Overflow(MathError):
    """Raised when a result does not fit its fixed-point range."""
    pass


class DivisionByZero(MathError, ZeroDivisionError):
    """Raised on fixed-point division by zero."""
    pass


class LogarithmDomainError(MathError):
    """Raised when taking the logarithm of a non-positive value."""
    pass


class PowerDomainError(MathError):
    """Raised for a non-positive base with a non-integer exponent."""
    pass


# --- External data ----------------------------------------------------------

class ExternalDataError(OracleError):
    """Raised when a collaborator fails or returns unusable data."""
    pass


class PriceUnavailable(ExternalDataError):
    """Raised when a price feed does not yield a usable answer."""

    def __init__(self, source: Address, reason: str):
        super().__init__(f"Price source {source} returned no usable answer: {reason}")
        self.source = source
        self.reason = reason


class CollaboratorCallFailed(ExternalDataError):
    """Raised when a call to an external collaborator raises."""

    def __init__(self, target: Any, call: str, cause: BaseException):
        super().__init__(f"{call} on {target} failed: {cause!r}")
        self.target = target
        self.call = call
        self.cause = cause


class MalformedResponse(ExternalDataError):
    """Raised when a collaborator returns data of the wrong shape or range."""

    def __init__(self, target: Any, call: str, detail: str):
        super().__init__(f"{call} on {target} returned malformed data: {detail}")
        self.target = target
        self.call = call
        self.detail = detail


def call_collaborator(target: Any, call: str, fn: Callable[..., Any], *args: Any) -> Any:
    """
    Invoke a collaborator accessor, surfacing failures with context.

    Oracle errors pass through untouched so that reentrancy and arithmetic
    failures keep their type. Anything else becomes CollaboratorCallFailed.
    """
    try:
        return fn(*args)
    except OracleError:
        raise
    except Exception as exc:
        raise CollaboratorCallFailed(target, call, exc) from exc


def require_uint(target: Any, call: str, value: Any) -> int:
    """Validate that a collaborator returned a non-negative int."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedResponse(target, call, f"expected int, got {type(value).__name__}")
    if value < 0:
        raise MalformedResponse(target, call, f"negative value {value}")
    return value


# ============================================================================
# CONFIGURATION AND RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class DenominationConfig:
    """
    Reference currency every returned price is expressed in.

    Attributes:
        currency: Identity of the reference currency.
        decimals: Native decimal count of the currency; the scale of all
                  prices returned by the oracle.
        price_feed: Identity of the feed pricing the currency.
    """
    currency: Address
    decimals: int
    price_feed: Address

    def __post_init__(self):
        if not self.currency:
            raise ValueError("Denomination currency cannot be empty")
        if not self.price_feed:
            raise ValueError("Denomination price feed cannot be empty")
        if isinstance(self.decimals, bool) or not isinstance(self.decimals, int):
            raise ValueError(f"Denomination decimals must be int, got {type(self.decimals)}")
        if not 0 <= self.decimals <= CANONICAL_DECIMALS:
            raise UnsupportedDecimals(self.currency, self.decimals)


@dataclass(frozen=True, slots=True)
class AdminState:
    """Snapshot of the administrative authority."""
    admin: Optional[Address]
    pending_admin: Optional[Address] = None


@dataclass(frozen=True, slots=True)
class RegistrationRecord:
    """
    Cached metadata for one registered pool.

    price_sources must be parallel to pool_tokens. The registry stores the
    order it is given and cannot verify it against the pool.

    Attributes:
        id: Registration sequence number (0-based, never reused).
        display_name: Pool share token name; informational only.
        pool_address: Identity key of the pool.
        pool_id: Pool identity inside its vault.
        pool_tokens: Ordered token identities, as reported by the vault.
        token_decimals: Decimal counts parallel to pool_tokens.
        price_sources: Feed identities parallel to pool_tokens.
        price_source_decimals: Decimal counts parallel to price_sources.
        initialized: Always True for a stored record.
    """
    id: int
    display_name: str
    pool_address: Address
    pool_id: Any
    pool_tokens: Tuple[Address, ...]
    token_decimals: Tuple[int, ...]
    price_sources: Tuple[Address, ...]
    price_source_decimals: Tuple[int, ...]
    initialized: bool = True

    def __post_init__(self):
        n = len(self.pool_tokens)
        if len(self.token_decimals) != n:
            raise ValueError("token_decimals must be parallel to pool_tokens")
        if len(self.price_sources) != n:
            raise ValueError("price_sources must be parallel to pool_tokens")
        if len(self.price_source_decimals) != n:
            raise ValueError("price_source_decimals must be parallel to price_sources")

    @property
    def token_count(self) -> int:
        return len(self.pool_tokens)

    def snapshot(self) -> Dict[str, Any]:
        """Plain-dict copy of the record, used as the registration event payload."""
        return {
            'id': self.id,
            'display_name': self.display_name,
            'pool_address': self.pool_address,
            'pool_id': self.pool_id,
            'pool_tokens': list(self.pool_tokens),
            'token_decimals': list(self.token_decimals),
            'price_sources': list(self.price_sources),
            'price_source_decimals': list(self.price_source_decimals),
            'initialized': self.initialized,
        }

    def __repr__(self) -> str:
        w = 100  # Inner content width
        bar = "─" * w

        def pad(text: str) -> str:
            """Pad or truncate text to exactly w characters."""
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        lines = [
            "",
            f"┌{bar}┐",
            f"│{pad(' Pool #' + str(self.id) + ': ' + self.display_name)}│",
            f"├{bar}┤",
            f"│{pad('   pool_address : ' + self.pool_address)}│",
            f"│{pad('   pool_id      : ' + str(self.pool_id))}│",
            f"│{pad('   initialized  : ' + str(self.initialized))}│",
            f"├{bar}┤",
            f"│{pad(' Tokens (' + str(self.token_count) + '):')}│",
        ]
        for i, token in enumerate(self.pool_tokens):
            row = (
                f"   [{i}] {token} ({self.token_decimals[i]} dec) "
                f"<- {self.price_sources[i]} ({self.price_source_decimals[i]} dec)"
            )
            lines.append(f"│{pad(row)}│")
        lines.append(f"└{bar}┘")
        return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class PoolRegistered:
    """
    Event emitted on successful registration.

    Attributes:
        sequence: Position of the event in the registry's event log.
        record: Full snapshot of the registration record.
    """
    sequence: int
    record: Dict[str, Any]

    @property
    def pool_address(self) -> Address:
        return self.record['pool_address']

    def __repr__(self) -> str:
        return f"PoolRegistered(#{self.sequence}, pool={self.pool_address}, id={self.record['id']})"
