#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Pricing Weighted Pool Shares Step by Step

This walks through the share price oracle on an in-memory chain. Each step
builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:  Foundation   - The chain view, the oracle, fixed-point numbers
  4-5:  Registration - Admin-gated registration, all-or-nothing failures
  6-8:  Pricing      - The fair share price, its breakdown, why it resists
                       manipulation of pool balances
  9-10: Operations   - Admin handover, annualized share price growth

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
import sys

from bpt_oracle import (
    ONE,
    DenominationConfig,
    InMemoryChain,
    OracleError,
    StaticPriceFeed,
    StaticToken,
    StaticWeightedPool,
    WeightedPoolOracle,
    from_decimal,
    to_decimal,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    admin: str = "alice"
    successor: str = "bob"

    # Pool composition
    price_weth: str = "2000"
    price_usdc: str = "1"
    weight_weth: str = "0.8"
    weight_usdc: str = "0.2"
    invariant: str = "1000"
    total_supply: str = "500"

    # Output currency
    output_decimals: int = 18

    # Growth step
    growth: str = "1.0001"
    elapsed_seconds: int = 86_400


CONFIG = DemoConfig()

POOL = "0xPOOL_WETH_USDC"
WETH = "0xWETH"
USDC = "0xUSDC"
FEED_WETH = "0xFEED_WETH_USD"
FEED_USDC = "0xFEED_USDC_USD"
FEED_USD = "0xFEED_USD"

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    """Print a section header within a step."""
    print(f"\n--- {text} ---\n")


def show(value: int, decimals: int = 18) -> str:
    return f"{to_decimal(value, decimals).normalize():f}"


# ============================================================================
# PHASE 1: FOUNDATION (Steps 1-3)
# ============================================================================

def step_01_chain():
    """Build the in-memory chain the oracle reads from."""
    step_header(1, "The Chain View",
        "The oracle only reads. Everything it knows comes from four collaborators.")

    print("""
    The oracle talks to a ChainView with four kinds of contract:

    1. POOL       - weights, invariant, total supply of pool shares
    2. VAULT      - which tokens a pool holds
    3. TOKEN      - decimals and name
    4. PRICE FEED - latest answer and its decimals

    InMemoryChain provides all four without a node.
    """)

    wait_for_enter()

    chain = InMemoryChain()
    chain.add_token(WETH, StaticToken("Wrapped Ether", 18))
    chain.add_token(USDC, StaticToken("USD Coin", 6))
    chain.add_price_feed(FEED_WETH, StaticPriceFeed(from_decimal(CONFIG.price_weth, 8), 8))
    chain.add_price_feed(FEED_USDC, StaticPriceFeed(from_decimal(CONFIG.price_usdc, 8), 8))
    chain.add_price_feed(FEED_USD, StaticPriceFeed(from_decimal("1", 8), 8))
    chain.add_pool(
        POOL,
        StaticWeightedPool(
            "80WETH-20USDC",
            "pool-weth-usdc",
            weights=[from_decimal(CONFIG.weight_weth), from_decimal(CONFIG.weight_usdc)],
            invariant=from_decimal(CONFIG.invariant),
            total_supply=from_decimal(CONFIG.total_supply),
        ),
        [WETH, USDC],
    )

    section_header("Chain State")
    print(f"Pool:     {POOL} holding {chain.get_vault().tokens_of_pool('pool-weth-usdc')}")
    print(f"Weights:  {CONFIG.weight_weth} / {CONFIG.weight_usdc}")
    print(f"Feeds:    WETH ${CONFIG.price_weth}, USDC ${CONFIG.price_usdc}")

    return chain


def step_02_oracle(chain: InMemoryChain):
    """Create the oracle with an admin and a denomination currency."""
    step_header(2, "Creating the Oracle",
        "The oracle is bound to an admin and to the currency prices are quoted in.")

    wait_for_enter()

    print(">>> oracle = WeightedPoolOracle(chain, 'alice', DenominationConfig('USD', 18, FEED_USD))")
    oracle = WeightedPoolOracle(
        chain,
        CONFIG.admin,
        DenominationConfig("USD", CONFIG.output_decimals, FEED_USD),
        verbose=True,
    )

    section_header("Initial State")
    print(f"Admin:            {oracle.admin}")
    print(f"Pending admin:    {oracle.pending_admin}")
    print(f"Output decimals:  {oracle.output_decimals}")
    print(f"Registered pools: {oracle.listing_size()}")

    return oracle


def step_03_fixed_point():
    """Show the 18-decimal fixed-point representation."""
    step_header(3, "Fixed-Point Numbers",
        "Every amount is an integer scaled by 10^18. No floats touch a price.")

    print(f"""
    ONE = {ONE}

    2.5 is stored as {from_decimal('2.5')}
    A 6-decimal token amount of 8.0 is {from_decimal('8', 6)} raw,
    and the oracle rescales it to {from_decimal('8')} before any math.
    """)

    wait_for_enter()


# ============================================================================
# PHASE 2: REGISTRATION (Steps 4-5)
# ============================================================================

def step_04_register(oracle: WeightedPoolOracle):
    """Register the pool as admin."""
    step_header(4, "Registering a Pool",
        "Only the admin may register, and each pool is registered once.")

    wait_for_enter()

    section_header("A stranger tries first")
    try:
        oracle.register(POOL, [FEED_WETH, FEED_USDC], caller="mallory")
    except OracleError as e:
        print(f"Rejected: {e}")

    section_header("The admin registers")
    record = oracle.register(POOL, [FEED_WETH, FEED_USDC], caller=CONFIG.admin)
    print(record)

    section_header("Event Log")
    for event in oracle.event_log:
        print(event)


def step_05_atomic_failure(oracle: WeightedPoolOracle, chain: InMemoryChain):
    """A registration that fails halfway leaves nothing behind."""
    step_header(5, "All-or-Nothing Registration",
        "A failed registration stores no record, no event and no cached decimals.")

    chain.add_token("0xODD", StaticToken("Odd Token", 24))
    chain.add_pool(
        "0xPOOL_ODD",
        StaticWeightedPool("odd", "pool-odd", [ONE // 2, ONE // 2], ONE, ONE),
        [WETH, "0xODD"],
    )

    wait_for_enter()

    before = oracle.normalizer.cached_keys()
    try:
        oracle.register("0xPOOL_ODD", [FEED_WETH, FEED_USDC], caller=CONFIG.admin)
    except OracleError as e:
        print(f"Rejected: {e}")

    print(f"Registered pools:   {oracle.all_listed()}")
    print(f"Cached assets same: {oracle.normalizer.cached_keys() == before}")


# ============================================================================
# PHASE 3: PRICING (Steps 6-8)
# ============================================================================

def step_06_price(oracle: WeightedPoolOracle):
    """Query the fair share price."""
    step_header(6, "The Fair Share Price",
        "price = prod((p_i / w_i)^w_i) * invariant / supply / denomination")

    wait_for_enter()

    price = oracle.price(POOL)
    print(f">>> oracle.price(POOL)\n{price}  (= {show(price, oracle.output_decimals)} USD)")
    print(f"\nAsset prices: {[show(p, oracle.output_decimals) for p in oracle.asset_prices(POOL)]}")


def step_07_breakdown(oracle: WeightedPoolOracle):
    """Inspect every intermediate value."""
    step_header(7, "Price Breakdown",
        "Every factor of the product is visible and can be checked by hand.")

    wait_for_enter()

    print(oracle.breakdown(POOL))

    section_header("Cross-check against floating point")
    check = oracle.cross_check(POOL)
    print(f"fixed point: {check.price:.12f}")
    print(f"float64:     {check.reference:.12f}")
    print(f"deviation:   {check.deviation:.2e}")


def step_08_manipulation(oracle: WeightedPoolOracle, chain: InMemoryChain):
    """Pool balances move, the price does not."""
    step_header(8, "Resistance to Balance Manipulation",
        "The price reads the invariant and external feeds, never spot balances.")

    print("""
    A flash loan can skew the pool's token balances, and with them the
    pool's internal spot price. It cannot move the invariant without
    adding value, and it cannot move the external feeds.
    """)

    wait_for_enter()

    before = oracle.price(POOL)
    feed = chain.get_price_feed(FEED_WETH)
    feed.update_answer(from_decimal("2200", 8))
    after = oracle.price(POOL)
    print(f"WETH 2000 -> 2200: {show(before)} -> {show(after)}")
    print("Only the external feed moved the price.")
    feed.update_answer(from_decimal(CONFIG.price_weth, 8))


# ============================================================================
# PHASE 4: OPERATIONS (Steps 9-10)
# ============================================================================

def step_09_admin_transfer(oracle: WeightedPoolOracle):
    """Two-phase admin handover."""
    step_header(9, "Admin Handover",
        "The admin proposes a successor; the successor accepts.")

    wait_for_enter()

    oracle.propose_admin(CONFIG.successor, caller=CONFIG.admin)
    print(f"Pending admin: {oracle.pending_admin}")
    oracle.accept_admin(caller=CONFIG.successor)
    print(f"Admin:         {oracle.admin}")
    print(f"Pending admin: {oracle.pending_admin}")


def step_10_annualized_rate(oracle: WeightedPoolOracle):
    """Annualize the growth of a share price."""
    step_header(10, "Annualized Growth",
        "Compound a short observed growth into a yearly rate.")

    wait_for_enter()

    last = oracle.price(POOL)
    current = last * from_decimal(CONFIG.growth) // ONE
    rate = WeightedPoolOracle.annualized_rate(last, current, CONFIG.elapsed_seconds)
    print(f"Growth of {CONFIG.growth}x over {CONFIG.elapsed_seconds}s")
    print(f"Annualized rate: {show(rate)} ({float(to_decimal(rate)) * 100:.2f}%)")


def main():
    print("=" * 70)
    print("       WEIGHTED POOL SHARE PRICE ORACLE: TUTORIAL")
    print("=" * 70)

    chain = step_01_chain()
    wait_for_enter()

    oracle = step_02_oracle(chain)
    step_03_fixed_point()

    step_04_register(oracle)
    wait_for_enter()

    step_05_atomic_failure(oracle, chain)
    wait_for_enter()

    step_06_price(oracle)
    step_07_breakdown(oracle)
    step_08_manipulation(oracle, chain)

    step_09_admin_transfer(oracle)
    step_10_annualized_rate(oracle)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    Next steps:
      - See bpt_oracle/web3_chain.py to run against a real node
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
