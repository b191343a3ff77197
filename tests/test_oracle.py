"""
test_oracle.py - Tests for the WeightedPoolOracle service

Tests:
- Construction and the denomination feed scalar
- Admin-gated registration and the two-phase admin transfer
- Reentrancy: hostile collaborators calling back into mutating entry points
- Read-only surface: lookup, listing, events, cross-check
"""

import pytest
from decimal import Decimal

from bpt_oracle import (
    ONE,
    CollaboratorCallFailed,
    DenominationConfig,
    DuplicateAdminProposal,
    NoPendingAdmin,
    PairAlreadyInitialized,
    ReentrantCall,
    StaticPriceFeed,
    StaticWeightedPool,
    Unauthorized,
    UnsupportedDecimals,
    WeightedPoolOracle,
)

from tests.fake_chain import (
    ADMIN,
    FEED_A,
    FEED_B,
    FEED_USD,
    POOL,
    TOKEN_B,
    CallbackToken,
    build_oracle,
    build_scenario_chain,
    usd_denomination,
)
from tests.reference import assert_close


def _pool_like(chain):
    pool = chain.get_pool(POOL)
    return StaticWeightedPool("copy", "pool-2", pool.normalized_weights(), pool.invariant(), pool.total_supply())


class TestConstruction:

    def test_denomination_feed_scaled(self, oracle):
        assert oracle.normalizer.scalar(FEED_USD) == 10 ** 10
        assert oracle.denomination_price() == ONE

    def test_output_decimals(self, scenario_chain):
        assert build_oracle(scenario_chain, decimals=6).output_decimals == 6

    def test_admin(self, oracle):
        assert oracle.admin == ADMIN
        assert oracle.pending_admin is None

    def test_unknown_denomination_feed(self, scenario_chain):
        with pytest.raises(CollaboratorCallFailed):
            WeightedPoolOracle(scenario_chain, ADMIN, DenominationConfig("USD", 18, "NOPE"), verbose=False)

    def test_denomination_feed_bad_decimals(self, scenario_chain):
        scenario_chain.add_price_feed(FEED_USD, StaticPriceFeed(10 ** 8, 20))
        with pytest.raises(UnsupportedDecimals):
            build_oracle(scenario_chain)

    def test_denomination_config_validation(self):
        with pytest.raises(UnsupportedDecimals):
            DenominationConfig("USD", 19, FEED_USD)
        with pytest.raises(ValueError, match="price feed"):
            DenominationConfig("USD", 18, "")

    def test_null_admin(self, scenario_chain):
        with pytest.raises(ValueError):
            WeightedPoolOracle(scenario_chain, None, usd_denomination(), verbose=False)

    def test_verbose_banner(self, scenario_chain, capsys):
        build_oracle(scenario_chain, verbose=True)
        assert "Oracle ready" in capsys.readouterr().out

    def test_repr(self, oracle):
        assert "WeightedPoolOracle" in repr(oracle)


class TestRegisterAuthorization:

    def test_admin_registers(self, oracle):
        record = oracle.register(POOL, [FEED_A, FEED_B], caller=ADMIN)
        assert oracle.lookup(POOL) is record
        assert oracle.listing_size() == 1
        assert oracle.all_listed() == (POOL,)
        assert oracle.event_log[0].pool_address == POOL

    def test_non_admin_rejected(self, oracle):
        with pytest.raises(Unauthorized) as exc_info:
            oracle.register(POOL, [FEED_A, FEED_B], caller="mallory")
        assert exc_info.value.operation == "register"
        assert oracle.listing_size() == 0
        assert oracle.lookup(POOL) is None

    def test_missing_caller_rejected(self, oracle):
        with pytest.raises(Unauthorized):
            oracle.register(POOL, [FEED_A, FEED_B], caller=None)

    def test_in_memory_labels_are_case_sensitive(self, scenario_chain, oracle):
        assert scenario_chain.canonical("Pool_AB") == "Pool_AB"
        oracle.register(POOL, [FEED_A, FEED_B], caller=ADMIN)
        assert oracle.lookup(POOL.lower()) is None
        with pytest.raises(Unauthorized):
            oracle.register(POOL, [FEED_A, FEED_B], caller=ADMIN.upper())

    def test_double_registration(self, registered_oracle):
        with pytest.raises(PairAlreadyInitialized):
            registered_oracle.register(POOL, [FEED_A, FEED_B], caller=ADMIN)

    def test_new_admin_registers_after_transfer(self, oracle):
        oracle.propose_admin("bob", caller=ADMIN)
        oracle.accept_admin(caller="bob")
        with pytest.raises(Unauthorized):
            oracle.register(POOL, [FEED_A, FEED_B], caller=ADMIN)
        oracle.register(POOL, [FEED_A, FEED_B], caller="bob")
        assert oracle.listing_size() == 1


class TestAdminTransfer:

    def test_propose_accept(self, oracle):
        oracle.propose_admin("bob", caller=ADMIN)
        assert oracle.pending_admin == "bob"
        assert oracle.accept_admin() == "bob"
        assert oracle.admin == "bob"
        assert oracle.pending_admin is None

    def test_duplicate_proposal(self, oracle):
        oracle.propose_admin("bob", caller=ADMIN)
        with pytest.raises(DuplicateAdminProposal):
            oracle.propose_admin("bob", caller=ADMIN)

    def test_accept_without_proposal(self, oracle):
        with pytest.raises(NoPendingAdmin):
            oracle.accept_admin()

    def test_propose_by_non_admin(self, oracle):
        with pytest.raises(Unauthorized):
            oracle.propose_admin("mallory", caller="mallory")

    def test_guard_released_after_failure(self, oracle):
        with pytest.raises(NoPendingAdmin):
            oracle.accept_admin()
        assert not oracle.guard.locked
        oracle.propose_admin("bob", caller=ADMIN)


class TestReentrancy:
    """A token that calls back into the oracle from decimals()."""

    def test_register_reentered_from_token(self, scenario_chain, oracle):
        scenario_chain.add_token(
            TOKEN_B,
            CallbackToken(lambda: oracle.register("POOL_2", [FEED_A, FEED_B], caller=ADMIN), decimals=6),
        )
        with pytest.raises(ReentrantCall, match="register"):
            oracle.register(POOL, [FEED_A, FEED_B], caller=ADMIN)
        assert oracle.listing_size() == 0
        assert oracle.lookup(POOL) is None
        assert oracle.event_log == []
        assert not oracle.guard.locked

    def test_admin_change_reentered_from_token(self, scenario_chain, oracle):
        scenario_chain.add_token(
            TOKEN_B,
            CallbackToken(lambda: oracle.propose_admin("mallory", caller=ADMIN), decimals=6),
        )
        with pytest.raises(ReentrantCall, match="propose_admin"):
            oracle.register(POOL, [FEED_A, FEED_B], caller=ADMIN)
        assert oracle.pending_admin is None
        assert oracle.listing_size() == 0

    def test_accept_reentered_from_token(self, scenario_chain, oracle):
        oracle.propose_admin("bob", caller=ADMIN)
        scenario_chain.add_token(TOKEN_B, CallbackToken(lambda: oracle.accept_admin(), decimals=6))
        with pytest.raises(ReentrantCall):
            oracle.register(POOL, [FEED_A, FEED_B], caller=ADMIN)
        assert oracle.admin == ADMIN
        assert oracle.pending_admin == "bob"

    def test_pricing_from_callback_is_allowed(self, scenario_chain, registered_oracle):
        # Read-only queries take no lock
        seen = []
        scenario_chain.add_pool("POOL_2", _pool_like(scenario_chain), ["TKA", "TKX"])
        scenario_chain.add_token("TKX", CallbackToken(lambda: seen.append(registered_oracle.price(POOL)), decimals=18))
        registered_oracle.register("POOL_2", [FEED_A, FEED_B], caller=ADMIN)
        assert len(seen) == 1
        assert_close(seen[0], Decimal(16), rel="1e-15")


class TestReadSurface:

    def test_cross_check(self, registered_oracle):
        check = registered_oracle.cross_check(POOL)
        assert check.price == pytest.approx(16.0)
        assert check.reference == pytest.approx(16.0)
        assert check.within(1e-9)

    def test_annualized_rate_static(self):
        assert WeightedPoolOracle.annualized_rate(ONE, ONE, 60) == 0

    def test_compute_share_price_static(self):
        assert WeightedPoolOracle.compute_share_price([3 * ONE], [ONE], 10 * ONE, 5 * ONE) == 6 * ONE

    def test_queries_unaffected_by_other_oracle(self):
        first = build_oracle(build_scenario_chain())
        second = build_oracle(build_scenario_chain())
        first.register(POOL, [FEED_A, FEED_B], caller=ADMIN)
        assert second.all_listed() == ()

    def test_verbose_registration(self, scenario_chain, capsys):
        oracle = build_oracle(scenario_chain, verbose=True)
        oracle.register(POOL, [FEED_A, FEED_B], caller=ADMIN)
        out = capsys.readouterr().out
        assert "📝 Registered pool #0" in out
