"""
conftest.py - Shared pytest fixtures for oracle tests

Provides:
- The reference scenario chain (A at 2.0, B at 8.0, 50/50, V=1000, Γ=500)
- Oracles built on it, bare and with the pool registered
"""

import pytest

from tests.fake_chain import (
    build_oracle,
    build_registered_oracle,
    build_scenario_chain,
)


# =============================================================================
# CHAIN FIXTURES
# =============================================================================

@pytest.fixture
def scenario_chain():
    """InMemoryChain with the two-token reference pool (price 16.0)."""
    return build_scenario_chain()


@pytest.fixture
def oracle(scenario_chain):
    """Oracle on the scenario chain, admin 'alice', 18 output decimals, nothing registered."""
    return build_oracle(scenario_chain)


@pytest.fixture
def registered_oracle(scenario_chain):
    """Oracle with POOL_AB registered."""
    return build_registered_oracle(scenario_chain)
