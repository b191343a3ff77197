"""
web3_chain.py - ChainView over a live EVM node

Reads Balancer-style weighted pools, the vault, ERC20 tokens and
Chainlink-style aggregators through web3.py. Only the view functions the
oracle needs are declared in the inline ABIs.

Every accessor performs a fresh eth_call; nothing is cached here. Errors from
web3 propagate untouched and are wrapped by the oracle with the offending
identity attached.
"""

from typing import Any, List, Optional

from web3 import Web3

from .config import OracleSettings
from .core import Address, InvalidAddress
from .oracle import WeightedPoolOracle


# ============================================================================
# MINIMAL ABIs
# ============================================================================

def _view(name: str, outputs: List[dict], inputs: Optional[List[dict]] = None) -> dict:
    return {
        "name": name,
        "type": "function",
        "stateMutability": "view",
        "inputs": inputs or [],
        "outputs": outputs,
    }


ERC20_ABI = [
    _view("name", [{"name": "", "type": "string"}]),
    _view("decimals", [{"name": "", "type": "uint8"}]),
]

WEIGHTED_POOL_ABI = [
    _view("name", [{"name": "", "type": "string"}]),
    _view("getPoolId", [{"name": "", "type": "bytes32"}]),
    _view("getNormalizedWeights", [{"name": "", "type": "uint256[]"}]),
    _view("getInvariant", [{"name": "", "type": "uint256"}]),
    _view("totalSupply", [{"name": "", "type": "uint256"}]),
]

VAULT_ABI = [
    _view(
        "getPoolTokens",
        [
            {"name": "tokens", "type": "address[]"},
            {"name": "balances", "type": "uint256[]"},
            {"name": "lastChangeBlock", "type": "uint256"},
        ],
        inputs=[{"name": "poolId", "type": "bytes32"}],
    ),
]

AGGREGATOR_ABI = [
    _view("latestAnswer", [{"name": "", "type": "int256"}]),
    _view("decimals", [{"name": "", "type": "uint8"}]),
]


# ============================================================================
# CONTRACT WRAPPERS
# ============================================================================

class Web3Token:
    def __init__(self, w3: Web3, address: Address):
        self.address = Web3.to_checksum_address(address)
        self.contract = w3.eth.contract(address=self.address, abi=ERC20_ABI)

    def name(self) -> str:
        return self.contract.functions.name().call()

    def decimals(self) -> int:
        return int(self.contract.functions.decimals().call())


class Web3WeightedPool:
    def __init__(self, w3: Web3, address: Address):
        self.address = Web3.to_checksum_address(address)
        self.contract = w3.eth.contract(address=self.address, abi=WEIGHTED_POOL_ABI)

    def pool_id(self) -> bytes:
        return bytes(self.contract.functions.getPoolId().call())

    def name(self) -> str:
        return self.contract.functions.name().call()

    def normalized_weights(self) -> List[int]:
        return list(self.contract.functions.getNormalizedWeights().call())

    def invariant(self) -> int:
        return self.contract.functions.getInvariant().call()

    def total_supply(self) -> int:
        return self.contract.functions.totalSupply().call()


class Web3Vault:
    def __init__(self, w3: Web3, address: Address):
        self.address = Web3.to_checksum_address(address)
        self.contract = w3.eth.contract(address=self.address, abi=VAULT_ABI)

    def tokens_of_pool(self, pool_id: Any) -> List[Address]:
        tokens, _balances, _last_change = self.contract.functions.getPoolTokens(pool_id).call()
        return [Web3.to_checksum_address(t) for t in tokens]


class Web3PriceFeed:
    """Chainlink-style aggregator. latestAnswer is signed on-chain."""

    def __init__(self, w3: Web3, address: Address):
        self.address = Web3.to_checksum_address(address)
        self.contract = w3.eth.contract(address=self.address, abi=AGGREGATOR_ABI)

    def latest_answer(self) -> int:
        return self.contract.functions.latestAnswer().call()

    def decimals(self) -> int:
        return int(self.contract.functions.decimals().call())


# ============================================================================
# CHAIN VIEW
# ============================================================================

class Web3Chain:
    """
    ChainView backed by a web3.py connection.

    Example:
        w3 = Web3(Web3.HTTPProvider("http://127.0.0.1:8545"))
        chain = Web3Chain(w3, "0xBA12222222228d8Ba445958a75a0704d566BF2C8")
        chain.get_pool("0x5c6E...").normalized_weights()
    """

    def __init__(self, w3: Web3, vault_address: Address):
        self.w3 = w3
        self.vault = Web3Vault(w3, vault_address)

    def get_pool(self, address: Address) -> Web3WeightedPool:
        return Web3WeightedPool(self.w3, address)

    def get_vault(self) -> Web3Vault:
        return self.vault

    def get_token(self, address: Address) -> Web3Token:
        return Web3Token(self.w3, address)

    def get_price_feed(self, address: Address) -> Web3PriceFeed:
        return Web3PriceFeed(self.w3, address)

    def canonical(self, address: Address) -> Address:
        """
        EIP-55 checksum spelling; any casing of one address maps to the same value.

        Raises:
            InvalidAddress: If `address` is not a 20-byte hex address
        """
        try:
            return Web3.to_checksum_address(address)
        except (TypeError, ValueError) as exc:
            raise InvalidAddress(address) from exc

    def __repr__(self):
        return f"Web3Chain(vault={self.vault.address})"


def connect(settings: OracleSettings) -> WeightedPoolOracle:
    """
    Connect to the configured RPC and build a WeightedPoolOracle on it.

    Raises:
        RuntimeError: If the node is unreachable
    """
    w3 = Web3(Web3.HTTPProvider(settings.rpc_url))
    if not w3.is_connected():
        raise RuntimeError(f"Could not connect to RPC: {settings.rpc_url}")

    chain = Web3Chain(w3, settings.vault_address)
    return WeightedPoolOracle(
        chain,
        admin=settings.admin_address,
        denomination=settings.denomination(),
        verbose=settings.verbose,
    )
