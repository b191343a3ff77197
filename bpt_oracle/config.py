"""
config.py - Settings for running the oracle against a live chain

Values come from a .env file (python-dotenv) overlaid by the process
environment; the environment wins. The .env file is read, never exported,
so loading settings leaves os.environ untouched.

Variables:
    BPT_ORACLE_RPC_URL                  (required) HTTP RPC endpoint
    BPT_ORACLE_VAULT_ADDRESS            (required) vault holding pool balances
    BPT_ORACLE_ADMIN_ADDRESS            (required) initial admin
    BPT_ORACLE_DENOMINATION_CURRENCY    (required) reference currency identity
    BPT_ORACLE_DENOMINATION_FEED        (required) feed pricing the currency
    BPT_ORACLE_DENOMINATION_DECIMALS    (default 18) output decimals
    BPT_ORACLE_VERBOSE                  (default false)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from dotenv import dotenv_values

from .core import DenominationConfig

ENV_PREFIX = "BPT_ORACLE_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _must(values: Mapping[str, Optional[str]], name: str) -> str:
    """Fetch a required variable."""
    v = values.get(name)
    if not v:
        raise ValueError(f"Missing required env var: {name}")
    return v.strip()


def _as_addr(name: str, x: str) -> str:
    """Basic validation for hex address strings."""
    if not x.startswith("0x") or len(x) != 42:
        raise ValueError(f"{name} is not an address: {x}")
    try:
        int(x[2:], 16)
    except ValueError:
        raise ValueError(f"{name} is not an address: {x}") from None
    return x


def _env_int(values: Mapping[str, Optional[str]], name: str, default: int) -> int:
    """Read an int variable with a default."""
    raw = values.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_bool(values: Mapping[str, Optional[str]], name: str, default: bool) -> bool:
    raw = values.get(name)
    if not raw:
        return default
    flag = raw.strip().lower()
    if flag in _TRUE:
        return True
    if flag in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


@dataclass(frozen=True)
class OracleSettings:
    # Network
    rpc_url: str
    vault_address: str

    # Authority
    admin_address: str

    # Denomination
    denomination_currency: str
    denomination_feed: str
    denomination_decimals: int = 18

    verbose: bool = False

    def denomination(self) -> DenominationConfig:
        return DenominationConfig(
            currency=self.denomination_currency,
            decimals=self.denomination_decimals,
            price_feed=self.denomination_feed,
        )


def _collect(env_path: Optional[Union[str, Path]]) -> Dict[str, Optional[str]]:
    path = Path(env_path) if env_path is not None else Path.cwd() / ".env"
    values: Dict[str, Optional[str]] = {}
    if path.is_file():
        values.update(dotenv_values(dotenv_path=path))
    values.update({k: v for k, v in os.environ.items() if k.startswith(ENV_PREFIX)})
    return values


def load_settings(env_path: Optional[Union[str, Path]] = None) -> OracleSettings:
    """
    Load settings from `env_path` (default ./.env) and the environment.

    Raises:
        ValueError: If a required variable is missing or a value is malformed
    """
    values = _collect(env_path)

    return OracleSettings(
        rpc_url=_must(values, "BPT_ORACLE_RPC_URL"),
        vault_address=_as_addr(
            "BPT_ORACLE_VAULT_ADDRESS", _must(values, "BPT_ORACLE_VAULT_ADDRESS")
        ),
        admin_address=_as_addr(
            "BPT_ORACLE_ADMIN_ADDRESS", _must(values, "BPT_ORACLE_ADMIN_ADDRESS")
        ),
        denomination_currency=_as_addr(
            "BPT_ORACLE_DENOMINATION_CURRENCY", _must(values, "BPT_ORACLE_DENOMINATION_CURRENCY")
        ),
        denomination_feed=_as_addr(
            "BPT_ORACLE_DENOMINATION_FEED", _must(values, "BPT_ORACLE_DENOMINATION_FEED")
        ),
        denomination_decimals=_env_int(values, "BPT_ORACLE_DENOMINATION_DECIMALS", 18),
        verbose=_env_bool(values, "BPT_ORACLE_VERBOSE", False),
    )
