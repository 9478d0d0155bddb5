"""Router configuration.

Sources, logical token tables and cost constants are declared once at startup
and validated eagerly: a malformed config raises ConfigError when it is built,
never as a silent default at a call site.

Configuration is read from a JSON document (path passed explicitly or taken
from the XROUTE_CONFIG environment variable):

    {
      "execution_source": "arc",
      "stable_symbol": "USDC",
      "asset_symbol": "FLX",
      "costs": {"local_cost_usd": "0.0002", "remote_cost_usd": "0.10"},
      "sources": [
        {"id": "arc", "display_name": "Arc Testnet", "shape": "vault",
         "rpc_url": "https://...", "vault_address": "0x..."}
      ],
      "tokens": {"arc": {"FLX": "0x...", "USDC": "0x..."}}
    }
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from xchain_router.constants import (
    DEFAULT_ASSET_DECIMALS,
    DEFAULT_FEE_BPS,
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_MAX_REMOTE_POOLS,
    DEFAULT_REFRESH_INTERVAL_SECONDS,
    DEFAULT_STABLE_DECIMALS,
    LOCAL_EXECUTION_COST_USD,
    REMOTE_SOURCE_COST_USD,
)
from xchain_router.errors import ConfigError, UnknownSourceError
from xchain_router.models.types import is_valid_address, normalize_address

CONFIG_ENV_VAR = "XROUTE_CONFIG"

SOURCE_SHAPES = frozenset({"pair", "vault"})


def _check_address(label: str, address: str) -> str:
    normalized = normalize_address(address)
    if not is_valid_address(normalized):
        raise ConfigError(f"Invalid {label} address: {address!r}")
    return normalized


def _check_decimals(label: str, value: int) -> None:
    if not isinstance(value, int) or not 0 <= value <= 77:
        raise ConfigError(f"{label} must be an integer in [0, 77], got {value!r}")


@dataclass(frozen=True)
class SourceConfig:
    """One ledger hosting pools for the routed pair.

    Attributes:
        id: Source identifier used throughout routing (e.g. "arc")
        display_name: Human-readable name
        chain_id: Numeric chain id (informational)
        rpc_url: JSON-RPC endpoint used by the web3 readers
        shape: "pair" for paired-reserve pools, "vault" for aggregated vaults
        pool_addresses: Paired pools to read (shape "pair")
        vault_address: Vault to read (shape "vault")
        stable_decimals: Decimals of the stable asset on this source
        asset_decimals: Decimals of the non-stable asset on this source
        fee_default_bps: Fee used when the source does not expose one
    """

    id: str
    display_name: str = ""
    chain_id: int = 0
    rpc_url: str | None = None
    shape: str = "vault"
    pool_addresses: tuple[str, ...] = ()
    vault_address: str | None = None
    stable_decimals: int = DEFAULT_STABLE_DECIMALS
    asset_decimals: int = DEFAULT_ASSET_DECIMALS
    fee_default_bps: int = DEFAULT_FEE_BPS

    def __post_init__(self) -> None:
        if not self.id or not isinstance(self.id, str):
            raise ConfigError("Source id must be a non-empty string")
        if self.shape not in SOURCE_SHAPES:
            raise ConfigError(
                f"Source {self.id}: shape must be one of {sorted(SOURCE_SHAPES)}, "
                f"got {self.shape!r}"
            )
        _check_decimals(f"Source {self.id} stable_decimals", self.stable_decimals)
        _check_decimals(f"Source {self.id} asset_decimals", self.asset_decimals)
        if not 0 <= self.fee_default_bps <= 10_000:
            raise ConfigError(
                f"Source {self.id}: fee_default_bps out of range: {self.fee_default_bps}"
            )
        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(
            self,
            "pool_addresses",
            tuple(_check_address(f"{self.id} pool", a) for a in self.pool_addresses),
        )
        if self.vault_address is not None:
            object.__setattr__(
                self, "vault_address", _check_address(f"{self.id} vault", self.vault_address)
            )
        if not self.display_name:
            object.__setattr__(self, "display_name", self.id)

    @property
    def has_contracts(self) -> bool:
        """True if there is anything on-chain to read for this source."""
        if self.shape == "vault":
            return self.vault_address is not None
        return len(self.pool_addresses) > 0


@dataclass(frozen=True)
class CostConfig:
    """Flat USD execution costs, independent of trade size.

    Attributes:
        local_cost_usd: Execution cost on the execution source
        remote_cost_usd: Bridging cost added per remote source drawn from
    """

    local_cost_usd: Decimal = LOCAL_EXECUTION_COST_USD
    remote_cost_usd: Decimal = REMOTE_SOURCE_COST_USD

    def __post_init__(self) -> None:
        if self.local_cost_usd < 0 or self.remote_cost_usd < 0:
            raise ConfigError("Costs must be non-negative")

    def cost_for(self, remote_source_count: int) -> Decimal:
        """USD cost of a route drawing from remote_source_count remote sources."""
        return self.local_cost_usd + self.remote_cost_usd * remote_source_count


@dataclass(frozen=True)
class RouterConfig:
    """Complete router configuration.

    Attributes:
        sources: Configured sources, in polling order
        execution_source: Source where swaps are executed (the hub)
        tokens: Logical token table, source id -> symbol -> address
        stable_symbol: Logical symbol of the stable reference asset
        asset_symbol: Logical symbol of the non-stable asset used for fallback pools
        costs: Flat cost constants
        refresh_interval: Seconds between background depth refreshes
        fetch_timeout: Per-source fetch timeout in seconds
        max_remote_pools: Cap on remote pools fed to the enumerator
        synthetic_fallback: Substitute placeholder depth for unreadable sources
    """

    sources: tuple[SourceConfig, ...]
    execution_source: str
    tokens: Mapping[str, Mapping[str, str]] = field(default_factory=dict)
    stable_symbol: str = "USDC"
    asset_symbol: str = "FLX"
    costs: CostConfig = field(default_factory=CostConfig)
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL_SECONDS
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS
    max_remote_pools: int = DEFAULT_MAX_REMOTE_POOLS
    synthetic_fallback: bool = True

    def __post_init__(self) -> None:
        if not self.sources:
            raise ConfigError("At least one source must be configured")
        ids = [s.id for s in self.sources]
        if len(set(ids)) != len(ids):
            raise ConfigError(f"Duplicate source ids: {ids}")
        if self.execution_source not in ids:
            raise ConfigError(
                f"execution_source {self.execution_source!r} is not a configured source"
            )
        if self.refresh_interval <= 0 or self.fetch_timeout <= 0:
            raise ConfigError("refresh_interval and fetch_timeout must be positive")
        if self.max_remote_pools < 1:
            raise ConfigError("max_remote_pools must be at least 1")

        tokens: dict[str, dict[str, str]] = {}
        for source_id, table in self.tokens.items():
            if source_id not in ids:
                raise ConfigError(f"Token table references unknown source {source_id!r}")
            tokens[source_id] = {
                symbol.upper(): _check_address(f"{source_id} {symbol}", address)
                for symbol, address in table.items()
            }
        object.__setattr__(self, "tokens", tokens)
        object.__setattr__(self, "stable_symbol", self.stable_symbol.upper())
        object.__setattr__(self, "asset_symbol", self.asset_symbol.upper())

    @property
    def source_ids(self) -> list[str]:
        return [s.id for s in self.sources]

    def source(self, source_id: str) -> SourceConfig:
        """Look up a source by id.

        Raises:
            UnknownSourceError: If the source is not configured
        """
        for source in self.sources:
            if source.id == source_id:
                return source
        raise UnknownSourceError(source_id)


def _decimal(label: str, value: Any) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation as err:
        raise ConfigError(f"{label} must be a decimal number, got {value!r}") from err


def _int(label: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{label} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as err:
        raise ConfigError(f"{label} must be an integer, got {value!r}") from err


def _float(label: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"{label} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as err:
        raise ConfigError(f"{label} must be a number, got {value!r}") from err


def _bool(label: str, value: Any) -> bool:
    # JSON strings like "false" are rejected rather than read as truthy
    if not isinstance(value, bool):
        raise ConfigError(f"{label} must be true or false, got {value!r}")
    return value


def config_from_dict(data: Mapping[str, Any]) -> RouterConfig:
    """Build a RouterConfig from a parsed JSON document.

    Raises:
        ConfigError: If required keys are missing or values are invalid
    """
    try:
        raw_sources = data["sources"]
        execution_source = data["execution_source"]
    except KeyError as err:
        raise ConfigError(f"Missing required config key: {err.args[0]}") from err

    sources = []
    for raw in raw_sources:
        if not isinstance(raw, Mapping):
            raise ConfigError(f"Source entry must be an object, got {raw!r}")
        source_id = raw.get("id", "?")
        try:
            sources.append(
                SourceConfig(
                    id=raw["id"],
                    display_name=raw.get("display_name", ""),
                    chain_id=_int(f"{source_id} chain_id", raw.get("chain_id", 0)),
                    rpc_url=raw.get("rpc_url"),
                    shape=raw.get("shape", "vault"),
                    pool_addresses=tuple(raw.get("pool_addresses", ())),
                    vault_address=raw.get("vault_address"),
                    stable_decimals=_int(
                        f"{source_id} stable_decimals",
                        raw.get("stable_decimals", DEFAULT_STABLE_DECIMALS),
                    ),
                    asset_decimals=_int(
                        f"{source_id} asset_decimals",
                        raw.get("asset_decimals", DEFAULT_ASSET_DECIMALS),
                    ),
                    fee_default_bps=_int(
                        f"{source_id} fee_default_bps",
                        raw.get("fee_default_bps", DEFAULT_FEE_BPS),
                    ),
                )
            )
        except KeyError as err:
            raise ConfigError(f"Source entry missing key: {err.args[0]}") from err

    raw_costs = data.get("costs", {})
    costs = CostConfig(
        local_cost_usd=_decimal(
            "local_cost_usd", raw_costs.get("local_cost_usd", LOCAL_EXECUTION_COST_USD)
        ),
        remote_cost_usd=_decimal(
            "remote_cost_usd", raw_costs.get("remote_cost_usd", REMOTE_SOURCE_COST_USD)
        ),
    )

    return RouterConfig(
        sources=tuple(sources),
        execution_source=execution_source,
        tokens=data.get("tokens", {}),
        stable_symbol=data.get("stable_symbol", "USDC"),
        asset_symbol=data.get("asset_symbol", "FLX"),
        costs=costs,
        refresh_interval=_float(
            "refresh_interval", data.get("refresh_interval", DEFAULT_REFRESH_INTERVAL_SECONDS)
        ),
        fetch_timeout=_float(
            "fetch_timeout", data.get("fetch_timeout", DEFAULT_FETCH_TIMEOUT_SECONDS)
        ),
        max_remote_pools=_int(
            "max_remote_pools", data.get("max_remote_pools", DEFAULT_MAX_REMOTE_POOLS)
        ),
        synthetic_fallback=_bool("synthetic_fallback", data.get("synthetic_fallback", True)),
    )


def load_config(path: str | Path | None = None) -> RouterConfig:
    """Load and validate the router configuration.

    Args:
        path: JSON config path. Defaults to the XROUTE_CONFIG environment variable.

    Raises:
        ConfigError: If no path is given, the file is unreadable, or the content is invalid
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR)
    if not path:
        raise ConfigError(f"No config path given and {CONFIG_ENV_VAR} is not set")

    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as err:
        raise ConfigError(f"Cannot read config {path}: {err}") from err

    return config_from_dict(data)


__all__ = [
    "CONFIG_ENV_VAR",
    "CostConfig",
    "RouterConfig",
    "SourceConfig",
    "config_from_dict",
    "load_config",
]
