"""Reserve readers for configured sources.

A reader turns one source's on-chain state into Pool snapshots. Two contract
shapes are supported:

- paired pools: getTokens(), getReserves(), totalSupply(), swapFeeBps()
- aggregated vaults: projectToken(), usdc(), totalProjectToken(), totalUSDC()

Both also read decimals() on each token, falling back to the source's
configured defaults when that call fails. Readers are synchronous; the depth
tracker runs them in worker threads under a timeout.
"""

from __future__ import annotations

import time
from typing import Any, Protocol

import structlog
from web3 import Web3

from xchain_router.config import SourceConfig
from xchain_router.errors import SourceUnreachableError
from xchain_router.models.pool import Pool
from xchain_router.models.types import normalize_address, short

logger = structlog.get_logger()


class ReserveReader(Protocol):
    """Protocol for reading one source's pools.

    Implementations raise SourceUnreachableError (or any exception) when the
    source cannot be read; the tracker isolates and recovers from it.
    """

    def read_pools(self, source: SourceConfig) -> list[Pool]:
        """Read current reserve snapshots for every pool on source."""
        ...


ERC20_DECIMALS_ABI = [
    {
        "name": "decimals",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
]

PAIRED_POOL_ABI = [
    {
        "name": "getTokens",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [
            {"name": "tokenA", "type": "address"},
            {"name": "tokenB", "type": "address"},
        ],
    },
    {
        "name": "getReserves",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [
            {"name": "reserveA", "type": "uint112"},
            {"name": "reserveB", "type": "uint112"},
        ],
    },
    {
        "name": "totalSupply",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "swapFeeBps",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint24"}],
    },
]

VAULT_ABI = [
    {
        "name": name,
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": output_type}],
    }
    for name, output_type in (
        ("projectToken", "address"),
        ("usdc", "address"),
        ("totalProjectToken", "uint256"),
        ("totalUSDC", "uint256"),
    )
]


class Web3ReserveReader:
    """Shared RPC plumbing for the contract readers.

    Args:
        rpc_url: HTTP JSON-RPC endpoint; None makes every read fail as unreachable
        request_timeout: HTTP timeout in seconds for each RPC request
    """

    def __init__(self, rpc_url: str | None, request_timeout: float = 10.0) -> None:
        self.rpc_url = rpc_url
        self.w3 = (
            Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": request_timeout}))
            if rpc_url
            else None
        )

    def _contract(self, address: str, abi: list[dict[str, Any]]) -> Any:
        assert self.w3 is not None
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    def _decimals(self, token: str, default: int) -> int:
        """Token decimals, or default when the call fails."""
        try:
            return int(self._contract(token, ERC20_DECIMALS_ABI).functions.decimals().call())
        except Exception as e:
            logger.warning(
                "token_decimals_unavailable",
                token=short(token),
                using_default=default,
                error=str(e),
            )
            return default

    def _require_rpc(self, source: SourceConfig) -> None:
        if self.w3 is None:
            raise SourceUnreachableError(source.id, "no rpc_url configured")
        if not source.has_contracts:
            raise SourceUnreachableError(source.id, f"no {source.shape} contracts configured")


class Web3PairedPoolReader(Web3ReserveReader):
    """Reads paired-reserve pool contracts listed in SourceConfig.pool_addresses."""

    def read_pools(self, source: SourceConfig) -> list[Pool]:
        self._require_rpc(source)
        pools = []
        for pool_address in source.pool_addresses:
            try:
                pools.append(self._read_pool(source, pool_address))
            except SourceUnreachableError:
                raise
            except Exception as e:
                raise SourceUnreachableError(
                    source.id, f"pool {short(pool_address)}: {e}"
                ) from e
        return pools

    def _read_pool(self, source: SourceConfig, pool_address: str) -> Pool:
        contract = self._contract(pool_address, PAIRED_POOL_ABI)
        token_a, token_b = contract.functions.getTokens().call()
        reserve_a, reserve_b = contract.functions.getReserves().call()
        total_supply = int(contract.functions.totalSupply().call())
        try:
            fee_bps = int(contract.functions.swapFeeBps().call())
        except Exception as e:
            logger.warning(
                "swap_fee_unavailable",
                source=source.id,
                pool=short(pool_address),
                using_default=source.fee_default_bps,
                error=str(e),
            )
            fee_bps = source.fee_default_bps

        return Pool(
            source_id=source.id,
            pool_address=normalize_address(pool_address),
            token_a=normalize_address(token_a),
            token_b=normalize_address(token_b),
            reserve_a=int(reserve_a),
            reserve_b=int(reserve_b),
            fee_bps=fee_bps,
            last_update=time.time(),
            decimals_a=self._decimals(token_a, source.asset_decimals),
            decimals_b=self._decimals(token_b, source.stable_decimals),
            total_supply=total_supply,
        )


class Web3VaultReader(Web3ReserveReader):
    """Reads an aggregated vault as a single pool (A = project token, B = stable)."""

    def read_pools(self, source: SourceConfig) -> list[Pool]:
        self._require_rpc(source)
        assert source.vault_address is not None
        try:
            vault = self._contract(source.vault_address, VAULT_ABI)
            project_token = vault.functions.projectToken().call()
            stable_token = vault.functions.usdc().call()
            total_project = int(vault.functions.totalProjectToken().call())
            total_stable = int(vault.functions.totalUSDC().call())
        except Exception as e:
            raise SourceUnreachableError(
                source.id, f"vault {short(source.vault_address)}: {e}"
            ) from e

        return [
            Pool(
                source_id=source.id,
                pool_address=source.vault_address,
                token_a=normalize_address(project_token),
                token_b=normalize_address(stable_token),
                reserve_a=total_project,
                reserve_b=total_stable,
                fee_bps=source.fee_default_bps,
                last_update=time.time(),
                is_aggregated_vault=True,
                decimals_a=self._decimals(project_token, source.asset_decimals),
                decimals_b=self._decimals(stable_token, source.stable_decimals),
            )
        ]


class StaticReserveReader:
    """Reader over fixed pools, for tests and offline runs.

    Configure with pools to return, or with an error to raise on every read.
    Calls are counted for assertions.
    """

    def __init__(
        self,
        pools: list[Pool] | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.pools = list(pools or [])
        self.error = error
        self.delay = delay
        self.calls = 0

    def read_pools(self, source: SourceConfig) -> list[Pool]:
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return [p for p in self.pools if p.source_id == source.id]


def build_reader(source: SourceConfig, request_timeout: float = 10.0) -> ReserveReader:
    """Create the web3 reader matching the source's contract shape."""
    if source.shape == "pair":
        return Web3PairedPoolReader(source.rpc_url, request_timeout)
    return Web3VaultReader(source.rpc_url, request_timeout)


__all__ = [
    "ERC20_DECIMALS_ABI",
    "PAIRED_POOL_ABI",
    "VAULT_ABI",
    "ReserveReader",
    "StaticReserveReader",
    "Web3PairedPoolReader",
    "Web3ReserveReader",
    "Web3VaultReader",
    "build_reader",
]
