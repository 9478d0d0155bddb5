"""Tests for the web3 reserve readers.

Contracts are replaced with in-memory fakes, so these tests exercise the
readers' decoding and fallback logic without an RPC endpoint.
"""

import asyncio

import pytest

from xchain_router.config import SourceConfig
from xchain_router.depth.readers import (
    Web3PairedPoolReader,
    Web3VaultReader,
    build_reader,
)
from xchain_router.depth.tracker import DepthTracker
from xchain_router.errors import SourceUnreachableError
from xchain_router.models.pool import Side
from xchain_router.models.types import normalize_address
from tests.helpers import (
    ARC,
    BASE,
    FLX_ARC,
    FLX_BASE,
    ONE_FLX,
    ONE_USDC,
    POOL_ARC,
    POOL_BASE,
    USDC_ARC,
    USDC_BASE,
    make_config,
)

RPC_URL = "http://127.0.0.1:8545"


class FakeCall:
    """A prepared contract call returning a value or raising."""

    def __init__(self, result):
        self.result = result

    def call(self):
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class FakeFunctions:
    """contract.functions namespace backed by a dict of results."""

    def __init__(self, results):
        self._results = results

    def __getattr__(self, name):
        if name not in self._results:
            raise AttributeError(name)
        return lambda *args: FakeCall(self._results[name])


class FakeContract:
    """Stand-in for a web3 contract object."""

    def __init__(self, **results):
        self.functions = FakeFunctions(results)


def _install(reader, contracts):
    """Route the reader's contract lookups to fakes keyed by address."""
    reader._contract = lambda address, abi: contracts[normalize_address(address)]
    return reader


def _pair_contracts(pool=None, asset=None, stable=None):
    return {
        POOL_BASE: pool
        or FakeContract(
            getTokens=(FLX_BASE, USDC_BASE),
            getReserves=(5000 * ONE_FLX, 5 * ONE_USDC),
            totalSupply=10**20,
            swapFeeBps=25,
        ),
        FLX_BASE: asset or FakeContract(decimals=18),
        USDC_BASE: stable or FakeContract(decimals=6),
    }


def _vault_contracts(vault=None):
    return {
        POOL_ARC: vault
        or FakeContract(
            projectToken=FLX_ARC,
            usdc=USDC_ARC,
            totalProjectToken=1000 * ONE_FLX,
            totalUSDC=2 * ONE_USDC,
        ),
        FLX_ARC: FakeContract(decimals=18),
        USDC_ARC: FakeContract(decimals=6),
    }


PAIR_SOURCE = SourceConfig(
    id=BASE, rpc_url=RPC_URL, shape="pair", pool_addresses=(POOL_BASE,), fee_default_bps=40
)
VAULT_SOURCE = SourceConfig(id=ARC, rpc_url=RPC_URL, vault_address=POOL_ARC)


class TestPairedPoolReader:
    """Tests for Web3PairedPoolReader."""

    def test_reads_pool_state(self):
        """Tokens, reserves, fee, supply and decimals come from the contracts."""
        reader = _install(Web3PairedPoolReader(RPC_URL), _pair_contracts())

        (pool,) = reader.read_pools(PAIR_SOURCE)

        assert pool.source_id == BASE
        assert pool.pool_address == POOL_BASE
        assert (pool.token_a, pool.token_b) == (FLX_BASE, USDC_BASE)
        assert (pool.reserve_a, pool.reserve_b) == (5000 * ONE_FLX, 5 * ONE_USDC)
        assert pool.fee_bps == 25
        assert pool.total_supply == 10**20
        assert not pool.is_aggregated_vault
        assert pool.last_update > 0

    def test_token_decimals_read_from_contract(self):
        """Non-default decimals reported by the tokens are used."""
        contracts = _pair_contracts(asset=FakeContract(decimals=8))
        reader = _install(Web3PairedPoolReader(RPC_URL), contracts)

        (pool,) = reader.read_pools(PAIR_SOURCE)

        assert pool.decimals(Side.A) == 8
        assert pool.decimals(Side.B) == 6

    def test_missing_fee_uses_source_default(self):
        """A pool without swapFeeBps gets the source's default fee."""
        contracts = _pair_contracts(
            pool=FakeContract(
                getTokens=(FLX_BASE, USDC_BASE),
                getReserves=(ONE_FLX, ONE_USDC),
                totalSupply=1,
                swapFeeBps=RuntimeError("execution reverted"),
            )
        )
        reader = _install(Web3PairedPoolReader(RPC_URL), contracts)

        (pool,) = reader.read_pools(PAIR_SOURCE)

        assert pool.fee_bps == 40

    def test_failing_decimals_use_source_defaults(self):
        """Tokens whose decimals() fails fall back to 18 (asset) and 6 (stable)."""
        contracts = _pair_contracts(
            asset=FakeContract(decimals=RuntimeError("no decimals")),
            stable=FakeContract(decimals=RuntimeError("no decimals")),
        )
        reader = _install(Web3PairedPoolReader(RPC_URL), contracts)

        (pool,) = reader.read_pools(PAIR_SOURCE)

        assert (pool.decimals_a, pool.decimals_b) == (18, 6)

    def test_pool_read_failure_is_unreachable(self):
        """A failing reserve call marks the whole source unreachable."""
        contracts = _pair_contracts(
            pool=FakeContract(
                getTokens=(FLX_BASE, USDC_BASE),
                getReserves=ConnectionError("rpc down"),
            )
        )
        reader = _install(Web3PairedPoolReader(RPC_URL), contracts)

        with pytest.raises(SourceUnreachableError, match="rpc down") as exc_info:
            reader.read_pools(PAIR_SOURCE)

        assert exc_info.value.source_id == BASE

    def test_no_pools_configured(self):
        """A pair source without pool addresses is unreachable."""
        reader = Web3PairedPoolReader(RPC_URL)
        source = SourceConfig(id=BASE, rpc_url=RPC_URL, shape="pair")

        with pytest.raises(SourceUnreachableError, match="no pair contracts"):
            reader.read_pools(source)


class TestVaultReader:
    """Tests for Web3VaultReader."""

    def test_vault_is_one_pool(self):
        """The vault is read as project token on A and the stable on B."""
        reader = _install(Web3VaultReader(RPC_URL), _vault_contracts())

        (pool,) = reader.read_pools(VAULT_SOURCE)

        assert pool.is_aggregated_vault
        assert pool.pool_address == POOL_ARC
        assert pool.token(Side.A) == FLX_ARC
        assert pool.token(Side.B) == USDC_ARC
        assert (pool.reserve_a, pool.reserve_b) == (1000 * ONE_FLX, 2 * ONE_USDC)
        assert pool.fee_bps == 30
        assert pool.total_supply == 0

    def test_vault_failure_is_unreachable(self):
        """Any failing vault call marks the source unreachable."""
        vault = FakeContract(projectToken=FLX_ARC, usdc=TimeoutError("slow"))
        reader = _install(Web3VaultReader(RPC_URL), _vault_contracts(vault))

        with pytest.raises(SourceUnreachableError, match="vault"):
            reader.read_pools(VAULT_SOURCE)

    def test_tracker_values_vault_pool(self):
        """Fetching through the tracker values the vault pool at its own price."""
        reader = _install(Web3VaultReader(RPC_URL), _vault_contracts())
        tracker = DepthTracker(make_config(source_ids=(ARC,)), readers={ARC: reader})

        (pool,) = asyncio.run(tracker.fetch_source(VAULT_SOURCE))

        assert not pool.is_synthetic_fallback
        assert pool.tvl_usd == 4


class TestBuildReader:
    """Tests for build_reader."""

    def test_reader_matches_shape(self):
        """Pair sources get the paired reader; vault sources the vault reader."""
        assert isinstance(build_reader(PAIR_SOURCE), Web3PairedPoolReader)
        assert isinstance(build_reader(VAULT_SOURCE), Web3VaultReader)
