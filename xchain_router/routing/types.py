"""Type definitions for the routing module."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from xchain_router.errors import RouteWarning
from xchain_router.models.pool import Pool, Side
from xchain_router.tokens.resolver import ResolutionStatus


@dataclass(frozen=True)
class MatchedPool:
    """A pool serving the requested pair, oriented for the trade direction."""

    pool: Pool
    input_side: Side
    is_local: bool
    resolution: ResolutionStatus = ResolutionStatus.RESOLVED

    @property
    def source_id(self) -> str:
        return self.pool.source_id

    @property
    def token_in(self) -> str:
        return self.pool.token(self.input_side)

    @property
    def token_out(self) -> str:
        return self.pool.token(self.input_side.other)

    @property
    def reserve_in(self) -> int:
        return self.pool.reserve(self.input_side)

    @property
    def reserve_out(self) -> int:
        return self.pool.reserve(self.input_side.other)


@dataclass(frozen=True)
class PoolAllocation:
    """Input assigned to one pool and the output it is expected to return."""

    pool: Pool
    input_side: Side
    amount_allocated: int
    expected_output: int
    price_impact_bps: int

    @property
    def source_id(self) -> str:
        return self.pool.source_id


@dataclass(frozen=True)
class CrossChainTransfer:
    """Input that must move from a remote source to the execution source."""

    source_id: str
    destination_source_id: str
    amount: int
    token: str


@dataclass(frozen=True)
class MatchResult:
    """Pools matched for a request, plus anomalies found while matching."""

    symbol_in: str | None
    symbol_out: str | None
    pools: tuple[MatchedPool, ...]
    warnings: tuple[RouteWarning, ...] = ()

    @property
    def local(self) -> tuple[MatchedPool, ...]:
        return tuple(m for m in self.pools if m.is_local)

    @property
    def remote(self) -> tuple[MatchedPool, ...]:
        return tuple(m for m in self.pools if not m.is_local)


@dataclass(frozen=True)
class RouteCandidate:
    """A hypothetical execution plan under evaluation.

    The enumerator fills label, pools and the source sets. The selector fills
    the evaluation fields through dataclasses.replace.

    Attributes:
        label: Human-readable name, e.g. "Local + base, polygon"
        pools: Pools in allocation priority order (local first)
        sources_used: Every source contributing a pool
        remote_sources_used: Sources other than the execution source, in pool order
        gross_output: Summed output of all allocated chunks
        cost_usd: Flat execution plus bridging cost
        cost_in_output_token: cost_usd in output-token smallest units
        net_output: max(gross_output - cost_in_output_token, 0)
        unfilled_amount: Input the pools could not absorb under the utilization cap
        entries: Per-pool allocation breakdown
        warnings: Anomalies attached to this candidate
    """

    label: str
    pools: tuple[MatchedPool, ...]
    sources_used: frozenset[str]
    remote_sources_used: tuple[str, ...]
    gross_output: int = 0
    cost_usd: Decimal = Decimal(0)
    cost_in_output_token: int = 0
    net_output: int = 0
    unfilled_amount: int = 0
    entries: tuple[PoolAllocation, ...] = ()
    warnings: tuple[RouteWarning, ...] = ()

    @property
    def requires_multi_source(self) -> bool:
        return len(self.remote_sources_used) > 0


@dataclass(frozen=True)
class RouteAllocation:
    """The selected plan, ready for an execution orchestrator.

    Attributes:
        requires_multi_source: True if any input must be drawn from a remote source
        token_in: Requested input token (symbol or address, as given)
        token_out: Requested output token (symbol or address, as given)
        execution_source: Source where the swap settles
        total_amount_in: Requested input amount
        gross_output: Winner's gross output
        net_output: Winner's net output
        cost_usd: Winner's USD cost
        cost_in_output_token: Winner's cost in output-token units
        label: Winner's label
        entries: Per-pool allocations, in allocation order
        transfers: Cross-source movements needed to realize the plan
        unfilled_amount: Requested input that no pool could absorb
        ranked: Every evaluated candidate, best first
        warnings: Every anomaly the caller must see
    """

    requires_multi_source: bool
    token_in: str
    token_out: str
    execution_source: str
    total_amount_in: int
    gross_output: int
    net_output: int
    cost_usd: Decimal
    cost_in_output_token: int
    label: str
    entries: tuple[PoolAllocation, ...]
    transfers: tuple[CrossChainTransfer, ...]
    unfilled_amount: int = 0
    ranked: tuple[RouteCandidate, ...] = ()
    warnings: tuple[RouteWarning, ...] = ()

    @property
    def total_allocated(self) -> int:
        return sum(e.amount_allocated for e in self.entries)

    @property
    def is_partial_fill(self) -> bool:
        return self.unfilled_amount > 0


__all__ = [
    "CrossChainTransfer",
    "MatchResult",
    "MatchedPool",
    "PoolAllocation",
    "RouteAllocation",
    "RouteCandidate",
]
