"""Pydantic models for the HTTP API.

Amounts cross the wire as decimal strings (Uint256) since token amounts
routinely exceed the 2^53 safe-integer range of JSON clients. Field names
are camelCase on the wire and snake_case in Python.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from xchain_router.errors import RouteWarning
from xchain_router.models.pool import Pool
from xchain_router.models.types import Address, Uint256
from xchain_router.routing.optimizer import Quote
from xchain_router.routing.plan import ExecutionPlan
from xchain_router.routing.types import (
    CrossChainTransfer,
    PoolAllocation,
    RouteAllocation,
    RouteCandidate,
)

_CONFIG = {"populate_by_name": True}


class QuoteRequest(BaseModel):
    """A swap to route."""

    token_in: str = Field(alias="tokenIn", min_length=1, description="Symbol or address")
    token_out: str = Field(alias="tokenOut", min_length=1, description="Symbol or address")
    amount_in: Uint256 = Field(alias="amountIn", description="Input in smallest units")
    execution_source: str | None = Field(
        default=None,
        alias="executionSource",
        description="Source to settle on; defaults to the configured execution source",
    )

    model_config = _CONFIG


class RouteRequest(QuoteRequest):
    """A swap to route into a canonical execution plan."""

    request_id: str | None = Field(default=None, alias="requestId")
    user_address: Address | None = Field(default=None, alias="userAddress")
    expiry_seconds: int = Field(default=60, alias="expirySeconds", ge=1, le=3600)


class PoolModel(BaseModel):
    """Reserve snapshot of one pool."""

    source_id: str = Field(alias="sourceId")
    pool_address: str = Field(alias="poolAddress")
    token_a: str = Field(alias="tokenA")
    token_b: str = Field(alias="tokenB")
    reserve_a: Uint256 = Field(alias="reserveA")
    reserve_b: Uint256 = Field(alias="reserveB")
    fee_bps: int = Field(alias="feeBps")
    last_update: float = Field(alias="lastUpdate")
    is_synthetic_fallback: bool = Field(alias="isSyntheticFallback")
    is_aggregated_vault: bool = Field(alias="isAggregatedVault")
    decimals_a: int = Field(alias="decimalsA")
    decimals_b: int = Field(alias="decimalsB")
    total_supply: Uint256 = Field(alias="totalSupply")
    tvl_usd: str = Field(alias="tvlUsd")

    model_config = _CONFIG

    @classmethod
    def from_pool(cls, pool: Pool) -> PoolModel:
        return cls(
            source_id=pool.source_id,
            pool_address=pool.pool_address,
            token_a=pool.token_a,
            token_b=pool.token_b,
            reserve_a=pool.reserve_a,
            reserve_b=pool.reserve_b,
            fee_bps=pool.fee_bps,
            last_update=pool.last_update,
            is_synthetic_fallback=pool.is_synthetic_fallback,
            is_aggregated_vault=pool.is_aggregated_vault,
            decimals_a=pool.decimals_a,
            decimals_b=pool.decimals_b,
            total_supply=pool.total_supply,
            tvl_usd=str(pool.tvl_usd),
        )


class SourceDepthResponse(BaseModel):
    """Pools cached for one source."""

    source_id: str = Field(alias="sourceId")
    pools: list[PoolModel]

    model_config = _CONFIG


class DepthsResponse(BaseModel):
    """Pools cached for every source."""

    sources: dict[str, list[PoolModel]]
    last_refresh: float | None = Field(default=None, alias="lastRefresh")

    model_config = _CONFIG


class LiquidityResponse(BaseModel):
    """Reserves of one pair summed across sources."""

    token_a: str = Field(alias="tokenA")
    token_b: str = Field(alias="tokenB")
    total_reserve_a: Uint256 = Field(alias="totalReserveA")
    total_reserve_b: Uint256 = Field(alias="totalReserveB")
    pool_count: int = Field(alias="poolCount")
    source_count: int = Field(alias="sourceCount")

    model_config = _CONFIG


class WarningModel(BaseModel):
    """A non-fatal anomaly on a route result."""

    kind: str
    detail: str
    source_id: str | None = Field(default=None, alias="sourceId")
    pool_address: str | None = Field(default=None, alias="poolAddress")
    amount: Uint256 | None = None

    model_config = _CONFIG

    @classmethod
    def from_warning(cls, warning: RouteWarning) -> WarningModel:
        return cls(
            kind=warning.kind.value,
            detail=warning.detail,
            source_id=warning.source_id,
            pool_address=warning.pool_address,
            amount=warning.amount,
        )


class AllocationEntryModel(BaseModel):
    """Input assigned to one pool."""

    source_id: str = Field(alias="sourceId")
    pool_address: str = Field(alias="poolAddress")
    token_in: str = Field(alias="tokenIn")
    amount_allocated: Uint256 = Field(alias="amountAllocated")
    expected_output: Uint256 = Field(alias="expectedOutput")
    price_impact_bps: int = Field(alias="priceImpactBps")
    is_synthetic_fallback: bool = Field(alias="isSyntheticFallback")

    model_config = _CONFIG

    @classmethod
    def from_entry(cls, entry: PoolAllocation) -> AllocationEntryModel:
        return cls(
            source_id=entry.source_id,
            pool_address=entry.pool.pool_address,
            token_in=entry.pool.token(entry.input_side),
            amount_allocated=entry.amount_allocated,
            expected_output=entry.expected_output,
            price_impact_bps=entry.price_impact_bps,
            is_synthetic_fallback=entry.pool.is_synthetic_fallback,
        )


class TransferModel(BaseModel):
    """Input to move from a remote source to the execution source."""

    source_id: str = Field(alias="sourceId")
    destination_source_id: str = Field(alias="destinationSourceId")
    amount: Uint256
    token: str

    model_config = _CONFIG

    @classmethod
    def from_transfer(cls, transfer: CrossChainTransfer) -> TransferModel:
        return cls(
            source_id=transfer.source_id,
            destination_source_id=transfer.destination_source_id,
            amount=transfer.amount,
            token=transfer.token,
        )


class CandidateModel(BaseModel):
    """One evaluated candidate route."""

    label: str
    sources_used: list[str] = Field(alias="sourcesUsed")
    remote_sources_used: list[str] = Field(alias="remoteSourcesUsed")
    gross_output: Uint256 = Field(alias="grossOutput")
    cost_usd: str = Field(alias="costUsd")
    cost_in_output_token: Uint256 = Field(alias="costInOutputToken")
    net_output: Uint256 = Field(alias="netOutput")
    unfilled_amount: Uint256 = Field(alias="unfilledAmount")

    model_config = _CONFIG

    @classmethod
    def from_candidate(cls, candidate: RouteCandidate) -> CandidateModel:
        return cls(
            label=candidate.label,
            sources_used=sorted(candidate.sources_used),
            remote_sources_used=list(candidate.remote_sources_used),
            gross_output=candidate.gross_output,
            cost_usd=str(candidate.cost_usd),
            cost_in_output_token=candidate.cost_in_output_token,
            net_output=candidate.net_output,
            unfilled_amount=candidate.unfilled_amount,
        )


class RouteResponse(BaseModel):
    """The selected route allocation."""

    requires_multi_source: bool = Field(alias="requiresMultiSource")
    token_in: str = Field(alias="tokenIn")
    token_out: str = Field(alias="tokenOut")
    execution_source: str = Field(alias="executionSource")
    total_amount_in: Uint256 = Field(alias="totalAmountIn")
    gross_output: Uint256 = Field(alias="grossOutput")
    net_output: Uint256 = Field(alias="netOutput")
    cost_usd: str = Field(alias="costUsd")
    cost_in_output_token: Uint256 = Field(alias="costInOutputToken")
    label: str
    entries: list[AllocationEntryModel]
    transfers: list[TransferModel]
    unfilled_amount: Uint256 = Field(alias="unfilledAmount")
    ranked: list[CandidateModel]
    warnings: list[WarningModel]

    model_config = _CONFIG

    @classmethod
    def fields_from_allocation(cls, allocation: RouteAllocation) -> dict[str, object]:
        return {
            "requires_multi_source": allocation.requires_multi_source,
            "token_in": allocation.token_in,
            "token_out": allocation.token_out,
            "execution_source": allocation.execution_source,
            "total_amount_in": allocation.total_amount_in,
            "gross_output": allocation.gross_output,
            "net_output": allocation.net_output,
            "cost_usd": str(allocation.cost_usd),
            "cost_in_output_token": allocation.cost_in_output_token,
            "label": allocation.label,
            "entries": [AllocationEntryModel.from_entry(e) for e in allocation.entries],
            "transfers": [TransferModel.from_transfer(t) for t in allocation.transfers],
            "unfilled_amount": allocation.unfilled_amount,
            "ranked": [CandidateModel.from_candidate(c) for c in allocation.ranked],
            "warnings": [WarningModel.from_warning(w) for w in allocation.warnings],
        }

    @classmethod
    def from_allocation(cls, allocation: RouteAllocation) -> RouteResponse:
        return cls(**cls.fields_from_allocation(allocation))


class QuoteResponse(RouteResponse):
    """A route allocation with an execution recommendation."""

    recommendation: str

    @classmethod
    def from_quote(cls, quote: Quote) -> QuoteResponse:
        return cls(
            **cls.fields_from_allocation(quote.allocation),
            recommendation=quote.recommendation.value,
        )


class PlanResponse(BaseModel):
    """A route allocation with its canonical plan and commitment hash."""

    route: RouteResponse
    plan: dict[str, object]
    plan_hash: str = Field(alias="planHash")

    model_config = _CONFIG

    @classmethod
    def from_plan(cls, allocation: RouteAllocation, plan: ExecutionPlan) -> PlanResponse:
        return cls(
            route=RouteResponse.from_allocation(allocation),
            plan=plan.to_dict(),
            plan_hash=plan.plan_hash,
        )


__all__ = [
    "AllocationEntryModel",
    "CandidateModel",
    "DepthsResponse",
    "LiquidityResponse",
    "PlanResponse",
    "PoolModel",
    "QuoteRequest",
    "QuoteResponse",
    "RouteRequest",
    "RouteResponse",
    "SourceDepthResponse",
    "TransferModel",
    "WarningModel",
]
