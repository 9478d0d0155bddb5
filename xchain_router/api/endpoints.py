"""API endpoints for the route optimizer."""

import asyncio
import functools
from collections.abc import Callable
from typing import TypeVar

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from xchain_router.depth.tracker import DepthTracker
from xchain_router.errors import NoLiquidityError, UnknownSourceError
from xchain_router.models.api import (
    DepthsResponse,
    LiquidityResponse,
    PlanResponse,
    PoolModel,
    QuoteRequest,
    QuoteResponse,
    RouteRequest,
    SourceDepthResponse,
)
from xchain_router.routing.optimizer import RouteOptimizer
from xchain_router.routing.plan import build_plan

logger = structlog.get_logger()

router = APIRouter(prefix="/api")

T = TypeVar("T")


def get_tracker(request: Request) -> DepthTracker:
    """Dependency provider for the depth tracker.

    Override this in tests to inject a tracker over static readers:
        app.dependency_overrides[get_tracker] = lambda: tracker

    Raises:
        HTTPException: 503 if the application has not finished starting up
    """
    tracker = getattr(request.app.state, "tracker", None)
    if tracker is None:
        raise HTTPException(status_code=503, detail="Depth tracker not initialized")
    return tracker


def get_optimizer(request: Request) -> RouteOptimizer:
    """Dependency provider for the route optimizer.

    Raises:
        HTTPException: 503 if the application has not finished starting up
    """
    optimizer = getattr(request.app.state, "optimizer", None)
    if optimizer is None:
        raise HTTPException(status_code=503, detail="Route optimizer not initialized")
    return optimizer


@router.get("/lp-depths", response_model_exclude_none=True)
async def lp_depths(tracker: DepthTracker = Depends(get_tracker)) -> DepthsResponse:
    """Cached pools for every configured source."""
    depths = await tracker.get_all()
    return DepthsResponse(
        sources={
            source_id: [PoolModel.from_pool(p) for p in pools]
            for source_id, pools in depths.items()
        },
        last_refresh=tracker.last_refresh_at,
    )


@router.get("/lp-depths/{source_id}")
async def lp_depths_for_source(
    source_id: str,
    tracker: DepthTracker = Depends(get_tracker),
) -> SourceDepthResponse:
    """Cached pools for one source.

    Error Handling:
        - Unknown source: 404
    """
    try:
        pools = await tracker.get_for_source(source_id)
    except UnknownSourceError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return SourceDepthResponse(
        source_id=source_id,
        pools=[PoolModel.from_pool(p) for p in pools],
    )


@router.get("/liquidity")
async def liquidity(
    token_a: str = Query(alias="tokenA", min_length=1),
    token_b: str = Query(alias="tokenB", min_length=1),
    tracker: DepthTracker = Depends(get_tracker),
) -> LiquidityResponse:
    """Reserves of a token pair summed across all sources."""
    totals = await tracker.total_liquidity(token_a, token_b)
    return LiquidityResponse(
        token_a=totals.token_a,
        token_b=totals.token_b,
        total_reserve_a=totals.total_reserve_a,
        total_reserve_b=totals.total_reserve_b,
        pool_count=totals.pool_count,
        source_count=totals.source_count,
    )


async def _run_optimizer(func: Callable[[], T], request: QuoteRequest) -> T:
    """Run a synchronous optimizer call in the default executor.

    Error Handling:
        - No pool serves the pair: 404
        - Unknown execution source: 404
        - Anything else: logged, 500
    """
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(None, func)
    except NoLiquidityError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except UnknownSourceError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.exception(
            "optimizer_error",
            token_in=request.token_in,
            token_out=request.token_out,
            amount_in=request.amount_in,
        )
        raise HTTPException(status_code=500, detail="Route optimization failed") from e


@router.post("/quote", response_model_exclude_none=True)
async def quote(
    request: QuoteRequest,
    tracker: DepthTracker = Depends(get_tracker),
    optimizer: RouteOptimizer = Depends(get_optimizer),
) -> QuoteResponse:
    """Best route for a swap plus a local / multi-source recommendation."""
    logger.info(
        "received_quote_request",
        token_in=request.token_in,
        token_out=request.token_out,
        amount_in=request.amount_in,
        execution_source=request.execution_source,
    )
    depths = await tracker.get_all()
    result = await _run_optimizer(
        functools.partial(
            optimizer.get_quote,
            depths,
            request.token_in,
            request.token_out,
            int(request.amount_in),
            request.execution_source,
        ),
        request,
    )
    return QuoteResponse.from_quote(result)


@router.post("/route")
async def route(
    request: RouteRequest,
    tracker: DepthTracker = Depends(get_tracker),
    optimizer: RouteOptimizer = Depends(get_optimizer),
) -> PlanResponse:
    """Best route for a swap as a canonical execution plan with its hash."""
    logger.info(
        "received_route_request",
        token_in=request.token_in,
        token_out=request.token_out,
        amount_in=request.amount_in,
        request_id=request.request_id,
    )
    depths = await tracker.get_all()
    allocation = await _run_optimizer(
        functools.partial(
            optimizer.find_optimal_route,
            depths,
            request.token_in,
            request.token_out,
            int(request.amount_in),
            request.execution_source,
        ),
        request,
    )
    plan = build_plan(
        allocation,
        request_id=request.request_id,
        user_address=request.user_address,
        expiry_seconds=request.expiry_seconds,
    )
    logger.info("returning_plan", request_id=request.request_id, plan_hash=plan.plan_hash)
    return PlanResponse.from_plan(allocation, plan)
