"""Route optimizer.

Ties the routing pipeline together for one request:

    resolve tokens -> match pools -> enumerate candidates
        -> evaluate and rank -> materialize the winner

The optimizer is synchronous and pure over a depth snapshot. Callers in async
code fetch the snapshot from the DepthTracker and run the optimizer in an
executor.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

import structlog

from xchain_router.config import RouterConfig
from xchain_router.depth.tracker import DepthTracker
from xchain_router.models.pool import Pool
from xchain_router.routing.costs import CostModel
from xchain_router.routing.enumerator import RouteEnumerator
from xchain_router.routing.selector import RouteSelector
from xchain_router.routing.types import RouteAllocation
from xchain_router.tokens.resolver import LogicalTokenResolver

logger = structlog.get_logger()


class Recommendation(str, Enum):
    """How a quote should be executed."""

    LOCAL = "local"
    MULTI_SOURCE = "multi_source"


@dataclass(frozen=True)
class Quote:
    """A route allocation with an execution recommendation."""

    allocation: RouteAllocation
    recommendation: Recommendation


class RouteOptimizer:
    """Finds the best allocation of a swap across sources.

    Args:
        config: Router configuration
        resolver: Logical token resolver. Built from config if omitted.
        enumerator: Route enumerator. Built from config if omitted.
        selector: Route selector. Built from config if omitted.
        tracker: Depth tracker used by the async helpers
    """

    def __init__(
        self,
        config: RouterConfig,
        resolver: LogicalTokenResolver | None = None,
        enumerator: RouteEnumerator | None = None,
        selector: RouteSelector | None = None,
        tracker: DepthTracker | None = None,
    ) -> None:
        self.config = config
        self.resolver = resolver or LogicalTokenResolver(config.tokens, config.stable_symbol)
        self.enumerator = enumerator or RouteEnumerator(self.resolver, config.max_remote_pools)
        self.selector = selector or RouteSelector(CostModel(config, self.resolver))
        self.tracker = tracker

    def find_optimal_route(
        self,
        depths: Mapping[str, Sequence[Pool]],
        token_in: str,
        token_out: str,
        amount_in: int,
        execution_source: str | None = None,
    ) -> RouteAllocation:
        """Select the route with the highest net output.

        Args:
            depths: Snapshot of source id -> pools
            token_in: Input token, as a symbol or an execution-source address
            token_out: Output token, as a symbol or an execution-source address
            amount_in: Input amount in smallest units
            execution_source: Source to settle on (defaults to config)

        Returns:
            The winning allocation, with every evaluated candidate ranked

        Raises:
            NoLiquidityError: If no pool on any source serves the pair
            UnknownSourceError: If execution_source is not configured
            ValueError: If amount_in is negative
        """
        if amount_in < 0:
            raise ValueError(f"amount_in must be non-negative, got {amount_in}")
        source_id = execution_source or self.config.execution_source
        self.config.source(source_id)

        matched = self.enumerator.match_pools(token_in, token_out, source_id, depths)
        candidates = self.enumerator.build_candidates(matched)
        winner, ranked = self.selector.select(
            candidates, amount_in, token_out, matched.pools, source_id
        )
        allocation = self.selector.materialize(
            winner, ranked, token_in, token_out, amount_in, source_id
        )

        logger.info(
            "route_selected",
            token_in=token_in,
            token_out=token_out,
            amount_in=amount_in,
            winner=winner.label,
            candidates=len(ranked),
            gross_output=winner.gross_output,
            net_output=winner.net_output,
            unfilled=winner.unfilled_amount,
            warnings=len(allocation.warnings),
        )
        return allocation

    def get_quote(
        self,
        depths: Mapping[str, Sequence[Pool]],
        token_in: str,
        token_out: str,
        amount_in: int,
        execution_source: str | None = None,
    ) -> Quote:
        """Optimal route plus whether it needs multi-source execution."""
        allocation = self.find_optimal_route(
            depths, token_in, token_out, amount_in, execution_source
        )
        recommendation = (
            Recommendation.MULTI_SOURCE
            if allocation.requires_multi_source
            else Recommendation.LOCAL
        )
        return Quote(allocation=allocation, recommendation=recommendation)

    async def find_route(
        self,
        token_in: str,
        token_out: str,
        amount_in: int,
        execution_source: str | None = None,
    ) -> RouteAllocation:
        """find_optimal_route over the tracker's current snapshot."""
        if self.tracker is None:
            raise RuntimeError("RouteOptimizer was built without a DepthTracker")
        depths = await self.tracker.get_all()
        return self.find_optimal_route(depths, token_in, token_out, amount_in, execution_source)


__all__ = ["Quote", "Recommendation", "RouteOptimizer"]
