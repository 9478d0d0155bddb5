"""Route optimization across liquidity sources.

Provides:
- RouteEnumerator: matches pools and expands local/remote candidate routes
- CostModel: converts flat USD route costs into output-token units
- RouteSelector: allocates under the utilization cap, ranks by net output
- RouteOptimizer: the request-level facade over the three
- build_plan: canonical plan and commitment hash for a selected route
"""

from xchain_router.routing.costs import CostModel, CostResult
from xchain_router.routing.enumerator import RouteEnumerator
from xchain_router.routing.optimizer import Quote, Recommendation, RouteOptimizer
from xchain_router.routing.plan import ExecutionPlan, build_plan
from xchain_router.routing.selector import RouteSelector
from xchain_router.routing.types import (
    CrossChainTransfer,
    MatchedPool,
    MatchResult,
    PoolAllocation,
    RouteAllocation,
    RouteCandidate,
)

__all__ = [
    "CostModel",
    "CostResult",
    "CrossChainTransfer",
    "ExecutionPlan",
    "MatchResult",
    "MatchedPool",
    "PoolAllocation",
    "Quote",
    "Recommendation",
    "RouteAllocation",
    "RouteCandidate",
    "RouteEnumerator",
    "RouteOptimizer",
    "RouteSelector",
    "build_plan",
]
