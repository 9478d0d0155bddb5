"""Cross-chain liquidity depth tracking and route optimization."""

from xchain_router.config import RouterConfig, load_config
from xchain_router.depth.tracker import DepthTracker
from xchain_router.routing.optimizer import RouteOptimizer

__version__ = "0.1.0"
__all__ = ["DepthTracker", "RouteOptimizer", "RouterConfig", "load_config", "__version__"]
