"""Pytest configuration and fixtures."""

import pytest

from xchain_router.config import RouterConfig
from xchain_router.models.pool import Pool
from xchain_router.routing.optimizer import RouteOptimizer
from xchain_router.tokens.resolver import LogicalTokenResolver
from tests.helpers import ARC, BASE, ONE_FLX, ONE_USDC, make_config, make_pool


@pytest.fixture
def config() -> RouterConfig:
    """Three-source config (arc executes) with default costs."""
    return make_config()


@pytest.fixture
def resolver(config: RouterConfig) -> LogicalTokenResolver:
    """Resolver over the default token table."""
    return LogicalTokenResolver(config.tokens, config.stable_symbol)


@pytest.fixture
def optimizer(config: RouterConfig) -> RouteOptimizer:
    """Optimizer over the default config, without a tracker."""
    return RouteOptimizer(config)


@pytest.fixture
def split_depths() -> dict[str, list[Pool]]:
    """Shallow local pool and a ten times deeper remote pool at the same price.

    Local: 500 FLX / 0.5 USDC on arc. Remote: 5000 FLX / 5 USDC on base.
    """
    return {
        ARC: [make_pool(ARC, reserve_a=500 * ONE_FLX, reserve_b=ONE_USDC // 2)],
        BASE: [make_pool(BASE, reserve_a=5000 * ONE_FLX, reserve_b=5 * ONE_USDC)],
    }
