"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Source ids, token addresses and common amounts
- factories: Pool, config and tracker factory functions
"""

from tests.helpers.constants import (
    ARC,
    BASE,
    DAI_ARC,
    FLX_ARC,
    FLX_BASE,
    FLX_POLYGON,
    ONE_FLX,
    ONE_USDC,
    POLYGON,
    POOL_ARC,
    POOL_ARC_2,
    POOL_BASE,
    POOL_POLYGON,
    TOKENS,
    USDC_ARC,
    USDC_BASE,
    USDC_POLYGON,
)
from tests.helpers.factories import make_config, make_pool, make_tracker

__all__ = [
    # Constants
    "ARC",
    "BASE",
    "POLYGON",
    "FLX_ARC",
    "FLX_BASE",
    "FLX_POLYGON",
    "USDC_ARC",
    "USDC_BASE",
    "USDC_POLYGON",
    "DAI_ARC",
    "POOL_ARC",
    "POOL_ARC_2",
    "POOL_BASE",
    "POOL_POLYGON",
    "TOKENS",
    "ONE_FLX",
    "ONE_USDC",
    # Factories
    "make_pool",
    "make_config",
    "make_tracker",
]
