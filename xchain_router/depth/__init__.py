"""Depth tracking across sources.

Provides DepthTracker, which polls sources through ReserveReaders and keeps
the latest Pool snapshots in a DepthStore.
"""

from xchain_router.depth.readers import (
    ReserveReader,
    StaticReserveReader,
    Web3PairedPoolReader,
    Web3VaultReader,
    build_reader,
)
from xchain_router.depth.store import DepthStore
from xchain_router.depth.tracker import BestPool, DepthTracker, LiquidityTotals

__all__ = [
    "BestPool",
    "DepthStore",
    "DepthTracker",
    "LiquidityTotals",
    "ReserveReader",
    "StaticReserveReader",
    "Web3PairedPoolReader",
    "Web3VaultReader",
    "build_reader",
]
