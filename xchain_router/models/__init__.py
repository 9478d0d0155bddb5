"""Data models for pools and the HTTP API."""

from xchain_router.models.pool import Pool, Side
from xchain_router.models.types import Address, Uint256, normalize_address

__all__ = ["Address", "Pool", "Side", "Uint256", "normalize_address"]
