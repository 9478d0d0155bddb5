"""Pool snapshot record.

A Pool is one liquidity source on one chain: either a classic paired pool
or an aggregated vault whose two balances are treated as reserves. Pools are
immutable snapshots; the depth tracker replaces them wholesale on refresh and
the optimizer never mutates them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from xchain_router.constants import (
    DEFAULT_ASSET_DECIMALS,
    DEFAULT_FEE_BPS,
    DEFAULT_STABLE_DECIMALS,
)
from xchain_router.models.types import normalize_address


class Side(str, Enum):
    """One side of a two-token pool."""

    A = "a"
    B = "b"

    @property
    def other(self) -> Side:
        return Side.B if self is Side.A else Side.A


@dataclass(frozen=True)
class Pool:
    """Reserve snapshot of a two-token liquidity source.

    Attributes:
        source_id: Id of the source (chain) hosting the pool
        pool_address: Pool or vault contract address
        token_a: Chain-local address of side A
        token_b: Chain-local address of side B
        reserve_a: Side A reserve in smallest units
        reserve_b: Side B reserve in smallest units
        fee_bps: Swap fee in basis points (0-10000)
        last_update: Unix timestamp of the read
        is_synthetic_fallback: Placeholder data substituted for an unreadable source
        is_aggregated_vault: Reserves are vault totals rather than a paired pool
        decimals_a: Decimals of token_a
        decimals_b: Decimals of token_b
        total_supply: LP token supply (0 for vaults)
        tvl_usd: USD value implied by the pool's own price
    """

    source_id: str
    pool_address: str
    token_a: str
    token_b: str
    reserve_a: int
    reserve_b: int
    fee_bps: int = DEFAULT_FEE_BPS
    last_update: float = 0.0
    is_synthetic_fallback: bool = False
    is_aggregated_vault: bool = False
    decimals_a: int = DEFAULT_ASSET_DECIMALS
    decimals_b: int = DEFAULT_STABLE_DECIMALS
    total_supply: int = 0
    tvl_usd: Decimal = field(default=Decimal(0), compare=False)

    def __post_init__(self) -> None:
        if self.reserve_a < 0 or self.reserve_b < 0:
            raise ValueError(
                f"Pool {self.pool_address} has negative reserves "
                f"({self.reserve_a}, {self.reserve_b})"
            )
        if not 0 <= self.fee_bps <= 10_000:
            raise ValueError(f"Pool {self.pool_address} fee_bps out of range: {self.fee_bps}")

    def token(self, side: Side) -> str:
        return self.token_a if side is Side.A else self.token_b

    def reserve(self, side: Side) -> int:
        return self.reserve_a if side is Side.A else self.reserve_b

    def decimals(self, side: Side) -> int:
        return self.decimals_a if side is Side.A else self.decimals_b

    def side_of(self, token: str) -> Side:
        """Side holding the given token address (case-insensitive).

        Raises:
            ValueError: If the token is not in this pool
        """
        token_norm = normalize_address(token)
        if token_norm == normalize_address(self.token_a):
            return Side.A
        if token_norm == normalize_address(self.token_b):
            return Side.B
        raise ValueError(f"Token {token} not in pool {self.pool_address}")

    def get_reserves(self, input_side: Side) -> tuple[int, int]:
        """Get reserves ordered as (reserve_in, reserve_out)."""
        return self.reserve(input_side), self.reserve(input_side.other)

    def has_token_pair(self, token_x: str, token_y: str) -> bool:
        """True if the pool holds exactly these two tokens, in either order."""
        pair = {normalize_address(self.token_a), normalize_address(self.token_b)}
        return pair == {normalize_address(token_x), normalize_address(token_y)}

    @property
    def is_empty(self) -> bool:
        """Both reserves are zero."""
        return self.reserve_a == 0 and self.reserve_b == 0


__all__ = ["Pool", "Side"]
