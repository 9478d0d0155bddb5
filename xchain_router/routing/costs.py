"""Execution cost model.

Routes carry a flat USD cost: a local execution cost plus a bridging cost
per remote source drawn from. To compare routes by output, the USD cost is
converted into output-token units.

When the output token is the stable asset the conversion is a decimal shift.
Otherwise the output token's price is the average implied price (stable
reserve / other reserve) over every pool with a usable stable side.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

import structlog

from xchain_router.amm.pricing import divide, from_units, implied_price
from xchain_router.config import RouterConfig
from xchain_router.errors import RouteWarning, WarningKind
from xchain_router.models.pool import Pool, Side
from xchain_router.routing.types import MatchedPool, RouteCandidate
from xchain_router.tokens.resolver import LogicalTokenResolver

logger = structlog.get_logger()


@dataclass(frozen=True)
class CostResult:
    """A cost in output-token smallest units.

    Attributes:
        amount: Cost in output-token units (0 when no price is available)
        warning: MISSING_PRICE warning when the cost could not be priced
    """

    amount: int
    warning: RouteWarning | None = None


class CostModel:
    """Converts flat USD route costs into output-token amounts.

    Args:
        config: Router configuration (cost constants, stable symbol, decimals)
        resolver: Logical token resolver
    """

    def __init__(self, config: RouterConfig, resolver: LogicalTokenResolver) -> None:
        self.config = config
        self.resolver = resolver

    def cost_usd(self, candidate: RouteCandidate) -> Decimal:
        """Flat USD cost of a candidate's remote-source set."""
        return self.config.costs.cost_for(len(candidate.remote_sources_used))

    def is_stable(self, token: str, source_id: str) -> bool:
        """True if token (symbol or address on source_id) is the stable asset."""
        stable = self.config.stable_symbol
        if token.upper() == stable:
            return True
        return self.resolver.resolve_symbol(token, source_id) == stable

    def cost_in_output_token(
        self,
        cost_usd: Decimal,
        output_token: str,
        pools: Sequence[Pool | MatchedPool],
        execution_source: str | None = None,
    ) -> CostResult:
        """Convert a USD cost into output-token smallest units.

        Args:
            cost_usd: Cost in USD
            output_token: Output token, as a symbol or an execution-source address
            pools: Pools to derive the output token's price from
            execution_source: Source the output is delivered on (defaults to config)

        Returns:
            The floored cost, or zero with a MISSING_PRICE warning if no pool
            yields a usable price
        """
        source_id = execution_source or self.config.execution_source
        if self.is_stable(output_token, source_id):
            decimals = self.config.source(source_id).stable_decimals
            return CostResult(from_units(cost_usd, decimals))

        prices: list[Decimal] = []
        output_decimals: int | None = None
        for item in pools:
            pool = item.pool if isinstance(item, MatchedPool) else item
            stable_side = self._stable_side(pool)
            if stable_side is None:
                continue
            price = implied_price(pool, stable_side)
            if price is None:
                continue
            prices.append(price)
            # Output is paid on the execution source, not where the price came from
            if output_decimals is None and pool.source_id == source_id:
                output_decimals = pool.decimals(stable_side.other)

        if not prices:
            logger.warning(
                "cost_price_unavailable",
                output_token=output_token,
                pools=len(pools),
                cost_usd=str(cost_usd),
            )
            return CostResult(
                0,
                RouteWarning(
                    kind=WarningKind.MISSING_PRICE,
                    detail=(
                        f"no pool prices {output_token} against "
                        f"{self.config.stable_symbol}; cost of ${cost_usd} not deducted"
                    ),
                ),
            )

        if output_decimals is None:
            output_decimals = self.config.source(source_id).asset_decimals
        average = divide(sum(prices, Decimal(0)), Decimal(len(prices)))
        return CostResult(from_units(divide(cost_usd, average), output_decimals))

    def _stable_side(self, pool: Pool) -> Side | None:
        side = self.resolver.stable_side(pool)
        if side is None and pool.is_aggregated_vault:
            return LogicalTokenResolver.VAULT_STABLE_SIDE
        return side


__all__ = ["CostModel", "CostResult"]
