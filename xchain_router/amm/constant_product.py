"""Constant-product output calculator.

Pools are priced with the x * y = k formula and a proportional fee taken
from the input before the swap:

    amount_in_after_fee = amount_in * (10000 - fee_bps) // 10000
    amount_out = amount_in_after_fee * reserve_out // (reserve_in + amount_in_after_fee)

All arithmetic is on integers in the tokens' smallest units; both divisions
floor toward zero.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from xchain_router.constants import BPS, SANITY_RATIO_DIVISOR
from xchain_router.errors import RouteWarning, WarningKind
from xchain_router.models.pool import Pool, Side
from xchain_router.models.types import short
from xchain_router.safe_int import S

logger = structlog.get_logger()


@dataclass(frozen=True)
class OutputQuote:
    """Result of pricing one input amount against one pool.

    Attributes:
        amount_in: Requested input
        amount_in_after_fee: Input left after the fee is taken
        amount_out: Constant-product output
        linear_estimate: Output at the pool's spot price, ignoring price impact
        warning: PRICE_SANITY warning when amount_out is implausibly small
    """

    amount_in: int
    amount_in_after_fee: int
    amount_out: int
    linear_estimate: int
    warning: RouteWarning | None = None


class ConstantProductAMM:
    """Constant-product pricing over Pool snapshots."""

    def get_amount_out(
        self,
        amount_in: int,
        reserve_in: int,
        reserve_out: int,
        fee_bps: int,
    ) -> int:
        """Calculate output amount using the constant-product formula.

        Args:
            amount_in: Input token amount
            reserve_in: Reserve of input token in pool
            reserve_out: Reserve of output token in pool
            fee_bps: Swap fee in basis points

        Returns:
            Output token amount (0 for empty pools or zero input)
        """
        if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
            return 0

        after_fee = self.apply_fee(amount_in, fee_bps)
        denominator = S(reserve_in) + S(after_fee)
        if denominator == 0:
            return 0
        return ((S(after_fee) * S(reserve_out)) // denominator).value

    @staticmethod
    def apply_fee(amount_in: int, fee_bps: int) -> int:
        """Input remaining after the proportional fee, floored."""
        return ((S(amount_in) * (S(BPS) - S(fee_bps))) // S(BPS)).value

    def quote(self, pool: Pool, input_side: Side, amount_in: int) -> OutputQuote:
        """Price amount_in of the input_side token against pool.

        Compares the result with the naive linear estimate
        ``after_fee * reserve_out // reserve_in``. An output below 1% of that
        estimate (both nonzero) usually means reserve_in and reserve_out were
        assigned to the wrong tokens, so it is flagged rather than trusted.
        """
        reserve_in, reserve_out = pool.get_reserves(input_side)
        if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
            return OutputQuote(amount_in, 0, 0, 0)

        after_fee = self.apply_fee(amount_in, pool.fee_bps)
        amount_out = self.get_amount_out(amount_in, reserve_in, reserve_out, pool.fee_bps)
        linear = ((S(after_fee) * S(reserve_out)) // S(reserve_in)).value

        warning = None
        if amount_out > 0 and linear > 0 and amount_out * SANITY_RATIO_DIVISOR < linear:
            logger.warning(
                "output_below_linear_estimate",
                source=pool.source_id,
                pool=short(pool.pool_address),
                amount_out=amount_out,
                linear_estimate=linear,
            )
            warning = RouteWarning(
                kind=WarningKind.PRICE_SANITY,
                detail=(
                    f"output {amount_out} is below 1% of linear estimate {linear}; "
                    "reserves may be assigned to the wrong tokens"
                ),
                source_id=pool.source_id,
                pool_address=pool.pool_address,
            )

        return OutputQuote(
            amount_in=amount_in,
            amount_in_after_fee=after_fee,
            amount_out=amount_out,
            linear_estimate=linear,
            warning=warning,
        )

    def compute_output(self, pool: Pool, input_side: Side, amount_in: int) -> int:
        """Output amount for amount_in of the input_side token (0 means no liquidity)."""
        return self.quote(pool, input_side, amount_in).amount_out

    @staticmethod
    def price_impact_bps(pool: Pool, input_side: Side, amount_in: int) -> int:
        """Trade size relative to the input reserve, in basis points.

        An empty input reserve reports 10000 (100%).
        """
        reserve_in = pool.reserve(input_side)
        if reserve_in <= 0:
            return BPS
        return ((S(amount_in) * S(BPS)) // S(reserve_in)).value


# Singleton instance
constant_product = ConstantProductAMM()


def compute_output(pool: Pool, input_side: Side, amount_in: int) -> int:
    """Module-level shortcut for ConstantProductAMM.compute_output."""
    return constant_product.compute_output(pool, input_side, amount_in)


__all__ = [
    "ConstantProductAMM",
    "OutputQuote",
    "compute_output",
    "constant_product",
]
