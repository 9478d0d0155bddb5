"""Route selection.

Each candidate is evaluated by walking its pools in priority order (local
before remote), allocating up to half of each pool's input-side reserve and
carrying the remainder forward. Net output is gross output minus the route's
cost in output-token units, floored at zero.

Candidates are ranked by net output. Ties keep enumeration order, so a cheaper
route enumerated first (local only) wins over an equal multi-source route.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace

import structlog

from xchain_router.amm.constant_product import ConstantProductAMM, constant_product
from xchain_router.constants import UTILIZATION_CAP_DIVISOR
from xchain_router.errors import NoLiquidityError, RouteWarning, WarningKind
from xchain_router.routing.costs import CostModel
from xchain_router.routing.types import (
    CrossChainTransfer,
    MatchedPool,
    PoolAllocation,
    RouteAllocation,
    RouteCandidate,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class Fill:
    """Outcome of allocating an input amount across a candidate's pools."""

    entries: tuple[PoolAllocation, ...]
    gross_output: int
    unfilled_amount: int
    warnings: tuple[RouteWarning, ...] = ()


class RouteSelector:
    """Evaluates, ranks and materializes candidate routes.

    Args:
        cost_model: Converts route costs into output-token units
        amm: Output calculator. Defaults to the constant-product singleton.
    """

    def __init__(self, cost_model: CostModel, amm: ConstantProductAMM | None = None) -> None:
        self.cost_model = cost_model
        self.amm = amm if amm is not None else constant_product

    @staticmethod
    def utilization_cap(matched: MatchedPool) -> int:
        """Largest input a single pool may absorb: half its input-side reserve."""
        return matched.reserve_in // UTILIZATION_CAP_DIVISOR

    def allocate(self, pools: Sequence[MatchedPool], amount_in: int) -> Fill:
        """Greedily spread amount_in over pools in order, capped per pool.

        Pools whose chunk would return nothing are skipped and receive no input.
        """
        remaining = amount_in
        gross = 0
        entries: list[PoolAllocation] = []
        warnings: list[RouteWarning] = []

        for matched in pools:
            if remaining <= 0:
                break
            chunk = min(remaining, self.utilization_cap(matched))
            if chunk <= 0:
                continue

            quote = self.amm.quote(matched.pool, matched.input_side, chunk)
            if quote.amount_out <= 0:
                continue
            if quote.warning is not None:
                warnings.append(quote.warning)

            entries.append(
                PoolAllocation(
                    pool=matched.pool,
                    input_side=matched.input_side,
                    amount_allocated=chunk,
                    expected_output=quote.amount_out,
                    price_impact_bps=self.amm.price_impact_bps(
                        matched.pool, matched.input_side, chunk
                    ),
                )
            )
            gross += quote.amount_out
            remaining -= chunk

        return Fill(
            entries=tuple(entries),
            gross_output=gross,
            unfilled_amount=remaining,
            warnings=tuple(warnings),
        )

    def evaluate(
        self,
        candidate: RouteCandidate,
        amount_in: int,
        output_token: str,
        pricing_pools: Sequence[MatchedPool],
        execution_source: str | None = None,
    ) -> RouteCandidate:
        """Fill in gross output, cost and net output for one candidate."""
        fill = self.allocate(candidate.pools, amount_in)
        cost_usd = self.cost_model.cost_usd(candidate)
        cost = self.cost_model.cost_in_output_token(
            cost_usd, output_token, pricing_pools, execution_source
        )

        warnings = list(candidate.warnings) + list(fill.warnings)
        if cost.warning is not None:
            warnings.append(cost.warning)

        return replace(
            candidate,
            gross_output=fill.gross_output,
            cost_usd=cost_usd,
            cost_in_output_token=cost.amount,
            net_output=max(fill.gross_output - cost.amount, 0),
            unfilled_amount=fill.unfilled_amount,
            entries=fill.entries,
            warnings=tuple(warnings),
        )

    @staticmethod
    def rank(evaluated: Sequence[RouteCandidate]) -> list[RouteCandidate]:
        """Sort by net output, best first; equal candidates keep their order."""
        return sorted(evaluated, key=lambda c: c.net_output, reverse=True)

    def select(
        self,
        candidates: Sequence[RouteCandidate],
        amount_in: int,
        output_token: str,
        pricing_pools: Sequence[MatchedPool],
        execution_source: str | None = None,
    ) -> tuple[RouteCandidate, list[RouteCandidate]]:
        """Evaluate and rank candidates.

        Returns:
            Tuple of (winner, ranked list with the winner first)

        Raises:
            NoLiquidityError: If there are no candidates
        """
        if not candidates:
            raise NoLiquidityError("No candidate routes to select from")

        ranked = self.rank(
            [
                self.evaluate(c, amount_in, output_token, pricing_pools, execution_source)
                for c in candidates
            ]
        )
        return ranked[0], ranked

    def materialize(
        self,
        winner: RouteCandidate,
        ranked: Sequence[RouteCandidate],
        token_in: str,
        token_out: str,
        amount_in: int,
        execution_source: str,
    ) -> RouteAllocation:
        """Turn the winning candidate into an allocation with transfer instructions."""
        transfers = tuple(
            CrossChainTransfer(
                source_id=entry.source_id,
                destination_source_id=execution_source,
                amount=entry.amount_allocated,
                token=entry.pool.token(entry.input_side),
            )
            for entry in winner.entries
            if entry.source_id != execution_source
        )

        warnings = list(winner.warnings)
        seen_synthetic: set[str] = set()
        for entry in winner.entries:
            if entry.pool.is_synthetic_fallback and entry.source_id not in seen_synthetic:
                seen_synthetic.add(entry.source_id)
                warnings.append(
                    RouteWarning(
                        kind=WarningKind.SYNTHETIC_FALLBACK,
                        detail=f"{entry.source_id} depth is placeholder data, not live reserves",
                        source_id=entry.source_id,
                        pool_address=entry.pool.pool_address,
                    )
                )

        if winner.unfilled_amount > 0:
            logger.warning(
                "route_partial_fill",
                label=winner.label,
                amount_in=amount_in,
                unfilled=winner.unfilled_amount,
            )
            warnings.append(
                RouteWarning(
                    kind=WarningKind.PARTIAL_FILL,
                    detail=(
                        f"{winner.unfilled_amount} of {amount_in} input exceeds the "
                        "utilization cap of every pool on this route"
                    ),
                    amount=winner.unfilled_amount,
                )
            )

        return RouteAllocation(
            requires_multi_source=winner.requires_multi_source,
            token_in=token_in,
            token_out=token_out,
            execution_source=execution_source,
            total_amount_in=amount_in,
            gross_output=winner.gross_output,
            net_output=winner.net_output,
            cost_usd=winner.cost_usd,
            cost_in_output_token=winner.cost_in_output_token,
            label=winner.label,
            entries=winner.entries,
            transfers=transfers,
            unfilled_amount=winner.unfilled_amount,
            ranked=tuple(ranked),
            warnings=tuple(warnings),
        )


__all__ = ["Fill", "RouteSelector"]
