"""Tests for converting route costs into output-token units."""

from decimal import Decimal

import pytest

from xchain_router.errors import WarningKind
from xchain_router.models.pool import Side
from xchain_router.routing.costs import CostModel
from xchain_router.routing.types import MatchedPool, RouteCandidate
from tests.helpers import ARC, BASE, FLX_ARC, ONE_FLX, ONE_USDC, POLYGON, USDC_ARC, make_pool


@pytest.fixture
def cost_model(config, resolver):
    return CostModel(config, resolver)


def _candidate(*remote_sources):
    return RouteCandidate(
        label="test",
        pools=(),
        sources_used=frozenset({ARC, *remote_sources}),
        remote_sources_used=tuple(remote_sources),
    )


class TestCostUsd:
    """Tests for the flat USD cost of a candidate."""

    def test_local_only(self, cost_model):
        """A local route pays only the local execution cost."""
        assert cost_model.cost_usd(_candidate()) == Decimal("0.0002")

    def test_per_remote_source(self, cost_model):
        """Each remote source adds one bridging cost."""
        assert cost_model.cost_usd(_candidate(BASE)) == Decimal("0.1002")
        assert cost_model.cost_usd(_candidate(BASE, POLYGON)) == Decimal("0.2002")


class TestCostInOutputToken:
    """Tests for CostModel.cost_in_output_token."""

    def test_stable_output_is_a_decimal_shift(self, cost_model):
        """$0.0002 in a 6-decimal stable is 200 units."""
        result = cost_model.cost_in_output_token(Decimal("0.0002"), "USDC", [])
        assert result.amount == 200
        assert result.warning is None

    def test_stable_output_by_address(self, cost_model):
        """The stable is recognized from its execution-source address too."""
        result = cost_model.cost_in_output_token(Decimal("0.1002"), USDC_ARC, [], ARC)
        assert result.amount == 100_200

    def test_non_stable_output_uses_implied_price(self, cost_model):
        """FLX at 0.001 USDC: $0.0002 costs 0.2 FLX."""
        pool = make_pool(ARC, reserve_a=1000 * ONE_FLX, reserve_b=1 * ONE_USDC)

        result = cost_model.cost_in_output_token(Decimal("0.0002"), "FLX", [pool])

        assert result.amount == 2 * 10**17
        assert result.warning is None

    def test_price_is_averaged_across_pools(self, cost_model):
        """Prices of 0.001 and 0.003 average to 0.002."""
        pools = [
            make_pool(ARC, reserve_a=1000 * ONE_FLX, reserve_b=1 * ONE_USDC),
            make_pool(BASE, reserve_a=1000 * ONE_FLX, reserve_b=3 * ONE_USDC),
        ]

        result = cost_model.cost_in_output_token(Decimal("0.0002"), FLX_ARC, pools, ARC)

        assert result.amount == 10**17

    def test_matched_pools_are_accepted(self, cost_model):
        """Oriented matches price the same as bare pools."""
        pool = make_pool(ARC)
        matched = MatchedPool(pool, Side.B, is_local=True)

        assert (
            cost_model.cost_in_output_token(Decimal("0.0002"), "FLX", [matched]).amount
            == cost_model.cost_in_output_token(Decimal("0.0002"), "FLX", [pool]).amount
        )

    def test_unmapped_vault_priced_by_convention(self, cost_model):
        """A vault with unknown tokens is priced with the stable on side B."""
        vault = make_pool(
            ARC,
            token_a="0x" + "ee" * 20,
            token_b="0x" + "ef" * 20,
            is_aggregated_vault=True,
        )

        result = cost_model.cost_in_output_token(Decimal("0.0002"), "FLX", [vault])

        assert result.amount == 2 * 10**17

    def test_missing_price_warns_and_costs_nothing(self, cost_model):
        """No usable price means no deduction and a MISSING_PRICE warning."""
        unpriced = make_pool(ARC, token_a="0x" + "ee" * 20, token_b="0x" + "ef" * 20)
        empty = make_pool(ARC, reserve_a=0)

        for pools in ([], [unpriced], [empty]):
            result = cost_model.cost_in_output_token(Decimal("0.1002"), "FLX", pools)
            assert result.amount == 0
            assert result.warning is not None
            assert result.warning.kind is WarningKind.MISSING_PRICE

    def test_output_decimals_follow_execution_source(self, cost_model):
        """An 8-decimal remote FLX does not change the 18-decimal local amount."""
        remote = make_pool(BASE, reserve_a=1000 * 10**8, reserve_b=1 * ONE_USDC, decimals_a=8)
        local = make_pool(ARC, reserve_a=1000 * ONE_FLX, reserve_b=1 * ONE_USDC)

        remote_only = cost_model.cost_in_output_token(Decimal("0.0002"), "FLX", [remote])
        remote_first = cost_model.cost_in_output_token(Decimal("0.0002"), "FLX", [remote, local])

        assert remote_only.amount == 2 * 10**17
        assert remote_first.amount == 2 * 10**17
