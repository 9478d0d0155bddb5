"""Tests for canonical execution plans and their commitment hash."""

import re
from datetime import UTC, datetime

import pytest

from xchain_router.routing.plan import OPERATOR, build_plan
from tests.helpers import ARC, BASE, ONE_FLX

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def split_allocation(optimizer, split_depths):
    return optimizer.find_optimal_route(split_depths, "FLX", "USDC", 4000 * ONE_FLX)


@pytest.fixture
def local_allocation(optimizer, split_depths):
    return optimizer.find_optimal_route(split_depths, "FLX", "USDC", ONE_FLX)


class TestPlanHash:
    """Tests for the keccak commitment."""

    def test_hash_format(self, split_allocation):
        """The hash is a 0x-prefixed 32-byte hex string."""
        plan = build_plan(split_allocation, now=NOW)
        assert re.fullmatch(r"0x[0-9a-f]{64}", plan.plan_hash)

    def test_metadata_does_not_affect_hash(self, split_allocation):
        """Request id, recipient and timestamps are outside the commitment."""
        first = build_plan(split_allocation, request_id="req-1", now=NOW)
        second = build_plan(
            split_allocation,
            request_id="req-2",
            user_address="0x" + "12" * 20,
            expiry_seconds=300,
        )
        assert first.plan_hash == second.plan_hash

    def test_different_routes_hash_differently(self, split_allocation, local_allocation):
        """Any change to the execution or hops changes the hash."""
        assert (
            build_plan(split_allocation, now=NOW).plan_hash
            != build_plan(local_allocation, now=NOW).plan_hash
        )


class TestPlanDocument:
    """Tests for the plan layout."""

    def test_remote_swap_preceded_by_bridge(self, split_allocation):
        """Each remote swap follows a bridge into the execution source."""
        plan = build_plan(split_allocation, now=NOW)

        assert [h["type"] for h in plan.hops] == ["swap", "bridge", "swap"]
        bridge = plan.hops[1]
        assert bridge["source"] == BASE
        assert bridge["destination"] == ARC
        assert bridge["pool"] == ""
        assert bridge["amountIn"] == 2500 * ONE_FLX
        assert plan.hops[2]["amountIn"] == bridge["amountOut"]

    def test_local_route_has_no_bridge(self, local_allocation):
        """A local route is a single swap."""
        plan = build_plan(local_allocation, now=NOW)
        assert [h["type"] for h in plan.hops] == ["swap"]

    def test_execution_summary(self, split_allocation):
        """The summary mirrors the allocation."""
        execution = build_plan(split_allocation, now=NOW).execution

        assert execution["label"] == "Local + base"
        assert execution["executionSource"] == ARC
        assert execution["amountIn"] == 4000 * ONE_FLX
        assert execution["netOutput"] == split_allocation.net_output
        assert execution["requiresMultiSource"] is True
        assert execution["costUsd"] == "0.1002"

    def test_metadata(self, split_allocation):
        """Metadata carries request fields and the validity window."""
        plan = build_plan(split_allocation, request_id="req-1", expiry_seconds=90, now=NOW)

        assert plan.metadata["requestId"] == "req-1"
        assert plan.metadata["operator"] == OPERATOR
        assert plan.metadata["createdAt"] == "2025-01-01T12:00:00+00:00"
        assert plan.metadata["expiresAt"] == "2025-01-01T12:01:30+00:00"
        assert plan.metadata["userAddress"] is None

    def test_to_dict(self, split_allocation):
        """to_dict exposes the camelCase document."""
        document = build_plan(split_allocation, now=NOW).to_dict()
        assert set(document) == {"metadata", "execution", "hops", "planHash"}
        assert isinstance(document["hops"], list)
