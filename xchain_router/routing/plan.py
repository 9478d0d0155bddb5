"""Canonical execution plans.

Converts a RouteAllocation into a deterministic plan document for an
execution orchestrator, plus a keccak-256 commitment over it. The hash covers
the execution summary and hops only (ABI-encoded), not request metadata, so
the same route always commits to the same hash.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from eth_abi import encode  # type: ignore[attr-defined]
from web3 import Web3

from xchain_router.routing.types import RouteAllocation

OPERATOR = "xchain-router"

EXECUTION_ABI_TYPE = "(string,string,string,string,uint256,uint256,uint256,uint256,bool)"
HOP_ABI_TYPE = "(string,string,string,string,string,uint256,uint256)"


@dataclass(frozen=True)
class ExecutionPlan:
    """A canonical plan and its commitment hash."""

    metadata: dict[str, Any]
    execution: dict[str, Any]
    hops: tuple[dict[str, Any], ...]
    plan_hash: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self.metadata,
            "execution": self.execution,
            "hops": list(self.hops),
            "planHash": self.plan_hash,
        }


def _hops(allocation: RouteAllocation) -> list[dict[str, Any]]:
    """Swap steps in allocation order, each remote swap preceded by its bridge."""
    hops: list[dict[str, Any]] = []
    for entry in allocation.entries:
        token = entry.pool.token(entry.input_side)
        if entry.source_id != allocation.execution_source:
            hops.append(
                {
                    "type": "bridge",
                    "source": entry.source_id,
                    "destination": allocation.execution_source,
                    "pool": "",
                    "token": token,
                    "amountIn": entry.amount_allocated,
                    "amountOut": entry.amount_allocated,
                }
            )
        hops.append(
            {
                "type": "swap",
                "source": entry.source_id,
                "destination": entry.source_id,
                "pool": entry.pool.pool_address,
                "token": token,
                "amountIn": entry.amount_allocated,
                "amountOut": entry.expected_output,
            }
        )
    return hops


def hash_plan(execution: dict[str, Any], hops: list[dict[str, Any]]) -> str:
    """Keccak-256 of the ABI-encoded execution summary and hops."""
    encoded = encode(
        [EXECUTION_ABI_TYPE, f"{HOP_ABI_TYPE}[]"],
        [
            (
                execution["label"],
                execution["executionSource"],
                execution["tokenIn"],
                execution["tokenOut"],
                execution["amountIn"],
                execution["grossOutput"],
                execution["netOutput"],
                execution["unfilledAmount"],
                execution["requiresMultiSource"],
            ),
            [
                (
                    h["type"],
                    h["source"],
                    h["destination"],
                    h["pool"],
                    h["token"],
                    h["amountIn"],
                    h["amountOut"],
                )
                for h in hops
            ],
        ],
    )
    return Web3.to_hex(Web3.keccak(encoded))


def build_plan(
    allocation: RouteAllocation,
    request_id: str | None = None,
    user_address: str | None = None,
    expiry_seconds: int = 60,
    now: datetime | None = None,
) -> ExecutionPlan:
    """Build the canonical plan for an allocation.

    Args:
        allocation: Selected route
        request_id: Caller's request id, carried in metadata only
        user_address: Recipient, carried in metadata only
        expiry_seconds: Plan validity window
        now: Creation time (defaults to the current UTC time)

    Returns:
        The plan with its commitment hash
    """
    created = now or datetime.now(UTC)
    execution = {
        "label": allocation.label,
        "executionSource": allocation.execution_source,
        "tokenIn": allocation.token_in,
        "tokenOut": allocation.token_out,
        "amountIn": allocation.total_amount_in,
        "grossOutput": allocation.gross_output,
        "netOutput": allocation.net_output,
        "unfilledAmount": allocation.unfilled_amount,
        "requiresMultiSource": allocation.requires_multi_source,
        "costUsd": str(allocation.cost_usd),
    }
    hops = _hops(allocation)
    plan_hash = hash_plan(execution, hops)

    metadata = {
        "requestId": request_id,
        "operator": OPERATOR,
        "createdAt": created.isoformat(),
        "expiresAt": (created + timedelta(seconds=expiry_seconds)).isoformat(),
        "userAddress": user_address,
    }
    return ExecutionPlan(
        metadata=metadata,
        execution=execution,
        hops=tuple(hops),
        plan_hash=plan_hash,
    )


__all__ = ["ExecutionPlan", "build_plan", "hash_plan"]
