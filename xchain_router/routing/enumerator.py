"""Route enumeration.

Finds every pool serving a token pair across all sources and expands them
into candidate routes: one local-only candidate, then every k-combination of
remote pools joined with all local pools.

The expansion is exponential in the number of remote pools, so remote pools
are capped (deepest first) before combinations are generated.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from itertools import combinations

import structlog

from xchain_router.constants import DEFAULT_MAX_REMOTE_POOLS
from xchain_router.errors import NoLiquidityError, RouteWarning, WarningKind
from xchain_router.models.pool import Pool
from xchain_router.models.types import normalize_address, short
from xchain_router.routing.types import MatchedPool, MatchResult, RouteCandidate
from xchain_router.tokens.resolver import LogicalTokenResolver, Resolution, ResolutionStatus

logger = structlog.get_logger()

LOCAL_LABEL = "Local only"


class RouteEnumerator:
    """Generates candidate routes from a depth snapshot.

    Args:
        resolver: Logical token resolver
        max_remote_pools: Maximum number of remote pools to combine
    """

    def __init__(
        self,
        resolver: LogicalTokenResolver,
        max_remote_pools: int = DEFAULT_MAX_REMOTE_POOLS,
    ) -> None:
        self.resolver = resolver
        self.max_remote_pools = max_remote_pools

    def enumerate(
        self,
        token_in: str,
        token_out: str,
        amount_in: int,
        execution_source_id: str,
        depths: Mapping[str, Sequence[Pool]],
    ) -> list[RouteCandidate]:
        """Enumerate candidate routes for swapping token_in into token_out.

        Args:
            token_in: Input token, as a logical symbol or an execution-source address
            token_out: Output token, as a logical symbol or an execution-source address
            amount_in: Input amount in smallest units
            execution_source_id: Source where the swap settles
            depths: Snapshot of source id -> pools

        Returns:
            Candidates in enumeration order

        Raises:
            NoLiquidityError: If no pool on any source serves the pair
            ValueError: If amount_in is negative
        """
        if amount_in < 0:
            raise ValueError(f"amount_in must be non-negative, got {amount_in}")
        matched = self.match_pools(token_in, token_out, execution_source_id, depths)
        return self.build_candidates(matched)

    def match_pools(
        self,
        token_in: str,
        token_out: str,
        execution_source_id: str,
        depths: Mapping[str, Sequence[Pool]],
    ) -> MatchResult:
        """Find every pool serving the pair, oriented for the trade direction.

        Tokens are resolved to logical symbols on the execution source and then
        to chain-local addresses on every source. If either token cannot be
        resolved, only execution-source pools are matched, by exact address.

        Raises:
            NoLiquidityError: If no pool with input-side liquidity matches
        """
        res_in = self.resolver.resolve(token_in, execution_source_id)
        res_out = self.resolver.resolve(token_out, execution_source_id)

        warnings: list[RouteWarning] = []
        if res_in.is_resolved and res_out.is_resolved:
            assert res_in.symbol is not None and res_out.symbol is not None
            matched = self._match_by_symbol(
                res_in.symbol, res_out.symbol, execution_source_id, depths, warnings
            )
        else:
            for token, res in ((token_in, res_in), (token_out, res_out)):
                if not res.is_resolved:
                    warnings.append(
                        RouteWarning(
                            kind=WarningKind.UNRESOLVED_LOGICAL_TOKEN,
                            detail=(
                                f"{token} has no logical symbol on {execution_source_id}; "
                                "matching execution-source pools by address only"
                            ),
                            source_id=execution_source_id,
                        )
                    )
            matched = self._match_local_by_address(res_in, res_out, execution_source_id, depths)

        usable = [m for m in matched if m.reserve_in > 0]
        if not usable:
            logger.warning(
                "no_liquidity",
                token_in=token_in,
                token_out=token_out,
                matched=len(matched),
                sources=list(depths),
            )
            raise NoLiquidityError(
                f"No pool serves {token_in} -> {token_out} on any configured source"
            )

        return MatchResult(
            symbol_in=res_in.symbol,
            symbol_out=res_out.symbol,
            pools=tuple(self._cap_remote(usable)),
            warnings=tuple(warnings),
        )

    def _match_by_symbol(
        self,
        symbol_in: str,
        symbol_out: str,
        execution_source_id: str,
        depths: Mapping[str, Sequence[Pool]],
        warnings: list[RouteWarning],
    ) -> list[MatchedPool]:
        matched = []
        for source_id, pools in depths.items():
            is_local = source_id == execution_source_id
            addr_in = self.resolver.resolve_address(symbol_in, source_id)
            addr_out = self.resolver.resolve_address(symbol_out, source_id)

            for pool in pools:
                if addr_in is not None and addr_out is not None:
                    if pool.has_token_pair(addr_in, addr_out):
                        matched.append(MatchedPool(pool, pool.side_of(addr_in), is_local))
                    continue

                # Unmapped remote sources only match vaults, by side convention
                if is_local:
                    continue
                side = self.resolver.infer_vault_input_side(pool, symbol_in, symbol_out)
                if side is None:
                    continue
                if addr_in is not None and normalize_address(pool.token(side)) != addr_in:
                    continue
                if addr_out is not None and normalize_address(pool.token(side.other)) != addr_out:
                    continue

                logger.warning(
                    "vault_side_inferred",
                    source=source_id,
                    pool=short(pool.pool_address),
                    input_side=side.value,
                )
                warnings.append(
                    RouteWarning(
                        kind=WarningKind.INFERRED_FROM_CONVENTION,
                        detail=(
                            f"{symbol_in}/{symbol_out} sides of vault on {source_id} "
                            "assumed from the asset/stable convention"
                        ),
                        source_id=source_id,
                        pool_address=pool.pool_address,
                    )
                )
                matched.append(
                    MatchedPool(
                        pool,
                        side,
                        is_local,
                        resolution=ResolutionStatus.INFERRED_FROM_CONVENTION,
                    )
                )
        return matched

    def _match_local_by_address(
        self,
        res_in: Resolution,
        res_out: Resolution,
        execution_source_id: str,
        depths: Mapping[str, Sequence[Pool]],
    ) -> list[MatchedPool]:
        if res_in.address is None or res_out.address is None:
            return []
        return [
            MatchedPool(
                pool,
                pool.side_of(res_in.address),
                is_local=True,
                resolution=ResolutionStatus.UNRESOLVED,
            )
            for pool in depths.get(execution_source_id, ())
            if pool.has_token_pair(res_in.address, res_out.address)
        ]

    def _cap_remote(self, matched: list[MatchedPool]) -> list[MatchedPool]:
        """Keep local pools and the deepest max_remote_pools remote pools, in order."""
        remote = [m for m in matched if not m.is_local]
        if len(remote) <= self.max_remote_pools:
            return matched

        deepest = sorted(remote, key=lambda m: m.reserve_in, reverse=True)
        dropped = deepest[self.max_remote_pools :]
        logger.warning(
            "remote_pools_capped",
            matched=len(remote),
            kept=self.max_remote_pools,
            dropped=[f"{m.source_id}:{short(m.pool.pool_address)}" for m in dropped],
        )
        dropped_ids = {id(m) for m in dropped}
        return [m for m in matched if id(m) not in dropped_ids]

    def build_candidates(self, matched: MatchResult) -> list[RouteCandidate]:
        """Expand matched pools into the local-only and remote-combination candidates."""
        local = matched.local
        remote = matched.remote
        candidates = []

        if local:
            candidates.append(self._candidate(LOCAL_LABEL, local, (), matched.warnings))

        for k in range(1, len(remote) + 1):
            for combo in combinations(remote, k):
                remote_sources = _unique(m.source_id for m in combo)
                label = ", ".join(remote_sources)
                if local:
                    label = f"Local + {label}"
                candidates.append(
                    self._candidate(label, local + combo, remote_sources, matched.warnings)
                )

        logger.debug(
            "routes_enumerated",
            local_pools=len(local),
            remote_pools=len(remote),
            candidates=len(candidates),
        )
        return candidates

    @staticmethod
    def _candidate(
        label: str,
        pools: tuple[MatchedPool, ...],
        remote_sources: tuple[str, ...],
        match_warnings: tuple[RouteWarning, ...],
    ) -> RouteCandidate:
        addresses = {m.pool.pool_address for m in pools}
        warnings = tuple(
            w
            for w in match_warnings
            if w.kind is not WarningKind.INFERRED_FROM_CONVENTION or w.pool_address in addresses
        )
        return RouteCandidate(
            label=label,
            pools=pools,
            sources_used=frozenset(m.source_id for m in pools),
            remote_sources_used=remote_sources,
            warnings=warnings,
        )


def _unique(items: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(items))


__all__ = ["LOCAL_LABEL", "RouteEnumerator"]
