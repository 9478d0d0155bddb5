"""Liquidity depth tracker.

Polls every configured source for reserve state, normalizes it into Pool
snapshots and caches them per source in a DepthStore.

Failure policy:
- Each source is fetched concurrently under its own timeout; one failing or
  hanging source never aborts or stalls the others.
- A source that fails, or yields only empty pools, is replaced by a small
  synthetic pool flagged ``is_synthetic_fallback`` so downstream math never
  divides by zero. With ``synthetic_fallback=False`` the source is stored
  with no pools instead; its key is still present.

Route requests read whatever snapshot is cached. Only a cold cache triggers a
fetch from the request path; otherwise fetching belongs to the background loop
started with ``start()`` and cancelled with ``stop()``.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from decimal import Decimal

import structlog

from xchain_router.amm.constant_product import constant_product
from xchain_router.amm.pricing import tvl_usd
from xchain_router.config import RouterConfig, SourceConfig
from xchain_router.constants import (
    MAX_RECORDED_REFRESH_ERRORS,
    PLACEHOLDER_ASSET_ADDRESS,
    PLACEHOLDER_POOL_ADDRESS,
    PLACEHOLDER_STABLE_ADDRESS,
    SYNTHETIC_ASSET_UNITS,
    SYNTHETIC_STABLE_UNITS,
    SYNTHETIC_TOTAL_SUPPLY_UNITS,
)
from xchain_router.depth.readers import ReserveReader, build_reader
from xchain_router.depth.store import DepthStore
from xchain_router.errors import SourceUnreachableError
from xchain_router.models.pool import Pool, Side
from xchain_router.models.types import normalize_address, short
from xchain_router.tokens.resolver import LogicalTokenResolver

logger = structlog.get_logger()


@dataclass(frozen=True)
class LiquidityTotals:
    """Reserves of one token pair summed across every source."""

    token_a: str
    token_b: str
    total_reserve_a: int
    total_reserve_b: int
    pool_count: int
    source_count: int


@dataclass(frozen=True)
class BestPool:
    """Single pool giving the highest output for a trade."""

    pool: Pool
    input_side: Side
    expected_output: int


@dataclass(frozen=True)
class RefreshError:
    """A refresh cycle that raised, kept for supervision."""

    at: float
    error: str


class DepthTracker:
    """Maintains the per-source depth snapshot.

    Args:
        config: Router configuration (sources, timeouts, fallback policy)
        readers: Reader per source id. Missing entries are built from the
                 source's contract shape.
        store: Depth store to write into. A fresh one is created if omitted.
        resolver: Token resolver used to find the stable side for valuation
                  and to address synthetic pools. Built from config if omitted.
        clock: Time source for snapshot timestamps
        max_errors: Number of recent refresh failures kept for inspection
    """

    def __init__(
        self,
        config: RouterConfig,
        readers: Mapping[str, ReserveReader] | None = None,
        store: DepthStore | None = None,
        resolver: LogicalTokenResolver | None = None,
        clock: Callable[[], float] = time.time,
        max_errors: int = MAX_RECORDED_REFRESH_ERRORS,
    ) -> None:
        self.config = config
        self.store = store if store is not None else DepthStore()
        self.resolver = resolver or LogicalTokenResolver(config.tokens, config.stable_symbol)
        self._clock = clock
        self._readers: dict[str, ReserveReader] = {}
        for source in config.sources:
            if readers is not None and source.id in readers:
                self._readers[source.id] = readers[source.id]
            else:
                self._readers[source.id] = build_reader(source, config.fetch_timeout)

        self._task: asyncio.Task[None] | None = None
        self.refresh_count = 0
        self.last_refresh_at: float | None = None
        self.errors: deque[RefreshError] = deque(maxlen=max_errors)
        self.error_count = 0

    # --- Fetching ---

    async def fetch_source(self, source: SourceConfig) -> list[Pool]:
        """Read one source under the configured timeout.

        Raises:
            SourceUnreachableError: If the read fails or times out
        """
        reader = self._readers[source.id]
        try:
            pools = await asyncio.wait_for(
                asyncio.to_thread(reader.read_pools, source),
                timeout=self.config.fetch_timeout,
            )
        except TimeoutError as e:
            raise SourceUnreachableError(
                source.id, f"timed out after {self.config.fetch_timeout}s"
            ) from e
        except SourceUnreachableError:
            raise
        except Exception as e:
            raise SourceUnreachableError(source.id, str(e) or type(e).__name__) from e
        return [self._with_valuation(p) for p in pools]

    async def _refresh_source(self, source: SourceConfig) -> tuple[Pool, ...]:
        """Fetch one source and store the result, substituting fallback data."""
        try:
            pools = [p for p in await self.fetch_source(source) if not p.is_empty]
        except SourceUnreachableError as e:
            logger.warning("source_fetch_failed", source=source.id, error=e.reason)
            pools = []

        if pools:
            logger.info(
                "source_depth_refreshed",
                source=source.id,
                pools=len(pools),
                tvl_usd=str(sum((p.tvl_usd for p in pools), Decimal(0))),
            )
        else:
            pools = self.synthetic_pools(source)

        self.store.replace(source.id, pools)
        return tuple(pools)

    async def refresh(self) -> Mapping[str, tuple[Pool, ...]]:
        """Poll every source concurrently and update the store.

        Every configured source has an entry afterwards, whether real,
        synthetic or empty.
        """
        sources = self.config.sources
        logger.debug("depth_refresh_started", sources=[s.id for s in sources])
        await asyncio.gather(*(self._refresh_source(s) for s in sources))
        self.refresh_count += 1
        self.last_refresh_at = self._clock()
        return self.store.snapshot()

    # --- Fallback ---

    def synthetic_pools(self, source: SourceConfig) -> list[Pool]:
        """Placeholder depth for a source with no readable liquidity.

        Uses the source's configured token addresses where known, otherwise
        fixed placeholder addresses. Returns an empty list when the fallback
        is disabled.
        """
        if not self.config.synthetic_fallback:
            logger.warning("source_has_no_liquidity", source=source.id, fallback="disabled")
            return []

        asset = (
            self.resolver.resolve_address(self.config.asset_symbol, source.id)
            or PLACEHOLDER_ASSET_ADDRESS
        )
        stable = (
            self.resolver.resolve_address(self.config.stable_symbol, source.id)
            or PLACEHOLDER_STABLE_ADDRESS
        )
        pool_address = source.vault_address or PLACEHOLDER_POOL_ADDRESS
        pool = Pool(
            source_id=source.id,
            pool_address=pool_address,
            token_a=asset,
            token_b=stable,
            reserve_a=SYNTHETIC_ASSET_UNITS * 10**source.asset_decimals,
            reserve_b=SYNTHETIC_STABLE_UNITS * 10**source.stable_decimals,
            fee_bps=source.fee_default_bps,
            last_update=self._clock(),
            is_synthetic_fallback=True,
            decimals_a=source.asset_decimals,
            decimals_b=source.stable_decimals,
            total_supply=SYNTHETIC_TOTAL_SUPPLY_UNITS * 10**18,
        )
        logger.warning(
            "synthetic_fallback_substituted",
            source=source.id,
            pool=short(pool_address),
            reserve_a=pool.reserve_a,
            reserve_b=pool.reserve_b,
        )
        return [self._with_valuation(pool)]

    def _with_valuation(self, pool: Pool) -> Pool:
        stable_side = self.resolver.stable_side(pool) or Side.B
        return replace(pool, tvl_usd=tvl_usd(pool, stable_side))

    # --- Reads ---

    async def get_all(self) -> Mapping[str, tuple[Pool, ...]]:
        """Full source -> pools map.

        A cold cache is refreshed in full. Sources never stored yet (for
        example after a lone get_for_source) are fetched before returning, so
        every configured source is always present as a key.
        """
        if self.store.is_empty:
            logger.info("depth_cache_cold", action="refreshing")
            return await self.refresh()
        missing = [s for s in self.config.sources if s.id not in self.store]
        if missing:
            logger.info("depth_cache_partial", missing=[s.id for s in missing])
            await asyncio.gather(*(self._refresh_source(s) for s in missing))
        return self.store.snapshot()

    async def get_for_source(self, source_id: str) -> tuple[Pool, ...]:
        """Pools for one source, fetching on demand if it was never cached.

        Raises:
            UnknownSourceError: If the source is not configured
        """
        source = self.config.source(source_id)
        cached = self.store.get(source_id)
        if cached is not None:
            return cached
        return await self._refresh_source(source)

    def snapshot(self) -> Mapping[str, tuple[Pool, ...]]:
        """Currently cached snapshot, without fetching."""
        return self.store.snapshot()

    async def total_liquidity(self, token_a: str, token_b: str) -> LiquidityTotals:
        """Sum reserves of every pool holding exactly token_a and token_b."""
        token_a_norm = normalize_address(token_a)
        total_a = 0
        total_b = 0
        pool_count = 0
        sources: set[str] = set()
        for source_id, pools in (await self.get_all()).items():
            for pool in pools:
                if not pool.has_token_pair(token_a, token_b):
                    continue
                side_a = pool.side_of(token_a_norm)
                total_a += pool.reserve(side_a)
                total_b += pool.reserve(side_a.other)
                pool_count += 1
                sources.add(source_id)
        return LiquidityTotals(
            token_a=token_a_norm,
            token_b=normalize_address(token_b),
            total_reserve_a=total_a,
            total_reserve_b=total_b,
            pool_count=pool_count,
            source_count=len(sources),
        )

    async def find_best_pool(
        self, token_in: str, token_out: str, amount_in: int
    ) -> BestPool | None:
        """Single pool with the highest constant-product output, if any."""
        best: BestPool | None = None
        for pools in (await self.get_all()).values():
            for pool in pools:
                if not pool.has_token_pair(token_in, token_out):
                    continue
                side = pool.side_of(token_in)
                output = constant_product.compute_output(pool, side, amount_in)
                if best is None or output > best.expected_output:
                    best = BestPool(pool=pool, input_side=side, expected_output=output)
        return best

    # --- Background loop ---

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Populate the cache, then refresh every refresh_interval in the background."""
        if self.is_running:
            return
        await self.refresh()
        self._task = asyncio.create_task(self._run(), name="depth-refresh")
        logger.info("depth_tracker_started", interval=self.config.refresh_interval)

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to exit."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("depth_tracker_stopped", refreshes=self.refresh_count)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.config.refresh_interval)
            try:
                await self.refresh()
            except Exception as e:
                # The loop survives; the failure is kept for /health and logs
                self.errors.append(RefreshError(at=self._clock(), error=str(e)))
                self.error_count += 1
                logger.exception("depth_refresh_failed")


__all__ = ["BestPool", "DepthTracker", "LiquidityTotals", "RefreshError"]
