"""Depth snapshot storage.

DepthStore is the only shared mutable state in the router. The depth
tracker's refresh loop is its single writer; route computations only read.
Writes replace a source's whole pool tuple in one assignment, so a reader
sees either the old list or the new one, never a mix.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from xchain_router.models.pool import Pool


class DepthStore:
    """Per-source cache of Pool snapshots."""

    def __init__(self, initial: Mapping[str, Iterable[Pool]] | None = None) -> None:
        self._pools: dict[str, tuple[Pool, ...]] = {}
        if initial:
            for source_id, pools in initial.items():
                self.replace(source_id, pools)

    def replace(self, source_id: str, pools: Iterable[Pool]) -> None:
        """Atomically swap in a new snapshot for one source."""
        self._pools[source_id] = tuple(pools)

    def get(self, source_id: str) -> tuple[Pool, ...] | None:
        """Snapshot for one source, or None if it was never stored."""
        return self._pools.get(source_id)

    def snapshot(self) -> Mapping[str, tuple[Pool, ...]]:
        """Read-only view of every source, safe to hold for one request."""
        return MappingProxyType(dict(self._pools))

    def __contains__(self, source_id: object) -> bool:
        return source_id in self._pools

    def __len__(self) -> int:
        return len(self._pools)

    @property
    def is_empty(self) -> bool:
        return not self._pools

    def clear(self) -> None:
        self._pools = {}


__all__ = ["DepthStore"]
