"""Logical token resolution.

The same logical asset has a different address on every source. Pools only
expose chain-local addresses, so routing across sources needs a table that
maps ``source -> symbol -> address`` in both directions.

Lookups never raise. A missing chain or symbol resolves to None and callers
degrade: unresolved tokens are matched by exact address on the execution
source only, and remote pools are never matched without a resolution.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

import structlog

from xchain_router.models.pool import Pool, Side
from xchain_router.models.types import is_valid_address, normalize_address

logger = structlog.get_logger()


class ResolutionStatus(str, Enum):
    """How confidently a token was identified."""

    RESOLVED = "resolved"
    INFERRED_FROM_CONVENTION = "inferred_from_convention"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving a token on one source.

    Attributes:
        status: Resolved, inferred from the vault convention, or unresolved
        symbol: Logical symbol, if known
        address: Chain-local address on the source, if known
    """

    status: ResolutionStatus
    symbol: str | None = None
    address: str | None = None

    @property
    def is_resolved(self) -> bool:
        return self.status is ResolutionStatus.RESOLVED

    @property
    def is_low_confidence(self) -> bool:
        return self.status is ResolutionStatus.INFERRED_FROM_CONVENTION


class LogicalTokenResolver:
    """Bidirectional lookup over the per-source logical token table.

    Args:
        tokens: Mapping of source id -> symbol -> chain address
        stable_symbol: Logical symbol of the stable reference asset
    """

    # Aggregated vaults hold the non-stable asset on side A and the stable on side B
    VAULT_STABLE_SIDE = Side.B

    def __init__(self, tokens: Mapping[str, Mapping[str, str]], stable_symbol: str) -> None:
        self._by_symbol: dict[str, dict[str, str]] = {}
        self._by_address: dict[str, dict[str, str]] = {}
        for source_id, table in tokens.items():
            symbols = {sym.upper(): normalize_address(addr) for sym, addr in table.items()}
            self._by_symbol[source_id] = symbols
            self._by_address[source_id] = {addr: sym for sym, addr in symbols.items()}
        self.stable_symbol = stable_symbol.upper()

    @property
    def known_symbols(self) -> set[str]:
        return {sym for table in self._by_symbol.values() for sym in table}

    def resolve_symbol(self, address: str, source_id: str) -> str | None:
        """Logical symbol for a chain-local address, or None."""
        table = self._by_address.get(source_id)
        if table is None:
            return None
        return table.get(normalize_address(address))

    def resolve_address(self, symbol: str, source_id: str) -> str | None:
        """Chain-local address for a logical symbol, or None."""
        table = self._by_symbol.get(source_id)
        if table is None:
            return None
        return table.get(symbol.upper())

    def resolve(self, token: str, source_id: str) -> Resolution:
        """Resolve a symbol or an address as seen from source_id."""
        symbol = token.upper()
        if symbol in self.known_symbols:
            return Resolution(
                ResolutionStatus.RESOLVED,
                symbol=symbol,
                address=self.resolve_address(symbol, source_id),
            )

        address = normalize_address(token)
        if not is_valid_address(address):
            logger.warning("logical_token_unknown_symbol", token=token, source=source_id)
            return Resolution(ResolutionStatus.UNRESOLVED)

        symbol = self.resolve_symbol(address, source_id)
        if symbol is None:
            logger.warning("logical_token_unresolved", token=address[-8:], source=source_id)
            return Resolution(ResolutionStatus.UNRESOLVED, address=address)
        return Resolution(ResolutionStatus.RESOLVED, symbol=symbol, address=address)

    def infer_vault_input_side(
        self, pool: Pool, symbol_in: str, symbol_out: str
    ) -> Side | None:
        """Guess the input side of a vault from the A=asset / B=stable convention.

        Only applies to aggregated vaults trading the stable asset against one
        other asset. The result is a heuristic and must be reported as
        INFERRED_FROM_CONVENTION.
        """
        if not pool.is_aggregated_vault:
            return None
        stable = self.stable_symbol
        if symbol_in == stable and symbol_out != stable:
            return self.VAULT_STABLE_SIDE
        if symbol_out == stable and symbol_in != stable:
            return self.VAULT_STABLE_SIDE.other
        return None

    def stable_side(self, pool: Pool) -> Side | None:
        """Side of pool holding the stable asset, from the table only."""
        for side in (Side.A, Side.B):
            if self.resolve_symbol(pool.token(side), pool.source_id) == self.stable_symbol:
                return side
        return None


__all__ = [
    "LogicalTokenResolver",
    "Resolution",
    "ResolutionStatus",
]
