"""Error taxonomy for the router.

Only structural absence of liquidity is fatal to a request. Every other
anomaly is captured as a RouteWarning on the result so the caller decides
whether to proceed, warn the end user, or reject.
"""

from dataclasses import dataclass
from enum import Enum


class RouterError(Exception):
    """Base class for router errors."""


class ConfigError(RouterError, ValueError):
    """Configuration is missing or invalid."""


class UnknownSourceError(RouterError, KeyError):
    """A source id was requested that is not configured."""

    def __init__(self, source_id: str) -> None:
        super().__init__(source_id)
        self.source_id = source_id

    def __str__(self) -> str:
        return f"Source {self.source_id!r} is not configured"


class SourceUnreachableError(RouterError):
    """Reading reserves from one source failed.

    Raised by readers and the per-source fetch; recovered inside the depth
    tracker by substituting synthetic fallback data.
    """

    def __init__(self, source_id: str, reason: str) -> None:
        super().__init__(f"{source_id}: {reason}")
        self.source_id = source_id
        self.reason = reason


class NoLiquidityError(RouterError):
    """No pool on any configured source serves the requested pair."""


class WarningKind(str, Enum):
    """Non-fatal anomalies attached to route results."""

    UNRESOLVED_LOGICAL_TOKEN = "unresolved_logical_token"
    INFERRED_FROM_CONVENTION = "inferred_from_convention"
    PRICE_SANITY = "price_sanity"
    PARTIAL_FILL = "partial_fill"
    MISSING_PRICE = "missing_price"
    SYNTHETIC_FALLBACK = "synthetic_fallback"


@dataclass(frozen=True)
class RouteWarning:
    """A flagged anomaly, optionally scoped to one source or pool.

    Attributes:
        kind: What went wrong
        detail: Human-readable explanation
        source_id: Source the anomaly belongs to, if any
        pool_address: Pool the anomaly belongs to, if any
        amount: Amount involved (e.g. unfilled input for PARTIAL_FILL)
    """

    kind: WarningKind
    detail: str
    source_id: str | None = None
    pool_address: str | None = None
    amount: int | None = None
