"""Routing constants and defaults.

Centralizes fee, decimal and cost defaults shared by the depth tracker and the
route optimizer.
"""

from decimal import Decimal

# Basis-point denominator for fees and price impact
BPS = 10_000

# Swap fee assumed when a source does not expose one (0.3%)
DEFAULT_FEE_BPS = 30

# Decimals assumed when a token's decimals() call fails
DEFAULT_ASSET_DECIMALS = 18
DEFAULT_STABLE_DECIMALS = 6

# A single pool never receives more than reserve_in // UTILIZATION_CAP_DIVISOR
UTILIZATION_CAP_DIVISOR = 2

# A constant-product result below 1/SANITY_RATIO_DIVISOR of the linear
# estimate is reported as a likely token-side mismatch
SANITY_RATIO_DIVISOR = 100

# Flat USD costs (independent of trade size)
LOCAL_EXECUTION_COST_USD = Decimal("0.0002")
REMOTE_SOURCE_COST_USD = Decimal("0.10")

# Depth polling
DEFAULT_REFRESH_INTERVAL_SECONDS = 30.0
DEFAULT_FETCH_TIMEOUT_SECONDS = 10.0

# Upper bound on remote pools fed into the power-set enumeration
DEFAULT_MAX_REMOTE_POOLS = 8

# Synthetic fallback depth: 1000 asset units against 1 stable unit
SYNTHETIC_ASSET_UNITS = 1000
SYNTHETIC_STABLE_UNITS = 1
SYNTHETIC_TOTAL_SUPPLY_UNITS = 100_000

# Deterministic placeholder addresses used when a source has no configured tokens
PLACEHOLDER_STABLE_ADDRESS = "0x" + "1" * 40
PLACEHOLDER_ASSET_ADDRESS = "0x" + "2" * 40
PLACEHOLDER_POOL_ADDRESS = "0x" + "3" * 40

# Most recent refresh-loop failures kept on the tracker
MAX_RECORDED_REFRESH_ERRORS = 50
