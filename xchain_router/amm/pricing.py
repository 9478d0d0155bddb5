"""Implied prices and USD valuation.

Prices come from the pool's own reserves (stable reserve / other reserve,
decimal-adjusted) rather than an external oracle, so valuation stays
consistent with the constant-product pricing used for routing. A mispriced or
near-empty pool therefore yields a wrong valuation.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Context, Decimal

from xchain_router.models.pool import Pool, Side

# uint256 amounts carry up to 78 significant digits
_CTX = Context(prec=78)


def to_units(amount: int, decimals: int) -> Decimal:
    """Convert a smallest-unit integer to a Decimal token amount."""
    return Decimal(amount).scaleb(-decimals, context=_CTX)


def from_units(amount: Decimal, decimals: int) -> int:
    """Convert a Decimal token amount to smallest units, flooring."""
    scaled = amount.scaleb(decimals, context=_CTX)
    return int(scaled.to_integral_value(rounding=ROUND_FLOOR))


def divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Decimal division at uint256 precision."""
    return _CTX.divide(numerator, denominator)


def implied_price(pool: Pool, stable_side: Side) -> Decimal | None:
    """Price of the non-stable token in stable units.

    Returns:
        The price, or None when either reserve is zero
    """
    stable_reserve = pool.reserve(stable_side)
    other_reserve = pool.reserve(stable_side.other)
    if stable_reserve <= 0 or other_reserve <= 0:
        return None
    stable_amount = to_units(stable_reserve, pool.decimals(stable_side))
    other_amount = to_units(other_reserve, pool.decimals(stable_side.other))
    return divide(stable_amount, other_amount)


def tvl_usd(pool: Pool, stable_side: Side = Side.B) -> Decimal:
    """Total value locked, in USD, at the pool's implied price.

    Side B is the stable side by the vault convention.
    """
    stable_amount = to_units(pool.reserve(stable_side), pool.decimals(stable_side))
    price = implied_price(pool, stable_side)
    if price is None:
        return stable_amount
    other_amount = to_units(pool.reserve(stable_side.other), pool.decimals(stable_side.other))
    return _CTX.add(stable_amount, _CTX.multiply(other_amount, price))


__all__ = ["divide", "from_units", "implied_price", "to_units", "tvl_usd"]
