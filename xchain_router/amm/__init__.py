"""AMM math over Pool snapshots."""

from xchain_router.amm.constant_product import (
    ConstantProductAMM,
    OutputQuote,
    compute_output,
    constant_product,
)
from xchain_router.amm.pricing import implied_price, tvl_usd

__all__ = [
    "ConstantProductAMM",
    "OutputQuote",
    "compute_output",
    "constant_product",
    "implied_price",
    "tvl_usd",
]
