"""Source ids, token addresses and amounts shared across tests."""

ARC = "arc"
BASE = "base"
POLYGON = "polygon"

# Chain-local token addresses (lowercase)
FLX_ARC = "0x" + "a1" * 20
USDC_ARC = "0x" + "a2" * 20
DAI_ARC = "0x" + "a3" * 20
FLX_BASE = "0x" + "b1" * 20
USDC_BASE = "0x" + "b2" * 20
FLX_POLYGON = "0x" + "c1" * 20
USDC_POLYGON = "0x" + "c2" * 20

# Pool addresses
POOL_ARC = "0x" + "0a" * 20
POOL_ARC_2 = "0x" + "1a" * 20
POOL_BASE = "0x" + "0b" * 20
POOL_POLYGON = "0x" + "0c" * 20

TOKENS = {
    ARC: {"FLX": FLX_ARC, "USDC": USDC_ARC, "DAI": DAI_ARC},
    BASE: {"FLX": FLX_BASE, "USDC": USDC_BASE},
    POLYGON: {"FLX": FLX_POLYGON, "USDC": USDC_POLYGON},
}

# Token -> address per source, for building pools
FLX = {ARC: FLX_ARC, BASE: FLX_BASE, POLYGON: FLX_POLYGON}
USDC = {ARC: USDC_ARC, BASE: USDC_BASE, POLYGON: USDC_POLYGON}
POOLS = {ARC: POOL_ARC, BASE: POOL_BASE, POLYGON: POOL_POLYGON}

ONE_FLX = 10**18
ONE_USDC = 10**6
