"""Amount and address types shared by the pool and API models."""

from typing import Annotated, Any

from pydantic import BeforeValidator, Field

from xchain_router.safe_int import UINT256_MAX


def validate_uint256(value: Any) -> str:
    """Coerce an on-chain amount (int or decimal string) to its decimal string.

    Raises:
        ValueError: For bools, non-integers, negatives and values above 2^256-1
    """
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"amount must be an int or decimal string, got {type(value).__name__}")
    try:
        amount = int(value)
    except ValueError as err:
        raise ValueError(f"amount is not a decimal integer: {value!r}") from err
    if not 0 <= amount <= UINT256_MAX:
        raise ValueError(f"amount out of uint256 range: {value}")
    return str(amount)


# 20-byte hex address
Address = Annotated[str, Field(pattern=r"^0x[a-fA-F0-9]{40}$")]

# Token amount in smallest units, serialized as a decimal string
Uint256 = Annotated[
    str,
    BeforeValidator(validate_uint256),
    Field(description="Token amount in smallest units, as a decimal string"),
]


def normalize_address(address: str, *, validate: bool = False) -> str:
    """Lowercase, 0x-prefixed form used as the key for pools and tokens.

    With validate=True a malformed address raises ValueError.
    """
    addr = address.strip().lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr
    if validate and not is_valid_address(addr):
        raise ValueError(f"not a 20-byte hex address: {address}")
    return addr


def is_valid_address(address: str) -> bool:
    if not isinstance(address, str) or len(address) != 42 or not address.startswith("0x"):
        return False
    try:
        int(address, 16)
    except ValueError:
        return False
    return True


def short(address: str) -> str:
    """Last 8 characters of an address, for log context."""
    return address[-8:]
