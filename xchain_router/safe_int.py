"""Checked integer arithmetic for token amounts.

Reserves and amounts are integers in the token's smallest unit. SafeInt wraps
them so that the mistakes which silently corrupt AMM math raise instead:

- floor division by zero raises DivisionByZero
- subtraction below zero raises Underflow
- converting a value outside uint256 raises Uint256Overflow

Usage:
    from xchain_router.safe_int import S

    out = (S(amount) * S(reserve_out)) // (S(reserve_in) + S(amount))
    return out.value
"""

from __future__ import annotations

UINT256_MAX = 2**256 - 1


class SafeIntError(ArithmeticError):
    """Base class for SafeInt arithmetic errors."""


class DivisionByZero(SafeIntError):
    """Floor division by zero."""


class Underflow(SafeIntError):
    """Subtraction produced a negative amount."""


class Uint256Overflow(SafeIntError):
    """Value does not fit in uint256."""


class SafeInt:
    """Non-negative token amount with checked operators.

    Only the operations the routing math needs are provided. Comparison with
    plain ints is supported so guards like ``if S(x) > 0`` read naturally.
    """

    __slots__ = ("_value",)
    _value: int

    def __init__(self, value: int | SafeInt) -> None:
        if isinstance(value, SafeInt):
            self._value = value._value
        elif isinstance(value, int) and not isinstance(value, bool):
            self._value = value
        else:
            raise TypeError(f"SafeInt requires int, got {type(value).__name__}")

    @property
    def value(self) -> int:
        return self._value

    def __repr__(self) -> str:
        return f"SafeInt({self._value})"

    def __hash__(self) -> int:
        return hash(self._value)

    def __add__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value + _unwrap(other))

    __radd__ = __add__

    def __sub__(self, other: SafeInt | int) -> SafeInt:
        other_val = _unwrap(other)
        if other_val > self._value:
            raise Underflow(f"Underflow: {self._value} - {other_val}")
        return SafeInt(self._value - other_val)

    def __mul__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value * _unwrap(other))

    __rmul__ = __mul__

    def __floordiv__(self, other: SafeInt | int) -> SafeInt:
        other_val = _unwrap(other)
        if other_val == 0:
            raise DivisionByZero(f"Division by zero: {self._value} // 0")
        return SafeInt(self._value // other_val)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SafeInt):
            return self._value == other._value
        if isinstance(other, int):
            return self._value == other
        return NotImplemented

    def __lt__(self, other: SafeInt | int) -> bool:
        return self._value < _unwrap(other)

    def __le__(self, other: SafeInt | int) -> bool:
        return self._value <= _unwrap(other)

    def __gt__(self, other: SafeInt | int) -> bool:
        return self._value > _unwrap(other)

    def __ge__(self, other: SafeInt | int) -> bool:
        return self._value >= _unwrap(other)

    def __int__(self) -> int:
        return self._value

    def __bool__(self) -> bool:
        return self._value != 0

    def to_uint256(self) -> int:
        """Return the value, checking it fits in uint256.

        Raises:
            Uint256Overflow: If value is negative or exceeds 2^256-1
        """
        if not 0 <= self._value <= UINT256_MAX:
            raise Uint256Overflow(f"Value outside uint256: {self._value}")
        return self._value


def _unwrap(x: SafeInt | int) -> int:
    if isinstance(x, SafeInt):
        return x._value
    return x


S = SafeInt
