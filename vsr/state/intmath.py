"""
Fixed-width integer helpers.

Amounts and weights are unsigned 64-bit, timestamps signed 64-bit. Python
integers never overflow, so every stored result is narrowed explicitly.
"""

from ..constants import I64_MAX, I64_MIN, U64_MAX
from ..exceptions import AmountOverflowError, InvalidArgumentError


def to_u64(value: int, error=AmountOverflowError) -> int:
    if not 0 <= value <= U64_MAX:
        raise error(f"{value} does not fit in u64")
    return value


def to_i64(value: int, error=InvalidArgumentError) -> int:
    if not I64_MIN <= value <= I64_MAX:
        raise error(f"{value} does not fit in i64")
    return value


def checked_add(a: int, b: int, error=AmountOverflowError) -> int:
    return to_u64(a + b, error)


def checked_sub(a: int, b: int, error=AmountOverflowError) -> int:
    if b > a:
        raise error(f"{a} - {b} underflows")
    return a - b


def ceil_div(a: int, b: int) -> int:
    """Ceiling division of non-negative integers."""
    return -(-a // b)
