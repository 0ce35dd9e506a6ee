"""
Fixed-point helpers in base 1e18 ("wad") arithmetic.

All amounts and ratios are non-negative integers held in an unsigned
256-bit working range. Products are computed exactly (Python integers do
not overflow), and any result that would not fit in 256 bits is rejected
rather than wrapped.
"""
from decimal import Decimal, InvalidOperation, localcontext

from .errors import ArithmeticOverflow, ArithmeticUnderflow, InvalidAmount


# ============================================================================
# Constants
# ============================================================================

WAD = 10 ** 18
WORD_BITS = 256
MAX_UINT = 2 ** WORD_BITS - 1

BPS_DENOMINATOR = 10_000


# ============================================================================
# Range Checks (Low-level)
# ============================================================================

def _check_word(value: int, name: str) -> int:
    """Ensure value is an integer inside [0, MAX_UINT]."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ArithmeticUnderflow(f"{name} is negative: {value}")
    if value > MAX_UINT:
        raise ArithmeticOverflow(f"{name} exceeds {WORD_BITS} bits")
    return value


# ============================================================================
# Core Operations
# ============================================================================

def mul_div(a: int, b: int, denom: int) -> int:
    """
    Compute a * b / denom, truncating toward zero.

    The intermediate product is exact; only the final result has to fit
    in the working range.

    Args:
        a: First factor.
        b: Second factor.
        denom: Divisor, must be non-zero.

    Returns:
        floor(a * b / denom).

    Raises:
        ArithmeticOverflow: Result exceeds 256 bits or denom is zero.
        ArithmeticUnderflow: Any operand is negative.
    """
    _check_word(a, "a")
    _check_word(b, "b")
    _check_word(denom, "denom")
    if denom == 0:
        raise ArithmeticOverflow("division by zero")
    result = (a * b) // denom
    if result > MAX_UINT:
        raise ArithmeticOverflow(f"mul_div result exceeds {WORD_BITS} bits")
    return result


def wad_mul(a: int, b: int) -> int:
    """Multiply two wad values."""
    return mul_div(a, b, WAD)


def wad_div(a: int, b: int) -> int:
    """Divide two wad values."""
    return mul_div(a, WAD, b)


def checked_add(a: int, b: int) -> int:
    _check_word(a, "a")
    _check_word(b, "b")
    return _check_word(a + b, "sum")


def checked_sub(a: int, b: int) -> int:
    """Subtract b from a, failing instead of going below zero."""
    _check_word(a, "a")
    _check_word(b, "b")
    if b > a:
        raise ArithmeticUnderflow(f"{a} - {b} is negative")
    return a - b


# ============================================================================
# Conversions
# ============================================================================

def to_wad(value) -> int:
    """
    Convert a human-readable number to wad units.

    Strings and Decimals are converted exactly; floats go through their
    shortest repr so 0.01 becomes exactly 10**16.

    Raises:
        InvalidAmount: value is not a finite number or has more than 18
            decimal places.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return _check_word(value * WAD, "value")
    with localcontext() as ctx:
        ctx.prec = 100
        try:
            amount = Decimal(str(value)) * WAD
        except InvalidOperation as exc:
            raise InvalidAmount(f"{value!r} is not a number") from exc
    if not amount.is_finite():
        raise InvalidAmount(f"{value!r} is not a finite amount")
    if amount != amount.to_integral_value():
        raise InvalidAmount(f"{value} has more than 18 decimal places")
    return _check_word(int(amount), "value")


def from_wad(value: int) -> Decimal:
    """Convert wad units back to a Decimal."""
    return Decimal(_check_word(value, "value")) / WAD


def format_wad(value: int, places: int = 4) -> str:
    """Format a wad amount for display."""
    return f"{from_wad(value):.{places}f}"
