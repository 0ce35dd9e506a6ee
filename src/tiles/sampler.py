"""
Unbiased integer sampling from an opaque seed.

Draws are a pure function of (seed, salt, range): SHA-256 over the seed and
salt gives a 256-bit candidate, candidates in the biased tail are re-hashed
until one falls below the largest multiple of range, and the accepted value
is reduced modulo range. Anyone holding the seed can replay every draw.
"""
import hashlib
from typing import Union

from .errors import InvalidRange, InvalidSeed


# ============================================================================
# Constants
# ============================================================================

DIGEST_BITS = 256
DIGEST_BYTES = DIGEST_BITS // 8
DIGEST_MAX = 2 ** DIGEST_BITS - 1

Seed = Union[bytes, int]


# ============================================================================
# Encoding Helpers (Low-level)
# ============================================================================

def seed_to_bytes(seed: Seed) -> bytes:
    """
    Normalize a seed to its 32-byte big-endian form.

    Args:
        seed: 32 raw bytes or an integer in [0, 2**256).

    Returns:
        The seed as exactly 32 bytes.

    Raises:
        InvalidSeed: Seed has the wrong type, length or range.
    """
    if isinstance(seed, (bytes, bytearray)):
        if len(seed) != DIGEST_BYTES:
            raise InvalidSeed(
                f"Seed must be {DIGEST_BYTES} bytes, got {len(seed)}"
            )
        return bytes(seed)
    if isinstance(seed, int) and not isinstance(seed, bool):
        if not 0 <= seed <= DIGEST_MAX:
            raise InvalidSeed("Seed integer must fit in 256 unsigned bits")
        return seed.to_bytes(DIGEST_BYTES, "big")
    raise InvalidSeed(f"Unsupported seed type: {type(seed).__name__}")


def seed_from_hex(text: str) -> bytes:
    """Parse a hex seed, with or without a 0x prefix."""
    text = text[2:] if text.lower().startswith("0x") else text
    try:
        raw = bytes.fromhex(text.rjust(DIGEST_BYTES * 2, "0"))
    except ValueError as exc:
        raise InvalidSeed(f"Seed is not valid hex: {text!r}") from exc
    return seed_to_bytes(raw)


def _word(value: int) -> bytes:
    return value.to_bytes(DIGEST_BYTES, "big")


def _digest(data: bytes) -> int:
    return int.from_bytes(hashlib.sha256(data).digest(), "big")


# ============================================================================
# Sampling
# ============================================================================

def rejection_limit(range_: int) -> int:
    """Largest multiple of range_ not above DIGEST_MAX; candidates below it are accepted."""
    return (DIGEST_MAX // range_) * range_


def uniform(seed: Seed, salt: int, range_: int) -> int:
    """
    Draw an integer uniformly from [0, range_).

    Args:
        seed: Opaque 256-bit seed.
        salt: Per-draw salt, distinct for every draw taken from one seed.
        range_: Exclusive upper bound, must be positive.

    Returns:
        Integer in [0, range_).

    Raises:
        InvalidRange: range_ is not positive.
    """
    if range_ <= 0:
        raise InvalidRange(f"Range must be positive, got {range_}")
    if salt < 0 or salt > DIGEST_MAX:
        raise InvalidRange("Salt must fit in 256 unsigned bits")

    limit = rejection_limit(range_)
    candidate = _digest(seed_to_bytes(seed) + _word(salt))
    while candidate >= limit:
        candidate = _digest(_word(candidate))
    return candidate % range_
