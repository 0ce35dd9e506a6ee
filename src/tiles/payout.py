"""
Payout curve for the tiles game.

The multiplier ramps linearly from 0.2x with no safe reveals to 2.0x when
every safe cell is open. All values are wad fixed-point integers.
"""
from typing import Tuple

from .errors import DegenerateBoard, InvalidFee
from .fixed_point import BPS_DENOMINATOR, WAD, checked_sub, mul_div


# ============================================================================
# Constants
# ============================================================================

BASE_MULTIPLIER = 2 * WAD // 10
MAX_MULTIPLIER = 2 * WAD


# ============================================================================
# Curve
# ============================================================================

def multiplier(bombs: int, cell_count: int, safe_reveals: int) -> int:
    """
    Current payout multiplier.

    Args:
        bombs: Bombs on the board.
        cell_count: Cells on the board.
        safe_reveals: Safe tiles revealed so far.

    Returns:
        Wad multiplier in [BASE_MULTIPLIER, MAX_MULTIPLIER].

    Raises:
        DegenerateBoard: The board has no safe cells.
    """
    max_safe = cell_count - bombs
    if max_safe <= 0:
        raise DegenerateBoard(
            f"{bombs} bombs leave no safe cell on a {cell_count}-cell board"
        )
    ramp = mul_div(MAX_MULTIPLIER - BASE_MULTIPLIER, safe_reveals, max_safe)
    return min(BASE_MULTIPLIER + ramp, MAX_MULTIPLIER)


def payout(stake: int, multiplier_wad: int) -> int:
    """Absolute payout for a stake at a given multiplier."""
    return mul_div(stake, multiplier_wad, WAD)


def max_payout(stake: int) -> int:
    """Worst-case payout of a stake, at the multiplier cap."""
    return payout(stake, MAX_MULTIPLIER)


def apply_fee(gross: int, fee_bps: int) -> Tuple[int, int]:
    """
    Deduct the house fee from a gross payout.

    Returns:
        Tuple of (net payout, fee).
    """
    if not 0 <= fee_bps <= BPS_DENOMINATOR:
        raise InvalidFee(
            f"Fee must be within 0..{BPS_DENOMINATOR} bps, got {fee_bps}"
        )
    fee = mul_div(gross, fee_bps, BPS_DENOMINATOR)
    return checked_sub(gross, fee), fee
