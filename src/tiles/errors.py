"""
Exception hierarchy for the tiles engine.

Every failure raised by the engine derives from TilesError and falls into
one of the categories below, so callers can catch as broadly or as narrowly
as they need.
"""


class TilesError(Exception):
    """Base class for all tiles engine errors."""


# ============================================================================
# Validation Errors (caller mistakes, rejected before any mutation)
# ============================================================================

class ValidationError(TilesError, ValueError):
    """Invalid argument supplied by the caller."""


class InvalidDimensions(ValidationError):
    pass


class InvalidBombCount(ValidationError):
    pass


class InvalidStake(ValidationError):
    pass


class InvalidAmount(ValidationError):
    """Funding, withdrawal or human-entered amount is not usable."""


class InvalidFee(ValidationError):
    pass


class InvalidRange(ValidationError):
    pass


class InvalidSeed(ValidationError):
    pass


class BoardTooLarge(ValidationError):
    pass


class DegenerateBoard(ValidationError):
    pass


class OutOfBounds(ValidationError):
    pass


class AlreadyRevealed(ValidationError):
    pass


class NotOwner(ValidationError):
    pass


class NotOperator(ValidationError):
    pass


# ============================================================================
# State Errors (operation invalid for the current lifecycle state)
# ============================================================================

class StateError(TilesError):
    """Operation not allowed in the round's current state."""


class NotCreated(StateError):
    pass


class NotActive(StateError):
    pass


class NotSettled(StateError):
    pass


class ReentrantCall(StateError):
    """A mutating call arrived while another one on the same round is running."""


# ============================================================================
# Funds Errors
# ============================================================================

class LiquidityError(TilesError):
    """Treasury cannot cover the required amount."""


class InsufficientLiquidity(LiquidityError):
    pass


class InsufficientBalance(LiquidityError):
    pass


class FeeError(TilesError):
    """Randomness fee mismatch."""


class InsufficientFee(FeeError):
    pass


class TransferError(TilesError):
    """A payout or fee transfer failed at the boundary."""


# ============================================================================
# Lookup Errors
# ============================================================================

class UnknownReferenceError(TilesError, LookupError):
    """Round id or correlation id not found."""


class UnknownRound(UnknownReferenceError):
    pass


class UnknownCorrelation(UnknownReferenceError):
    pass


# ============================================================================
# Arithmetic Errors
# ============================================================================

class FixedPointError(TilesError, ArithmeticError):
    """Fixed-point result outside the unsigned 256-bit working range."""


class ArithmeticOverflow(FixedPointError):
    pass


class ArithmeticUnderflow(FixedPointError):
    pass
