"""
Fixed-capacity bit-set over board cell indices.

Used for both the bomb placement and the set of revealed tiles. A mask
knows its capacity, so setting a bit past the end of the board is an error
instead of a silently wider integer.
"""
from dataclasses import dataclass
from typing import Iterator, List

import numpy as np

from .errors import BoardTooLarge, OutOfBounds


# ============================================================================
# Constants
# ============================================================================

MASK_WIDTH = 256


# ============================================================================
# CellMask
# ============================================================================

@dataclass
class CellMask:
    """
    Set of cell indices in [0, capacity).

    Attributes:
        capacity: Number of addressable cells.
        bits: Integer holding one bit per cell.
    """

    capacity: int
    bits: int = 0

    def __post_init__(self) -> None:
        """Validate capacity and contents."""
        if self.capacity < 0 or self.capacity > MASK_WIDTH:
            raise BoardTooLarge(
                f"Mask capacity must be within 0..{MASK_WIDTH}, got {self.capacity}"
            )
        if self.bits < 0 or self.bits >> self.capacity:
            raise OutOfBounds("Mask has bits beyond its capacity")

    # ========================================================================
    # Bit Operations
    # ========================================================================

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.capacity:
            raise OutOfBounds(
                f"Cell index {index} outside 0..{self.capacity - 1}"
            )

    def set(self, index: int) -> None:
        """Set the bit for a cell."""
        self._check_index(index)
        self.bits |= 1 << index

    def test(self, index: int) -> bool:
        """Check whether the bit for a cell is set."""
        self._check_index(index)
        return bool(self.bits >> index & 1)

    def __contains__(self, index: int) -> bool:
        return 0 <= index < self.capacity and bool(self.bits >> index & 1)

    def count(self) -> int:
        """Number of set bits."""
        return bin(self.bits).count("1")

    def __iter__(self) -> Iterator[int]:
        bits = self.bits
        index = 0
        while bits:
            if bits & 1:
                yield index
            bits >>= 1
            index += 1

    def __and__(self, other: "CellMask") -> "CellMask":
        return CellMask(min(self.capacity, other.capacity), self.bits & other.bits)

    def isdisjoint(self, other: "CellMask") -> bool:
        return self.bits & other.bits == 0

    def copy(self) -> "CellMask":
        return CellMask(self.capacity, self.bits)

    # ========================================================================
    # Conversions
    # ========================================================================

    def __int__(self) -> int:
        return self.bits

    def indices(self) -> List[int]:
        """Sorted list of set cell indices."""
        return list(self)

    def to_array(self, rows: int, cols: int) -> np.ndarray:
        """
        Get the mask as a boolean grid.

        Args:
            rows: Board rows.
            cols: Board columns; rows * cols must equal capacity.

        Returns:
            2D boolean numpy array of shape (rows, cols).
        """
        if rows * cols != self.capacity:
            raise OutOfBounds(
                f"{rows}x{cols} grid does not match capacity {self.capacity}"
            )
        flat = np.zeros(self.capacity, dtype=bool)
        for index in self:
            flat[index] = True
        return flat.reshape(rows, cols)
