"""
Board module for the tiles game.

Places bombs from a seed with a partial Fisher-Yates shuffle and provides
the index helpers shared by the engine, environment and CLI.
"""
from typing import List, Tuple

from .cell_mask import CellMask, MASK_WIDTH
from .errors import BoardTooLarge, InvalidBombCount
from .sampler import Seed, uniform


# ============================================================================
# Index Helpers
# ============================================================================

def cell_index(cols: int, row: int, col: int) -> int:
    """Convert (row, col) to a flat cell index."""
    return row * cols + col


def cell_position(cols: int, index: int) -> Tuple[int, int]:
    """Convert a flat cell index to (row, col)."""
    return index // cols, index % cols


# ============================================================================
# Bomb Placement
# ============================================================================

def place_bombs(seed: Seed, cell_count: int, bomb_count: int) -> CellMask:
    """
    Choose bomb_count distinct cells out of cell_count.

    Runs the first bomb_count steps of a Fisher-Yates shuffle over
    [0, cell_count). Step i swaps position i with a position drawn
    uniformly from [i, cell_count) using salt i, so the whole placement is
    reproducible from the seed alone.

    Args:
        seed: Opaque random seed delivered for the round.
        cell_count: Number of cells on the board.
        bomb_count: Number of bombs to place.

    Returns:
        Mask with exactly bomb_count bits set.

    Raises:
        BoardTooLarge: cell_count exceeds the mask width.
        InvalidBombCount: bomb_count not in (0, cell_count).
    """
    if cell_count > MASK_WIDTH:
        raise BoardTooLarge(
            f"Board has {cell_count} cells, mask holds at most {MASK_WIDTH}"
        )
    if not 0 < bomb_count < cell_count:
        raise InvalidBombCount(
            f"Bomb count must be within 1..{cell_count - 1}, got {bomb_count}"
        )

    cells = list(range(cell_count))
    mask = CellMask(cell_count)
    for i in range(bomb_count):
        j = i + uniform(seed, i, cell_count - i)
        cells[i], cells[j] = cells[j], cells[i]
        mask.set(cells[i])
    return mask


def verify_board(
    seed: Seed, cell_count: int, bomb_count: int, mask: CellMask
) -> bool:
    """Replay placement from the seed and compare with a recorded mask."""
    return place_bombs(seed, cell_count, bomb_count) == mask


def render_board(
    rows: int,
    cols: int,
    bomb_mask: CellMask,
    revealed_mask: CellMask = None,
) -> str:
    """
    Render a board as ASCII text.

    Bombs are shown as '*', safe cells as '.'. When a revealed mask is
    given, unrevealed cells are shown as '#' instead.
    """
    lines: List[str] = []
    for row in range(rows):
        symbols = []
        for col in range(cols):
            index = cell_index(cols, row, col)
            if revealed_mask is not None and index not in revealed_mask:
                symbols.append("#")
            elif index in bomb_mask:
                symbols.append("*")
            else:
                symbols.append(".")
        lines.append(" ".join(symbols))
    return "\n".join(lines)
