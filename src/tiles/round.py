"""
Round module for the tiles game.

A Round is one play-through from stake to settlement. The engine owns
every Round and is the only code that mutates one.
"""
import threading
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import NamedTuple, Optional

from .cell_mask import CellMask
from .config import RoundConfig


# ============================================================================
# Constants
# ============================================================================

class RoundState(Enum):
    """Lifecycle states of a round."""

    CREATED = auto()
    SEED_REQUESTED = auto()
    ACTIVE = auto()
    SETTLED = auto()


class RoundOutcome(Enum):
    """How a settled round ended."""

    NONE = auto()
    LOST = auto()
    CASHED_OUT = auto()
    CLEARED = auto()
    CAPPED = auto()


# ============================================================================
# Round Data Class
# ============================================================================

@dataclass
class Round:
    """
    State of a single round.

    Attributes:
        round_id: Identifier in the engine's round table.
        owner: Participant who staked the round.
        config: Board shape.
        stake: Staked amount, zeroed on settlement.
        state: Current lifecycle state.
        pending_request_id: Correlation id while a seed is outstanding.
        seed: Seed the board was generated from.
        bomb_mask: Bomb placement, set together with seed.
        revealed_mask: Tiles opened so far.
        safe_reveal_count: Safe tiles opened so far.
        outcome: Terminal path taken, NONE until settled.
        payout: Net amount paid at settlement.
    """

    round_id: int
    owner: str
    config: RoundConfig
    stake: int
    state: RoundState = RoundState.CREATED
    pending_request_id: Optional[int] = None
    seed: Optional[bytes] = None
    bomb_mask: Optional[CellMask] = None
    revealed_mask: CellMask = None
    safe_reveal_count: int = 0
    outcome: RoundOutcome = RoundOutcome.NONE
    payout: int = 0
    lock: threading.RLock = field(
        default_factory=threading.RLock, repr=False, compare=False
    )
    busy: bool = field(default=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.revealed_mask is None:
            self.revealed_mask = CellMask(self.config.cell_count)

    @property
    def rows(self) -> int:
        return self.config.rows

    @property
    def cols(self) -> int:
        return self.config.cols

    @property
    def bombs(self) -> int:
        return self.config.bombs

    def snapshot(self) -> "Round":
        """Copy of the mutable fields, for rolling back a failed transition."""
        return replace(
            self,
            revealed_mask=self.revealed_mask.copy(),
            lock=self.lock,
        )

    def restore(self, snapshot: "Round") -> None:
        """Put back the fields captured by snapshot()."""
        self.stake = snapshot.stake
        self.state = snapshot.state
        self.pending_request_id = snapshot.pending_request_id
        self.seed = snapshot.seed
        self.bomb_mask = snapshot.bomb_mask
        self.revealed_mask = snapshot.revealed_mask
        self.safe_reveal_count = snapshot.safe_reveal_count
        self.outcome = snapshot.outcome
        self.payout = snapshot.payout


class RoundView(NamedTuple):
    """Read-only view of a round returned by the query surface."""

    owner: str
    rows: int
    cols: int
    bombs: int
    state: RoundState
    safe_reveal_count: int
    stake: int
    revealed_mask: int
    seed: Optional[bytes]
