"""
Configuration for the tiles engine.

RoundConfig describes one board; EngineConfig holds the process-wide
settings and can be loaded from the environment (or a .env file).
"""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .errors import InvalidBombCount, InvalidDimensions, InvalidFee, InvalidStake
from .fixed_point import BPS_DENOMINATOR, WAD


# ============================================================================
# Constants
# ============================================================================

MAX_ROWS = 10
MAX_COLS = 10

DEFAULT_MAX_STAKE = 10 * WAD
DEFAULT_STAKE = WAD // 100
DEFAULT_CALLBACK_BUDGET = 200_000
DEFAULT_OPERATOR = "operator"


# ============================================================================
# Round Configuration
# ============================================================================

@dataclass(frozen=True)
class RoundConfig:
    """
    Board shape for a round.

    Attributes:
        rows: Number of rows (1..10).
        cols: Number of columns (1..10).
        bombs: Bombs to place, leaving at least one safe cell.
    """

    rows: int = 6
    cols: int = 6
    bombs: int = 8

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self) -> None:
        """Ensure configuration values are valid."""
        for name in ("rows", "cols"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidDimensions(
                    f"{name} must be an int, got {type(value).__name__}"
                )
        if isinstance(self.bombs, bool) or not isinstance(self.bombs, int):
            raise InvalidBombCount(
                f"bombs must be an int, got {type(self.bombs).__name__}"
            )
        if not (0 < self.rows <= MAX_ROWS and 0 < self.cols <= MAX_COLS):
            raise InvalidDimensions(
                f"Board must be between 1x1 and {MAX_ROWS}x{MAX_COLS}, "
                f"got {self.rows}x{self.cols}"
            )
        if not 0 < self.bombs < self.cell_count:
            raise InvalidBombCount(
                f"Bomb count must be within 1..{self.cell_count - 1}, "
                f"got {self.bombs}"
            )

    @property
    def cell_count(self) -> int:
        return self.rows * self.cols

    @property
    def max_safe(self) -> int:
        """Number of safe cells on the board."""
        return self.cell_count - self.bombs


# Preset boards
DEMO = RoundConfig(6, 6, 8)
SMALL = RoundConfig(2, 2, 1)
LARGE = RoundConfig(10, 10, 20)


# ============================================================================
# Engine Configuration
# ============================================================================

@dataclass
class EngineConfig:
    """
    Process-wide engine settings.

    Attributes:
        operator: Identity allowed to withdraw from the treasury.
        max_stake: Largest stake accepted for one round (wad).
        fee_bps: House fee taken from cash-outs, in basis points.
    """

    operator: str = DEFAULT_OPERATOR
    max_stake: int = DEFAULT_MAX_STAKE
    fee_bps: int = 0

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.max_stake <= 0:
            raise InvalidStake(f"max_stake must be positive, got {self.max_stake}")
        if not 0 <= self.fee_bps <= BPS_DENOMINATOR:
            raise InvalidFee(
                f"fee_bps must be within 0..{BPS_DENOMINATOR}, got {self.fee_bps}"
            )

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "EngineConfig":
        """
        Build a config from TILES_* environment variables.

        Reads a .env file first if one is found (or the one at
        dotenv_path). Variables already set in the environment win, and
        unset ones keep their defaults.
        """
        load_dotenv(dotenv_path)
        return cls(
            operator=os.getenv("TILES_OPERATOR", DEFAULT_OPERATOR),
            max_stake=int(os.getenv("TILES_MAX_STAKE", str(DEFAULT_MAX_STAKE))),
            fee_bps=int(os.getenv("TILES_FEE_BPS", "0")),
        )
