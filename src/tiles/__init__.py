"""
Tiles game module.

Provides the round engine, bomb placement, payout curve, treasury and
the in-memory collaborators used to run them.
"""
from .board import cell_index, cell_position, place_bombs, render_board, verify_board
from .cell_mask import CellMask, MASK_WIDTH
from .config import DEMO, LARGE, SMALL, EngineConfig, RoundConfig
from .engine import FeeFunding, RevealResult, RoundEngine, Settlement
from .environment import TilesEnv
from .events import EventBus
from .fixed_point import WAD, mul_div
from .payout import BASE_MULTIPLIER, MAX_MULTIPLIER, multiplier, payout
from .randomness import LocalRandomnessService, RandomnessService
from .round import Round, RoundOutcome, RoundState, RoundView
from .sampler import uniform
from .treasury import Treasury
from .wallet import InMemoryWallet, PayoutWallet

__all__ = [
    "cell_index",
    "cell_position",
    "place_bombs",
    "render_board",
    "verify_board",
    "CellMask",
    "MASK_WIDTH",
    "DEMO",
    "LARGE",
    "SMALL",
    "EngineConfig",
    "RoundConfig",
    "FeeFunding",
    "RevealResult",
    "RoundEngine",
    "Settlement",
    "TilesEnv",
    "EventBus",
    "WAD",
    "mul_div",
    "BASE_MULTIPLIER",
    "MAX_MULTIPLIER",
    "multiplier",
    "payout",
    "LocalRandomnessService",
    "RandomnessService",
    "Round",
    "RoundOutcome",
    "RoundState",
    "RoundView",
    "uniform",
    "Treasury",
    "InMemoryWallet",
    "PayoutWallet",
]
