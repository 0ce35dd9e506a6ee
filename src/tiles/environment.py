"""
Gymnasium environment wrapper for the tiles game.

Each episode is one round on a private engine backed by the in-memory
randomness service and wallet. Provides a standard RL interface for
simulating and comparing play strategies.
"""
from typing import Any, Dict, Optional, Tuple, SupportsFloat

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from .board import cell_position
from .cell_mask import CellMask
from .config import DEFAULT_CALLBACK_BUDGET, DEFAULT_STAKE, EngineConfig, RoundConfig
from .engine import FeeFunding, RoundEngine
from .errors import TilesError
from .fixed_point import WAD, format_wad
from .payout import max_payout
from .randomness import LocalRandomnessService
from .round import RoundOutcome, RoundState
from .wallet import InMemoryWallet


# ============================================================================
# Constants
# ============================================================================

HIDDEN = -1
SAFE = 0
BOMB = 9

INVALID_ACTION_PENALTY = -0.1
PLAYER = "player"


# ============================================================================
# Tiles Environment
# ============================================================================

class TilesEnv(gym.Env):
    """
    Gymnasium environment for the tiles game.

    Observation:
        2D array where:
        - -1 = hidden tile
        - 0 = revealed safe tile
        - 9 = revealed bomb

    Actions:
        Discrete action space of size rows * cols + 1.
        Action i < rows * cols reveals cell (i // cols, i % cols);
        the last action cashes out.

    Rewards:
        - (payout - stake) / stake when the round settles
        - 0 for a safe reveal that does not settle
        - -0.1 for an invalid action (already revealed tile)
    """

    metadata = {"render_modes": ["human", "ansi"], "render_fps": 4}

    def __init__(
        self,
        config: Optional[RoundConfig] = None,
        stake: int = DEFAULT_STAKE,
        fee_bps: int = 0,
        render_mode: Optional[str] = None,
    ) -> None:
        """
        Initialize the tiles environment.

        Args:
            config: Board configuration (default: 6x6 with 8 bombs).
            stake: Stake placed every episode (wad).
            fee_bps: House fee applied on cash-out.
            render_mode: How to render the environment.
        """
        super().__init__()

        self.config = config or RoundConfig()
        self.stake = stake
        self.render_mode = render_mode

        self.wallet = InMemoryWallet()
        self.randomness = LocalRandomnessService()
        self.engine = RoundEngine(
            self.randomness,
            self.wallet,
            EngineConfig(max_stake=max(stake, WAD), fee_bps=fee_bps),
        )
        self.randomness.callback = self.engine.on_seed_delivered

        self.observation_space = spaces.Box(
            low=HIDDEN,
            high=BOMB,
            shape=(self.config.rows, self.config.cols),
            dtype=np.int8,
        )
        self.cash_out_action = self.config.cell_count
        self.action_space = spaces.Discrete(self.config.cell_count + 1)

        self.round_id: Optional[int] = None
        self._steps = 0
        self._payout = 0

    # ========================================================================
    # Episode Control
    # ========================================================================

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Tuple[np.ndarray, Dict[str, Any]]:
        """
        Start a new round.

        The pool is topped up to cover the round, a seed is requested
        from the treasury and fulfilled immediately with bytes drawn
        from the environment's RNG, so a seeded reset replays the board.

        Args:
            seed: Random seed for reproducibility.
            options: Additional options (unused).

        Returns:
            Tuple of (observation, info dict).
        """
        super().reset(seed=seed)
        self._steps = 0
        self._payout = 0

        shortfall = max_payout(self.stake) - self.engine.treasury.balance
        if shortfall > 0:
            self.engine.treasury.fund(shortfall, funder="env")
        quote = self.randomness.quote_price(DEFAULT_CALLBACK_BUDGET)
        self.engine.treasury.fund(quote, funder="env")

        self.round_id = self.engine.create_round(
            PLAYER, self.config.rows, self.config.cols, self.config.bombs,
            self.stake,
        )
        correlation_id = self.engine.request_seed(
            self.round_id,
            DEFAULT_CALLBACK_BUDGET,
            self.engine.config.operator,
            funding=FeeFunding.TREASURY,
        )
        self.randomness.fulfill(correlation_id, self.np_random.bytes(32))

        return self.get_observation(), self._get_info()

    def step(
        self, action: int
    ) -> Tuple[np.ndarray, SupportsFloat, bool, bool, Dict[str, Any]]:
        """
        Execute one action in the environment.

        Args:
            action: Cell index to reveal, or cash_out_action.

        Returns:
            Tuple of (observation, reward, terminated, truncated, info).
        """
        self._steps += 1
        reward = self._apply_action(int(action))
        observation = self.get_observation()
        terminated = self.engine.get_round(self.round_id).state == RoundState.SETTLED
        return observation, reward, terminated, False, self._get_info()

    def _apply_action(self, action: int) -> float:
        """Perform the action on the engine and compute its reward."""
        try:
            if action == self.cash_out_action:
                settlement = self.engine.cash_out(self.round_id, PLAYER)
                self._payout = settlement.net
                return self._settled_reward()

            row, col = cell_position(self.config.cols, action)
            result = self.engine.reveal_tile(self.round_id, row, col, PLAYER)
        except TilesError:
            return INVALID_ACTION_PENALTY

        if result.is_bomb:
            return -1.0
        if result.settlement is not None:
            self._payout = result.settlement.net
            return self._settled_reward()
        return 0.0

    def _settled_reward(self) -> float:
        return (self._payout - self.stake) / self.stake

    # ========================================================================
    # Observation
    # ========================================================================

    def get_observation(self) -> np.ndarray:
        """
        Get the board as seen by the player.

        Returns:
            2D int8 array of HIDDEN/SAFE/BOMB values.
        """
        rows, cols = self.config.rows, self.config.cols
        view = self.engine.get_round(self.round_id)
        revealed = CellMask(self.config.cell_count, view.revealed_mask)
        obs = np.where(revealed.to_array(rows, cols), SAFE, HIDDEN).astype(np.int8)
        if self.engine.get_outcome(self.round_id) == RoundOutcome.LOST:
            hit = revealed & self.engine.bomb_mask(self.round_id)
            obs[hit.to_array(rows, cols)] = BOMB
        return obs

    def get_action_mask(self) -> np.ndarray:
        """
        Get mask of valid actions.

        Returns:
            Boolean array where True = valid action. Cash-out is valid
            while the round is active.
        """
        view = self.engine.get_round(self.round_id)
        mask = np.zeros(self.action_space.n, dtype=bool)
        if view.state != RoundState.ACTIVE:
            return mask
        for index in range(self.config.cell_count):
            mask[index] = not view.revealed_mask >> index & 1
        mask[self.cash_out_action] = True
        return mask

    def _get_info(self) -> Dict[str, Any]:
        """Get info dictionary for current state."""
        view = self.engine.get_round(self.round_id)
        return {
            "steps": self._steps,
            "round_id": self.round_id,
            "safe_reveals": view.safe_reveal_count,
            "max_safe": self.config.max_safe,
            "state": view.state.name,
            "outcome": self.engine.get_outcome(self.round_id).name,
            "multiplier": self.engine.current_multiplier(self.round_id) / WAD,
            "quote": self.engine.quote_payout(self.round_id),
            "payout": self._payout,
            "stake": self.stake,
        }

    # ========================================================================
    # Rendering
    # ========================================================================

    def render(self) -> Optional[str]:
        """Render the current board state."""
        if self.render_mode == "ansi":
            return self._render_ansi()
        if self.render_mode == "human":
            print(self._render_ansi())
        return None

    def _render_ansi(self) -> str:
        """Render board as ASCII string."""
        symbols = {HIDDEN: "#", SAFE: ".", BOMB: "*"}
        obs = self.get_observation()
        lines = [" ".join(symbols[int(v)] for v in row) for row in obs]
        info = self._get_info()
        lines.append(
            f"x{info['multiplier']:.2f}  quote {format_wad(info['quote'])}"
            f"  [{info['outcome']}]"
        )
        return "\n".join(lines)
