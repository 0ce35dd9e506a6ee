"""
Random agent for the tiles game.

Serves as a baseline by revealing random tiles and cashing out at random.
"""
from typing import Optional

import numpy as np

from .base_agent import BaseAgent


# ============================================================================
# Random Agent
# ============================================================================

class RandomAgent(BaseAgent):
    """
    Agent that reveals tiles uniformly at random.

    Before each reveal after the first, it cashes out with probability
    cash_out_probability. This provides a baseline for comparing
    stopping strategies.
    """

    def __init__(
        self,
        board_height: int = 6,
        board_width: int = 6,
        cash_out_probability: float = 0.2,
        seed: Optional[int] = None,
    ) -> None:
        """
        Initialize the random agent.

        Args:
            board_height: Number of rows in the board.
            board_width: Number of columns in the board.
            cash_out_probability: Chance of cashing out on each turn.
            seed: Random seed for reproducibility.
        """
        super().__init__(board_height, board_width)
        if not 0.0 <= cash_out_probability <= 1.0:
            raise ValueError("cash_out_probability must be within [0, 1]")
        self.cash_out_probability = cash_out_probability
        self.rng = np.random.default_rng(seed)

    def select_action(
        self,
        observation: np.ndarray,
        valid_actions: Optional[np.ndarray] = None,
    ) -> int:
        """
        Select a random hidden tile, or cash out.

        Args:
            observation: 2D array of tile states.
            valid_actions: Optional mask of valid actions.

        Returns:
            Random action index from valid actions.
        """
        if valid_actions is None:
            valid_actions = self.get_valid_actions_from_obs(observation)

        tile_indices = np.where(valid_actions[: self.total_cells])[0]

        if len(tile_indices) == 0:
            return self.cash_out_action

        if (
            self.safe_reveals(observation) > 0
            and self.rng.random() < self.cash_out_probability
        ):
            return self.cash_out_action

        return int(self.rng.choice(tile_indices))
