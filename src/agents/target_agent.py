"""
Target agent for the tiles game.

Reveals a fixed number of safe tiles, then cashes out. Sweeping the
target over a board shows where the payout curve rewards stopping.
"""
from typing import Optional

import numpy as np

from .base_agent import BaseAgent


class TargetAgent(BaseAgent):
    """
    Agent that stops after a target number of safe reveals.

    Tiles are opened in row-major order unless an rng seed is given, in
    which case the order is shuffled every episode.
    """

    def __init__(
        self,
        board_height: int = 6,
        board_width: int = 6,
        target: int = 3,
        seed: Optional[int] = None,
    ) -> None:
        super().__init__(board_height, board_width)
        if target < 1:
            raise ValueError("target must be at least 1")
        self.target = target
        self.rng = np.random.default_rng(seed) if seed is not None else None
        self._order = np.arange(self.total_cells)

    def reset(self) -> None:
        """Draw a fresh reveal order for the next episode."""
        self._order = np.arange(self.total_cells)
        if self.rng is not None:
            self.rng.shuffle(self._order)

    def select_action(
        self,
        observation: np.ndarray,
        valid_actions: Optional[np.ndarray] = None,
    ) -> int:
        if valid_actions is None:
            valid_actions = self.get_valid_actions_from_obs(observation)

        if self.safe_reveals(observation) >= self.target:
            return self.cash_out_action

        for action in self._order:
            if valid_actions[action]:
                return int(action)
        return self.cash_out_action
