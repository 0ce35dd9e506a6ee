"""
Base agent interface for tiles players.

Defines the abstract interface that all agents must implement.
"""
from abc import ABC, abstractmethod
from typing import Optional, Tuple

import numpy as np


# ============================================================================
# Base Agent Interface
# ============================================================================

class BaseAgent(ABC):
    """
    Abstract base class for tiles agents.

    All agents must implement the select_action method to choose which
    tile to reveal, or to cash out, based on the current observation.
    The cash-out action is always rows * cols.
    """

    def __init__(self, board_height: int, board_width: int) -> None:
        """
        Initialize the agent.

        Args:
            board_height: Number of rows in the board.
            board_width: Number of columns in the board.
        """
        self.board_height = board_height
        self.board_width = board_width
        self.total_cells = board_height * board_width
        self.cash_out_action = self.total_cells

    @abstractmethod
    def select_action(
        self,
        observation: np.ndarray,
        valid_actions: Optional[np.ndarray] = None,
    ) -> int:
        """
        Select an action based on the current observation.

        Args:
            observation: 2D array of tile states.
            valid_actions: Optional mask of valid actions.

        Returns:
            Action index (row * width + col), or cash_out_action.
        """
        pass

    def action_to_position(self, action: int) -> Tuple[int, int]:
        """Convert flat action index to (row, col) position."""
        row = action // self.board_width
        col = action % self.board_width
        return row, col

    def position_to_action(self, row: int, col: int) -> int:
        """Convert (row, col) position to flat action index."""
        return row * self.board_width + col

    def get_valid_actions_from_obs(self, observation: np.ndarray) -> np.ndarray:
        """
        Get valid actions mask from observation.

        Args:
            observation: 2D array of tile states.

        Returns:
            Boolean mask where True = valid action; the cash-out action
            is always included.
        """
        # Hidden tiles (value -1) are valid reveals
        flat_obs = observation.flatten()
        return np.append(flat_obs == -1, True)

    def safe_reveals(self, observation: np.ndarray) -> int:
        """Number of safe tiles already open in the observation."""
        return int(np.count_nonzero(observation == 0))

    def reset(self) -> None:
        """Reset agent state for new episode."""
        pass
