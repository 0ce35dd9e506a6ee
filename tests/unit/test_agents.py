"""
Unit tests for the baseline agents.
"""
import numpy as np
import pytest
from agents import RandomAgent, TargetAgent


def hidden_board(rows: int = 3, cols: int = 3) -> np.ndarray:
    return np.full((rows, cols), -1, dtype=np.int8)


class TestBaseAgentHelpers:
    """Test helpers shared by every agent."""

    def test_cash_out_action_is_last(self) -> None:
        agent = RandomAgent(3, 4)
        assert agent.cash_out_action == 12

    def test_position_round_trip(self) -> None:
        agent = RandomAgent(3, 4)
        assert agent.action_to_position(7) == (1, 3)
        assert agent.position_to_action(1, 3) == 7

    def test_valid_actions_from_obs(self) -> None:
        agent = RandomAgent(3, 3)
        obs = hidden_board()
        obs[0, 0] = 0
        mask = agent.get_valid_actions_from_obs(obs)
        assert mask.shape == (10,)
        assert not mask[0]
        assert mask[1:].all()

    def test_safe_reveals(self) -> None:
        agent = RandomAgent(3, 3)
        obs = hidden_board()
        obs[0, :2] = 0
        assert agent.safe_reveals(obs) == 2


class TestRandomAgent:
    """Test the random baseline."""

    def test_first_move_is_a_reveal(self) -> None:
        """With nothing revealed it never cashes out."""
        agent = RandomAgent(3, 3, cash_out_probability=1.0, seed=0)
        for _ in range(20):
            assert agent.select_action(hidden_board()) < 9

    def test_always_cashes_out_when_probability_one(self) -> None:
        agent = RandomAgent(3, 3, cash_out_probability=1.0, seed=0)
        obs = hidden_board()
        obs[1, 1] = 0
        assert agent.select_action(obs) == agent.cash_out_action

    def test_only_picks_valid_tiles(self) -> None:
        agent = RandomAgent(3, 3, cash_out_probability=0.0, seed=0)
        valid = np.zeros(10, dtype=bool)
        valid[[2, 5]] = True
        valid[9] = True
        picks = {agent.select_action(hidden_board(), valid) for _ in range(50)}
        assert picks == {2, 5}

    def test_no_hidden_tiles_cashes_out(self) -> None:
        agent = RandomAgent(2, 2, seed=0)
        assert agent.select_action(np.zeros((2, 2), dtype=np.int8)) == 4

    def test_invalid_probability(self) -> None:
        with pytest.raises(ValueError):
            RandomAgent(cash_out_probability=1.5)


class TestTargetAgent:
    """Test the fixed-target strategy."""

    def test_row_major_order(self) -> None:
        agent = TargetAgent(3, 3, target=2)
        agent.reset()
        assert agent.select_action(hidden_board()) == 0

    def test_skips_revealed(self) -> None:
        agent = TargetAgent(3, 3, target=5)
        agent.reset()
        obs = hidden_board()
        obs[0, 0] = 0
        assert agent.select_action(obs) == 1

    def test_cashes_out_at_target(self) -> None:
        agent = TargetAgent(3, 3, target=2)
        obs = hidden_board()
        obs[0, :2] = 0
        assert agent.select_action(obs) == agent.cash_out_action

    def test_seeded_order_is_shuffled_and_reproducible(self) -> None:
        first = TargetAgent(6, 6, seed=3)
        second = TargetAgent(6, 6, seed=3)
        first.reset()
        second.reset()
        assert list(first._order) == list(second._order)
        assert sorted(first._order) == list(range(36))

    def test_invalid_target(self) -> None:
        with pytest.raises(ValueError):
            TargetAgent(target=0)
