"""
Unit tests for the simulation evaluator.
"""
import json

import pytest
from agents import RandomAgent, TargetAgent
from simulation import EpisodeStats, Evaluator, SimulationConfig, SimulationStats
from tiles import WAD


@pytest.fixture
def sim_config() -> SimulationConfig:
    """Small, fast simulation on a 3x3 board."""
    return SimulationConfig(rows=3, cols=3, bombs=2, stake=WAD, num_episodes=20, seed=7)


class TestSimulationStats:
    """Test statistic accumulation."""

    def test_empty_stats(self) -> None:
        stats = SimulationStats()
        assert stats.rtp == 0.0
        assert stats.bust_rate == 0.0

    def test_record(self) -> None:
        stats = SimulationStats()
        stats.record(EpisodeStats(payout=0, outcome="LOST"), 100)
        stats.record(EpisodeStats(payout=150, safe_reveals=3, outcome="CASHED_OUT"), 100)
        assert stats.episodes_completed == 2
        assert stats.rtp == pytest.approx(0.75)
        assert stats.bust_rate == pytest.approx(0.5)
        assert stats.outcomes == {"LOST": 1, "CASHED_OUT": 1}
        assert stats.to_dict()["avg_multiplier"] == pytest.approx(0.75)


class TestEvaluator:
    """Test running agents through rounds."""

    def test_evaluate_plays_every_episode(self, sim_config) -> None:
        stats = Evaluator(sim_config).evaluate(TargetAgent(3, 3, target=1))
        assert stats.episodes_completed == 20
        assert stats.total_staked == 20 * WAD
        assert sum(stats.outcomes.values()) == 20
        assert set(stats.outcomes) <= {"LOST", "CASHED_OUT"}

    def test_target_one_pays_point_two_five(self, sim_config) -> None:
        """On 3x3 with 2 bombs one safe reveal is worth 0.2 + 1.8/7."""
        stats = Evaluator(sim_config).evaluate(TargetAgent(3, 3, target=1))
        for m in stats.multipliers:
            assert m == 0.0 or m == pytest.approx(0.2 + 1.8 / 7)

    def test_clearing_agent_never_exceeds_cap(self, sim_config) -> None:
        stats = Evaluator(sim_config).evaluate(TargetAgent(3, 3, target=99))
        assert max(stats.multipliers) <= 2.0
        assert set(stats.outcomes) <= {"LOST", "CAPPED"}

    def test_same_seed_same_results(self, sim_config) -> None:
        first = Evaluator(sim_config).evaluate(TargetAgent(3, 3, target=2))
        second = Evaluator(sim_config).evaluate(TargetAgent(3, 3, target=2))
        assert first.to_dict() == second.to_dict()

    def test_compare_and_save(self, sim_config, tmp_path) -> None:
        evaluator = Evaluator(sim_config)
        results = evaluator.compare({
            "random": RandomAgent(3, 3, seed=0),
            "target_2": TargetAgent(3, 3, target=2),
        })
        path = Evaluator.save(results, str(tmp_path / "out" / "results.json"))
        data = json.loads(path.read_text())
        assert set(data) == {"random", "target_2"}
        assert data["random"]["episodes_completed"] == 20
