"""
Simulation module for tiles agents.

Plays many rounds with an agent and measures return to player, bust
rate and how far agents get before stopping.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import json
import time

import numpy as np

from agents.base_agent import BaseAgent
from tiles.config import DEFAULT_STAKE, RoundConfig
from tiles.environment import TilesEnv


# ============================================================================
# Simulation Configuration
# ============================================================================

@dataclass
class SimulationConfig:
    """Configuration for a simulation run."""

    # Board settings
    rows: int = 6
    cols: int = 6
    bombs: int = 8

    # Round settings
    stake: int = DEFAULT_STAKE
    fee_bps: int = 0

    # Run settings
    num_episodes: int = 1000
    max_steps_per_episode: int = 200
    seed: Optional[int] = None

    @property
    def round_config(self) -> RoundConfig:
        return RoundConfig(self.rows, self.cols, self.bombs)


# ============================================================================
# Simulation Statistics
# ============================================================================

@dataclass
class EpisodeStats:
    """Statistics for a single round."""

    payout: int = 0
    steps: int = 0
    safe_reveals: int = 0
    outcome: str = "NONE"


@dataclass
class SimulationStats:
    """Accumulated simulation statistics."""

    episodes_completed: int = 0
    total_staked: int = 0
    total_paid: int = 0
    busts: int = 0
    outcomes: Dict[str, int] = field(default_factory=dict)
    safe_reveals: List[int] = field(default_factory=list)
    multipliers: List[float] = field(default_factory=list)

    @property
    def rtp(self) -> float:
        """Return to player: total paid over total staked."""
        if not self.total_staked:
            return 0.0
        return self.total_paid / self.total_staked

    @property
    def bust_rate(self) -> float:
        if not self.episodes_completed:
            return 0.0
        return self.busts / self.episodes_completed

    def record(self, episode: EpisodeStats, stake: int) -> None:
        """Fold one round into the totals."""
        self.episodes_completed += 1
        self.total_staked += stake
        self.total_paid += episode.payout
        if episode.outcome == "LOST":
            self.busts += 1
        self.outcomes[episode.outcome] = self.outcomes.get(episode.outcome, 0) + 1
        self.safe_reveals.append(episode.safe_reveals)
        self.multipliers.append(episode.payout / stake)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "episodes_completed": self.episodes_completed,
            "total_staked": self.total_staked,
            "total_paid": self.total_paid,
            "rtp": self.rtp,
            "bust_rate": self.bust_rate,
            "outcomes": dict(self.outcomes),
            "avg_safe_reveals": float(np.mean(self.safe_reveals)) if self.safe_reveals else 0.0,
            "avg_multiplier": float(np.mean(self.multipliers)) if self.multipliers else 0.0,
        }


# ============================================================================
# Agent Evaluator
# ============================================================================

class Evaluator:
    """
    Evaluate and compare agents over many rounds.

    Every agent plays on a fresh environment seeded from the config, so
    agents compared in one run see the same sequence of boards.
    """

    def __init__(self, config: Optional[SimulationConfig] = None) -> None:
        """
        Initialize the evaluator.

        Args:
            config: Simulation configuration.
        """
        self.config = config or SimulationConfig()

    def _make_env(self) -> TilesEnv:
        return TilesEnv(
            config=self.config.round_config,
            stake=self.config.stake,
            fee_bps=self.config.fee_bps,
        )

    def _run_episode(
        self, env: TilesEnv, agent: BaseAgent, seed: Optional[int]
    ) -> EpisodeStats:
        """Play a single round to settlement."""
        stats = EpisodeStats()

        observation, info = env.reset(seed=seed)
        agent.reset()

        for _ in range(self.config.max_steps_per_episode):
            valid_actions = env.get_action_mask()
            action = agent.select_action(observation, valid_actions)

            observation, _, terminated, truncated, info = env.step(action)
            stats.steps += 1

            if terminated or truncated:
                break

        stats.payout = info["payout"]
        stats.safe_reveals = info["safe_reveals"]
        stats.outcome = info["outcome"]
        return stats

    def evaluate(self, agent: BaseAgent) -> SimulationStats:
        """
        Evaluate a single agent.

        Args:
            agent: Agent to evaluate.

        Returns:
            Accumulated statistics.
        """
        env = self._make_env()
        stats = SimulationStats()
        seeds = np.random.default_rng(self.config.seed).integers(
            0, 2 ** 32, size=self.config.num_episodes
        )

        for episode_seed in seeds:
            episode = self._run_episode(env, agent, int(episode_seed))
            stats.record(episode, self.config.stake)

        return stats

    def compare(
        self, agents: Dict[str, BaseAgent]
    ) -> Dict[str, SimulationStats]:
        """
        Compare multiple agents.

        Args:
            agents: Dictionary of agent_name -> agent.

        Returns:
            Dictionary of agent_name -> statistics.
        """
        results = {}
        for name, agent in agents.items():
            start = time.time()
            results[name] = self.evaluate(agent)
            print(f"Evaluated {name} in {time.time() - start:.1f}s")
        return results

    @staticmethod
    def save(results: Dict[str, SimulationStats], path: str) -> Path:
        """Save comparison results to JSON."""
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        with open(out, "w") as f:
            json.dump({k: v.to_dict() for k, v in results.items()}, f, indent=2)
        return out
