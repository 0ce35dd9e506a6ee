"""
Simulation module for tiles agents.

Provides Monte Carlo evaluation of play strategies.
"""
from .evaluator import (
    SimulationConfig,
    EpisodeStats,
    SimulationStats,
    Evaluator,
)

__all__ = [
    "SimulationConfig",
    "EpisodeStats",
    "SimulationStats",
    "Evaluator",
]
