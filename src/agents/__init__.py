"""
Tiles playing agents module.

Provides agents for playing the tiles game:
- RandomAgent: Baseline random reveals and random cash-out
- TargetAgent: Reveals a fixed number of safe tiles, then cashes out
"""
from .base_agent import BaseAgent
from .random_agent import RandomAgent
from .target_agent import TargetAgent

__all__ = [
    "BaseAgent",
    "RandomAgent",
    "TargetAgent",
]
