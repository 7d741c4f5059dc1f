# File: blockpuzzle/rl/__init__.py
from .buffer import PrioritizedReplayBuffer

__all__ = [
    "PrioritizedReplayBuffer",
]
