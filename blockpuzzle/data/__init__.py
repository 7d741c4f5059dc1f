# File: blockpuzzle/data/__init__.py
from .schemas import AgentCheckpoint
from .store import AgentStore

__all__ = [
    "AgentCheckpoint",
    "AgentStore",
]
