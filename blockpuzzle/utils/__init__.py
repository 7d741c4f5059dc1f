# File: blockpuzzle/utils/__init__.py
from .helpers import format_eta, get_device, set_random_seeds
from .types import (
    ActionType,
    AgentStats,
    PERBatchSample,
    StateVector,
    StepInfo,
    Transition,
    TransitionBatch,
)

__all__ = [
    # helpers
    "get_device",
    "set_random_seeds",
    "format_eta",
    # types
    "StateVector",
    "ActionType",
    "Transition",
    "TransitionBatch",
    "PERBatchSample",
    "StepInfo",
    "AgentStats",
]
