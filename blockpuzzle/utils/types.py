# File: blockpuzzle/utils/types.py
from typing import NamedTuple

import numpy as np
from typing_extensions import TypedDict

# Encoded state vector (float32, length EnvConfig.STATE_SIZE)
StateVector = np.ndarray

# Packed action id: block_index * 1000 + row * 10 + col
ActionType = int


class Transition(NamedTuple):
    """One unit of experience stored in the replay buffer."""

    state: StateVector
    action: ActionType
    reward: float
    next_state: StateVector
    done: bool
    # Dense validity mask of next_state, used to restrict the target argmax
    next_mask: np.ndarray | None = None


TransitionBatch = list[Transition]


class PERBatchSample(TypedDict):
    """Output of the prioritized buffer's sample method."""

    batch: TransitionBatch  # The sampled transitions
    indices: np.ndarray  # Buffer slots of the sampled transitions (for priority update)
    weights: np.ndarray  # Importance sampling weights, max-normalized to 1


class StepInfo(TypedDict):
    """Details of the most recent environment step."""

    lines_cleared: int
    score_gained: int
    cells_placed: int
    invalid: bool
    reward_terms: dict[str, float]


class AgentStats(TypedDict):
    """Read-only snapshot returned by Agent.get_stats()."""

    kind: str
    episodes: int
    best_score: float
    average_score: float
    average_reward: float
    epsilon: float
    memory_size: int
    training_steps: int
