# File: blockpuzzle/agents/base.py
import logging
from abc import ABC, abstractmethod
from collections import deque
from enum import Enum
from typing import TYPE_CHECKING, Any

import numpy as np

from ..data import AgentCheckpoint
from ..environment import BlockPuzzleEnv
from ..utils.types import ActionType, AgentStats, StateVector, Transition

if TYPE_CHECKING:
    from ..data import AgentStore
    from ..nn import NeuralNetwork

logger = logging.getLogger(__name__)


class AgentKind(str, Enum):
    """Tag for the agent variants. Values double as CLI/config names."""

    VALUE = "dqn"
    TREE_SEARCH = "mcts"
    POLICY_GRADIENT = "policy_gradient"
    HEURISTIC = "heuristic"


class EpisodeTracker:
    """
    Rolling bookkeeping of finished episodes. Real game scores and shaped
    rewards are kept in separate windows and never mixed.
    """

    def __init__(self, window: int = 50):
        self.window = window
        self.episodes = 0
        self.best_score = 0.0
        self.scores: deque[float] = deque(maxlen=window)
        self.rewards: deque[float] = deque(maxlen=window)
        self.in_episode = False

    def start(self):
        self.in_episode = True

    def end(self, score: float, shaped_reward: float = 0.0):
        self.in_episode = False
        self.episodes += 1
        self.scores.append(float(score))
        self.rewards.append(float(shaped_reward))
        self.best_score = max(self.best_score, float(score))

    @property
    def average_score(self) -> float:
        return float(np.mean(self.scores)) if self.scores else 0.0

    @property
    def average_reward(self) -> float:
        return float(np.mean(self.rewards)) if self.rewards else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "episodes": self.episodes,
            "best_score": self.best_score,
            "scores": list(self.scores),
            "rewards": list(self.rewards),
        }

    def load_dict(self, data: dict[str, Any]):
        self.episodes = int(data.get("episodes", 0))
        self.best_score = float(data.get("best_score", 0.0))
        self.scores = deque(data.get("scores", []), maxlen=self.window)
        self.rewards = deque(data.get("rewards", []), maxlen=self.window)


def split_observation(
    state_or_env: "BlockPuzzleEnv | StateVector",
) -> tuple[StateVector, BlockPuzzleEnv | None]:
    """Returns (state vector, env or None) for either kind of observation."""
    if isinstance(state_or_env, BlockPuzzleEnv):
        return state_or_env.get_state(), state_or_env
    return np.asarray(state_or_env, dtype=np.float32), None


class Agent(ABC):
    """
    Common interface of all playing agents.

    `needs_env` is the capability flag consulted by `act`: agents that
    simulate placements receive the environment itself, the others only
    the encoded state vector.
    """

    kind: AgentKind
    learns: bool = False
    needs_env: bool = False

    def __init__(self, stats_window: int = 50):
        self.tracker = EpisodeTracker(stats_window)
        self.greedy = False
        self.training_steps = 0

    @abstractmethod
    def select_action(
        self,
        state_or_env: "BlockPuzzleEnv | StateVector",
        valid_actions: list[ActionType],
    ) -> ActionType | None:
        """Picks one of `valid_actions`, or None when there are none."""

    def act(self, env: BlockPuzzleEnv) -> ActionType | None:
        valid_actions = env.get_valid_actions()
        observation = env if self.needs_env else env.get_state()
        return self.select_action(observation, valid_actions)

    def remember(self, transition: Transition):
        """Stores experience. Non-learning agents ignore it."""

    def train(self) -> float | None:
        """One learning update; returns the loss or None when skipped."""
        return None

    def start_episode(self):
        self.tracker.start()

    def end_episode(self, score: float, shaped_reward: float = 0.0):
        self.tracker.end(score, shaped_reward)

    def on_curriculum_advance(self):
        """Hook called by drivers when the environment's tier advances."""

    def set_greedy(self, greedy: bool):
        """Evaluation mode: no exploration and no sampling."""
        self.greedy = greedy

    @property
    def epsilon(self) -> float:
        return 0.0

    @property
    def memory_size(self) -> int:
        return 0

    def get_stats(self) -> AgentStats:
        return {
            "kind": self.kind.value,
            "episodes": self.tracker.episodes,
            "best_score": self.tracker.best_score,
            "average_score": self.tracker.average_score,
            "average_reward": self.tracker.average_reward,
            "epsilon": self.epsilon,
            "memory_size": self.memory_size,
            "training_steps": self.training_steps,
        }

    def networks(self) -> dict[str, "NeuralNetwork"]:
        """Trainable approximators owned by the agent, by name."""
        return {}

    def dispose(self):
        """Releases retained buffers."""

    # --- Persistence ---

    def to_checkpoint(self) -> AgentCheckpoint:
        return AgentCheckpoint(
            kind=self.kind.value,
            scalars={
                "training_steps": self.training_steps,
                "tracker": self.tracker.to_dict(),
            },
        )

    def load_checkpoint(self, checkpoint: AgentCheckpoint):
        if checkpoint.kind != self.kind.value:
            raise ValueError(
                f"Checkpoint kind '{checkpoint.kind}' does not match agent '{self.kind.value}'."
            )
        self.training_steps = int(checkpoint.scalars.get("training_steps", 0))
        self.tracker.load_dict(checkpoint.scalars.get("tracker", {}))

    def save(self, store: "AgentStore", key: str) -> bool:
        if not self.learns:
            logger.debug(f"{self.kind.value} agent has no learnable state to save.")
            return False
        store.save(key, self.to_checkpoint())
        return True

    def load(self, store: "AgentStore", key: str) -> bool:
        if not self.learns:
            return False
        checkpoint = store.load(key)
        if checkpoint is None:
            return False
        self.load_checkpoint(checkpoint)
        logger.info(f"Restored {self.kind.value} agent from key '{key}'.")
        return True
