# File: blockpuzzle/rl/buffer.py
import logging

import numpy as np

from ..config import DQNConfig
from ..utils.types import PERBatchSample, Transition

logger = logging.getLogger(__name__)


class PrioritizedReplayBuffer:
    """
    Fixed-capacity proportional prioritized replay.
    When full, the lowest-priority transition is replaced, oldest first on ties.
    """

    def __init__(
        self,
        capacity: int,
        alpha: float = 0.6,
        beta_initial: float = 0.4,
        beta_increment: float = 0.001,
        epsilon: float = 1e-6,
        seed: int | None = None,
    ):
        if capacity <= 0:
            raise ValueError("Buffer capacity must be positive.")
        self.capacity = capacity
        self.alpha = alpha
        self.beta = beta_initial
        self.beta_increment = beta_increment
        self.epsilon = epsilon

        self.buffer: list[Transition] = []
        self.priorities = np.zeros(capacity, dtype=np.float64)
        self.timestamps = np.zeros(capacity, dtype=np.int64)
        # Monotone insertion counter; wall-clock time is too coarse to order inserts
        self._clock = 0
        self._rng = np.random.default_rng(seed)
        logger.debug(f"PrioritizedReplayBuffer created (capacity={capacity}, alpha={alpha}).")

    @classmethod
    def from_config(cls, config: DQNConfig, seed: int | None = None) -> "PrioritizedReplayBuffer":
        return cls(
            capacity=config.BUFFER_CAPACITY,
            alpha=config.PER_ALPHA,
            beta_initial=config.PER_BETA_INITIAL,
            beta_increment=config.PER_BETA_INCREMENT,
            epsilon=config.PER_EPSILON,
            seed=seed,
        )

    def __len__(self) -> int:
        return len(self.buffer)

    def is_ready(self, batch_size: int) -> bool:
        return len(self.buffer) >= batch_size

    @staticmethod
    def _copy(transition: Transition) -> Transition:
        return transition._replace(
            state=np.array(transition.state, dtype=np.float32, copy=True),
            next_state=np.array(transition.next_state, dtype=np.float32, copy=True),
            next_mask=(
                None
                if transition.next_mask is None
                else np.array(transition.next_mask, dtype=bool, copy=True)
            ),
        )

    def _eviction_index(self) -> int:
        n = len(self.buffer)
        priorities = self.priorities[:n]
        candidates = np.flatnonzero(priorities == priorities.min())
        return int(candidates[np.argmin(self.timestamps[candidates])])

    def add(self, transition: Transition, priority: float) -> int:
        """Stores a copy of `transition` and returns the slot it occupies."""
        priority = max(float(priority), self.epsilon)
        stored = self._copy(transition)
        if len(self.buffer) < self.capacity:
            idx = len(self.buffer)
            self.buffer.append(stored)
        else:
            idx = self._eviction_index()
            self.buffer[idx] = stored
        self.priorities[idx] = priority
        self.timestamps[idx] = self._clock
        self._clock += 1
        return idx

    def add_batch(self, transitions: list[Transition], priorities: list[float]):
        if len(transitions) != len(priorities):
            raise ValueError("transitions and priorities must have the same length.")
        for transition, priority in zip(transitions, priorities, strict=True):
            self.add(transition, priority)

    def sample(self, batch_size: int) -> PERBatchSample | None:
        """
        Samples indices with probability proportional to priority^alpha and
        returns max-normalized importance weights (N * P(i))^-beta.
        Anneals beta towards 1 after each call.
        """
        n = len(self.buffer)
        if n < batch_size or batch_size <= 0:
            logger.debug(f"Cannot sample {batch_size} transitions from buffer of size {n}.")
            return None

        scaled = np.power(self.priorities[:n], self.alpha)
        total = scaled.sum()
        probs = scaled / total if total > 0 else np.full(n, 1.0 / n)
        indices = self._rng.choice(n, size=batch_size, p=probs)

        weights = np.power(n * probs[indices], -self.beta)
        weights = (weights / weights.max()).astype(np.float32)

        self.beta = min(1.0, self.beta + self.beta_increment)
        batch = [self.buffer[i] for i in indices]
        return {"batch": batch, "indices": indices, "weights": weights}

    def update_priorities(self, indices: np.ndarray, td_errors: np.ndarray):
        """Sets priority = |td_error| + epsilon for each sampled slot."""
        if len(indices) != len(td_errors):
            logger.error(
                f"Mismatch between indices ({len(indices)}) and TD errors ({len(td_errors)})."
            )
            return
        new_priorities = np.abs(np.asarray(td_errors, dtype=np.float64)) + self.epsilon
        for idx, priority in zip(indices, new_priorities, strict=True):
            if 0 <= idx < len(self.buffer):
                self.priorities[idx] = priority

    def clear(self):
        self.buffer.clear()
        self.priorities[:] = 0.0
        self.timestamps[:] = 0
        self._clock = 0

