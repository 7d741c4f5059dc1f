# File: blockpuzzle/agents/value_agent.py
import logging

import numpy as np
import torch

from ..config import DQNConfig, EnvConfig, ModelConfig
from ..data import AgentCheckpoint
from ..environment import BlockPuzzleEnv, actions_to_indices, decode_action
from ..nn import NetworkEvaluationError, NeuralNetwork, ValueNet
from ..rl import PrioritizedReplayBuffer
from ..utils.types import ActionType, StateVector, Transition
from .base import Agent, AgentKind, split_observation
from .scoring import strategic_score

logger = logging.getLogger(__name__)


class ValueAgent(Agent):
    """
    Double DQN over the dense action space with prioritized replay.

    The online network picks the next action, the target network values
    it. A failed gradient step restores the online network from a
    pre-step snapshot and leaves the replay priorities untouched.
    """

    kind = AgentKind.VALUE
    learns = True
    needs_env = True

    def __init__(
        self,
        env_config: EnvConfig | None = None,
        model_config: ModelConfig | None = None,
        dqn_config: DQNConfig | None = None,
        device: torch.device | None = None,
        seed: int | None = None,
    ):
        self.dqn_config = dqn_config or DQNConfig()
        super().__init__(stats_window=self.dqn_config.STATS_WINDOW)
        self.env_config = env_config or EnvConfig()
        self.model_config = model_config or ModelConfig()
        self.device = device or torch.device("cpu")
        self.rng = np.random.default_rng(seed)

        self.online = self._build_network()
        self.target = self._build_network()
        self.target.copy_weights_from(self.online)
        self.buffer = PrioritizedReplayBuffer.from_config(self.dqn_config, seed=seed)

        self._epsilon = self.dqn_config.EPSILON_START
        self.is_training = False
        self.last_loss: float | None = None
        self.failed_steps = 0

    def _build_network(self) -> NeuralNetwork:
        cfg = self.dqn_config
        return NeuralNetwork(
            ValueNet(self.model_config, self.env_config),
            self.device,
            optimizer_type=cfg.OPTIMIZER_TYPE,
            learning_rate=cfg.LEARNING_RATE,
            weight_decay=cfg.WEIGHT_DECAY,
            gradient_clip_value=cfg.GRADIENT_CLIP_VALUE,
            loss_type=cfg.LOSS_TYPE,
        )

    @property
    def epsilon(self) -> float:
        return 0.0 if self.greedy else self._epsilon

    @property
    def memory_size(self) -> int:
        return len(self.buffer)

    def _indices(self, actions: list[ActionType]) -> np.ndarray:
        return np.asarray(
            actions_to_indices(actions, self.env_config.ROWS, self.env_config.COLS),
            dtype=np.int64,
        )

    # --- Acting ---

    def _strategic_action(
        self, env: BlockPuzzleEnv, valid_actions: list[ActionType]
    ) -> ActionType:
        k = min(self.dqn_config.STRATEGIC_TOP_K, len(valid_actions))
        picks = np.sort(self.rng.choice(len(valid_actions), size=k, replace=False))
        best_action, best_score = valid_actions[picks[0]], float("-inf")
        for i in picks:
            action = valid_actions[i]
            slot, row, col = decode_action(action)
            score = strategic_score(env.board, env.tray[slot], row, col)
            if score > best_score:
                best_action, best_score = action, score
        return best_action

    def select_action(
        self,
        state_or_env: BlockPuzzleEnv | StateVector,
        valid_actions: list[ActionType],
    ) -> ActionType | None:
        if not valid_actions:
            return None
        state, env = split_observation(state_or_env)

        if not self.greedy and self.rng.random() < self._epsilon:
            if env is not None and self.rng.random() < self.dqn_config.LINE_COMPLETION_BIAS:
                return self._strategic_action(env, valid_actions)
            return valid_actions[int(self.rng.integers(len(valid_actions)))]

        q_values = self.online.forward(state)
        valid_q = q_values[self._indices(valid_actions)]
        return valid_actions[int(np.argmax(valid_q))]

    # --- Learning ---

    def initial_priority(self, transition: Transition) -> float:
        cfg = self.dqn_config
        priority = abs(float(transition.reward))
        if transition.reward > cfg.LINE_CLEAR_REWARD_THRESHOLD:
            priority *= cfg.LINE_CLEAR_PRIORITY_SCALE
        if transition.done:
            priority *= cfg.TERMINAL_PRIORITY_SCALE
        return max(priority, cfg.PER_EPSILON)

    def remember(self, transition: Transition):
        self.buffer.add(transition, self.initial_priority(transition))

    def _compute_targets(
        self, batch: list[Transition]
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Returns (states, full target rows, one-hot action mask, td errors)."""
        action_dim = int(self.env_config.ACTION_DIM)
        states = np.stack([t.state for t in batch]).astype(np.float32)
        next_states = np.stack([t.next_state for t in batch]).astype(np.float32)
        rewards = np.array([t.reward for t in batch], dtype=np.float32)
        dones = np.array([t.done for t in batch], dtype=bool)
        actions = self._indices([t.action for t in batch])
        next_masks = np.stack(
            [
                np.ones(action_dim, dtype=bool) if t.next_mask is None else t.next_mask
                for t in batch
            ]
        )
        # No legal follow-up behaves like a terminal state
        terminal = dones | ~next_masks.any(axis=1)

        rows = np.arange(len(batch))
        q_next_online = np.where(next_masks, self.online.forward(next_states), -np.inf)
        next_actions = np.argmax(q_next_online, axis=1)
        q_next_target = self.target.forward(next_states)[rows, next_actions]
        bootstrap = np.where(terminal, 0.0, q_next_target)
        y = rewards + self.dqn_config.GAMMA * bootstrap

        q_current = self.online.forward(states)
        td_errors = y - q_current[rows, actions]
        targets = q_current.copy()
        targets[rows, actions] = y
        action_mask = np.zeros_like(targets)
        action_mask[rows, actions] = 1.0
        return states, targets, action_mask, td_errors

    def train(self) -> float | None:
        if self.is_training or not self.buffer.is_ready(self.dqn_config.BATCH_SIZE):
            return None
        self.is_training = True
        snapshot = self.online.snapshot()
        try:
            sample = self.buffer.sample(self.dqn_config.BATCH_SIZE)
            if sample is None:
                return None
            states, targets, action_mask, td_errors = self._compute_targets(sample["batch"])
            loss = self.online.fit(states, targets, sample["weights"], action_mask)
        except (NetworkEvaluationError, RuntimeError, ValueError) as e:
            self.failed_steps += 1
            logger.error(f"DQN training step skipped: {e}")
            self.online.restore(snapshot)
            return None
        finally:
            self.is_training = False

        self.buffer.update_priorities(sample["indices"], td_errors)
        self.training_steps += 1
        self.last_loss = loss
        self._epsilon = max(
            self.dqn_config.EPSILON_MIN, self._epsilon * self.dqn_config.EPSILON_DECAY
        )
        if self.training_steps % self.dqn_config.TARGET_UPDATE_FREQ == 0:
            self.sync_target()
        return loss

    def sync_target(self):
        if self.dqn_config.TARGET_UPDATE_MODE == "soft":
            self.target.soft_update_from(self.online, self.dqn_config.TAU)
        else:
            self.target.copy_weights_from(self.online)
        logger.debug(
            f"Target network synced ({self.dqn_config.TARGET_UPDATE_MODE}) at step {self.training_steps}"
        )

    def on_curriculum_advance(self):
        boosted = min(
            self._epsilon * self.dqn_config.CURRICULUM_EPSILON_BOOST,
            self.dqn_config.CURRICULUM_EPSILON_CAP,
        )
        logger.info(f"Curriculum advanced: epsilon {self._epsilon:.4f} -> {boosted:.4f}")
        self._epsilon = boosted

    def networks(self) -> dict[str, NeuralNetwork]:
        return {"online": self.online}

    def dispose(self):
        self.buffer.clear()

    # --- Persistence ---

    def to_checkpoint(self) -> AgentCheckpoint:
        checkpoint = super().to_checkpoint()
        checkpoint.network_states = {
            "online": self.online.get_weights(),
            "target": self.target.get_weights(),
        }
        checkpoint.optimizer_states = {"online": self.online.get_optimizer_state()}
        checkpoint.scalars["epsilon"] = self._epsilon
        return checkpoint

    def load_checkpoint(self, checkpoint: AgentCheckpoint):
        super().load_checkpoint(checkpoint)
        self.online.set_weights(checkpoint.network_states["online"])
        self.target.set_weights(
            checkpoint.network_states.get("target", checkpoint.network_states["online"])
        )
        if "online" in checkpoint.optimizer_states:
            self.online.set_optimizer_state(checkpoint.optimizer_states["online"])
        self._epsilon = float(checkpoint.scalars.get("epsilon", self._epsilon))
