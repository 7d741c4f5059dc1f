# File: blockpuzzle/agents/policy_gradient.py
import logging

import numpy as np
import torch
import torch.nn.functional as F

from ..config import EnvConfig, ModelConfig, PolicyGradientConfig
from ..data import AgentCheckpoint
from ..environment import BlockPuzzleEnv, actions_to_indices, index_to_action
from ..nn import NetworkEvaluationError, NeuralNetwork, PolicyNet
from ..utils.types import ActionType, StateVector, Transition
from .base import Agent, AgentKind, split_observation

logger = logging.getLogger(__name__)

# Finite stand-in for -inf so masked entries keep zero probability and finite grads
MASKED_LOGIT = -1e9


def masked_softmax(logits: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """Softmax restricted to `mask`; uniform over the mask if it degenerates."""
    masked = np.where(mask, logits.astype(np.float64), -np.inf)
    shifted = masked - masked[mask].max()
    weights = np.exp(shifted)
    total = weights.sum()
    if not np.isfinite(total) or total <= 0:
        return mask / mask.sum()
    return weights / total


def discounted_returns(rewards: list[float], gamma: float) -> np.ndarray:
    returns = np.zeros(len(rewards), dtype=np.float32)
    running = 0.0
    for i in reversed(range(len(rewards))):
        running = rewards[i] + gamma * running
        returns[i] = running
    return returns


class PolicyGradientAgent(Agent):
    """
    REINFORCE with an entropy bonus. Log-probabilities are recomputed from
    the stored (state, action, mask) triples when the episode ends, so only
    plain arrays are kept per step.
    """

    kind = AgentKind.POLICY_GRADIENT
    learns = True
    needs_env = False

    def __init__(
        self,
        env_config: EnvConfig | None = None,
        model_config: ModelConfig | None = None,
        pg_config: PolicyGradientConfig | None = None,
        device: torch.device | None = None,
        seed: int | None = None,
    ):
        self.pg_config = pg_config or PolicyGradientConfig()
        super().__init__(stats_window=self.pg_config.STATS_WINDOW)
        self.env_config = env_config or EnvConfig()
        self.model_config = model_config or ModelConfig()
        self.device = device or torch.device("cpu")
        self.rng = np.random.default_rng(seed)

        self.policy = NeuralNetwork(
            PolicyNet(self.model_config, self.env_config),
            self.device,
            optimizer_type="Adam",
            learning_rate=self.pg_config.LEARNING_RATE,
            gradient_clip_value=self.pg_config.GRADIENT_CLIP_VALUE,
        )
        self.baseline: float | None = None
        self.is_training = False
        self.last_loss: float | None = None

        self._pending: tuple[StateVector, int, np.ndarray] | None = None
        self._states: list[StateVector] = []
        self._indices: list[int] = []
        self._masks: list[np.ndarray] = []
        self._rewards: list[float] = []

    @property
    def memory_size(self) -> int:
        return len(self._rewards)

    def _valid_mask(self, valid_actions: list[ActionType]) -> np.ndarray:
        mask = np.zeros(int(self.env_config.ACTION_DIM), dtype=bool)
        mask[actions_to_indices(valid_actions, self.env_config.ROWS, self.env_config.COLS)] = True
        return mask

    def action_probabilities(
        self, state: StateVector, valid_actions: list[ActionType]
    ) -> np.ndarray:
        """Probabilities over the dense action space, zero outside `valid_actions`."""
        mask = self._valid_mask(valid_actions)
        return masked_softmax(self.policy.forward(state), mask)

    def select_action(
        self,
        state_or_env: BlockPuzzleEnv | StateVector,
        valid_actions: list[ActionType],
    ) -> ActionType | None:
        if not valid_actions:
            return None
        state, _ = split_observation(state_or_env)
        mask = self._valid_mask(valid_actions)
        probs = masked_softmax(self.policy.forward(state), mask)
        if self.greedy:
            index = int(np.argmax(probs))
        else:
            index = int(self.rng.choice(len(probs), p=probs))
            self._pending = (state, index, mask)
        return index_to_action(index, self.env_config.ROWS, self.env_config.COLS)

    def remember(self, transition: Transition):
        index = actions_to_indices(
            [transition.action], self.env_config.ROWS, self.env_config.COLS
        )[0]
        if self._pending is not None and self._pending[1] == index:
            _, _, mask = self._pending
        else:
            # Experience from outside select_action: only the taken action is known valid
            mask = np.zeros(int(self.env_config.ACTION_DIM), dtype=bool)
            mask[index] = True
        self._pending = None
        self._states.append(np.asarray(transition.state, dtype=np.float32))
        self._indices.append(index)
        self._masks.append(mask)
        self._rewards.append(float(transition.reward))

    def _advantages(self, returns: np.ndarray) -> np.ndarray:
        cfg = self.pg_config
        if cfg.USE_BASELINE:
            mean_return = float(returns.mean())
            if self.baseline is None:
                self.baseline = mean_return
            advantages = returns - self.baseline
            self.baseline = (
                cfg.BASELINE_MOMENTUM * self.baseline
                + (1.0 - cfg.BASELINE_MOMENTUM) * mean_return
            )
            return advantages
        std = float(returns.std())
        if len(returns) > 1 and std > 1e-8:
            return (returns - returns.mean()) / std
        return returns - returns.mean()

    def train(self) -> float | None:
        """One REINFORCE update over the stored episode, which is then cleared."""
        # Updates happen once the episode is complete
        if self.is_training or self.tracker.in_episode or not self._rewards:
            return None
        self.is_training = True
        snapshot = self.policy.snapshot()
        try:
            returns = discounted_returns(self._rewards, self.pg_config.GAMMA)
            advantages = torch.as_tensor(self._advantages(returns), device=self.device)
            states = torch.as_tensor(np.stack(self._states), device=self.device)
            actions = torch.as_tensor(self._indices, dtype=torch.long, device=self.device)
            masks = torch.as_tensor(np.stack(self._masks), device=self.device)

            self.policy.model.train()
            logits = self.policy.model(states).masked_fill(~masks, MASKED_LOGIT)
            log_probs = F.log_softmax(logits, dim=1)
            chosen = log_probs.gather(1, actions.unsqueeze(1)).squeeze(1)
            entropy = -(log_probs.exp() * log_probs).sum(dim=1)
            loss = -(chosen * advantages).mean() - self.pg_config.ENTROPY_COEF * entropy.mean()
            loss_value = self.policy.optimize(loss)
        except (NetworkEvaluationError, RuntimeError) as e:
            logger.error(f"Policy update skipped: {e}")
            self.policy.restore(snapshot)
            return None
        finally:
            self.policy.model.eval()
            self.is_training = False
            self._clear_episode()

        self.training_steps += 1
        self.last_loss = loss_value
        return loss_value

    def _clear_episode(self):
        self._pending = None
        self._states.clear()
        self._indices.clear()
        self._masks.clear()
        self._rewards.clear()

    def start_episode(self):
        super().start_episode()
        self._clear_episode()

    def end_episode(self, score: float, shaped_reward: float = 0.0):
        super().end_episode(score, shaped_reward)
        if not self.greedy:
            loss = self.train()
            if loss is not None:
                logger.debug(f"Policy update {self.training_steps}: loss {loss:.4f}")
        self._clear_episode()

    def networks(self) -> dict[str, NeuralNetwork]:
        return {"policy": self.policy}

    def dispose(self):
        self._clear_episode()

    # --- Persistence ---

    def to_checkpoint(self) -> AgentCheckpoint:
        checkpoint = super().to_checkpoint()
        checkpoint.network_states = {"policy": self.policy.get_weights()}
        checkpoint.optimizer_states = {"policy": self.policy.get_optimizer_state()}
        checkpoint.scalars["baseline"] = self.baseline
        return checkpoint

    def load_checkpoint(self, checkpoint: AgentCheckpoint):
        super().load_checkpoint(checkpoint)
        self.policy.set_weights(checkpoint.network_states["policy"])
        if "policy" in checkpoint.optimizer_states:
            self.policy.set_optimizer_state(checkpoint.optimizer_states["policy"])
        baseline = checkpoint.scalars.get("baseline")
        self.baseline = None if baseline is None else float(baseline)
