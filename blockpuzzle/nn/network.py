# File: blockpuzzle/nn/network.py
import copy
import logging
from typing import Any

import numpy as np
import torch
import torch.nn as nn
import torch.nn.functional as F
import torch.optim as optim

logger = logging.getLogger(__name__)


class NetworkEvaluationError(Exception):
    """Custom exception for errors during network evaluation or fitting."""

    pass


class NeuralNetwork:
    """
    Approximator wrapper around a torch module.
    Exposes forward / fit / get_weights / set_weights and owns the optimizer.
    """

    def __init__(
        self,
        model: nn.Module,
        device: torch.device,
        optimizer_type: str = "Adam",
        learning_rate: float = 1e-3,
        weight_decay: float = 0.0,
        gradient_clip_value: float | None = None,
        loss_type: str = "mse",
    ):
        self.device = device
        self.model = model.to(device)
        self.gradient_clip_value = gradient_clip_value
        self.loss_type = loss_type
        self.optimizer = self._create_optimizer(optimizer_type, learning_rate, weight_decay)
        self.model.eval()

    def _create_optimizer(
        self, optimizer_type: str, learning_rate: float, weight_decay: float
    ) -> optim.Optimizer:
        params = self.model.parameters()
        if optimizer_type == "Adam":
            return optim.Adam(params, lr=learning_rate, weight_decay=weight_decay)
        if optimizer_type == "AdamW":
            return optim.AdamW(params, lr=learning_rate, weight_decay=weight_decay)
        if optimizer_type == "SGD":
            return optim.SGD(
                params, lr=learning_rate, weight_decay=weight_decay, momentum=0.9
            )
        raise ValueError(f"Unsupported optimizer type: {optimizer_type}")

    def _to_tensor(self, array: np.ndarray, dtype=torch.float32) -> torch.Tensor:
        return torch.as_tensor(np.asarray(array), dtype=dtype, device=self.device)

    def forward(self, inputs: np.ndarray) -> np.ndarray:
        """Evaluates a batch (or a single vector) in inference mode."""
        batch = np.asarray(inputs, dtype=np.float32)
        single = batch.ndim == 1
        if single:
            batch = batch[np.newaxis, :]
        self.model.eval()
        with torch.no_grad():
            outputs = self.model(self._to_tensor(batch))
        result = outputs.cpu().numpy()
        if not np.all(np.isfinite(result)):
            raise NetworkEvaluationError("Non-finite values in network output.")
        return result[0] if single else result

    def optimize(self, loss: torch.Tensor) -> float:
        """
        Applies one gradient step for `loss`. Raises before touching the weights
        when the loss or any gradient is non-finite.
        """
        if not torch.isfinite(loss):
            raise NetworkEvaluationError(f"Non-finite loss: {loss.item()}")
        self.optimizer.zero_grad()
        loss.backward()
        for p in self.model.parameters():
            if p.grad is not None and not torch.isfinite(p.grad).all():
                self.optimizer.zero_grad()
                raise NetworkEvaluationError("Non-finite gradient encountered.")
        if self.gradient_clip_value is not None:
            nn.utils.clip_grad_norm_(self.model.parameters(), self.gradient_clip_value)
        self.optimizer.step()
        return float(loss.item())

    def fit(
        self,
        inputs: np.ndarray,
        targets: np.ndarray,
        weights: np.ndarray | None = None,
        mask: np.ndarray | None = None,
    ) -> float:
        """
        One weighted regression step towards `targets`.
        `mask` restricts the loss to selected outputs (e.g. the taken action);
        `weights` scales each sample's loss (importance sampling).
        Returns the scalar loss.
        """
        x = self._to_tensor(inputs)
        y = self._to_tensor(targets)
        # Batch norm cannot normalize a single sample in training mode
        self.model.train(x.shape[0] > 1)
        try:
            predictions = self.model(x)
            if self.loss_type == "huber":
                elementwise = F.smooth_l1_loss(predictions, y, reduction="none")
            else:
                elementwise = F.mse_loss(predictions, y, reduction="none")
            if mask is not None:
                m = self._to_tensor(mask)
                per_sample = (elementwise * m).sum(dim=1) / m.sum(dim=1).clamp(min=1.0)
            else:
                per_sample = elementwise.mean(dim=1)
            if weights is not None:
                w = self._to_tensor(weights)
                loss = (per_sample * w).mean()
            else:
                loss = per_sample.mean()
            return self.optimize(loss)
        finally:
            self.model.eval()

    def get_weights(self) -> dict[str, torch.Tensor]:
        """Returns the model's state dictionary, moved to CPU."""
        return {k: v.cpu() for k, v in self.model.state_dict().items()}

    def set_weights(self, weights: dict[str, torch.Tensor]):
        """Loads weights from a state dictionary onto the correct device."""
        try:
            weights_on_device = {k: v.to(self.device) for k, v in weights.items()}
            self.model.load_state_dict(weights_on_device)
            self.model.eval()
            logger.debug("NN weights set successfully.")
        except Exception as e:
            logger.error(f"Error setting weights on NN instance: {e}", exc_info=True)
            raise

    def get_optimizer_state(self) -> dict[str, Any]:
        return self.optimizer.state_dict()

    def set_optimizer_state(self, state: dict[str, Any]):
        self.optimizer.load_state_dict(state)
        # Ensure optimizer state is on the correct device
        for param_state in self.optimizer.state.values():
            for k, v in param_state.items():
                if isinstance(v, torch.Tensor):
                    param_state[k] = v.to(self.device)

    def snapshot(self) -> tuple[dict[str, Any], dict[str, Any]]:
        """Deep copy of model and optimizer state for all-or-nothing updates."""
        return (
            copy.deepcopy(self.model.state_dict()),
            copy.deepcopy(self.optimizer.state_dict()),
        )

    def restore(self, snapshot: tuple[dict[str, Any], dict[str, Any]]):
        model_state, optimizer_state = snapshot
        self.model.load_state_dict(model_state)
        self.optimizer.load_state_dict(optimizer_state)
        self.model.eval()

    def copy_weights_from(self, other: "NeuralNetwork"):
        """Hard update: this <- other."""
        self.model.load_state_dict(other.model.state_dict())

    def soft_update_from(self, other: "NeuralNetwork", tau: float):
        """Polyak update: this <- tau * other + (1 - tau) * this."""
        with torch.no_grad():
            for target_p, source_p in zip(
                self.model.parameters(), other.model.parameters(), strict=True
            ):
                target_p.mul_(1.0 - tau).add_(source_p, alpha=tau)
            # Batch-norm running stats are copied, not averaged
            for target_b, source_b in zip(
                self.model.buffers(), other.model.buffers(), strict=True
            ):
                target_b.copy_(source_b)
