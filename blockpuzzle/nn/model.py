# File: blockpuzzle/nn/model.py
import torch
import torch.nn as nn

from ..config import EnvConfig, ModelConfig


def build_mlp(
    input_dim: int,
    hidden_dims: list[int],
    output_dim: int,
    activation: type[nn.Module],
    dropout: float = 0.0,
    input_batch_norm: bool = False,
) -> nn.Sequential:
    """Creates a fully connected stack ending in a linear output layer."""
    layers: list[nn.Module] = []
    if input_batch_norm:
        layers.append(nn.BatchNorm1d(input_dim))
    in_features = input_dim
    for hidden_dim in hidden_dims:
        layers.append(nn.Linear(in_features, hidden_dim))
        layers.append(activation())
        if dropout > 0:
            layers.append(nn.Dropout(dropout))
        in_features = hidden_dim
    layers.append(nn.Linear(in_features, output_dim))
    return nn.Sequential(*layers)


class ValueNet(nn.Module):
    """Q-network: state vector -> one value per dense action index."""

    def __init__(self, model_config: ModelConfig, env_config: EnvConfig):
        super().__init__()
        self.model_config = model_config
        self.env_config = env_config
        self.input_dim = int(env_config.STATE_SIZE)
        self.action_dim = int(env_config.ACTION_DIM)

        activation_cls: type[nn.Module] = getattr(nn, model_config.ACTIVATION_FUNCTION)
        self.body = build_mlp(
            self.input_dim,
            model_config.HIDDEN_DIMS,
            self.action_dim,
            activation_cls,
            dropout=model_config.DROPOUT,
            input_batch_norm=model_config.USE_BATCH_NORM,
        )

    def forward(self, state: torch.Tensor) -> torch.Tensor:
        return self.body(state)


class PolicyNet(nn.Module):
    """Policy network: state vector -> logits over dense action indices."""

    def __init__(self, model_config: ModelConfig, env_config: EnvConfig):
        super().__init__()
        self.model_config = model_config
        self.env_config = env_config
        self.input_dim = int(env_config.STATE_SIZE)
        self.action_dim = int(env_config.ACTION_DIM)

        activation_cls: type[nn.Module] = getattr(nn, model_config.ACTIVATION_FUNCTION)
        self.body = build_mlp(
            self.input_dim,
            model_config.POLICY_HIDDEN_DIMS,
            self.action_dim,
            activation_cls,
            dropout=model_config.POLICY_DROPOUT,
        )

    def forward(self, state: torch.Tensor) -> torch.Tensor:
        return self.body(state)
