import numpy as np
import pytest
import torch

from blockpuzzle.config import EnvConfig, ModelConfig
from blockpuzzle.nn import NetworkEvaluationError, NeuralNetwork, ValueNet

# Use module-level rng from tests/conftest.py
from tests.conftest import rng


@pytest.fixture
def network(
    mock_model_config: ModelConfig, mock_env_config: EnvConfig, device: torch.device
) -> NeuralNetwork:
    return NeuralNetwork(
        ValueNet(mock_model_config, mock_env_config),
        device,
        learning_rate=1e-2,
        gradient_clip_value=1.0,
        loss_type="huber",
    )


@pytest.fixture
def states(mock_env_config: EnvConfig) -> np.ndarray:
    return rng.random((6, mock_env_config.STATE_SIZE), dtype=np.float32)


def test_forward_single_and_batch(
    network: NeuralNetwork, states: np.ndarray, mock_env_config: EnvConfig
):
    single = network.forward(states[0])
    batch = network.forward(states)
    assert single.shape == (mock_env_config.ACTION_DIM,)
    assert batch.shape == (6, mock_env_config.ACTION_DIM)
    assert np.allclose(single, batch[0], atol=1e-5)


def test_forward_rejects_non_finite(network: NeuralNetwork, states: np.ndarray):
    bad = states.copy()
    bad[0, 0] = np.nan
    with pytest.raises(NetworkEvaluationError):
        network.forward(bad)


def test_fit_reduces_masked_loss(network: NeuralNetwork, states: np.ndarray):
    targets = network.forward(states)
    mask = np.zeros_like(targets)
    mask[:, 5] = 1.0
    targets[:, 5] += 10.0
    first = network.fit(states, targets, mask=mask)
    for _ in range(30):
        last = network.fit(states, targets, mask=mask)
    assert last < first


def test_fit_with_weights(network: NeuralNetwork, states: np.ndarray):
    targets = network.forward(states) + 1.0
    weights = np.ones(len(states), dtype=np.float32)
    loss = network.fit(states, targets, weights=weights)
    assert np.isfinite(loss)


def test_non_finite_loss_leaves_weights(network: NeuralNetwork, states: np.ndarray):
    before = {k: v.clone() for k, v in network.get_weights().items()}
    targets = network.forward(states)
    targets[0, 0] = np.inf
    with pytest.raises(NetworkEvaluationError):
        network.fit(states, targets)
    after = network.get_weights()
    for key, value in before.items():
        assert torch.equal(value, after[key])


def test_snapshot_restore(network: NeuralNetwork, states: np.ndarray):
    snapshot = network.snapshot()
    reference = network.forward(states)
    network.fit(states, reference + 5.0)
    assert not np.allclose(network.forward(states), reference)
    network.restore(snapshot)
    assert np.allclose(network.forward(states), reference, atol=1e-6)


def test_get_set_weights(
    network: NeuralNetwork,
    mock_model_config: ModelConfig,
    mock_env_config: EnvConfig,
    device: torch.device,
    states: np.ndarray,
):
    other = NeuralNetwork(ValueNet(mock_model_config, mock_env_config), device)
    other.set_weights(network.get_weights())
    assert np.allclose(other.forward(states), network.forward(states), atol=1e-6)


def test_soft_update(
    network: NeuralNetwork,
    mock_model_config: ModelConfig,
    mock_env_config: EnvConfig,
    device: torch.device,
):
    target = NeuralNetwork(ValueNet(mock_model_config, mock_env_config), device)
    source_w = {k: v.clone() for k, v in network.get_weights().items()}
    target_w = {k: v.clone() for k, v in target.get_weights().items()}
    target.soft_update_from(network, 0.25)
    updated = target.get_weights()
    for key in updated:
        expected = 0.25 * source_w[key] + 0.75 * target_w[key]
        assert torch.allclose(updated[key], expected, atol=1e-6)

    target.soft_update_from(network, 1.0)
    for key, value in target.get_weights().items():
        assert torch.allclose(value, source_w[key], atol=1e-6)


def test_optimizer_state_round_trip(network: NeuralNetwork, states: np.ndarray):
    network.fit(states, network.forward(states) + 1.0)
    state = network.get_optimizer_state()
    network.set_optimizer_state(state)
    assert network.get_optimizer_state()["state"]


def test_unsupported_optimizer(
    mock_model_config: ModelConfig, mock_env_config: EnvConfig, device: torch.device
):
    with pytest.raises(ValueError):
        NeuralNetwork(
            ValueNet(mock_model_config, mock_env_config), device, optimizer_type="Foo"
        )
