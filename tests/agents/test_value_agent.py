import numpy as np
import pytest
import torch
from pytest_mock import MockerFixture

from blockpuzzle.agents import ValueAgent
from blockpuzzle.config import DQNConfig, EnvConfig, ModelConfig
from blockpuzzle.data import AgentStore
from blockpuzzle.environment import BlockPuzzleEnv, action_to_index, encode_action
from blockpuzzle.nn import NetworkEvaluationError
from blockpuzzle.utils.types import Transition
from tests.conftest import SINGLE, empty_grid, random_transition


@pytest.fixture
def agent(
    mock_env_config: EnvConfig,
    mock_model_config: ModelConfig,
    mock_dqn_config: DQNConfig,
    device: torch.device,
) -> ValueAgent:
    return ValueAgent(mock_env_config, mock_model_config, mock_dqn_config, device, seed=0)


def fill_buffer(agent: ValueAgent, env_config: EnvConfig, count: int):
    for _ in range(count):
        agent.remember(random_transition(env_config))


def test_flags_and_networks(agent: ValueAgent):
    assert agent.learns
    assert agent.needs_env
    assert set(agent.networks()) == {"online"}
    assert agent.epsilon == pytest.approx(1.0)


def test_select_action_returns_valid(agent: ValueAgent, env: BlockPuzzleEnv):
    for _ in range(10):
        assert agent.act(env) in env.get_valid_actions()
    assert agent.select_action(env, []) is None


def test_greedy_uses_masked_argmax(agent: ValueAgent, env: BlockPuzzleEnv):
    agent.set_greedy(True)
    assert agent.epsilon == 0.0
    valid = env.get_valid_actions()
    q_values = agent.online.forward(env.get_state())
    indices = [action_to_index(a, 9, 9) for a in valid]
    expected = valid[int(np.argmax(q_values[indices]))]
    assert agent.select_action(env.get_state(), valid) == expected
    # Passing the environment itself gives the same choice
    assert agent.select_action(env, valid) == expected


def test_strategic_exploration_finds_line_clear(
    mock_env_config: EnvConfig, mock_model_config: ModelConfig, env: BlockPuzzleEnv
):
    config = DQNConfig(
        EPSILON_START=1.0, LINE_COMPLETION_BIAS=1.0, STRATEGIC_TOP_K=500
    )
    agent = ValueAgent(mock_env_config, mock_model_config, config, seed=3)
    grid = empty_grid()
    grid[0][:8] = [True] * 8
    env.set_state(grid, [SINGLE])
    for _ in range(5):
        assert agent.act(env) == encode_action(0, 0, 8)


def test_initial_priority(agent: ValueAgent, mock_env_config: EnvConfig):
    base = random_transition(mock_env_config)
    assert agent.initial_priority(base._replace(reward=5.0)) == pytest.approx(5.0)
    assert agent.initial_priority(base._replace(reward=-5.0)) == pytest.approx(5.0)
    assert agent.initial_priority(base._replace(reward=2000.0)) == pytest.approx(20_000.0)
    assert agent.initial_priority(base._replace(reward=5.0, done=True)) == pytest.approx(10.0)
    assert agent.initial_priority(base._replace(reward=0.0)) > 0


def test_train_waits_for_batch(agent: ValueAgent, mock_env_config: EnvConfig):
    fill_buffer(agent, mock_env_config, agent.dqn_config.BATCH_SIZE - 1)
    assert agent.train() is None
    assert agent.training_steps == 0


def test_train_step_updates_state(agent: ValueAgent, mock_env_config: EnvConfig):
    fill_buffer(agent, mock_env_config, 20)
    epsilon = agent.epsilon
    loss = agent.train()
    assert loss is not None and np.isfinite(loss)
    assert agent.training_steps == 1
    assert agent.epsilon < epsilon
    assert agent.last_loss == loss


def test_target_sync_frequency(agent: ValueAgent, mock_env_config: EnvConfig):
    fill_buffer(agent, mock_env_config, 20)
    agent.train()
    online = agent.online.get_weights()
    target = agent.target.get_weights()
    assert any(not torch.equal(online[k], target[k]) for k in online)
    agent.train()
    online = agent.online.get_weights()
    target = agent.target.get_weights()
    assert all(torch.equal(online[k], target[k]) for k in online)


def test_epsilon_floor(
    mock_env_config: EnvConfig, mock_model_config: ModelConfig, mock_dqn_config: DQNConfig
):
    config = mock_dqn_config.model_copy(
        update={"EPSILON_START": 0.02, "EPSILON_MIN": 0.01, "EPSILON_DECAY": 0.1}
    )
    agent = ValueAgent(mock_env_config, mock_model_config, config, seed=0)
    fill_buffer(agent, mock_env_config, 20)
    for _ in range(3):
        agent.train()
    assert agent.epsilon == pytest.approx(0.01)


def test_failed_step_restores_weights(
    agent: ValueAgent, mock_env_config: EnvConfig, mocker: MockerFixture
):
    fill_buffer(agent, mock_env_config, 20)
    weights = {k: v.clone() for k, v in agent.online.get_weights().items()}
    priorities = agent.buffer.priorities.copy()
    epsilon = agent.epsilon

    def broken_fit(*args, **kwargs):
        # Corrupt the weights, then fail as a non-finite gradient would
        with torch.no_grad():
            for p in agent.online.model.parameters():
                p.add_(1.0)
        raise NetworkEvaluationError("Non-finite gradient encountered.")

    mocker.patch.object(agent.online, "fit", side_effect=broken_fit)
    assert agent.train() is None
    assert agent.failed_steps == 1
    assert agent.training_steps == 0
    assert agent.epsilon == epsilon
    assert not agent.is_training
    assert np.array_equal(agent.buffer.priorities, priorities)
    restored = agent.online.get_weights()
    assert all(torch.equal(weights[k], restored[k]) for k in weights)


def test_terminal_targets_do_not_bootstrap(agent: ValueAgent, mock_env_config: EnvConfig):
    terminal = random_transition(mock_env_config, done=True)._replace(reward=7.0)
    stuck = random_transition(mock_env_config)._replace(
        reward=-3.0, next_mask=np.zeros(mock_env_config.ACTION_DIM, dtype=bool)
    )
    _, targets, action_mask, _ = agent._compute_targets([terminal, stuck])
    rows = np.arange(2)
    actions = [action_to_index(t.action, 9, 9) for t in (terminal, stuck)]
    assert targets[rows, actions].tolist() == pytest.approx([7.0, -3.0])
    assert action_mask.sum() == 2
    assert action_mask[rows, actions].tolist() == [1.0, 1.0]


def test_bootstrap_uses_best_valid_next_action(agent: ValueAgent, mock_env_config: EnvConfig):
    transition = random_transition(mock_env_config)._replace(reward=1.0)
    next_mask = np.zeros(mock_env_config.ACTION_DIM, dtype=bool)
    next_mask[[4, 90]] = True
    transition = transition._replace(next_mask=next_mask)
    _, targets, _, _ = agent._compute_targets([transition])

    q_online = agent.online.forward(transition.next_state)
    best = [4, 90][int(np.argmax(q_online[[4, 90]]))]
    q_target = agent.target.forward(transition.next_state)[best]
    expected = 1.0 + agent.dqn_config.GAMMA * q_target
    assert targets[0, action_to_index(transition.action, 9, 9)] == pytest.approx(
        expected, rel=1e-5
    )


def test_curriculum_boost(agent: ValueAgent):
    agent._epsilon = 0.5
    agent.on_curriculum_advance()
    assert agent.epsilon == pytest.approx(0.525)
    agent._epsilon = 0.79
    agent.on_curriculum_advance()
    assert agent.epsilon == pytest.approx(0.8)


def test_checkpoint_round_trip(
    agent: ValueAgent,
    mock_env_config: EnvConfig,
    mock_model_config: ModelConfig,
    mock_dqn_config: DQNConfig,
    mock_persistence_config,
):
    fill_buffer(agent, mock_env_config, 20)
    agent.train()
    agent.end_episode(120, 55.0)
    store = AgentStore(mock_persistence_config)
    assert agent.save(store, "dqn_agent")

    fresh = ValueAgent(mock_env_config, mock_model_config, mock_dqn_config, seed=1)
    assert fresh.load(store, "dqn_agent")
    assert fresh.training_steps == 1
    assert fresh.epsilon == pytest.approx(agent.epsilon)
    assert fresh.tracker.best_score == 120
    saved = agent.online.get_weights()
    loaded = fresh.online.get_weights()
    assert all(torch.equal(saved[k], loaded[k]) for k in saved)
    # Replay memory is not persisted
    assert fresh.memory_size == 0


def test_dispose_clears_buffer(agent: ValueAgent, mock_env_config: EnvConfig):
    fill_buffer(agent, mock_env_config, 5)
    agent.dispose()
    assert agent.memory_size == 0


def test_remember_copies_transition(agent: ValueAgent, mock_env_config: EnvConfig):
    transition: Transition = random_transition(mock_env_config)
    agent.remember(transition)
    transition.state[:] = 0.0
    assert agent.buffer.buffer[0].state.any()
