import pytest
from pytest_mock import MockerFixture

from blockpuzzle.config import (
    DQNConfig,
    EnvConfig,
    HeuristicConfig,
    MCTSConfig,
    ModelConfig,
    PersistenceConfig,
    TrainConfig,
)
from blockpuzzle.training import (
    TrainingComponents,
    TrainingLoop,
    count_parameters,
    setup_training_components,
)


@pytest.fixture
def short_env_config() -> EnvConfig:
    return EnvConfig(MAX_STEPS_PER_EPISODE=15)


@pytest.fixture
def config_overrides(
    short_env_config: EnvConfig,
    mock_model_config: ModelConfig,
    mock_dqn_config: DQNConfig,
    mock_mcts_config: MCTSConfig,
    mock_heuristic_config: HeuristicConfig,
) -> dict:
    return {
        "Environment": short_env_config,
        "Model": mock_model_config,
        "DQN": mock_dqn_config,
        "MCTS": mock_mcts_config,
        "Heuristic": mock_heuristic_config,
    }


def make_train_config(agent_kind: str, **updates) -> TrainConfig:
    values = {
        "RUN_NAME": f"loop_test_{agent_kind}",
        "AGENT_KIND": agent_kind,
        "DEVICE": "cpu",
        "RANDOM_SEED": 7,
        "NUM_EPISODES": 2,
        "TRAIN_EVERY_STEPS": 1,
        "LOG_INTERVAL_EPISODES": 1,
        "CHECKPOINT_SAVE_FREQ_EPISODES": 1,
        "AUTO_RESUME": False,
    }
    values.update(updates)
    return TrainConfig(**values)


@pytest.fixture
def dqn_components(
    mock_persistence_config: PersistenceConfig, config_overrides: dict
) -> TrainingComponents:
    components = setup_training_components(
        make_train_config("dqn"),
        mock_persistence_config,
        config_overrides,
        validate=False,
    )
    assert components is not None
    return components


def test_setup_builds_components(dqn_components: TrainingComponents):
    assert dqn_components.agent.kind.value == "dqn"
    assert dqn_components.env.env_config.MAX_STEPS_PER_EPISODE == 15
    assert dqn_components.persist_config.RUN_NAME == "loop_test_dqn"
    online = dqn_components.agent.networks()["online"]
    total, trainable = count_parameters(online.model)
    assert total == trainable > 0


def test_setup_with_validation(
    mock_persistence_config: PersistenceConfig,
    config_overrides: dict,
    capsys: pytest.CaptureFixture,
):
    components = setup_training_components(
        make_train_config("heuristic"), mock_persistence_config, config_overrides
    )
    assert components is not None
    assert components.agent.kind.value == "heuristic"
    assert "Configuration Validation & Summary" in capsys.readouterr().out


def test_setup_failure_returns_none(
    mock_persistence_config: PersistenceConfig, mocker: MockerFixture
):
    mocker.patch(
        "blockpuzzle.training.setup.create_agent", side_effect=RuntimeError("boom")
    )
    assert (
        setup_training_components(
            make_train_config("dqn"), mock_persistence_config, validate=False
        )
        is None
    )


def test_run_episode_dqn(dqn_components: TrainingComponents):
    loop = TrainingLoop(dqn_components)
    summary = loop.run_episode()
    assert summary.episode == 1
    assert 1 <= summary.steps <= 15
    assert loop.global_step == summary.steps
    assert summary.score == dqn_components.env.score
    assert summary.lines_cleared == dqn_components.env.lines_cleared_total
    assert dqn_components.agent.memory_size == summary.steps
    if summary.steps >= dqn_components.dqn_config.BATCH_SIZE:
        assert summary.mean_loss is not None
    assert dqn_components.agent.get_stats()["episodes"] == 1


def test_run_episode_heuristic(
    mock_persistence_config: PersistenceConfig, config_overrides: dict
):
    components = setup_training_components(
        make_train_config("heuristic"),
        mock_persistence_config,
        config_overrides,
        validate=False,
    )
    assert components is not None
    loop = TrainingLoop(components)
    summary = loop.run_episode()
    assert summary.steps >= 1
    assert summary.mean_loss is None
    assert components.agent.memory_size == 0


def test_run_completes_and_saves(dqn_components: TrainingComponents):
    loop = TrainingLoop(dqn_components)
    loop.run()
    assert loop.training_complete
    assert loop.training_exception is None
    assert loop.episodes_played == 2
    assert loop.last_summary is not None and loop.last_summary.episode == 2

    saved = dqn_components.store.load("loop_test_dqn")
    assert saved is not None
    assert saved.kind == "dqn"
    assert saved.scalars["episodes_played"] == 2
    assert saved.scalars["global_step"] == loop.global_step
    assert saved.curriculum_state is not None


def test_heuristic_does_not_save(
    mock_persistence_config: PersistenceConfig, config_overrides: dict
):
    components = setup_training_components(
        make_train_config("heuristic", NUM_EPISODES=1),
        mock_persistence_config,
        config_overrides,
        validate=False,
    )
    assert components is not None
    loop = TrainingLoop(components)
    loop.run()
    assert loop.training_complete
    assert not loop.save_checkpoint()
    assert components.store.list_keys() == []


def test_request_stop(dqn_components: TrainingComponents):
    loop = TrainingLoop(dqn_components)
    loop.request_stop()
    loop.run()
    assert loop.episodes_played == 0
    assert not loop.training_complete


def test_exception_is_recorded(dqn_components: TrainingComponents, mocker: MockerFixture):
    loop = TrainingLoop(dqn_components)
    mocker.patch.object(loop, "run_episode", side_effect=RuntimeError("broken episode"))
    loop.run()
    assert isinstance(loop.training_exception, RuntimeError)
    assert not loop.training_complete


def test_build_checkpoint(dqn_components: TrainingComponents):
    loop = TrainingLoop(dqn_components)
    loop.set_initial_state(global_step=40, episodes_played=3)
    checkpoint = loop.build_checkpoint()
    assert checkpoint.scalars["global_step"] == 40
    assert checkpoint.scalars["episodes_played"] == 3
    assert checkpoint.curriculum_state == dqn_components.env.curriculum.to_dict()
    assert {"online", "target"} <= set(checkpoint.network_states)


def test_metrics_logged_only_with_active_run(
    dqn_components: TrainingComponents, mocker: MockerFixture
):
    mock_mlflow = mocker.patch("blockpuzzle.training.loop.mlflow")
    loop = TrainingLoop(dqn_components)
    summary = loop.run_episode()

    mock_mlflow.active_run.return_value = None
    loop._log_metrics(summary)
    mock_mlflow.log_metrics.assert_not_called()

    mock_mlflow.active_run.return_value = mocker.MagicMock()
    loop._log_metrics(summary)
    mock_mlflow.log_metrics.assert_called_once()
    metrics = mock_mlflow.log_metrics.call_args.args[0]
    assert metrics["Episode/Score"] == float(summary.score)
    assert "Agent/Epsilon" in metrics
    assert mock_mlflow.log_metrics.call_args.kwargs["step"] == summary.episode
