import pytest

from blockpuzzle.agents import AgentKind, HeuristicAgent, ValueAgent
from blockpuzzle.config import (
    DQNConfig,
    EnvConfig,
    HeuristicConfig,
    ModelConfig,
    RewardConfig,
)
from blockpuzzle.environment import BlockPuzzleEnv
from blockpuzzle.training import (
    EvaluationResult,
    compare_algorithms,
    evaluate_agent,
    play_episode,
)


@pytest.fixture
def heuristic(mock_heuristic_config: HeuristicConfig) -> HeuristicAgent:
    return HeuristicAgent(mock_heuristic_config)


@pytest.fixture
def value_agent(
    mock_env_config: EnvConfig, mock_model_config: ModelConfig, mock_dqn_config: DQNConfig
) -> ValueAgent:
    return ValueAgent(mock_env_config, mock_model_config, mock_dqn_config, seed=3)


def test_evaluation_result_properties():
    result = EvaluationResult(kind="heuristic")
    assert result.episodes == 0
    assert result.mean_score == 0.0
    assert result.best_score == 0
    result.scores.extend([100, 300])
    result.lines_cleared.extend([1, 3])
    result.steps.extend([10, 20])
    assert result.episodes == 2
    assert result.mean_score == pytest.approx(200.0)
    assert result.best_score == 300
    assert result.mean_lines == pytest.approx(2.0)
    assert result.mean_steps == pytest.approx(15.0)


def test_play_episode_restores_greedy_flag(
    value_agent: ValueAgent, env: BlockPuzzleEnv
):
    assert not value_agent.greedy
    score, lines, steps = play_episode(env, value_agent, max_steps=5)
    assert not value_agent.greedy
    assert 1 <= steps <= 5
    assert score == env.score
    assert lines >= 0
    assert value_agent.memory_size == 0

    value_agent.set_greedy(True)
    play_episode(env, value_agent, max_steps=2)
    assert value_agent.greedy


def test_play_episode_runs_to_game_over(heuristic: HeuristicAgent):
    env = BlockPuzzleEnv(EnvConfig(MAX_STEPS_PER_EPISODE=30), RewardConfig(), seed=5)
    _, _, steps = play_episode(env, heuristic)
    assert env.is_over()
    assert steps <= 30


def test_evaluate_agent_collects_episodes(heuristic: HeuristicAgent):
    result = evaluate_agent(
        heuristic, 3, env_config=EnvConfig(MAX_STEPS_PER_EPISODE=10), seed=1
    )
    assert result.kind == "heuristic"
    assert result.episodes == 3
    assert len(result.lines_cleared) == len(result.steps) == 3
    assert all(1 <= s <= 10 for s in result.steps)


def test_evaluate_is_reproducible_with_seed(heuristic: HeuristicAgent):
    config = EnvConfig(MAX_STEPS_PER_EPISODE=12)
    first = evaluate_agent(heuristic, 2, env_config=config, seed=11)
    second = evaluate_agent(heuristic, 2, env_config=config, seed=11)
    assert first.scores == second.scores
    assert first.steps == second.steps


def test_compare_algorithms():
    results = compare_algorithms(
        kinds=[AgentKind.HEURISTIC, "policy_gradient"],
        episodes=2,
        seed=4,
        max_steps=6,
    )
    assert set(results) == {"heuristic", "policy_gradient"}
    for kind, result in results.items():
        assert result.kind == kind
        assert result.episodes == 2
        assert all(1 <= s <= 6 for s in result.steps)
