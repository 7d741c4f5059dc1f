import pytest

from blockpuzzle.agents import (
    ALGORITHM_INFO,
    AgentKind,
    HeuristicAgent,
    PolicyGradientAgent,
    TreeSearchAgent,
    ValueAgent,
    available_algorithms,
    create_agent,
)
from blockpuzzle.config import EnvConfig, ModelConfig


@pytest.mark.parametrize(
    "kind, expected",
    [
        (AgentKind.VALUE, ValueAgent),
        (AgentKind.TREE_SEARCH, TreeSearchAgent),
        (AgentKind.POLICY_GRADIENT, PolicyGradientAgent),
        (AgentKind.HEURISTIC, HeuristicAgent),
    ],
    ids=["dqn", "mcts", "policy_gradient", "heuristic"],
)
def test_create_agent(
    kind: AgentKind, expected: type, mock_env_config: EnvConfig, mock_model_config: ModelConfig
):
    agent = create_agent(kind, env_config=mock_env_config, model_config=mock_model_config, seed=0)
    assert isinstance(agent, expected)
    assert agent.kind is kind
    assert agent.learns == ALGORITHM_INFO[kind]["learns"]


def test_create_agent_from_string(mock_model_config: ModelConfig):
    agent = create_agent("heuristic")
    assert isinstance(agent, HeuristicAgent)
    agent = create_agent("dqn", model_config=mock_model_config)
    assert isinstance(agent, ValueAgent)


def test_unknown_kind():
    with pytest.raises(ValueError, match="Unknown agent kind"):
        create_agent("alphazero")


def test_available_algorithms():
    kinds = available_algorithms()
    assert set(kinds) == set(AgentKind)
    for kind in kinds:
        info = ALGORITHM_INFO[kind]
        assert {"name", "description", "strengths", "complexity", "learns"} <= set(info)
