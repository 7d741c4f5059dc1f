# File: blockpuzzle/agents/factory.py
import logging
from typing import Any

import torch

from ..config import (
    DQNConfig,
    EnvConfig,
    HeuristicConfig,
    MCTSConfig,
    ModelConfig,
    PolicyGradientConfig,
)
from .base import Agent, AgentKind
from .heuristic import HeuristicAgent
from .policy_gradient import PolicyGradientAgent
from .tree_search import TreeSearchAgent
from .value_agent import ValueAgent

logger = logging.getLogger(__name__)

ALGORITHM_INFO: dict[AgentKind, dict[str, Any]] = {
    AgentKind.VALUE: {
        "name": "Double DQN",
        "description": "Value learning with prioritized replay and a target network.",
        "strengths": ["Sample efficient", "Learns long-term value"],
        "complexity": "high",
        "learns": True,
    },
    AgentKind.TREE_SEARCH: {
        "name": "Monte Carlo Tree Search",
        "description": "UCB1 tree search with heuristic rollouts on cloned games.",
        "strengths": ["No training required", "Robust under noisy rollouts"],
        "complexity": "high",
        "learns": False,
    },
    AgentKind.POLICY_GRADIENT: {
        "name": "Policy Gradient (REINFORCE)",
        "description": "Direct policy optimization over masked action probabilities.",
        "strengths": ["Handles large action spaces", "Stochastic policy"],
        "complexity": "medium",
        "learns": True,
    },
    AgentKind.HEURISTIC: {
        "name": "Heuristic",
        "description": "Hand-crafted placement scoring with shallow lookahead.",
        "strengths": ["Very fast", "Interpretable decisions"],
        "complexity": "low",
        "learns": False,
    },
}


def available_algorithms() -> list[AgentKind]:
    return list(ALGORITHM_INFO)


def create_agent(
    kind: AgentKind | str,
    env_config: EnvConfig | None = None,
    model_config: ModelConfig | None = None,
    dqn_config: DQNConfig | None = None,
    mcts_config: MCTSConfig | None = None,
    pg_config: PolicyGradientConfig | None = None,
    heuristic_config: HeuristicConfig | None = None,
    device: torch.device | None = None,
    seed: int | None = None,
) -> Agent:
    """Builds the agent variant tagged by `kind` (an AgentKind or its value)."""
    try:
        agent_kind = AgentKind(kind)
    except ValueError as e:
        valid = ", ".join(k.value for k in AgentKind)
        raise ValueError(f"Unknown agent kind '{kind}'. Expected one of: {valid}") from e

    env_config = env_config or EnvConfig()
    if agent_kind is AgentKind.VALUE:
        agent: Agent = ValueAgent(env_config, model_config, dqn_config, device, seed)
    elif agent_kind is AgentKind.POLICY_GRADIENT:
        agent = PolicyGradientAgent(env_config, model_config, pg_config, device, seed)
    elif agent_kind is AgentKind.TREE_SEARCH:
        agent = TreeSearchAgent(mcts_config, heuristic_config, seed)
    else:
        agent = HeuristicAgent(heuristic_config)
    logger.info(f"Created {ALGORITHM_INFO[agent_kind]['name']} agent.")
    return agent
