# File: blockpuzzle/agents/__init__.py
from .base import Agent, AgentKind, EpisodeTracker
from .factory import ALGORITHM_INFO, available_algorithms, create_agent
from .heuristic import HeuristicAgent
from .policy_gradient import PolicyGradientAgent
from .tree_search import MCTSNode, TreeSearchAgent
from .value_agent import ValueAgent

__all__ = [
    # interface
    "Agent",
    "AgentKind",
    "EpisodeTracker",
    # variants
    "ValueAgent",
    "TreeSearchAgent",
    "MCTSNode",
    "PolicyGradientAgent",
    "HeuristicAgent",
    # factory
    "create_agent",
    "available_algorithms",
    "ALGORITHM_INFO",
]
