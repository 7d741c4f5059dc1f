# File: blockpuzzle/training/components.py
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..agents import Agent
    from ..config import (
        CurriculumConfig,
        DQNConfig,
        EnvConfig,
        HeuristicConfig,
        MCTSConfig,
        ModelConfig,
        PersistenceConfig,
        PolicyGradientConfig,
        RewardConfig,
        TrainConfig,
    )
    from ..data import AgentStore
    from ..environment import BlockPuzzleEnv


@dataclass
class TrainingComponents:
    """Holds the initialized core components needed for training."""

    env: "BlockPuzzleEnv"
    agent: "Agent"
    store: "AgentStore"
    train_config: "TrainConfig"
    persist_config: "PersistenceConfig"
    env_config: "EnvConfig"
    reward_config: "RewardConfig"
    curriculum_config: "CurriculumConfig"
    model_config: "ModelConfig"
    dqn_config: "DQNConfig"
    mcts_config: "MCTSConfig"
    pg_config: "PolicyGradientConfig"
    heuristic_config: "HeuristicConfig"
