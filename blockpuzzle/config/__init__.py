# File: blockpuzzle/config/__init__.py
from .app_config import APP_NAME
from .dqn_config import DQNConfig
from .env_config import EnvConfig
from .heuristic_config import HeuristicConfig
from .mcts_config import MCTSConfig
from .model_config import ModelConfig
from .persistence_config import PersistenceConfig
from .policy_config import PolicyGradientConfig
from .reward_config import CurriculumConfig, RewardConfig
from .train_config import TrainConfig
from .validation import print_config_info_and_validate

__all__ = [
    "APP_NAME",
    "EnvConfig",
    "RewardConfig",
    "CurriculumConfig",
    "ModelConfig",
    "DQNConfig",
    "MCTSConfig",
    "PolicyGradientConfig",
    "HeuristicConfig",
    "TrainConfig",
    "PersistenceConfig",
    "print_config_info_and_validate",
]
