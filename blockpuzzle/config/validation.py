# File: blockpuzzle/config/validation.py
import logging

from pydantic import BaseModel, ValidationError

from .dqn_config import DQNConfig
from .env_config import EnvConfig
from .heuristic_config import HeuristicConfig
from .mcts_config import MCTSConfig
from .model_config import ModelConfig
from .persistence_config import PersistenceConfig
from .policy_config import PolicyGradientConfig
from .reward_config import CurriculumConfig, RewardConfig
from .train_config import TrainConfig

logger = logging.getLogger(__name__)

# Section name -> config class, in print order
CONFIG_SECTIONS: dict[str, type[BaseModel]] = {
    "Environment": EnvConfig,
    "Reward": RewardConfig,
    "Curriculum": CurriculumConfig,
    "Model": ModelConfig,
    "DQN": DQNConfig,
    "MCTS": MCTSConfig,
    "PolicyGradient": PolicyGradientConfig,
    "Heuristic": HeuristicConfig,
    "Training": TrainConfig,
    "Persistence": PersistenceConfig,
}

_RULE = "-" * 40


def _validate_section(
    name: str, config_cls: type[BaseModel], provided: BaseModel | None
) -> BaseModel | None:
    try:
        if provided is None:
            instance = config_cls()
            print(f"[{name}] - Validated OK")
        else:
            # Round-trip through a dict so unvalidated instances are checked too
            instance = config_cls.model_validate(provided.model_dump())
            print(f"[{name}] - Instance provided & validated OK")
    except ValidationError as e:
        logger.error(f"{name} config is invalid:\n{e}")
        print(f"[{name}] - INVALID")
        return None
    return instance


def _print_values(name: str, instance: BaseModel | None):
    print(f"--- {name} Config ---")
    if instance is None:
        print("  <invalid>")
        return
    for field_name, value in instance.model_dump().items():
        shown = f"<{len(value)} items>" if isinstance(value, list) and len(value) > 10 else value
        print(f"  {field_name}: {shown}")


def print_config_info_and_validate(
    overrides: dict[str, BaseModel] | None = None,
) -> dict[str, BaseModel]:
    """
    Prints a configuration summary and validates every config with Pydantic.
    `overrides` maps a section name (e.g. "Training") to an instance that is
    re-validated instead of the default. Returns the validated instances.
    """
    overrides = overrides or {}
    print(_RULE)
    print("Configuration Validation & Summary")
    print(_RULE)

    validated = {
        name: _validate_section(name, config_cls, overrides.get(name))
        for name, config_cls in CONFIG_SECTIONS.items()
    }

    print(_RULE)
    for name, instance in validated.items():
        _print_values(name, instance)
    print(_RULE)

    invalid = [name for name, instance in validated.items() if instance is None]
    if invalid:
        logger.critical(f"Invalid config sections: {', '.join(invalid)}")
        raise ValueError(f"Invalid configuration settings: {', '.join(invalid)}")
    logger.info("All configurations validated successfully.")
    return validated  # type: ignore[return-value]
