# File: blockpuzzle/training/setup.py
import logging

import torch
from pydantic import BaseModel

from .. import config, utils
from ..agents import create_agent
from ..data import AgentStore
from ..environment import BlockPuzzleEnv
from .components import TrainingComponents

logger = logging.getLogger(__name__)


def setup_training_components(
    train_config_override: config.TrainConfig,
    persist_config_override: config.PersistenceConfig,
    config_overrides: dict[str, BaseModel] | None = None,
    validate: bool = True,
) -> TrainingComponents | None:
    """
    Validates configs, seeds RNGs and builds the environment, agent and
    store. `config_overrides` uses the section names of
    `print_config_info_and_validate` (e.g. "DQN", "Environment").
    Returns None if setup fails.
    """
    try:
        overrides: dict[str, BaseModel] = dict(config_overrides or {})
        overrides["Training"] = train_config_override
        overrides["Persistence"] = persist_config_override
        if validate:
            validated = config.print_config_info_and_validate(overrides)
        else:
            validated = overrides

        def section(name: str, cls: type[BaseModel]):
            instance = validated.get(name)
            return instance if instance is not None else cls()

        train_config: config.TrainConfig = section("Training", config.TrainConfig)
        persist_config: config.PersistenceConfig = section(
            "Persistence", config.PersistenceConfig
        )
        persist_config.RUN_NAME = train_config.RUN_NAME
        env_config: config.EnvConfig = section("Environment", config.EnvConfig)
        reward_config: config.RewardConfig = section("Reward", config.RewardConfig)
        curriculum_config: config.CurriculumConfig = section(
            "Curriculum", config.CurriculumConfig
        )
        model_config: config.ModelConfig = section("Model", config.ModelConfig)
        dqn_config: config.DQNConfig = section("DQN", config.DQNConfig)
        mcts_config: config.MCTSConfig = section("MCTS", config.MCTSConfig)
        pg_config: config.PolicyGradientConfig = section(
            "PolicyGradient", config.PolicyGradientConfig
        )
        heuristic_config: config.HeuristicConfig = section(
            "Heuristic", config.HeuristicConfig
        )

        # --- Setup Devices and Seeds ---
        utils.set_random_seeds(train_config.RANDOM_SEED)
        device = utils.get_device(train_config.DEVICE)
        logger.info(f"Determined Training Device: {device}")

        env = BlockPuzzleEnv(
            env_config,
            reward_config,
            curriculum_config,
            seed=train_config.RANDOM_SEED,
            use_curriculum=train_config.USE_CURRICULUM,
        )
        agent = create_agent(
            train_config.AGENT_KIND,
            env_config=env_config,
            model_config=model_config,
            dqn_config=dqn_config,
            mcts_config=mcts_config,
            pg_config=pg_config,
            heuristic_config=heuristic_config,
            device=device,
            seed=train_config.RANDOM_SEED,
        )

        return TrainingComponents(
            env=env,
            agent=agent,
            store=AgentStore(persist_config),
            train_config=train_config,
            persist_config=persist_config,
            env_config=env_config,
            reward_config=reward_config,
            curriculum_config=curriculum_config,
            model_config=model_config,
            dqn_config=dqn_config,
            mcts_config=mcts_config,
            pg_config=pg_config,
            heuristic_config=heuristic_config,
        )
    except Exception as e:
        logger.critical(f"Error setting up training components: {e}", exc_info=True)
        return None


def count_parameters(model: torch.nn.Module) -> tuple[int, int]:
    """Counts total and trainable parameters."""
    total_params = sum(p.numel() for p in model.parameters())
    trainable_params = sum(p.numel() for p in model.parameters() if p.requires_grad)
    return total_params, trainable_params
