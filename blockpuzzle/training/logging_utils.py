# File: blockpuzzle/training/logging_utils.py
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import mlflow

if TYPE_CHECKING:
    from ..config import PersistenceConfig
    from .components import TrainingComponents

logger = logging.getLogger(__name__)

MLFLOW_PARAM_MAX_LEN = 250
_FILE_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_file_logging(
    persist_config: "PersistenceConfig", run_name: str, log_prefix: str = "run"
) -> str:
    """
    Mirrors root logger output into `<run dir>/logs/<prefix>_<run>.log`.
    Calling it twice for the same file attaches a single handler.
    """
    log_dir = Path(persist_config.get_run_base_dir(run_name)) / persist_config.LOG_DIR_NAME
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = (log_dir / f"{log_prefix}_{run_name}.log").resolve()

    root = logging.getLogger()
    attached = {
        Path(h.baseFilename).resolve()
        for h in root.handlers
        if isinstance(h, logging.FileHandler)
    }
    if log_path in attached:
        logger.warning(f"Already logging to {log_path}")
        return str(log_path)

    handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(_FILE_LOG_FORMAT))
    root.addHandler(handler)
    logger.info(f"Logging to file {log_path}")
    return str(log_path)


def close_file_logging():
    """Flushes, closes and detaches every file handler on the root logger."""
    root = logging.getLogger()
    for handler in [h for h in root.handlers if isinstance(h, logging.FileHandler)]:
        handler.flush()
        handler.close()
        root.removeHandler(handler)


def _param_value(value: Any) -> str:
    # Long collections are summarised; MLflow rejects long param values
    if isinstance(value, (list, dict)) and len(value) > 10:
        kind = "list" if isinstance(value, list) else "dict"
        text = f"<{kind} of {len(value)}>"
    else:
        text = str(value)
    if len(text) > MLFLOW_PARAM_MAX_LEN:
        text = text[: MLFLOW_PARAM_MAX_LEN - 3] + "..."
    return text


def collect_configs(components: "TrainingComponents") -> dict[str, dict[str, Any]]:
    sections = {
        "TrainConfig": components.train_config,
        "EnvConfig": components.env_config,
        "RewardConfig": components.reward_config,
        "CurriculumConfig": components.curriculum_config,
        "ModelConfig": components.model_config,
        "DQNConfig": components.dqn_config,
        "MCTSConfig": components.mcts_config,
        "PolicyGradientConfig": components.pg_config,
        "HeuristicConfig": components.heuristic_config,
        "PersistenceConfig": components.persist_config,
    }
    return {name: config.model_dump() for name, config in sections.items()}


def save_run_config(components: "TrainingComponents", configs: dict[str, Any]) -> Path:
    """Writes the combined config JSON into the run directory."""
    persist = components.persist_config
    path = Path(persist.get_run_base_dir()) / persist.CONFIG_FILENAME
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(configs, f, indent=2, default=str)
    return path


def log_configs_to_mlflow(components: "TrainingComponents"):
    """Records every config field as an MLflow param plus one JSON artifact."""
    configs = collect_configs(components)
    failed = 0
    for section, fields in configs.items():
        for field_name, value in fields.items():
            try:
                mlflow.log_param(f"{section}/{field_name}", _param_value(value))
            except Exception as e:
                failed += 1
                logger.debug(f"Param {section}/{field_name} rejected by MLflow: {e}")
    if failed:
        logger.warning(f"{failed} config params could not be logged to MLflow.")

    try:
        config_path = save_run_config(components, configs)
        mlflow.log_artifact(str(config_path), artifact_path="config")
    except Exception as e:
        logger.error(f"Could not write or upload {components.persist_config.CONFIG_FILENAME}: {e}", exc_info=True)
    else:
        logger.info(f"Run configuration saved to {config_path}")
