# File: blockpuzzle/training/runner.py
import logging

import mlflow
from pydantic import BaseModel

from ..agents import Agent
from ..config import APP_NAME, PersistenceConfig, TrainConfig
from .components import TrainingComponents
from .logging_utils import (
    MLFLOW_PARAM_MAX_LEN,
    close_file_logging,
    log_configs_to_mlflow,
    setup_file_logging,
)
from .loop import TrainingLoop
from .setup import count_parameters, setup_training_components

logger = logging.getLogger(__name__)

# Final run outcome -> MLflow RunStatus name
_MLFLOW_RUN_STATUS = {"COMPLETED": "FINISHED", "INTERRUPTED": "KILLED"}


def _start_mlflow_run(persist_config: PersistenceConfig, run_name: str) -> str | None:
    """Points MLflow at the local store and opens a run. Returns its id."""
    tracking_dir = persist_config.get_mlflow_abs_path()
    try:
        tracking_dir.mkdir(parents=True, exist_ok=True)
        mlflow.set_tracking_uri(persist_config.MLFLOW_TRACKING_URI)
        mlflow.set_experiment(APP_NAME)
        mlflow.start_run(run_name=run_name)
        run = mlflow.active_run()
    except Exception as e:
        logger.error(f"Could not start MLflow run in {tracking_dir}: {e}", exc_info=True)
        return None
    if run is None:
        logger.error("MLflow reported no active run after start_run.")
        return None
    logger.info(f"MLflow run '{run_name}' ({run.info.run_id}) tracking to {tracking_dir}")
    return run.info.run_id


def _log_model_sizes(agent: Agent):
    for name, network in agent.networks().items():
        total, trainable = count_parameters(network.model)
        logger.info(f"Network '{name}': {total:,} parameters ({trainable:,} trainable)")
        mlflow.log_param(f"{name}_total_params", total)
        mlflow.log_param(f"{name}_trainable_params", trainable)


def _load_and_apply_initial_state(components: TrainingComponents) -> TrainingLoop:
    """
    Builds the TrainingLoop and, for learning agents, restores the stored
    checkpoint: agent state, curriculum level and loop counters. Any
    checkpoint that cannot be applied is skipped.
    """
    loop = TrainingLoop(components)
    train_config = components.train_config
    agent = components.agent
    explicit_key = train_config.LOAD_CHECKPOINT_KEY

    if not agent.learns:
        logger.info(f"Nothing to resume for the {agent.kind.value} agent.")
        return loop
    if explicit_key is None and not train_config.AUTO_RESUME:
        logger.info("Resuming disabled; training from scratch.")
        return loop

    key = explicit_key or train_config.RUN_NAME
    checkpoint = components.store.load(key)
    if checkpoint is None:
        logger.info(f"No checkpoint under '{key}'; training from scratch.")
        return loop
    try:
        agent.load_checkpoint(checkpoint)
    except (ValueError, KeyError, RuntimeError) as e:
        logger.error(f"Checkpoint '{key}' is not usable ({e}); training from scratch.")
        return loop

    if checkpoint.curriculum_state:
        components.env.curriculum.load_dict(checkpoint.curriculum_state)
    loop.set_initial_state(
        int(checkpoint.scalars.get("global_step", 0)),
        int(checkpoint.scalars.get("episodes_played", 0)),
    )
    logger.info(
        f"Resumed '{key}' at episode {loop.episodes_played}, curriculum level {components.env.level}."
    )
    return loop


def _final_status(loop: TrainingLoop | None) -> tuple[str, str]:
    """(status, error message) describing how the run ended."""
    if loop is None:
        return "SETUP_FAILED", ""
    if loop.training_exception is not None:
        return "FAILED", str(loop.training_exception)
    if loop.training_complete:
        return "COMPLETED", ""
    return "INTERRUPTED", ""


def _end_mlflow_run(status: str, error_msg: str):
    try:
        mlflow.log_param("training_status", status)
        if error_msg:
            mlflow.log_param("error_message", error_msg[:MLFLOW_PARAM_MAX_LEN])
        mlflow.end_run(status=_MLFLOW_RUN_STATUS.get(status, "FAILED"))
        logger.info(f"MLflow run closed with status {status}.")
    except Exception as e:
        logger.error(f"Could not close MLflow run: {e}")


def run_training(
    log_level_str: str,
    train_config_override: TrainConfig,
    persist_config_override: PersistenceConfig,
    config_overrides: dict[str, BaseModel] | None = None,
) -> int:
    """
    Headless training entry point: file logging, component setup, MLflow
    tracking, optional resume, the episode loop and a final checkpoint.
    Returns a process exit code.
    """
    loop: TrainingLoop | None = None
    run_id: str | None = None
    setup_error = ""
    exit_code = 1

    try:
        log_file = setup_file_logging(
            persist_config_override, train_config_override.RUN_NAME, "train"
        )
        logger.info(f"Console level {log_level_str.upper()}; full log in {log_file}")

        components = setup_training_components(
            train_config_override, persist_config_override, config_overrides
        )
        if components is None:
            raise RuntimeError("Training components could not be built.")

        run_id = _start_mlflow_run(
            components.persist_config, components.train_config.RUN_NAME
        )
        if run_id is not None:
            log_configs_to_mlflow(components)
            _log_model_sizes(components.agent)
        else:
            logger.warning("Continuing without MLflow tracking.")

        loop = _load_and_apply_initial_state(components)
        loop.run()
        exit_code = 0 if loop.training_complete else 1
    except Exception as e:
        logger.critical(f"Training aborted: {e}", exc_info=True)
        setup_error = str(e)
        exit_code = 1
    finally:
        if loop is not None:
            logger.info("Saving final checkpoint...")
            loop.save_checkpoint()
        status, error_msg = _final_status(loop)
        if run_id is not None:
            _end_mlflow_run(status, error_msg or setup_error)
        logger.info(f"Training ended ({status}), exit code {exit_code}.")
        close_file_logging()
    return exit_code
