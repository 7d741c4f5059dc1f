# File: blockpuzzle/training/__init__.py
from .components import TrainingComponents
from .evaluation import (
    EvaluationResult,
    compare_algorithms,
    evaluate_agent,
    play_episode,
)
from .logging_utils import log_configs_to_mlflow, setup_file_logging
from .loop import EpisodeSummary, TrainingLoop
from .runner import run_training
from .setup import count_parameters, setup_training_components

__all__ = [
    # components & setup
    "TrainingComponents",
    "setup_training_components",
    "count_parameters",
    # loop & runner
    "TrainingLoop",
    "EpisodeSummary",
    "run_training",
    # logging
    "setup_file_logging",
    "log_configs_to_mlflow",
    # evaluation
    "EvaluationResult",
    "play_episode",
    "evaluate_agent",
    "compare_algorithms",
]
