# File: blockpuzzle/training/loop.py
import logging
import threading
import time
from typing import TYPE_CHECKING, NamedTuple

import mlflow
import numpy as np

from ..utils import format_eta
from ..utils.types import Transition

if TYPE_CHECKING:
    from ..data import AgentCheckpoint
    from .components import TrainingComponents

logger = logging.getLogger(__name__)


class EpisodeSummary(NamedTuple):
    """Outcome of one driver episode."""

    episode: int
    score: int
    shaped_reward: float
    lines_cleared: int
    steps: int
    level: int
    mean_loss: float | None
    curriculum_advanced: bool


class TrainingLoop:
    """
    Single-threaded episode driver: the agent acts, the environment steps,
    learning agents remember and train every TRAIN_EVERY_STEPS steps.
    Metrics go to the active MLflow run, if any.
    """

    def __init__(self, components: "TrainingComponents"):
        self.components = components
        self.train_config = components.train_config
        self.env = components.env
        self.agent = components.agent
        self.store = components.store

        self.global_step = 0
        self.episodes_played = 0
        self.start_time = time.time()
        self.stop_requested = threading.Event()
        self.training_complete = False
        self.training_exception: Exception | None = None
        self.last_summary: EpisodeSummary | None = None

        logger.info(f"TrainingLoop initialized ({self.agent.kind.value} agent).")

    def set_initial_state(self, global_step: int, episodes_played: int):
        """Sets the initial state counters after loading."""
        self.global_step = global_step
        self.episodes_played = episodes_played
        logger.info(
            f"TrainingLoop initial state set: Step={global_step}, Episodes={episodes_played}"
        )

    def request_stop(self):
        """Signals the training loop to stop gracefully."""
        if not self.stop_requested.is_set():
            logger.info("Stop requested for TrainingLoop.")
            self.stop_requested.set()

    # --- Episodes ---

    def run_episode(self) -> EpisodeSummary:
        env, agent = self.env, self.agent
        env.reset()
        agent.start_episode()
        shaped_reward = 0.0
        steps = 0
        losses: list[float] = []

        while not env.is_over() and not self.stop_requested.is_set():
            state = env.get_state()
            action = agent.act(env)
            if action is None:
                break
            next_state, reward, done = env.step(action)
            shaped_reward += reward
            steps += 1
            self.global_step += 1

            if agent.learns:
                agent.remember(
                    Transition(state, action, reward, next_state, done, env.action_mask())
                )
                if self.global_step % self.train_config.TRAIN_EVERY_STEPS == 0:
                    loss = agent.train()
                    if loss is not None:
                        losses.append(loss)

        agent.end_episode(env.score, shaped_reward)
        lines_cleared = env.lines_cleared_total
        advanced = False
        if self.train_config.USE_CURRICULUM:
            advanced = env.update_curriculum(lines_cleared, env.score)
            if advanced:
                agent.on_curriculum_advance()

        self.episodes_played += 1
        return EpisodeSummary(
            episode=self.episodes_played,
            score=env.score,
            shaped_reward=shaped_reward,
            lines_cleared=lines_cleared,
            steps=steps,
            level=env.level,
            mean_loss=float(np.mean(losses)) if losses else None,
            curriculum_advanced=advanced,
        )

    # --- Reporting ---

    def _log_metrics(self, summary: EpisodeSummary):
        if mlflow.active_run() is None:
            return
        stats = self.agent.get_stats()
        metrics = {
            "Episode/Score": float(summary.score),
            "Episode/Shaped_Reward": summary.shaped_reward,
            "Episode/Lines_Cleared": float(summary.lines_cleared),
            "Episode/Length": float(summary.steps),
            "Curriculum/Level": float(summary.level),
            "Agent/Average_Score": stats["average_score"],
            "Agent/Best_Score": stats["best_score"],
            "Agent/Epsilon": stats["epsilon"],
            "Agent/Memory_Size": float(stats["memory_size"]),
        }
        if summary.mean_loss is not None:
            metrics["Loss/Mean"] = summary.mean_loss
        try:
            mlflow.log_metrics(metrics, step=summary.episode)
        except Exception as e:
            logger.error(f"Failed to log metrics to MLflow: {e}")

    def _log_progress(self, summary: EpisodeSummary):
        stats = self.agent.get_stats()
        elapsed = time.time() - self.start_time
        remaining = self.train_config.NUM_EPISODES - self.episodes_played
        rate = summary.episode / elapsed if elapsed > 0 else 0.0
        eta = remaining / rate if rate > 0 else None
        loss_str = f"{summary.mean_loss:.4f}" if summary.mean_loss is not None else "N/A"
        logger.info(
            f"Episode {summary.episode}/{self.train_config.NUM_EPISODES} | "
            f"Score: {summary.score} (avg {stats['average_score']:.1f}, best {stats['best_score']:.0f}) | "
            f"Lines: {summary.lines_cleared} | Level: {summary.level} | "
            f"Eps: {stats['epsilon']:.3f} | Loss: {loss_str} | ETA: {format_eta(eta)}"
        )

    # --- Checkpoints ---

    def build_checkpoint(self) -> "AgentCheckpoint":
        checkpoint = self.agent.to_checkpoint()
        checkpoint.curriculum_state = self.env.curriculum.to_dict()
        checkpoint.scalars["global_step"] = self.global_step
        checkpoint.scalars["episodes_played"] = self.episodes_played
        return checkpoint

    def save_checkpoint(self) -> bool:
        if not self.agent.learns:
            return False
        try:
            self.store.save(self.train_config.RUN_NAME, self.build_checkpoint())
            return True
        except Exception as e:
            logger.error(f"Failed to save checkpoint: {e}", exc_info=True)
            return False

    def run(self):
        """Main training loop."""
        logger.info(
            f"Starting TrainingLoop run... Target episodes: {self.train_config.NUM_EPISODES}"
        )
        self.start_time = time.time()
        try:
            while self.episodes_played < self.train_config.NUM_EPISODES:
                if self.stop_requested.is_set():
                    break
                summary = self.run_episode()
                self.last_summary = summary
                self._log_metrics(summary)
                if summary.episode % self.train_config.LOG_INTERVAL_EPISODES == 0:
                    self._log_progress(summary)
                if summary.episode % self.train_config.CHECKPOINT_SAVE_FREQ_EPISODES == 0:
                    self.save_checkpoint()
            self.training_complete = not self.stop_requested.is_set()
        except KeyboardInterrupt:
            logger.warning("KeyboardInterrupt received in TrainingLoop. Stopping.")
            self.request_stop()
        except Exception as e:
            logger.critical(f"Unhandled exception in TrainingLoop: {e}", exc_info=True)
            self.training_exception = e
            self.request_stop()
        finally:
            if self.training_exception or self.stop_requested.is_set():
                self.training_complete = False
            logger.info(
                f"TrainingLoop finished. Complete: {self.training_complete}, Exception: {self.training_exception is not None}"
            )
