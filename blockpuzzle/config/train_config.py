# File: blockpuzzle/config/train_config.py
import time
from typing import Literal

from pydantic import BaseModel, Field, model_validator

AgentKindName = Literal["dqn", "mcts", "policy_gradient", "heuristic"]


class TrainConfig(BaseModel):
    """
    Configuration for the training driver (Pydantic model).
    Agent hyperparameters live in their own configs.
    """

    RUN_NAME: str = Field(
        default_factory=lambda: f"train_{time.strftime('%Y%m%d_%H%M%S')}"
    )
    AGENT_KIND: AgentKindName = Field(default="dqn")
    DEVICE: Literal["auto", "cuda", "cpu", "mps"] = Field(default="auto")
    RANDOM_SEED: int = Field(default=42)

    # --- Driver Loop ---
    NUM_EPISODES: int = Field(default=1000, ge=1)
    # Gradient step every N environment steps (learning agents only)
    TRAIN_EVERY_STEPS: int = Field(default=4, ge=1)
    USE_CURRICULUM: bool = Field(default=True)

    # --- Logging & Checkpointing ---
    LOG_INTERVAL_EPISODES: int = Field(default=10, ge=1)
    CHECKPOINT_SAVE_FREQ_EPISODES: int = Field(default=100, ge=1)
    AUTO_RESUME: bool = Field(default=True)
    # Explicit store key to resume from; defaults to the run name
    LOAD_CHECKPOINT_KEY: str | None = Field(default=None)

    @model_validator(mode="after")
    def check_intervals(self) -> "TrainConfig":
        if self.LOG_INTERVAL_EPISODES > self.NUM_EPISODES:
            # Still log the final summary
            self.LOG_INTERVAL_EPISODES = self.NUM_EPISODES
        return self


TrainConfig.model_rebuild(force=True)
