# File: blockpuzzle/config/dqn_config.py
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator


class DQNConfig(BaseModel):
    """
    Hyperparameters of the value agent (Pydantic model).
    Double DQN with prioritized replay and a soft-updated target network.
    """

    # --- Optimizer ---
    OPTIMIZER_TYPE: Literal["Adam", "AdamW", "SGD"] = Field(default="Adam")
    LEARNING_RATE: float = Field(default=3e-4, gt=0)
    WEIGHT_DECAY: float = Field(default=0.0, ge=0)
    GRADIENT_CLIP_VALUE: float | None = Field(default=10.0)
    LOSS_TYPE: Literal["huber", "mse"] = Field(default="huber")

    # --- TD Targets ---
    GAMMA: float = Field(default=0.99, ge=0.0, le=1.0)
    BATCH_SIZE: int = Field(default=64, ge=1)
    BUFFER_CAPACITY: int = Field(default=20_000, ge=1)

    # --- Target Network ---
    TARGET_UPDATE_FREQ: int = Field(default=100, ge=1)
    TARGET_UPDATE_MODE: Literal["soft", "hard"] = Field(default="soft")
    TAU: float = Field(default=0.005, gt=0.0, le=1.0)

    # --- Exploration ---
    EPSILON_START: float = Field(default=1.0, ge=0.0, le=1.0)
    EPSILON_MIN: float = Field(default=0.01, ge=0.0, le=1.0)
    EPSILON_DECAY: float = Field(default=0.9995, gt=0.0, le=1.0)
    # Probability of the strategic choice while exploring
    LINE_COMPLETION_BIAS: float = Field(default=0.7, ge=0.0, le=1.0)
    STRATEGIC_TOP_K: int = Field(default=15, ge=1)
    # Epsilon boost applied when the curriculum advances
    CURRICULUM_EPSILON_BOOST: float = Field(default=1.05, ge=1.0)
    CURRICULUM_EPSILON_CAP: float = Field(default=0.8, ge=0.0, le=1.0)

    # --- Prioritized Experience Replay (PER) ---
    PER_ALPHA: float = Field(default=0.6, ge=0)
    PER_BETA_INITIAL: float = Field(default=0.4, ge=0, le=1.0)
    PER_BETA_INCREMENT: float = Field(default=0.001, ge=0)
    PER_EPSILON: float = Field(default=1e-6, gt=0)
    # Initial priority scaling for line-clear and terminal transitions
    LINE_CLEAR_REWARD_THRESHOLD: float = Field(default=1000.0)
    LINE_CLEAR_PRIORITY_SCALE: float = Field(default=10.0, ge=1.0)
    TERMINAL_PRIORITY_SCALE: float = Field(default=2.0, ge=1.0)

    # --- Bookkeeping ---
    STATS_WINDOW: int = Field(default=50, ge=1)

    @model_validator(mode="after")
    def check_epsilon_range(self) -> "DQNConfig":
        if self.EPSILON_MIN > self.EPSILON_START:
            raise ValueError("EPSILON_MIN cannot be greater than EPSILON_START.")
        if self.BATCH_SIZE > self.BUFFER_CAPACITY:
            raise ValueError("BATCH_SIZE cannot be greater than BUFFER_CAPACITY.")
        return self

    @field_validator("GRADIENT_CLIP_VALUE")
    @classmethod
    def check_gradient_clip(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("GRADIENT_CLIP_VALUE must be positive if set.")
        return v


DQNConfig.model_rebuild(force=True)
