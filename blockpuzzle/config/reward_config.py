# File: blockpuzzle/config/reward_config.py
from pydantic import BaseModel, ConfigDict, Field, model_validator


class RewardConfig(BaseModel):
    """
    Weights for the shaped reward (Pydantic model).
    Line clears dominate every other term by roughly two orders of magnitude.
    """

    # --- Line Clears ---
    LINE_CLEAR_BASE: float = Field(default=15000.0, ge=0)
    LINE_CLEAR_PER_LINE: float = Field(default=8000.0, ge=0)
    # Applied as lines^2 * COMBO_MULTIPLIER when more than one unit clears
    COMBO_MULTIPLIER: float = Field(default=25000.0, ge=0)

    # --- Placement ---
    PLACEMENT_PER_CELL: float = Field(default=15.0, ge=0)

    # --- Spatial Shaping ---
    ISOLATION_PENALTY: float = Field(default=-200.0, le=0)
    DEAD_SPACE_PENALTY: float = Field(default=-300.0, le=0)
    WASTED_CORNER_PENALTY: float = Field(default=-150.0, le=0)
    FRAGMENTATION_PENALTY: float = Field(default=-100.0, le=0)
    COMPACTNESS_BONUS: float = Field(default=100.0, ge=0)
    EDGE_BONUS: float = Field(default=25.0, ge=0)
    # Regions with at least this many cells count as compact
    COMPACT_REGION_MIN_SIZE: int = Field(default=4, ge=2)
    # Empty regions up to this size count as fragments
    FRAGMENT_MAX_SIZE: int = Field(default=3, ge=2)

    # --- Episode ---
    SURVIVAL_BONUS: float = Field(default=2.0)
    GAME_OVER_PENALTY: float = Field(default=-8000.0, le=0)
    INVALID_ACTION_PENALTY: float = Field(default=-100.0, le=0)

    # --- Scaling ---
    CURRICULUM_MULTIPLIER: float = Field(default=0.3, ge=0)
    REWARD_MIN: float = Field(default=-10000.0)
    REWARD_MAX: float = Field(default=50000.0)

    model_config = ConfigDict(validate_assignment=True)

    @model_validator(mode="after")
    def check_clamp_range(self) -> "RewardConfig":
        if self.REWARD_MIN >= self.REWARD_MAX:
            raise ValueError("REWARD_MIN must be strictly less than REWARD_MAX.")
        return self


class CurriculumConfig(BaseModel):
    """Curriculum progression settings (Pydantic model)."""

    MAX_LEVEL: int = Field(default=3, ge=0)
    INITIAL_THRESHOLD: int = Field(default=3, ge=1)
    MAX_THRESHOLD: int = Field(default=6, ge=1)
    MIN_EPISODES_AT_LEVEL: int = Field(default=5, ge=1)

    @model_validator(mode="after")
    def check_thresholds(self) -> "CurriculumConfig":
        if self.INITIAL_THRESHOLD > self.MAX_THRESHOLD:
            raise ValueError("INITIAL_THRESHOLD cannot exceed MAX_THRESHOLD.")
        return self


RewardConfig.model_rebuild(force=True)
CurriculumConfig.model_rebuild(force=True)
