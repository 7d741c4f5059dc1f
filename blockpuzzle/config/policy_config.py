# File: blockpuzzle/config/policy_config.py
from pydantic import BaseModel, Field


class PolicyGradientConfig(BaseModel):
    """REINFORCE hyperparameters (Pydantic model)."""

    LEARNING_RATE: float = Field(default=1e-3, gt=0)
    GAMMA: float = Field(default=0.99, ge=0.0, le=1.0)
    ENTROPY_COEF: float = Field(default=0.01, ge=0)
    # Moving-average baseline; returns are standardized instead when disabled
    USE_BASELINE: bool = Field(default=False)
    BASELINE_MOMENTUM: float = Field(default=0.9, ge=0.0, lt=1.0)
    GRADIENT_CLIP_VALUE: float = Field(default=1.0, gt=0)
    STATS_WINDOW: int = Field(default=50, ge=1)


PolicyGradientConfig.model_rebuild(force=True)
