# File: blockpuzzle/config/model_config.py
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class ModelConfig(BaseModel):
    """
    Configuration for the fully connected networks (Pydantic model).
    The value networks use HIDDEN_DIMS, the policy network POLICY_HIDDEN_DIMS.
    """

    # --- Value Network ---
    HIDDEN_DIMS: list[int] = Field(default=[256, 256, 128])
    DROPOUT: float = Field(default=0.2, ge=0.0, lt=1.0)
    # Batch norm on the input features
    USE_BATCH_NORM: bool = Field(default=True)

    # --- Policy Network ---
    POLICY_HIDDEN_DIMS: list[int] = Field(default=[128, 128, 64])
    POLICY_DROPOUT: float = Field(default=0.0, ge=0.0, lt=1.0)

    ACTIVATION_FUNCTION: Literal["ReLU", "GELU", "SiLU", "Tanh", "LeakyReLU"] = Field(
        default="ReLU"
    )

    @field_validator("HIDDEN_DIMS", "POLICY_HIDDEN_DIMS")
    @classmethod
    def check_hidden_dims(cls, v: list[int]) -> list[int]:
        if not v:
            raise ValueError("Hidden layer list cannot be empty.")
        if any(d <= 0 for d in v):
            raise ValueError("All hidden layer sizes must be positive.")
        return v


ModelConfig.model_rebuild(force=True)
