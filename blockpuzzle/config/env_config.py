# File: blockpuzzle/config/env_config.py
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class EnvConfig(BaseModel):
    """Configuration for the block puzzle environment (Pydantic model)."""

    ROWS: int = Field(default=9, gt=0)
    COLS: int = Field(default=9, gt=0)
    # Side length of the square sub-regions that clear like rows/columns
    BOX_SIZE: int = Field(default=3, gt=0)
    NUM_SHAPE_SLOTS: int = Field(default=3, gt=0)
    # Tray bitmaps are padded to MAX_SHAPE_SIZE x MAX_SHAPE_SIZE per slot
    MAX_SHAPE_SIZE: int = Field(default=3, gt=0)
    SHAPE_SET: Literal["curriculum", "full_catalog"] = Field(default="curriculum")
    HARD_MODE: bool = Field(default=False)
    MAX_STEPS_PER_EPISODE: int = Field(default=1000, ge=1)

    model_config = ConfigDict(validate_assignment=True)

    @model_validator(mode="after")
    def check_box_divides_grid(self) -> "EnvConfig":
        if self.ROWS % self.BOX_SIZE != 0 or self.COLS % self.BOX_SIZE != 0:
            raise ValueError(
                f"BOX_SIZE ({self.BOX_SIZE}) must divide ROWS ({self.ROWS}) and COLS ({self.COLS})."
            )
        # Action packing uses decimal row/col digits
        if self.ROWS > 10 or self.COLS > 10:
            raise ValueError("ROWS and COLS must be <= 10 for the action encoding.")
        return self

    @model_validator(mode="after")
    def check_shape_size(self) -> "EnvConfig":
        if self.SHAPE_SET == "full_catalog" and self.MAX_SHAPE_SIZE < 5:
            raise ValueError("SHAPE_SET 'full_catalog' requires MAX_SHAPE_SIZE >= 5.")
        if self.MAX_SHAPE_SIZE > min(self.ROWS, self.COLS):
            raise ValueError("MAX_SHAPE_SIZE cannot exceed the grid dimensions.")
        return self

    @computed_field  # type: ignore[misc]
    @property
    def NUM_BOXES(self) -> int:
        return (self.ROWS // self.BOX_SIZE) * (self.COLS // self.BOX_SIZE)

    @computed_field  # type: ignore[misc]
    @property
    def ACTION_DIM(self) -> int:
        """Total number of dense action indices (shape_slot * row * col)."""
        return self.NUM_SHAPE_SLOTS * self.ROWS * self.COLS

    @computed_field  # type: ignore[misc]
    @property
    def STATE_SIZE(self) -> int:
        """Length of the encoded state vector."""
        cells = self.ROWS * self.COLS
        unit_fractions = self.ROWS + self.COLS + self.NUM_BOXES
        tray = self.NUM_SHAPE_SLOTS * self.MAX_SHAPE_SIZE * self.MAX_SHAPE_SIZE
        meta = 4
        return cells + unit_fractions + tray + meta


EnvConfig.model_rebuild(force=True)
