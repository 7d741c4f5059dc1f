# File: blockpuzzle/config/heuristic_config.py
from pydantic import BaseModel, Field


class HeuristicConfig(BaseModel):
    """Feature weights and lookahead settings for the rule-based agent."""

    LINE_WEIGHT: float = Field(default=1000.0, ge=0)
    ALMOST_COMPLETE_WEIGHT: float = Field(default=1.0, ge=0)
    SPATIAL_WEIGHT: float = Field(default=1.0, ge=0)

    # Almost-complete bonuses, keyed by missing cells
    ONE_MISSING_BONUS: float = Field(default=50.0)
    TWO_MISSING_BONUS: float = Field(default=25.0)

    # Spatial features of the placed cells
    EDGE_ROW_BONUS: float = Field(default=20.0)
    EDGE_COL_BONUS: float = Field(default=20.0)
    NEIGHBOR_BONUS: float = Field(default=10.0)
    ISOLATED_PENALTY: float = Field(default=-15.0)

    # Lookahead
    # Only the best immediate candidates are searched ahead
    LOOKAHEAD_CANDIDATES: int = Field(default=10, ge=1)
    LOOKAHEAD_DEPTH: int = Field(default=2, ge=0)
    LOOKAHEAD_BREADTH: int = Field(default=3, ge=1)
    LOOKAHEAD_DISCOUNT: float = Field(default=0.7, ge=0.0, le=1.0)
    LOOKAHEAD_WEIGHT: float = Field(default=0.3, ge=0.0)


HeuristicConfig.model_rebuild(force=True)
