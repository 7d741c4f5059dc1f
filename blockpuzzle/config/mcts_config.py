# File: blockpuzzle/config/mcts_config.py
"""
Configuration for the tree-search agent. Lower-case field names follow
the usual MCTS parameter naming.
"""

import math
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_NUM_SIMULATIONS = 50
DEFAULT_MAX_DEPTH = 10
DEFAULT_EXPLORATION = math.sqrt(2)


class MCTSConfig(BaseModel):
    """MCTS Search Configuration (UCB1 with rollouts)."""

    num_simulations: int = Field(
        default=DEFAULT_NUM_SIMULATIONS,
        description="Simulation budget per move.",
        gt=0,
    )
    max_depth: int = Field(
        default=DEFAULT_MAX_DEPTH,
        description="Maximum depth for tree traversal during selection/expansion.",
        gt=0,
    )
    exploration_constant: float = Field(
        default=DEFAULT_EXPLORATION,
        description="C in meanValue + C*sqrt(ln(parentVisits)/childVisits).",
        ge=0.0,
    )

    # Rollouts
    rollout_depth: int = Field(
        default=10,
        description="Maximum number of steps of a rollout.",
        ge=0,
    )
    rollout_policy: Literal["heuristic", "random"] = Field(
        default="heuristic",
        description="Policy used to play out rollouts.",
    )
    discount: float = Field(
        default=1.0,
        description="Discount factor (gamma) for rewards along the simulated path.",
        ge=0.0,
        le=1.0,
    )

    # Pruning
    max_children: int | None = Field(
        default=30,
        description="Cap on candidate actions per node, ranked by a quick heuristic. None keeps all.",
        gt=0,
    )
    rollout_candidates: int = Field(
        default=12,
        description="Actions sampled and scored per heuristic rollout step.",
        ge=1,
    )

    early_stop_value: float = Field(
        default=500.0,
        description="Stop searching once the most visited child's mean value exceeds this.",
    )
    early_stop_min_visits: int = Field(
        default=5,
        description="Visits required before early stopping is considered.",
        ge=1,
    )

    model_config = ConfigDict(validate_assignment=True)


MCTSConfig.model_rebuild(force=True)
