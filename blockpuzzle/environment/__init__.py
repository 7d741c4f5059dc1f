# File: blockpuzzle/environment/__init__.py
from .actions import (
    action_to_index,
    actions_to_indices,
    decode_action,
    encode_action,
    index_to_action,
)
from .board import Board, hard_mode_mask, line_clear_score
from .curriculum import Curriculum, CurriculumState
from .env import BlockPuzzleEnv
from .features import encode_state
from .reward import (
    SpatialFeatures,
    analyze_spatial,
    compute_reward,
    line_clear_reward,
    spatial_reward,
)
from .shapes import (
    COMPLEX_SHAPES,
    CURRICULUM_TIER_NAMES,
    CURRICULUM_TIERS,
    FULL_CATALOG,
    FULL_TIER_SHAPES,
    MEDIUM_SHAPES,
    SIMPLE_SHAPES,
    BlockShape,
    generate_tray,
    get_tier_name,
    get_tier_shapes,
)

__all__ = [
    # board
    "Board",
    "hard_mode_mask",
    "line_clear_score",
    # shapes
    "BlockShape",
    "SIMPLE_SHAPES",
    "MEDIUM_SHAPES",
    "COMPLEX_SHAPES",
    "FULL_TIER_SHAPES",
    "CURRICULUM_TIERS",
    "CURRICULUM_TIER_NAMES",
    "FULL_CATALOG",
    "generate_tray",
    "get_tier_shapes",
    "get_tier_name",
    # actions
    "encode_action",
    "decode_action",
    "action_to_index",
    "index_to_action",
    "actions_to_indices",
    # features & reward
    "encode_state",
    "SpatialFeatures",
    "analyze_spatial",
    "compute_reward",
    "line_clear_reward",
    "spatial_reward",
    # curriculum
    "Curriculum",
    "CurriculumState",
    # env
    "BlockPuzzleEnv",
]
