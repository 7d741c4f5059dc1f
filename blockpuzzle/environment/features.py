# File: blockpuzzle/environment/features.py
from collections.abc import Sequence

import numpy as np

from ..config import EnvConfig
from .board import Board
from .shapes import BlockShape

SCORE_NORMALIZER = 10000.0
MOVES_NORMALIZER = 20.0


def encode_state(
    board: Board,
    tray: Sequence[BlockShape],
    score: float,
    moves_since_clear: int,
    level: int,
    env_config: EnvConfig,
    max_level: int = 3,
) -> np.ndarray:
    """
    Builds the fixed-length float32 state vector:
    cells (1 filled, 0 empty, -1 blocked), unit fill fractions,
    padded tray bitmaps, then normalized score/moves/occupancy/level.
    """
    cells = board.grid.astype(np.float32)
    cells[board.blocked] = -1.0

    slot_size = env_config.MAX_SHAPE_SIZE * env_config.MAX_SHAPE_SIZE
    tray_features = np.zeros(env_config.NUM_SHAPE_SLOTS * slot_size, dtype=np.float32)
    for i, shape in enumerate(tray[: env_config.NUM_SHAPE_SLOTS]):
        tray_features[i * slot_size : (i + 1) * slot_size] = shape.bitmap(
            env_config.MAX_SHAPE_SIZE
        )

    meta = np.array(
        [
            min(score / SCORE_NORMALIZER, 1.0),
            min(moves_since_clear / MOVES_NORMALIZER, 1.0),
            len(tray) / env_config.NUM_SHAPE_SLOTS,
            level / max_level if max_level > 0 else 0.0,
        ],
        dtype=np.float32,
    )

    return np.concatenate(
        [cells.ravel(), board.fill_fractions(), tray_features, meta]
    ).astype(np.float32, copy=False)
