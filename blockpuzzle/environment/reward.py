# File: blockpuzzle/environment/reward.py
"""
Shaped reward for a single placement.

The spatial term is the weighted change in board structure caused by the
move (after minus before), plus an edge/corner bonus for the placed cells.
"""

import logging
from collections.abc import Sequence
from typing import NamedTuple

import numpy as np

from ..config import RewardConfig
from .board import Board

logger = logging.getLogger(__name__)

_NEIGHBOR_OFFSETS = ((-1, 0), (1, 0), (0, -1), (0, 1))


class SpatialFeatures(NamedTuple):
    isolated_cells: int  # Filled cells with no filled orthogonal neighbour
    dead_cells: int  # Empty cells closed on all four sides
    wasted_corners: int  # Empty pockets closed on exactly three sides
    fragments: int  # Small empty regions
    compact_regions: int  # Large connected filled regions


def _regions(mask: np.ndarray) -> list[int]:
    """Sizes of the 4-connected components of True cells in `mask`."""
    rows, cols = mask.shape
    seen = np.zeros_like(mask)
    sizes: list[int] = []
    for r in range(rows):
        for c in range(cols):
            if not mask[r, c] or seen[r, c]:
                continue
            stack = [(r, c)]
            seen[r, c] = True
            size = 0
            while stack:
                cr, cc = stack.pop()
                size += 1
                for dr, dc in _NEIGHBOR_OFFSETS:
                    nr, nc = cr + dr, cc + dc
                    if 0 <= nr < rows and 0 <= nc < cols and mask[nr, nc] and not seen[nr, nc]:
                        seen[nr, nc] = True
                        stack.append((nr, nc))
            sizes.append(size)
    return sizes


def analyze_spatial(board: Board, config: RewardConfig) -> SpatialFeatures:
    filled = board.grid
    open_cells = board.open_mask()
    rows, cols = filled.shape

    # Neighbour counts via padded shifts; out-of-bounds is closed, not filled
    padded_filled = np.pad(filled, 1, constant_values=False)
    padded_open = np.pad(open_cells, 1, constant_values=False)
    filled_neighbors = np.zeros((rows, cols), dtype=np.int32)
    open_neighbors = np.zeros((rows, cols), dtype=np.int32)
    for dr, dc in _NEIGHBOR_OFFSETS:
        window = (slice(1 + dr, 1 + dr + rows), slice(1 + dc, 1 + dc + cols))
        filled_neighbors += padded_filled[window]
        open_neighbors += padded_open[window]

    isolated = int((filled & (filled_neighbors == 0)).sum())
    dead = int((open_cells & (open_neighbors == 0)).sum())
    wasted = int((open_cells & (open_neighbors == 1)).sum())

    empty_sizes = _regions(open_cells)
    fragments = sum(1 for s in empty_sizes if 2 <= s <= config.FRAGMENT_MAX_SIZE)
    compact = sum(1 for s in _regions(filled) if s >= config.COMPACT_REGION_MIN_SIZE)

    return SpatialFeatures(isolated, dead, wasted, fragments, compact)


def edge_cells(cells: Sequence[tuple[int, int]], rows: int, cols: int) -> int:
    """Number of cells touching the border; corners count twice."""
    total = 0
    for r, c in cells:
        total += int(r in (0, rows - 1))
        total += int(c in (0, cols - 1))
    return total


def spatial_reward(
    before: SpatialFeatures,
    after: SpatialFeatures,
    placed_cells: Sequence[tuple[int, int]],
    rows: int,
    cols: int,
    config: RewardConfig,
) -> float:
    delta = SpatialFeatures(*(a - b for a, b in zip(after, before, strict=True)))
    return (
        delta.isolated_cells * config.ISOLATION_PENALTY
        + delta.dead_cells * config.DEAD_SPACE_PENALTY
        + delta.wasted_corners * config.WASTED_CORNER_PENALTY
        + delta.fragments * config.FRAGMENTATION_PENALTY
        + delta.compact_regions * config.COMPACTNESS_BONUS
        + edge_cells(placed_cells, rows, cols) * config.EDGE_BONUS
    )


def line_clear_reward(lines_cleared: int, config: RewardConfig) -> float:
    """base + lines*per_line, plus lines^2*combo when more than one unit clears."""
    if lines_cleared <= 0:
        return 0.0
    reward = config.LINE_CLEAR_BASE + lines_cleared * config.LINE_CLEAR_PER_LINE
    if lines_cleared > 1:
        reward += lines_cleared * lines_cleared * config.COMBO_MULTIPLIER
    return reward


def compute_reward(
    lines_cleared: int,
    cells_placed: int,
    spatial: float,
    done: bool,
    level: int,
    config: RewardConfig,
) -> tuple[float, dict[str, float]]:
    """Combines the reward terms, applies the curriculum multiplier and clamps."""
    terms = {
        "line_clear": line_clear_reward(lines_cleared, config),
        "placement": cells_placed * config.PLACEMENT_PER_CELL,
        "spatial": float(spatial),
        "terminal": config.GAME_OVER_PENALTY if done else config.SURVIVAL_BONUS,
    }
    multiplier = 1.0 + level * config.CURRICULUM_MULTIPLIER
    total = sum(terms.values()) * multiplier
    clamped = float(np.clip(total, config.REWARD_MIN, config.REWARD_MAX))
    terms["multiplier"] = multiplier
    return clamped, terms
