# File: blockpuzzle/agents/scoring.py
"""
Placement scoring shared by the non-learned decision rules: the value
agent's strategic exploration, the heuristic agent and the tree-search
candidate ordering and rollouts.
"""

import numpy as np

from ..config import HeuristicConfig
from ..environment import Board, BlockPuzzleEnv, BlockShape, decode_action
from ..utils.types import ActionType

_NEIGHBOR_OFFSETS = ((-1, 0), (1, 0), (0, -1), (0, 1))


def filled_neighbors(grid: np.ndarray, row: int, col: int) -> int:
    rows, cols = grid.shape
    count = 0
    for dr, dc in _NEIGHBOR_OFFSETS:
        r, c = row + dr, col + dc
        if 0 <= r < rows and 0 <= c < cols and grid[r, c]:
            count += 1
    return count


def simulate_placement(
    board: Board, shape: BlockShape, row: int, col: int
) -> tuple[Board, list[tuple[int, int]], int]:
    """Places on a scratch copy and clears. Returns (scratch, placed cells, lines)."""
    scratch = board.copy()
    placed = scratch.place(shape, row, col)
    lines = scratch.clear_completed_lines()
    return scratch, placed, lines


# --- Strategic exploration score (value agent) ---


def _chain_potential(board: Board) -> float:
    """Rows and columns within two cells of completion, weighted by how close."""
    counts = board.unit_filled_counts()[: board.rows + board.cols]
    threshold = board.cols - 2
    near = counts[counts >= threshold]
    return float((near - (threshold - 1)).sum())


def _future_opportunities(board: Board) -> float:
    grid = board.grid
    potential = np.maximum(grid.sum(axis=1)[:, None], grid.sum(axis=0)[None, :])
    return float(potential[board.open_mask()].sum()) / board.cols


def _edge_usage(cells: list[tuple[int, int]], rows: int, cols: int) -> int:
    score = 0
    for r, c in cells:
        on_row_edge = r in (0, rows - 1)
        on_col_edge = c in (0, cols - 1)
        if on_row_edge and on_col_edge:
            score += 3
        elif on_row_edge or on_col_edge:
            score += 1
    return score


def strategic_score(board: Board, shape: BlockShape, row: int, col: int) -> float:
    """
    Look-ahead-free score used while exploring. Evaluated on the grid right
    after placement, before any clearing:
    completions*1000 + chain potential*500 + spatial efficiency*100
    + future opportunities*50 + edge/corner usage*25.
    """
    scratch = board.copy()
    placed = scratch.place(shape, row, col)
    completions = len(scratch.completed_units())
    compactness = shape.size / float(shape.height * shape.width)
    connectivity = sum(filled_neighbors(scratch.grid, r, c) for r, c in placed)
    spatial_efficiency = compactness * 10 + connectivity * 5
    return (
        completions * 1000.0
        + _chain_potential(scratch) * 500.0
        + spatial_efficiency * 100.0
        + _future_opportunities(scratch) * 50.0
        + _edge_usage(placed, board.rows, board.cols) * 25.0
    )


# --- Heuristic placement score ---


def placement_features(
    board: Board, placed: list[tuple[int, int]], config: HeuristicConfig
) -> float:
    """Edge, neighbour and isolation terms for freshly placed cells on `board`."""
    after = board.grid.copy()
    for r, c in placed:
        after[r, c] = True
    score = 0.0
    for r, c in placed:
        if r in (0, board.rows - 1):
            score += config.EDGE_ROW_BONUS
        if c in (0, board.cols - 1):
            score += config.EDGE_COL_BONUS
        score += config.NEIGHBOR_BONUS * filled_neighbors(board.grid, r, c)
        if filled_neighbors(after, r, c) == 0:
            score += config.ISOLATED_PENALTY
    return score


def placement_score(
    board: Board, shape: BlockShape, row: int, col: int, config: HeuristicConfig
) -> tuple[float, Board]:
    """
    Immediate heuristic value of one placement. Returns the score and the
    scratch board after clearing, for callers that search deeper.
    """
    scratch, placed, lines = simulate_placement(board, shape, row, col)
    almost = (
        config.ONE_MISSING_BONUS * scratch.almost_complete_units(1, 1)
        + config.TWO_MISSING_BONUS * scratch.almost_complete_units(2, 2)
    )
    spatial = placement_features(board, placed, config)
    score = (
        lines * config.LINE_WEIGHT
        + almost * config.ALMOST_COMPLETE_WEIGHT
        + spatial * config.SPATIAL_WEIGHT
    )
    return score, scratch


def best_immediate_action(
    env: BlockPuzzleEnv, actions: list[ActionType], config: HeuristicConfig
) -> ActionType:
    """Greedy one-ply choice among `actions`, first-seen on ties."""
    best_action, best_score = actions[0], float("-inf")
    for action in actions:
        slot, row, col = decode_action(action)
        score, _ = placement_score(env.board, env.tray[slot], row, col, config)
        if score > best_score:
            best_action, best_score = action, score
    return best_action


def rank_actions(
    env: BlockPuzzleEnv, actions: list[ActionType], config: HeuristicConfig
) -> list[ActionType]:
    """`actions` sorted by immediate score, stable for equal scores."""
    scored = []
    for action in actions:
        slot, row, col = decode_action(action)
        score, _ = placement_score(env.board, env.tray[slot], row, col, config)
        scored.append((score, action))
    scored.sort(key=lambda item: item[0], reverse=True)
    return [action for _, action in scored]
