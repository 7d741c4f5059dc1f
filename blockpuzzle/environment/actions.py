# File: blockpuzzle/environment/actions.py
"""
Action codec.

Packed ids are `block_index * 1000 + row * 10 + col`. Dense indices
`block_index * rows * cols + row * cols + col` address network outputs.
"""

from ..utils.types import ActionType

BLOCK_FACTOR = 1000
ROW_FACTOR = 10


def encode_action(block_index: int, row: int, col: int) -> ActionType:
    return block_index * BLOCK_FACTOR + row * ROW_FACTOR + col


def decode_action(action: ActionType) -> tuple[int, int, int]:
    """Exact inverse of encode_action for non-negative components below the factors."""
    block_index, rem = divmod(int(action), BLOCK_FACTOR)
    row, col = divmod(rem, ROW_FACTOR)
    return block_index, row, col


def action_to_index(action: ActionType, rows: int, cols: int) -> int:
    block_index, row, col = decode_action(action)
    return block_index * rows * cols + row * cols + col


def index_to_action(index: int, rows: int, cols: int) -> ActionType:
    block_index, rem = divmod(int(index), rows * cols)
    row, col = divmod(rem, cols)
    return encode_action(block_index, row, col)


def actions_to_indices(actions: list[ActionType], rows: int, cols: int) -> list[int]:
    return [action_to_index(a, rows, cols) for a in actions]
