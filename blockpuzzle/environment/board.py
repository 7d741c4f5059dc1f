# File: blockpuzzle/environment/board.py
import logging
from collections.abc import Sequence

import numpy as np

from .shapes import BlockShape

logger = logging.getLogger(__name__)


def line_clear_score(cleared: int) -> int:
    """Game score awarded for clearing `cleared` units in one placement."""
    if cleared <= 0:
        return 0
    bonus = cleared * cleared * 50 if cleared > 1 else 0
    return 100 * cleared + bonus


def hard_mode_mask(rows: int, cols: int, box_size: int) -> np.ndarray:
    """Blocked cells for hard mode: the central box of the grid."""
    mask = np.zeros((rows, cols), dtype=bool)
    r0 = (rows // box_size // 2) * box_size
    c0 = (cols // box_size // 2) * box_size
    mask[r0 : r0 + box_size, c0 : c0 + box_size] = True
    return mask


def build_unit_matrix(rows: int, cols: int, box_size: int) -> np.ndarray:
    """(num_units, rows*cols) membership matrix: rows, then columns, then boxes."""
    units: list[np.ndarray] = []
    for r in range(rows):
        m = np.zeros((rows, cols), dtype=bool)
        m[r, :] = True
        units.append(m.ravel())
    for c in range(cols):
        m = np.zeros((rows, cols), dtype=bool)
        m[:, c] = True
        units.append(m.ravel())
    for br in range(0, rows, box_size):
        for bc in range(0, cols, box_size):
            m = np.zeros((rows, cols), dtype=bool)
            m[br : br + box_size, bc : bc + box_size] = True
            units.append(m.ravel())
    return np.stack(units)


class Board:
    """
    Boolean placement grid. Rows, columns and box_size x box_size squares
    clear when every playable cell in them is filled. Blocked cells can
    never be filled and count as complete for clearing purposes.
    """

    def __init__(
        self,
        rows: int = 9,
        cols: int = 9,
        box_size: int = 3,
        blocked: np.ndarray | None = None,
    ):
        self.rows = rows
        self.cols = cols
        self.box_size = box_size
        self.grid = np.zeros((rows, cols), dtype=bool)
        self.blocked = (
            np.zeros((rows, cols), dtype=bool)
            if blocked is None
            else np.asarray(blocked, dtype=bool).copy()
        )
        if self.blocked.shape != (rows, cols):
            raise ValueError(
                f"Blocked mask shape {self.blocked.shape} does not match board ({rows}, {cols})."
            )
        self._unit_matrix = build_unit_matrix(rows, cols, box_size)
        self._unit_counts = self._unit_matrix.astype(np.int32)
        self._unit_playable = self._unit_counts @ (~self.blocked).ravel().astype(np.int32)

    @classmethod
    def from_grid(
        cls,
        grid: Sequence[Sequence[bool | int]] | np.ndarray,
        rows: int = 9,
        cols: int = 9,
        box_size: int = 3,
        blocked: np.ndarray | None = None,
    ) -> "Board":
        """Builds a board from a foreign grid, zero-padding or cropping to size."""
        board = cls(rows, cols, box_size, blocked)
        src_rows = list(grid)
        if len(src_rows) != rows or any(len(row) != cols for row in src_rows):
            logger.debug(f"Resizing external grid ({len(src_rows)} rows) to ({rows}, {cols}).")
        for r, row in enumerate(src_rows[:rows]):
            values = [bool(v) for v in list(row)[:cols]]
            board.grid[r, : len(values)] = values
        board.grid &= ~board.blocked
        return board

    @property
    def num_units(self) -> int:
        return int(self._unit_matrix.shape[0])

    def copy(self) -> "Board":
        new = Board.__new__(Board)
        new.rows = self.rows
        new.cols = self.cols
        new.box_size = self.box_size
        new.grid = self.grid.copy()
        new.blocked = self.blocked.copy()
        # Unit tables are never mutated, so they can be shared
        new._unit_matrix = self._unit_matrix
        new._unit_counts = self._unit_counts
        new._unit_playable = self._unit_playable
        return new

    def reset(self):
        self.grid[:] = False

    def open_mask(self) -> np.ndarray:
        return ~(self.grid | self.blocked)

    def can_place(self, shape: BlockShape, row: int, col: int) -> bool:
        """True iff every occupied cell of `shape` lands in bounds on an open cell."""
        if row < 0 or col < 0:
            return False
        if row + shape.height > self.rows or col + shape.width > self.cols:
            return False
        rr = shape.cell_rows + row
        cc = shape.cell_cols + col
        return not (self.grid[rr, cc].any() or self.blocked[rr, cc].any())

    def place(self, shape: BlockShape, row: int, col: int) -> list[tuple[int, int]]:
        """Fills the shape's cells and returns their coordinates."""
        if not self.can_place(shape, row, col):
            raise ValueError(f"Cannot place shape '{shape.name}' at ({row}, {col}).")
        rr = shape.cell_rows + row
        cc = shape.cell_cols + col
        self.grid[rr, cc] = True
        return list(zip(rr.tolist(), cc.tolist(), strict=True))

    def placement_mask(self, shape: BlockShape) -> np.ndarray:
        """Boolean (rows-h+1, cols-w+1) array of anchors where `shape` fits."""
        out_h = self.rows - shape.height + 1
        out_w = self.cols - shape.width + 1
        if out_h <= 0 or out_w <= 0:
            return np.zeros((0, 0), dtype=bool)
        closed = self.grid | self.blocked
        conflict = np.zeros((out_h, out_w), dtype=bool)
        for dr, dc in shape.cells():
            conflict |= closed[dr : dr + out_h, dc : dc + out_w]
        return ~conflict

    def valid_positions(self, shape: BlockShape) -> list[tuple[int, int]]:
        """All anchor positions where `shape` fits, row-major."""
        return [(int(r), int(c)) for r, c in np.argwhere(self.placement_mask(shape))]

    def unit_filled_counts(self) -> np.ndarray:
        """Filled (non-blocked) cells per unit."""
        return self._unit_counts @ self.grid.ravel().astype(np.int32)

    def completed_units(self) -> np.ndarray:
        """Indices of units whose playable cells are all filled."""
        missing = self._unit_playable - self.unit_filled_counts()
        return np.flatnonzero((missing == 0) & (self._unit_playable > 0))

    def clear_completed_lines(self) -> int:
        """
        Empties every complete row, column and box. Units are detected against
        the same snapshot, so one cell can be cleared by several units at once.
        Returns the number of units cleared.
        """
        completed = self.completed_units()
        if len(completed) == 0:
            return 0
        to_clear = self._unit_matrix[completed].any(axis=0).reshape(self.rows, self.cols)
        self.grid[to_clear] = False
        return int(len(completed))

    def is_game_over(self, tray: Sequence[BlockShape]) -> bool:
        """True iff no shape in a non-empty tray fits anywhere on the board."""
        if not tray:
            return False
        return not any(self.placement_mask(shape).any() for shape in tray)

    def fill_fractions(self) -> np.ndarray:
        """Filled fraction of the playable cells of each unit (rows, cols, boxes)."""
        playable = np.maximum(self._unit_playable, 1).astype(np.float32)
        return self.unit_filled_counts().astype(np.float32) / playable

    def missing_counts(self) -> np.ndarray:
        """Number of open playable cells left in each unit."""
        return self._unit_playable - self.unit_filled_counts()

    def almost_complete_units(self, max_missing: int, min_missing: int = 1) -> int:
        """Units with between min_missing and max_missing open cells."""
        missing = self.missing_counts()
        playable = self._unit_playable > 0
        return int(((missing >= min_missing) & (missing <= max_missing) & playable).sum())

    def count_filled(self) -> int:
        return int(self.grid.sum())

    def __repr__(self) -> str:
        rows = [
            "".join(
                "#" if self.grid[r, c] else ("x" if self.blocked[r, c] else ".")
                for c in range(self.cols)
            )
            for r in range(self.rows)
        ]
        return "Board(\n  " + "\n  ".join(rows) + "\n)"
