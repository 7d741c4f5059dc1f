# File: blockpuzzle/environment/shapes.py
"""
Block shapes and the curriculum-tiered catalog.

Shapes are immutable boolean matrices anchored at their top-left cell.
Curriculum tiers are cumulative: level N draws from tiers 0..N.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from functools import cached_property

import numpy as np

logger = logging.getLogger(__name__)

T, F = True, False


@dataclass(frozen=True)
class BlockShape:
    """An immutable polyomino described by a rectangular boolean matrix."""

    name: str
    matrix: tuple[tuple[bool, ...], ...]

    def __post_init__(self):
        if not self.matrix or not self.matrix[0]:
            raise ValueError(f"Shape '{self.name}' has an empty matrix.")
        width = len(self.matrix[0])
        if any(len(row) != width for row in self.matrix):
            raise ValueError(f"Shape '{self.name}' matrix is not rectangular.")
        if not any(any(row) for row in self.matrix):
            raise ValueError(f"Shape '{self.name}' has no occupied cells.")

    @classmethod
    def from_matrix(
        cls, matrix: Sequence[Sequence[bool | int]], name: str | None = None
    ) -> "BlockShape":
        frozen = tuple(tuple(bool(v) for v in row) for row in matrix)
        if name is None:
            name = match_catalog_name(frozen) or "custom"
        return cls(name=name, matrix=frozen)

    @property
    def height(self) -> int:
        return len(self.matrix)

    @property
    def width(self) -> int:
        return len(self.matrix[0])

    @cached_property
    def cell_rows(self) -> np.ndarray:
        return np.array(
            [r for r, row in enumerate(self.matrix) for v in row if v], dtype=np.intp
        )

    @cached_property
    def cell_cols(self) -> np.ndarray:
        return np.array(
            [c for row in self.matrix for c, v in enumerate(row) if v], dtype=np.intp
        )

    @property
    def size(self) -> int:
        """Number of occupied cells."""
        return len(self.cell_rows)

    def cells(self) -> list[tuple[int, int]]:
        return list(zip(self.cell_rows.tolist(), self.cell_cols.tolist(), strict=True))

    def bitmap(self, pad_to: int) -> np.ndarray:
        """Flattened pad_to x pad_to float bitmap, cropped if the shape is larger."""
        out = np.zeros((pad_to, pad_to), dtype=np.float32)
        h, w = min(self.height, pad_to), min(self.width, pad_to)
        out[:h, :w] = np.asarray(self.matrix, dtype=np.float32)[:h, :w]
        return out.ravel()

    def to_list(self) -> list[list[bool]]:
        return [list(row) for row in self.matrix]


def _shape(name: str, matrix: list[list[bool]]) -> BlockShape:
    return BlockShape.from_matrix(matrix, name=name)


# --- Curriculum tiers (compact, <= 3x3) ---
SIMPLE_SHAPES: tuple[BlockShape, ...] = (
    _shape("single", [[T]]),
    _shape("domino_h", [[T, T]]),
    _shape("domino_v", [[T], [T]]),
    _shape("square_2", [[T, T], [T, T]]),
)

MEDIUM_SHAPES: tuple[BlockShape, ...] = (
    _shape("line3_h", [[T, T, T]]),
    _shape("line3_v", [[T], [T], [T]]),
    _shape("corner_tl", [[T, T], [T, F]]),
    _shape("corner_bl", [[T, F], [T, T]]),
)

COMPLEX_SHAPES: tuple[BlockShape, ...] = (
    _shape("t_down", [[T, T, T], [F, T, F]]),
    _shape("t_left", [[F, T], [T, T], [F, T]]),
    _shape("l_tall", [[T, F], [T, F], [T, T]]),
    _shape("l_flat", [[T, T, T], [T, F, F]]),
)

FULL_TIER_SHAPES: tuple[BlockShape, ...] = (
    _shape("big_corner_bl", [[T, F, F], [T, F, F], [T, T, T]]),
    _shape("j_tall", [[T, T], [F, T], [F, T]]),
    _shape("j_flat", [[F, F, T], [T, T, T]]),
    _shape("plus", [[F, T, F], [T, T, T], [F, T, F]]),
)

CURRICULUM_TIER_NAMES: tuple[str, ...] = ("simple", "medium", "complex", "full")
CURRICULUM_TIERS: tuple[tuple[BlockShape, ...], ...] = (
    SIMPLE_SHAPES,
    MEDIUM_SHAPES,
    COMPLEX_SHAPES,
    FULL_TIER_SHAPES,
)

# --- Full catalog (up to 5x5) ---
FULL_CATALOG: tuple[BlockShape, ...] = (
    _shape("single", [[T]]),
    _shape("domino_h", [[T, T]]),
    _shape("domino_v", [[T], [T]]),
    _shape("line3_h", [[T, T, T]]),
    _shape("line3_v", [[T], [T], [T]]),
    _shape("l_tall", [[T, F], [T, F], [T, T]]),
    _shape("l_flat", [[T, T, T], [T, F, F]]),
    _shape("j_tall", [[T, T], [F, T], [F, T]]),
    _shape("j_flat", [[F, F, T], [T, T, T]]),
    _shape("t_down", [[T, T, T], [F, T, F]]),
    _shape("t_left", [[F, T], [T, T], [F, T]]),
    _shape("t_up", [[F, T, F], [T, T, T]]),
    _shape("t_right", [[T, F], [T, T], [T, F]]),
    _shape("square_2", [[T, T], [T, T]]),
    _shape("z_flat", [[T, T, F], [F, T, T]]),
    _shape("z_tall", [[F, T], [T, T], [T, F]]),
    _shape("plus", [[F, T, F], [T, T, T], [F, T, F]]),
    _shape("line4_h", [[T, T, T, T]]),
    _shape("line4_v", [[T], [T], [T], [T]]),
    _shape("line5_h", [[T, T, T, T, T]]),
    _shape("line5_v", [[T], [T], [T], [T], [T]]),
    _shape("big_corner_bl", [[T, F, F], [T, F, F], [T, T, T]]),
    _shape("big_corner_tl", [[T, T, T], [T, F, F], [T, F, F]]),
    _shape("big_corner_tr", [[T, T, T], [F, F, T], [F, F, T]]),
    _shape("big_corner_br", [[F, F, T], [F, F, T], [T, T, T]]),
    _shape("step_down", [[T, F, F], [T, T, F], [F, T, T]]),
    _shape("step_up", [[F, F, T], [F, T, T], [T, T, F]]),
)

_NAME_BY_MATRIX: dict[tuple[tuple[bool, ...], ...], str] = {}
for _s in (*FULL_CATALOG, *(s for tier in CURRICULUM_TIERS for s in tier)):
    _NAME_BY_MATRIX.setdefault(_s.matrix, _s.name)


def match_catalog_name(matrix: tuple[tuple[bool, ...], ...]) -> str | None:
    return _NAME_BY_MATRIX.get(matrix)


def get_tier_shapes(level: int) -> tuple[BlockShape, ...]:
    """All shapes available at a curriculum level (tiers are cumulative)."""
    level = max(0, min(level, len(CURRICULUM_TIERS) - 1))
    shapes: tuple[BlockShape, ...] = ()
    for tier in CURRICULUM_TIERS[: level + 1]:
        shapes += tier
    return shapes


def get_tier_name(level: int) -> str:
    return CURRICULUM_TIER_NAMES[max(0, min(level, len(CURRICULUM_TIER_NAMES) - 1))]


def generate_tray(
    rng: np.random.Generator,
    shapes: Sequence[BlockShape],
    count: int = 3,
    avoid_duplicates: bool = True,
    max_attempts: int = 10,
) -> list[BlockShape]:
    """
    Draws `count` shapes uniformly from `shapes`.
    With `avoid_duplicates`, each slot is redrawn up to `max_attempts` times
    before a repeated shape is accepted.
    """
    if not shapes:
        raise ValueError("Cannot generate a tray from an empty shape list.")
    tray: list[BlockShape] = []
    for _ in range(count):
        choice = shapes[int(rng.integers(len(shapes)))]
        if avoid_duplicates:
            attempts = 1
            while choice in tray and attempts < max_attempts:
                choice = shapes[int(rng.integers(len(shapes)))]
                attempts += 1
        tray.append(choice)
    return tray
