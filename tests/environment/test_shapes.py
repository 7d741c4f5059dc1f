import numpy as np
import pytest

from blockpuzzle.environment import (
    CURRICULUM_TIERS,
    FULL_CATALOG,
    SIMPLE_SHAPES,
    BlockShape,
    generate_tray,
    get_tier_name,
    get_tier_shapes,
)
from tests.conftest import make_shape

T, F = True, False


def test_shape_properties():
    shape = make_shape([[T, F], [T, T]], "corner")
    assert shape.height == 2
    assert shape.width == 2
    assert shape.size == 3
    assert shape.cells() == [(0, 0), (1, 0), (1, 1)]
    assert shape.to_list() == [[True, False], [True, True]]


@pytest.mark.parametrize(
    "matrix",
    [[], [[]], [[T, T], [T]], [[F, F]]],
    ids=["empty", "empty_row", "ragged", "no_cells"],
)
def test_invalid_shapes_rejected(matrix):
    with pytest.raises(ValueError):
        BlockShape.from_matrix(matrix, name="bad")


def test_from_matrix_names_catalog_shapes():
    assert BlockShape.from_matrix([[1, 1]]).name == "domino_h"
    assert BlockShape.from_matrix([[1, 0, 1]]).name == "custom"


def test_bitmap_pads_and_crops():
    bitmap = make_shape([[T, T]]).bitmap(3)
    assert bitmap.shape == (9,)
    assert bitmap.tolist() == [1, 1, 0, 0, 0, 0, 0, 0, 0]
    big = make_shape([[T] * 5])
    assert big.bitmap(3).sum() == 3


def test_curriculum_tiers_are_cumulative():
    previous: tuple[BlockShape, ...] = ()
    for level in range(len(CURRICULUM_TIERS)):
        shapes = get_tier_shapes(level)
        assert shapes[: len(previous)] == previous
        assert len(shapes) > len(previous)
        previous = shapes
    assert get_tier_shapes(0) == SIMPLE_SHAPES
    # Out-of-range levels clamp to the nearest tier
    assert get_tier_shapes(99) == get_tier_shapes(len(CURRICULUM_TIERS) - 1)
    assert get_tier_shapes(-1) == SIMPLE_SHAPES
    assert get_tier_name(0) == "simple"
    assert get_tier_name(99) == "full"


def test_curriculum_shapes_fit_three_by_three():
    for shape in get_tier_shapes(3):
        assert shape.height <= 3 and shape.width <= 3


def test_full_catalog_fits_five_by_five():
    assert all(s.height <= 5 and s.width <= 5 for s in FULL_CATALOG)
    assert len({s.name for s in FULL_CATALOG}) == len(FULL_CATALOG)


def test_generate_tray_size_and_membership():
    rng = np.random.default_rng(7)
    shapes = get_tier_shapes(1)
    for _ in range(20):
        tray = generate_tray(rng, shapes, 3)
        assert len(tray) == 3
        assert all(s in shapes for s in tray)


def test_generate_tray_avoids_duplicates_when_possible():
    rng = np.random.default_rng(0)
    shapes = get_tier_shapes(3)
    duplicates = sum(
        len({s.name for s in generate_tray(rng, shapes, 3)}) < 3 for _ in range(100)
    )
    assert duplicates < 5


def test_generate_tray_single_shape_repeats():
    rng = np.random.default_rng(0)
    only = (make_shape([[T]], "single"),)
    assert len(generate_tray(rng, only, 3)) == 3


def test_generate_tray_empty_raises():
    with pytest.raises(ValueError):
        generate_tray(np.random.default_rng(0), (), 3)


def test_generate_tray_is_deterministic_for_seed():
    shapes = get_tier_shapes(3)
    a = generate_tray(np.random.default_rng(42), shapes, 3)
    b = generate_tray(np.random.default_rng(42), shapes, 3)
    assert a == b
