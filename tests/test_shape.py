from __future__ import annotations

import random

import numpy as np
import pytest

from blockfall.shape import MAX_COLOR, MIN_COLOR, Shape, ShapeType, base_matrix


@pytest.mark.parametrize("shape_type", list(ShapeType))
def test_four_rotations_restore_matrix(shape_type: ShapeType) -> None:
    shape = Shape(shape_type, color=3)
    original = shape.matrix
    for _ in range(4):
        shape.rotate()
    assert np.array_equal(shape.matrix, original)


def test_rotation_is_clockwise_transform() -> None:
    shape = Shape(ShapeType.L, color=1)
    original = shape.matrix
    size = shape.size
    shape.rotate()
    rotated = shape.matrix
    for x in range(size):
        for y in range(size):
            assert rotated[x, y] == original[size - 1 - y, x]


def test_line_rotates_between_vertical_and_horizontal() -> None:
    shape = Shape(ShapeType.E, color=1)
    assert shape.cells() == [(1, 0), (1, 1), (1, 2), (1, 3)]
    shape.rotate()
    assert sorted(shape.cells()) == [(0, 2), (1, 2), (2, 2), (3, 2)]


def test_sizes_per_variant() -> None:
    sizes = {t: Shape(t, color=1).size for t in ShapeType}
    assert sizes == {
        ShapeType.K: 2,
        ShapeType.E: 4,
        ShapeType.L: 3,
        ShapeType.T: 3,
        ShapeType.R: 3,
    }


def test_random_colour_in_range() -> None:
    rng = random.Random(5)
    colours = {Shape.create(ShapeType.T, rng).color for _ in range(200)}
    assert colours <= set(range(MIN_COLOR, MAX_COLOR + 1))
    assert len(colours) == MAX_COLOR


def test_create_random_covers_all_variants() -> None:
    rng = random.Random(1)
    seen = {Shape.create_random(rng).shape_type for _ in range(200)}
    assert seen == set(ShapeType)


def test_occupancy_bounds() -> None:
    shape = Shape(ShapeType.K, color=2)
    assert shape.occupancy(1, 1) == 1
    assert shape[0, 1] == 1
    with pytest.raises(IndexError):
        shape.occupancy(2, 0)
    with pytest.raises(IndexError):
        shape.occupancy(0, -1)


def test_clone_keeps_variant_colour_and_rotation() -> None:
    shape = Shape(ShapeType.R, color=6)
    shape.rotate()
    cloned = shape.clone()
    assert cloned == shape
    assert cloned is not shape
    assert cloned.shape_type is ShapeType.R

    cloned.rotate()
    assert cloned != shape
    assert np.array_equal(shape.matrix, np.rot90(base_matrix(ShapeType.R), 1, axes=(1, 0)))


def test_set_matrix_validates_size_and_values() -> None:
    shape = Shape(ShapeType.T, color=1)
    shape.set_matrix([[0, 0, 0], [1, 1, 1], [0, 1, 0]])
    assert shape.cells() == [(1, 0), (1, 1), (1, 2), (2, 1)]
    assert shape.shape_type is ShapeType.T

    with pytest.raises(ValueError):
        shape.set_matrix([[1, 1], [1, 1]])
    with pytest.raises(ValueError):
        shape.set_matrix([[0, 0, 0], [2, 1, 1], [0, 1, 0]])


def test_set_color_rejects_out_of_range() -> None:
    shape = Shape(ShapeType.K, color=1)
    shape.set_color(7)
    assert shape.color == 7
    with pytest.raises(ValueError):
        shape.set_color(0)
    with pytest.raises(ValueError):
        Shape(ShapeType.K, color=8)
