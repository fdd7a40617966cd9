"""Tests of grid construction and point location."""

import numpy as np
import pytest

from wellblocks import (
    CellNotFoundError,
    GridQuery,
    HexahedralGrid,
    ValidationError,
    build_cartesian_grid,
)


def test_cartesian_grid_numbering(cube_grid):
    assert cube_grid.shape == (3, 3, 3)
    assert cube_grid.num_cells == 27
    assert cube_grid.global_index(1, 0, 0) == 1
    assert cube_grid.global_index(0, 1, 0) == 3
    assert cube_grid.global_index(0, 0, 1) == 9
    assert cube_grid.ijk(22) == (1, 1, 2)

    cell = cube_grid.get_cell_by_ijk(2, 1, 0)
    assert cell.global_index == 5
    assert cell.ijk == (2, 1, 0)
    np.testing.assert_allclose(cell.centroid, [25.0, 15.0, 5.0])


def test_grid_satisfies_query_protocol(cube_grid):
    assert isinstance(cube_grid, GridQuery)


def test_cells_are_cached(cube_grid):
    assert cube_grid.get_cell(4) is cube_grid.get_cell(4)


def test_rectilinear_spacing():
    grid = build_cartesian_grid(
        grid_shape=(3, 1, 1),
        cell_dimensions=([1.0, 2.0, 3.0], 5.0, 2.0),
        permeability=1.0,
        origin=(100.0, 0.0, -10.0),
    )
    cell = grid.get_cell(2)
    assert cell.dimensions == pytest.approx((3.0, 5.0, 2.0))
    np.testing.assert_allclose(cell.centroid, [104.5, 2.5, -9.0])
    assert grid.bounds.as_tuple() == pytest.approx((100.0, 0.0, -10.0, 106.0, 5.0, -8.0))


def test_heterogeneous_permeability_follows_cell_indices():
    kx = np.array([[[1.0], [2.0]], [[11.0], [12.0]]])
    grid = build_cartesian_grid(
        grid_shape=(2, 2, 1),
        cell_dimensions=(1.0, 1.0, 1.0),
        permeability=(kx, 2 * kx, 3 * kx),
    )
    cell = grid.get_cell_by_ijk(1, 0, 0)
    assert cell.permeability == pytest.approx((11.0, 22.0, 33.0))
    assert grid.get_cell(2).permx == pytest.approx(2.0)
    assert grid.get_cell(3).permx == pytest.approx(12.0)


def test_anisotropic_permeability():
    grid = build_cartesian_grid((1, 1, 1), (1.0, 1.0, 1.0), permeability=(100.0, 50.0, 5.0))
    assert grid.get_cell(0).permeability == pytest.approx((100.0, 50.0, 5.0))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"grid_shape": (0, 1, 1)},
        {"cell_dimensions": (0.0, 1.0, 1.0)},
        {"cell_dimensions": ([1.0, 1.0], 1.0, 1.0)},
        {"permeability": -1.0},
        {"permeability": (1.0, 1.0)},
        {"permeability": (np.ones((2, 2, 2)), 1.0, 1.0)},
    ],
)
def test_invalid_grid_input_raises(kwargs):
    arguments = {
        "grid_shape": (3, 1, 1),
        "cell_dimensions": (1.0, 1.0, 1.0),
        "permeability": 1.0,
    }
    arguments.update(kwargs)
    with pytest.raises(ValidationError):
        build_cartesian_grid(**arguments)


def test_invalid_nodes_raise():
    with pytest.raises(ValidationError):
        HexahedralGrid(np.zeros((2, 2, 3)), 1.0, 1.0, 1.0)


def test_locate_interior_points(cube_grid):
    assert cube_grid.get_cell_enveloping_point((5.0, 5.0, 5.0)).global_index == 0
    assert cube_grid.get_cell_enveloping_point((25.0, 15.0, 5.0)).global_index == 5
    assert cube_grid.get_cell_enveloping_point((29.9, 29.9, 29.9)).global_index == 26


def test_locate_points_on_grid_boundary(line_grid):
    assert line_grid.get_cell_enveloping_point((0.0, 0.0, 0.0)).global_index == 0
    assert line_grid.get_cell_enveloping_point((30.0, 0.0, 0.0)).global_index == 2


def test_locate_point_outside_grid_raises(line_grid):
    with pytest.raises(CellNotFoundError):
        line_grid.get_cell_enveloping_point((31.0, 5.0, 5.0))


def test_candidate_hint_is_not_required_to_contain_point(line_grid):
    cell = line_grid.get_cell_enveloping_point((25.0, 5.0, 5.0), candidates=[0])
    assert cell.global_index == 2


def test_locate_beyond_nearest_candidates(sheared_grid):
    sheared_grid.nearest_candidates = 1
    # The nearest centroid is cell 0, but at z = 1 the point lies in the leaning cell 1
    assert sheared_grid.get_cell_enveloping_point((10.5, 5.0, 1.0)).global_index == 1


def test_locate_in_sheared_grid(sheared_grid):
    # At z = 5 the cells span x in [1.5, 11.5], [11.5, 21.5] and [21.5, 31.5]
    assert sheared_grid.get_cell_enveloping_point((11.0, 5.0, 5.0)).global_index == 0
    assert sheared_grid.get_cell_enveloping_point((12.0, 5.0, 5.0)).global_index == 1
    assert sheared_grid.get_cell_enveloping_point((10.5, 5.0, 1.0)).global_index == 1


def test_bounding_box_cell_indices(cube_grid):
    assert cube_grid.get_bounding_box_cell_indices(0.0, 0.0, 0.0, 5.0, 5.0, 5.0) == [0]
    assert cube_grid.get_bounding_box_cell_indices(9.0, 9.0, 9.0, 11.0, 11.0, 11.0) == [
        0, 1, 3, 4, 9, 10, 12, 13,
    ]
    assert cube_grid.get_bounding_box_cell_indices(40.0, 40.0, 40.0, 50.0, 50.0, 50.0) == []
