"""Tests of the Peaceman well index of crossed cells."""

import numpy as np
import pytest

from wellblocks import (
    IntersectedCell,
    NumericDomainError,
    ValidationError,
    build_cartesian_grid,
    collect_intersected_cells,
    compute_directional_well_index,
    compute_directional_wellblock_radius,
    compute_projected_length,
    compute_well_index,
    evaluate_well_blocks,
)


@pytest.fixture
def single_cell_grid():
    return build_cartesian_grid((1, 1, 1), (10.0, 10.0, 10.0), permeability=100.0)


def test_wellblock_radius_isotropic():
    # 0.28 * sqrt(d1² + d2²) / 2 when k1 == k2
    radius = compute_directional_wellblock_radius(10.0, 10.0, 100.0, 100.0)
    assert radius == pytest.approx(0.28 * np.sqrt(200.0) / 2.0)


@pytest.mark.parametrize(
    "length, d1, d2, k1, k2, radius",
    [
        (10.0, 10.0, 10.0, 100.0, 100.0, 0.1),
        (4.0, 20.0, 5.0, 100.0, 25.0, 0.1),
        (7.5, 10.0, 2.0, 300.0, 3.0, 0.05),
    ],
)
def test_directional_well_index_matches_reference(
    reference_well_index, length, d1, d2, k1, k2, radius
):
    assert compute_directional_well_index(length, d1, d2, k1, k2, radius) == pytest.approx(
        reference_well_index(length, d1, d2, k1, k2, radius)
    )


def test_projected_length():
    assert compute_projected_length(np.array([3.0, 4.0, 0.0]), np.array([10.0, 0.0, 0.0])) == pytest.approx(3.0)
    assert compute_projected_length(np.array([-3.0, 4.0, 0.0]), np.array([2.0, 0.0, 0.0])) == pytest.approx(3.0)
    assert compute_projected_length(np.array([0.0, 4.0, 0.0]), np.array([1.0, 0.0, 0.0])) == 0.0


def test_projected_length_on_zero_axis_raises():
    with pytest.raises(NumericDomainError):
        compute_projected_length(np.array([1.0, 0.0, 0.0]), np.zeros(3))


def test_three_cells_along_x(line_grid, reference_well_index):
    cells = collect_intersected_cells(line_grid, (0.0, 0.0, 0.0), (30.0, 0.0, 0.0), 0.1)
    evaluate_well_blocks(cells)

    expected = reference_well_index(10.0, 10.0, 10.0, 100.0, 100.0, 0.1)
    assert expected == pytest.approx(17.945, abs=1e-3)
    for cell in cells:
        assert cell.is_evaluated
        assert cell.well_index == pytest.approx(expected)
        (diagnostics,) = cell.diagnostics
        assert (diagnostics.x, diagnostics.y, diagnostics.z) == pytest.approx((10.0, 0.0, 0.0))
        assert diagnostics.Lx == pytest.approx(10.0)
        assert diagnostics.Ly == 0.0
        assert diagnostics.Lz == 0.0
        assert diagnostics.wx == pytest.approx(expected)
        assert diagnostics.wy == 0.0
        assert diagnostics.wz == 0.0


def test_isotropic_diagonal_contributions_are_equal(single_cell_grid, reference_well_index):
    (cell,) = collect_intersected_cells(single_cell_grid, (1.0, 1.0, 1.0), (9.0, 9.0, 9.0), 0.1)
    well_index = compute_well_index(cell)

    (diagnostics,) = cell.diagnostics
    assert diagnostics.Lx == pytest.approx(8.0)
    assert diagnostics.wx == pytest.approx(diagnostics.wy)
    assert diagnostics.wy == pytest.approx(diagnostics.wz)

    directional = reference_well_index(8.0, 10.0, 10.0, 100.0, 100.0, 0.1)
    assert well_index == pytest.approx(np.sqrt(3.0) * directional)
    assert cell.well_index == well_index


def test_anisotropic_permeability(reference_well_index):
    grid = build_cartesian_grid((1, 1, 1), (10.0, 20.0, 5.0), permeability=(200.0, 100.0, 20.0))
    (cell,) = collect_intersected_cells(grid, (1.0, 10.0, 2.5), (9.0, 10.0, 2.5), 0.1)
    compute_well_index(cell)

    # Along x the flow is in the y-z plane
    expected = reference_well_index(8.0, 20.0, 5.0, 100.0, 20.0, 0.1)
    assert cell.well_index == pytest.approx(expected)
    assert cell.diagnostics[0].wy == 0.0


def test_segments_with_different_radii_are_summed_per_axis(
    single_cell_grid, reference_well_index
):
    record = IntersectedCell(cell=single_cell_grid.get_cell(0))
    record.add_segment((1.0, 5.0, 5.0), (5.0, 5.0, 5.0), 0.1)
    record.add_segment((5.0, 5.0, 5.0), (9.0, 5.0, 5.0), 0.2)
    well_index = compute_well_index(record)

    first = reference_well_index(4.0, 10.0, 10.0, 100.0, 100.0, 0.1)
    second = reference_well_index(4.0, 10.0, 10.0, 100.0, 100.0, 0.2)
    assert len(record.diagnostics) == 2
    assert record.diagnostics[0].wx == pytest.approx(first)
    assert record.diagnostics[1].wx == pytest.approx(second)
    assert well_index == pytest.approx(first + second)


def test_zero_permeability_raises():
    grid = build_cartesian_grid((1, 1, 1), (10.0, 10.0, 10.0), permeability=(0.0, 100.0, 100.0))
    cells = collect_intersected_cells(grid, (1.0, 5.0, 5.0), (9.0, 5.0, 5.0), 0.1)
    with pytest.raises(NumericDomainError):
        evaluate_well_blocks(cells)
    assert not cells[0].is_evaluated


def test_wellbore_wider_than_wellblock_radius_raises(single_cell_grid):
    cells = collect_intersected_cells(single_cell_grid, (1.0, 5.0, 5.0), (9.0, 5.0, 5.0), 5.0)
    with pytest.raises(NumericDomainError) as excinfo:
        evaluate_well_blocks(cells)
    assert isinstance(excinfo.value, ArithmeticError)


def test_evaluated_record_is_read_only(single_cell_grid):
    (cell,) = collect_intersected_cells(single_cell_grid, (1.0, 5.0, 5.0), (9.0, 5.0, 5.0), 0.1)
    compute_well_index(cell)

    with pytest.raises(ValidationError):
        compute_well_index(cell)
    with pytest.raises(ValidationError):
        cell.add_segment((9.0, 5.0, 5.0), (9.5, 5.0, 5.0), 0.1)


def test_well_index_is_never_negative(cube_grid):
    cells = collect_intersected_cells(cube_grid, (29.0, 1.0, 15.0), (2.0, 27.0, 3.0), 0.1)
    for cell in evaluate_well_blocks(cells):
        assert cell.well_index >= 0.0
        for diagnostics in cell.diagnostics:
            assert min(diagnostics.Lx, diagnostics.Ly, diagnostics.Lz) >= 0.0


def test_as_dict(line_grid):
    cells = collect_intersected_cells(line_grid, (0.0, 5.0, 5.0), (30.0, 5.0, 5.0), 0.1)
    evaluate_well_blocks(cells)

    report = cells[1].as_dict()
    assert report["traversal_index"] == 1
    assert report["global_index"] == 1
    assert report["ijk"] == (1, 0, 0)
    assert report["length"] == pytest.approx(10.0)
    assert report["well_index"] == cells[1].well_index
    assert report["segments"][0]["radius"] == 0.1
    assert report["diagnostics"][0]["Lx"] == pytest.approx(10.0)
