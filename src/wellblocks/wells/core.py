"""Core well index calculations."""

import logging
import typing

import numba
import numpy as np

from wellblocks.config import Config
from wellblocks.errors import NumericDomainError
from wellblocks.types import Orientation, Point3D
from wellblocks.wells.segments import IntersectedCell, SegmentDiagnostics

logger = logging.getLogger(__name__)

__all__ = [
    "compute_directional_wellblock_radius",
    "compute_directional_well_index",
    "compute_projected_length",
    "compute_well_index",
    "evaluate_well_blocks",
]


@numba.njit(cache=True)
def compute_directional_wellblock_radius(
    delta_1: float,
    delta_2: float,
    k_1: float,
    k_2: float,
    coefficient: float = 0.28,
) -> float:
    """
    Compute Peaceman's equivalent wellblock radius for flow in the plane of two
    anisotropic cell axes.

    The formula is given by:

        r_eq = 0.28 * √[ ∆1² * √(k2 / k1) + ∆2² * √(k1 / k2) ] / ( (k1 / k2)^¼ + (k2 / k1)^¼ )

    where:
        - ∆1, ∆2 are the cell dimensions along the two axes perpendicular to the well
        - k1, k2 are the permeabilities along those axes

    :param delta_1: Cell dimension along the first perpendicular axis.
    :param delta_2: Cell dimension along the second perpendicular axis.
    :param k_1: Permeability along the first perpendicular axis (mD).
    :param k_2: Permeability along the second perpendicular axis (mD).
    :param coefficient: Leading coefficient of the formula.
    :return: The equivalent wellblock radius.
    """
    ratio_21 = np.sqrt(k_2 / k_1)
    ratio_12 = np.sqrt(k_1 / k_2)
    return (
        coefficient
        * np.sqrt(delta_1**2 * ratio_21 + delta_2**2 * ratio_12)
        / (np.sqrt(ratio_12) + np.sqrt(ratio_21))
    )


@numba.njit(cache=True)
def compute_directional_well_index(
    length: float,
    delta_1: float,
    delta_2: float,
    k_1: float,
    k_2: float,
    wellbore_radius: float,
    conversion_factor: float = 0.008527,
    coefficient: float = 0.28,
) -> float:
    """
    Compute the well index contribution of a well projected on one cell axis.

    The formula is given by:

        W = C * 2π * √(k1 * k2) * L / ln(r_eq / rw)

    where:
        - C is the unit conversion factor
        - k1, k2 are the permeabilities perpendicular to the axis (mD)
        - L is the length of the well projected on the axis
        - r_eq is the equivalent wellblock radius in the perpendicular plane
        - rw is the wellbore radius

    :param length: Length of the well projected on the axis.
    :param delta_1: Cell dimension along the first perpendicular axis.
    :param delta_2: Cell dimension along the second perpendicular axis.
    :param k_1: Permeability along the first perpendicular axis (mD).
    :param k_2: Permeability along the second perpendicular axis (mD).
    :param wellbore_radius: Radius of the wellbore.
    :param conversion_factor: Unit conversion factor C.
    :param coefficient: Leading coefficient of the equivalent radius formula.
    :return: The directional well index.
    """
    wellblock_radius = compute_directional_wellblock_radius(
        delta_1, delta_2, k_1, k_2, coefficient
    )
    return (
        conversion_factor
        * 2.0
        * np.pi
        * np.sqrt(k_1 * k_2)
        * length
        / np.log(wellblock_radius / wellbore_radius)
    )


def compute_projected_length(vector: Point3D, axis: Point3D) -> float:
    """
    Length of the projection of `vector` on `axis`.

    Only the length matters, not the sign or the position of the projection.

    :param vector: Vector to project.
    :param axis: Axis to project on (need not be normalized).
    :return: Non-negative projected length.
    """
    axis_norm_squared = float(np.dot(axis, axis))
    if axis_norm_squared == 0.0:
        raise NumericDomainError("Cannot project on a zero-length cell axis")
    return float(np.linalg.norm(axis * (np.dot(axis, vector) / axis_norm_squared)))


def _check_cell_domain(intersected_cell: IntersectedCell) -> None:
    cell = intersected_cell.cell
    for name, value in zip(("permx", "permy", "permz"), cell.permeability):
        if not value > 0.0:
            raise NumericDomainError(
                f"Cell {cell.global_index} has non-positive {name} ({value}), "
                "the well index is undefined"
            )
    for name, value in zip(("dx", "dy", "dz"), cell.dimensions):
        if not value > 0.0:
            raise NumericDomainError(
                f"Cell {cell.global_index} has zero {name}, the well index is undefined"
            )


def _directional_contribution(
    length: float,
    properties: typing.Tuple[float, float, float, float],
    radius: float,
    conversion_factor: float,
    coefficient: float,
    global_index: int,
) -> float:
    if length == 0.0:
        return 0.0

    delta_1, delta_2, k_1, k_2 = properties
    wellblock_radius = compute_directional_wellblock_radius(
        delta_1, delta_2, k_1, k_2, coefficient
    )
    if not wellblock_radius > radius:
        raise NumericDomainError(
            f"Wellbore radius {radius} is not smaller than the equivalent wellblock "
            f"radius {wellblock_radius:.6g} of cell {global_index}"
        )
    return float(
        compute_directional_well_index(
            length, delta_1, delta_2, k_1, k_2, radius, conversion_factor, coefficient
        )
    )


def compute_well_index(
    intersected_cell: IntersectedCell, config: typing.Optional[Config] = None
) -> float:
    """
    Compute the well index of a crossed cell and store it, with per-segment
    diagnostics, on the record.

    Each segment is projected on the cell's three local axes. The directional
    contributions of all segments, each with its own radius, are summed per axis
    and combined as `√(Σwx² + Σwy² + Σwz²)`.

    :param intersected_cell: The record to evaluate. Must not be evaluated yet.
    :param config: Configuration providing the formula constants.
    :return: The well index of the cell.
    :raises NumericDomainError: If the cell's permeabilities or dimensions are not
        positive, or the wellbore is wider than the equivalent wellblock radius.
    """
    config = config or Config()
    conversion_factor = config.get_constant("WELL_INDEX_CONVERSION_FACTOR")
    coefficient = config.get_constant("PEACEMAN_RADIUS_COEFFICIENT")

    _check_cell_domain(intersected_cell)
    cell = intersected_cell.cell
    totals = {Orientation.X: 0.0, Orientation.Y: 0.0, Orientation.Z: 0.0}
    diagnostics = []
    for segment in intersected_cell.segments:
        vector = segment.vector
        lengths = {}
        contributions = {}
        for orientation in totals:
            lengths[orientation] = compute_projected_length(
                vector, cell.axis_vector(orientation)
            )
            contributions[orientation] = _directional_contribution(
                lengths[orientation],
                cell.transverse_properties(orientation),
                segment.radius,
                conversion_factor,
                coefficient,
                cell.global_index,
            )
            totals[orientation] += contributions[orientation]

        diagnostics.append(
            SegmentDiagnostics(
                x=float(vector[0]),
                y=float(vector[1]),
                z=float(vector[2]),
                Lx=lengths[Orientation.X],
                Ly=lengths[Orientation.Y],
                Lz=lengths[Orientation.Z],
                wx=contributions[Orientation.X],
                wy=contributions[Orientation.Y],
                wz=contributions[Orientation.Z],
            )
        )

    well_index = float(np.sqrt(sum(total**2 for total in totals.values())))
    intersected_cell.set_well_index(well_index, diagnostics)
    logger.debug(
        f"Cell {cell.global_index}: well index {well_index:.6g} from {len(diagnostics)} segment(s)"
    )
    return well_index


def evaluate_well_blocks(
    intersected_cells: typing.Sequence[IntersectedCell],
    config: typing.Optional[Config] = None,
) -> typing.List[IntersectedCell]:
    """
    Compute the well index of every crossed cell.

    :param intersected_cells: Records produced by a traversal.
    :param config: Configuration providing the formula constants.
    :return: The same records, evaluated.
    """
    config = config or Config()
    for intersected_cell in intersected_cells:
        compute_well_index(intersected_cell, config)
    return list(intersected_cells)
