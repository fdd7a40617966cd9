"""Walking a straight well path through the cells of a grid."""

import logging
import typing

import numpy as np

from wellblocks._precision import get_coordinate_resolution, get_dtype
from wellblocks.config import Config
from wellblocks.errors import (
    DegenerateInputError,
    GeometricConsistencyError,
    TraversalOverflowError,
    TraversalStallError,
    ValidationError,
)
from wellblocks.geometry import BoundingBox, HexahedralCell, as_point
from wellblocks.types import GridQuery, Point3D, PointLike
from wellblocks.wells.segments import IntersectedCell

logger = logging.getLogger(__name__)

__all__ = [
    "find_exit_point",
    "collect_intersected_cells",
    "validate_well_path",
]


def validate_well_path(
    heel: PointLike, toe: PointLike, wellbore_radius: float
) -> typing.Tuple[Point3D, Point3D]:
    """
    Check that a straight well path can be traversed.

    :param heel: Start of the path.
    :param toe: End of the path.
    :param wellbore_radius: Radius of the wellbore.
    :return: (heel, toe) as points.
    :raises DegenerateInputError: If the path has zero length, a coordinate is not
        finite, or the radius is not positive.
    """
    try:
        heel = as_point(heel)
        toe = as_point(toe)
    except ValidationError as exc:
        raise DegenerateInputError(str(exc)) from exc

    if not (np.isfinite(wellbore_radius) and wellbore_radius > 0.0):
        raise DegenerateInputError(
            f"Wellbore radius must be positive, got {wellbore_radius}"
        )
    if np.linalg.norm(toe - heel) == 0.0:
        raise DegenerateInputError(
            f"Well path has zero length (heel and toe are both at {heel.tolist()})"
        )
    return heel, toe


def find_exit_point(
    cell: HexahedralCell,
    entry_point: Point3D,
    end_point: Point3D,
    exclusion_point: Point3D,
    config: typing.Optional[Config] = None,
) -> Point3D:
    """
    Find where the line from `entry_point` toward `end_point` leaves `cell`.

    The faces are checked in order. A face's intersection with the line is accepted if
    it lies inside the cell (within the feasibility tolerance), is not `exclusion_point`,
    and lies between `entry_point` and `end_point` along the line.

    :param cell: The cell being crossed.
    :param entry_point: Where the line enters the cell.
    :param end_point: Where the line ends (the toe).
    :param exclusion_point: A point that must not be returned, usually the entry point.
    :param config: Configuration providing the tolerances.
    :return: The exit point, or `entry_point` itself if the line only touches the cell
        at a corner or an edge.
    """
    config = config or Config()
    direction = end_point - entry_point
    for face in cell.faces:
        if np.dot(face.normal_vector, direction) == 0.0:
            continue

        candidate = face.intersection_with_line(entry_point, end_point)
        if not all(
            other.point_on_same_side(candidate, config.feasibility_tolerance)
            for other in cell.faces
        ):
            continue
        if np.linalg.norm(exclusion_point - candidate) <= config.exclusion_tolerance:
            continue
        if np.dot(direction, candidate - entry_point) < 0.0:
            continue
        if np.dot(direction, end_point - candidate) < 0.0:
            continue
        return candidate

    logger.warning(
        f"Path through {entry_point.tolist()} toward {end_point.tolist()} only touches "
        f"cell {cell.global_index}; no exit point found"
    )
    return entry_point


class _Traversal:
    """Bookkeeping for one walk from heel to toe."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.visits = 0
        self.cells: typing.List[IntersectedCell] = []

    def visit(self, cell: HexahedralCell) -> IntersectedCell:
        """
        Get the record for `cell`, counting the visit.

        Consecutive visits of the same cell share a record. A cell re-entered after
        the path has left it gets a new record.
        """
        self.visits += 1
        if self.visits > self.config.max_cell_visits:
            raise TraversalOverflowError(
                f"Traversal visited more than {self.config.max_cell_visits} cells. "
                "The grid may have non-convex or malformed cells."
            )
        if self.cells and self.cells[-1].global_index == cell.global_index:
            return self.cells[-1]

        record = IntersectedCell(cell=cell, traversal_index=len(self.cells))
        self.cells.append(record)
        logger.debug(f"Entered cell {cell.global_index} ({cell.ijk})")
        return record

    def check_progress(self, entry_point: Point3D, exit_point: Point3D) -> None:
        if np.linalg.norm(exit_point - entry_point) > self.config.exclusion_tolerance:
            return
        message = (
            f"Traversal stalled at {entry_point.tolist()} after {self.visits} cell visit(s)"
        )
        if self.config.detect_stalls:
            raise TraversalStallError(message)
        logger.warning(message)


def _locate_endpoint(
    grid: GridQuery,
    point: Point3D,
    toward: Point3D,
    candidates: typing.Optional[typing.List[int]],
    config: Config,
) -> HexahedralCell:
    """
    Get the cell enclosing an end of the path.

    An end lying on a face shared by several cells is enclosed by all of them.
    The cell the path runs through from that end is preferred.
    """
    cell = grid.get_cell_enveloping_point(point, candidates)
    length = float(np.linalg.norm(toward - point))
    fraction = min(config.probe_distance / length, 0.5)
    probe = point * (1.0 - fraction) + toward * fraction
    if cell.contains(probe, config.feasibility_tolerance):
        return cell

    neighbour = grid.get_cell_enveloping_point(probe, candidates)
    if neighbour.contains(point, config.feasibility_tolerance):
        return neighbour
    return cell


def collect_intersected_cells(
    grid: GridQuery,
    heel: PointLike,
    toe: PointLike,
    wellbore_radius: float,
    config: typing.Optional[Config] = None,
) -> typing.List[IntersectedCell]:
    """
    Walk the straight path from `heel` to `toe` and record the segment inside each crossed cell.

    :param grid: Grid to walk through.
    :param heel: Start of the path.
    :param toe: End of the path.
    :param wellbore_radius: Radius recorded on every segment.
    :param config: Configuration providing the tolerances and the visit cap.
    :return: Records in path order. Well indices are not computed.
    :raises DegenerateInputError: If the path has zero length or the radius is not positive.
    :raises TraversalOverflowError: If more than `config.max_cell_visits` cells are visited.
    :raises GeometricConsistencyError: If the grid returns a cell that does not enclose the heel
        or the toe, or the walk does not end in the cell enclosing the toe.
    """
    config = config or Config()
    start_point, end_point = validate_well_path(heel, toe, wellbore_radius)
    resolution = get_coordinate_resolution(
        float(max(np.abs(start_point).max(), np.abs(end_point).max()))
    )
    if config.exclusion_tolerance < resolution:
        logger.warning(
            f"Exclusion tolerance {config.exclusion_tolerance} is below the coordinate "
            f"resolution {resolution:.3g} of {np.dtype(get_dtype()).name}, exit points "
            "may not be told apart from entry points"
        )

    candidates = None
    if config.use_bounding_box:
        box = BoundingBox.around(start_point, end_point, config.bounding_box_padding)
        candidates = grid.get_bounding_box_cell_indices(*box.as_tuple())
        logger.debug(f"{len(candidates)} cell(s) in the path's bounding box")

    first_cell = _locate_endpoint(grid, start_point, end_point, candidates, config)
    last_cell = _locate_endpoint(grid, end_point, start_point, candidates, config)
    for name, point, cell in (("heel", start_point, first_cell), ("toe", end_point, last_cell)):
        if not cell.contains(point, config.feasibility_tolerance):
            raise GeometricConsistencyError(
                f"Cell {cell.global_index} returned for the {name} at {point.tolist()} does not enclose it"
            )
    traversal = _Traversal(config)
    record = traversal.visit(first_cell)

    if first_cell.global_index == last_cell.global_index:
        record.add_segment(start_point, end_point, wellbore_radius)
        return traversal.cells

    exit_point = find_exit_point(first_cell, start_point, end_point, start_point, config)
    # Only reached when no face qualified (the heel touches the cell at a face,
    # edge or corner) or a solver returned a face behind the heel
    if np.dot(end_point - start_point, exit_point - start_point) <= 0.0:
        exit_point = find_exit_point(first_cell, start_point, end_point, exit_point, config)
    traversal.check_progress(start_point, exit_point)
    record.add_segment(start_point, exit_point, wellbore_radius)

    while True:
        remaining = float(np.linalg.norm(end_point - exit_point))
        epsilon = min(config.probe_distance / remaining, 1.0) if remaining > 0.0 else 1.0
        probe = exit_point * (1.0 - epsilon) + end_point * epsilon
        cell = grid.get_cell_enveloping_point(probe, candidates)
        record = traversal.visit(cell)

        if cell.global_index == last_cell.global_index:
            record.add_segment(exit_point, end_point, wellbore_radius)
            break

        entry_point = exit_point
        exit_point = find_exit_point(cell, entry_point, end_point, entry_point, config)
        traversal.check_progress(entry_point, exit_point)
        record.add_segment(entry_point, exit_point, wellbore_radius)
        logger.debug(f"Left cell {cell.global_index} at {exit_point.tolist()}")

    if traversal.cells[-1].global_index != last_cell.global_index:
        raise GeometricConsistencyError(
            f"Traversal ended in cell {traversal.cells[-1].global_index}, "
            f"but the toe lies in cell {last_cell.global_index}"
        )
    return traversal.cells
