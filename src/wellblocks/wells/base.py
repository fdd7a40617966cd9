"""Well paths and the well block calculator."""

import logging
import typing

import attrs
import numpy as np

from wellblocks.config import Config
from wellblocks.errors import DegenerateInputError, ValidationError
from wellblocks.geometry import as_point
from wellblocks.types import GridQuery, Point3D, PointLike
from wellblocks.wells.core import evaluate_well_blocks
from wellblocks.wells.segments import IntersectedCell
from wellblocks.wells.traversal import collect_intersected_cells

logger = logging.getLogger(__name__)

__all__ = [
    "WellPath",
    "WellIndexCalculator",
    "WellBlocksSummary",
    "compute_well_blocks",
    "summarize_well_blocks",
]


def _convert_points(points: typing.Sequence[PointLike]) -> typing.Tuple[Point3D, ...]:
    try:
        return tuple(as_point(point) for point in points)
    except ValidationError as exc:
        raise DegenerateInputError(str(exc)) from exc


@attrs.frozen
class WellPath:
    """
    A single continuous well path made of consecutive straight sections.

    Examples:
    ```python
    # Deviated well: vertical section then a horizontal lateral
    path = WellPath(
        name="PROD-1",
        points=[(50, 50, 0), (50, 50, 95), (250, 50, 95)],
        radii=0.1,
    )

    # Different radius per section
    path = WellPath(
        name="INJ-1",
        points=[(0, 0, 10), (100, 0, 10), (200, 0, 20)],
        radii=[0.15, 0.1],
    )
    ```
    """

    name: str
    """Name of the well."""
    points: typing.Tuple[Point3D, ...] = attrs.field(
        converter=_convert_points, eq=False
    )
    """Points along the path, from the heel of the first section to the toe of the last."""
    radii: typing.Union[float, typing.Sequence[float]] = attrs.field(default=0.1)
    """Wellbore radius, either for all sections or one per section."""

    @points.validator
    def _check_points(self, attribute, value) -> None:
        if len(value) < 2:
            raise DegenerateInputError(
                f"Well {self.name!r} needs at least two points, got {len(value)}"
            )

    @radii.validator
    def _check_radii(self, attribute, value) -> None:
        if np.isscalar(value):
            return
        if len(value) != len(self.points) - 1:
            raise ValidationError(
                f"Well {self.name!r} has {len(self.points) - 1} section(s) but {len(value)} radii"
            )

    @property
    def num_sections(self) -> int:
        return len(self.points) - 1

    @property
    def sections(self) -> typing.List[typing.Tuple[Point3D, Point3D, float]]:
        """(heel, toe, radius) of each straight section, in path order."""
        radii = self.radii
        if np.isscalar(radii):
            radii = [float(typing.cast(float, radii))] * self.num_sections
        return [
            (self.points[n], self.points[n + 1], float(radius))
            for n, radius in zip(range(self.num_sections), radii)
        ]

    @property
    def length(self) -> float:
        return float(
            sum(np.linalg.norm(toe - heel) for heel, toe, _ in self.sections)
        )


class WellIndexCalculator:
    """
    Computes the cells crossed by a well and the well index of each.

    The calculator only reads from the grid and keeps no state between calls.

    Examples:
    ```python
    grid = build_cartesian_grid((3, 1, 1), (10.0, 10.0, 10.0), permeability=100.0)
    calculator = WellIndexCalculator(grid)
    blocks = calculator.compute_well_blocks((0, 5, 5), (30, 5, 5), wellbore_radius=0.1)
    for block in blocks:
        print(block.global_index, block.well_index)
    ```
    """

    def __init__(self, grid: GridQuery, config: typing.Optional[Config] = None) -> None:
        """
        :param grid: Grid the wells are placed in.
        :param config: Tolerances, visit cap and formula constants.
        """
        self.grid = grid
        self.config = config or Config()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(grid={self.grid!r})"

    def compute_well_blocks(
        self, heel: PointLike, toe: PointLike, wellbore_radius: float
    ) -> typing.List[IntersectedCell]:
        """
        Compute the cells crossed by a straight well path and their well indices.

        :param heel: Start of the path.
        :param toe: End of the path.
        :param wellbore_radius: Radius of the wellbore.
        :return: Crossed cells in path order, each with its segments, diagnostics and well index.
        :raises DegenerateInputError: If the path has zero length or the radius is not positive.
        :raises TraversalOverflowError: If the traversal visits too many cells.
        :raises GeometricConsistencyError: If the traversal does not end in the toe's cell.
        :raises NumericDomainError: If a crossed cell's properties make the well index undefined.
        """
        intersected_cells = collect_intersected_cells(
            self.grid, heel, toe, wellbore_radius, self.config
        )
        logger.debug(f"Well path crosses {len(intersected_cells)} cell(s)")
        return evaluate_well_blocks(intersected_cells, self.config)

    def compute_well_path_blocks(self, path: WellPath) -> typing.List[IntersectedCell]:
        """
        Compute the cells crossed by a multi-section well path and their well indices.

        Sections are walked in order. Where a section starts in the cell the previous
        section ended in, the two records are joined.

        :param path: The well path.
        :return: Crossed cells in path order, each with its segments, diagnostics and well index.
        """
        intersected_cells: typing.List[IntersectedCell] = []
        for heel, toe, radius in path.sections:
            section_cells = collect_intersected_cells(
                self.grid, heel, toe, radius, self.config
            )
            if (
                intersected_cells
                and intersected_cells[-1].global_index == section_cells[0].global_index
            ):
                intersected_cells[-1].absorb(section_cells.pop(0))
            intersected_cells.extend(section_cells)

        for traversal_index, intersected_cell in enumerate(intersected_cells):
            intersected_cell.traversal_index = traversal_index
        logger.debug(
            f"Well {path.name!r} crosses {len(intersected_cells)} cell(s) in {path.num_sections} section(s)"
        )
        return evaluate_well_blocks(intersected_cells, self.config)


def compute_well_blocks(
    grid: GridQuery,
    heel: PointLike,
    toe: PointLike,
    wellbore_radius: float,
    config: typing.Optional[Config] = None,
) -> typing.List[IntersectedCell]:
    """
    Compute the cells crossed by a straight well path and their well indices.

    See `WellIndexCalculator.compute_well_blocks`.
    """
    return WellIndexCalculator(grid, config).compute_well_blocks(
        heel, toe, wellbore_radius
    )


@attrs.frozen(slots=True)
class WellBlocksSummary:
    """Totals over the crossed cells of a well."""

    num_cells: int
    """Number of crossed cell records."""
    total_length: float
    """Length of the well path inside the grid."""
    total_well_index: float
    """Sum of the cell well indices."""


def summarize_well_blocks(
    intersected_cells: typing.Sequence[IntersectedCell],
) -> WellBlocksSummary:
    """
    Summarize evaluated well blocks.

    :param intersected_cells: Evaluated records.
    :return: The summary.
    """
    if any(not cell.is_evaluated for cell in intersected_cells):
        raise ValidationError("All well blocks must be evaluated before summarizing")
    return WellBlocksSummary(
        num_cells=len(intersected_cells),
        total_length=sum(cell.length for cell in intersected_cells),
        total_well_index=sum(
            typing.cast(float, cell.well_index) for cell in intersected_cells
        ),
    )
