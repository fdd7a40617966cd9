"""Records of the well path pieces lying inside grid cells."""

import typing

import attrs
import numpy as np

from wellblocks.errors import ValidationError
from wellblocks.geometry import HexahedralCell, as_point
from wellblocks.types import Point3D, PointLike

__all__ = ["Segment", "SegmentDiagnostics", "IntersectedCell"]


@attrs.frozen(slots=True, eq=False)
class Segment:
    """A straight piece of the well path inside a single cell."""

    entry_point: Point3D = attrs.field(converter=as_point)
    """Where the path enters the cell (nearer the heel)."""
    exit_point: Point3D = attrs.field(converter=as_point)
    """Where the path leaves the cell (nearer the toe)."""
    radius: float
    """Wellbore radius along this piece."""

    @property
    def vector(self) -> Point3D:
        return self.exit_point - self.entry_point

    @property
    def length(self) -> float:
        return float(np.linalg.norm(self.vector))

    def __eq__(self, other: typing.Any) -> bool:
        if not isinstance(other, Segment):
            return NotImplemented
        return (
            np.array_equal(self.entry_point, other.entry_point)
            and np.array_equal(self.exit_point, other.exit_point)
            and self.radius == other.radius
        )

    def __hash__(self) -> int:
        return hash(
            (tuple(self.entry_point.tolist()), tuple(self.exit_point.tolist()), self.radius)
        )


@attrs.frozen(slots=True)
class SegmentDiagnostics:
    """Intermediate values of the well index computation for one segment."""

    x: float
    """x component of the segment vector."""
    y: float
    """y component of the segment vector."""
    z: float
    """z component of the segment vector."""
    Lx: float
    """Length of the segment projected on the cell's local x axis."""
    Ly: float
    """Length of the segment projected on the cell's local y axis."""
    Lz: float
    """Length of the segment projected on the cell's local z axis."""
    wx: float
    """Well index contribution of flow perpendicular to the local x axis."""
    wy: float
    """Well index contribution of flow perpendicular to the local y axis."""
    wz: float
    """Well index contribution of flow perpendicular to the local z axis."""

    def as_dict(self) -> typing.Dict[str, float]:
        return attrs.asdict(self)


@attrs.define
class IntersectedCell:
    """
    A grid cell crossed by the well path, with the path segments inside it.

    Segments are appended by the traversal in path order. Once the well index
    has been computed the record is read-only.
    """

    cell: HexahedralCell
    """The crossed grid cell."""
    traversal_index: int = 0
    """Position of this record in the traversal order."""
    segments: typing.List[Segment] = attrs.field(factory=list)
    """Segments inside the cell, in path order."""
    diagnostics: typing.List[SegmentDiagnostics] = attrs.field(factory=list)
    """Per-segment intermediate values. Empty until the well index is computed."""
    well_index: typing.Optional[float] = None
    """Combined well index of the cell. None until computed."""

    @property
    def global_index(self) -> int:
        return self.cell.global_index

    @property
    def is_evaluated(self) -> bool:
        return self.well_index is not None

    @property
    def num_segments(self) -> int:
        return len(self.segments)

    @property
    def entry_point(self) -> Point3D:
        """Entry point of the first segment."""
        return self.segments[0].entry_point

    @property
    def exit_point(self) -> Point3D:
        """Exit point of the last segment."""
        return self.segments[-1].exit_point

    @property
    def length(self) -> float:
        """Total length of the well path inside the cell."""
        return sum(segment.length for segment in self.segments)

    def _check_not_evaluated(self) -> None:
        if self.is_evaluated:
            raise ValidationError(
                f"Well index of cell {self.global_index} is already computed, segments can no longer change"
            )

    def add_segment(
        self, entry_point: PointLike, exit_point: PointLike, radius: float
    ) -> Segment:
        """
        Append a segment to the cell.

        :param entry_point: Where the path enters the cell.
        :param exit_point: Where the path leaves the cell.
        :param radius: Wellbore radius along the segment.
        :return: The new segment.
        """
        self._check_not_evaluated()
        segment = Segment(entry_point=entry_point, exit_point=exit_point, radius=radius)
        self.segments.append(segment)
        return segment

    def absorb(self, other: "IntersectedCell") -> None:
        """
        Append the segments of another record for the same cell.

        :param other: Record whose segments directly follow this record's segments.
        """
        self._check_not_evaluated()
        other._check_not_evaluated()
        if other.global_index != self.global_index:
            raise ValidationError(
                f"Cannot join records of different cells ({self.global_index} and {other.global_index})"
            )
        self.segments.extend(other.segments)

    def set_well_index(
        self, well_index: float, diagnostics: typing.Sequence[SegmentDiagnostics]
    ) -> None:
        """
        Store the computed well index and per-segment diagnostics.

        :param well_index: Combined well index of the cell.
        :param diagnostics: One entry per segment, in segment order.
        """
        self._check_not_evaluated()
        if len(diagnostics) != len(self.segments):
            raise ValidationError(
                f"Expected {len(self.segments)} segment diagnostics, got {len(diagnostics)}"
            )
        self.diagnostics = list(diagnostics)
        self.well_index = float(well_index)

    def as_dict(self) -> typing.Dict[str, typing.Any]:
        """Plain Python representation, for reporting."""
        return {
            "traversal_index": self.traversal_index,
            "global_index": self.global_index,
            "ijk": self.cell.ijk,
            "well_index": self.well_index,
            "length": self.length,
            "segments": [
                {
                    "entry_point": segment.entry_point.tolist(),
                    "exit_point": segment.exit_point.tolist(),
                    "radius": segment.radius,
                }
                for segment in self.segments
            ],
            "diagnostics": [item.as_dict() for item in self.diagnostics],
        }
