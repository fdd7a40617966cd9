"""Points, planar faces and hexahedral cells."""

import typing

import attrs
import numpy as np

from wellblocks._precision import get_dtype
from wellblocks.errors import ComputationError, ValidationError
from wellblocks.types import Orientation, Point3D, PointLike

__all__ = [
    "as_point",
    "Face",
    "HexahedralCell",
    "BoundingBox",
    "FACE_CORNER_INDICES",
]


def as_point(obj: PointLike) -> Point3D:
    """
    Convert `obj` to a 3D point using the current precision.

    :param obj: Sequence of three coordinates or an array of shape (3,).
    :return: A new array of shape (3,).
    :raises ValidationError: If `obj` does not hold exactly three finite coordinates.
    """
    point = np.array(obj, dtype=get_dtype())
    if point.shape != (3,):
        raise ValidationError(
            f"Expected a point with 3 coordinates, got shape {point.shape}"
        )
    if not np.all(np.isfinite(point)):
        raise ValidationError(f"Point {point} has non-finite coordinates")
    return point


# Corners are numbered `di + 2*dj + 4*dk`. Each face lists its corners in cyclic order.
FACE_CORNER_INDICES: typing.Tuple[typing.Tuple[int, int, int, int], ...] = (
    (0, 2, 6, 4),  # i-
    (1, 3, 7, 5),  # i+
    (0, 1, 5, 4),  # j-
    (2, 3, 7, 6),  # j+
    (0, 1, 3, 2),  # k-
    (4, 5, 7, 6),  # k+
)


@attrs.frozen(slots=True, eq=False)
class Face:
    """
    A cell face, approximated by a plane through the face centroid.

    The normal is a unit vector pointing into the cell.
    """

    point: Point3D
    """A point on the plane (the centroid of the face corners)."""
    normal_vector: Point3D
    """Unit normal of the plane, pointing toward the cell interior."""
    corners: np.typing.NDArray[np.floating]
    """Face corners in cyclic order, shape (4, 3)."""

    @classmethod
    def from_corners(
        cls, corners: np.typing.NDArray[np.floating], interior_point: PointLike
    ) -> "Face":
        """
        Build a face from its four corners.

        The normal is computed from the cross product of the face diagonals,
        which gives the best fitting plane orientation for a non-planar quad.

        :param corners: Face corners in cyclic order, shape (4, 3).
        :param interior_point: Any point strictly inside the cell, used to orient the normal.
        :return: The face.
        """
        corners = np.asarray(corners, dtype=get_dtype())
        centroid = corners.mean(axis=0)
        normal = np.cross(corners[2] - corners[0], corners[3] - corners[1])
        norm = np.linalg.norm(normal)
        if norm == 0.0:
            raise ValidationError(f"Degenerate face with corners {corners.tolist()}")

        normal = normal / norm
        if np.dot(np.asarray(interior_point) - centroid, normal) < 0.0:
            normal = -normal
        return cls(point=centroid, normal_vector=normal, corners=corners)

    def intersection_with_line(self, start: Point3D, end: Point3D) -> Point3D:
        """
        Intersect the face's plane with the infinite line through `start` and `end`.

        :param start: First point on the line.
        :param end: Second point on the line.
        :return: The intersection point.
        :raises ComputationError: If the line is parallel to the plane.
        """
        direction = end - start
        denominator = np.dot(self.normal_vector, direction)
        if denominator == 0.0:
            raise ComputationError("Line is parallel to the face plane")
        t = np.dot(self.normal_vector, self.point - start) / denominator
        return start + t * direction

    def point_on_same_side(self, point: Point3D, slack: float) -> bool:
        """
        Check that `point` lies on the interior side of the face.

        :param point: The point to check.
        :param slack: Distance the point may lie outside the plane and still be accepted.
        :return: True if the point is on the interior side (within `slack`).
        """
        return bool(np.dot(point - self.point, self.normal_vector) >= -slack)

    def signed_distance(self, point: Point3D) -> float:
        """Distance from the plane to `point`, positive on the interior side."""
        return float(np.dot(point - self.point, self.normal_vector))


@attrs.frozen(slots=True, eq=False)
class HexahedralCell:
    """
    A hexahedral grid cell with directional permeabilities.

    The local axes `xvec`, `yvec`, `zvec` join the centroids of opposite faces,
    so their norms are the cell dimensions `dx`, `dy`, `dz`.
    """

    global_index: int
    """Index of the cell in the grid's flat numbering."""
    corners: np.typing.NDArray[np.floating] = attrs.field(repr=False)
    """Cell corners, shape (8, 3), numbered `di + 2*dj + 4*dk`."""
    permx: float
    """Permeability along the local x axis (mD)."""
    permy: float
    """Permeability along the local y axis (mD)."""
    permz: float
    """Permeability along the local z axis (mD)."""
    ijk: typing.Optional[typing.Tuple[int, int, int]] = None
    """(i, j, k) position of the cell in a structured grid, if any."""

    faces: typing.Tuple[Face, ...] = attrs.field(init=False, repr=False)
    xvec: Point3D = attrs.field(init=False, repr=False)
    yvec: Point3D = attrs.field(init=False, repr=False)
    zvec: Point3D = attrs.field(init=False, repr=False)
    centroid: Point3D = attrs.field(init=False, repr=False)

    def __attrs_post_init__(self) -> None:
        corners = np.asarray(self.corners, dtype=get_dtype())
        if corners.shape != (8, 3):
            raise ValidationError(
                f"Cell {self.global_index} needs 8 corners of 3 coordinates, got shape {corners.shape}"
            )

        centroid = corners.mean(axis=0)
        face_centroids = [corners[list(indices)].mean(axis=0) for indices in FACE_CORNER_INDICES]
        object.__setattr__(self, "corners", corners)
        object.__setattr__(self, "centroid", centroid)
        object.__setattr__(self, "xvec", face_centroids[1] - face_centroids[0])
        object.__setattr__(self, "yvec", face_centroids[3] - face_centroids[2])
        object.__setattr__(self, "zvec", face_centroids[5] - face_centroids[4])
        object.__setattr__(
            self,
            "faces",
            tuple(
                Face.from_corners(corners[list(indices)], interior_point=centroid)
                for indices in FACE_CORNER_INDICES
            ),
        )

    @property
    def dx(self) -> float:
        return float(np.linalg.norm(self.xvec))

    @property
    def dy(self) -> float:
        return float(np.linalg.norm(self.yvec))

    @property
    def dz(self) -> float:
        return float(np.linalg.norm(self.zvec))

    @property
    def permeability(self) -> typing.Tuple[float, float, float]:
        return (self.permx, self.permy, self.permz)

    @property
    def dimensions(self) -> typing.Tuple[float, float, float]:
        return (self.dx, self.dy, self.dz)

    def axis_vector(self, orientation: Orientation) -> Point3D:
        """
        Get the local axis vector for a direction.

        :param orientation: The local axis.
        :return: The axis vector (not normalized).
        """
        if orientation == Orientation.X:
            return self.xvec
        elif orientation == Orientation.Y:
            return self.yvec
        return self.zvec

    def transverse_properties(
        self, orientation: Orientation
    ) -> typing.Tuple[float, float, float, float]:
        """
        Get the dimensions and permeabilities of the two axes perpendicular to `orientation`.

        :param orientation: The axis a well segment is projected on.
        :return: (d1, d2, k1, k2)
        """
        if orientation == Orientation.X:
            return self.dy, self.dz, self.permy, self.permz
        elif orientation == Orientation.Y:
            return self.dx, self.dz, self.permx, self.permz
        return self.dx, self.dy, self.permx, self.permy

    def contains(self, point: PointLike, slack: float = 1e-6) -> bool:
        """
        Check whether `point` lies inside the cell.

        Exact for convex cells with planar faces.

        :param point: The point to check.
        :param slack: Distance a point may lie outside a face and still be accepted.
        :return: True if the point is on the interior side of all six faces.
        """
        point = np.asarray(point, dtype=get_dtype())
        return all(face.point_on_same_side(point, slack) for face in self.faces)

    def bounding_box(self) -> "BoundingBox":
        return BoundingBox.from_points(self.corners)


@attrs.frozen(slots=True)
class BoundingBox:
    """An axis-aligned box."""

    xmin: float
    ymin: float
    zmin: float
    xmax: float
    ymax: float
    zmax: float

    @classmethod
    def from_points(cls, points: typing.Iterable[PointLike]) -> "BoundingBox":
        points = np.array([np.asarray(point, dtype=get_dtype()) for point in points])
        lower = points.min(axis=0)
        upper = points.max(axis=0)
        return cls(*map(float, lower), *map(float, upper))

    @classmethod
    def around(
        cls, start: PointLike, end: PointLike, padding: float = 0.1
    ) -> "BoundingBox":
        """
        Box around two points, inflated on every side by `padding` times its extent.

        :param start: First point.
        :param end: Second point.
        :param padding: Fraction of the extent along each axis to add on both sides.
        :return: The inflated box.
        """
        box = cls.from_points([start, end])
        return box.inflated(padding)

    def inflated(self, padding: float) -> "BoundingBox":
        extent = self.extent
        return BoundingBox(
            self.xmin - padding * extent[0],
            self.ymin - padding * extent[1],
            self.zmin - padding * extent[2],
            self.xmax + padding * extent[0],
            self.ymax + padding * extent[1],
            self.zmax + padding * extent[2],
        )

    @property
    def extent(self) -> typing.Tuple[float, float, float]:
        return (self.xmax - self.xmin, self.ymax - self.ymin, self.zmax - self.zmin)

    def as_tuple(self) -> typing.Tuple[float, float, float, float, float, float]:
        return (self.xmin, self.ymin, self.zmin, self.xmax, self.ymax, self.zmax)

    def contains(self, point: PointLike) -> bool:
        x, y, z = point
        return (
            self.xmin <= x <= self.xmax
            and self.ymin <= y <= self.ymax
            and self.zmin <= z <= self.zmax
        )
