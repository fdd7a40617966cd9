import enum
import typing

import numpy as np
from typing_extensions import TypeAlias

if typing.TYPE_CHECKING:
    from wellblocks.geometry import HexahedralCell


__all__ = [
    "Point3D",
    "PointLike",
    "CellIndices",
    "Orientation",
    "GridQuery",
]

Point3D: TypeAlias = np.typing.NDArray[np.floating]
"""A point or vector in 3D space, as a length-3 NumPy array of floats"""
PointLike = typing.Union[Point3D, typing.Sequence[float]]
"""Anything convertible to a `Point3D`"""
CellIndices = typing.Union[typing.Sequence[int], np.typing.NDArray[np.integer]]
"""A collection of global cell indices"""


class Orientation(enum.Enum):
    """
    Enum representing the local axis directions of a grid cell.
    """

    X = "x"
    Y = "y"
    Z = "z"


@typing.runtime_checkable
class GridQuery(typing.Protocol):
    """
    Protocol for the grid lookups the well block traversal depends on.

    Implementations are only read from during a traversal.
    """

    def get_cell_enveloping_point(
        self,
        point: PointLike,
        candidates: typing.Optional[CellIndices] = None,
    ) -> "HexahedralCell":
        """
        Return the cell enclosing `point`.

        :param point: The point to locate.
        :param candidates: Optional global indices to search first. A hint only,
            the lookup must still succeed when the point lies outside them.
        :return: The enclosing cell.
        """
        ...

    def get_bounding_box_cell_indices(
        self,
        xmin: float,
        ymin: float,
        zmin: float,
        xmax: float,
        ymax: float,
        zmax: float,
    ) -> typing.List[int]:
        """Return the global indices of cells intersecting the axis-aligned box."""
        ...
