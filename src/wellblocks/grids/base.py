import logging
import typing

import numba
import numpy as np
from scipy.spatial import cKDTree

from wellblocks._precision import get_dtype
from wellblocks.errors import CellNotFoundError, ValidationError
from wellblocks.geometry import (
    FACE_CORNER_INDICES,
    BoundingBox,
    HexahedralCell,
    as_point,
)
from wellblocks.types import CellIndices, Point3D, PointLike

logger = logging.getLogger(__name__)

__all__ = [
    "HexahedralGrid",
    "build_cartesian_grid",
    "build_grid_from_nodes",
    "cartesian_grid",
]

PermeabilityLike = typing.Union[
    float,
    typing.Tuple[float, float, float],
    typing.Tuple[np.typing.ArrayLike, np.typing.ArrayLike, np.typing.ArrayLike],
]
"""
Permeability input accepted by the grid builders.

- A single value for isotropic, homogeneous permeability
- Three values (kx, ky, kz) for anisotropic, homogeneous permeability
- Three arrays of shape (nx, ny, nz) for heterogeneous permeability
"""


@numba.njit(cache=True)
def _find_enclosing_cell(
    point: np.ndarray,
    candidates: np.ndarray,
    face_points: np.ndarray,
    face_normals: np.ndarray,
    slack: float,
) -> int:
    """
    Return the first candidate cell whose faces all have `point` on their interior side.

    :param point: Point to locate, shape (3,).
    :param candidates: Global indices to check, in order.
    :param face_points: Face plane points, shape (cells, 6, 3).
    :param face_normals: Inward unit face normals, shape (cells, 6, 3).
    :param slack: Distance a point may lie outside a face and still be accepted.
    :return: Global index of the enclosing cell, or -1 if none of the candidates encloses the point.
    """
    for n in range(candidates.shape[0]):
        index = candidates[n]
        inside = True
        for f in range(face_points.shape[1]):
            distance = 0.0
            for a in range(3):
                distance += (point[a] - face_points[index, f, a]) * face_normals[
                    index, f, a
                ]
            if distance < -slack:
                inside = False
                break
        if inside:
            return index
    return -1


def _compute_face_planes(
    corners: np.ndarray,
) -> typing.Tuple[np.ndarray, np.ndarray]:
    """
    Compute face centroids and inward unit normals for all cells at once.

    Uses the same construction as `Face.from_corners`.

    :param corners: Cell corners, shape (cells, 8, 3).
    :return: (face_points, face_normals), both of shape (cells, 6, 3).
    """
    centroids = corners.mean(axis=1)
    face_points = np.empty((corners.shape[0], 6, 3), dtype=corners.dtype)
    face_normals = np.empty_like(face_points)
    for f, indices in enumerate(FACE_CORNER_INDICES):
        face_corners = corners[:, list(indices), :]
        face_centroids = face_corners.mean(axis=1)
        normals = np.cross(
            face_corners[:, 2] - face_corners[:, 0],
            face_corners[:, 3] - face_corners[:, 1],
        )
        norms = np.linalg.norm(normals, axis=1)
        degenerate = np.flatnonzero(norms == 0.0)
        if degenerate.size:
            raise ValidationError(
                f"Cells {degenerate.tolist()} have a degenerate face (zero area)"
            )
        normals = normals / norms[:, None]
        flip = np.einsum("ij,ij->i", centroids - face_centroids, normals) < 0.0
        normals[flip] *= -1.0
        face_points[:, f] = face_centroids
        face_normals[:, f] = normals
    return face_points, face_normals


class HexahedralGrid:
    """
    Structured grid of hexahedral cells defined by its node coordinates.

    Cells are numbered `i + nx*j + nx*ny*k`. Point location searches the cells
    with the nearest centroids first, then falls back to all cells.
    """

    def __init__(
        self,
        nodes: np.typing.ArrayLike,
        permx: np.typing.ArrayLike,
        permy: np.typing.ArrayLike,
        permz: np.typing.ArrayLike,
        tolerance: float = 1e-6,
        nearest_candidates: int = 27,
    ) -> None:
        """
        :param nodes: Node coordinates, shape (nx+1, ny+1, nz+1, 3).
        :param permx: Permeability along the local x axis of each cell (mD), shape (nx, ny, nz).
        :param permy: Permeability along the local y axis of each cell (mD), shape (nx, ny, nz).
        :param permz: Permeability along the local z axis of each cell (mD), shape (nx, ny, nz).
        :param tolerance: Distance a point may lie outside a cell and still be located in it.
        :param nearest_candidates: Number of cells, ordered by centroid distance, to check
            before scanning the whole grid.
        """
        dtype = get_dtype()
        nodes = np.asarray(nodes, dtype=dtype)
        if nodes.ndim != 4 or nodes.shape[-1] != 3 or min(nodes.shape[:3]) < 2:
            raise ValidationError(
                f"Nodes must have shape (nx+1, ny+1, nz+1, 3) with nx, ny, nz >= 1, got {nodes.shape}"
            )
        if not np.all(np.isfinite(nodes)):
            raise ValidationError("Node coordinates must be finite")
        if tolerance < 0.0:
            raise ValidationError("Tolerance must be non-negative")
        if nearest_candidates < 1:
            raise ValidationError("At least one nearest candidate must be checked")

        shape = typing.cast(
            typing.Tuple[int, int, int], tuple(n - 1 for n in nodes.shape[:3])
        )
        permeabilities = []
        for name, values in (("permx", permx), ("permy", permy), ("permz", permz)):
            try:
                values = np.broadcast_to(np.asarray(values, dtype=dtype), shape)
            except ValueError as exc:
                raise ValidationError(
                    f"{name} does not match grid shape {shape}"
                ) from exc
            if not np.all(np.isfinite(values)) or np.any(values < 0.0):
                raise ValidationError(f"{name} must be finite and non-negative")
            # Flatten with i varying fastest to match the global numbering
            permeabilities.append(values.reshape(-1, order="F"))

        nx, ny, nz = shape
        corners = np.empty((nx, ny, nz, 8, 3), dtype=dtype)
        for dk in (0, 1):
            for dj in (0, 1):
                for di in (0, 1):
                    corners[:, :, :, di + 2 * dj + 4 * dk] = nodes[
                        di : di + nx, dj : dj + ny, dk : dk + nz
                    ]

        self.nodes = nodes
        self.shape = shape
        self.tolerance = tolerance
        self.nearest_candidates = nearest_candidates
        self._permx, self._permy, self._permz = permeabilities
        self._corners = corners.transpose(2, 1, 0, 3, 4).reshape(-1, 8, 3)
        self._face_points, self._face_normals = _compute_face_planes(self._corners)
        self._centroids = self._corners.mean(axis=1)
        self._lower = self._corners.min(axis=1)
        self._upper = self._corners.max(axis=1)
        self._tree = cKDTree(self._centroids)
        self._all_cells = np.arange(self.num_cells, dtype=np.int64)
        self._cells: typing.Dict[int, HexahedralCell] = {}
        logger.debug(f"Built hexahedral grid with shape {shape} ({self.num_cells} cells)")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(shape={self.shape})"

    @property
    def num_cells(self) -> int:
        nx, ny, nz = self.shape
        return nx * ny * nz

    @property
    def bounds(self) -> BoundingBox:
        """Axis-aligned bounding box of all grid nodes."""
        return BoundingBox.from_points(self.nodes.reshape(-1, 3))

    def global_index(self, i: int, j: int, k: int) -> int:
        nx, ny, nz = self.shape
        if not (0 <= i < nx and 0 <= j < ny and 0 <= k < nz):
            raise ValidationError(f"Cell ({i}, {j}, {k}) is outside grid of shape {self.shape}")
        return i + nx * j + nx * ny * k

    def ijk(self, global_index: int) -> typing.Tuple[int, int, int]:
        if not 0 <= global_index < self.num_cells:
            raise ValidationError(
                f"Global index {global_index} is outside [0, {self.num_cells})"
            )
        nx, ny, _ = self.shape
        k, remainder = divmod(global_index, nx * ny)
        j, i = divmod(remainder, nx)
        return i, j, k

    def get_cell(self, global_index: int) -> HexahedralCell:
        """
        Get the cell with the given global index.

        :param global_index: Index in the grid's flat numbering.
        :return: The cell.
        """
        global_index = int(global_index)
        cell = self._cells.get(global_index)
        if cell is None:
            cell = HexahedralCell(
                global_index=global_index,
                corners=self._corners[global_index],
                permx=float(self._permx[global_index]),
                permy=float(self._permy[global_index]),
                permz=float(self._permz[global_index]),
                ijk=self.ijk(global_index),
            )
            self._cells[global_index] = cell
        return cell

    def get_cell_by_ijk(self, i: int, j: int, k: int) -> HexahedralCell:
        return self.get_cell(self.global_index(i, j, k))

    def get_bounding_box_cell_indices(
        self,
        xmin: float,
        ymin: float,
        zmin: float,
        xmax: float,
        ymax: float,
        zmax: float,
    ) -> typing.List[int]:
        """
        Get the global indices of all cells whose bounding boxes intersect the given box.

        :return: Sorted global indices.
        """
        lower = np.array([xmin, ymin, zmin])
        upper = np.array([xmax, ymax, zmax])
        mask = np.all(self._upper >= lower, axis=1) & np.all(self._lower <= upper, axis=1)
        return np.flatnonzero(mask).tolist()

    def _order_by_distance(self, point: Point3D, candidates: np.ndarray) -> np.ndarray:
        distances = np.linalg.norm(self._centroids[candidates] - point, axis=1)
        return candidates[np.argsort(distances, kind="stable")]

    def _locate(self, point: Point3D, candidates: np.ndarray) -> int:
        return int(
            _find_enclosing_cell(
                point,
                candidates,
                self._face_points,
                self._face_normals,
                self.tolerance,
            )
        )

    def get_cell_enveloping_point(
        self,
        point: PointLike,
        candidates: typing.Optional[CellIndices] = None,
    ) -> HexahedralCell:
        """
        Get the cell enclosing `point`.

        Where the point lies on a face shared by several cells, the cell with the
        nearest centroid is returned.

        :param point: The point to locate.
        :param candidates: Global indices to search first.
        :return: The enclosing cell.
        :raises CellNotFoundError: If no cell of the grid encloses the point.
        """
        point = as_point(point)
        if candidates is not None:
            candidates = np.asarray(candidates, dtype=np.int64)
            if candidates.size:
                index = self._locate(point, self._order_by_distance(point, candidates))
                if index >= 0:
                    return self.get_cell(index)
            logger.warning(
                f"Point {point.tolist()} is not in any of the {candidates.size} candidate cells. "
                "Searching the whole grid."
            )

        count = min(self.nearest_candidates, self.num_cells)
        _, nearest = self._tree.query(point, k=count)
        nearest = np.atleast_1d(np.asarray(nearest, dtype=np.int64))
        index = self._locate(point, nearest)
        if index < 0 and count < self.num_cells:
            index = self._locate(point, self._order_by_distance(point, self._all_cells))
        if index < 0:
            raise CellNotFoundError(f"No cell encloses point {point.tolist()}")
        return self.get_cell(index)


def _broadcast_permeability(
    permeability: PermeabilityLike, grid_shape: typing.Tuple[int, int, int]
) -> typing.Tuple[np.ndarray, np.ndarray, np.ndarray]:
    dtype = get_dtype()
    if np.isscalar(permeability):
        value = np.full(grid_shape, permeability, dtype=dtype)
        return value, value.copy(), value.copy()

    permeability = typing.cast(typing.Sequence[typing.Any], permeability)
    if len(permeability) != 3:
        raise ValidationError(
            "Permeability must be a single value or three values/arrays (kx, ky, kz)"
        )
    arrays = []
    for values in permeability:
        values = np.asarray(values, dtype=dtype)
        try:
            arrays.append(np.broadcast_to(values, grid_shape).copy())
        except ValueError as exc:
            raise ValidationError(
                f"Permeability of shape {values.shape} does not match grid shape {grid_shape}"
            ) from exc
    return arrays[0], arrays[1], arrays[2]


def build_grid_from_nodes(
    nodes: np.typing.ArrayLike,
    permeability: PermeabilityLike,
    tolerance: float = 1e-6,
) -> HexahedralGrid:
    """
    Constructs a grid of (possibly irregular) hexahedral cells from node coordinates.

    :param nodes: Node coordinates, shape (nx+1, ny+1, nz+1, 3).
    :param permeability: Cell permeabilities (mD), see `PermeabilityLike`.
    :param tolerance: Distance a point may lie outside a cell and still be located in it.
    :return: The grid.
    """
    nodes = np.asarray(nodes, dtype=get_dtype())
    if nodes.ndim != 4:
        raise ValidationError(
            f"Nodes must have shape (nx+1, ny+1, nz+1, 3), got {nodes.shape}"
        )
    grid_shape = typing.cast(
        typing.Tuple[int, int, int], tuple(n - 1 for n in nodes.shape[:3])
    )
    permx, permy, permz = _broadcast_permeability(permeability, grid_shape)
    return HexahedralGrid(nodes, permx, permy, permz, tolerance=tolerance)


def build_cartesian_grid(
    grid_shape: typing.Tuple[int, int, int],
    cell_dimensions: typing.Tuple[
        typing.Union[float, typing.Sequence[float]],
        typing.Union[float, typing.Sequence[float]],
        typing.Union[float, typing.Sequence[float]],
    ],
    permeability: PermeabilityLike,
    origin: PointLike = (0.0, 0.0, 0.0),
    tolerance: float = 1e-6,
) -> HexahedralGrid:
    """
    Constructs an axis-aligned (regular or rectilinear) grid.

    :param grid_shape: Number of cells in the x, y, and z directions (nx, ny, nz).
    :param cell_dimensions: Cell sizes along x, y, and z. Each entry is either a single
        size for all cells along that axis, or one size per cell along that axis.
    :param permeability: Cell permeabilities (mD), see `PermeabilityLike`.
    :param origin: Coordinates of the grid corner with the smallest coordinates.
    :param tolerance: Distance a point may lie outside a cell and still be located in it.
    :return: The grid.
    """
    if len(grid_shape) != 3 or any(n < 1 for n in grid_shape):
        raise ValidationError(f"Grid shape must be three positive integers, got {grid_shape}")
    if len(cell_dimensions) != 3:
        raise ValidationError("Cell dimensions must be given for x, y, and z")

    dtype = get_dtype()
    origin = as_point(origin)
    axes = []
    for axis, (count, spacing) in enumerate(zip(grid_shape, cell_dimensions)):
        try:
            spacing = np.broadcast_to(np.asarray(spacing, dtype=dtype), (count,))
        except ValueError as exc:
            raise ValidationError(
                f"Expected 1 or {count} cell dimensions along axis {axis}"
            ) from exc
        if np.any(spacing <= 0.0):
            raise ValidationError(f"Cell dimensions along axis {axis} must be positive")
        axes.append(origin[axis] + np.concatenate(([0.0], np.cumsum(spacing))))

    nodes = np.stack(np.meshgrid(*axes, indexing="ij"), axis=-1)
    permx, permy, permz = _broadcast_permeability(
        permeability, typing.cast(typing.Tuple[int, int, int], tuple(grid_shape))
    )
    return HexahedralGrid(nodes, permx, permy, permz, tolerance=tolerance)


cartesian_grid = build_cartesian_grid  # Alias for convenience
