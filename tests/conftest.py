import math

import numpy as np
import pytest

from wellblocks import build_cartesian_grid, build_grid_from_nodes


@pytest.fixture
def line_grid():
    """Three 10 x 10 x 10 cells along x with isotropic permeability of 100 mD."""
    return build_cartesian_grid(
        grid_shape=(3, 1, 1), cell_dimensions=(10.0, 10.0, 10.0), permeability=100.0
    )


@pytest.fixture
def cube_grid():
    """A 3 x 3 x 3 block of 10 x 10 x 10 cells."""
    return build_cartesian_grid(
        grid_shape=(3, 3, 3), cell_dimensions=(10.0, 10.0, 10.0), permeability=100.0
    )


@pytest.fixture
def sheared_grid():
    """Three cells along x whose i-faces lean with depth: x' = x + 0.3 * z."""
    xs, ys, zs = np.meshgrid(
        [0.0, 10.0, 20.0, 30.0], [0.0, 10.0], [0.0, 10.0], indexing="ij"
    )
    nodes = np.stack([xs + 0.3 * zs, ys, zs], axis=-1)
    return build_grid_from_nodes(nodes, permeability=(200.0, 100.0, 20.0))


@pytest.fixture
def box_corners():
    """Build the 8 corners of an axis-aligned box in cell corner order."""

    def _box_corners(lower, upper):
        corners = np.empty((8, 3))
        for dk in (0, 1):
            for dj in (0, 1):
                for di in (0, 1):
                    corners[di + 2 * dj + 4 * dk] = (
                        (lower[0], upper[0])[di],
                        (lower[1], upper[1])[dj],
                        (lower[2], upper[2])[dk],
                    )
        return corners

    return _box_corners


@pytest.fixture
def reference_well_index():
    """Directional well index written out with `math`, for checking the kernels."""

    def _reference(length, d1, d2, k1, k2, radius, factor=0.008527):
        r_eq = (
            0.28
            * math.sqrt(d1**2 * math.sqrt(k2 / k1) + d2**2 * math.sqrt(k1 / k2))
            / ((k1 / k2) ** 0.25 + (k2 / k1) ** 0.25)
        )
        return factor * 2 * math.pi * math.sqrt(k1 * k2) * length / math.log(r_eq / radius)

    return _reference
