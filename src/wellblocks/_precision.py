"""Floating point precision of points and vectors."""

from contextlib import contextmanager
from contextvars import ContextVar

import numpy as np


__all__ = [
    "get_dtype",
    "set_dtype",
    "with_precision",
    "use_64bit_precision",
    "use_32bit_precision",
    "get_floating_point_info",
    "get_coordinate_resolution",
]

_point_dtype: ContextVar[np.typing.DTypeLike] = ContextVar(
    "_point_dtype", default=np.float64
)


def get_dtype() -> np.typing.DTypeLike:
    """Get the data type new points, corners and face planes are created with."""
    return _point_dtype.get()


def set_dtype(dtype: np.typing.DTypeLike) -> None:
    """
    Set the data type for points created in the current context.

    :param dtype: A NumPy floating point type.
    """
    _point_dtype.set(dtype)


@contextmanager
def with_precision(dtype: np.typing.DTypeLike):
    """
    Build grids and traverse wells with `dtype` inside the context.

    Grids keep the data type they were built with.

    :param dtype: A NumPy floating point type.
    """
    token = _point_dtype.set(dtype)
    try:
        yield
    finally:
        _point_dtype.reset(token)


def use_64bit_precision() -> None:
    """
    Use float64 points.

    This is the default. The exclusion tolerance of exit points (1e-10)
    is below what float32 coordinates can resolve.
    """
    set_dtype(np.float64)


def use_32bit_precision() -> None:
    set_dtype(np.float32)


def get_floating_point_info() -> np.finfo:
    """Machine limits of the current data type."""
    return np.finfo(get_dtype())  # type: ignore


def get_coordinate_resolution(magnitude: float) -> float:
    """
    Smallest distance that can be told apart at coordinates of the given magnitude.

    :param magnitude: Largest absolute coordinate involved.
    :return: Machine epsilon of the current data type scaled by `magnitude` (at least 1).
    """
    return float(get_floating_point_info().eps) * max(abs(magnitude), 1.0)
