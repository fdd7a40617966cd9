"""Conversion factor and coefficients of the well index formula"""

from contextvars import ContextVar
import typing

import attrs


__all__ = ["Constant", "Constants", "c", "ConstantsContext", "get_constant"]


@attrs.frozen(slots=True)
class Constant:
    """A formula constant with its unit and what it stands for."""

    value: typing.Any
    description: typing.Optional[str] = None
    unit: typing.Optional[str] = None

    def __str__(self) -> str:
        return f"{self.value}{self.unit or ''}"


DEFAULT_CONSTANTS: typing.Dict[str, Constant] = {
    "WELL_INDEX_CONVERSION_FACTOR": Constant(
        value=0.008527,
        description="Darcy unit conversion factor for the well index in metric units (ECLIPSE convention)",
        unit="cP·m³/(day·bar·mD·m)",
    ),
    "PEACEMAN_RADIUS_COEFFICIENT": Constant(
        value=0.28,
        description="Coefficient of Peaceman's anisotropic equivalent wellblock radius",
    ),
}


class Constants:
    """
    A set of well index constants.

    `constants.NAME` gives the value, `constants["NAME"]` the `Constant` with its
    metadata. Assigning either a raw value or a `Constant` replaces the entry.

    Example:
    ```python
    constants = Constants()
    constants.WELL_INDEX_CONVERSION_FACTOR = 0.001127  # field units
    with constants():
        blocks = compute_well_blocks(grid, heel, toe, 0.1)
    ```
    """

    __slots__ = ("_store",)

    def __init__(self) -> None:
        object.__setattr__(self, "_store", dict(DEFAULT_CONSTANTS))

    def __getattr__(self, name: str) -> typing.Any:
        if name.startswith("_"):
            return object.__getattribute__(self, name)
        try:
            return self._store[name].value
        except KeyError:
            raise AttributeError(f"No constant named {name!r}") from None

    def __getitem__(self, name: str) -> Constant:
        return self._store[name]

    def __setattr__(self, name: str, value: typing.Any) -> None:
        self[name] = value

    def __setitem__(self, name: str, value: typing.Any) -> None:
        self._store[name] = value if isinstance(value, Constant) else Constant(value=value)

    def __contains__(self, name: str) -> bool:
        return name in self._store

    def __len__(self) -> int:
        return len(self._store)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({', '.join(self._store)})"

    def get(self, name: str, default: typing.Any = None) -> typing.Any:
        """Value of the constant `name`, or `default` if there is none."""
        constant = self._store.get(name)
        return default if constant is None else constant.value

    def get_constant(
        self, name: str, default: typing.Optional[Constant] = None
    ) -> typing.Optional[Constant]:
        return self._store.get(name, default)

    def __call__(self) -> "ConstantsContext":
        """Make these the constants seen through `wellblocks.c` inside a `with` block."""
        return ConstantsContext(self)


_current_constants: ContextVar[Constants] = ContextVar(
    "_current_constants", default=Constants()
)


class ConstantsContext:
    """Installs a `Constants` instance for the duration of a `with` block."""

    def __init__(self, constants: Constants) -> None:
        self._constants = constants
        self._token = None

    def __enter__(self) -> Constants:
        self._token = _current_constants.set(self._constants)
        return self._constants

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if self._token is not None:
            _current_constants.reset(self._token)
            self._token = None


class _ConstantsProxy:
    """Reads through to the constants installed in the current context."""

    def __getattr__(self, name: str) -> typing.Any:
        return getattr(_current_constants.get(), name)

    def __getitem__(self, name: str) -> Constant:
        return _current_constants.get()[name]

    def __contains__(self, name: str) -> bool:
        return name in _current_constants.get()


c = _ConstantsProxy()
"""Constants of the current context, e.g. `c.WELL_INDEX_CONVERSION_FACTOR`."""


def get_constant(name: str) -> typing.Optional[Constant]:
    """
    Get a constant, with its metadata, from the current context.

    :param name: Name of the constant.
    :return: The `Constant`, or None if there is none with that name.
    """
    return _current_constants.get().get_constant(name)
