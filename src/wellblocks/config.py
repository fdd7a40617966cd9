import typing

import attrs

from wellblocks.constants import Constants, c

__all__ = ["Config"]


@attrs.frozen
class Config:
    """Well block computation configuration and tolerances."""

    feasibility_tolerance: float = attrs.field(
        default=1e-6,
        validator=attrs.validators.and_(
            attrs.validators.gt(0.0), attrs.validators.le(1e-2)
        ),
    )
    """
    Slack (in length units) allowed when testing whether a face intersection lies
    inside a cell. A point is accepted if it is no further than this outside any face.
    """
    exclusion_tolerance: float = attrs.field(
        default=1e-10, validator=attrs.validators.gt(0.0)
    )
    """Minimum distance between a candidate exit point and the point it must differ from."""
    probe_distance: float = attrs.field(default=0.01, validator=attrs.validators.gt(0.0))
    """
    Distance (in length units) to step past an exit point before looking up the next cell.

    Keeps the lookup from resolving to the cell just exited when the exit point
    lies on a shared face. Cells thinner than this along the path may be skipped.
    """
    max_cell_visits: int = attrs.field(default=500, validator=attrs.validators.ge(1))
    """
    Maximum number of cell visits allowed per traversal.

    Exceeding it means the grid or the path is malformed (e.g. non-convex cells)
    and raises `TraversalOverflowError`.
    """
    bounding_box_padding: float = attrs.field(
        default=0.1, validator=attrs.validators.ge(0.0)
    )
    """Fraction of the path's extent added on every side of its bounding box."""
    use_bounding_box: bool = True
    """Whether to restrict cell lookups to cells intersecting the path's bounding box."""
    detect_stalls: bool = True
    """
    Whether to raise `TraversalStallError` as soon as the traversal stops advancing.

    When disabled, a stalled traversal runs until `max_cell_visits` is exceeded.
    """
    constants: typing.Optional[Constants] = None
    """
    Conversion factors and coefficients for the well index formula.

    Falls back to the context's constants (`wellblocks.c`) when not set.
    """

    def get_constant(self, name: str) -> typing.Any:
        """
        Get the value of a constant, preferring the configured `Constants`.

        :param name: Name of the constant.
        :return: The constant's value.
        """
        if self.constants is not None and name in self.constants:
            return self.constants.get(name)
        return getattr(c, name)

    def with_overrides(self, **overrides: typing.Any) -> "Config":
        """
        Return a copy of this configuration with the given fields replaced.

        :param overrides: Field values to replace.
        :return: New `Config` instance.
        """
        return attrs.evolve(self, **overrides)
