class WellBlocksError(Exception):
    """Base class for all wellblocks-related errors."""

    pass


class ValidationError(WellBlocksError, ValueError):
    """Raised when input data fails validation checks."""

    pass


class DegenerateInputError(ValidationError):
    """Raised when a well path cannot be traversed, e.g. zero length or non-positive radius."""

    pass


class CellNotFoundError(ValidationError):
    """Raised when no grid cell encloses a queried point."""

    pass


class TraversalError(WellBlocksError):
    """Base class for errors raised while walking a well path through the grid."""

    pass


class TraversalOverflowError(TraversalError):
    """Raised when a traversal visits more cells than allowed."""

    pass


class TraversalStallError(TraversalOverflowError):
    """Raised when a traversal stops making progress along the well path."""

    pass


class GeometricConsistencyError(TraversalError):
    """Raised when the traversal does not end in the cell enclosing the toe."""

    pass


class ComputationError(WellBlocksError):
    """Raised when there is an error during numerical computations."""

    pass


class NumericDomainError(ComputationError, ArithmeticError):
    """Raised when well index inputs fall outside the domain of the formula."""

    pass
