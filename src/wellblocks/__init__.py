"""
*wellblocks*

Cells crossed by a wellbore path in a 3D hexahedral grid, and their well indices.
"""

from ._precision import *  # noqa
from .constants import *  # noqa
from .config import *  # noqa
from .errors import *  # noqa
from .types import *  # noqa
from .geometry import *  # noqa
from .grids import *  # noqa
from .wells import *  # noqa
