from .segments import *  # noqa
from .core import *  # noqa
from .traversal import *  # noqa
from .base import *  # noqa
