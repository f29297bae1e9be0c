from .config import ATTRS, COORDS, DIMS, VARS
from .exceptions import AlignmentWarning, ConfigurationError, PreconditionError

__all__ = [
    "ATTRS",
    "COORDS",
    "DIMS",
    "VARS",
    "AlignmentWarning",
    "ConfigurationError",
    "PreconditionError",
]
