from .storage.rank import Rational, ZERO, INFINITY, simplest_between
from .ordering import OrderingEngine, renormalized_keys
from .errors import (
    OrderingError,
    NotFound,
    Conflict,
    CeilingExceeded,
    InternalInvariantViolation,
    StorageError,
)

__version__ = "0.1.0"
