class OrderingError(Exception):
    pass


class NotFound(OrderingError, KeyError):
    # Referenced item or anchor is absent; never retried.
    pass


class Conflict(OrderingError):
    """The store rejected a write because it would duplicate another key.

    This implies a race with another mutation of the same collection, so the
    caller re-reads neighbors and recomputes."""

    pass


class CeilingExceeded(OrderingError):
    # Internal signal; handled by renormalizing the collection.
    def __init__(self, key, ceiling):
        super().__init__(f"Key {key} exceeds ceiling {ceiling}")
        self.key = key
        self.ceiling = ceiling


class InternalInvariantViolation(OrderingError, RuntimeError):
    pass


class StorageError(Exception):
    # The items DB can't be opened with this version of fracrank.
    pass
