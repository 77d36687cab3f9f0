"""Service-level failures raised by queue and post operations."""


class DataAccessError(Exception):
    """Entity not found, or not owned by the calling user."""


class DataUpdateError(Exception):
    """A write was rejected by the backing store."""


class DataConflictError(Exception):
    """A write would duplicate a unique identifier."""


class InvalidTransitionError(ValueError):
    """The requested publication status is not reachable from the current state."""
