"""Service-level exceptions mapped to HTTP statuses by the routers."""


class ConflictError(ValueError):
    """Request clashes with current state (duplicate key, work in progress)."""
