"""Service-layer error taxonomy.

Services raise these instead of ``HTTPException`` so they stay usable from
scripts and tests; ``app.api.errors`` maps each kind to an HTTP status.
"""


class ServiceError(Exception):
    """Base class for failures classified by the service layer."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Malformed input the caller can fix, such as an empty update."""


class OverlapError(ServiceError):
    """The requested stay conflicts with an active booking on the same property."""

    def __init__(self, message: str, conflicting_ids: list | None = None) -> None:
        super().__init__(message)
        self.conflicting_ids = conflicting_ids or []


class NotFoundError(ServiceError):
    """A referenced booking or property does not exist."""


class InvalidStateError(ServiceError):
    """The booking's status or dates do not allow the requested operation."""


class StoreError(ServiceError):
    """The database failed in a way that is not otherwise classified."""
