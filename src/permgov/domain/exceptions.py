"""Domain exceptions."""


class PermGovError(Exception):
    """Base exception for permgov."""

    pass


class NotFound(PermGovError):
    """Requested entity or record was not found."""

    def __init__(self, entity: str, key: str | None = None) -> None:
        self.entity = entity
        self.key = key
        message = f"{entity} not found" if key is None else f"{entity} {key} not found"
        super().__init__(message)


class Conflict(PermGovError):
    """An assignment or grant already exists for the same key."""

    pass


class BadRequest(PermGovError):
    """Request cannot be honored as given."""

    pass


class InvalidInput(BadRequest):
    """Validation failed for input data."""

    pass


class IllegalOperation(BadRequest):
    """Operation is not allowed on the target, e.g. rollback of a rollback."""

    pass


class StorageFailure(PermGovError):
    """Storage layer failed. The underlying error is attached as __cause__."""

    pass


class CacheFailure(PermGovError):
    """Cache backend failed. The underlying error is attached as __cause__."""

    pass
