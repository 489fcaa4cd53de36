"""
Domain failures raised by the core.

Every core operation either returns a result or raises exactly one of these.
The HTTP layer maps them to status codes; the core knows nothing about transport.
"""


class DomainError(Exception):
    """Base class for all school-records domain failures."""

    code = "domain_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(DomainError):
    """A referenced id does not exist."""

    code = "not_found"


class InvalidReference(DomainError):
    """A referenced id exists (or is required to) but fails a type constraint."""

    code = "invalid_reference"


class Conflict(DomainError):
    """A uniqueness or already-in-that-state constraint is violated."""

    code = "conflict"


class CapacityExceeded(DomainError):
    """A fixed numeric cap would be exceeded."""

    code = "capacity_exceeded"


class PreconditionFailed(DomainError):
    """An implicit precondition of the operation does not hold."""

    code = "precondition_failed"


class ValidationFailed(DomainError):
    """Malformed input; ``details`` lists field/message pairs."""

    code = "validation_failed"

    def __init__(self, message: str, details: list[dict] | None = None):
        super().__init__(message)
        self.details = details or []
