from typing import Any, Optional


class ResenixError(Exception):
    """Base class for errors raised by the service layer."""


class InvalidInputError(ResenixError, ValueError):
    """A raw field value could not be interpreted (bad date, non-numeric budget...)."""

    def __init__(self, field: str, value: Any = None, message: Optional[str] = None):
        self.field = field
        self.value = value
        super().__init__(message or f"Invalid value for '{field}': {value!r}")


class NotFoundError(ResenixError):
    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class ConflictError(ResenixError):
    """The requested change is not allowed in the record's current state."""


class PersistenceError(ResenixError):
    """The document store reported a failure."""
