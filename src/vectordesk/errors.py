"""Error taxonomy for the vectordesk core.

Validation problems are *values* (``ValidationError`` inside a ``Result``) and
never cross the folder-configuration boundary as exceptions. Store and
transport problems are exceptions derived from ``VectordeskError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class VectordeskError(Exception):
    """Base class for all vectordesk exceptions."""


class NotFound(VectordeskError):
    """Raised when a project, folder or document id is unknown."""

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} '{entity_id}' not found")
        self.kind = kind
        self.entity_id = entity_id


class InvalidStateTransition(VectordeskError):
    """Raised when completing or failing a document that is not processing."""

    def __init__(self, document_id: str, status: str) -> None:
        super().__init__(
            f"Document '{document_id}' is '{status}'; only processing documents "
            "can be completed or failed"
        )
        self.document_id = document_id
        self.status = status


class TransportFailure(VectordeskError):
    """Raised when the backend transport rejects or fails an operation."""

    def __init__(self, operation: str, cause: BaseException | None = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{operation} failed{detail}")
        self.operation = operation
        self.cause = cause


class UploadError(VectordeskError):
    """Raised when a file is rejected before it reaches the store."""


class AuthenticationError(VectordeskError):
    """Raised when the backend requires an API key and none was accepted."""


class InvalidFolderConfig(VectordeskError):
    """Raised when the store is handed folder settings that break a folder rule."""

    def __init__(self, error: ValidationError) -> None:
        super().__init__(str(error))
        self.error = error


class ValidationKind(str, Enum):
    OUT_OF_RANGE = "OutOfRange"
    EMPTY_OPTIONS = "EmptyOptions"
    DUPLICATE_KEY = "DuplicateKey"
    EMPTY_KEY = "EmptyKey"
    TOO_SHORT = "TooShort"
    KEY_MISMATCH = "KeyMismatch"


@dataclass(frozen=True)
class ValidationError:
    """A field-scoped validation failure, suitable for inline display."""

    kind: ValidationKind
    field: str | None = None
    message: str = ""

    def __str__(self) -> str:
        return self.message or self.kind.value


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a validated ``value`` or a ``ValidationError``."""

    value: T | None = None
    error: ValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: ValidationError) -> Result[T]:
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value; raise ``ValueError`` when this is a failure."""
        if self.error is not None:
            raise ValueError(str(self.error))
        return self.value  # type: ignore[return-value]
