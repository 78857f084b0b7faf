"""Domain registry exceptions.

Every failure the record manager can report is a subclass of DomainError so
the operation boundary can turn it into a failed result uniformly.
"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base exception for all domain record errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        error: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error = error
        self.details = details or {}
        super().__init__(message)

    @property
    def error_type(self) -> str:
        return type(self).__name__


class ValidationError(DomainError):
    """Raised when a required field or file is missing, blank or unsupported."""

    status_code = 400

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message, details={"field": field})


class ConflictError(DomainError):
    """Raised when another domain already uses the title."""

    status_code = 409

    def __init__(self, title: str, message: str = "Domain already exists."):
        self.title = title
        super().__init__(message, details={"title": title})


class NotFoundError(DomainError):
    """Raised when no domain matches the identifier."""

    status_code = 404

    def __init__(self, domain_id: Any, message: str = "domain not found with the given id."):
        self.domain_id = domain_id
        super().__init__(message, details={"id": str(domain_id)})


class FileMissingError(DomainError):
    """Raised when a domain exists but its recorded file is gone from disk."""

    status_code = 404

    def __init__(self, path: str, kind: str):
        self.path = path
        self.kind = kind
        super().__init__(
            f"{kind} not found on disk for this domain.",
            error=path,
            details={"path": path, "kind": kind},
        )


class StorageError(DomainError):
    """Raised on an unexpected database or filesystem failure."""

    status_code = 500
