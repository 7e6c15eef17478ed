from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence

from fastapi import status


class ErrorKind(str, Enum):
    """Every failure a service can report to its caller."""

    INVALID_INPUT = "invalid_input"
    OWNER_NOT_FOUND = "owner_not_found"
    ENTRY_NOT_FOUND = "entry_not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    AUTHORIZATION_FAILED = "authorization_failed"
    INTERNAL = "internal"


HTTP_STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.OWNER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.ENTRY_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.AUTHORIZATION_FAILED: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred"


@dataclass(frozen=True)
class FieldError:
    """A single failed rule on a single request field."""

    field: str
    rule: str
    message: str

    def __str__(self) -> str:
        return self.message


class ServiceError(Exception):
    """Raised by the service layer; `kind` decides the HTTP status."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: Optional[Sequence[FieldError]] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details: List[FieldError] = list(details or [])

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]

    def to_response(self) -> dict:
        """Error envelope returned to clients."""
        if self.kind is ErrorKind.INTERNAL:
            return {"error": INTERNAL_ERROR_MESSAGE}
        return {"error": self.message}

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(kind={self.kind.value}, message={self.message!r})>"


class ValidationError(ServiceError):
    """Request payload failed one or more declarative rules."""

    def __init__(
        self,
        code: str,
        message: str = "Validation errors occurred",
        details: Optional[Sequence[FieldError]] = None,
    ):
        super().__init__(ErrorKind.INVALID_INPUT, message, details)
        self.code = code

    def __str__(self) -> str:
        if self.details:
            joined = "; ".join(d.message for d in self.details)
            return f"{self.code}: {self.message} - {joined}"
        return f"{self.code}: {self.message}"

    def to_response(self) -> dict:
        return {
            "error": str(self),
            "code": self.code,
            "details": [
                {"field": d.field, "rule": d.rule, "message": d.message}
                for d in self.details
            ],
        }


class AuthorizationCheckFailed(ServiceError):
    """The caller's profile could not be resolved, so no decision was made."""

    def __init__(self, message: str = "authorization check failed"):
        super().__init__(ErrorKind.AUTHORIZATION_FAILED, message)


def owner_not_found(message: str = "patient not found") -> ServiceError:
    return ServiceError(ErrorKind.OWNER_NOT_FOUND, message)


def entry_not_found(message: str) -> ServiceError:
    return ServiceError(ErrorKind.ENTRY_NOT_FOUND, message)


def forbidden(message: str = "forbidden") -> ServiceError:
    return ServiceError(ErrorKind.FORBIDDEN, message)


def conflict(message: str) -> ServiceError:
    return ServiceError(ErrorKind.CONFLICT, message)


def internal(message: str) -> ServiceError:
    return ServiceError(ErrorKind.INTERNAL, message)
