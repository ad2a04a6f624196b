"""Error taxonomy shared by the service layer and the HTTP error handlers."""

from typing import Any


class ServiceError(Exception):
    """
    Base error raised by services. Carries a stable kind and the HTTP status it maps to.

    The API layer renders it as {"error": {"code": kind, "message": message}}.
    """

    kind: str = "internal"
    status_code: int = 500

    def __init__(self, message: str, cause: Exception | None = None, **details: Any) -> None:
        self.message = message
        self.cause = cause
        self.details = details
        super().__init__(message)

    def to_payload(self) -> dict[str, Any]:
        return {"error": {"code": self.kind, "message": self.message}}


class InvalidArgumentError(ServiceError):
    """Malformed or semantically invalid input."""

    kind = "invalid_argument"
    status_code = 400


class AuthenticationError(ServiceError):
    """Credentials missing, invalid, or expired."""

    kind = "unauthenticated"
    status_code = 401


class ForbiddenError(ServiceError):
    kind = "forbidden"
    status_code = 403


class NotFoundError(ServiceError):
    """Referenced record does not exist (or is no longer live)."""

    kind = "not_found"
    status_code = 404

    def __init__(self, record_id: str, resource: str = "user") -> None:
        super().__init__(
            f"{resource} {record_id!r} not found",
            record_id=record_id,
            resource=resource,
        )
        self.record_id = record_id


class ConflictError(ServiceError):
    """Uniqueness violation reported by the database constraint."""

    kind = "conflict"
    status_code = 409


class CancelledError(ServiceError):
    """The caller cancelled the request or its deadline passed."""

    kind = "cancelled"
    # Non-standard, used by nginx for "client closed request"
    status_code = 499


class InternalError(ServiceError):
    kind = "internal"
    status_code = 500
