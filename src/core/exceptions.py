from __future__ import annotations
from typing import Any


class APIError(Exception):
    def __init__(self, *, message: str, code: str, status: int, errors: Any = None, extra: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.errors = errors
        self.extra = extra or {}


class InvalidInputError(APIError):
    """Malformed or missing input supplied by the caller."""

    def __init__(self, *, message: str, code: str = "INVALID_INPUT", errors: Any = None, extra: dict[str, Any] | None = None):
        super().__init__(message=message, code=code, status=400, errors=errors, extra=extra)


class UnauthorizedError(APIError):
    """Ownership or role check failed."""

    def __init__(self, *, message: str = "Permission denied", code: str = "FORBIDDEN", errors: Any = None, extra: dict[str, Any] | None = None):
        super().__init__(message=message, code=code, status=403, errors=errors, extra=extra)


class NotFoundError(APIError):
    def __init__(self, *, message: str = "Not found", code: str = "NOT_FOUND", errors: Any = None, extra: dict[str, Any] | None = None):
        super().__init__(message=message, code=code, status=404, errors=errors, extra=extra)


class InternalFault(APIError):
    """
    Unexpected failure of a dependency (corrupt stored key, storage outage...).
    The message is always generic; details stay in `extra` for the logs only.
    """

    def __init__(self, *, extra: dict[str, Any] | None = None):
        super().__init__(message="Unexpected error", code="INTERNAL_ERROR", status=500, extra=extra)


class DomainConflictError(APIError):
    def __init__(self, *, message: str, code: str, errors: Any = None, extra: dict[str, Any] | None = None):
        super().__init__(message=message, code=code, status=409, errors=errors, extra=extra)


class DomainValidationError(APIError):
    def __init__(self, *, message: str, code: str = "VALIDATION_ERROR", errors: Any = None, extra: dict[str, Any] | None = None):
        super().__init__(message=message, code=code, status=422, errors=errors, extra=extra)
