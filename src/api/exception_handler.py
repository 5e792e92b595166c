import logging
import traceback

from django.conf import settings
from ninja_extra import NinjaExtraAPI
from ninja_extra.exceptions import APIException as NinjaExtraAPIException
from ninja.errors import AuthenticationError, ValidationError as NinjaValidationError
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError

# psycopg 3: use error classes under psycopg.errors (no "errorcodes" module)
from psycopg import errors as pg_errors

from src.core.apis import request_id_of
from src.core.exceptions import APIError, InternalFault

logger = logging.getLogger(__name__)

# unique constraint (postgres name, sqlite "table.column") -> (code, message, field)
UNIQUE_CONSTRAINTS = {
    "signature_records_fingerprint_key": ("DOCUMENT_ALREADY_SIGNED", "Document already exists", "fingerprint"),
    "signature_records.fingerprint": ("DOCUMENT_ALREADY_SIGNED", "Document already exists", "fingerprint"),
    "signature_records_certificate_id_key": ("CERTIFICATE_ID_TAKEN", "Certificate id already exists", "certificate_id"),
    "signature_records.certificate_id": ("CERTIFICATE_ID_TAKEN", "Certificate id already exists", "certificate_id"),
    "users_email_key": ("USER_EXISTS", "Email already in use", "email"),
    "users.email": ("USER_EXISTS", "Email already in use", "email"),
}


def _unique_violation(exc: IntegrityError) -> tuple[bool, str]:
    cause = getattr(exc, "__cause__", None)
    # psycopg 3 diagnostics (may be None depending on backend/driver)
    diag = getattr(cause, "diag", None) if cause else None
    constraint = getattr(diag, "constraint_name", "") if diag else ""
    pgcode = getattr(cause, "pgcode", "") or getattr(diag, "sqlstate", "") or ""

    if cause is not None and isinstance(cause, pg_errors.UniqueViolation):
        return True, constraint or ""
    if pgcode == "23505":  # SQLSTATE: UNIQUE_VIOLATION
        return True, constraint or ""

    # sqlite: "UNIQUE constraint failed: signature_records.fingerprint"
    text = str(exc)
    if "UNIQUE constraint failed:" in text:
        return True, text.split("UNIQUE constraint failed:", 1)[1].split(",")[0].strip()
    return False, ""


def attach_exception_handlers(api: NinjaExtraAPI) -> None:
    def _envelope(request, *, message: str, status: int, code: str, data=None, errors=None, extra=None,):
        return api.create_response(
            request,
            {
                "success": 200 <= status < 400,
                "message": message,
                "data": data or {},
                "extra": extra or {},
                "errors": errors,
                "code": code,
                "request_id": request_id_of(request),
            },
            status=status,
        )

    @api.exception_handler(APIError)
    def on_api_error(request, exc: APIError):
        return _envelope(
            request,
            message=exc.message,
            status=exc.status,
            code=exc.code,
            errors=exc.errors,
            extra=exc.extra,
        )

    @api.exception_handler(InternalFault)
    def on_internal_fault(request, exc: InternalFault):
        # Context was logged where the fault was raised; the caller only gets a generic answer
        return _envelope(request, message=exc.message, status=exc.status, code=exc.code)

    @api.exception_handler(AuthenticationError)
    def on_authentication_error(request, exc: AuthenticationError):
        return _envelope(request, message="Authentication required", status=401, code="UNAUTHENTICATED")

    @api.exception_handler(NinjaExtraAPIException)
    def on_framework_error(request, exc: NinjaExtraAPIException):
        # token errors (ninja_jwt) and throttling (ninja_extra)
        extra = {}
        wait = getattr(exc, "wait", None)
        if wait is not None:
            extra["retry_after"] = int(wait) + 1
        detail = exc.detail
        message = str(detail.get("detail", "Request rejected")) if isinstance(detail, dict) else str(detail)
        return _envelope(
            request,
            message=message,
            errors=detail if isinstance(detail, dict) else None,
            status=exc.status_code,
            code=str(getattr(exc, "default_code", "error")).upper(),
            extra=extra,
        )

    @api.exception_handler(IntegrityError)
    def on_integrity_error(request, exc: IntegrityError):
        status, code, msg, field = 409, "CONFLICT", "Conflict", None

        is_unique, constraint = _unique_violation(exc)
        if is_unique and constraint in UNIQUE_CONSTRAINTS:
            code, msg, field = UNIQUE_CONSTRAINTS[constraint]

        errors = {field: ["already taken"]} if field else None
        return _envelope(request, message=msg, status=status, code=code, errors=errors)

    @api.exception_handler(DjangoValidationError)
    def on_django_validation_error(request, exc: DjangoValidationError):
        errors = exc.message_dict if hasattr(exc, "message_dict") else exc.messages
        return _envelope(
            request,
            message="Validation error",
            status=422,
            code="VALIDATION_ERROR",
            errors=errors,
        )

    @api.exception_handler(NinjaValidationError)
    def on_ninja_validation_error(request, exc: NinjaValidationError):
        return _envelope(
            request,
            message="Validation error",
            status=422,
            code="VALIDATION_ERROR",
            errors=exc.errors,
        )

    @api.exception_handler(Exception)
    def on_unexpected_error(request, exc: Exception):
        logger.exception("unhandled error", extra={"path": request.path, "request_id": request_id_of(request)})
        err = None
        extra = {}
        if settings.DEBUG:
            err = str(exc)
            extra["trace"] = traceback.format_exc(limit=20)
        return _envelope(
            request,
            message="Unexpected error",
            status=500,
            code="INTERNAL_ERROR",
            errors=err,
            extra=extra if settings.DEBUG else None,
        )
