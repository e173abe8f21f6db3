"""
Error taxonomy and the single formatting boundary for every API error.

Services raise AppError subclasses; register_error_handlers() turns those,
FastAPI request validation failures, Starlette HTTP errors and anything
unexpected into one JSON shape:

    {"kind": ..., "message": ..., "statusCode": ..., "errors": [{"field", "message"}]}

Outside production the body also carries the stack trace.
"""

import logging
import traceback
from dataclasses import dataclass, asdict
from enum import Enum
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from postboard import config

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    VALIDATION = "validation_error"
    AUTHENTICATION = "authentication_error"
    AUTHORIZATION = "authorization_error"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal_error"


@dataclass
class FieldViolation:
    field: str
    message: str


class AppError(Exception):
    kind = ErrorKind.INTERNAL
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, violations: Optional[List[FieldViolation]] = None):
        self.message = message or self.default_message
        self.violations = list(violations or [])
        super().__init__(self.message)


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION
    status_code = 400
    default_message = "Validation failed"


class AuthenticationError(AppError):
    kind = ErrorKind.AUTHENTICATION
    status_code = 401
    default_message = "Authentication failed"

    # reason: "missing_token" | "invalid_signature" | "expired" | "identity_not_found" | "bad_credentials"
    def __init__(self, message: Optional[str] = None, reason: str = "invalid_signature"):
        super().__init__(message)
        self.reason = reason


class AuthorizationError(AppError):
    kind = ErrorKind.AUTHORIZATION
    status_code = 403
    default_message = "Access denied"


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404
    default_message = "Resource not found"


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT
    status_code = 409
    default_message = "Resource already exists"


class InternalError(AppError):
    pass


class ViolationCollector:
    """Gathers field-level problems so a ValidationError reports all of them at once."""

    def __init__(self):
        self.violations: List[FieldViolation] = []

    def add(self, field: str, message: str):
        self.violations.append(FieldViolation(field, message))

    def raise_if_any(self, message: str = "Validation failed"):
        if self.violations:
            raise ValidationError(message, self.violations)


def error_body(
    kind: ErrorKind,
    status_code: int,
    message: str,
    violations: Optional[List[FieldViolation]] = None,
    exc: Optional[BaseException] = None,
) -> dict:
    body = {
        "kind": kind.value,
        "message": message,
        "statusCode": status_code,
        "errors": [asdict(v) for v in violations or []],
    }
    if config.ENV != "prod" and exc is not None:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body


_STATUS_KINDS = {
    400: ErrorKind.VALIDATION,
    401: ErrorKind.AUTHENTICATION,
    403: ErrorKind.AUTHORIZATION,
    404: ErrorKind.NOT_FOUND,
    409: ErrorKind.CONFLICT,
}


def _location_to_field(loc) -> str:
    # ("body", "title") -> "title"; ("query", "page") -> "page"
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "request"


def register_error_handlers(app: FastAPI):
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        log = logger.error if exc.status_code >= 500 else logger.info
        log("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.kind, exc.status_code, exc.message, exc.violations, exc),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        violations = [FieldViolation(_location_to_field(e.get("loc", ())), e.get("msg", "Invalid value")) for e in exc.errors()]
        logger.info("%s %s -> 400 %d invalid field(s)", request.method, request.url.path, len(violations))
        return JSONResponse(
            status_code=400,
            content=error_body(ErrorKind.VALIDATION, 400, "Validation failed", violations),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = f"Cannot {request.method} {request.url.path}"
        else:
            message = str(exc.detail)
        kind = _STATUS_KINDS.get(exc.status_code, ErrorKind.INTERNAL)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(kind, exc.status_code, message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=error_body(ErrorKind.INTERNAL, 500, InternalError.default_message, exc=exc),
        )
