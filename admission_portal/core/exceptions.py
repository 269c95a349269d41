import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from admission_portal.core.enums import ErrorKind

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base exception for service layer errors."""

    default_status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_kind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        kind: Optional[ErrorKind] = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code or self.default_status_code
        self.kind = kind or self.default_kind
        self.details = details

    def to_detail(self) -> Dict[str, Any]:
        detail: Dict[str, Any] = {"error": self.message, "code": self.kind.value}
        if self.details is not None:
            detail["details"] = self.details
        return detail


class ValidationError(ServiceError):
    default_status_code = status.HTTP_400_BAD_REQUEST
    default_kind = ErrorKind.INVALID_PAYLOAD


class ConflictError(ServiceError):
    """Duplicate unique key or an application that already exists. Reported as 400."""

    default_status_code = status.HTTP_400_BAD_REQUEST
    default_kind = ErrorKind.DUPLICATE_ENTRY


class AuthError(ServiceError):
    """Missing token -> 401; bad credentials -> 401; invalid/expired token -> 403."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.INVALID_OR_EXPIRED_TOKEN) -> None:
        if kind == ErrorKind.INVALID_OR_EXPIRED_TOKEN:
            code = status.HTTP_403_FORBIDDEN
        else:
            code = status.HTTP_401_UNAUTHORIZED
        super().__init__(message, code, kind)


class NotFoundError(ServiceError):
    default_status_code = status.HTTP_404_NOT_FOUND
    default_kind = ErrorKind.NOT_FOUND


class InternalError(ServiceError):
    default_status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_kind = ErrorKind.INTERNAL


def _error_body(detail: Any) -> Dict[str, Any]:
    if isinstance(detail, dict) and "error" in detail:
        return detail
    return {"error": detail if isinstance(detail, str) else jsonable_encoder(detail)}


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        # No route matched
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": "Endpoint not found",
                "code": ErrorKind.NOT_FOUND.value,
                "path": request.url.path,
                "method": request.method,
            },
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Service error on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_detail())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation error", "code": ErrorKind.INVALID_PAYLOAD.value, "details": details},
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("Unhandled integrity error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Duplicate entry", "code": ErrorKind.DUPLICATE_ENTRY.value},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "code": ErrorKind.INTERNAL.value},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
