import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppException(Exception):
    kind = "APP_ERROR"
    default_status = 400

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code or self.default_status
        super().__init__(message)


class ValidationError(AppException):
    kind = "VALIDATION_ERROR"
    default_status = 400


class NotFound(AppException):
    kind = "NOT_FOUND"
    default_status = 404


class AlreadyRegistered(AppException):
    kind = "ALREADY_REGISTERED"
    default_status = 400


class NotRegistered(AppException):
    kind = "NOT_REGISTERED"
    default_status = 400


class Unauthorized(AppException):
    kind = "UNAUTHORIZED"
    default_status = 401


class InternalFailure(AppException):
    kind = "INTERNAL_FAILURE"
    default_status = 500


class ExhaustedRetries(InternalFailure):
    kind = "EXHAUSTED_RETRIES"


def error_body(kind: str, message: str) -> dict:
    return {"error": kind, "message": message}


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppException)
    async def _app_exception_handler(_: Request, exc: AppException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.kind, exc.message),
        )

    @app.exception_handler(RequestValidationError)
    async def _request_validation_handler(_: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg', 'invalid value')}" if field else "Invalid request body"
        return JSONResponse(
            status_code=400,
            content=error_body(ValidationError.kind, message),
        )

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=error_body(InternalFailure.kind, "Internal server error"),
        )
