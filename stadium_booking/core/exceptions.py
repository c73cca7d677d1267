"""Service-level exceptions and their HTTP mapping."""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class ServiceError(Exception):
    """Base class for errors raised by the service layer."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    status_code = 400


class NotFoundError(ServiceError):
    status_code = 404


class PermissionDeniedError(ServiceError):
    status_code = 403


class BookingConflictError(ServiceError):
    status_code = 409


class InvalidTransitionError(ServiceError):
    status_code = 400


class CancellationWindowError(ServiceError):
    status_code = 400


def register_error_handlers(app: FastAPI) -> None:
    """Render service errors as JSON responses."""

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})
