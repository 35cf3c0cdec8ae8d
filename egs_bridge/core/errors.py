"""
Domain exceptions and their HTTP mapping.

Services raise these; routes stay free of status-code plumbing.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from loguru import logger


class NotFoundError(Exception):
    """Resource (drive, student, notification, reminder log) does not exist."""

    def __init__(self, message: str = "Resource not found", error_code: str = "NOT_FOUND"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class BusinessLogicError(Exception):
    """Malformed input or a violated business rule."""

    def __init__(self, message: str, error_code: str = "BLOC_ERROR"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class ConflictError(Exception):
    """Uniqueness violation (register number, email, duplicate registration)."""

    def __init__(self, message: str, error_code: str = "CONFLICT"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class AuthenticationError(Exception):
    """Bad login credentials."""

    def __init__(self, message: str = "Invalid credentials", error_code: str = "INVALID_CREDENTIALS"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class PermissionDeniedError(Exception):
    """Authenticated but not allowed, e.g. a deactivated officer account."""

    def __init__(self, message: str = "Access denied", error_code: str = "FORBIDDEN"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class EmailDeliveryError(Exception):
    """Email transport failure. Always recovered locally by callers."""

    def __init__(self, message: str, error_code: str = "EMAIL_DELIVERY_FAILED"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


def _error_response(status_code: int, exc) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error_code": exc.error_code},
    )


def register_exception_handlers(app: FastAPI):
    """Attach JSON handlers for domain exceptions."""

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error_response(status.HTTP_404_NOT_FOUND, exc)

    @app.exception_handler(BusinessLogicError)
    async def business_logic_handler(request: Request, exc: BusinessLogicError):
        logger.info(f"Rejected {request.method} {request.url.path}: {exc.message}")
        return _error_response(status.HTTP_400_BAD_REQUEST, exc)

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError):
        return _error_response(status.HTTP_409_CONFLICT, exc)

    @app.exception_handler(AuthenticationError)
    async def authentication_handler(request: Request, exc: AuthenticationError):
        return _error_response(status.HTTP_401_UNAUTHORIZED, exc)

    @app.exception_handler(PermissionDeniedError)
    async def permission_handler(request: Request, exc: PermissionDeniedError):
        return _error_response(status.HTTP_403_FORBIDDEN, exc)
