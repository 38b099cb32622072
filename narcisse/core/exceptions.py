"""Application-level exceptions and FastAPI exception handlers."""


from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500, code: str = "INTERNAL_ERROR"):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)

class NotFoundError(AppException):
    def __init__(self, entity: str, entity_id: str | None = None):
        msg = f"{entity} not found" if not entity_id else f"{entity} '{entity_id}' not found"
        super().__init__(msg, status_code=404, code="NOT_FOUND")

class BadRequestError(AppException):
    def __init__(self, message: str, code: str = "BAD_REQUEST"):
        super().__init__(message, status_code=400, code=code)

class ForbiddenError(AppException):
    def __init__(self, message: str = "Access denied"):
        super().__init__(message, status_code=403, code="FORBIDDEN")

class UnauthorizedError(AppException):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, status_code=401, code="UNAUTHORIZED")

class ConflictError(AppException):
    def __init__(self, message: str, code: str = "CONFLICT"):
        super().__init__(message, status_code=409, code=code)

class ValidationError(AppException):
    def __init__(self, message: str):
        super().__init__(message, status_code=422, code="VALIDATION_ERROR")

class PayloadTooLargeError(AppException):
    def __init__(self, message: str = "Fichier trop volumineux"):
        super().__init__(message, status_code=413, code="PAYLOAD_TOO_LARGE")

class RateLimitedError(AppException):
    """Raised when a rate-limit bucket is empty; carries the retry delay in seconds."""

    def __init__(self, retry_after: int, message: str = "Too many requests"):
        self.retry_after = retry_after
        super().__init__(message, status_code=429, code="RATE_LIMITED")

class UpstreamServiceError(AppException):
    """Raised when a third-party call (Stripe, PayPal, storage, mail) fails."""

    def __init__(self, message: str, code: str = "UPSTREAM_ERROR"):
        super().__init__(message, status_code=502, code=code)

class ServiceUnavailableError(AppException):
    def __init__(self, message: str):
        super().__init__(message, status_code=503, code="SERVICE_UNAVAILABLE")

# Booking error codes and the HTTP status each one maps to
_BOOKING_STATUS = {
    "CONFLICT": 409,
    "INVALID_TIME": 400,
    "TOO_LATE": 400,
    "VALIDATION": 400,
    "NO_BOATS": 409,
    "TRANSACTION": 500,
}

class BookingError(AppException):
    """Business failure of the booking flow (slot, boat or transaction)."""

    def __init__(self, message: str, code: str):
        super().__init__(message, status_code=_BOOKING_STATUS.get(code, 400), code=code)

# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def _error_body(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        headers = None
        if isinstance(exc, RateLimitedError):
            headers = {"Retry-After": str(exc.retry_after)}
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.code, exc.message),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        body = _error_body("VALIDATION_ERROR", "Données invalides")
        body["error"]["issues"] = [
            {"loc": list(err.get("loc", [])), "msg": err.get("msg", "")}
            for err in exc.errors()
        ]
        return JSONResponse(status_code=422, content=body)

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content=_error_body("NOT_FOUND", "Resource not found"),
        )

    @app.exception_handler(500)
    async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=500,
            content=_error_body("INTERNAL_ERROR", "An unexpected error occurred"),
        )
