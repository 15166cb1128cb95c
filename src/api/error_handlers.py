"""Centralized error handling for scanner API endpoints."""

from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class ScannerError:
    """Standard error codes for the scanner API."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_THRESHOLD = "INVALID_THRESHOLD"
    INVALID_SORT_KEY = "INVALID_SORT_KEY"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse:
    """Standardized error response format."""

    def __init__(
        self,
        error_code: str,
        message: str,
        details: dict[str, Any] | list[str] | None = None,
        status_code: int = status.HTTP_400_BAD_REQUEST,
    ):
        """
        Initialize error response.

        Args:
            error_code: Standard error code from ScannerError
            message: Human-readable error message
            details: Additional error details (field-specific errors, etc.)
            status_code: HTTP status code
        """
        self.error_code = error_code
        self.message = message
        self.details = details
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON response."""
        response = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            response["details"] = self.details
        return response

    def to_http_exception(self) -> HTTPException:
        """Convert to FastAPI HTTPException."""
        return HTTPException(status_code=self.status_code, detail=self.to_dict())


def create_validation_error_response(errors: list[dict[str, Any]]) -> ErrorResponse:
    """
    Create standardized validation error response from Pydantic validation errors.

    Args:
        errors: List of validation errors from Pydantic

    Returns:
        ErrorResponse with field-specific validation errors
    """
    field_errors = {}
    for error in errors:
        field_path = ".".join(str(loc) for loc in error["loc"])
        field_errors[field_path] = error["msg"]

    return ErrorResponse(
        error_code=ScannerError.VALIDATION_ERROR,
        message="Validation failed for one or more fields",
        details=field_errors,
    )


def handle_service_error(error: Exception, context: str = "operation") -> ErrorResponse:
    """
    Convert a service layer error into an error response.

    Args:
        error: Exception from the service layer
        context: The operation that failed ("thresholds", "sort", ...)

    Returns:
        ErrorResponse with the matching error code
    """
    if not isinstance(error, ValueError):
        return ErrorResponse(
            error_code=ScannerError.INTERNAL_ERROR,
            message="An unexpected error occurred",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if context == "thresholds":
        error_code = ScannerError.INVALID_THRESHOLD
    elif context == "sort":
        error_code = ScannerError.INVALID_SORT_KEY
    else:
        error_code = ScannerError.VALIDATION_ERROR

    return ErrorResponse(error_code=error_code, message=str(error))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle FastAPI request validation errors with the standardized format."""
    error_response = create_validation_error_response(exc.errors())
    return JSONResponse(
        status_code=error_response.status_code,
        content=error_response.to_dict(),
    )
