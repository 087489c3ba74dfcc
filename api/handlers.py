"""Exception handlers for the FastAPI application."""

import logging

from fastapi import Request, status
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.responses import JSONResponse

from auth.exceptions import AuthException, StoreError

logger = logging.getLogger(__name__)


def create_error_response(
    status_code: int,
    message: str,
    code: str,
    data: dict | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": message,
            "code": code,
            "data": data,
        },
        headers=headers,
    )


async def auth_exception_handler(request: Request, exc: AuthException) -> JSONResponse:
    """Handle domain errors raised by the auth and retake services."""
    return create_error_response(exc.status_code, exc.message, exc.code)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions with standardized response format."""
    return create_error_response(exc.status_code, str(exc.detail), "HTTP_ERROR")


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed or missing request fields as a 400."""
    error_details = []

    for error in exc.errors():
        field = error["loc"][-1] if error.get("loc") else "unknown"
        message = error.get("msg", "")

        # Remove "Value error, " prefix if present
        if message.startswith("Value error, "):
            message = message[13:]

        error_details.append({"field": field, "message": message})

    return create_error_response(
        status_code=status.HTTP_400_BAD_REQUEST,
        message="Validation error",
        code="INVALID_REQUEST",
        data={"validation_errors": error_details},
    )


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
    return create_error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", "INTERNAL_ERROR"
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other unhandled exceptions with error logging."""
    logger.exception(
        "Unhandled exception occurred",
        extra={"path": request.url.path, "method": request.method},
    )

    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="Internal server error",
        code="INTERNAL_ERROR",
    )
