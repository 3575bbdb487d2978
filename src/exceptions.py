"""
Application-wide exception handlers.

Service-layer failures are HTTPException subclasses (see auth/exceptions.py)
and are rendered by FastAPI itself; the handlers here cover body validation,
field-specific validation and unexpected storage errors.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import SQLAlchemyError
import logging

from .auth.exceptions import ValidationFailure

logger = logging.getLogger(__name__)

# Keys of a pydantic error that may contain the submitted value
REDACTED_ERROR_KEYS = ("input", "ctx")

def redact_errors(errors):
    """Drop submitted values from validation errors so passwords are never echoed."""
    return [
        {key: value for key, value in error.items() if key not in REDACTED_ERROR_KEYS}
        for error in errors
    ]

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for request body validation errors.

    Args:
        request: The request that caused the exception
        exc: The validation exception instance

    Returns:
        JSONResponse: 422 with the location and message of each error
    """
    errors = redact_errors(exc.errors())
    logger.warning(f"Validation error on {request.url.path}: {[e.get('loc') for e in errors]}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Validation error",
            "errors": jsonable_encoder(errors)
        }
    )

async def validation_failure_handler(request: Request, exc: ValidationFailure):
    """Field-specific validation raised by the service layer."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "field": exc.field
        }
    )

async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
    """
    Storage errors that were not mapped to a domain failure.

    The response is opaque; the error type is only logged.
    """
    logger.error(f"Storage error on {request.method} {request.url.path}: {type(exc).__name__}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )

def register_exception_handlers(app):
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationFailure, validation_failure_handler)
    app.add_exception_handler(SQLAlchemyError, storage_exception_handler)
