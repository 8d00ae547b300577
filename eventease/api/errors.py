"""Translate EventEase exceptions into HTTP responses."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from eventease.exceptions import (
    AuthorizationError,
    ConflictError,
    EligibilityDenied,
    NotFoundError,
    ValidationError,
)
from eventease.logging_config import get_logger

logger = get_logger("api.errors")


async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "field": exc.field},
    )


async def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": exc.message})


async def handle_authorization_error(request: Request, exc: AuthorizationError) -> JSONResponse:
    logger.info(f"Forbidden {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})


async def handle_eligibility_denied(request: Request, exc: EligibilityDenied) -> JSONResponse:
    eligibility = exc.eligibility
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": eligibility.message,
            "reason": eligibility.reason.value,
            "event_id": eligibility.event_id,
        },
    )


async def handle_conflict(request: Request, exc: ConflictError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the handlers for the EventEase error taxonomy."""
    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(NotFoundError, handle_not_found)
    app.add_exception_handler(AuthorizationError, handle_authorization_error)
    app.add_exception_handler(EligibilityDenied, handle_eligibility_denied)
    app.add_exception_handler(ConflictError, handle_conflict)
