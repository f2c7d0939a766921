from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from parking_booking.domain.exceptions import (
    BookingError,
    ForbiddenError,
    InternalError,
    InvalidStateError,
    NotFoundError,
    SlotUnavailableError,
    ValidationError,
)

STATUS_CODES = {
    NotFoundError: 404,
    InvalidStateError: 409,
    SlotUnavailableError: 409,
    ValidationError: 400,
    ForbiddenError: 403,
    InternalError: 500,
}


def status_code_for(exc: BookingError) -> int:
    for error_type, status_code in STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return 400


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} refused ({exc.kind}): {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in error["loc"][1:]), "message": error["msg"]}
        for error in exc.errors()
    ]
    logger.warning(f"{request.method} {request.url.path} invalid request: {errors}")
    return JSONResponse(
        status_code=400,
        content={"error": ValidationError.kind, "message": "Validation error", "detail": {"errors": errors}},
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"{request.method} {request.url.path} crashed")
    return JSONResponse(status_code=500, content=InternalError().to_dict())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
