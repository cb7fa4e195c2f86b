"""Maps booking errors to HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from vetbook.models.errors import BookingError, ErrorResponse, ErrorType

logger = logging.getLogger(__name__)

STATUS_CODES: dict[ErrorType, int] = {
    ErrorType.DOCTOR_UNAVAILABLE: 404,
    ErrorType.PET_NOT_OWNED: 404,
    ErrorType.DAY_NOT_WORKING: 400,
    ErrorType.SLOT_NOT_FOUND: 404,
    ErrorType.SLOT_UNAVAILABLE: 409,
    ErrorType.INVALID_TRANSITION: 400,
    ErrorType.NOT_AUTHORIZED: 403,
    ErrorType.RESERVATION_NOT_FOUND: 404,
    ErrorType.CALENDAR_CONFLICT: 409,
}


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Render a ``BookingError`` as an ``ErrorResponse``."""
    status_code = STATUS_CODES.get(exc.error_type, 400)
    logger.info(
        f"{request.method} {request.url.path} -> {status_code} "
        f"{exc.error_type.value}: {exc.message}"
    )
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse.from_exception(exc).model_dump(mode="json"),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
