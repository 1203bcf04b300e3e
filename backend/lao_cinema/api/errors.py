"""
Rendering of domain errors as RFC 9457 problem documents.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from lao_cinema.errors import InternalError, RentalAccessError

logger = logging.getLogger(__name__)

PROBLEM_JSON = "application/problem+json"


def problem_response(exc: RentalAccessError) -> JSONResponse:
    headers = {}
    if exc.http_status == 401:
        headers["WWW-Authenticate"] = "Bearer"
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
        media_type=PROBLEM_JSON,
        headers=headers,
    )


async def rental_access_error_handler(request: Request, exc: RentalAccessError) -> JSONResponse:
    if isinstance(exc, InternalError):
        logger.error(
            "Internal error",
            extra={"path": request.url.path, "code": exc.error_code},
            exc_info=exc,
        )
        generic = InternalError("An internal error occurred", error_code=exc.error_code)
        return problem_response(generic)

    logger.info(
        "Request rejected",
        extra={"path": request.url.path, "status": exc.http_status, "code": exc.error_code},
    )
    return problem_response(exc)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception",
        extra={"path": request.url.path, "method": request.method, "error": str(exc)},
        exc_info=True,
    )
    return problem_response(InternalError("An internal error occurred"))


def install_error_handlers(app: FastAPI) -> None:
    """Register the problem-document handlers on an application."""
    app.add_exception_handler(RentalAccessError, rental_access_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
