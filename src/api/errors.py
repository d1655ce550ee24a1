"""
Error handlers - Map domain error kinds to HTTP responses.

Handlers match on ``AuthError.kind``, never on message text:
    conflict          -> 409
    unauthenticated   -> 401
    not_found         -> 404
    invalid_argument  -> 400
    internal          -> 500 (generic message, details only in logs)

Unhandled exceptions get a generic 500 that never leaks internals.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.domain.exceptions import AuthError, ErrorKind

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_ARGUMENT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

INTERNAL_ERROR_DETAIL = "An internal error occurred"


def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers on the FastAPI app."""

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
        if exc.kind is ErrorKind.INTERNAL:
            logger.error("Internal error on %s: %s", request.url.path, exc.message)
            detail = INTERNAL_ERROR_DETAIL
        else:
            logger.info("%s on %s: %s", exc.kind.value, request.url.path, exc.message)
            detail = exc.message
        return JSONResponse(status_code=STATUS_BY_KIND[exc.kind], content={"detail": detail})

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": INTERNAL_ERROR_DETAIL},
        )
