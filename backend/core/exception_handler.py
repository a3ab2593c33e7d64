import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from core.inventory import (
    ConfigurationError,
    InventoryError,
    NotFoundError,
    NotTrackedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    NotTrackedError: status.HTTP_409_CONFLICT,
    ConfigurationError: 422,
}


def status_for(exc: InventoryError) -> int:
    for err_type, code in STATUS_BY_ERROR.items():
        if isinstance(exc, err_type):
            return code
    return status.HTTP_400_BAD_REQUEST


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(InventoryError)
    async def inventory_exception_handler(request: Request, exc: InventoryError):
        code = status_for(exc)
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, type(exc).__name__, exc.message)
        return JSONResponse(
            content={"detail": exc.message, "error": type(exc).__name__},
            status_code=code,
        )

    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(request: Request, exc: IntegrityError):
        logger.warning("%s %s violated a database constraint: %s", request.method, request.url.path, exc.orig)
        return JSONResponse(
            content={"detail": "The change conflicts with existing data", "error": "IntegrityError"},
            status_code=status.HTTP_409_CONFLICT,
        )

    # Catch all unhandled exceptions
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            content={"detail": "Internal server error", "error": type(exc).__name__},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
