# rentals/api/errors.py
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rentals.domain.errors import RentalError
from rentals.utils.logging import get_logger

logger = get_logger(__name__)


def _describe(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


def setup_exception_handlers(app: FastAPI):
    """Every error leaves the API as {"message": ...}."""

    @app.exception_handler(RentalError)
    async def rental_error_handler(request: Request, exc: RentalError):
        return JSONResponse(content={"message": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(content={"message": _describe(exc)}, status_code=400)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(content={"message": str(exc.detail)}, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.method} {request.url.path}:\n{traceback.format_exc()}")
        return JSONResponse(content={"message": "Internal server error"}, status_code=500)
