"""
Exception handlers rendering errors in the API response envelope.

Routes raise HTTPException as usual; these handlers turn the detail
into ``{"success": false, "message": ...}``.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return envelope(exc.status_code, str(exc.detail))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.debug("Rejected request body on %s: %s", request.url.path, exc.errors())
    return envelope(400, "Invalid request body")


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
