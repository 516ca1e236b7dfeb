"""
app/api/exception_handlers.py

Translates errors into `{"error": message}` JSON responses.

Lead import errors carry their own status code. Framework HTTP errors and
request validation failures are reshaped to the same body.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.errors import LeadImportError

logger = logging.getLogger(__name__)


async def lead_import_error_handler(request: Request, exc: LeadImportError) -> JSONResponse:
    logger.info(
        "Lead import request failed path=%s status=%d error=%s",
        request.url.path,
        exc.status_code,
        type(exc).__name__,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request. " + "; ".join(problems)},
    )


def register_exception_handlers(application: FastAPI) -> None:
    application.add_exception_handler(LeadImportError, lead_import_error_handler)
    application.add_exception_handler(StarletteHTTPException, http_error_handler)
    application.add_exception_handler(RequestValidationError, request_validation_error_handler)
