"""
Business exceptions and the FastAPI handlers that turn errors into JSON
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class BusinessException(Exception):
    """Expected failure that the caller should see verbatim"""

    status_code = 400
    code = "business_error"

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details or {}


class PricingValidationError(BusinessException):
    """Malformed pricing input, e.g. a bad discount rule or refund policy"""

    status_code = 400
    code = "validation_error"


class NotFoundError(BusinessException):
    status_code = 404
    code = "not_found"


class ConflictError(BusinessException):
    status_code = 409
    code = "conflict"


def _error_body(code: str, message: str, details: Optional[Any] = None) -> Dict[str, Any]:
    body = {"success": False, "error": message, "code": code}
    if details:
        body["details"] = details
    return body


async def business_exception_handler(request: Request, exc: BusinessException) -> JSONResponse:
    logger.info(f"{request.method} {request.url.path} rejected: {exc.code} {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.code, exc.message, exc.details)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in error.get("loc", [])), "message": error.get("msg")}
        for error in exc.errors()
    ]
    logger.info(f"{request.method} {request.url.path} invalid request: {errors}")
    return JSONResponse(
        status_code=422,
        content=_error_body("request_validation_error", "Invalid request", errors)
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("http_error", str(exc.detail))
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} database error: {exc}")
    return JSONResponse(
        status_code=503,
        content=_error_body("database_error", "Database unavailable, please try again")
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"{request.method} {request.url.path} unhandled error: {exc}")
    return JSONResponse(
        status_code=500,
        content=_error_body("internal_error", "Something went wrong, please try again")
    )
