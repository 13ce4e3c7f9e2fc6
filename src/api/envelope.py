"""
Uniform response envelope.

Success: {"success": true, "data": ...}
Failure: {"success": false, "error": {"code": ..., "message": ...}}
"""

import logging
from typing import Any, NoReturn

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.domain.errors import (
    FORBIDDEN,
    INTERNAL,
    NOT_FOUND,
    UNAUTHORIZED,
    VALIDATION_ERROR,
    ErrorDetail,
    http_status_for,
)

logger = logging.getLogger(__name__)

_CODE_BY_HTTP_STATUS = {401: UNAUTHORIZED, 403: FORBIDDEN, 404: NOT_FOUND}


class ApiError(Exception):
    """Raised by routes and dependencies; rendered as an error envelope."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def status_code(self) -> int:
        return http_status_for(self.code)


def ok(data: Any = None) -> dict[str, Any]:
    return {"success": True, "data": jsonable_encoder(data)}


def error_body(code: str, message: str) -> dict[str, Any]:
    return {"success": False, "error": {"code": code, "message": message}}


def raise_for_errors(errors: list[ErrorDetail]) -> NoReturn:
    """Raise the first component error as an ApiError."""
    if not errors:
        raise ApiError(INTERNAL, "Operation failed")
    first = errors[0]
    raise ApiError(first.code, first.message)


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
        headers = {"WWW-Authenticate": "Bearer"} if exc.code == UNAUTHORIZED else None
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.code, exc.message),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        if errors:
            location = ".".join(str(p) for p in errors[0].get("loc", ()) if p != "body")
            message = f"{location}: {errors[0].get('msg', 'invalid value')}"
        else:
            message = "Invalid request"
        return JSONResponse(status_code=400, content=error_body(VALIDATION_ERROR, message))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        code = _CODE_BY_HTTP_STATUS.get(exc.status_code, VALIDATION_ERROR)
        if exc.status_code >= 500:
            code = INTERNAL
        return JSONResponse(
            status_code=exc.status_code, content=error_body(code, str(exc.detail))
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500, content=error_body(INTERNAL, "Internal error, please retry")
        )
