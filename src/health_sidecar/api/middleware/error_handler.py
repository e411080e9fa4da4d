"""
Exception handlers for the API

DomainError subclasses (auth failure, invalid transition, duplicate
shutdown, bad payload) become their declared status code with an
ErrorResponse body. Anything else is logged with its traceback and
returned as a generic 500.
"""

import json
import uuid

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from health_sidecar.api.schemas.error import ErrorResponse
from health_sidecar.models.errors import DomainError
from health_sidecar.utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.API)


def error_response(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=json.loads(body.model_dump_json())
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with FastAPI app"""

    @app.exception_handler(DomainError)
    async def domain_exception_handler(request: Request, exc: DomainError):
        request_id = str(uuid.uuid4())

        log.warn(
            f"{request.method} {request.url.path} → {exc.status_code} {exc.code}",
            request_id=request_id
        )

        return error_response(
            exc.status_code,
            ErrorResponse(
                error=exc.code,
                message=exc.message,
                details=exc.details or None,
                request_id=request_id
            )
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        request_id = str(uuid.uuid4())

        log.error(
            f"Unexpected error ({request_id}): {type(exc).__name__}: {exc}",
            path=request.url.path,
            exc_info=True
        )

        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorResponse(
                error="internal_server_error",
                message="An unexpected error occurred.",
                request_id=request_id
            )
        )
