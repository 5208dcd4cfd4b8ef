# agency_reports/logging/exception_handlers.py

import logging
import traceback

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import ResponseValidationError, RequestValidationError

from agency_reports.core.exceptions import (
    ConfigurationError,
    ConnectionUnavailable,
    ExecutionError,
    ReportError,
    ValidationError,
)
from agency_reports.logging.service import (
    get_request_body_safely,
    safe_json_dumps,
    write_request_log,
)

logger = logging.getLogger(__name__)


def report_error_status(exc: ReportError) -> int:
    """Map a reporting error to its HTTP status code."""
    if isinstance(exc, (ConfigurationError, ValidationError)):
        return 400
    if isinstance(exc, ExecutionError):
        return 422
    if isinstance(exc, ConnectionUnavailable):
        return 503
    return 500


async def report_exception_handler(request: Request, exc: ReportError):
    """Handle report compilation and execution errors"""
    status_code = report_error_status(exc)
    content = {"success": False, "error": type(exc).__name__, "detail": str(exc)}

    write_request_log(
        request,
        status_code=status_code,
        request_body=get_request_body_safely(request),
        response_body=safe_json_dumps(content),
    )

    return JSONResponse(status_code=status_code, content=content)


async def general_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions and log them to database"""
    error_traceback = traceback.format_exc()
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}")

    write_request_log(
        request,
        status_code=500,
        request_body=get_request_body_safely(request),
        response_body=safe_json_dumps(
            {"error": str(exc), "type": type(exc).__name__, "traceback": error_traceback}
        ),
    )

    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error"},
    )


async def response_validation_exception_handler(request: Request, exc: ResponseValidationError):
    write_request_log(
        request,
        status_code=500,
        request_body=get_request_body_safely(request),
        response_body=safe_json_dumps(exc.errors()),
    )

    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error: Response validation failed."},
    )


async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors"""
    write_request_log(
        request,
        status_code=422,
        request_body=get_request_body_safely(request),
        response_body=safe_json_dumps(exc.errors()),
    )

    # Convert errors to a safe format for JSON response
    def convert_error(error):
        if isinstance(error, dict):
            return {k: convert_error(v) for k, v in error.items()}
        elif isinstance(error, list):
            return [convert_error(item) for item in error]
        else:
            return str(error)

    safe_errors = convert_error(exc.errors())

    return JSONResponse(
        status_code=422,
        content={"detail": safe_errors},
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions and log 4xx/5xx errors"""
    if exc.status_code >= 400:
        write_request_log(
            request,
            status_code=exc.status_code,
            request_body=get_request_body_safely(request),
            response_body=safe_json_dumps(
                {"detail": exc.detail, "headers": getattr(exc, "headers", None)}
            ),
        )

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )
