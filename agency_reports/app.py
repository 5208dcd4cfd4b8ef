"""FastAPI application entry point for the agency reports service."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import ResponseValidationError, RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from agency_reports.core.database import init_db
from agency_reports.core.exceptions import ReportError
from agency_reports.core.router import register_routes
from agency_reports.logging.middleware import LoggingMiddleware
from agency_reports.logging.exception_handlers import (
    report_exception_handler,
    response_validation_exception_handler,
    request_validation_exception_handler,
    general_exception_handler,
    http_exception_handler,
)
from agency_reports.tenancy.pool_manager import TenantPoolManager


def create_app(pool_manager: Optional[TenantPoolManager] = None) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Close every tenant pool on shutdown
        app.state.pool_manager.dispose_all()

    app = FastAPI(
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )
    init_db()

    # One registry for the process; pools live as long as the app
    app.state.pool_manager = pool_manager if pool_manager is not None else TenantPoolManager()

    # Add request logger middleware
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(ReportError, report_exception_handler)
    # Capture 500 response validation errors (these aren't captured by middleware)
    app.add_exception_handler(ResponseValidationError, response_validation_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, replace with specific origins
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)

    return app
