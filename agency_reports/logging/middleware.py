import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.background import BackgroundTask
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from agency_reports.core.config import APPLICATION_ID
from agency_reports.logging.service import HOSTNAME, USERNAME, write_request_log

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp):
        super().__init__(app)
        logger.info(
            f"Logging middleware initialized with username: {USERNAME} on host: {HOSTNAME}, "
            f"App ID: {APPLICATION_ID}"
        )

    async def dispatch(self, request: Request, call_next: Callable):
        # Define paths that should be excluded from logging
        excluded_paths = ["/api/docs", "/api/redoc", "/api/openapi.json"]

        if any(request.url.path.startswith(path) for path in excluded_paths):
            return await call_next(request)

        # --- Start timer ---
        start_time = time.time()

        # --- Read request body ---
        body_bytes = await request.body()
        request_body = body_bytes.decode("utf-8", errors="ignore")
        request.state.body = request_body

        # --- Proceed with original response ---
        response = await call_next(request)

        # --- End timer ---
        duration_ms = (time.time() - start_time) * 1000

        status_code = response.status_code
        response_body = b""

        if isinstance(response, Response) and hasattr(response, "body"):
            response_body = response.body
        elif hasattr(response, "body_iterator"):
            # Streaming responses are consumed and replayed
            original_iterator = response.body_iterator
            chunks = []

            async def buffer_iterator():
                nonlocal response_body
                async for chunk in original_iterator:
                    chunks.append(chunk)
                    yield chunk
                response_body = b"".join(chunks)

            response.body_iterator = buffer_iterator()

        # Exception handlers already logged error responses
        if status_code >= 400:
            return response

        # --- Log to DB (in background) ---
        def log_to_db():
            body_to_log = (
                response_body.decode("utf-8", errors="ignore")
                if response_body
                else "[Response body not available]"
            )
            write_request_log(
                request,
                status_code=status_code,
                request_body=request_body,
                response_body=body_to_log,
                processing_time=duration_ms,
            )

        response.background = getattr(response, "background", None) or BackgroundTask(log_to_db)

        return response
