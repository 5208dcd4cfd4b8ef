# agency_reports/logging/service.py
"""Writes request log rows to the application database."""

import getpass
import json
import logging
import platform
import socket
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError

from agency_reports.core import database
from agency_reports.core.config import APPLICATION_ID
from agency_reports.logging.models import Log

logger = logging.getLogger(__name__)

TENANT_HEADER = "x-agency-database"

# Never persisted in request logs
SENSITIVE_HEADERS = {"authorization", "cookie", "x-api-key"}


def _resolve_username() -> str:
    try:
        return getpass.getuser() or "unknown_user"
    except (KeyError, OSError):
        return "unknown_user"


def _resolve_hostname() -> str:
    try:
        return socket.gethostname() or platform.node() or "unknown_host"
    except OSError:
        return "unknown_host"


USERNAME = _resolve_username()
HOSTNAME = _resolve_hostname()


def safe_json_dumps(obj: Any) -> str:
    return json.dumps(obj, indent=2, default=str)


def filter_headers(request: Request) -> Dict[str, str]:
    return {k: v for k, v in request.headers.items() if k.lower() not in SENSITIVE_HEADERS}


def write_request_log(
    request: Request,
    status_code: int,
    request_body: Optional[str] = None,
    response_body: Optional[str] = None,
    processing_time: Optional[float] = None,
) -> None:
    """Persist one request log row; failures are reported but never raised."""
    with database.SessionLocal() as session:
        try:
            log = Log(
                timestamp=datetime.now(),
                method=request.method,
                path=str(request.url.path),
                status_code=status_code,
                tenant_id=request.headers.get(TENANT_HEADER),
                client_ip=request.client.host if request.client else None,
                request_headers=json.dumps(filter_headers(request)),
                request_body=request_body,
                response_body=response_body,
                processing_time=processing_time,
                user_agent=request.headers.get("user-agent"),
                username=USERNAME,
                hostname=HOSTNAME,
                application_id=APPLICATION_ID,
            )
            session.add(log)
            session.commit()
        except SQLAlchemyError as log_error:
            session.rollback()
            logger.warning(f"Error writing request log: {log_error}")


def get_request_body_safely(request: Request) -> str:
    """Get the request body stored by the logging middleware, if any."""
    body = getattr(request.state, "body", None)
    if body is None:
        return "Request body not captured"
    return body
