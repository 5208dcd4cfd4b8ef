# agency_reports/core/dependencies.py
"""FastAPI dependencies shared by the reporting routes."""

from typing import Annotated, Optional
from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from agency_reports.core.config import REPORT_STRICT_OPERATORS
from agency_reports.core.database import get_db
from agency_reports.query.builder import ReportQueryBuilder
from agency_reports.reporting.executor import ReportExecutor
from agency_reports.reporting.execution_log_dao import ReportExecutionLogDAO
from agency_reports.reporting.formatter import ReportFormatter
from agency_reports.reporting.service import ReportService
from agency_reports.tenancy.pool_manager import TenantPoolManager

TENANT_HEADER = "X-Agency-Database"

# Core database dependency
SessionDep = Annotated[Session, Depends(get_db)]

# The builder is stateless, so a single instance serves every request
_query_builder = ReportQueryBuilder(strict_operators=REPORT_STRICT_OPERATORS)


def get_pool_manager(request: Request) -> TenantPoolManager:
    """Get the long-lived tenant pool registry created at startup."""
    return request.app.state.pool_manager


def get_query_builder() -> ReportQueryBuilder:
    return _query_builder


def get_report_formatter() -> ReportFormatter:
    return ReportFormatter()


def get_tenant_id(
    x_agency_database: Annotated[Optional[str], Header(alias=TENANT_HEADER)] = None,
) -> str:
    """Resolve the tenant database from the request header."""
    if not x_agency_database:
        raise HTTPException(status_code=400, detail=f"{TENANT_HEADER} header is required")
    return x_agency_database


PoolManagerDep = Annotated[TenantPoolManager, Depends(get_pool_manager)]
TenantDep = Annotated[str, Depends(get_tenant_id)]


def get_report_service(
    db: SessionDep,
    pool_manager: PoolManagerDep,
    query_builder: ReportQueryBuilder = Depends(get_query_builder),
    formatter: ReportFormatter = Depends(get_report_formatter),
) -> ReportService:
    return ReportService(
        query_builder=query_builder,
        executor=ReportExecutor(pool_manager),
        formatter=formatter,
        execution_log_dao=ReportExecutionLogDAO(db),
    )
