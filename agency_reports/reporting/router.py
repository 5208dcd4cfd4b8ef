"""API router for the custom report builder."""

from typing import Any, Dict, List
from fastapi import APIRouter, Depends, Query

from agency_reports.core.dependencies import PoolManagerDep, TenantDep, get_report_service
from agency_reports.query.identifiers import validate_database_name
from agency_reports.reporting.service import ReportService
from agency_reports.reporting.schemas import (
    BuildReportRequest,
    GenerateReportRequest,
    PoolStats,
    ReportExecutionLogRead,
)

router = APIRouter(prefix="/reports", tags=["reporting"])


# ===== REPORT EXECUTION ENDPOINTS =====


@router.post("/build")
async def build_report(
    request: BuildReportRequest,
    tenant_id: TenantDep,
    service: ReportService = Depends(get_report_service),
) -> Dict[str, Any]:
    """Build a custom report from its configuration and return the rows."""
    rows = await service.build_report(tenant_id, request.report_config)
    return {"success": True, "data": rows}


@router.post("/generate")
async def generate_report(
    request: GenerateReportRequest,
    tenant_id: TenantDep,
    service: ReportService = Depends(get_report_service),
) -> Dict[str, Any]:
    """Build a custom report and render it in the requested format."""
    rendered = await service.generate_report(tenant_id, request.report_config, request.format)
    return {"success": True, "data": rendered.model_dump(by_alias=True)}


@router.post("/preview")
async def preview_report(
    request: BuildReportRequest, service: ReportService = Depends(get_report_service)
) -> Dict[str, Any]:
    """Compile a report configuration and return the SQL without running it."""
    preview = service.preview(request.report_config)
    return {"success": True, "data": preview.model_dump()}


# ===== SCHEMA DISCOVERY =====


@router.post("/tables")
async def get_available_tables(
    tenant_id: TenantDep, service: ReportService = Depends(get_report_service)
) -> Dict[str, Any]:
    """Get the tenant's tables and columns for the report builder."""
    tables = await service.list_tables(tenant_id)
    return {"success": True, "data": [table.model_dump() for table in tables]}


# ===== MONITORING =====


@router.get("/executions", response_model=List[ReportExecutionLogRead])
async def get_report_executions(
    tenant_id: TenantDep,
    limit: int = Query(50, ge=1, le=500),
    failed_only: bool = False,
    service: ReportService = Depends(get_report_service),
) -> List[ReportExecutionLogRead]:
    """Get report execution history for the tenant."""
    return service.get_execution_logs(tenant_id, limit=limit, failed_only=failed_only)


@router.get("/pools", response_model=List[PoolStats])
async def get_pool_stats(tenant_id: TenantDep, pool_manager: PoolManagerDep) -> List[PoolStats]:
    """Get connection pool statistics for the requesting tenant only."""
    database = validate_database_name(tenant_id)
    return [PoolStats(**stats) for stats in pool_manager.stats(tenant_id=database)]
