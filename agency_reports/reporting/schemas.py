"""Pydantic schemas for the reporting API."""

from typing import Optional, List, Any
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field

from agency_reports.query.schemas import ReportConfig


class ReportFormat(str, Enum):
    """Output formats for generated reports."""

    JSON = "json"
    CSV = "csv"
    # Rendered by an externally registered renderer
    PDF = "pdf"
    EXCEL = "excel"


# ===== REQUEST SCHEMAS =====


class BuildReportRequest(BaseModel):
    """Request schema for building a custom report."""

    report_config: ReportConfig = Field(alias="reportConfig")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class GenerateReportRequest(BuildReportRequest):
    """Request schema for generating a report in a given format."""

    format: ReportFormat = ReportFormat.JSON


# ===== RESPONSE SCHEMAS =====


class RenderedReport(BaseModel):
    """A report rendered in its requested format."""

    format: ReportFormat
    data: Any
    row_count: int = Field(serialization_alias="rowCount")


class QueryPreview(BaseModel):
    query: str
    parameters: List[Any] = []


class ColumnDescription(BaseModel):
    name: str
    type: str
    nullable: bool = True


class TableDescription(BaseModel):
    """A tenant table available to the report builder."""

    name: str
    columns: List[ColumnDescription] = []


class ReportExecutionLogRead(BaseModel):
    """Schema for report execution logs."""

    id: int
    tenant_id: str
    output_format: str
    table_count: Optional[int] = None
    execution_time_ms: Optional[float] = None
    row_count: Optional[int] = None
    success: bool
    error_message: Optional[str] = None
    executed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PoolStats(BaseModel):
    tenant: str
    acquisitions: int = 0
    created_at: Optional[datetime] = None
    last_used: Optional[datetime] = None
    checked_out: Optional[int] = None
