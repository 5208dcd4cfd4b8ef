# agency_reports/reporting/service.py
"""Report service: compiles, executes and renders custom reports."""

import time
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from agency_reports.core.exceptions import ConnectionUnavailable, ExecutionError
from agency_reports.query.builder import ReportQueryBuilder
from agency_reports.query.schemas import CompiledQuery, ReportConfig
from agency_reports.reporting.executor import ReportExecutor
from agency_reports.reporting.execution_log_dao import ReportExecutionLogDAO
from agency_reports.reporting.formatter import ReportFormatter
from agency_reports.reporting.schemas import (
    QueryPreview,
    RenderedReport,
    ReportExecutionLogRead,
    ReportFormat,
    TableDescription,
)

logger = logging.getLogger(__name__)

ConfigInput = Union[ReportConfig, Mapping[str, Any]]


class ReportService:
    """Custom report builder service for a single request."""

    def __init__(
        self,
        query_builder: ReportQueryBuilder,
        executor: ReportExecutor,
        formatter: ReportFormatter,
        execution_log_dao: Optional[ReportExecutionLogDAO] = None,
    ):
        self.query_builder = query_builder
        self.executor = executor
        self.formatter = formatter
        self.execution_log_dao = execution_log_dao

    # ===== COMPILATION =====

    def preview(self, config: ConfigInput) -> QueryPreview:
        """Compile a report without touching any database."""
        compiled = self.query_builder.build(config)
        return QueryPreview(query=compiled.query_text, parameters=list(compiled.parameters))

    # ===== EXECUTION =====

    async def build_report(self, tenant_id: str, config: ConfigInput) -> List[Dict[str, Any]]:
        """Run a report and return its rows."""
        compiled = self.query_builder.build(config)
        return await self._execute(tenant_id, compiled, ReportFormat.JSON, len(self._tables(config)))

    async def generate_report(
        self,
        tenant_id: str,
        config: ConfigInput,
        fmt: Union[ReportFormat, str, None] = ReportFormat.JSON,
    ) -> RenderedReport:
        """Run a report and render it in the requested format."""
        report_format = self.formatter.check_format(fmt)
        compiled = self.query_builder.build(config)
        rows = await self._execute(tenant_id, compiled, report_format, len(self._tables(config)))
        return self.formatter.render(rows, report_format)

    async def list_tables(self, tenant_id: str) -> List[TableDescription]:
        """Get the tables and columns available to the report builder."""
        tables = await run_in_threadpool(self.executor.describe_tables, tenant_id)
        return [TableDescription(**table) for table in tables]

    async def _execute(
        self, tenant_id: str, compiled: CompiledQuery, report_format: ReportFormat, table_count: int
    ) -> List[Dict[str, Any]]:
        start_time = time.time()
        try:
            rows = await run_in_threadpool(self.executor.execute, tenant_id, compiled)
        except (ExecutionError, ConnectionUnavailable) as e:
            logger.error(f"Report execution failed for tenant {tenant_id}: {str(e)}")
            self._log_execution(
                tenant_id, report_format, table_count, start_time, success=False, error_message=str(e)
            )
            raise

        self._log_execution(tenant_id, report_format, table_count, start_time, row_count=len(rows))
        return rows

    # ===== EXECUTION LOGS =====

    def get_execution_logs(
        self, tenant_id: str, limit: int = 50, failed_only: bool = False
    ) -> List[ReportExecutionLogRead]:
        if self.execution_log_dao is None:
            return []
        if failed_only:
            logs = self.execution_log_dao.get_failed_by_tenant(tenant_id, limit)
        else:
            logs = self.execution_log_dao.get_recent_by_tenant(tenant_id, limit)
        return [ReportExecutionLogRead.model_validate(log) for log in logs]

    def _log_execution(
        self,
        tenant_id: str,
        report_format: ReportFormat,
        table_count: int,
        start_time: float,
        success: bool = True,
        row_count: Optional[int] = None,
        error_message: Optional[str] = None,
    ) -> None:
        if self.execution_log_dao is None:
            return

        execution_time_ms = (time.time() - start_time) * 1000
        try:
            self.execution_log_dao.log_execution(
                tenant_id=tenant_id,
                output_format=report_format.value,
                table_count=table_count,
                execution_time_ms=execution_time_ms,
                row_count=row_count,
                success=success,
                error_message=error_message,
            )
        except SQLAlchemyError as log_error:
            # The report result is still returned when the log write fails
            logger.warning(f"Failed to record report execution for tenant {tenant_id}: {log_error}")

    @staticmethod
    def _tables(config: ConfigInput) -> List[Any]:
        if isinstance(config, ReportConfig):
            return config.tables
        return list(config.get("tables") or [])
