# agency_reports/reporting/execution_log_dao.py
"""Data Access Object for Report Execution Logs."""

from sqlalchemy.orm import Session
from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional
from datetime import datetime
from agency_reports.reporting.models import ReportExecutionLog

MAX_ERROR_MESSAGE_LENGTH = 1000


class ReportExecutionLogDAO:
    """DAO for report execution log operations."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def log_execution(
        self,
        tenant_id: str,
        output_format: str = "json",
        table_count: Optional[int] = None,
        execution_time_ms: Optional[float] = None,
        row_count: Optional[int] = None,
        success: bool = True,
        error_message: Optional[str] = None,
    ) -> ReportExecutionLog:
        """Record one execution attempt."""
        if execution_time_ms is not None and execution_time_ms < 0:
            execution_time_ms = 0.0

        # Truncate error message if too long
        if error_message and len(error_message) > MAX_ERROR_MESSAGE_LENGTH:
            error_message = error_message[: MAX_ERROR_MESSAGE_LENGTH - 3] + "..."

        execution_log = ReportExecutionLog(
            tenant_id=tenant_id,
            output_format=output_format,
            table_count=table_count,
            execution_time_ms=execution_time_ms,
            row_count=row_count,
            success=success,
            error_message=error_message,
            executed_at=datetime.now(),
        )
        self.db.add(execution_log)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(execution_log)
        return execution_log

    def get_recent_by_tenant(self, tenant_id: str, limit: int = 50) -> List[ReportExecutionLog]:
        """Get execution logs for a tenant, most recent first."""
        query = (
            select(ReportExecutionLog)
            .where(ReportExecutionLog.tenant_id == tenant_id)
            .order_by(desc(ReportExecutionLog.executed_at), desc(ReportExecutionLog.id))
            .limit(limit)
        )
        return list(self.db.execute(query).scalars().all())

    def get_failed_by_tenant(self, tenant_id: str, limit: int = 50) -> List[ReportExecutionLog]:
        """Get recent failed execution logs for a tenant."""
        query = (
            select(ReportExecutionLog)
            .where(
                ReportExecutionLog.tenant_id == tenant_id,
                ReportExecutionLog.success.is_(False),
            )
            .order_by(desc(ReportExecutionLog.executed_at), desc(ReportExecutionLog.id))
            .limit(limit)
        )
        return list(self.db.execute(query).scalars().all())
