# agency_reports/reporting/models.py

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float
from datetime import datetime
from agency_reports.core.database import Base


class ReportExecutionLog(Base):
    """Log of custom report executions with performance metrics."""

    __tablename__ = "report_execution_logs"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, nullable=False, index=True)
    output_format = Column(String, nullable=False, default="json")
    table_count = Column(Integer, nullable=True)
    execution_time_ms = Column(Float, nullable=True)
    row_count = Column(Integer, nullable=True)
    success = Column(Boolean, nullable=False)
    error_message = Column(String, nullable=True)
    executed_at = Column(DateTime, default=datetime.now)
