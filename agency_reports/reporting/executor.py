# agency_reports/reporting/executor.py
"""Runs compiled report queries against tenant databases."""

import logging
import time
from typing import Any, Dict, List

from agency_reports.query.schemas import CompiledQuery
from agency_reports.tenancy.pool_manager import TenantPoolManager

logger = logging.getLogger(__name__)


class ReportExecutor:
    """
    Executes a CompiledQuery on one scoped tenant connection.

    Each call acquires exactly one connection and releases it before
    returning or raising. No retries are attempted.
    """

    def __init__(self, pool_manager: TenantPoolManager):
        self.pool_manager = pool_manager

    def execute(self, tenant_id: str, compiled: CompiledQuery) -> List[Dict[str, Any]]:
        start_time = time.time()
        with self.pool_manager.connection(tenant_id) as connection:
            rows = connection.execute(compiled.query_text, compiled.parameters)

        duration_ms = (time.time() - start_time) * 1000
        logger.info(f"Report query for tenant {tenant_id} returned {len(rows)} rows in {duration_ms:.1f}ms")
        return rows

    def describe_tables(self, tenant_id: str) -> List[Dict[str, Any]]:
        with self.pool_manager.connection(tenant_id) as connection:
            return connection.describe_tables()
