# agency_reports/reporting/formatter.py
"""Rendering of report rows into the requested output format."""

from typing import Any, Callable, Dict, List, Optional, Union

import pandas as pd

from agency_reports.core.exceptions import UnsupportedFormat
from agency_reports.reporting.schemas import RenderedReport, ReportFormat

Renderer = Callable[[List[Dict[str, Any]]], Any]


class ReportFormatter:
    """
    Renders report rows.

    JSON and CSV are built in. PDF and Excel output is produced by external
    renderers registered through ``renderers``; without one those formats
    raise UnsupportedFormat.
    """

    def __init__(self, renderers: Optional[Dict[ReportFormat, Renderer]] = None):
        self.renderers: Dict[ReportFormat, Renderer] = dict(renderers or {})

    def render(
        self, rows: List[Dict[str, Any]], fmt: Union[ReportFormat, str, None] = ReportFormat.JSON
    ) -> RenderedReport:
        report_format = self.check_format(fmt)

        if report_format == ReportFormat.JSON:
            data: Any = rows
        elif report_format == ReportFormat.CSV:
            data = self.to_csv(rows)
        else:
            data = self.renderers[report_format](rows)

        return RenderedReport(format=report_format, data=data, row_count=len(rows))

    def check_format(self, fmt: Union[ReportFormat, str, None]) -> ReportFormat:
        """Resolve a format name, failing if nothing can render it."""
        report_format = self._resolve_format(fmt)
        if report_format in (ReportFormat.JSON, ReportFormat.CSV):
            return report_format
        if report_format not in self.renderers:
            raise UnsupportedFormat(
                f"Format '{report_format.value}' requires an external renderer"
            )
        return report_format

    @staticmethod
    def to_csv(rows: List[Dict[str, Any]]) -> str:
        """
        Render rows as CSV with a header taken from the first row's keys.

        An empty result set renders as an empty body with no header.
        """
        if not rows:
            return ""

        headers = list(rows[0].keys())
        # object dtype keeps integer columns with missing values from becoming floats
        df = pd.DataFrame(rows, columns=headers, dtype=object)
        return df.to_csv(index=False, lineterminator="\n")

    @staticmethod
    def _resolve_format(fmt: Union[ReportFormat, str, None]) -> ReportFormat:
        if fmt is None:
            return ReportFormat.JSON
        if isinstance(fmt, ReportFormat):
            return fmt
        try:
            return ReportFormat(str(fmt).strip().lower())
        except ValueError:
            raise UnsupportedFormat(f"Unknown report format: {fmt}")
