"""
Report outputs: the sorted audit rows as a delimited export and as a single
HTML table for viewing.
"""

from steam_risk_audit.reporting.report_writer import (
    REPORT_COLUMNS,
    row_to_record,
    write_csv_report,
    write_html_report,
)

__all__ = ["REPORT_COLUMNS", "row_to_record", "write_csv_report", "write_html_report"]
