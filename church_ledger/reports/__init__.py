"""
Reports Package

Pure aggregation over ledger collections plus the renderers that turn
the results into spreadsheets, PDFs and dashboard charts.
"""

from church_ledger.reports.aggregator import SECTION_ORDER, build_report
from church_ledger.reports.charts import (
    income_breakdown_chart,
    monthly_income_expense_chart,
)
from church_ledger.reports.exporters import (
    NoDataToExportError,
    flatten_report_rows,
    pdf_file_name,
    render_budget_report_pdf,
    render_flat_pdf,
    spreadsheet_file_name,
    to_spreadsheet_bytes,
)
from church_ledger.reports.flat import REPORT_NAMES, generate_flat_report
from church_ledger.reports.formatting import (
    format_currency,
    format_percent,
    format_report_date,
)
from church_ledger.reports.periods import (
    account_activity,
    account_realized_for_year,
    filter_by_date_range,
    financial_summary,
    income_breakdown,
    member_has_tithes,
    member_tithe_totals,
    member_tithes,
    monthly_totals,
    percent_of_budget,
    source_realized,
    source_transactions,
    sum_by_group_key,
)

__all__ = [
    # Budget / actuals
    "SECTION_ORDER",
    "build_report",
    # Period aggregators
    "account_activity",
    "account_realized_for_year",
    "filter_by_date_range",
    "financial_summary",
    "income_breakdown",
    "member_has_tithes",
    "member_tithe_totals",
    "member_tithes",
    "monthly_totals",
    "percent_of_budget",
    "source_realized",
    "source_transactions",
    "sum_by_group_key",
    # Flat reports
    "REPORT_NAMES",
    "generate_flat_report",
    # Rendering
    "NoDataToExportError",
    "flatten_report_rows",
    "format_currency",
    "format_percent",
    "format_report_date",
    "income_breakdown_chart",
    "monthly_income_expense_chart",
    "pdf_file_name",
    "render_budget_report_pdf",
    "render_flat_pdf",
    "spreadsheet_file_name",
    "to_spreadsheet_bytes",
]
