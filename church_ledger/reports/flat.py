"""
Flat Reports

Income, expense, tithe and summary reports for either all time or one
calendar month. Each report is a title plus a list of flat records
(one dict per row, keys = column headers) ready for export.

Internal fields (ids, the recording user, creation time) are never
exported.
"""

from datetime import date
from typing import Literal, Optional, Sequence

from church_ledger.models.ledger import ExpenseRecord, IncomeCategory, IncomeRecord
from church_ledger.models.report import FlatReport
from church_ledger.reports.periods import (
    filter_by_date_range,
    month_bounds,
    sum_amounts,
    tithe_records,
)

ReportType = Literal["income", "expenses", "tithes", "summary"]
PeriodType = Literal["all", "monthly"]

REPORT_NAMES = {
    "income": "Income Report",
    "expenses": "Expense Report",
    "tithes": "Tithe Report",
    "summary": "Financial Summary",
}


def report_period(
    period: PeriodType,
    month: Optional[date] = None,
) -> tuple[Optional[date], Optional[date], str]:
    """Bounds and title suffix for a report period."""
    if period == "monthly":
        month = month or date.today()
        start, end = month_bounds(month.year, month.month)
        return start, end, f"for {month:%B %Y}"
    return None, None, "for All Time"


def income_rows(records: Sequence[IncomeRecord]) -> list[dict]:
    """Offerings, donations and other income; tithes have their own report."""
    return [
        {
            "Date": record.date,
            "Code": record.code,
            "Name": record.transaction_name,
            "Category": record.category.value,
            "Amount": record.amount,
            "Member Name": record.member_name,
            "Description": record.description,
        }
        for record in records
        if record.category != IncomeCategory.TITHE
    ]


def expense_rows(records: Sequence[ExpenseRecord]) -> list[dict]:
    return [
        {
            "Date": record.date,
            "Code": record.code,
            "Name": record.display_name,
            "Category": record.category.value,
            "Amount": record.amount,
            "Payee": record.payee,
            "Payment Method": record.payment_method,
            "Description": record.description,
        }
        for record in records
    ]


def tithe_rows(records: Sequence[IncomeRecord]) -> list[dict]:
    return [
        {
            "Date": record.date,
            "Member Name": record.member_name,
            "Amount": record.amount,
        }
        for record in tithe_records(records)
    ]


def summary_rows(
    income_records: Sequence[IncomeRecord],
    expense_records: Sequence[ExpenseRecord],
) -> list[dict]:
    tithes = tithe_records(income_records)
    other_income = [record for record in income_records if record.category != IncomeCategory.TITHE]

    total_income = sum_amounts(other_income)
    total_tithes = sum_amounts(tithes)
    total_expenses = sum_amounts(expense_records)
    return [
        {"Category": "Total Income (Offerings, Donations, etc.)", "Amount": total_income},
        {"Category": "Total Tithes", "Amount": total_tithes},
        {"Category": "Total Combined Income", "Amount": total_income + total_tithes},
        {"Category": "Total Expenses", "Amount": total_expenses},
        {"Category": "Net Balance", "Amount": total_income + total_tithes - total_expenses},
    ]


def generate_flat_report(
    report_type: ReportType,
    period: PeriodType,
    income_records: Sequence[IncomeRecord],
    expense_records: Sequence[ExpenseRecord],
    month: Optional[date] = None,
) -> FlatReport:
    """
    Build a flat report for the requested type and period.

    A summary report always has rows; the other types may come back
    empty, which callers treat as "nothing to export".
    """
    start, end, suffix = report_period(period, month)
    income = filter_by_date_range(income_records, start, end)
    expenses = filter_by_date_range(expense_records, start, end)

    if report_type == "income":
        records = income_rows(income)
    elif report_type == "expenses":
        records = expense_rows(expenses)
    elif report_type == "tithes":
        records = tithe_rows(income)
    elif report_type == "summary":
        records = summary_rows(income, expenses)
    else:
        raise ValueError(f"Unknown report type: {report_type}")

    return FlatReport(
        title=f"{REPORT_NAMES[report_type]} {suffix}",
        report_type=report_type,
        records=records,
    )
