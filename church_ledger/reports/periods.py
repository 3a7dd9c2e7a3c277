"""
Period Aggregators

The dashboard, account and member pages all need narrow aggregates over
one transaction set. Each one is a single pass built from two contracts:

- filter-by-date-range: inclusive at both ends, either bound optional
- sum-by-group-key: a record missing the key is excluded from every group

Division by a zero budget is defined as 0%, never NaN or infinity.
"""

import calendar
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence, TypeVar, Union

from church_ledger.models.ledger import (
    ExpenseRecord,
    IncomeCategory,
    IncomeRecord,
    LedgerRecord,
)
from church_ledger.models.report import (
    AccountActivity,
    AccountActivityLine,
    BreakdownItem,
    FinancialSummary,
    MonthlyTotal,
)
from church_ledger.reports.formatting import format_report_date

ZERO = Decimal("0")
MONTH_LABELS = [calendar.month_abbr[month] for month in range(1, 13)]

R = TypeVar("R", bound=LedgerRecord)


# =============================================================================
# PRIMITIVES
# =============================================================================

def in_range(value: date, start: Optional[date] = None, end: Optional[date] = None) -> bool:
    """True when start <= value <= end; a missing bound is open."""
    if start is not None and value < start:
        return False
    if end is not None and value > end:
        return False
    return True


def filter_by_date_range(
    records: Iterable[R],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> list[R]:
    """Keep records dated inside [start, end], preserving input order."""
    return [record for record in records if in_range(record.date, start, end)]


def sum_amounts(records: Iterable[LedgerRecord]) -> Decimal:
    return sum((record.amount for record in records), ZERO)


def sum_by_group_key(
    records: Iterable[R],
    key: Union[str, Callable[[R], Optional[str]]],
) -> dict[str, Decimal]:
    """
    Sum amounts per group.

    key is an attribute name or a callable. Records whose key is None
    or empty belong to no group.
    """
    if isinstance(key, str):
        attribute = key

        def key(record):
            return getattr(record, attribute, None)

    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for record in records:
        group = key(record)
        if not group:
            continue
        totals[group] += record.amount
    return dict(totals)


def percent_of_budget(realized: Decimal, budget: Decimal, decimals: int = 2) -> float:
    """realized / budget * 100, or 0 when the budget is not positive."""
    if budget is None or budget <= 0:
        return 0.0
    return float(round(Decimal(realized) / Decimal(budget) * 100, decimals))


def year_bounds(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


# =============================================================================
# DASHBOARD
# =============================================================================

def financial_summary(
    income_records: Sequence[IncomeRecord],
    expense_records: Sequence[ExpenseRecord],
    year: int,
) -> FinancialSummary:
    """Totals for a calendar year plus the figures carried from the year before."""
    year_start, year_end = year_bounds(year)
    prev_start, prev_end = year_bounds(year - 1)

    totals = {category: ZERO for category in IncomeCategory}
    for record in filter_by_date_range(income_records, year_start, year_end):
        totals[record.category] += record.amount

    total_offerings = totals[IncomeCategory.OFFERING]
    total_tithes = totals[IncomeCategory.TITHE]
    other_income = totals[IncomeCategory.DONATION] + totals[IncomeCategory.OTHER]
    total_income = total_offerings + total_tithes + other_income

    total_expenses = sum_amounts(filter_by_date_range(expense_records, year_start, year_end))
    prev_income = sum_amounts(filter_by_date_range(income_records, prev_start, prev_end))
    prev_expenses = sum_amounts(filter_by_date_range(expense_records, prev_start, prev_end))

    if prev_income > 0:
        change: Optional[float] = float(round((total_income - prev_income) / prev_income * 100, 2))
    elif total_income > 0:
        change = None
    else:
        change = 0.0

    return FinancialSummary(
        year=year,
        total_offerings=total_offerings,
        total_tithes=total_tithes,
        other_income=other_income,
        total_income=total_income,
        total_expenses=total_expenses,
        net_balance=total_income - total_expenses,
        prev_year_total_income=prev_income,
        prev_year_total_expenses=prev_expenses,
        balance_brought_forward=prev_income - prev_expenses,
        income_change_percent=change,
    )


def monthly_totals(
    income_records: Sequence[IncomeRecord],
    expense_records: Sequence[ExpenseRecord],
    year: int,
) -> list[MonthlyTotal]:
    """Twelve income/expense buckets, Jan..Dec."""
    buckets = [MonthlyTotal(month=label) for label in MONTH_LABELS]
    year_start, year_end = year_bounds(year)

    for record in filter_by_date_range(income_records, year_start, year_end):
        buckets[record.date.month - 1].income += record.amount
    for record in filter_by_date_range(expense_records, year_start, year_end):
        buckets[record.date.month - 1].expenses += record.amount

    return buckets


def income_breakdown(summary: FinancialSummary) -> list[BreakdownItem]:
    return [
        BreakdownItem(name="Offerings", value=summary.total_offerings),
        BreakdownItem(name="Tithes", value=summary.total_tithes),
        BreakdownItem(name="Other", value=summary.other_income),
    ]


# =============================================================================
# ACCOUNTS, SOURCES, MEMBERS
# =============================================================================

def account_realized_for_year(
    income_records: Sequence[IncomeRecord],
    expense_records: Sequence[ExpenseRecord],
    year: int,
) -> dict[str, Decimal]:
    """
    Realized amount per account id for one calendar year.

    Income and expense postings both add to their account's total;
    an account only ever receives one family.
    """
    year_start, year_end = year_bounds(year)
    in_year = [
        *filter_by_date_range(income_records, year_start, year_end),
        *filter_by_date_range(expense_records, year_start, year_end),
    ]
    return sum_by_group_key(in_year, "account_id")


def account_activity(
    account_id: str,
    income_records: Sequence[IncomeRecord],
    expense_records: Sequence[ExpenseRecord],
    year: int,
) -> AccountActivity:
    """All postings of one account in one year, newest first, with totals."""
    year_start, year_end = year_bounds(year)
    income = [
        record for record in filter_by_date_range(income_records, year_start, year_end)
        if record.account_id == account_id
    ]
    expenses = [
        record for record in filter_by_date_range(expense_records, year_start, year_end)
        if record.account_id == account_id
    ]

    merged = [(record, "Income") for record in income] + [(record, "Expense") for record in expenses]
    merged.sort(key=lambda item: item[0].date, reverse=True)

    total_income = sum_amounts(income)
    total_expenses = sum_amounts(expenses)
    return AccountActivity(
        account_id=account_id,
        year=year,
        lines=[
            AccountActivityLine(
                id=record.id,
                date=format_report_date(record.date),
                description=record.display_name,
                type=kind,
                amount=record.amount,
            )
            for record, kind in merged
        ],
        total_income=total_income,
        total_expenses=total_expenses,
        net_balance=total_income - total_expenses,
    )


def source_realized(
    source_id: str,
    records: Iterable[LedgerRecord],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> Decimal:
    """Realized total of one source; all time unless bounds are given."""
    return sum_amounts(
        record for record in filter_by_date_range(records, start, end)
        if record.source_id == source_id
    )


def source_transactions(source_id: str, records: Iterable[R]) -> list[R]:
    """Transactions of one source, newest first."""
    return sorted(
        (record for record in records if record.source_id == source_id),
        key=lambda record: record.date,
        reverse=True,
    )


def tithe_records(income_records: Iterable[IncomeRecord]) -> list[IncomeRecord]:
    return [record for record in income_records if record.category == IncomeCategory.TITHE]


def member_tithes(full_name: str, income_records: Iterable[IncomeRecord]) -> list[IncomeRecord]:
    """Tithes recorded under this exact full name, newest first."""
    return sorted(
        (record for record in tithe_records(income_records) if record.member_name == full_name),
        key=lambda record: record.date,
        reverse=True,
    )


def member_tithe_totals(income_records: Iterable[IncomeRecord]) -> dict[str, Decimal]:
    """Tithe totals keyed by member full name (exact string match)."""
    return sum_by_group_key(tithe_records(income_records), "member_name")


def member_has_tithes(full_name: str, income_records: Iterable[IncomeRecord]) -> bool:
    return any(record.member_name == full_name for record in tithe_records(income_records))
