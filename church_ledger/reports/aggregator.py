"""
Budget / Actuals Aggregator

Builds the budget-vs-actuals report: accounts grouped by type, each
account followed by its budgeted sources and, under every source with
activity, the transactions that make up its realized total.

DESIGN DECISION: The aggregator is a pure function over already-fetched
collections. Every call is a full recompute; callers re-invoke it when
any collection changes.

SIGN CONVENTION (kept as the ledger has always reported it):
- Income accounts:  realized = sources + direct postings
- Expense accounts: realized = sources - direct postings
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from church_ledger.models.ledger import (
    Account,
    AccountType,
    BudgetedSource,
    ExpenseRecord,
    ExpenseSource,
    IncomeRecord,
    IncomeSource,
    LedgerRecord,
)
from church_ledger.models.report import (
    AccountRow,
    ReportRow,
    SectionHeaderRow,
    SourceRow,
    TransactionLine,
    TransactionTableRow,
)
from church_ledger.reports.formatting import (
    format_currency,
    format_report_date,
    or_placeholder,
)
from church_ledger.reports.periods import (
    ZERO,
    filter_by_date_range,
    percent_of_budget,
    sum_amounts,
)

# Presentation order of the report sections.
SECTION_ORDER = (
    AccountType.BALANCE,
    AccountType.INCOME,
    AccountType.LIABILITY,
    AccountType.ASSETS,
    AccountType.EXPENSE,
)


@dataclass
class _Family:
    """Sources and in-period transactions of one family, indexed for lookup."""

    sign: int
    sources_by_account: dict[str, list[BudgetedSource]] = field(default_factory=dict)
    records_by_source: dict[str, list[LedgerRecord]] = field(default_factory=dict)
    direct_by_account: dict[str, list[LedgerRecord]] = field(default_factory=dict)

    @classmethod
    def index(
        cls,
        sign: int,
        sources: Sequence[BudgetedSource],
        records: Sequence[LedgerRecord],
    ) -> "_Family":
        sources_by_account = defaultdict(list)
        for source in sources:
            sources_by_account[source.account_id].append(source)

        records_by_source = defaultdict(list)
        direct_by_account = defaultdict(list)
        for record in records:
            if record.is_direct_posting:
                direct_by_account[record.account_id].append(record)
            elif record.source_id:
                records_by_source[record.source_id].append(record)

        return cls(
            sign=sign,
            sources_by_account=dict(sources_by_account),
            records_by_source=dict(records_by_source),
            direct_by_account=dict(direct_by_account),
        )


def build_report(
    accounts: Sequence[Account],
    income_sources: Sequence[IncomeSource],
    expense_sources: Sequence[ExpenseSource],
    income_transactions: Sequence[IncomeRecord],
    expense_transactions: Sequence[ExpenseRecord],
    budget_year: int,
    period_start: Optional[date] = None,
    period_end: Optional[date] = None,
    legacy_budget_year: Optional[int] = None,
    currency: str = "XAF",
) -> list[ReportRow]:
    """
    Build the flat, ordered row sequence of the budget/actuals report.

    Args:
        accounts: Chart of accounts, expected pre-sorted by code
        income_sources / expense_sources: Budgeted sources of each family
        income_transactions / expense_transactions: Postings, expected
            pre-sorted (typically newest first)
        budget_year: Year whose budget entries are read
        period_start / period_end: Inclusive bounds on realized postings;
            None leaves that side open
        legacy_budget_year: Only year where a source's legacy single
            budget applies; None applies it to every year
        currency: Currency code for formatted transaction amounts

    Returns:
        Section, account, source and transaction-table rows.
        Empty input gives an empty list.
    """
    families = {
        AccountType.INCOME: _Family.index(
            sign=1,
            sources=income_sources,
            records=filter_by_date_range(income_transactions, period_start, period_end),
        ),
        AccountType.EXPENSE: _Family.index(
            sign=-1,
            sources=expense_sources,
            records=filter_by_date_range(expense_transactions, period_start, period_end),
        ),
    }

    accounts_by_type = defaultdict(list)
    for account in accounts:
        accounts_by_type[account.type].append(account)

    rows: list[ReportRow] = []
    for account_type in SECTION_ORDER:
        group = accounts_by_type.get(account_type)
        if not group:
            continue

        rows.append(SectionHeaderRow(account_type=account_type, title=account_type.value))

        family = families.get(account_type)
        for account in group:
            if family is None:
                # Assets, Liability and Balance have no sources
                rows.append(_account_row(account, budget_year, ZERO))
            else:
                rows.extend(
                    _expand_account(account, family, budget_year, legacy_budget_year, currency)
                )

    return rows


def _expand_account(
    account: Account,
    family: _Family,
    budget_year: int,
    legacy_budget_year: Optional[int],
    currency: str,
) -> list[ReportRow]:
    """Account row followed by its source rows and transaction tables."""
    source_rows: list[ReportRow] = []
    sources_total = ZERO

    for source in family.sources_by_account.get(account.id, []):
        records = family.records_by_source.get(source.id, [])
        realized = sum_amounts(records)
        sources_total += realized

        budget = source.budget_for(budget_year, legacy_budget_year)
        source_rows.append(
            SourceRow(
                source_id=source.id,
                account_id=account.id,
                code=source.code,
                name=source.name,
                type=account.type,
                budget=budget,
                realized=realized,
                percent=percent_of_budget(realized, budget),
            )
        )
        if records:
            source_rows.append(
                TransactionTableRow(
                    source_id=source.id,
                    lines=[_transaction_line(record, currency) for record in records],
                )
            )

    direct = sum_amounts(family.direct_by_account.get(account.id, []))
    realized = sources_total + family.sign * direct

    return [_account_row(account, budget_year, realized), *source_rows]


def _account_row(account: Account, budget_year: int, realized: Decimal) -> AccountRow:
    budget = account.budget_for(budget_year)
    return AccountRow(
        account_id=account.id,
        code=account.code,
        name=account.name,
        type=account.type,
        budget=budget,
        realized=realized,
        percent=percent_of_budget(realized, budget),
    )


def _transaction_line(record: LedgerRecord, currency: str) -> TransactionLine:
    return TransactionLine(
        date=format_report_date(record.date),
        name=record.display_name,
        counterpart=or_placeholder(record.counterpart),
        amount=format_currency(record.amount, currency),
    )
