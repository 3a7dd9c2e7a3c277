"""
Report Models for Church Ledger

The budget-vs-actuals report is a FLAT, ordered sequence of typed rows
rather than a tree. Two renderers consume it (spreadsheet flattening and
paginated PDF drawing) without re-deriving the hierarchy:

    section header
      account row
        source row
          transaction sub-table
"""

from decimal import Decimal
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from church_ledger.models.ledger import AccountType, IncomeRecord, LedgerRecord


# =============================================================================
# BUDGET / ACTUALS ROWS
# =============================================================================

class SectionHeaderRow(BaseModel):
    """Opens the group of accounts of one type."""

    kind: Literal["section"] = "section"
    account_type: AccountType
    title: str


class AccountRow(BaseModel):
    """Budget, realized and percent-realized for one account."""

    kind: Literal["account"] = "account"
    level: int = 0
    account_id: str
    code: str
    name: str
    type: AccountType
    budget: Decimal
    realized: Decimal
    percent: float


class SourceRow(BaseModel):
    """Same shape as AccountRow, one level deeper."""

    kind: Literal["source"] = "source"
    level: int = 1
    source_id: str
    account_id: str
    code: str
    name: str
    type: AccountType
    budget: Decimal
    realized: Decimal
    percent: float


class TransactionLine(BaseModel):
    """One already-formatted line of a transaction sub-table."""

    date: str
    name: str
    counterpart: str
    amount: str


class TransactionTableRow(BaseModel):
    """Transactions counted toward a source's realized total."""

    kind: Literal["transactions"] = "transactions"
    level: int = 2
    source_id: str
    lines: list[TransactionLine] = Field(default_factory=list)


ReportRow = Annotated[
    Union[SectionHeaderRow, AccountRow, SourceRow, TransactionTableRow],
    Field(discriminator="kind"),
]


# =============================================================================
# DASHBOARD / PERIOD SUMMARIES
# =============================================================================

class FinancialSummary(BaseModel):
    """Yearly dashboard figures."""

    year: int
    total_offerings: Decimal = Decimal("0")
    total_tithes: Decimal = Decimal("0")
    other_income: Decimal = Decimal("0")
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    net_balance: Decimal = Decimal("0")
    prev_year_total_income: Decimal = Decimal("0")
    prev_year_total_expenses: Decimal = Decimal("0")
    balance_brought_forward: Decimal = Decimal("0")
    # None when last year had no income but this year has some
    income_change_percent: Optional[float] = 0.0


class MonthlyTotal(BaseModel):
    """One bar group of the 12-month chart."""

    month: str
    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")


class BreakdownItem(BaseModel):
    name: str
    value: Decimal


class AccountActivityLine(BaseModel):
    """Income or expense line on an account's detail page."""

    id: str
    date: str
    description: str
    type: Literal["Income", "Expense"]
    amount: Decimal


class AccountActivity(BaseModel):
    """Merged transactions of one account for one year."""

    account_id: str
    year: int
    lines: list[AccountActivityLine] = Field(default_factory=list)
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    net_balance: Decimal = Decimal("0")


class FlatReport(BaseModel):
    """A titled list of flat records ready for spreadsheet or PDF export."""

    title: str
    report_type: Literal["income", "expenses", "tithes", "summary"]
    records: list[dict] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.records


class SourceLedger(BaseModel):
    """Transactions of one budgeted source, newest first, with the all-time total."""

    source_id: str
    code: str
    name: str
    records: list[LedgerRecord] = Field(default_factory=list)
    total: Decimal = Decimal("0")


class TitheHistory(BaseModel):
    """A member's tithes, newest first."""

    member_id: str
    full_name: str
    records: list[IncomeRecord] = Field(default_factory=list)
    total: Decimal = Decimal("0")
