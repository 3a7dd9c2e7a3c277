"""
Data Models Package

This package contains all Pydantic models used in Church Ledger.
All records flowing through the system must conform to these schemas.
"""

from church_ledger.models.ledger import (
    Account,
    AccountType,
    BudgetedSource,
    ExpenseCategory,
    ExpenseRecord,
    ExpenseSource,
    IncomeCategory,
    IncomeRecord,
    IncomeSource,
    LedgerRecord,
    LedgerSnapshot,
    Member,
    UserContext,
    new_record_id,
)
from church_ledger.models.report import (
    AccountActivity,
    AccountActivityLine,
    AccountRow,
    BreakdownItem,
    FinancialSummary,
    FlatReport,
    MonthlyTotal,
    SourceLedger,
    ReportRow,
    SectionHeaderRow,
    SourceRow,
    TitheHistory,
    TransactionLine,
    TransactionTableRow,
)
from church_ledger.models.activity import (
    ActivityAction,
    ActivityEvent,
    ActivitySeverity,
)

__all__ = [
    # Ledger models
    "Account",
    "AccountType",
    "BudgetedSource",
    "ExpenseCategory",
    "ExpenseRecord",
    "ExpenseSource",
    "IncomeCategory",
    "IncomeRecord",
    "IncomeSource",
    "LedgerRecord",
    "LedgerSnapshot",
    "Member",
    "UserContext",
    "new_record_id",
    # Report models
    "AccountActivity",
    "AccountActivityLine",
    "AccountRow",
    "BreakdownItem",
    "FinancialSummary",
    "FlatReport",
    "MonthlyTotal",
    "SourceLedger",
    "ReportRow",
    "SectionHeaderRow",
    "SourceRow",
    "TitheHistory",
    "TransactionLine",
    "TransactionTableRow",
    # Activity models
    "ActivityAction",
    "ActivityEvent",
    "ActivitySeverity",
]
