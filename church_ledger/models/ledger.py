"""
Core Ledger Models for Church Ledger

These models define the strict schemas for every record kept in the ledger.
They are designed to:
1. Enforce the ledger invariants at the boundary (positive amounts, budgets >= 0)
2. Provide clear validation error messages for entry forms
3. Be serializable for storage and logging

DESIGN DECISION: Realized amounts are NOT fields on any model.
They are always recomputed from the transaction set for the requested period.
"""

from abc import abstractmethod
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


def new_record_id() -> str:
    """Generate a document identifier for a new record."""
    return uuid4().hex


BudgetAmount = Annotated[Decimal, Field(ge=0)]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountType(str, Enum):
    """
    Chart of accounts families.

    Only INCOME and EXPENSE accounts own sources and receive postings.
    The other three are listed on reports without expansion.
    """
    INCOME = "Income"
    EXPENSE = "Expense"
    ASSETS = "Assets"
    LIABILITY = "Liability"
    BALANCE = "Balance"


class IncomeCategory(str, Enum):
    """Income categories. TITHE records are attributed to a member."""
    OFFERING = "Offering"
    TITHE = "Tithe"
    DONATION = "Donation"
    OTHER = "Other"


class ExpenseCategory(str, Enum):
    """Expense categories."""
    UTILITIES = "Utilities"
    MINISTRY_SUPPLIES = "Ministry Supplies"
    SALARIES_AND_STIPENDS = "Salaries & Stipends"
    RENT_MORTGAGE = "Rent/Mortgage"
    OUTREACH_AND_EVANGELISM = "Outreach & Evangelism"
    MAINTENANCE_AND_REPAIRS = "Maintenance & Repairs"
    ADMINISTRATIVE_COSTS = "Administrative Costs"
    EVENTS_AND_PROGRAMS = "Events & Programs"
    TRANSPORTATION = "Transportation"
    OTHER = "Other"


# =============================================================================
# CHART OF ACCOUNTS
# =============================================================================

class Account(BaseModel):
    """
    Top-level ledger bucket (e.g., "General Offerings").

    Budgets are kept per fiscal year. Deleting an account does not
    cascade: sources and records that point at it become orphans and
    are reported by the integrity audit.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        default_factory=new_record_id,
        description="Document identifier"
    )
    code: str = Field(
        ...,
        min_length=1,
        max_length=20,
        description="Account code, unique within the ledger"
    )
    name: str = Field(
        ...,
        min_length=2,
        max_length=200,
        description="Display name"
    )
    type: AccountType = Field(
        ...,
        description="Account family"
    )
    budgets: dict[int, BudgetAmount] = Field(
        default_factory=dict,
        description="Budget per fiscal year"
    )
    created_at: Optional[datetime] = None
    recorded_by_user_id: Optional[str] = None

    def budget_for(self, year: int) -> Decimal:
        """Budget for a fiscal year, 0 when none was set."""
        return self.budgets.get(year, Decimal("0"))

    @property
    def label(self) -> str:
        return f"{self.code} - {self.name}"


# =============================================================================
# BUDGETED SOURCES
# =============================================================================

class BudgetedSource(BaseModel):
    """
    A budgeted recurring income or expense item under one account.

    Two budget fields coexist: the year map written by the budget
    dialog, and a single legacy value written by older entry forms.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_record_id)
    code: str = Field(..., min_length=1, max_length=20)
    account_id: str = Field(
        ...,
        min_length=1,
        description="Owning account (reference, not ownership)"
    )
    budget: Optional[BudgetAmount] = Field(
        default=None,
        description="Legacy single-year budget"
    )
    budgets: dict[int, BudgetAmount] = Field(default_factory=dict)
    description: Optional[str] = Field(default=None, max_length=1000)
    created_at: Optional[datetime] = None
    recorded_by_user_id: Optional[str] = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Display name of the source."""

    def budget_for(
        self,
        year: int,
        legacy_budget_year: Optional[int] = None,
    ) -> Decimal:
        """
        Resolve the budget for a year.

        Fallback chain: budgets[year] -> legacy budget -> 0.
        When legacy_budget_year is given, the legacy value only
        counts for that year.
        """
        if year in self.budgets:
            return self.budgets[year]
        if self.budget is not None and (
            legacy_budget_year is None or year == legacy_budget_year
        ):
            return self.budget
        return Decimal("0")


class IncomeSource(BudgetedSource):
    """Budgeted income item (e.g., Sunday Offerings)."""

    transaction_name: str = Field(..., min_length=1, max_length=200)
    category: IncomeCategory

    @property
    def name(self) -> str:
        return self.transaction_name


class ExpenseSource(BudgetedSource):
    """Budgeted expense item (e.g., Electricity)."""

    expense_name: str = Field(..., min_length=1, max_length=200)
    category: ExpenseCategory

    @property
    def name(self) -> str:
        return self.expense_name


# =============================================================================
# TRANSACTIONS
# =============================================================================

class LedgerRecord(BaseModel):
    """
    Common shape of income and expense transactions.

    Amount and date are the fields every aggregate depends on.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_record_id)
    code: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Transaction code"
    )
    date: date
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Transaction amount, always positive"
    )
    account_id: Optional[str] = Field(
        default=None,
        description="Owning account, inherited from the source at creation"
    )
    description: Optional[str] = Field(default=None, max_length=1000)
    created_at: Optional[datetime] = None
    recorded_by_user_id: Optional[str] = None

    @property
    @abstractmethod
    def source_id(self) -> Optional[str]:
        """Id of the budgeted source this record belongs to, if any."""

    @property
    @abstractmethod
    def display_name(self) -> str:
        pass

    @property
    @abstractmethod
    def counterpart(self) -> Optional[str]:
        """Member name for income, payee for expenses."""

    @property
    def is_direct_posting(self) -> bool:
        """A posting against an account with no budgeted source."""
        return bool(self.account_id) and not self.source_id


class IncomeRecord(LedgerRecord):
    """An income transaction. Tithes are income with category TITHE."""

    transaction_name: str = Field(..., min_length=1, max_length=200)
    category: IncomeCategory
    income_source_id: Optional[str] = None
    member_name: Optional[str] = Field(
        default=None,
        max_length=200,
        description="Member full name (string join key for tithes)"
    )

    @model_validator(mode='after')
    def require_member_for_tithe(self) -> 'IncomeRecord':
        if self.category == IncomeCategory.TITHE and not self.member_name:
            raise ValueError("Member name is required for tithes.")
        return self

    @property
    def source_id(self) -> Optional[str]:
        return self.income_source_id

    @property
    def display_name(self) -> str:
        return self.transaction_name or f"Income: {self.category.value}"

    @property
    def counterpart(self) -> Optional[str]:
        return self.member_name


class ExpenseRecord(LedgerRecord):
    """An expense transaction."""

    expense_name: Optional[str] = Field(default=None, max_length=200)
    category: ExpenseCategory
    expense_source_id: Optional[str] = None
    payee: Optional[str] = Field(default=None, max_length=200)
    payment_method: Optional[str] = Field(default=None, max_length=50)

    @property
    def source_id(self) -> Optional[str]:
        return self.expense_source_id

    @property
    def display_name(self) -> str:
        return self.expense_name or f"Expense: {self.category.value}"

    @property
    def counterpart(self) -> Optional[str]:
        return self.payee


# =============================================================================
# MEMBERS
# =============================================================================

class Member(BaseModel):
    """
    A church member.

    CAUTION: full_name is matched against IncomeRecord.member_name by
    exact string equality. Renaming a member detaches their history.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_record_id)
    full_name: str = Field(
        ...,
        min_length=2,
        max_length=200,
        description="Full name"
    )
    created_at: Optional[datetime] = None
    recorded_by_user_id: Optional[str] = None


# =============================================================================
# CONTEXT
# =============================================================================

class UserContext(BaseModel):
    """The signed-in user performing a mutation."""

    user_id: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)


class LedgerSnapshot(BaseModel):
    """Every collection, fetched once and handed to the aggregators."""

    accounts: list[Account] = Field(default_factory=list)
    income_sources: list[IncomeSource] = Field(default_factory=list)
    expense_sources: list[ExpenseSource] = Field(default_factory=list)
    income_records: list[IncomeRecord] = Field(default_factory=list)
    expense_records: list[ExpenseRecord] = Field(default_factory=list)
    members: list[Member] = Field(default_factory=list)
