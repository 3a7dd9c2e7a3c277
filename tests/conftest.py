"""Shared fixtures: a small ledger with one account per family."""

from datetime import date
from decimal import Decimal

import pytest

from church_ledger.config import AppSettings
from church_ledger.models.ledger import (
    Account,
    AccountType,
    ExpenseCategory,
    ExpenseSource,
    IncomeCategory,
    IncomeSource,
    UserContext,
)


@pytest.fixture
def offerings_account() -> Account:
    return Account(code="4000", name="General Offerings", type=AccountType.INCOME)


@pytest.fixture
def utilities_account() -> Account:
    return Account(code="5000", name="Utilities", type=AccountType.EXPENSE)


@pytest.fixture
def sunday_offerings(offerings_account) -> IncomeSource:
    return IncomeSource(
        code="OFF-01",
        transaction_name="Sunday Offerings",
        category=IncomeCategory.OFFERING,
        account_id=offerings_account.id,
        budgets={2024: Decimal("600000")},
    )


@pytest.fixture
def electricity(utilities_account) -> ExpenseSource:
    return ExpenseSource(
        code="EL-01",
        expense_name="Electricity",
        category=ExpenseCategory.UTILITIES,
        account_id=utilities_account.id,
        budgets={2024: Decimal("240000")},
    )


@pytest.fixture
def treasurer() -> UserContext:
    return UserContext(user_id="treasurer-1", email="treasurer@example.org")


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(currency="XAF", legacy_budget_year=2024, church_name="Grace Chapel")


@pytest.fixture
def march_first() -> date:
    return date(2024, 3, 1)
