"""Record builders shared by the test modules."""

from decimal import Decimal

from church_ledger.models.ledger import (
    ExpenseCategory,
    ExpenseRecord,
    IncomeCategory,
    IncomeRecord,
)


def income_record(code, on_date, amount, source=None, account_id=None, category=IncomeCategory.OFFERING,
                  member_name=None, name="Sunday Offerings"):
    return IncomeRecord(
        code=code,
        date=on_date,
        amount=Decimal(amount),
        transaction_name=name,
        category=category,
        income_source_id=source.id if source else None,
        account_id=source.account_id if source else account_id,
        member_name=member_name,
    )


def expense_record(code, on_date, amount, source=None, account_id=None, category=ExpenseCategory.UTILITIES,
                   payee=None, name=None):
    return ExpenseRecord(
        code=code,
        date=on_date,
        amount=Decimal(amount),
        expense_name=name,
        category=category,
        expense_source_id=source.id if source else None,
        account_id=source.account_id if source else account_id,
        payee=payee,
    )
