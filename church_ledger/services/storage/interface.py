"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep Google Sheets as the shared backend the treasurer can open directly
2. Use in-memory storage for testing and offline demos
3. Keep ledger logic decoupled from storage implementation

The six ledger collections have the same lifecycle (add, get, update,
delete, list), so backends implement five generic primitives keyed by
Collection. The typed helpers below build on those primitives and are
shared by every backend.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, Type

from pydantic import BaseModel

from church_ledger.models.ledger import (
    Account,
    ExpenseRecord,
    ExpenseSource,
    IncomeRecord,
    IncomeSource,
    LedgerSnapshot,
    Member,
)
from church_ledger.reports.periods import filter_by_date_range


class Collection(str, Enum):
    """Stored ledger collections."""
    ACCOUNTS = "accounts"
    INCOME_SOURCES = "income_sources"
    EXPENSE_SOURCES = "expense_sources"
    INCOME_RECORDS = "income_records"
    EXPENSE_RECORDS = "expense_records"
    MEMBERS = "members"

    @property
    def model(self) -> Type[BaseModel]:
        return COLLECTION_MODELS[self]


COLLECTION_MODELS: dict[Collection, Type[BaseModel]] = {
    Collection.ACCOUNTS: Account,
    Collection.INCOME_SOURCES: IncomeSource,
    Collection.EXPENSE_SOURCES: ExpenseSource,
    Collection.INCOME_RECORDS: IncomeRecord,
    Collection.EXPENSE_RECORDS: ExpenseRecord,
    Collection.MEMBERS: Member,
}


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Any storage implementation (Google Sheets, in-memory, etc.)
    must implement the five primitives.
    """

    @abstractmethod
    async def add(self, collection: Collection, record: BaseModel) -> bool:
        """
        Insert a new record.

        Args:
            collection: Target collection
            record: Record with its id already assigned

        Returns:
            True if saved successfully

        Raises:
            DuplicateError: If a record with the same id exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get(self, collection: Collection, record_id: str) -> Optional[BaseModel]:
        """
        Retrieve a record by id.

        Returns:
            The record if found, None otherwise
        """
        pass

    @abstractmethod
    async def update(self, collection: Collection, record: BaseModel) -> bool:
        """
        Replace an existing record.

        Raises:
            NotFoundError: If the record doesn't exist
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def delete(self, collection: Collection, record_id: str) -> bool:
        """
        Delete a record by id.

        Returns:
            True if deleted, False if it was not there
        """
        pass

    @abstractmethod
    async def list_all(self, collection: Collection) -> list[BaseModel]:
        """Every record of a collection, in storage order."""
        pass

    # =========================================================================
    # TYPED HELPERS
    # =========================================================================

    async def list_accounts(self) -> list[Account]:
        """Accounts sorted by code."""
        accounts = await self.list_all(Collection.ACCOUNTS)
        return sorted(accounts, key=lambda account: account.code)

    async def list_income_sources(self) -> list[IncomeSource]:
        sources = await self.list_all(Collection.INCOME_SOURCES)
        return sorted(sources, key=lambda source: source.code)

    async def list_expense_sources(self) -> list[ExpenseSource]:
        sources = await self.list_all(Collection.EXPENSE_SOURCES)
        return sorted(sources, key=lambda source: source.code)

    async def list_income_records(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[IncomeRecord]:
        """Income records in range, newest first."""
        records = await self.list_all(Collection.INCOME_RECORDS)
        return _newest_first(filter_by_date_range(records, date_from, date_to))

    async def list_expense_records(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[ExpenseRecord]:
        """Expense records in range, newest first."""
        records = await self.list_all(Collection.EXPENSE_RECORDS)
        return _newest_first(filter_by_date_range(records, date_from, date_to))

    async def list_members(self) -> list[Member]:
        """Members sorted by full name."""
        members = await self.list_all(Collection.MEMBERS)
        return sorted(members, key=lambda member: member.full_name)

    async def set_budget_for_year(
        self,
        account_id: str,
        year: int,
        amount: Decimal,
    ) -> Account:
        """
        Write one year's budget on an account, keeping the other years.

        Raises:
            NotFoundError: If the account doesn't exist
        """
        account = await self.get(Collection.ACCOUNTS, account_id)
        if account is None:
            raise NotFoundError(f"Account not found: {account_id}")

        updated = Account.model_validate({
            **account.model_dump(),
            "budgets": {**account.budgets, year: amount},
        })
        await self.update(Collection.ACCOUNTS, updated)
        return updated

    async def delete_records_for_source(
        self,
        collection: Collection,
        source_id: str,
    ) -> int:
        """
        Delete every transaction attached to a source.

        Returns:
            Number of records deleted
        """
        records = await self.list_all(collection)
        deleted = 0
        for record in records:
            if record.source_id == source_id:
                if await self.delete(collection, record.id):
                    deleted += 1
        return deleted

    async def load_snapshot(self) -> LedgerSnapshot:
        """Fetch every collection once, in the order the reports expect."""
        return LedgerSnapshot(
            accounts=await self.list_accounts(),
            income_sources=await self.list_income_sources(),
            expense_sources=await self.list_expense_sources(),
            income_records=await self.list_income_records(),
            expense_records=await self.list_expense_records(),
            members=await self.list_members(),
        )


def _newest_first(records: list) -> list:
    return sorted(records, key=lambda record: record.date, reverse=True)


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
