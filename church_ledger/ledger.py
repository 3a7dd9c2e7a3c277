"""
Ledger Service for Church Ledger

This module ties storage, the activity trail and the report
aggregators together and defines every ledger mutation:
1. Chart of accounts (including per-year budgets)
2. Budgeted income and expense sources
3. Income, expense and tithe transactions
4. Members (with the tithe-history deletion guard)

DESIGN DECISION: The service enforces the boundaries:
- No mutation without a signed-in user
- Every mutation is recorded in the activity trail
- Reports are always recomputed from a fresh snapshot
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import structlog
from pydantic import BaseModel

from church_ledger.audit import ActivityLogger
from church_ledger.config import AppSettings, get_settings
from church_ledger.models.activity import ActivityAction, ActivitySeverity
from church_ledger.models.ledger import (
    Account,
    ExpenseRecord,
    ExpenseSource,
    IncomeCategory,
    IncomeRecord,
    IncomeSource,
    LedgerSnapshot,
    Member,
    UserContext,
)
from church_ledger.models.report import (
    BreakdownItem,
    FinancialSummary,
    FlatReport,
    MonthlyTotal,
    ReportRow,
    SourceLedger,
    TitheHistory,
)
from church_ledger.reports.aggregator import build_report
from church_ledger.reports.flat import PeriodType, ReportType, generate_flat_report
from church_ledger.reports.formatting import format_currency
from church_ledger.reports.periods import (
    financial_summary,
    income_breakdown,
    member_has_tithes,
    member_tithes,
    monthly_totals,
    source_realized,
    source_transactions,
    sum_amounts,
    year_bounds,
)
from church_ledger.services.storage import (
    Collection,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    NotFoundError,
)
from church_ledger.validation import IntegrityReport, LedgerIntegrityChecker

logger = structlog.get_logger("church_ledger.service")


class LedgerError(Exception):
    """Base exception for ledger rule violations."""
    pass


class MissingUserError(LedgerError):
    """A mutation was attempted without a signed-in user."""
    pass


class DuplicateAccountCodeError(LedgerError):
    """Another account already uses this code."""
    pass


class MemberHasTithesError(LedgerError):
    """The member still has tithe records and cannot be deleted."""

    def __init__(self, full_name: str):
        self.full_name = full_name
        super().__init__(
            f'Cannot delete "{full_name}": this member has tithe records. '
            "Delete or reassign their tithes first."
        )


class LedgerService:
    """
    Every ledger read and write goes through here.

    Mutations take the acting user as their last argument and raise
    MissingUserError without one. Storage errors propagate unchanged.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        activity_logger: Optional[ActivityLogger] = None,
        settings: Optional[AppSettings] = None,
        integrity_checker: Optional[LedgerIntegrityChecker] = None,
    ):
        self._storage = storage
        self._activity = activity_logger or ActivityLogger()
        self._settings = settings or get_settings().app
        self._checker = integrity_checker or LedgerIntegrityChecker()

    @property
    def storage(self) -> LedgerStorageInterface:
        return self._storage

    @property
    def activity(self) -> ActivityLogger:
        return self._activity

    @property
    def settings(self) -> AppSettings:
        return self._settings

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _require_user(user: Optional[UserContext]) -> UserContext:
        if user is None or not user.user_id or not user.email:
            raise MissingUserError("A signed-in user is required to change the ledger.")
        return user

    @staticmethod
    def _stamp(record: BaseModel, user: UserContext, **changes) -> BaseModel:
        """Re-validate a record with creation metadata and overrides applied."""
        data = record.model_dump()
        data.update(changes)
        data["recorded_by_user_id"] = user.user_id
        data["created_at"] = data.get("created_at") or datetime.utcnow()
        return type(record).model_validate(data)

    async def _log(
        self,
        user: UserContext,
        action: ActivityAction,
        collection: Collection,
        record_id: str,
        details: str,
        severity: ActivitySeverity = ActivitySeverity.INFO,
    ) -> None:
        await self._activity.record(
            user_id=user.user_id,
            user_email=user.email,
            action=action,
            collection_name=collection.value,
            record_id=record_id,
            details=details,
            severity=severity,
        )

    def _money(self, amount: Decimal) -> str:
        return format_currency(amount, self._settings.currency)

    # =========================================================================
    # ACCOUNTS
    # =========================================================================

    async def add_account(self, account: Account, user: Optional[UserContext]) -> Account:
        """
        Create an account.

        Raises:
            DuplicateAccountCodeError: If another account uses the code
        """
        user = self._require_user(user)
        for existing in await self._storage.list_accounts():
            if existing.code == account.code:
                raise DuplicateAccountCodeError(
                    f"Account code {account.code} is already used by {existing.name}."
                )

        account = self._stamp(account, user)
        await self._storage.add(Collection.ACCOUNTS, account)
        await self._log(
            user, ActivityAction.CREATE_ACCOUNT, Collection.ACCOUNTS, account.id,
            f'Created account {account.code} "{account.name}" ({account.type.value}).',
        )
        return account

    async def update_account(self, account: Account, user: Optional[UserContext]) -> Account:
        user = self._require_user(user)
        for existing in await self._storage.list_accounts():
            if existing.code == account.code and existing.id != account.id:
                raise DuplicateAccountCodeError(
                    f"Account code {account.code} is already used by {existing.name}."
                )

        await self._storage.update(Collection.ACCOUNTS, account)
        await self._log(
            user, ActivityAction.UPDATE_ACCOUNT, Collection.ACCOUNTS, account.id,
            f'Updated account {account.code} "{account.name}".',
        )
        return account

    async def delete_account(self, account_id: str, user: Optional[UserContext]) -> bool:
        """
        Delete an account.

        Sources and transactions that reference it are left in place and
        show up in the integrity report.
        """
        user = self._require_user(user)
        deleted = await self._storage.delete(Collection.ACCOUNTS, account_id)
        if deleted:
            await self._log(
                user, ActivityAction.DELETE_ACCOUNT, Collection.ACCOUNTS, account_id,
                f"Deleted account {account_id}.",
            )
        return deleted

    async def set_budget_for_year(
        self,
        account_id: str,
        year: int,
        amount: Decimal,
        user: Optional[UserContext],
    ) -> Account:
        """Overwrite one year's budget entry, leaving other years intact."""
        user = self._require_user(user)
        account = await self._storage.set_budget_for_year(account_id, year, Decimal(amount))
        await self._log(
            user, ActivityAction.SET_BUDGET, Collection.ACCOUNTS, account_id,
            f'Set budget for year {year} to {self._money(account.budgets[year])} '
            f'for account "{account.name}".',
        )
        return account

    # =========================================================================
    # BUDGETED SOURCES
    # =========================================================================

    async def add_income_source(self, source: IncomeSource, user: Optional[UserContext]) -> IncomeSource:
        user = self._require_user(user)
        source = self._stamp(source, user)
        await self._storage.add(Collection.INCOME_SOURCES, source)
        await self._log(
            user, ActivityAction.CREATE_INCOME_SOURCE, Collection.INCOME_SOURCES, source.id,
            f'Created income source: "{source.name}".',
        )
        return source

    async def update_income_source(self, source: IncomeSource, user: Optional[UserContext]) -> IncomeSource:
        user = self._require_user(user)
        await self._storage.update(Collection.INCOME_SOURCES, source)
        await self._log(
            user, ActivityAction.UPDATE_INCOME_SOURCE, Collection.INCOME_SOURCES, source.id,
            f'Updated income source: "{source.name}".',
        )
        return source

    async def delete_income_source(self, source_id: str, user: Optional[UserContext]) -> int:
        """
        Delete an income source and every transaction recorded against it.

        Returns:
            Number of transactions deleted with the source
        """
        user = self._require_user(user)
        source = await self._storage.get(Collection.INCOME_SOURCES, source_id)
        if source is None:
            raise NotFoundError(f"Income source not found: {source_id}")

        removed = await self._storage.delete_records_for_source(Collection.INCOME_RECORDS, source_id)
        await self._storage.delete(Collection.INCOME_SOURCES, source_id)
        await self._log(
            user, ActivityAction.DELETE_INCOME_SOURCE, Collection.INCOME_SOURCES, source_id,
            f'Deleted income source "{source.name}" and its {removed} transaction(s).',
        )
        return removed

    async def add_expense_source(self, source: ExpenseSource, user: Optional[UserContext]) -> ExpenseSource:
        user = self._require_user(user)
        source = self._stamp(source, user)
        await self._storage.add(Collection.EXPENSE_SOURCES, source)
        await self._log(
            user, ActivityAction.CREATE_EXPENSE_SOURCE, Collection.EXPENSE_SOURCES, source.id,
            f'Created expense source: "{source.name}".',
        )
        return source

    async def update_expense_source(self, source: ExpenseSource, user: Optional[UserContext]) -> ExpenseSource:
        user = self._require_user(user)
        await self._storage.update(Collection.EXPENSE_SOURCES, source)
        await self._log(
            user, ActivityAction.UPDATE_EXPENSE_SOURCE, Collection.EXPENSE_SOURCES, source.id,
            f'Updated expense source: "{source.name}".',
        )
        return source

    async def delete_expense_source(self, source_id: str, user: Optional[UserContext]) -> int:
        """Delete an expense source and its transactions; returns the count removed."""
        user = self._require_user(user)
        source = await self._storage.get(Collection.EXPENSE_SOURCES, source_id)
        if source is None:
            raise NotFoundError(f"Expense source not found: {source_id}")

        removed = await self._storage.delete_records_for_source(Collection.EXPENSE_RECORDS, source_id)
        await self._storage.delete(Collection.EXPENSE_SOURCES, source_id)
        await self._log(
            user, ActivityAction.DELETE_EXPENSE_SOURCE, Collection.EXPENSE_SOURCES, source_id,
            f'Deleted expense source "{source.name}" and its {removed} transaction(s).',
        )
        return removed

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    async def add_income_transaction(
        self,
        record: IncomeRecord,
        source: IncomeSource,
        user: Optional[UserContext],
    ) -> IncomeRecord:
        """Record income against a source; category and account come from the source."""
        user = self._require_user(user)
        record = self._stamp(
            record,
            user,
            category=source.category,
            account_id=source.account_id,
            income_source_id=source.id,
        )
        await self._storage.add(Collection.INCOME_RECORDS, record)
        await self._log(
            user, ActivityAction.CREATE_INCOME_RECORD, Collection.INCOME_RECORDS, record.id,
            f'Recorded {self._money(record.amount)} for "{source.name}".',
        )
        return record

    async def add_tithe_transaction(
        self,
        member_name: str,
        amount: Decimal,
        on_date: date,
        code: str,
        user: Optional[UserContext],
        account_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> IncomeRecord:
        """Record a tithe directly, outside any budgeted source."""
        user = self._require_user(user)
        record = IncomeRecord(
            code=code,
            date=on_date,
            amount=amount,
            transaction_name="Tithe",
            category=IncomeCategory.TITHE,
            member_name=member_name,
            account_id=account_id,
            description=description,
            recorded_by_user_id=user.user_id,
            created_at=datetime.utcnow(),
        )
        await self._storage.add(Collection.INCOME_RECORDS, record)
        await self._log(
            user, ActivityAction.CREATE_INCOME_RECORD, Collection.INCOME_RECORDS, record.id,
            f'Recorded Tithe of {self._money(record.amount)} from member "{member_name}".',
        )
        return record

    async def update_income_transaction(self, record: IncomeRecord, user: Optional[UserContext]) -> IncomeRecord:
        user = self._require_user(user)
        await self._storage.update(Collection.INCOME_RECORDS, record)
        await self._log(
            user, ActivityAction.UPDATE_INCOME_RECORD, Collection.INCOME_RECORDS, record.id,
            f'Updated income transaction {record.code} ({self._money(record.amount)}).',
        )
        return record

    async def delete_income_transaction(self, record_id: str, user: Optional[UserContext]) -> bool:
        user = self._require_user(user)
        deleted = await self._storage.delete(Collection.INCOME_RECORDS, record_id)
        if deleted:
            await self._log(
                user, ActivityAction.DELETE_INCOME_RECORD, Collection.INCOME_RECORDS, record_id,
                f"Deleted income transaction {record_id}.",
            )
        return deleted

    async def add_expense_transaction(
        self,
        record: ExpenseRecord,
        source: ExpenseSource,
        user: Optional[UserContext],
    ) -> ExpenseRecord:
        """Record an expense against a source; category and account come from the source."""
        user = self._require_user(user)
        record = self._stamp(
            record,
            user,
            category=source.category,
            account_id=source.account_id,
            expense_source_id=source.id,
        )
        await self._storage.add(Collection.EXPENSE_RECORDS, record)
        await self._log(
            user, ActivityAction.CREATE_EXPENSE_RECORD, Collection.EXPENSE_RECORDS, record.id,
            f'Recorded {self._money(record.amount)} for "{source.name}".',
        )
        return record

    async def update_expense_transaction(self, record: ExpenseRecord, user: Optional[UserContext]) -> ExpenseRecord:
        user = self._require_user(user)
        await self._storage.update(Collection.EXPENSE_RECORDS, record)
        await self._log(
            user, ActivityAction.UPDATE_EXPENSE_RECORD, Collection.EXPENSE_RECORDS, record.id,
            f'Updated expense transaction {record.code} ({self._money(record.amount)}).',
        )
        return record

    async def delete_expense_transaction(self, record_id: str, user: Optional[UserContext]) -> bool:
        user = self._require_user(user)
        deleted = await self._storage.delete(Collection.EXPENSE_RECORDS, record_id)
        if deleted:
            await self._log(
                user, ActivityAction.DELETE_EXPENSE_RECORD, Collection.EXPENSE_RECORDS, record_id,
                f"Deleted expense transaction {record_id}.",
            )
        return deleted

    # =========================================================================
    # MEMBERS
    # =========================================================================

    async def add_member(self, member: Member, user: Optional[UserContext]) -> Member:
        user = self._require_user(user)
        member = self._stamp(member, user)
        await self._storage.add(Collection.MEMBERS, member)
        await self._log(
            user, ActivityAction.CREATE_MEMBER, Collection.MEMBERS, member.id,
            f'Added member "{member.full_name}".',
        )
        return member

    async def update_member(self, member: Member, user: Optional[UserContext]) -> Member:
        """
        Update a member.

        Tithes are linked by full name, so a rename detaches the member's
        existing tithe history; the event is logged as a warning.
        """
        user = self._require_user(user)
        previous = await self._storage.get(Collection.MEMBERS, member.id)
        if previous is None:
            raise NotFoundError(f"Member not found: {member.id}")

        await self._storage.update(Collection.MEMBERS, member)

        renamed = previous.full_name != member.full_name
        severity = ActivitySeverity.INFO
        details = f'Updated member "{member.full_name}".'
        if renamed and not await self.can_delete_member(previous.full_name):
            severity = ActivitySeverity.WARNING
            details = (
                f'Renamed member "{previous.full_name}" to "{member.full_name}"; '
                "existing tithes keep the old name."
            )
        await self._log(
            user, ActivityAction.UPDATE_MEMBER, Collection.MEMBERS, member.id,
            details, severity=severity,
        )
        return member

    async def can_delete_member(self, full_name: str) -> bool:
        """True when no tithe record carries this exact full name."""
        income = await self._storage.list_income_records()
        return not member_has_tithes(full_name, income)

    async def delete_member(self, member_id: str, user: Optional[UserContext]) -> bool:
        """
        Delete a member who has no tithe history.

        Raises:
            NotFoundError: If the member doesn't exist
            MemberHasTithesError: If any tithe names this member
        """
        user = self._require_user(user)
        member = await self._storage.get(Collection.MEMBERS, member_id)
        if member is None:
            raise NotFoundError(f"Member not found: {member_id}")

        if not await self.can_delete_member(member.full_name):
            await self._log(
                user, ActivityAction.DELETE_MEMBER_BLOCKED, Collection.MEMBERS, member_id,
                f'Refused to delete "{member.full_name}": member has tithe records.',
                severity=ActivitySeverity.WARNING,
            )
            raise MemberHasTithesError(member.full_name)

        deleted = await self._storage.delete(Collection.MEMBERS, member_id)
        await self._log(
            user, ActivityAction.DELETE_MEMBER, Collection.MEMBERS, member_id,
            f'Deleted member "{member.full_name}".',
        )
        return deleted

    # =========================================================================
    # READS & REPORTS
    # =========================================================================

    async def load_snapshot(self) -> LedgerSnapshot:
        return await self._storage.load_snapshot()

    async def budget_report(
        self,
        year: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        snapshot: Optional[LedgerSnapshot] = None,
    ) -> list[ReportRow]:
        """
        Budget/actuals rows for a fiscal year.

        With neither bound given the realized window is the calendar year.
        """
        if start is None and end is None:
            start, end = year_bounds(year)
        snapshot = snapshot or await self.load_snapshot()
        return build_report(
            accounts=snapshot.accounts,
            income_sources=snapshot.income_sources,
            expense_sources=snapshot.expense_sources,
            income_transactions=snapshot.income_records,
            expense_transactions=snapshot.expense_records,
            budget_year=year,
            period_start=start,
            period_end=end,
            legacy_budget_year=self._settings.legacy_budget_year,
            currency=self._settings.currency,
        )

    async def dashboard(
        self,
        year: int,
        snapshot: Optional[LedgerSnapshot] = None,
    ) -> tuple[FinancialSummary, list[MonthlyTotal], list[BreakdownItem]]:
        """Yearly summary, 12-month buckets and income breakdown."""
        snapshot = snapshot or await self.load_snapshot()
        summary = financial_summary(snapshot.income_records, snapshot.expense_records, year)
        monthly = monthly_totals(snapshot.income_records, snapshot.expense_records, year)
        return summary, monthly, income_breakdown(summary)

    async def flat_report(
        self,
        report_type: ReportType,
        period: PeriodType,
        month: Optional[date] = None,
        snapshot: Optional[LedgerSnapshot] = None,
    ) -> FlatReport:
        snapshot = snapshot or await self.load_snapshot()
        return generate_flat_report(
            report_type,
            period,
            snapshot.income_records,
            snapshot.expense_records,
            month=month,
        )

    async def source_ledger(self, source_id: str, snapshot: Optional[LedgerSnapshot] = None) -> SourceLedger:
        """
        One income or expense source with its transactions and all-time total.

        Raises:
            NotFoundError: If no source has this id
        """
        snapshot = snapshot or await self.load_snapshot()
        families = (
            (snapshot.income_sources, snapshot.income_records),
            (snapshot.expense_sources, snapshot.expense_records),
        )
        for sources, records in families:
            source = next((s for s in sources if s.id == source_id), None)
            if source is not None:
                return SourceLedger(
                    source_id=source.id,
                    code=source.code,
                    name=source.name,
                    records=source_transactions(source.id, records),
                    total=source_realized(source.id, records),
                )
        raise NotFoundError(f"Source not found: {source_id}")

    async def tithe_history(self, member_id: str, snapshot: Optional[LedgerSnapshot] = None) -> TitheHistory:
        snapshot = snapshot or await self.load_snapshot()
        member = next((m for m in snapshot.members if m.id == member_id), None)
        if member is None:
            raise NotFoundError(f"Member not found: {member_id}")

        tithes = member_tithes(member.full_name, snapshot.income_records)
        return TitheHistory(
            member_id=member.id,
            full_name=member.full_name,
            records=tithes,
            total=sum_amounts(tithes),
        )

    async def integrity_report(self, snapshot: Optional[LedgerSnapshot] = None) -> IntegrityReport:
        snapshot = snapshot or await self.load_snapshot()
        report = self._checker.check(snapshot)
        if not report.is_clean:
            logger.warning(
                "ledger_integrity_issues",
                errors=len(report.errors),
                warnings=len(report.warnings),
            )
        return report


def create_app_components(
    use_storage: bool = True,
) -> tuple[LedgerService, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to run on in-memory storage.

    Returns:
        (ledger_service, sheets_client)
    """
    sheets_client = None
    storage: LedgerStorageInterface

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            storage = GoogleSheetsLedgerStorage(sheets_client)
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            storage = InMemoryLedgerStorage()
    else:
        storage = InMemoryLedgerStorage()

    return LedgerService(storage=storage), sheets_client
