"""Tests for the ledger service on in-memory storage."""

from datetime import date
from decimal import Decimal

import pytest

from church_ledger.audit import ActivityLogger
from church_ledger.ledger import (
    DuplicateAccountCodeError,
    LedgerService,
    MemberHasTithesError,
    MissingUserError,
    create_app_components,
)
from church_ledger.models.activity import ActivityAction, ActivitySeverity
from church_ledger.models.ledger import (
    Account,
    AccountType,
    ExpenseCategory,
    ExpenseRecord,
    IncomeCategory,
    IncomeRecord,
    Member,
)
from church_ledger.models.report import AccountRow, SourceRow
from church_ledger.services.storage import Collection, InMemoryLedgerStorage, NotFoundError


@pytest.fixture
def service(app_settings) -> LedgerService:
    return LedgerService(
        storage=InMemoryLedgerStorage(),
        activity_logger=ActivityLogger(),
        settings=app_settings,
    )


def _offering(code: str, on_date: date, amount: str) -> IncomeRecord:
    return IncomeRecord(
        code=code,
        date=on_date,
        amount=Decimal(amount),
        transaction_name="Sunday Offerings",
        category=IncomeCategory.OTHER,
    )


class TestUserRequired:
    """Every mutation needs a signed-in user."""

    @pytest.mark.asyncio
    async def test_mutation_without_user(self, service, offerings_account):
        with pytest.raises(MissingUserError):
            await service.add_account(offerings_account, None)

    @pytest.mark.asyncio
    async def test_nothing_written_without_user(self, service):
        with pytest.raises(MissingUserError):
            await service.add_member(Member(full_name="Jane Doe"), None)
        assert await service.storage.list_members() == []


class TestAccounts:
    """Chart of accounts and budgets."""

    @pytest.mark.asyncio
    async def test_add_account_stamps_user(self, service, offerings_account, treasurer):
        account = await service.add_account(offerings_account, treasurer)
        assert account.recorded_by_user_id == "treasurer-1"
        assert account.created_at is not None

        events = service.activity.recent()
        assert events[0].action == ActivityAction.CREATE_ACCOUNT
        assert events[0].user_email == "treasurer@example.org"

    @pytest.mark.asyncio
    async def test_duplicate_code_rejected(self, service, offerings_account, treasurer):
        await service.add_account(offerings_account, treasurer)
        with pytest.raises(DuplicateAccountCodeError):
            await service.add_account(
                Account(code="4000", name="Another", type=AccountType.INCOME), treasurer,
            )

    @pytest.mark.asyncio
    async def test_set_budget_for_year(self, service, offerings_account, treasurer):
        await service.add_account(offerings_account, treasurer)
        account = await service.set_budget_for_year(offerings_account.id, 2024, Decimal("600000"), treasurer)
        assert account.budget_for(2024) == Decimal("600000")

        event = service.activity.recent()[0]
        assert event.action == ActivityAction.SET_BUDGET
        assert event.details == 'Set budget for year 2024 to 600,000 XAF for account "General Offerings".'

    @pytest.mark.asyncio
    async def test_delete_account_leaves_sources(self, service, offerings_account, sunday_offerings, treasurer):
        """Test that deleting an account does not cascade; the audit reports the orphan."""
        await service.add_account(offerings_account, treasurer)
        await service.add_income_source(sunday_offerings, treasurer)

        assert await service.delete_account(offerings_account.id, treasurer)
        assert len(await service.storage.list_income_sources()) == 1

        report = await service.integrity_report()
        assert [issue.issue_type for issue in report.issues] == ["orphan_source"]


class TestSourcesAndTransactions:
    """Sources, inherited fields and cascades."""

    @pytest.mark.asyncio
    async def test_income_transaction_inherits_from_source(
        self, service, offerings_account, sunday_offerings, treasurer,
    ):
        await service.add_account(offerings_account, treasurer)
        source = await service.add_income_source(sunday_offerings, treasurer)

        record = await service.add_income_transaction(_offering("T-1", date(2024, 3, 1), "50000"), source, treasurer)
        assert record.category == IncomeCategory.OFFERING
        assert record.account_id == offerings_account.id
        assert record.income_source_id == source.id

    @pytest.mark.asyncio
    async def test_expense_transaction_inherits_from_source(
        self, service, utilities_account, electricity, treasurer,
    ):
        await service.add_account(utilities_account, treasurer)
        source = await service.add_expense_source(electricity, treasurer)
        record = ExpenseRecord(
            code="E-1",
            date=date(2024, 3, 2),
            amount=Decimal("30000"),
            category=ExpenseCategory.OTHER,
            payee="ENEO",
        )
        saved = await service.add_expense_transaction(record, source, treasurer)
        assert saved.category == ExpenseCategory.UTILITIES
        assert saved.expense_source_id == source.id
        assert saved.account_id == utilities_account.id

    @pytest.mark.asyncio
    async def test_delete_source_cascades(self, service, offerings_account, sunday_offerings, treasurer):
        await service.add_account(offerings_account, treasurer)
        source = await service.add_income_source(sunday_offerings, treasurer)
        for code in ("T-1", "T-2"):
            await service.add_income_transaction(_offering(code, date(2024, 3, 1), "100"), source, treasurer)
        await service.add_tithe_transaction("Jane Doe", Decimal("10"), date(2024, 3, 3), "TI-1", treasurer)

        assert await service.delete_income_source(source.id, treasurer) == 2
        remaining = await service.storage.list_income_records()
        assert [record.code for record in remaining] == ["TI-1"]

    @pytest.mark.asyncio
    async def test_delete_missing_source(self, service, treasurer):
        with pytest.raises(NotFoundError):
            await service.delete_expense_source("missing", treasurer)

    @pytest.mark.asyncio
    async def test_update_and_delete_transaction(self, service, treasurer):
        record = await service.add_tithe_transaction("Jane Doe", Decimal("10"), date(2024, 3, 3), "TI-1", treasurer)
        updated = record.model_copy(update={"amount": Decimal("15")})
        await service.update_income_transaction(updated, treasurer)
        stored = await service.storage.get(Collection.INCOME_RECORDS, record.id)
        assert stored.amount == Decimal("15")

        assert await service.delete_income_transaction(record.id, treasurer)
        assert not await service.delete_income_transaction(record.id, treasurer)


class TestMembers:
    """The member deletion guard."""

    @pytest.mark.asyncio
    async def test_member_with_tithes_cannot_be_deleted(self, service, treasurer):
        member = await service.add_member(Member(full_name="Jane Doe"), treasurer)
        await service.add_tithe_transaction("Jane Doe", Decimal("10000"), date(2024, 1, 7), "TI-1", treasurer)

        assert not await service.can_delete_member("Jane Doe")
        with pytest.raises(MemberHasTithesError):
            await service.delete_member(member.id, treasurer)

        assert len(await service.storage.list_members()) == 1
        event = service.activity.recent()[0]
        assert event.action == ActivityAction.DELETE_MEMBER_BLOCKED
        assert event.severity == ActivitySeverity.WARNING

    @pytest.mark.asyncio
    async def test_member_without_tithes_is_deleted(self, service, treasurer):
        """Test that non-tithe income or near-miss names do not block deletion."""
        member = await service.add_member(Member(full_name="John Doe"), treasurer)
        await service.add_tithe_transaction("john doe", Decimal("10"), date(2024, 1, 7), "TI-1", treasurer)

        assert await service.can_delete_member("John Doe")
        assert await service.delete_member(member.id, treasurer)
        assert await service.storage.list_members() == []

    @pytest.mark.asyncio
    async def test_delete_missing_member(self, service, treasurer):
        with pytest.raises(NotFoundError):
            await service.delete_member("missing", treasurer)

    @pytest.mark.asyncio
    async def test_rename_with_tithes_logged_as_warning(self, service, treasurer):
        member = await service.add_member(Member(full_name="Jane Doe"), treasurer)
        await service.add_tithe_transaction("Jane Doe", Decimal("10"), date(2024, 1, 7), "TI-1", treasurer)

        await service.update_member(member.model_copy(update={"full_name": "Jane Smith"}), treasurer)
        event = service.activity.recent()[0]
        assert event.action == ActivityAction.UPDATE_MEMBER
        assert event.severity == ActivitySeverity.WARNING


class TestReports:
    """Reports computed from stored data."""

    @pytest.mark.asyncio
    async def test_budget_report_uses_calendar_year(self, service, offerings_account, sunday_offerings, treasurer):
        await service.add_account(offerings_account, treasurer)
        source = await service.add_income_source(sunday_offerings, treasurer)
        await service.add_income_transaction(_offering("T-1", date(2024, 3, 1), "50000"), source, treasurer)
        await service.add_income_transaction(_offering("T-0", date(2023, 12, 31), "70000"), source, treasurer)

        rows = await service.budget_report(2024)
        source_row = [row for row in rows if isinstance(row, SourceRow)][0]
        account_row = [row for row in rows if isinstance(row, AccountRow)][0]
        assert source_row.realized == Decimal("50000")
        assert source_row.percent == 8.33
        assert account_row.realized == Decimal("50000")

    @pytest.mark.asyncio
    async def test_dashboard(self, service, treasurer):
        await service.add_tithe_transaction("Jane Doe", Decimal("10"), date(2024, 2, 4), "TI-1", treasurer)
        summary, monthly, breakdown = await service.dashboard(2024)
        assert summary.total_tithes == Decimal("10")
        assert monthly[1].income == Decimal("10")
        assert breakdown[1].value == Decimal("10")

    @pytest.mark.asyncio
    async def test_source_ledger(self, service, offerings_account, sunday_offerings, treasurer):
        """Test a source's transactions newest first with the all-time total."""
        await service.add_account(offerings_account, treasurer)
        source = await service.add_income_source(sunday_offerings, treasurer)
        await service.add_income_transaction(_offering("T-0", date(2023, 12, 31), "70000"), source, treasurer)
        await service.add_income_transaction(_offering("T-1", date(2024, 3, 1), "50000"), source, treasurer)
        await service.add_tithe_transaction("Jane Doe", Decimal("10"), date(2024, 3, 3), "TI-1", treasurer)

        detail = await service.source_ledger(source.id)
        assert detail.name == "Sunday Offerings"
        assert [record.code for record in detail.records] == ["T-1", "T-0"]
        assert detail.total == Decimal("120000")

    @pytest.mark.asyncio
    async def test_expense_source_ledger(self, service, utilities_account, electricity, treasurer):
        await service.add_account(utilities_account, treasurer)
        source = await service.add_expense_source(electricity, treasurer)
        record = ExpenseRecord(code="E-1", date=date(2024, 3, 2), amount=Decimal("30000"), category="Utilities")
        await service.add_expense_transaction(record, source, treasurer)

        detail = await service.source_ledger(source.id)
        assert detail.code == "EL-01"
        assert detail.total == Decimal("30000")

    @pytest.mark.asyncio
    async def test_source_ledger_missing(self, service):
        with pytest.raises(NotFoundError):
            await service.source_ledger("missing")

    @pytest.mark.asyncio
    async def test_tithe_history(self, service, treasurer):
        """Test that only tithes under the exact full name are listed."""
        member = await service.add_member(Member(full_name="Jane Doe"), treasurer)
        await service.add_tithe_transaction("Jane Doe", Decimal("10000"), date(2024, 1, 7), "TI-1", treasurer)
        await service.add_tithe_transaction("Jane Doe", Decimal("5000"), date(2024, 2, 4), "TI-2", treasurer)
        await service.add_tithe_transaction("jane doe", Decimal("700"), date(2024, 2, 4), "TI-3", treasurer)

        history = await service.tithe_history(member.id)
        assert history.full_name == "Jane Doe"
        assert [record.code for record in history.records] == ["TI-2", "TI-1"]
        assert history.total == Decimal("15000")

    @pytest.mark.asyncio
    async def test_tithe_history_missing_member(self, service):
        with pytest.raises(NotFoundError):
            await service.tithe_history("missing")

    @pytest.mark.asyncio
    async def test_flat_report(self, service, treasurer):
        await service.add_tithe_transaction("Jane Doe", Decimal("10"), date(2024, 2, 4), "TI-1", treasurer)
        report = await service.flat_report("tithes", "monthly", date(2024, 2, 1))
        assert report.title == "Tithe Report for February 2024"
        assert len(report.records) == 1


class TestFactory:
    """Component wiring."""

    def test_in_memory_components(self):
        service, sheets_client = create_app_components(use_storage=False)
        assert sheets_client is None
        assert isinstance(service.storage, InMemoryLedgerStorage)
