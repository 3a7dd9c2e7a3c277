"""Tests for the ledger integrity audit."""

from datetime import date

from church_ledger.models.ledger import Account, AccountType, IncomeCategory, LedgerSnapshot, Member
from church_ledger.validation import LedgerIntegrityChecker

from tests.builders import expense_record, income_record


class TestIntegrityChecker:
    """Referential checks over a snapshot."""

    def test_clean_ledger(self, offerings_account, sunday_offerings):
        snapshot = LedgerSnapshot(
            accounts=[offerings_account],
            income_sources=[sunday_offerings],
            income_records=[
                income_record("T-1", date(2024, 1, 7), "10", source=sunday_offerings),
                income_record("TI-1", date(2024, 1, 7), "10", category=IncomeCategory.TITHE, member_name="Jane Doe"),
            ],
            members=[Member(full_name="Jane Doe")],
        )
        report = LedgerIntegrityChecker().check(snapshot)
        assert report.is_clean

    def test_duplicate_account_codes(self):
        accounts = [
            Account(code="4000", name="Offerings", type=AccountType.INCOME),
            Account(code="4000", name="Offerings Copy", type=AccountType.INCOME),
        ]
        report = LedgerIntegrityChecker().check(LedgerSnapshot(accounts=accounts))
        assert [issue.issue_type for issue in report.issues] == ["duplicate_code", "duplicate_code"]

    def test_orphans(self, electricity):
        """Test sources and transactions pointing at missing accounts or sources."""
        snapshot = LedgerSnapshot(
            expense_sources=[electricity],
            expense_records=[
                expense_record("E-1", date(2024, 1, 1), "5", source=electricity),
                expense_record("E-2", date(2024, 1, 1), "5", account_id="gone"),
            ],
        )
        report = LedgerIntegrityChecker().check(snapshot)
        issue_types = sorted(issue.issue_type for issue in report.issues)
        assert issue_types == [
            "orphan_account_reference",
            "orphan_account_reference",
            "orphan_source",
        ]
        assert all(issue.severity == "error" for issue in report.issues)

    def test_missing_source_reference(self, utilities_account, electricity):
        snapshot = LedgerSnapshot(
            accounts=[utilities_account],
            expense_records=[expense_record("E-1", date(2024, 1, 1), "5", source=electricity)],
        )
        report = LedgerIntegrityChecker().check(snapshot)
        assert [issue.issue_type for issue in report.issues] == ["orphan_source_reference"]
        assert report.issues[0].entity_type == "expense_records"

    def test_unknown_tithe_member_is_warning(self):
        snapshot = LedgerSnapshot(
            income_records=[
                income_record("TI-1", date(2024, 1, 7), "10", category=IncomeCategory.TITHE, member_name="jane doe"),
            ],
            members=[Member(full_name="Jane Doe")],
        )
        report = LedgerIntegrityChecker().check(snapshot)
        assert not report.errors
        assert [issue.issue_type for issue in report.warnings] == ["unknown_member"]
