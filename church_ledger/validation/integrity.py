"""
Ledger Integrity Audit

Deletes never cascade across accounts, and the member/tithe link is a
plain name match, so a ledger can drift into inconsistent states:

- sources whose account was deleted
- transactions pointing at a missing account or source
- two accounts sharing a code
- tithes naming someone who is not (or no longer) a member

IMPORTANT: The audit NEVER fixes anything. It reports issues for the
treasurer to review.
"""

from collections import Counter
from typing import Literal

from pydantic import BaseModel, Field

from church_ledger.models.ledger import LedgerSnapshot
from church_ledger.reports.periods import tithe_records


class IntegrityIssue(BaseModel):
    """A single integrity issue found."""

    entity_type: str = Field(
        ...,
        description="Collection of the offending record (e.g., 'income_sources')"
    )
    entity_id: str = Field(
        ...,
        description="Id of the offending record"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'orphan_source', 'duplicate_code')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: Literal["error", "warning", "info"] = "error"


class IntegrityReport(BaseModel):
    """Outcome of one audit run."""

    issues: list[IntegrityIssue] = Field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.issues

    @property
    def errors(self) -> list[IntegrityIssue]:
        return [issue for issue in self.issues if issue.severity == "error"]

    @property
    def warnings(self) -> list[IntegrityIssue]:
        return [issue for issue in self.issues if issue.severity == "warning"]


class LedgerIntegrityChecker:
    """Runs every referential check over a ledger snapshot."""

    def check(self, snapshot: LedgerSnapshot) -> IntegrityReport:
        issues = []
        issues.extend(self._check_account_codes(snapshot))
        issues.extend(self._check_sources(snapshot))
        issues.extend(self._check_transactions(snapshot))
        issues.extend(self._check_tithe_members(snapshot))
        return IntegrityReport(issues=issues)

    def _check_account_codes(self, snapshot: LedgerSnapshot) -> list[IntegrityIssue]:
        counts = Counter(account.code for account in snapshot.accounts)
        return [
            IntegrityIssue(
                entity_type="accounts",
                entity_id=account.id,
                issue_type="duplicate_code",
                message=f"Account code {account.code} is used by {counts[account.code]} accounts",
            )
            for account in snapshot.accounts
            if counts[account.code] > 1
        ]

    def _check_sources(self, snapshot: LedgerSnapshot) -> list[IntegrityIssue]:
        account_ids = {account.id for account in snapshot.accounts}
        issues = []
        for entity_type, sources in (
            ("income_sources", snapshot.income_sources),
            ("expense_sources", snapshot.expense_sources),
        ):
            for source in sources:
                if source.account_id not in account_ids:
                    issues.append(IntegrityIssue(
                        entity_type=entity_type,
                        entity_id=source.id,
                        issue_type="orphan_source",
                        message=f"Source {source.code} points at missing account {source.account_id}",
                    ))
        return issues

    def _check_transactions(self, snapshot: LedgerSnapshot) -> list[IntegrityIssue]:
        account_ids = {account.id for account in snapshot.accounts}
        issues = []
        for entity_type, records, sources in (
            ("income_records", snapshot.income_records, snapshot.income_sources),
            ("expense_records", snapshot.expense_records, snapshot.expense_sources),
        ):
            source_ids = {source.id for source in sources}
            for record in records:
                if record.account_id and record.account_id not in account_ids:
                    issues.append(IntegrityIssue(
                        entity_type=entity_type,
                        entity_id=record.id,
                        issue_type="orphan_account_reference",
                        message=f"Transaction {record.code} points at missing account {record.account_id}",
                    ))
                if record.source_id and record.source_id not in source_ids:
                    issues.append(IntegrityIssue(
                        entity_type=entity_type,
                        entity_id=record.id,
                        issue_type="orphan_source_reference",
                        message=f"Transaction {record.code} points at missing source {record.source_id}",
                    ))
        return issues

    def _check_tithe_members(self, snapshot: LedgerSnapshot) -> list[IntegrityIssue]:
        member_names = {member.full_name for member in snapshot.members}
        return [
            IntegrityIssue(
                entity_type="income_records",
                entity_id=record.id,
                issue_type="unknown_member",
                message=f"Tithe {record.code} names '{record.member_name}', who is not a member",
                severity="warning",
            )
            for record in tithe_records(snapshot.income_records)
            if record.member_name not in member_names
        ]
