"""Ledger validation package."""

from church_ledger.validation.integrity import (
    IntegrityIssue,
    IntegrityReport,
    LedgerIntegrityChecker,
)

__all__ = [
    "IntegrityIssue",
    "IntegrityReport",
    "LedgerIntegrityChecker",
]
