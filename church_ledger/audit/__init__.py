"""Activity logging package."""

from church_ledger.audit.logger import ActivityLogger

__all__ = ["ActivityLogger"]
