"""
Activity Models for Church Ledger

Every mutation of the ledger produces one activity event naming the
user who made it, the collection and record touched, and a plain-English
description (e.g., 'Set budget for year 2024 to 600,000 XAF').

DESIGN DECISION: Events are emitted to the structured application log.
Persisting them to a collection is handled outside this package.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class ActivityAction(str, Enum):
    """Ledger mutations we record."""
    # Transactions
    CREATE_INCOME_RECORD = "CREATE_INCOME_RECORD"
    UPDATE_INCOME_RECORD = "UPDATE_INCOME_RECORD"
    DELETE_INCOME_RECORD = "DELETE_INCOME_RECORD"
    CREATE_EXPENSE_RECORD = "CREATE_EXPENSE_RECORD"
    UPDATE_EXPENSE_RECORD = "UPDATE_EXPENSE_RECORD"
    DELETE_EXPENSE_RECORD = "DELETE_EXPENSE_RECORD"

    # Budgeted sources
    CREATE_INCOME_SOURCE = "CREATE_INCOME_SOURCE"
    UPDATE_INCOME_SOURCE = "UPDATE_INCOME_SOURCE"
    DELETE_INCOME_SOURCE = "DELETE_INCOME_SOURCE"
    CREATE_EXPENSE_SOURCE = "CREATE_EXPENSE_SOURCE"
    UPDATE_EXPENSE_SOURCE = "UPDATE_EXPENSE_SOURCE"
    DELETE_EXPENSE_SOURCE = "DELETE_EXPENSE_SOURCE"

    # Chart of accounts
    CREATE_ACCOUNT = "CREATE_ACCOUNT"
    UPDATE_ACCOUNT = "UPDATE_ACCOUNT"
    DELETE_ACCOUNT = "DELETE_ACCOUNT"
    SET_BUDGET = "SET_BUDGET"

    # Members
    CREATE_MEMBER = "CREATE_MEMBER"
    UPDATE_MEMBER = "UPDATE_MEMBER"
    DELETE_MEMBER = "DELETE_MEMBER"
    DELETE_MEMBER_BLOCKED = "DELETE_MEMBER_BLOCKED"


class ActivitySeverity(str, Enum):
    """Severity level for activity events."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActivityEvent(BaseModel):
    """
    A single activity event.

    This is the core unit of the activity trail.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    user_id: str = Field(..., description="Who performed the action")
    user_email: str = Field(..., description="Email at the time of the action")
    action: ActivityAction
    severity: ActivitySeverity = ActivitySeverity.INFO

    collection_name: Optional[str] = Field(
        default=None,
        description="Collection touched (e.g., 'income_records')"
    )
    record_id: Optional[str] = Field(
        default=None,
        description="Document affected"
    )
    details: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Human-readable description of what happened"
    )
    extra: dict[str, Any] = Field(default_factory=dict)

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "user_id": self.user_id,
            "user_email": self.user_email,
            "action": self.action.value,
            "severity": self.severity.value,
            "collection_name": self.collection_name,
            "record_id": self.record_id,
            "details": self.details,
            "extra": self.extra,
        }
