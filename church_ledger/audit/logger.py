"""
Activity Logger

DESIGN DECISION: Every mutation of the ledger is logged with the user
who made it. This provides:
1. Traceability of who changed which record
2. Debugging capability
3. A recent-activity view for administrators

The activity logger:
- Never raises (a logging problem must not block a ledger write)
- Skips events with no user identity, with a warning
- Keeps a short in-process buffer of recent events for the UI
"""

from collections import deque
from typing import Optional

import structlog
from pydantic import ValidationError

from church_ledger.models.activity import (
    ActivityAction,
    ActivityEvent,
    ActivitySeverity,
)


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class ActivityLogger:
    """
    Central activity logging service.

    Events go to the structured local log and to a bounded
    in-memory buffer (newest last).
    """

    def __init__(self, buffer_size: int = 200):
        self._logger = structlog.get_logger("church_ledger.activity")
        self._recent: deque[ActivityEvent] = deque(maxlen=buffer_size)

    async def log(self, event: ActivityEvent) -> ActivityEvent:
        """Log an activity event and return it."""
        log_dict = event.to_log_dict()

        try:
            if event.severity == ActivitySeverity.ERROR:
                self._logger.error("ledger_activity", **log_dict)
            elif event.severity == ActivitySeverity.WARNING:
                self._logger.warning("ledger_activity", **log_dict)
            else:
                self._logger.info("ledger_activity", **log_dict)
        except Exception as e:
            # Log failure but don't raise
            self._logger.error(
                "activity_log_failed",
                action=event.action.value,
                record_id=event.record_id,
                error=str(e),
            )

        self._recent.append(event)
        return event

    async def record(
        self,
        user_id: Optional[str],
        user_email: Optional[str],
        action: ActivityAction,
        collection_name: Optional[str] = None,
        record_id: Optional[str] = None,
        details: Optional[str] = None,
        severity: ActivitySeverity = ActivitySeverity.INFO,
        **extra,
    ) -> Optional[ActivityEvent]:
        """
        Build and log an event for a ledger mutation.

        Returns None (and logs a warning) when the user identity is missing,
        and None (logging an error) when the event cannot be built.
        """
        if not user_id or not user_email:
            self._logger.warning(
                "activity_skipped_missing_user",
                action=action.value,
                record_id=record_id,
            )
            return None

        try:
            event = ActivityEvent(
                user_id=user_id,
                user_email=user_email,
                action=action,
                severity=severity,
                collection_name=collection_name,
                record_id=record_id,
                details=details[:500] if details else None,
                extra=extra,
            )
        except ValidationError as e:
            self._logger.error(
                "activity_event_invalid",
                action=str(action),
                record_id=record_id,
                error=str(e),
            )
            return None
        return await self.log(event)

    def recent(self, limit: int = 50) -> list[ActivityEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._recent))[:limit]
