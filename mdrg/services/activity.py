"""
Activity Service - Append-only audit trail of client actions.

Writes are best-effort: they run after the response in their own session and
a failure is logged and counted, never surfaced to the caller.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from mdrg.db.models import ActivityLog, Client
from mdrg.db.session import get_session
from mdrg.models.api import ActivityItem
from mdrg.observability.metrics import metrics

logger = get_logger(__name__)

RECENT_ACTIVITY_LIMIT = 50


class ActivityService:
    """Activity log reads and writes on a single database session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def record(
        self,
        user_id: str,
        action: str,
        details: str | None = None,
        ip_address: str | None = None,
        user_type: str = "client",
    ) -> ActivityLog:
        """Append one activity entry."""
        entry = ActivityLog(
            user_id=user_id,
            user_type=user_type,
            action=action,
            details=details,
            ip_address=ip_address,
        )
        self.session.add(entry)
        await self.session.flush()
        await self.session.commit()
        return entry

    async def recent(self, limit: int = RECENT_ACTIVITY_LIMIT) -> list[ActivityItem]:
        """Most recent entries, joined with the acting client's name when known."""
        stmt = (
            select(
                ActivityLog.id,
                ActivityLog.user_id,
                ActivityLog.user_type,
                ActivityLog.action,
                ActivityLog.details,
                ActivityLog.ip_address,
                ActivityLog.created_at,
                Client.first_name,
                Client.last_name,
                Client.company_name,
            )
            .outerjoin(Client, ActivityLog.user_id == Client.client_id)
            .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [ActivityItem.model_validate(row) for row in result.all()]


async def record_activity(
    user_id: str,
    action: str,
    details: str | None = None,
    ip_address: str | None = None,
    user_type: str = "client",
) -> None:
    """
    Best-effort activity write, scheduled as a background task.

    Usage:
        background_tasks.add_task(record_activity, client.client_id, "login")
    """
    try:
        async with get_session() as session:
            await ActivityService(session).record(
                user_id=user_id,
                action=action,
                details=details,
                ip_address=ip_address,
                user_type=user_type,
            )
    except Exception as e:
        metrics.record_activity_failure(action)
        logger.warning(
            "activity_log_write_failed",
            user_id=user_id,
            action=action,
            error=str(e),
        )
