"""
Dashboard Service - Global counters across all clients.
"""

from decimal import Decimal

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mdrg.db.models import Case, Client, Payment
from mdrg.models.api import CaseStatus, DashboardStats, PaymentStatus


class DashboardService:
    """Read-only aggregate queries."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def stats(self) -> DashboardStats:
        """Client and case totals plus the total collected by completed payments."""
        total_clients = (await self.session.execute(select(func.count(Client.id)))).scalar_one()

        case_stmt = select(
            func.count(Case.id).label("total_cases"),
            func.coalesce(
                func.sum(case((Case.status == CaseStatus.IN_PROGRESS.value, 1), else_=0)), 0
            ).label("active_cases"),
            func.coalesce(
                func.sum(case((Case.status == CaseStatus.PENDING.value, 1), else_=0)), 0
            ).label("pending_cases"),
            func.coalesce(
                func.sum(case((Case.status == CaseStatus.RESOLVED.value, 1), else_=0)), 0
            ).label("resolved_cases"),
        )
        case_row = (await self.session.execute(case_stmt)).one()

        collected_stmt = select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.status == PaymentStatus.COMPLETED.value
        )
        total_collected = (await self.session.execute(collected_stmt)).scalar_one()

        return DashboardStats(
            total_clients=total_clients,
            total_cases=case_row.total_cases,
            active_cases=case_row.active_cases,
            pending_cases=case_row.pending_cases,
            resolved_cases=case_row.resolved_cases,
            total_collected=Decimal(str(total_collected)),
        )
