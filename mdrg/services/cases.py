"""
Case Service - Debt recovery cases, their payments and per-client statistics.

Ownership is checked by the caller; every query here is already scoped to
the client id it is given.
"""

from decimal import Decimal

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from mdrg.db.models import Case, Payment
from mdrg.exceptions import CaseNotFoundError
from mdrg.models.api import (
    CaseStats,
    CaseStatus,
    ClientStats,
    PaymentStats,
    PaymentStatus,
)
from mdrg.models.domain import CaseIntent, PaymentIntent
from mdrg.services.identifiers import new_case_id, new_payment_id

logger = get_logger(__name__)


def _count_status(status: CaseStatus):
    """SUM(CASE WHEN status = :status THEN 1 ELSE 0 END)."""
    return func.coalesce(func.sum(case((Case.status == status.value, 1), else_=0)), 0)


class CaseService:
    """Case and payment operations on a single database session."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize case service with database session."""
        self.session = session

    async def list_cases(self, client_id: str) -> list[Case]:
        """All cases of a client, newest first."""
        stmt = (
            select(Case)
            .where(Case.client_id == client_id)
            .order_by(Case.created_at.desc(), Case.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create_case(self, intent: CaseIntent) -> Case:
        """Persist a new case for the intent's client."""
        new_case = Case(
            case_id=new_case_id(),
            client_id=intent.client_id,
            debtor_name=intent.debtor_name,
            debtor_company=intent.debtor_company,
            debtor_email=intent.debtor_email,
            debtor_phone=intent.debtor_phone,
            debtor_address=intent.debtor_address,
            amount_owed=intent.amount_owed,
            currency=intent.currency,
            debt_type=intent.debt_type,
            description=intent.description,
            status=CaseStatus.PENDING.value,
            priority=intent.priority.value,
            notes="",
        )
        self.session.add(new_case)
        await self.session.flush()
        await self.session.commit()

        logger.info(
            "case_created",
            client_id=intent.client_id,
            case_id=new_case.case_id,
            amount_owed=str(intent.amount_owed),
            currency=intent.currency,
        )
        return new_case

    async def get_case(self, client_id: str, case_id: str) -> Case:
        """
        Load one of the client's cases.

        Raises:
            CaseNotFoundError: no such case, or it belongs to another client
        """
        stmt = select(Case).where(Case.case_id == case_id, Case.client_id == client_id)
        result = await self.session.execute(stmt)
        found = result.scalar_one_or_none()
        if found is None:
            raise CaseNotFoundError(client_id, case_id)
        return found

    async def list_case_payments(self, case_id: str) -> list[Payment]:
        """Payments recorded against a case, newest first."""
        stmt = (
            select(Payment)
            .where(Payment.case_id == case_id)
            .order_by(Payment.payment_date.desc(), Payment.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_client_payments(self, client_id: str) -> list[Payment]:
        """All payments of a client, newest first."""
        stmt = (
            select(Payment)
            .where(Payment.client_id == client_id)
            .order_by(Payment.payment_date.desc(), Payment.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def record_payment(self, intent: PaymentIntent) -> Payment:
        """
        Record a payment against one of the client's cases.

        The payment's client is always the case's owner.

        Raises:
            CaseNotFoundError: the case doesn't belong to the intent's client
        """
        owning_case = await self.get_case(intent.client_id, intent.case_id)

        payment = Payment(
            payment_id=new_payment_id(),
            case_id=owning_case.case_id,
            client_id=owning_case.client_id,
            amount=intent.amount,
            payment_method=intent.payment_method,
            status=intent.status.value,
            reference=intent.reference,
            notes=intent.notes,
        )
        if intent.payment_date is not None:
            payment.payment_date = intent.payment_date

        self.session.add(payment)
        await self.session.flush()
        await self.session.commit()

        logger.info(
            "payment_recorded",
            client_id=owning_case.client_id,
            case_id=owning_case.case_id,
            payment_id=payment.payment_id,
            amount=str(intent.amount),
            status=intent.status.value,
        )
        return payment

    async def client_stats(self, client_id: str) -> ClientStats:
        """Case counters and completed payment totals for one client."""
        case_stmt = select(
            func.count(Case.id).label("total_cases"),
            _count_status(CaseStatus.PENDING).label("pending_cases"),
            _count_status(CaseStatus.IN_PROGRESS).label("active_cases"),
            _count_status(CaseStatus.RESOLVED).label("resolved_cases"),
            _count_status(CaseStatus.CLOSED).label("closed_cases"),
            func.coalesce(func.sum(Case.amount_owed), 0).label("total_amount_owed"),
        ).where(Case.client_id == client_id)
        case_row = (await self.session.execute(case_stmt)).one()

        payment_stmt = select(
            func.count(Payment.id).label("total_payments"),
            func.coalesce(func.sum(Payment.amount), 0).label("total_collected"),
        ).where(
            Payment.client_id == client_id,
            Payment.status == PaymentStatus.COMPLETED.value,
        )
        payment_row = (await self.session.execute(payment_stmt)).one()

        return ClientStats(
            cases=CaseStats(
                total_cases=case_row.total_cases,
                pending_cases=case_row.pending_cases,
                active_cases=case_row.active_cases,
                resolved_cases=case_row.resolved_cases,
                closed_cases=case_row.closed_cases,
                total_amount_owed=Decimal(str(case_row.total_amount_owed)),
            ),
            payments=PaymentStats(
                total_payments=payment_row.total_payments,
                total_collected=Decimal(str(payment_row.total_collected)),
            ),
        )
