"""
Client routes - Accounts, cases, payments and per-client statistics.

Case, payment and statistics routes are owner-only. Listing all clients,
status changes and payment recording need the administrative capability.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from mdrg.api.dependencies import require_admin, require_admin_or_owner, require_owner
from mdrg.db.models import Client
from mdrg.db.session import get_db
from mdrg.exceptions import CaseNotFoundError, ClientNotFoundError, ValidationError
from mdrg.models.api import (
    ApiResponse,
    CaseCreated,
    CaseDetail,
    CasePriority,
    CaseSummary,
    ClientProfile,
    ClientStats,
    ClientSummary,
    CreateCaseRequest,
    ListResponse,
    MessageResponse,
    PaymentCreated,
    PaymentItem,
    RecordPaymentRequest,
    StatusUpdateRequest,
)
from mdrg.models.domain import CaseIntent, PaymentIntent
from mdrg.observability.metrics import metrics
from mdrg.observability.tracing import tag_current_span
from mdrg.services.accounts import AccountService
from mdrg.services.activity import record_activity
from mdrg.services.cases import CaseService

logger = get_logger(__name__)
router = APIRouter(prefix="/api/clients", tags=["clients"])

DEFAULT_CURRENCY = "GBP"


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


def _case_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Case not found.")


# ============================================================================
# Admin-facing client management
# ============================================================================


@router.get(
    "",
    response_model=ListResponse[ClientSummary],
    dependencies=[Depends(require_admin)],
)
async def list_clients(
    db: AsyncSession = Depends(get_db),
) -> ListResponse[ClientSummary]:
    """List every client, newest first. Requires admin capability."""
    clients = await AccountService(db).list_clients()
    data = [ClientSummary.model_validate(c) for c in clients]
    return ListResponse(count=len(data), data=data)


@router.get(
    "/{client_id}",
    response_model=ApiResponse[ClientProfile],
    dependencies=[Depends(require_admin_or_owner)],
)
async def get_client(
    client_id: str,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ClientProfile]:
    """Single client profile. Admin capability, or the client itself."""
    client = await AccountService(db).get_client(client_id)
    if client is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found.")
    return ApiResponse(data=ClientProfile.model_validate(client))


@router.patch(
    "/{client_id}/status",
    response_model=MessageResponse,
    dependencies=[Depends(require_admin)],
)
async def update_client_status(
    client_id: str,
    body: StatusUpdateRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Set a client's status. Requires admin capability."""
    try:
        client = await AccountService(db).update_status(client_id, body.status)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message) from exc
    except ClientNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Client not found."
        ) from exc

    background_tasks.add_task(
        record_activity,
        "admin",
        "status_change",
        f"Client {client_id} status set to {client.status}",
        _client_ip(request),
        "admin",
    )

    return MessageResponse(message=f"Client status updated to {client.status}.")


# ============================================================================
# Owner-only cases
# ============================================================================


@router.get("/{client_id}/cases", response_model=ListResponse[CaseSummary])
async def list_cases(
    client_id: str,
    client: Client = Depends(require_owner),
    db: AsyncSession = Depends(get_db),
) -> ListResponse[CaseSummary]:
    """The client's cases, newest first."""
    cases = await CaseService(db).list_cases(client_id)
    data = [CaseSummary.model_validate(c) for c in cases]
    return ListResponse(count=len(data), data=data)


@router.post(
    "/{client_id}/cases",
    response_model=ApiResponse[CaseCreated],
    status_code=status.HTTP_201_CREATED,
)
async def create_case(
    client_id: str,
    body: CreateCaseRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    client: Client = Depends(require_owner),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[CaseCreated]:
    """Open a new case. Currency defaults to GBP and priority to medium."""
    intent = CaseIntent(
        client_id=client_id,
        debtor_name=body.debtor_name,
        amount_owed=body.amount_owed,
        currency=body.currency or DEFAULT_CURRENCY,
        priority=body.priority or CasePriority.MEDIUM,
        debtor_company=body.debtor_company,
        debtor_email=body.debtor_email,
        debtor_phone=body.debtor_phone,
        debtor_address=body.debtor_address,
        debt_type=body.debt_type,
        description=body.description,
    )

    new_case = await CaseService(db).create_case(intent)
    tag_current_span(case_id=new_case.case_id)

    metrics.record_case_created(intent.priority.value, float(intent.amount_owed))
    background_tasks.add_task(
        record_activity,
        client_id,
        "case_created",
        f"Case {new_case.case_id} opened against {intent.debtor_name}",
        _client_ip(request),
    )

    return ApiResponse(
        message="Case created successfully.",
        data=CaseCreated(case_id=new_case.case_id),
    )


@router.get("/{client_id}/cases/{case_id}", response_model=ApiResponse[CaseDetail])
async def get_case(
    client_id: str,
    case_id: str,
    client: Client = Depends(require_owner),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[CaseDetail]:
    """One case with its payments."""
    service = CaseService(db)
    try:
        found = await service.get_case(client_id, case_id)
    except CaseNotFoundError as exc:
        raise _case_not_found() from exc

    payments = await service.list_case_payments(case_id)

    detail = CaseDetail.model_validate(found).model_copy(
        update={"payments": [PaymentItem.model_validate(p) for p in payments]}
    )
    return ApiResponse(data=detail)


# ============================================================================
# Payments
# ============================================================================


@router.get("/{client_id}/payments", response_model=ListResponse[PaymentItem])
async def list_payments(
    client_id: str,
    client: Client = Depends(require_owner),
    db: AsyncSession = Depends(get_db),
) -> ListResponse[PaymentItem]:
    """Every payment recorded for the client, newest first."""
    payments = await CaseService(db).list_client_payments(client_id)
    data = [PaymentItem.model_validate(p) for p in payments]
    return ListResponse(count=len(data), data=data)


@router.post(
    "/{client_id}/cases/{case_id}/payments",
    response_model=ApiResponse[PaymentCreated],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def record_payment(
    client_id: str,
    case_id: str,
    body: RecordPaymentRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[PaymentCreated]:
    """Record a payment against a client's case. Requires admin capability."""
    intent = PaymentIntent(
        client_id=client_id,
        case_id=case_id,
        amount=body.amount,
        status=body.status,
        payment_date=body.payment_date,
        payment_method=body.payment_method,
        reference=body.reference,
        notes=body.notes,
    )

    try:
        payment = await CaseService(db).record_payment(intent)
    except CaseNotFoundError as exc:
        raise _case_not_found() from exc

    metrics.record_payment(payment.status)
    background_tasks.add_task(
        record_activity,
        client_id,
        "payment_recorded",
        f"Payment {payment.payment_id} of {body.amount} recorded on case {case_id}",
        _client_ip(request),
    )

    return ApiResponse(
        message="Payment recorded successfully.",
        data=PaymentCreated(payment_id=payment.payment_id, case_id=payment.case_id),
    )


# ============================================================================
# Statistics
# ============================================================================


@router.get("/{client_id}/stats", response_model=ApiResponse[ClientStats])
async def get_client_stats(
    client_id: str,
    client: Client = Depends(require_owner),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ClientStats]:
    """Case and payment counters for the requesting client only."""
    stats = await CaseService(db).client_stats(client_id)
    return ApiResponse(data=stats)
