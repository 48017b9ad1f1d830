"""
Auth routes - Registration, login and profile for client accounts.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from mdrg.api.dependencies import get_current_client, get_token_service
from mdrg.db.models import Client
from mdrg.db.session import get_db
from mdrg.exceptions import AccountInactiveError, AuthenticationError, EmailAlreadyRegisteredError
from mdrg.models.api import (
    ApiResponse,
    AuthData,
    ChangePasswordRequest,
    ClientProfile,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    ProfileUpdateRequest,
    RegisterRequest,
)
from mdrg.models.domain import RegistrationIntent
from mdrg.observability.metrics import metrics
from mdrg.services.accounts import AccountService
from mdrg.services.activity import record_activity
from mdrg.services.tokens import TokenService

logger = get_logger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])

FORGOT_PASSWORD_MESSAGE = (
    "If an account exists with this email, you will receive password reset instructions."
)


def _client_ip(request: Request) -> str | None:
    """Caller address for the activity log."""
    return request.client.host if request.client else None


def _auth_data(client: Client, token: str) -> AuthData:
    return AuthData(
        client_id=client.client_id,
        email=client.email,
        first_name=client.first_name,
        last_name=client.last_name,
        company_name=client.company_name,
        token=token,
    )


@router.post(
    "/register",
    response_model=ApiResponse[AuthData],
    status_code=status.HTTP_201_CREATED,
)
async def register(
    body: RegisterRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
) -> ApiResponse[AuthData]:
    """Register a new client account and return a token."""
    intent = RegistrationIntent(
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        company_name=body.company_name,
        phone=body.phone,
        address=body.address,
        city=body.city,
        postcode=body.postcode,
    )

    try:
        client = await AccountService(db).register(intent)
    except EmailAlreadyRegisteredError as exc:
        metrics.record_auth_event("register", success=False)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists.",
        ) from exc

    metrics.record_auth_event("register", success=True)
    token = token_service.issue_token(
        client.client_id, client.email, client.first_name, client.last_name
    )
    background_tasks.add_task(
        record_activity, client.client_id, "register", "Account registered", _client_ip(request)
    )

    return ApiResponse(message="Registration successful.", data=_auth_data(client, token))


@router.post("/login", response_model=ApiResponse[AuthData])
async def login(
    body: LoginRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
) -> ApiResponse[AuthData]:
    """
    Exchange credentials for a fresh token.

    Unknown email and wrong password return the same 401.
    """
    try:
        client = await AccountService(db).authenticate(body.email, body.password)
    except AuthenticationError as exc:
        metrics.record_auth_event("login", success=False)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
        ) from exc
    except AccountInactiveError as exc:
        metrics.record_auth_event("login", success=False)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive or suspended. Please contact support.",
        ) from exc

    metrics.record_auth_event("login", success=True)
    token = token_service.issue_token(
        client.client_id, client.email, client.first_name, client.last_name
    )
    background_tasks.add_task(
        record_activity, client.client_id, "login", "Logged in", _client_ip(request)
    )

    return ApiResponse(message="Login successful.", data=_auth_data(client, token))


@router.get("/profile", response_model=ApiResponse[ClientProfile])
async def get_profile(
    client: Client = Depends(get_current_client),
) -> ApiResponse[ClientProfile]:
    """Full profile of the authenticated client."""
    return ApiResponse(data=ClientProfile.model_validate(client))


@router.put("/profile", response_model=ApiResponse[ClientProfile])
async def update_profile(
    body: ProfileUpdateRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    client: Client = Depends(get_current_client),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ClientProfile]:
    """Partially update the profile; omitted fields keep their value."""
    updated = await AccountService(db).update_profile(client, body)

    background_tasks.add_task(
        record_activity, client.client_id, "profile_update", "Profile updated", _client_ip(request)
    )

    return ApiResponse(
        message="Profile updated successfully.",
        data=ClientProfile.model_validate(updated),
    )


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    client: Client = Depends(get_current_client),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Change password after verifying the current one."""
    try:
        await AccountService(db).change_password(
            client, body.current_password, body.new_password
        )
    except AuthenticationError as exc:
        metrics.record_auth_event("change_password", success=False)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
        ) from exc

    metrics.record_auth_event("change_password", success=True)
    background_tasks.add_task(
        record_activity, client.client_id, "password_change", "Password changed", _client_ip(request)
    )

    return MessageResponse(message="Password changed successfully.")


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(body: ForgotPasswordRequest) -> MessageResponse:
    """
    Request a password reset.

    The response never reveals whether the email has an account. No reset
    message is delivered.
    """
    logger.info("password_reset_requested")
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    background_tasks: BackgroundTasks,
    client: Client = Depends(get_current_client),
) -> MessageResponse:
    """Stateless logout; the client discards its token."""
    background_tasks.add_task(
        record_activity, client.client_id, "logout", "Logged out", _client_ip(request)
    )
    return MessageResponse(message="Logout successful.")
