"""
FastAPI Dependencies - Authentication and authorization.

Required auth:
    no token            -> 401
    invalid/expired     -> 403
    account missing     -> 401
    account not active  -> 403

Optional auth resolves to None instead of failing. Admin-shaped routes need
the X-Admin-Key capability; ownership routes need the path client id to match
the authenticated client.
"""

import secrets

import structlog
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from mdrg.config import get_settings
from mdrg.db.models import Client
from mdrg.db.session import get_db
from mdrg.exceptions import InvalidTokenError
from mdrg.models.api import ClientStatus
from mdrg.observability.tracing import tag_current_span
from mdrg.services.accounts import AccountService
from mdrg.services.tokens import TokenService

logger = get_logger(__name__)

# Bearer token scheme; missing header is handled here, not by FastAPI
bearer_scheme = HTTPBearer(auto_error=False)


def get_token_service() -> TokenService:
    """Get token service configured from settings."""
    settings = get_settings()
    return TokenService(
        secret=settings.jwt_secret,
        expire_hours=settings.jwt_expire_hours,
        algorithm=settings.jwt_algorithm,
    )


async def get_current_client(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
) -> Client:
    """
    Resolve the authenticated, active client for this request.

    Raises:
        HTTPException(401): no token, or the token's client no longer exists
        HTTPException(403): token invalid/expired, or account not active

    Returns:
        Client: the authenticated client
    """
    if credentials is None or not credentials.credentials:
        logger.info("auth_no_token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access denied. No token provided.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = token_service.verify_token(credentials.credentials)
    except InvalidTokenError as e:
        logger.info("auth_invalid_token", reason=e.reason)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or expired token.",
        ) from e

    client = await AccountService(db).get_client(claims.client_id)

    if client is None:
        logger.warning("auth_client_not_found", client_id=claims.client_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found.",
        )

    if client.status != ClientStatus.ACTIVE.value:
        logger.warning("auth_client_inactive", client_id=client.client_id, status=client.status)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive or suspended.",
        )

    structlog.contextvars.bind_contextvars(client_id=client.client_id)
    tag_current_span(client_id=client.client_id)
    return client


async def get_optional_client(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
) -> Client | None:
    """
    Optional authentication - returns None when there is no usable token.

    Any verification failure is treated as an anonymous request.
    """
    if credentials is None:
        return None

    try:
        return await get_current_client(credentials, db, token_service)
    except HTTPException:
        return None


def ensure_owner(client: Client, client_id: str) -> None:
    """
    Ownership check: a client may only act on its own resources.

    Raises:
        HTTPException(403): path client id is someone else's
    """
    if client.client_id != client_id:
        logger.warning(
            "ownership_check_failed",
            client_id=client.client_id,
            requested_client_id=client_id,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. You can only access your own account.",
        )


async def require_owner(
    client_id: str,
    client: Client = Depends(get_current_client),
) -> Client:
    """
    Authenticated client that owns the ``client_id`` path parameter.

    Usage:
        @router.get("/{client_id}/cases")
        async def list_cases(client_id: str, client: Client = Depends(require_owner)):
            ...
    """
    ensure_owner(client, client_id)
    return client


def _check_admin_key(provided: str | None) -> bool:
    """Constant-time comparison against the configured admin key."""
    expected = get_settings().admin_api_key
    if not expected or not provided:
        return False
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


async def require_admin(
    x_admin_key: str | None = Header(None, alias="X-Admin-Key"),
) -> None:
    """
    Require the administrative capability.

    Raises:
        HTTPException(401): no admin key supplied
        HTTPException(403): key wrong, or no admin key configured
    """
    if not x_admin_key:
        logger.info("admin_auth_no_key")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Administrative access required.",
        )

    if not _check_admin_key(x_admin_key):
        logger.warning("admin_auth_rejected")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrative access denied.",
        )


async def require_admin_or_owner(
    client_id: str,
    x_admin_key: str | None = Header(None, alias="X-Admin-Key"),
    client: Client | None = Depends(get_optional_client),
) -> None:
    """
    Allow administrators, or the authenticated owner of ``client_id``.

    Raises:
        HTTPException(401): neither an admin key nor a usable token
        HTTPException(403): wrong admin key, or another client's token
    """
    if x_admin_key:
        await require_admin(x_admin_key)
        return

    if client is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access denied. No token provided.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    ensure_owner(client, client_id)
