"""
Account Service - Registration, login and profile management for clients.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from mdrg.db.models import Client, utc_now
from mdrg.exceptions import (
    AccountInactiveError,
    AuthenticationError,
    ClientNotFoundError,
    EmailAlreadyRegisteredError,
    ValidationError,
)
from mdrg.models.api import ClientStatus, ProfileUpdateRequest
from mdrg.models.domain import RegistrationIntent
from mdrg.services.identifiers import new_client_id
from mdrg.services.passwords import hash_password, password_needs_rehash, verify_password

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid email or password."

# Verified against when the email is unknown so both failure paths cost the same.
_DUMMY_HASH = hash_password("mdrg-timing-equalizer")

PROFILE_FIELDS = ("first_name", "last_name", "company_name", "phone", "address", "city", "postcode")


class AccountService:
    """Client account operations on a single database session."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize account service with database session."""
        self.session = session

    async def get_client(self, client_id: str) -> Client | None:
        """Load a client by external identifier."""
        stmt = select(Client).where(Client.client_id == client_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_client_by_email(self, email: str) -> Client | None:
        """Load a client by (normalized) email."""
        stmt = select(Client).where(Client.email == email)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def require_client(self, client_id: str) -> Client:
        """Load a client or raise ClientNotFoundError."""
        client = await self.get_client(client_id)
        if client is None:
            raise ClientNotFoundError(client_id)
        return client

    async def list_clients(self) -> list[Client]:
        """All clients, newest first."""
        stmt = select(Client).order_by(Client.created_at.desc(), Client.id.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def register(self, intent: RegistrationIntent) -> Client:
        """
        Create a client account.

        Raises:
            EmailAlreadyRegisteredError: an account already uses this email
        """
        if await self.get_client_by_email(intent.email) is not None:
            raise EmailAlreadyRegisteredError(intent.email)

        client = Client(
            client_id=new_client_id(),
            email=intent.email,
            password_hash=hash_password(intent.password),
            first_name=intent.first_name,
            last_name=intent.last_name,
            company_name=intent.company_name,
            phone=intent.phone,
            address=intent.address,
            city=intent.city,
            postcode=intent.postcode,
            status=ClientStatus.ACTIVE.value,
        )
        self.session.add(client)

        try:
            await self.session.flush()
            await self.session.commit()
        except IntegrityError as e:
            # Concurrent registration of the same email
            await self.session.rollback()
            logger.warning("client_registration_conflict", email=intent.email, error=str(e))
            raise EmailAlreadyRegisteredError(intent.email) from e

        logger.info("client_registered", client_id=client.client_id)
        return client

    async def authenticate(self, email: str, password: str) -> Client:
        """
        Verify credentials and record the login.

        Unknown email and wrong password fail identically.

        Raises:
            AuthenticationError: credentials don't match an account
            AccountInactiveError: credentials match but the account isn't active
        """
        client = await self.get_client_by_email(email)
        if client is None:
            verify_password(password, _DUMMY_HASH)
            logger.info("login_failed", reason="unknown_email")
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not verify_password(password, client.password_hash):
            logger.info("login_failed", reason="bad_password", client_id=client.client_id)
            raise AuthenticationError(INVALID_CREDENTIALS)

        if client.status != ClientStatus.ACTIVE.value:
            logger.warning("login_inactive_account", client_id=client.client_id, status=client.status)
            raise AccountInactiveError(client.client_id, client.status)

        if password_needs_rehash(client.password_hash):
            client.password_hash = hash_password(password)

        client.last_login = utc_now()
        await self.session.commit()

        logger.info("login_succeeded", client_id=client.client_id)
        return client

    async def update_profile(self, client: Client, changes: ProfileUpdateRequest) -> Client:
        """
        Merge a partial profile update.

        Fields left unset keep their stored value; updated_at is always touched.
        """
        touched = []
        for field in PROFILE_FIELDS:
            value = getattr(changes, field)
            if value is not None:
                setattr(client, field, value)
                touched.append(field)

        client.updated_at = utc_now()
        await self.session.commit()

        logger.info("profile_updated", client_id=client.client_id, fields=touched)
        return client

    async def change_password(self, client: Client, current_password: str, new_password: str) -> None:
        """
        Replace the password after verifying the current one.

        Raises:
            AuthenticationError: current password is wrong
        """
        if not verify_password(current_password, client.password_hash):
            logger.info("password_change_rejected", client_id=client.client_id)
            raise AuthenticationError("Current password is incorrect.")

        client.password_hash = hash_password(new_password)
        client.updated_at = utc_now()
        await self.session.commit()

        logger.info("password_changed", client_id=client.client_id)

    async def update_status(self, client_id: str, status: str | None) -> Client:
        """
        Set a client's status.

        Raises:
            ValidationError: status is not active, inactive or suspended
            ClientNotFoundError: no such client
        """
        try:
            new_status = ClientStatus(status)
        except ValueError as e:
            raise ValidationError(
                "Invalid status. Must be active, inactive, or suspended."
            ) from e

        client = await self.require_client(client_id)
        previous = client.status
        client.status = new_status.value
        client.updated_at = utc_now()
        await self.session.commit()

        logger.info(
            "client_status_changed",
            client_id=client_id,
            previous_status=previous,
            status=new_status.value,
        )
        return client
