"""
Token Service - Signed, time-limited identity tokens (JWT).

Tokens carry the client's identity claims and expire after a fixed window.
There is no refresh and no revocation; a token is valid until it expires.
"""

from datetime import UTC, datetime, timedelta

import jwt
from structlog import get_logger

from mdrg.exceptions import InvalidTokenError
from mdrg.models.domain import TokenClaims

logger = get_logger(__name__)

REQUIRED_CLAIMS = ["client_id", "email", "iat", "exp"]


class TokenService:
    """Issues and verifies bearer tokens."""

    def __init__(self, secret: str, expire_hours: int = 24, algorithm: str = "HS256"):
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self.secret = secret
        self.expire_hours = expire_hours
        self.algorithm = algorithm

    def issue_token(
        self,
        client_id: str,
        email: str,
        first_name: str,
        last_name: str,
        issued_at: datetime | None = None,
    ) -> str:
        """Create a signed token for a client."""
        now = issued_at or datetime.now(UTC)
        payload = {
            "client_id": client_id,
            "email": email,
            "first_name": first_name,
            "last_name": last_name,
            "iat": now,
            "exp": now + timedelta(hours=self.expire_hours),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify_token(self, token: str) -> TokenClaims:
        """
        Verify signature and expiry and return the embedded claims.

        Raises:
            InvalidTokenError: token is malformed, tampered, signed with another
                key, missing a required claim, or expired
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as e:
            logger.info("token_expired")
            raise InvalidTokenError("token has expired") from e
        except jwt.InvalidTokenError as e:
            logger.warning("token_invalid", error=str(e))
            raise InvalidTokenError(str(e)) from e

        try:
            return TokenClaims(
                client_id=str(payload["client_id"]),
                email=str(payload["email"]),
                first_name=str(payload.get("first_name", "")),
                last_name=str(payload.get("last_name", "")),
                issued_at=datetime.fromtimestamp(payload["iat"], UTC),
                expires_at=datetime.fromtimestamp(payload["exp"], UTC),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("token_claims_malformed", error=str(e))
            raise InvalidTokenError("malformed claims") from e
