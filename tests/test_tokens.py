"""
Tests for the token service.

Covers issue/verify, expiry, tampering and missing claims.
"""

from datetime import UTC, datetime, timedelta

import jwt
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from mdrg.exceptions import InvalidTokenError
from mdrg.services.tokens import TokenService

SECRET = "test-secret-key-for-jwt-signing-min-32-chars"
CLIENT_ID = "MDRG0123456789ABCDEF0123456789ABCDEF"


@pytest.fixture
def service() -> TokenService:
    return TokenService(secret=SECRET)


class TestTokenService:
    """Tests for TokenService."""

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            TokenService(secret="")

    def test_round_trip(self, service: TokenService):
        """A fresh token verifies to the claims it was issued with."""
        token = service.issue_token(CLIENT_ID, "jane@example.com", "Jane", "Doe")
        claims = service.verify_token(token)

        assert claims.client_id == CLIENT_ID
        assert claims.email == "jane@example.com"
        assert claims.first_name == "Jane"
        assert claims.last_name == "Doe"

    def test_expiry_window(self, service: TokenService):
        """Tokens expire 24 hours after issue."""
        token = service.issue_token(CLIENT_ID, "a@b.c", "A", "B")
        claims = service.verify_token(token)
        assert claims.expires_at - claims.issued_at == timedelta(hours=24)

    def test_token_just_inside_window(self, service: TokenService):
        """A token issued 23 hours ago still verifies."""
        issued = datetime.now(UTC) - timedelta(hours=23)
        token = service.issue_token(CLIENT_ID, "a@b.c", "A", "B", issued_at=issued)
        assert service.verify_token(token).client_id == CLIENT_ID

    def test_expired_token(self, service: TokenService):
        """A token issued 25 hours ago no longer verifies."""
        issued = datetime.now(UTC) - timedelta(hours=25)
        token = service.issue_token(CLIENT_ID, "jane@example.com", "Jane", "Doe", issued_at=issued)

        with pytest.raises(InvalidTokenError) as exc_info:
            service.verify_token(token)
        assert exc_info.value.reason == "token has expired"

    def test_tampered_token(self, service: TokenService):
        """Changing the signature invalidates the token."""
        token = service.issue_token(CLIENT_ID, "jane@example.com", "Jane", "Doe")
        header, payload, signature = token.split(".")
        tampered = f"{header}.{payload}.{signature[::-1]}"

        with pytest.raises(InvalidTokenError):
            service.verify_token(tampered)

    def test_wrong_secret(self, service: TokenService):
        other = TokenService(secret="another-secret-key-that-is-long-enough")
        token = other.issue_token(CLIENT_ID, "jane@example.com", "Jane", "Doe")

        with pytest.raises(InvalidTokenError):
            service.verify_token(token)

    def test_garbage_token(self, service: TokenService):
        with pytest.raises(InvalidTokenError):
            service.verify_token("not.a.token")

    def test_missing_client_id_claim(self, service: TokenService):
        now = datetime.now(UTC)
        token = jwt.encode(
            {"email": "jane@example.com", "iat": now, "exp": now + timedelta(hours=1)},
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError):
            service.verify_token(token)

    def test_missing_exp_claim(self, service: TokenService):
        """Tokens without an expiry are never accepted."""
        token = jwt.encode(
            {"client_id": CLIENT_ID, "email": "jane@example.com", "iat": datetime.now(UTC)},
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError):
            service.verify_token(token)

    def test_none_algorithm_rejected(self, service: TokenService):
        now = datetime.now(UTC)
        token = jwt.encode(
            {
                "client_id": CLIENT_ID,
                "email": "jane@example.com",
                "iat": now,
                "exp": now + timedelta(hours=1),
            },
            None,
            algorithm="none",
        )
        with pytest.raises(InvalidTokenError):
            service.verify_token(token)


class TestTokenProperties:
    """Property-based tests for token round trips."""

    @given(
        client_id=st.text(alphabet="ABCDEF0123456789", min_size=1, max_size=32),
        first_name=st.text(min_size=1, max_size=30),
        last_name=st.text(min_size=1, max_size=30),
    )
    @settings(max_examples=25)
    def test_claims_survive_round_trip(self, client_id: str, first_name: str, last_name: str):
        service = TokenService(secret=SECRET)
        token = service.issue_token(f"MDRG{client_id}", "p@example.com", first_name, last_name)
        claims = service.verify_token(token)

        assert claims.client_id == f"MDRG{client_id}"
        assert claims.first_name == first_name
        assert claims.last_name == last_name
