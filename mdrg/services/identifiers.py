"""
External identifier generation.

Identifiers are a readable prefix plus a random 128-bit UUID in upper-case
hex, so concurrent creations never collide on time.
"""

from uuid import uuid4

CLIENT_PREFIX = "MDRG"
CASE_PREFIX = "CASE"
PAYMENT_PREFIX = "PAY"


def new_identifier(prefix: str) -> str:
    """Generate ``prefix`` followed by 32 upper-case hex characters."""
    return f"{prefix}{uuid4().hex.upper()}"


def new_client_id() -> str:
    """External identifier for a client account."""
    return new_identifier(CLIENT_PREFIX)


def new_case_id() -> str:
    """External identifier for a case."""
    return new_identifier(CASE_PREFIX)


def new_payment_id() -> str:
    """External identifier for a payment."""
    return new_identifier(PAYMENT_PREFIX)
