"""
Domain Models - Internal business logic models using dataclasses.

Immutable intents are validated on construction so services never persist
half-checked input.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from mdrg.models.api import CasePriority, PaymentStatus


@dataclass(frozen=True)
class TokenClaims:
    """Verified identity claims carried by a bearer token."""

    client_id: str
    email: str
    first_name: str
    last_name: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class RegistrationIntent:
    """New client account before persistence."""

    email: str
    password: str
    first_name: str
    last_name: str
    company_name: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    postcode: str | None = None

    def __post_init__(self) -> None:
        """Validate required registration fields."""
        if not (self.email and self.password and self.first_name and self.last_name):
            raise ValueError("Email, password, first name, and last name are required.")


@dataclass(frozen=True)
class CaseIntent:
    """Debt recovery case before persistence."""

    client_id: str
    debtor_name: str
    amount_owed: Decimal
    currency: str = "GBP"
    priority: CasePriority = CasePriority.MEDIUM
    debtor_company: str | None = None
    debtor_email: str | None = None
    debtor_phone: str | None = None
    debtor_address: str | None = None
    debt_type: str | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        """Validate case constraints."""
        if not self.debtor_name:
            raise ValueError("Debtor name and amount owed are required.")
        if self.amount_owed <= 0:
            raise ValueError(f"Amount owed must be positive: {self.amount_owed}")
        if len(self.currency) != 3:
            raise ValueError(f"Invalid currency code: {self.currency}")


@dataclass(frozen=True)
class PaymentIntent:
    """Payment against a case before persistence."""

    client_id: str
    case_id: str
    amount: Decimal
    status: PaymentStatus = PaymentStatus.COMPLETED
    payment_date: datetime | None = None
    payment_method: str | None = None
    reference: str | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        """Validate payment constraints."""
        if self.amount <= 0:
            raise ValueError(f"Payment amount must be positive: {self.amount}")
