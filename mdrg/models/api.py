"""
API Models - Pydantic models for request/response validation.

Every response is wrapped in the uniform envelope:
    {"success": bool, "message": str | None, "data": ...}
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator

T = TypeVar("T")

# Amounts are stored as exact decimals and rendered as JSON numbers.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class ClientStatus(str, Enum):
    """Account status enumeration."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class CaseStatus(str, Enum):
    """Case status enumeration."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class CasePriority(str, Enum):
    """Case priority enumeration."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PaymentStatus(str, Enum):
    """Payment status enumeration."""

    COMPLETED = "completed"
    PENDING = "pending"
    FAILED = "failed"
    REFUNDED = "refunded"


# ============================================================================
# Envelopes
# ============================================================================


class ApiResponse(BaseModel, Generic[T]):
    """Uniform success envelope."""

    success: bool = True
    message: str | None = None
    data: T | None = None


class ListResponse(BaseModel, Generic[T]):
    """Uniform envelope for collections."""

    success: bool = True
    message: str | None = None
    count: int = 0
    data: list[T] = Field(default_factory=list)


class MessageResponse(BaseModel):
    """Envelope carrying only a message."""

    success: bool = True
    message: str


# ============================================================================
# Auth Models
# ============================================================================


def _normalize_email(value: str) -> str:
    value = value.strip().lower()
    if "@" not in value:
        raise ValueError("email must be a valid email address")
    return value


class RegisterRequest(BaseModel):
    """POST /api/auth/register request body."""

    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=1024)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    company_name: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)
    address: str | None = Field(None, max_length=500)
    city: str | None = Field(None, max_length=100)
    postcode: str | None = Field(None, max_length=20)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Emails are compared case-insensitively."""
        return _normalize_email(v)


class LoginRequest(BaseModel):
    """POST /api/auth/login request body."""

    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=1024)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Emails are compared case-insensitively."""
        return v.strip().lower()


class ProfileUpdateRequest(BaseModel):
    """PUT /api/auth/profile request body - every field optional."""

    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    company_name: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)
    address: str | None = Field(None, max_length=500)
    city: str | None = Field(None, max_length=100)
    postcode: str | None = Field(None, max_length=20)


class ChangePasswordRequest(BaseModel):
    """PUT /api/auth/change-password request body."""

    current_password: str = Field(..., min_length=1, max_length=1024)
    new_password: str = Field(..., min_length=1, max_length=1024)


class ForgotPasswordRequest(BaseModel):
    """POST /api/auth/forgot-password request body."""

    email: str | None = Field(None, max_length=255)


class AuthData(BaseModel):
    """Account summary returned by register and login."""

    client_id: str
    email: str
    first_name: str
    last_name: str
    company_name: str | None = None
    token: str


# ============================================================================
# Client Models
# ============================================================================


class ClientSummary(BaseModel):
    """Client row in the admin listing."""

    model_config = ConfigDict(from_attributes=True)

    client_id: str
    email: str
    first_name: str
    last_name: str
    company_name: str | None = None
    phone: str | None = None
    status: str
    created_at: datetime
    last_login: datetime | None = None


class ClientProfile(ClientSummary):
    """Full client profile."""

    address: str | None = None
    city: str | None = None
    postcode: str | None = None
    country: str | None = None


class StatusUpdateRequest(BaseModel):
    """PATCH /api/clients/{client_id}/status request body."""

    status: str | None = None


# ============================================================================
# Case Models
# ============================================================================


class CreateCaseRequest(BaseModel):
    """POST /api/clients/{client_id}/cases request body."""

    debtor_name: str = Field(..., min_length=1, max_length=255)
    debtor_company: str | None = Field(None, max_length=255)
    debtor_email: str | None = Field(None, max_length=255)
    debtor_phone: str | None = Field(None, max_length=50)
    debtor_address: str | None = Field(None, max_length=500)
    amount_owed: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    currency: str | None = Field(None, min_length=3, max_length=3)
    debt_type: str | None = Field(None, max_length=100)
    description: str | None = None
    priority: CasePriority | None = None

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str | None) -> str | None:
        """Currency codes are upper-case ISO 4217 letters."""
        if v is None:
            return v
        if not v.isalpha():
            raise ValueError("currency must be a 3-letter code")
        return v.upper()


class CaseCreated(BaseModel):
    """Identifier of a newly created case."""

    case_id: str


class CaseSummary(BaseModel):
    """Case row in the per-client listing."""

    model_config = ConfigDict(from_attributes=True)

    case_id: str
    debtor_name: str
    debtor_company: str | None = None
    amount_owed: Money
    currency: str
    debt_type: str | None = None
    status: str
    priority: str
    created_at: datetime
    updated_at: datetime
    notes: str | None = None


class PaymentItem(BaseModel):
    """Payment row."""

    model_config = ConfigDict(from_attributes=True)

    payment_id: str
    case_id: str
    amount: Money
    payment_date: datetime
    payment_method: str | None = None
    status: str
    reference: str | None = None


class CaseDetail(CaseSummary):
    """Case with debtor contact details and its payments."""

    client_id: str
    debtor_email: str | None = None
    debtor_phone: str | None = None
    debtor_address: str | None = None
    description: str | None = None
    assigned_to: str | None = None
    payments: list[PaymentItem] = Field(default_factory=list)


class RecordPaymentRequest(BaseModel):
    """POST /api/clients/{client_id}/cases/{case_id}/payments request body."""

    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    payment_date: datetime | None = None
    payment_method: str | None = Field(None, max_length=50)
    status: PaymentStatus = PaymentStatus.COMPLETED
    reference: str | None = Field(None, max_length=255)
    notes: str | None = None


class PaymentCreated(BaseModel):
    """Identifier of a newly recorded payment."""

    payment_id: str
    case_id: str


# ============================================================================
# Statistics Models
# ============================================================================


class CaseStats(BaseModel):
    """Case counters for one client."""

    total_cases: int = 0
    pending_cases: int = 0
    active_cases: int = 0
    resolved_cases: int = 0
    closed_cases: int = 0
    total_amount_owed: Money = Decimal("0")


class PaymentStats(BaseModel):
    """Completed payment counters for one client."""

    total_payments: int = 0
    total_collected: Money = Decimal("0")


class ClientStats(BaseModel):
    """GET /api/clients/{client_id}/stats data."""

    cases: CaseStats
    payments: PaymentStats


class DashboardStats(BaseModel):
    """GET /api/dashboard/stats data."""

    total_clients: int = 0
    total_cases: int = 0
    active_cases: int = 0
    pending_cases: int = 0
    resolved_cases: int = 0
    total_collected: Money = Decimal("0")


class ActivityItem(BaseModel):
    """Activity log row joined with the acting client's name."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    user_type: str
    action: str
    details: str | None = None
    ip_address: str | None = None
    created_at: datetime
    first_name: str | None = None
    last_name: str | None = None
    company_name: str | None = None


class HealthData(BaseModel):
    """GET /api/health data."""

    timestamp: str
    version: str
