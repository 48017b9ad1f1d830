"""
Exception Classes - Strongly typed exception hierarchy.

Services raise these; routes translate them into HTTP errors.
"""


class RecoveryError(Exception):
    """Base exception for all MDRG errors."""

    pass


class ValidationError(RecoveryError):
    """Raised when input is missing or invalid."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AuthenticationError(RecoveryError):
    """Raised when credentials cannot be verified."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Authentication failed: {message}")


class AuthorizationError(RecoveryError):
    """Raised when a verified identity is not allowed to act."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Authorization failed: {message}")


class AccountInactiveError(AuthorizationError):
    """Raised when an account is inactive or suspended."""

    def __init__(self, client_id: str, status: str) -> None:
        self.client_id = client_id
        self.status = status
        super().__init__(f"Account {client_id} is {status}")


class InvalidTokenError(RecoveryError):
    """Raised when a bearer token is tampered, malformed or expired."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid token: {reason}")


class ConflictError(RecoveryError):
    """Raised when a unique field is already taken."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class EmailAlreadyRegisteredError(ConflictError):
    """Raised when registering an email that already has an account."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"Email already registered: {email}")


class ClientNotFoundError(RecoveryError):
    """Raised when a client account doesn't exist."""

    def __init__(self, client_id: str) -> None:
        self.client_id = client_id
        super().__init__(f"Client not found: {client_id}")


class CaseNotFoundError(RecoveryError):
    """Raised when a case doesn't exist for the given client."""

    def __init__(self, client_id: str, case_id: str) -> None:
        self.client_id = client_id
        self.case_id = case_id
        super().__init__(f"Case {case_id} not found for client {client_id}")
