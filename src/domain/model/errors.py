"""Domain-level exceptions.

Services raise these errors to express business rule violations.
Route handlers catch them and map to appropriate HTTP status codes.
"""


class DomainError(Exception):
    """Base class for all domain errors."""


class NotFoundError(DomainError):
    """Requested entity does not exist."""


class DuplicateError(DomainError):
    """Entity with the same unique key already exists."""


class ValidationError(DomainError):
    """Input violates a business validation rule."""


class HashingError(DomainError):
    """Password hashing or hash verification failed internally."""


class StoreError(DomainError):
    """The user store could not be read. Distinct from "not found"."""


class InvalidCredentialsError(DomainError):
    """Unknown email or wrong password. The message never says which."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class AccountUnverifiedError(DomainError):
    """Credentials are valid but the email address is not verified yet."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__("Email address not verified")


class TokenInvalidError(DomainError):
    """No account holds the given verification token."""


class TokenExpiredError(DomainError):
    """The verification token exists but its validity window has passed."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__("Verification token has expired")
