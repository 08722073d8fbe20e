from datetime import datetime
from typing import Protocol

from domain.model.user import User, UserProfile, VerificationToken


class UserRepository(Protocol):
    """Protocol defining the interface for user data access."""
    def create(
        self,
        profile: UserProfile,
        password_hash: str,
        verification: VerificationToken,
    ) -> User | None:
        """Create an unverified user holding the given token.

        Return User, or None when the write failed. Raise DuplicateError when the email is taken.
        """
        ...

    def get_by_email(self, email: str) -> User | None:
        """Find a user by email (exact match). Return User or None if not found.

        Raise StoreError when the store cannot be read.
        """
        ...

    def get_by_id(self, user_id: str) -> User | None:
        """Find a user by ID. Return User or None if not found."""
        ...

    def get_by_verification_token(self, token: str) -> User | None:
        """Find the user currently holding a verification token. Raise StoreError when the store cannot be read."""
        ...

    def list_all(self) -> list[User] | None:
        """Return all users, most recently registered first. Return None if the store could not be read."""
        ...

    def update_fields(self, user_id: str, fields: dict) -> User | None:
        """Apply a partial update of profile/role/password_hash fields. Return the updated User."""
        ...

    def set_verification_token(self, user_id: str, token: str, expires_at: datetime) -> bool:
        """Store a token + expiry pair and mark the user unverified. Return True if a user was updated."""
        ...

    def mark_verified(self, user_id: str, token: str) -> bool:
        """Mark verified and clear the token, only if the user still holds `token`."""
        ...
