"""In-memory implementation of UserRepository for testing."""

import uuid
from dataclasses import replace
from datetime import datetime, timezone

from domain.model.errors import DuplicateError
from domain.model.user import Role, User, UserProfile, VerificationState, VerificationToken


class FakeUserRepository:
    def __init__(self):
        self.store: dict[str, User] = {}

    # ── write operations ─────────────────────────────────────

    def create(
        self,
        profile: UserProfile,
        password_hash: str,
        verification: VerificationToken,
    ) -> User | None:
        if any(u.email == profile.email for u in self.store.values()):
            raise DuplicateError("Email already registered")

        user_id = uuid.uuid4().hex
        now = datetime.now(timezone.utc)

        user = User(
            id=user_id,
            email=profile.email,
            registered_at=now,
            updated_at=now,
            full_name=profile.full_name,
            job_title=profile.job_title,
            organization=profile.organization,
            city=profile.city,
            role=Role.USER,
            password_hash=password_hash,
            verification_state=VerificationState.UNVERIFIED,
            verification_token=verification.value,
            verification_token_expires_at=verification.expires_at,
        )
        self.store[user_id] = user
        return replace(user)

    def add(self, user: User) -> User:
        """Insert a prepared record as-is (legacy accounts, admins)."""
        self.store[user.id] = user
        return user

    def update_fields(self, user_id: str, fields: dict) -> User | None:
        user = self.store.get(user_id)
        if not user:
            return None

        for key, value in fields.items():
            setattr(user, key, value)
        user.updated_at = datetime.now(timezone.utc)
        return replace(user)

    def set_verification_token(self, user_id: str, token: str, expires_at: datetime) -> bool:
        user = self.store.get(user_id)
        if not user or user.verification_state == VerificationState.VERIFIED:
            return False

        user.verification_state = VerificationState.UNVERIFIED
        user.verification_token = token
        user.verification_token_expires_at = expires_at
        user.updated_at = datetime.now(timezone.utc)
        return True

    def mark_verified(self, user_id: str, token: str) -> bool:
        user = self.store.get(user_id)
        if not user or user.verification_token != token:
            return False

        user.verification_state = VerificationState.VERIFIED
        user.verification_token = None
        user.verification_token_expires_at = None
        user.updated_at = datetime.now(timezone.utc)
        return True

    # ── read operations ──────────────────────────────────────

    def get_by_email(self, email: str) -> User | None:
        for user in self.store.values():
            if user.email == email:
                return replace(user)
        return None

    def get_by_id(self, user_id: str) -> User | None:
        user = self.store.get(user_id)
        return replace(user) if user else None

    def get_by_verification_token(self, token: str) -> User | None:
        for user in self.store.values():
            if user.verification_token is not None and user.verification_token == token:
                return replace(user)
        return None

    def list_all(self) -> list[User] | None:
        return [replace(u) for u in sorted(self.store.values(), key=lambda u: u.registered_at, reverse=True)]
