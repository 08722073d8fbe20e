from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """Access level of an account. Changed only through admin routes."""
    USER = 'user'
    ADMIN = 'admin'


class VerificationState(str, Enum):
    """Email verification status of an account.

    LEGACY_UNKNOWN covers records created before verification existed;
    they carry no explicit marker and are allowed to log in.
    """
    VERIFIED = 'verified'
    UNVERIFIED = 'unverified'
    LEGACY_UNKNOWN = 'legacy_unknown'

    @classmethod
    def from_document(cls, doc: dict) -> VerificationState:
        """Read the state from a stored document, including pre-enum boolean flags."""
        raw = doc.get('verification_state')
        if raw in (cls.VERIFIED.value, cls.UNVERIFIED.value):
            return cls(raw)

        legacy_flag = doc.get('email_verified')
        if legacy_flag is True:
            return cls.VERIFIED
        if legacy_flag is False:
            return cls.UNVERIFIED
        return cls.LEGACY_UNKNOWN


@dataclass(frozen=True)
class VerificationToken:
    """Single-use email verification secret with its validity window."""
    value: str
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class UserProfile:
    """Profile fields supplied at registration."""
    email: str
    full_name: str | None = None
    job_title: str | None = None
    organization: str | None = None
    city: str | None = None


@dataclass
class User:
    """Domain model representing a platform account."""
    id: str
    email: str
    registered_at: datetime
    updated_at: datetime
    full_name: str | None = None
    job_title: str | None = None
    organization: str | None = None
    city: str | None = None
    role: Role = Role.USER
    password_hash: str | None = field(default=None, repr=False)
    verification_state: VerificationState = VerificationState.LEGACY_UNKNOWN
    verification_token: str | None = field(default=None, repr=False)
    verification_token_expires_at: datetime | None = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    @property
    def is_verified(self) -> bool:
        return self.verification_state == VerificationState.VERIFIED

    def can_login(self) -> bool:
        """Only an explicit UNVERIFIED state blocks login."""
        return self.verification_state != VerificationState.UNVERIFIED
