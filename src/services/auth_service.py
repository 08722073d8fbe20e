"""Auth service — registration, login, email verification and account updates.

Pure business logic with no HTTP dependencies.
Raises domain errors that route handlers map to HTTP status codes.
"""

import logging
from datetime import datetime

from domain.model.errors import (
    AccountUnverifiedError,
    DomainError,
    DuplicateError,
    InvalidCredentialsError,
    NotFoundError,
)
from domain.model.user import Role, User, UserProfile, VerificationState
from port.user_repository import UserRepository
from services import verification_service
from services.credential_service import hash_password, verify_password
from services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ('full_name', 'job_title', 'organization', 'city')


async def register(
    repo: UserRepository,
    dispatcher: NotificationDispatcher,
    profile: UserProfile,
    password: str,
    now: datetime | None = None,
) -> User:
    """Register a new unverified user and send the verification email in the background.

    The email outcome does not affect the result.

    Raises:
        DuplicateError: email already registered, including a concurrent registration caught by the store
        ValidationError: password rejected
        HashingError: password could not be hashed
        DomainError: the user record could not be stored
    """
    if repo.get_by_email(profile.email):
        raise DuplicateError("Email already registered")

    password_hash = hash_password(password)
    token = verification_service.new_token(now)

    user = repo.create(profile=profile, password_hash=password_hash, verification=token)
    if not user:
        raise DomainError("Failed to create user")

    dispatcher.schedule_verification(user.email, user.display_name, token.value)
    logger.info("User registered", extra={"userId": user.id, "email": user.email})
    return user


def authenticate(repo: UserRepository, email: str, password: str) -> User:
    """Authenticate a user by email and password.

    Doesn't reveal whether the email exists. Accounts with no recorded
    verification state (created before verification existed) may log in.

    Raises:
        InvalidCredentialsError: unknown email or wrong password
        AccountUnverifiedError: correct password, email not verified yet
        StoreError: the account lookup failed
    """
    user = repo.get_by_email(email)
    if not user or not verify_password(password, user.password_hash):
        raise InvalidCredentialsError()

    if not user.can_login():
        raise AccountUnverifiedError(user.id)

    logger.info("User logged in", extra={"userId": user.id})
    return user


def verify_email(repo: UserRepository, token: str, now: datetime | None = None) -> str:
    """Consume a verification token. Returns the verified user's id.

    Raises:
        TokenInvalidError: unknown or already used token
        TokenExpiredError: token past its 24h window
        StoreError: the token lookup failed
    """
    return verification_service.validate(repo, token, now)


async def resend_verification(
    repo: UserRepository,
    dispatcher: NotificationDispatcher,
    email: str,
    now: datetime | None = None,
) -> bool:
    """Issue a fresh verification token and email it.

    Returns False without doing anything when the account is already
    verified, True when a new token was issued.

    Raises:
        NotFoundError: no account with this email
        StoreError: the account lookup failed
    """
    user = repo.get_by_email(email)
    if not user:
        raise NotFoundError("Account not found")

    if user.verification_state == VerificationState.VERIFIED:
        logger.info("Resend requested for verified account, ignoring", extra={"userId": user.id})
        return False

    token = verification_service.issue(repo, user.id, now)
    dispatcher.schedule_resend(user.email, user.display_name, token.value)
    return True


def _apply_update(repo: UserRepository, user_id: str, fields: dict) -> User:
    if not repo.get_by_id(user_id):
        raise NotFoundError("User not found")
    if not fields:
        return repo.get_by_id(user_id)

    user = repo.update_fields(user_id, fields)
    if not user:
        raise DomainError("Failed to update user")
    return user


def update_profile(
    repo: UserRepository,
    user_id: str,
    changes: dict,
    password: str | None = None,
) -> User:
    """Partially update profile fields and optionally the password.

    Unknown keys in `changes` are ignored; None values are skipped.
    """
    fields = {k: v for k, v in changes.items() if k in PROFILE_FIELDS and v is not None}
    if password:
        fields['password_hash'] = hash_password(password)

    user = _apply_update(repo, user_id, fields)
    logger.info("User profile updated", extra={"userId": user_id, "fields": sorted(fields)})
    return user


def admin_update_user(
    repo: UserRepository,
    user_id: str,
    role: Role | None = None,
    password: str | None = None,
) -> User:
    """Change the role and/or reset the password of any account."""
    fields: dict = {}
    if role is not None:
        fields['role'] = Role(role)
    if password:
        fields['password_hash'] = hash_password(password)

    user = _apply_update(repo, user_id, fields)
    logger.info("User updated by admin", extra={"userId": user_id, "fields": sorted(fields)})
    return user
