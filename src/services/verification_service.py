"""Verification token service — issue, validate and reissue email tokens.

Tokens are 256-bit random values encoded as hex, valid for 24 hours and
stored on the user record. A token is consumed by a successful validation;
an expired token stays on the record until a reissue overwrites it.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from domain.model.errors import NotFoundError, TokenExpiredError, TokenInvalidError
from domain.model.user import VerificationToken
from port.user_repository import UserRepository

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32
TOKEN_TTL = timedelta(hours=24)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # pymongo returns naive datetimes unless the client is tz_aware
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def new_token(now: datetime | None = None) -> VerificationToken:
    """Generate a fresh token and its expiry without persisting it."""
    issued_at = now or utc_now()
    return VerificationToken(
        value=secrets.token_hex(TOKEN_BYTES),
        issued_at=issued_at,
        expires_at=issued_at + TOKEN_TTL,
    )


def issue(repo: UserRepository, user_id: str, now: datetime | None = None) -> VerificationToken:
    """Generate a token for a user and persist it, marking the user unverified.

    Raises:
        NotFoundError: the user does not exist or could not be updated
    """
    token = new_token(now)
    if not repo.set_verification_token(user_id, token.value, token.expires_at):
        raise NotFoundError(f"User {user_id} not found")

    logger.info("Verification token issued", extra={
        "userId": user_id,
        "expiresAt": token.expires_at.isoformat(),
    })
    return token


def validate(repo: UserRepository, token: str, now: datetime | None = None) -> str:
    """Consume a verification token and return the verified user's id.

    Raises:
        TokenInvalidError: no user holds this token (including already consumed tokens)
        TokenExpiredError: the token is known but past its expiry; the record is left unchanged
    """
    if not token:
        raise TokenInvalidError("Invalid verification token")

    user = repo.get_by_verification_token(token)
    if not user or not user.verification_token_expires_at:
        raise TokenInvalidError("Invalid verification token")

    current = now or utc_now()
    if current > _as_utc(user.verification_token_expires_at):
        logger.info("Expired verification token presented", extra={"userId": user.id})
        raise TokenExpiredError(user.id)

    # Conditional on the token still being present; a concurrent reissue wins
    if not repo.mark_verified(user.id, token):
        raise TokenInvalidError("Invalid verification token")

    logger.info("Email verified", extra={"userId": user.id})
    return user.id


def reissue(repo: UserRepository, email: str, now: datetime | None = None) -> VerificationToken:
    """Replace the token of an account with a new one; the previous token stops working.

    Raises:
        NotFoundError: no account with this email
    """
    user = repo.get_by_email(email)
    if not user:
        raise NotFoundError("Account not found")
    return issue(repo, user.id, now)
