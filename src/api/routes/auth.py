"""Authentication routes (login, email verification, verification resend)."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import get_notification_dispatcher, get_user_repo
from api.models import (
    LoginRequest,
    LoginResponse,
    ResendVerificationRequest,
    SuccessResponse,
    UserResponse,
    VerifyEmailRequest,
)
from domain.model.errors import (
    AccountUnverifiedError,
    HashingError,
    InvalidCredentialsError,
    NotFoundError,
    StoreError,
    TokenExpiredError,
    TokenInvalidError,
)
from port.user_repository import UserRepository
from services import auth_service
from services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest, repo: UserRepository = Depends(get_user_repo)):
    """Check email + password and return the public user record.

    Raises:
        HTTPException: 401 invalid credentials, 403 email not verified, 500 store or hashing failure
    """
    try:
        user = auth_service.authenticate(repo, request.email, request.password)
    except InvalidCredentialsError:
        # Same answer for unknown email and wrong password
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    except AccountUnverifiedError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Email address not verified. Check your inbox or request a new verification email.",
        )
    except (HashingError, StoreError):
        logger.exception("Login failed", extra={"email": request.email})
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")

    return LoginResponse(user=UserResponse.from_domain(user))


@router.post("/verify-email", response_model=SuccessResponse)
async def verify_email(request: VerifyEmailRequest, repo: UserRepository = Depends(get_user_repo)):
    """Consume a verification token.

    Raises:
        HTTPException: 400 with distinct messages for unknown and expired tokens, 500 store failure
    """
    try:
        auth_service.verify_email(repo, request.token)
    except TokenExpiredError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Verification link has expired. Request a new one.",
        )
    except TokenInvalidError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid verification link")
    except StoreError:
        logger.exception("Email verification failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")

    return SuccessResponse(success=True, message="Email address verified")


@router.post("/resend-verification", response_model=SuccessResponse)
async def resend_verification(
    request: ResendVerificationRequest,
    repo: UserRepository = Depends(get_user_repo),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """Issue a new verification token and email it. Earlier links stop working.

    Raises:
        HTTPException: 404 if no account uses this email, 500 store failure
    """
    try:
        await auth_service.resend_verification(repo, dispatcher, request.email)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    except StoreError:
        logger.exception("Verification resend failed", extra={"email": request.email})
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")

    return SuccessResponse(success=True, message="Verification email sent")
