"""User account routes.

Endpoints:
- POST /api/users: Register an account (sends the verification email)
- GET /api/users: List accounts
- GET /api/users/{user_id}: Get one account
- PUT /api/users/{user_id}: Update profile fields and optionally the password
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import get_notification_dispatcher, get_user_repo
from api.models import RegisterRequest, UpdateProfileRequest, UserResponse
from domain.model.errors import DomainError, DuplicateError, NotFoundError, ValidationError
from domain.model.user import UserProfile
from port.user_repository import UserRepository
from services import auth_service
from services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: RegisterRequest,
    repo: UserRepository = Depends(get_user_repo),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """Register a new account in the unverified state.

    The verification email is sent in the background; a delivery failure
    does not fail the request.

    Raises:
        HTTPException: 409 email taken, 400 password rejected, 500 store or hashing failure
    """
    profile = UserProfile(
        email=request.email,
        full_name=request.full_name,
        job_title=request.job_title,
        organization=request.organization,
        city=request.city,
    )
    try:
        user = await auth_service.register(repo, dispatcher, profile, request.password)
    except DuplicateError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DomainError:
        logger.exception("Registration failed", extra={"email": request.email})
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create user")

    return UserResponse.from_domain(user)


@router.get("", response_model=list[UserResponse])
async def list_users(repo: UserRepository = Depends(get_user_repo)):
    """List accounts, most recent first."""
    users = repo.list_all()
    if users is None:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch users")
    return [UserResponse.from_domain(u) for u in users]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, repo: UserRepository = Depends(get_user_repo)):
    """Get one account."""
    user = repo.get_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.from_domain(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    request: UpdateProfileRequest,
    repo: UserRepository = Depends(get_user_repo),
):
    """Update profile fields; a password, when given, is re-hashed.

    Raises:
        HTTPException: 404 unknown user, 400 password rejected, 500 store failure
    """
    changes = request.model_dump(exclude={"password"}, exclude_unset=True)
    try:
        user = auth_service.update_profile(repo, user_id, changes, password=request.password)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DomainError:
        logger.exception("Profile update failed", extra={"userId": user_id})
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update user")

    return UserResponse.from_domain(user)
