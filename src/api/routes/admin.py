"""Administration routes (account listing, role changes, password resets)."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import get_user_repo
from api.models import AdminUpdateUserRequest, UserResponse
from domain.model.errors import DomainError, NotFoundError, ValidationError
from port.user_repository import UserRepository
from services import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/users", response_model=list[UserResponse])
async def list_users(repo: UserRepository = Depends(get_user_repo)):
    users = repo.list_all()
    if users is None:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch users")
    return [UserResponse.from_domain(u) for u in users]


@router.put("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    request: AdminUpdateUserRequest,
    repo: UserRepository = Depends(get_user_repo),
):
    """Change the role and/or reset the password of an account."""
    try:
        user = auth_service.admin_update_user(repo, user_id, role=request.role, password=request.password)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DomainError:
        logger.exception("Admin user update failed", extra={"userId": user_id})
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update user")

    return UserResponse.from_domain(user)
