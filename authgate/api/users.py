"""User endpoints behind the Access Guard."""

import structlog
from fastapi import APIRouter, Depends

from authgate.api.dependencies import get_current_user, get_user_service, require_roles
from authgate.models.auth import (
    AuthContext,
    UserData,
    UserListData,
    UserListResponse,
    UserResponse,
)
from authgate.models.user import Role, User, UserSummary
from authgate.services.user_service import UserService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1/users", tags=["Users"])

STAFF_ROLES = frozenset({Role.ADMIN, Role.LEAD_GUIDE})


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return the authenticated user."""
    return UserResponse(data=UserData(user=UserSummary.from_user(current_user)))


@router.get("")
async def list_users(
    context: AuthContext = Depends(require_roles(STAFF_ROLES)),
    user_service: UserService = Depends(get_user_service),
) -> UserListResponse:
    """List all users (admin and lead-guide only)."""
    users = await user_service.list_users()
    logger.info("users_listed", requested_by=str(context.user.id), count=len(users))
    return UserListResponse(
        results=len(users),
        data=UserListData(users=[UserSummary.from_user(u) for u in users]),
    )
