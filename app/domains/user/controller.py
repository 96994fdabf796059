"""User profile controller endpoints."""

from fastapi import APIRouter, Depends

from app.core.dependencies import get_current_user
from app.core.permissions import resolve_permissions
from app.schemas.user import UserResponse
from models import User

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get the authenticated user's profile with its roles and effective permissions."""
    return UserResponse(
        id=current_user.id,
        created_at=current_user.created_at,
        updated_at=current_user.updated_at,
        name=current_user.name,
        email=current_user.email,
        is_active=current_user.is_active,
        roles=current_user.role_names,
        permissions=sorted(resolve_permissions(current_user)),
    )
