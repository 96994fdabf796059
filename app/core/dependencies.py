# app/core/dependencies.py
import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import CallerContext
from app.core.security import TokenVerifier
from app.database import get_db
from app.domains.attachment.storage import get_blob_store  # noqa: F401
from app.domains.user.service import UserService
from models import User

logger = logging.getLogger(__name__)

security = HTTPBearer()
verifier = TokenVerifier()


async def validate_token(token: HTTPAuthorizationCredentials = Depends(security)) -> dict:
    """Validate and decode the bearer token.

    Returns:
        dict: Decoded token payload

    Raises:
        HTTPException: If token is invalid or expired
    """
    if not token or not token.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication token is required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return verifier.verify_token(token.credentials)


async def get_current_user(
    request: Request,
    payload: dict = Depends(validate_token),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Get current authenticated user from the token payload.

    Returns:
        User: Current authenticated user with roles loaded

    Raises:
        HTTPException: If user not found or inactive
    """
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload - missing user ID",
        )

    user = await UserService(db).get_user_by_id(user_id)

    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")

    # Add user info to request state for logging
    request.state.user_id = user.id

    return user


async def get_caller(user: User = Depends(get_current_user)) -> CallerContext:
    """Resolve the authenticated user into the caller context used by services."""
    return CallerContext.from_user(user)
