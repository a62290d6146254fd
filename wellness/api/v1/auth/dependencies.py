"""
Authentication dependencies
Tokens are issued by the session provider; here they are only verified
"""

from typing import Optional
import uuid

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from wellness.core.database import get_db
from wellness.core.exceptions import ForbiddenException, UnauthorizedException
from wellness.core.security import SecurityUtils, extract_token
from wellness.models import User, UserRole


async def _load_user(token: str, db: AsyncSession) -> Optional[User]:
    payload = SecurityUtils.decode_token(token)

    if payload.get("type") != "access":
        raise UnauthorizedException("Invalid token type", "INVALID_TOKEN")

    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise UnauthorizedException("Invalid authentication credentials", "INVALID_TOKEN")

    result = await db.execute(
        select(User).where(User.id == user_id, User.is_active == True)
    )
    return result.scalar_one_or_none()


async def get_current_user_optional(
    request: Request,
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """
    Get current user if authenticated, otherwise None
    Useful for endpoints that work for both authenticated and anonymous users
    """
    token = extract_token(request)
    if not token:
        return None

    try:
        return await _load_user(token, db)
    except UnauthorizedException:
        return None


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Get current authenticated user (required)
    Raises 401 if not authenticated or user not found
    """
    token = extract_token(request)
    if not token:
        raise UnauthorizedException()

    user = await _load_user(token, db)
    if user is None:
        raise UnauthorizedException("User not found or inactive", "USER_NOT_FOUND")

    return user


def require_role(allowed_roles: list[UserRole]):
    """Dependency factory checking the caller's role"""
    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise ForbiddenException("Insufficient permissions")
        return current_user
    return role_checker


require_admin = require_role([UserRole.ADMIN])
