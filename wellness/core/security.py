"""
Security utilities for authentication
Handles JWT access tokens issued by the session provider
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from fastapi import Request
import secrets

from .config import settings
from .exceptions import UnauthorizedException


class SecurityUtils:
    """Security utility functions"""

    @staticmethod
    def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        """Create JWT access token"""
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        )
        to_encode.update({"exp": expire, "type": "access"})
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> Dict[str, Any]:
        """Decode and validate JWT token"""
        try:
            return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError:
            raise UnauthorizedException("Invalid authentication credentials", "INVALID_TOKEN")

    @staticmethod
    def generate_referral_code() -> str:
        """8 uppercase hex characters"""
        return secrets.token_hex(4).upper()

    @staticmethod
    def constant_time_equals(left: str, right: str) -> bool:
        return secrets.compare_digest(left.encode(), right.encode())


def extract_token(request: Request) -> Optional[str]:
    """Read the access token from the Authorization header or the session cookie"""
    authorization = request.headers.get("Authorization")
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token:
            return token.strip()

    return request.cookies.get(settings.AUTH_COOKIE_NAME)
