"""
Security utilities for authentication and authorization
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from uuid import UUID
from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import time

from app.config import settings
from app.core.database import get_session
from app.core.exceptions import AuthenticationError, AuthorizationError
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)

# Tokens are issued by the account service; this API only verifies them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login", auto_error=False)


class SecurityManager:
    """
    Bearer token handling
    """

    @staticmethod
    def create_access_token(
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create a JWT access token
        """
        to_encode = data.copy()
        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            expire = datetime.now(timezone.utc) + timedelta(
                minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
            )

        to_encode.update({
            "exp": expire,
            "type": "access",
            "iat": int(time.time()),
        })

        return jwt.encode(
            to_encode,
            settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM
        )

    @staticmethod
    def decode_token(token: str) -> Dict[str, Any]:
        """
        Decode and verify a JWT access token
        """
        try:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET_KEY,
                algorithms=[settings.JWT_ALGORITHM]
            )
        except JWTError as e:
            logger.warning(f"JWT decode error: {e}")
            raise AuthenticationError("Could not validate credentials")

        if payload.get("type") != "access":
            raise AuthenticationError("Invalid token type. Expected access")
        return payload


# Create global security manager
security_manager = SecurityManager()


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create access token helper function
    """
    return security_manager.create_access_token(data, expires_delta)


async def _load_user(token: str, db: AsyncSession) -> User:
    payload = security_manager.decode_token(token)
    subject = payload.get("sub")
    try:
        user_id = UUID(str(subject))
    except ValueError:
        raise AuthenticationError("Could not validate credentials")

    user = await db.get(User, user_id)
    if not user or not user.is_active:
        raise AuthenticationError("User not found")
    return user


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_session)
) -> User:
    """
    Get current user from the bearer token
    """
    if not token:
        raise AuthenticationError("Authentication required")
    return await _load_user(token, db)


async def get_optional_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_session)
) -> Optional[User]:
    """
    Current user when a token is sent, None for anonymous callers
    """
    if not token:
        return None
    return await _load_user(token, db)


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """
    Require admin role for endpoint
    """
    if current_user.role != UserRole.ADMIN:
        raise AuthorizationError("Admin access required")
    return current_user
