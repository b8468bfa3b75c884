"""
Security utilities for authentication and authorization
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from uuid import UUID
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.config import settings
from app.core.database import get_session
from app.core.exceptions import AuthenticationError, AuthorizationError, RateLimitError
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# OAuth2 scheme; token issuance lives outside this service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login", auto_error=False)


class SecurityManager:
    """
    Security manager for authentication and authorization
    """

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def hash_password(password: str) -> str:
        return pwd_context.hash(password)

    @staticmethod
    def create_access_token(
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create a JWT access token
        """
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
        )
        to_encode.update({"exp": expire, "type": "access"})

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
            raise AuthenticationError("Invalid token")

        if payload.get("type") != "access":
            raise AuthenticationError("Invalid token type. Expected access")
        return payload


# Create global security manager
security_manager = SecurityManager()

hash_password = security_manager.hash_password
create_access_token = security_manager.create_access_token


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_session)
) -> User:
    """
    Resolve the bearer token to an active user
    """
    if not token:
        raise AuthenticationError("Token is required")

    payload = security_manager.decode_token(token)
    user_id = payload.get("sub")
    if user_id is None:
        raise AuthenticationError("Could not validate credentials")

    try:
        user = await db.get(User, UUID(str(user_id)))
    except ValueError:
        raise AuthenticationError("Could not validate credentials")

    if not user or not user.is_active:
        raise AuthenticationError("User not found")
    return user


def require_roles(*roles: UserRole):
    """
    Dependency factory restricting an endpoint to the given roles
    """
    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            logger.warning(f"Forbidden: user {current_user.id} with role {current_user.role} denied")
            raise AuthorizationError("Forbidden: Access Denied")
        return current_user

    return checker


require_admin = require_roles(UserRole.ADMIN)
require_user = require_roles(UserRole.USER)


class RateLimiter:
    """
    Per-user sliding window rate limiter backed by Redis
    """

    def __init__(self, scope: str, max_requests: int, window: int = 60):
        self.scope = scope
        self.max_requests = max_requests
        self.window = window

    async def __call__(self, current_user: User = Depends(get_current_user)) -> None:
        if not settings.RATE_LIMIT_ENABLED:
            return

        from app.core.redis import redis_manager

        is_limited, count = await redis_manager.is_rate_limited(
            f"user:{current_user.id}:{self.scope}", self.max_requests, self.window
        )
        if is_limited:
            logger.warning(f"Rate limit hit for user {current_user.id} on {self.scope} ({count})")
            raise RateLimitError(self.max_requests, self.window)


class ClientRateLimiter:
    """
    Per-client sliding window limit applied to every API route
    """

    def __init__(self, max_requests: int, window: int = 60):
        self.max_requests = max_requests
        self.window = window

    async def __call__(self, request: Request) -> None:
        if not settings.RATE_LIMIT_ENABLED:
            return

        from app.core.redis import redis_manager

        client = request.client.host if request.client else "unknown"
        is_limited, count = await redis_manager.is_rate_limited(
            f"client:{client}", self.max_requests, self.window
        )
        if is_limited:
            logger.warning(f"Rate limit hit for client {client} ({count})")
            raise RateLimitError(self.max_requests, self.window)
