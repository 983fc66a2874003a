"""
Authentication dependencies for FastAPI
Extracts the caller identity from a bearer JWT
"""

from typing import Optional

import jwt
from fastapi import Depends, Header, HTTPException, status

from app.core.config import config
from app.core.logger import logger
from app.models.user import User


class AuthError(Exception):
    """Custom authentication error"""
    def __init__(self, message: str, status_code: int = 401):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def decode_jwt(token: str) -> dict:
    """
    Decode and validate JWT token

    Raises:
        AuthError: If token is invalid or expired
    """
    try:
        return jwt.decode(token, config.jwt_secret, algorithms=[config.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthError("Token has expired")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid token: {str(e)}")
        raise AuthError("Invalid token")


async def get_current_user(authorization: Optional[str] = Header(None)) -> User:
    """
    Dependency returning the authenticated caller. Raises 401 otherwise.

    The identity is the ``username`` claim, falling back to ``sub``.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_jwt(authorization.split(" ", 1)[1])
    except AuthError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    username = payload.get("username") or payload.get("sub")
    if not username:
        logger.warning("Invalid token: Missing username")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: Missing user identifier",
        )

    roles = payload.get("roles") or []
    if isinstance(roles, str):
        roles = [roles]
    return User(username=username, roles=roles)


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Dependency requiring the admin role"""
    if not user.is_admin():
        logger.warning(f"Admin access denied for user: {user.username}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return user
