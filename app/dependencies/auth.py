"""
Authentication dependencies for FastAPI
Provides JWT token validation and user extraction
"""

from typing import Optional

import jwt
from bson import ObjectId
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
        raise AuthError("Token has expired", status.HTTP_401_UNAUTHORIZED)
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid token: {str(e)}")
        raise AuthError("Invalid token", status.HTTP_401_UNAUTHORIZED)


def user_from_claims(payload: dict) -> Optional[User]:
    """Build a User from token claims (auth-service token structure)"""
    user_id = payload.get("id") or payload.get("user_id") or payload.get("sub")
    if not user_id:
        return None

    roles = payload.get("roles")
    if roles is None:
        roles = [payload["role"]] if payload.get("role") else []

    user_id = str(user_id)
    # Stored ids round-trip through ObjectId, which renders lowercase hex
    if ObjectId.is_valid(user_id):
        user_id = str(ObjectId(user_id))

    return User(
        id=user_id,
        email=payload.get("email"),
        first_name=payload.get("firstName") or payload.get("first_name") or payload.get("name"),
        roles=roles,
    )


async def get_current_user(
    authorization: Optional[str] = Header(None)
) -> User:
    """
    Dependency to extract and validate current user from JWT token.
    Raises 401 if authentication fails.
    """
    if not authorization:
        logger.warning("Authentication required: No token provided")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format. Expected 'Bearer <token>'",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = authorization.split(" ", 1)[1]

    try:
        payload = decode_jwt(token)
    except AuthError as e:
        logger.warning(f"Authentication failed: {e.message}")
        raise HTTPException(
            status_code=e.status_code,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = user_from_claims(payload)
    if user is None:
        logger.warning("Invalid token: Missing user ID")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: Missing user identifier",
        )

    logger.debug(f"Authentication successful for user: {user.id}")
    return user


async def get_current_user_optional(
    authorization: Optional[str] = Header(None)
) -> Optional[User]:
    """
    Optional authentication dependency.
    Returns User if valid token provided, None otherwise.
    """
    if not authorization:
        return None

    try:
        return await get_current_user(authorization)
    except HTTPException:
        # Invalid token, but optional auth so return None
        return None


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Dependency to require admin role"""
    if not user.is_admin(config.admin_role):
        logger.warning(f"Admin access denied for user: {user.id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return user
