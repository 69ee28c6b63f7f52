from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from jose import jwt, JWTError

from ...config import get_settings
from ..models.auth import TokenPayload, UserRole


def create_access_token(
    user_id: UUID,
    email: str,
    role: UserRole,
    workspace_id: UUID,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create a JWT access token."""
    settings = get_settings()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_access_token_expire_minutes)

    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "workspace_id": str(workspace_id),
        "exp": expire,
        "type": "access"
    }

    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[TokenPayload]:
    """Decode and validate a JWT token."""
    settings = get_settings()

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )
        if payload.get("type") != "access":
            return None
        return TokenPayload(
            sub=payload["sub"],
            email=payload["email"],
            role=payload["role"],
            workspace_id=payload["workspace_id"],
            exp=payload["exp"]
        )
    except (JWTError, KeyError, TypeError, ValueError):
        return None
