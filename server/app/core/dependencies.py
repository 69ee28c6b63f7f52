"""Core authentication and authorization dependencies."""
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..database import get_connection

security = HTTPBearer()


async def get_token_payload(
    credentials: HTTPAuthorizationCredentials = Depends(security)
):
    """Decode and validate a bearer token payload."""
    # Import here to avoid circular imports
    from .services.auth import decode_token

    token = credentials.credentials
    payload = decode_token(token)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
):
    """Dependency to get the current authenticated user."""
    from .models.auth import CurrentUser

    payload = await get_token_payload(credentials)

    user_id = UUID(payload.sub)

    async with get_connection() as conn:
        # Verify user exists, is active and still belongs to the token's workspace
        user_row = await conn.fetchrow(
            """SELECT id, email, role, workspace_id, full_name, is_active
               FROM users WHERE id = $1""",
            user_id
        )

        if not user_row or not user_row["is_active"]:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not found or inactive"
            )

        if str(user_row["workspace_id"]) != payload.workspace_id:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token workspace does not match user"
            )

        return CurrentUser(
            id=user_row["id"],
            email=user_row["email"],
            role=user_row["role"],
            workspace_id=user_row["workspace_id"],
            full_name=user_row["full_name"],
        )


def require_roles(*roles):
    """Dependency factory for role-based access control."""
    async def role_checker(current_user=Depends(get_current_user)):
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {', '.join(roles)}"
            )
        return current_user
    return role_checker
